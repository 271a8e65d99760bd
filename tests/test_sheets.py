"""Unit tests for template sheet resolution."""

# pylint: disable=missing-class-docstring,missing-function-docstring

from timecard_app.reconcile.sheets import plan_template_writes, resolve_sheet, split_name

from .conftest import make_table


class TestSplitName:

    def test_ascii_space(self):
        assert split_name("山田 花子") == ["山田", "花子"]

    def test_full_width_and_runs(self):
        assert split_name("  山田　 花子  ") == ["山田", "花子"]

    def test_blank(self):
        assert split_name(" 　 ") == []


class TestResolveSheet:

    def test_full_name_tier(self):
        assert resolve_sheet("山田 花子", ["山田", "山田 花子"]) == "山田 花子"

    def test_first_part_tier(self):
        assert resolve_sheet("山田 花子", ["山田", "鈴木"]) == "山田"

    def test_last_part_tier(self):
        assert resolve_sheet("山田 花子", ["花子"]) == "花子"

    def test_single_part_never_reaches_last_tier(self):
        assert resolve_sheet("花子", ["山田"]) is None

    def test_first_part_beats_last_part(self):
        assert resolve_sheet("山田 花子", ["花子", "山田"]) == "山田"

    def test_returns_untrimmed_sheet_name(self):
        assert resolve_sheet("山田 花子", [" 山田 "]) == " 山田 "

    def test_trims_full_name(self):
        assert resolve_sheet("　山田 花子　", ["山田 花子"]) == "山田 花子"

    def test_full_width_separator(self):
        assert resolve_sheet("山田　花子", ["花子"]) == "花子"

    def test_blank_name(self):
        assert resolve_sheet("   ", ["山田"]) is None

    def test_no_match(self):
        assert resolve_sheet("佐藤 一郎", ["山田", "鈴木"]) is None

    def test_first_sheet_wins_within_tier(self):
        assert resolve_sheet("山田", ["山田 ", "山田"]) == "山田 "


class TestPlanTemplateWrites:

    def test_assignments_and_unmatched_summary(self):
        records = [make_table("山田 花子"), make_table("佐藤 一郎"), make_table("佐藤 一郎", "2025年9月")]
        plan = plan_template_writes(records, ["山田", "鈴木"])

        assert [sheet for _, sheet in plan.assignments] == ["山田", None, None]
        assert plan.unmatched == ["佐藤 一郎"]
        assert [(r.title.name, s) for r, s in plan.matched] == [("山田 花子", "山田")]

    def test_one_record_per_sheet(self):
        records = [make_table("山田 花子"), make_table("山田 太郎"), make_table("山田 花子", "2025年9月")]
        plan = plan_template_writes(records, ["山田"])

        assert [sheet for _, sheet in plan.assignments] == ["山田", None, None]
        assert plan.unmatched == []
        assert len(plan.conflicts) == 2
        assert plan.conflicts[0].startswith("山田 太郎 (2025年8月): sheet '山田' already used by 山田 花子")

    def test_empty_sheet_list(self):
        plan = plan_template_writes([make_table("山田")], [])
        assert plan.unmatched == ["山田"]
