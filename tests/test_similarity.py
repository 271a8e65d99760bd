"""Unit tests for edit distance and similarity."""

# pylint: disable=missing-class-docstring,missing-function-docstring

import pytest

from timecard_app.reconcile.similarity import distance, similarity


class TestDistance:

    @pytest.mark.parametrize("text", ["", "a", "田中太郎", "kitten"])
    def test_identity(self, text):
        assert distance(text, text) == 0

    def test_empty_left(self):
        assert distance("", "abc") == 3

    def test_empty_right(self):
        assert distance("abc", "") == 3

    def test_classic_example(self):
        assert distance("kitten", "sitting") == 3

    @pytest.mark.parametrize("a,b", [("kitten", "sitting"), ("田中太郎", "田中太朗"), ("ab", "bca")])
    def test_symmetry(self, a, b):
        assert distance(a, b) == distance(b, a)

    def test_single_substitution(self):
        assert distance("佐藤一郎", "佐藤二郎") == 1


class TestSimilarity:

    def test_identical(self):
        assert similarity("田中太郎", "田中太郎") == 1.0

    def test_one_edit_in_four(self):
        assert similarity("佐藤一郎", "佐藤二郎") == pytest.approx(0.75)

    def test_uses_longer_length(self):
        assert similarity("abc", "abcd") == pytest.approx(0.75)

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            similarity("", "abc")
