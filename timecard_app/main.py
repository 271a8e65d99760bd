"""
Time Card OCR Application - Main Streamlit UI

Upload scanned time cards, extract them with a vision LLM, reconcile names
against a roster, review and edit, and download Excel files.

Features:
- File upload (PDF, images), one LLM call per page
- Gemini, Ollama and LM Studio vision providers
- Roster-based name correction and merging of split time cards
- Attendance columns from work patterns
- Excel export, or filling a per-person template workbook
"""

import json
import logging
import sys
import tempfile
import time
from pathlib import Path

import pandas as pd
import streamlit as st

# Add package directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from timecard_app.config import LLMProvider, get_config, validate_system_requirements
from timecard_app.documents import load_pages
from timecard_app.export.excel import (
    ExcelExporter,
    load_roster,
    read_sheet_names,
    record_file_name,
)
from timecard_app.llm.client import LLMClient, LLMClientError
from timecard_app.models import ReconcileProfile, TableRecord, WorkPattern
from timecard_app.processing import ProcessingJob
from timecard_app.reconcile import SanitizationError, annotate_record, reconcile, select_patterns
from timecard_app.reconcile.sheets import plan_template_writes

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PATTERN_COLUMN = "Work pattern"
POLL_INTERVAL = 0.3  # seconds


def init_session_state():
    """Initialize Streamlit session state."""
    if "config" not in st.session_state:
        st.session_state.config = get_config()

    if "tables" not in st.session_state:
        st.session_state.tables = []

    if "transcriptions" not in st.session_state:
        st.session_state.transcriptions = []

    if "unmatched_names" not in st.session_state:
        st.session_state.unmatched_names = []

    if "job" not in st.session_state:
        st.session_state.job = None

    if "pattern_choices" not in st.session_state:
        st.session_state.pattern_choices = {}

    if "validation_results" not in st.session_state:
        st.session_state.validation_results = None


def validate_system():
    """Validate system requirements once per session."""
    if st.session_state.validation_results is None:
        with st.spinner("Validating system requirements..."):
            st.session_state.validation_results = validate_system_requirements()
    return st.session_state.validation_results


def _temp_workbook(uploaded) -> Path:
    """Save an uploaded workbook to a temporary file for openpyxl."""
    tmp = tempfile.NamedTemporaryFile(suffix=".xlsx", delete=False)
    tmp.write(uploaded.getvalue())
    tmp.close()
    return Path(tmp.name)


def render_sidebar():
    """Render the settings sidebar."""
    config = st.session_state.config
    profile: ReconcileProfile = config.profile
    results = st.session_state.validation_results or {}

    with st.sidebar:
        st.header("⚙️ Settings")

        provider_names = {
            LLMProvider.GEMINI: "Gemini (Cloud)",
            LLMProvider.OLLAMA: "Ollama (Local)",
            LLMProvider.LM_STUDIO: "LM Studio (Local)",
        }
        selected = st.selectbox(
            "LLM Provider",
            options=list(provider_names),
            format_func=lambda x: provider_names[x],
            index=list(provider_names).index(config.llm_provider),
        )
        config.llm_provider = selected

        if selected == LLMProvider.GEMINI:
            config.gemini.api_key = st.text_input("API Key", value=config.gemini.api_key, type="password")
            config.gemini.model = st.text_input("Model", value=config.gemini.model)
            if not results.get("gemini", {}).get("configured") and not config.gemini.api_key:
                st.warning("⚠️ Gemini API key not set in .env")
        elif selected == LLMProvider.OLLAMA:
            config.ollama.vision_model = st.text_input("Vision Model", value=config.ollama.vision_model)
            config.ollama.base_url = st.text_input("Ollama URL", value=config.ollama.base_url)
            if not results.get("ollama", {}).get("available"):
                st.warning("⚠️ Ollama not running. Start with: `ollama serve`")
        elif selected == LLMProvider.LM_STUDIO:
            config.lm_studio.vision_model = st.text_input("Vision Model", value=config.lm_studio.vision_model)
            config.lm_studio.base_url = st.text_input("LM Studio URL", value=config.lm_studio.base_url)
            if not results.get("lm_studio", {}).get("available"):
                st.warning("⚠️ LM Studio not running. Start the local server.")

        if not results.get("poppler", {}).get("installed"):
            st.warning("⚠️ Poppler not found: PDF upload will not work")

        st.divider()
        st.subheader("Roster")

        roster_file = st.file_uploader("Roster workbook", type=["xlsx"], key="roster_file")
        if roster_file and st.button("Load roster"):
            try:
                profile.roster = load_roster(
                    _temp_workbook(roster_file),
                    column=config.roster_column,
                    skip_header=config.roster_skip_header,
                )
                st.success(f"Loaded {len(profile.roster)} names")
            except Exception as e:
                st.error(f"Could not read roster: {e}")
                logger.exception("Roster loading failed")
        st.caption(f"{len(profile.roster)} names in roster")

        profile.collapse_duplicate_rows = st.checkbox(
            "Drop duplicate rows when merging",
            value=profile.collapse_duplicate_rows,
        )

        st.divider()
        render_work_patterns(profile)

        st.divider()
        st.subheader("Profile")
        st.download_button(
            "⬇️ Save profile",
            data=json.dumps(profile.to_dict(), ensure_ascii=False, indent=2),
            file_name="timecard_profile.json",
            mime="application/json",
        )
        profile_file = st.file_uploader("Load profile", type=["json"], key="profile_file")
        if profile_file and st.button("Apply profile"):
            try:
                config.profile = ReconcileProfile.from_dict(json.loads(profile_file.getvalue()))
                st.rerun()
            except (ValueError, TypeError) as e:
                st.error(f"Invalid profile: {e}")


def render_work_patterns(profile: ReconcileProfile):
    """Edit work patterns as a table."""
    st.subheader("Work Patterns")

    df = pd.DataFrame(
        [p.to_dict() for p in profile.work_patterns],
        columns=["id", "name", "startTime", "endTime", "breakTimeHours"],
    )
    edited = st.data_editor(
        df,
        num_rows="dynamic",
        hide_index=True,
        column_config={"id": None},
        key="pattern_editor",
    )
    patterns = []
    for row in edited.to_dict("records"):
        row = {key: value for key, value in row.items() if not pd.isna(value)}
        if not row.get("name"):
            continue
        try:
            patterns.append(WorkPattern.from_dict(row))
        except (TypeError, ValueError):
            st.warning(f"Invalid pattern: {row.get('name')}")
    if patterns:
        profile.work_patterns = patterns


def render_upload_section():
    """Render the file upload section."""
    st.header("📄 1. Upload Time Cards")

    uploaded_files = st.file_uploader(
        "Choose time card files",
        type=["pdf", "png", "jpg", "jpeg", "jpe", "jfif", "tiff", "tif", "bmp", "gif", "webp"],
        accept_multiple_files=True,
        help="Upload PDFs or images. Each PDF page is read separately.",
    )

    if uploaded_files:
        image_files = [f for f in uploaded_files if f.type and f.type.startswith("image/")]
        if image_files:
            cols = st.columns(min(len(image_files), 4))
            for i, uploaded in enumerate(image_files):
                with cols[i % len(cols)]:
                    st.image(uploaded.getvalue(), caption=uploaded.name, use_container_width=True)

    return uploaded_files


def run_processing(uploaded_files):
    """Extract, reconcile and store records for the uploaded files."""
    config = st.session_state.config

    pages = []
    for uploaded in uploaded_files:
        try:
            pages.extend(load_pages(
                uploaded.name,
                uploaded.getvalue(),
                dpi=config.processing.pdf_dpi,
                max_size=config.processing.max_image_size,
            ))
        except Exception as e:
            st.error(f"Could not read {uploaded.name}: {e}")
            logger.exception("Page preparation failed")
            return

    job = ProcessingJob(pages, LLMClient(config=config)).start()
    st.session_state.job = job
    progress = st.progress(0.0, text="Starting...")

    # Any widget interaction reruns the script and interrupts this loop;
    # the finally block then stops the worker after its current page.
    try:
        while not job.finished:
            done, name = job.progress
            progress.progress(done / max(job.total, 1), text=f"Reading {name} ({done + 1}/{job.total})")
            time.sleep(POLL_INTERVAL)
        outcome = job.result()
        st.session_state.job = None
    except LLMClientError as e:
        st.session_state.job = None
        st.error(f"LLM extraction failed: {e}")
        return
    finally:
        job.cancel()
        progress.empty()

    if outcome.cancelled:
        st.warning("Processing was cancelled. No results were kept.")
        return

    for error in outcome.errors:
        st.warning(error)

    try:
        result = reconcile(outcome.raw_records, config.profile)
    except SanitizationError as e:
        st.error(str(e))
        return

    st.session_state.tables = result.tables
    st.session_state.transcriptions = result.transcriptions
    st.session_state.unmatched_names = result.unmatched_names
    st.session_state.pattern_choices = {}

    st.success(
        f"Read {outcome.pages_processed} pages: {len(result.tables)} time cards, "
        f"{len(result.transcriptions)} transcriptions"
    )
    if result.corrected_names:
        st.info("Names corrected from roster: " + ", ".join(
            f"{old} → {new}" for old, new in result.corrected_names.items()
        ))


def render_review_section():
    """Render editable time cards."""
    tables: list[TableRecord] = st.session_state.tables
    if not tables:
        return

    st.header("✏️ 2. Review & Edit")

    if st.session_state.unmatched_names:
        st.warning("Not found in roster: " + ", ".join(st.session_state.unmatched_names))

    exporter = ExcelExporter(st.session_state.config.template)
    pattern_names = [p.name for p in st.session_state.config.profile.work_patterns]
    default_pattern = pattern_names[0] if pattern_names else None

    for index, record in enumerate(tables):
        label = f"{record.title.year_month} {record.title.name}"
        if record.name_corrected:
            label += " (corrected from roster)"

        with st.expander(label, expanded=index == 0):
            col1, col2 = st.columns(2)
            with col1:
                year_month = st.text_input("Year / Month", value=record.title.year_month, key=f"ym_{index}")
            with col2:
                name = st.text_input("Name", value=record.title.name, key=f"name_{index}")

            if year_month != record.title.year_month:
                record = record.with_year_month(year_month)
            if name != record.title.name:
                record = record.with_name(name)

            df = pd.DataFrame([list(row) for row in record.data], columns=_unique_columns(record.headers))
            choices = st.session_state.pattern_choices.get(index, [])
            df.insert(0, PATTERN_COLUMN, [
                choices[i] if i < len(choices) else default_pattern for i in range(len(df))
            ])
            edited = st.data_editor(
                df,
                key=f"table_{index}",
                hide_index=True,
                use_container_width=True,
                column_config={
                    PATTERN_COLUMN: st.column_config.SelectboxColumn(PATTERN_COLUMN, options=pattern_names),
                },
            )
            st.session_state.pattern_choices[index] = edited.pop(PATTERN_COLUMN).tolist()
            rows = edited.fillna("").astype(str).values.tolist()
            if rows != [list(row) for row in record.data]:
                record = record.with_rows(rows)

            tables[index] = record

            with tempfile.TemporaryDirectory() as tmp_dir:
                path = exporter.export_record(record, Path(tmp_dir) / record_file_name(record))
                st.download_button(
                    "⬇️ Download",
                    data=path.read_bytes(),
                    file_name=path.name,
                    mime=XLSX_MIME,
                    key=f"download_{index}",
                )

    st.session_state.tables = tables


def _unique_columns(headers) -> list[str]:
    """Column labels for a DataFrame; repeated or blank headers get a suffix."""
    seen = {PATTERN_COLUMN: 0}
    columns = []
    for i, header in enumerate(headers):
        label = header or f"column {i + 1}"
        if label in seen:
            seen[label] += 1
            label = f"{label} ({seen[label]})"
        else:
            seen[label] = 0
        columns.append(label)
    return columns


def render_export_section():
    """Render the Excel export section."""
    tables: list[TableRecord] = st.session_state.tables
    transcriptions = st.session_state.transcriptions
    if not tables and not transcriptions:
        return

    config = st.session_state.config
    exporter = ExcelExporter(config.template)

    st.header("📊 3. Export to Excel")

    add_attendance = st.checkbox(
        "Add attendance columns",
        help="Worked, overtime and late-night hours from each row's work pattern",
    )
    export_tables = tables
    if add_attendance:
        patterns = config.profile.work_patterns
        choices = st.session_state.pattern_choices
        export_tables = [
            annotate_record(r, patterns, selected_pattern_ids=select_patterns(choices.get(i, []), patterns))
            for i, r in enumerate(tables)
        ]

    col1, col2 = st.columns(2)

    with col1:
        st.subheader("New workbook")
        with tempfile.TemporaryDirectory() as tmp_dir:
            if export_tables:
                path = exporter.export_all(export_tables, Path(tmp_dir) / "TimeCards.xlsx")
                st.download_button(
                    "⬇️ Download all time cards",
                    data=path.read_bytes(),
                    file_name="TimeCards.xlsx",
                    mime=XLSX_MIME,
                )
            if transcriptions:
                path = exporter.export_transcriptions(transcriptions, Path(tmp_dir) / "Transcriptions.xlsx")
                st.download_button(
                    "⬇️ Download transcriptions",
                    data=path.read_bytes(),
                    file_name="Transcriptions.xlsx",
                    mime=XLSX_MIME,
                )

    with col2:
        st.subheader("Fill template")
        template_file = st.file_uploader("Template workbook", type=["xlsx"], key="template_file")
        if template_file and export_tables:
            template_path = _temp_workbook(template_file)
            plan = plan_template_writes(export_tables, read_sheet_names(template_path))
            st.dataframe(
                pd.DataFrame(
                    [(r.title.name, sheet or "—") for r, sheet in plan.assignments],
                    columns=["Name", "Sheet"],
                ),
                hide_index=True,
            )
            if plan.unmatched:
                st.warning("No sheet found for: " + ", ".join(plan.unmatched))
            for conflict in plan.conflicts:
                st.warning(f"Not written: {conflict}")

            if st.button("📥 Fill template", type="primary", use_container_width=True):
                try:
                    with tempfile.TemporaryDirectory() as tmp_dir:
                        out_path = Path(tmp_dir) / f"{Path(template_file.name).stem}_filled.xlsx"
                        result = exporter.fill_template(export_tables, template_path, out_path)
                        st.success(f"✅ Filled {len(result.written)} sheets")
                        st.download_button(
                            "⬇️ Download filled template",
                            data=result.path.read_bytes(),
                            file_name=result.path.name,
                            mime=XLSX_MIME,
                        )
                except Exception as e:
                    st.error(f"Export failed: {e}")
                    logger.exception("Template fill failed")


def main():
    """Main application entry point."""
    st.set_page_config(
        page_title="Time Card OCR",
        page_icon="🕘",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    init_session_state()

    st.title("🕘 Time Card OCR")
    st.markdown(
        "Upload time card images or PDFs and the AI turns them into tables. "
        "Reading is not perfect: check and fix the values here, then download Excel files."
    )

    validate_system()
    render_sidebar()

    st.divider()

    uploaded_files = render_upload_section()

    col1, col2, col3 = st.columns([2, 1, 1])
    with col1:
        start = st.button("▶️ Start processing", type="primary", disabled=not uploaded_files, use_container_width=True)
    with col2:
        # Rendered before processing starts so it can be clicked during a run
        if st.button("⏹ Cancel", use_container_width=True) and st.session_state.job is not None:
            st.session_state.job.cancel()
            st.info("Processing cancelled. No results were kept.")
    with col3:
        if st.button("🗑 Clear results", use_container_width=True):
            st.session_state.tables = []
            st.session_state.transcriptions = []
            st.session_state.unmatched_names = []
            st.session_state.pattern_choices = {}
            st.rerun()

    if start:
        run_processing(uploaded_files)

    st.divider()
    render_review_section()

    st.divider()
    render_export_section()


if __name__ == "__main__":
    main()
