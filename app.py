import time
from datetime import date
from pathlib import Path

import pandas as pd
import plotly.express as px
import streamlit as st

from src.analysis import MockAnalysisEngine, results_summary
from src.geolocation import classify_position_response, request_browser_position
from src.imaging import UPLOAD_FILE_TYPES, ImageRejected
from src.input_metadata import help_with_guidance, placeholder_for, upload_help
from src.pdf_export import build_report
from src.runtime_logging import (
    LEVELS,
    append_runtime_event,
    configure_log_root,
    install_global_exception_logging,
    read_runtime_events,
    runtime_log_path,
)
from src.settings import settings_from_env
from src.slides import LocationSlide, PersonalInfoSlide, RooftopImageSlide, SlideResult, slide_for
from src.wizard import (
    Phase,
    Step,
    advance,
    progress_pct,
    reset,
    retreat,
    start,
    step_caption,
)


SETTINGS = settings_from_env()
configure_log_root(SETTINGS.storage_root)
install_global_exception_logging()


SESSION_DEFAULTS = {
    "slide_draft": None,
    "report_artifact": None,
    "flash_message": None,
    "runtime_log_limit": 50,
    "runtime_log_min_level": "INFO",
}


def _set_flash(level: str, text: str) -> None:
    st.session_state["flash_message"] = (level, text)


def _show_flash() -> None:
    flash = st.session_state.get("flash_message")
    if not flash:
        return
    level, text = flash
    st.session_state["flash_message"] = None
    {"success": st.success, "warning": st.warning, "error": st.error}.get(level, st.info)(text)


def _wizard_state():
    return st.session_state["wizard_state"]


def _set_wizard_state(new_state) -> None:
    st.session_state["wizard_state"] = new_state
    st.session_state["slide_draft"] = None


def _analysis_engine() -> MockAnalysisEngine:
    if "analysis_engine" not in st.session_state:
        st.session_state["analysis_engine"] = MockAnalysisEngine.from_seed(SETTINGS.random_seed)
    return st.session_state["analysis_engine"]


def _current_draft(state):
    draft = st.session_state.get("slide_draft")
    if draft is None or draft.step != state.current_step:
        draft = slide_for(state.current_step, state.record)
        st.session_state["slide_draft"] = draft
    return draft


def _seed_widget(key: str, value: str) -> None:
    if key not in st.session_state:
        st.session_state[key] = value


def _field_error(draft, field: str) -> None:
    message = draft.errors.get(field)
    if message:
        st.error(message)


def _run_final_analysis(record):
    with st.spinner("Analyzing your rooftop and local rainfall..."):
        analyzed = _analysis_engine().run_with_delay(record, SETTINGS.analysis_delay_sec)
    append_runtime_event(
        level="INFO",
        event="analysis_completed",
        message="Mock analysis completed.",
        context={
            "rooftop_area": analyzed.rooftop_area,
            "average_rainfall": analyzed.analysis_results.average_rainfall,
        },
    )
    return analyzed


def _complete_step(result: SlideResult, success_text: str) -> None:
    state = _wizard_state()
    step = state.current_step
    if not result.ok:
        append_runtime_event(
            level="INFO",
            event="slide_validation_failed",
            message="Slide submission blocked by validation.",
            context={"step": step.value, "fields": sorted(result.errors)},
        )
        st.rerun()
    new_state = advance(state, result.partial, analyze=_run_final_analysis)
    append_runtime_event(
        level="INFO",
        event="wizard_step_completed",
        message="Wizard step completed.",
        context={"step": step.value, "phase": new_state.phase.value},
    )
    _set_wizard_state(new_state)
    _set_flash("success", success_text)
    st.rerun()


def _render_personal_info_slide(draft: PersonalInfoSlide) -> None:
    st.subheader("Personal Information")
    st.caption("Let's start by collecting some basic information about you")

    fields = (
        ("personal_name", "name", "Full Name", "Enter your full name"),
        ("personal_mobile", "mobile", "Mobile Number", "Enter 10-digit mobile number"),
        ("personal_email", "email", "Email Address", "Enter your email address"),
    )
    for key, attr, label, placeholder in fields:
        _seed_widget(key, getattr(draft, attr))
        st.text_input(label, key=key, placeholder=placeholder, help=help_with_guidance(key))
        _field_error(draft, attr)

    if st.button("Continue", key="personal_continue", type="primary", help=help_with_guidance("personal_continue")):
        draft.name = st.session_state["personal_name"]
        draft.mobile = st.session_state["personal_mobile"]
        draft.email = st.session_state["personal_email"]
        _complete_step(draft.submit(), "Personal information saved successfully!")


def _poll_geolocation(draft: LocationSlide) -> None:
    raw = request_browser_position(draft.request_key)
    outcome = classify_position_response(raw)
    if outcome.status == "pending":
        st.info("Detecting your location...")
        return
    draft.apply_geolocation(outcome)
    if outcome.detected:
        st.session_state["location_latitude"] = draft.latitude
        st.session_state["location_longitude"] = draft.longitude
        append_runtime_event(
            level="INFO",
            event="geolocation_detected",
            message="Browser geolocation succeeded.",
            context={"attempt": draft.detect_attempts},
        )
    else:
        append_runtime_event(
            level="WARNING",
            event="geolocation_failed",
            message=outcome.message,
            context={"attempt": draft.detect_attempts, "error_code": outcome.error_code},
        )


def _render_location_map(coords: tuple[float, float]) -> None:
    lat, lng = coords
    fig = px.scatter_geo(
        pd.DataFrame({"Latitude": [lat], "Longitude": [lng], "Label": ["Your rooftop"]}),
        lat="Latitude",
        lon="Longitude",
        hover_name="Label",
        projection="natural earth",
    )
    fig.update_traces(marker={"size": 12, "color": "#1f77b4"})
    fig.update_layout(height=320, margin={"l": 0, "r": 0, "t": 0, "b": 0})
    st.plotly_chart(fig, width="stretch")


def _render_location_slide(draft: LocationSlide) -> None:
    st.subheader("Location Detection")
    st.caption("We need your location to provide accurate rainfall data for your area")

    if SETTINGS.auto_detect_location and draft.should_auto_detect():
        draft.begin_detection()

    # An ignored permission prompt never resolves, so retry stays available.
    detecting = draft.status == "detecting"
    if st.button(
        "Retry Detection" if detecting else "Detect Location",
        key="detect_location",
        help=help_with_guidance("detect_location"),
    ):
        draft.begin_detection()
        detecting = True
    if detecting:
        _poll_geolocation(draft)

    if draft.status == "detected" and draft.latitude and draft.longitude:
        st.success(f"✓ Location detected successfully! Latitude: {draft.latitude}, Longitude: {draft.longitude}")
    elif draft.status == "error":
        st.warning(f"✗ {draft.status_message} You can enter coordinates manually below.")

    st.markdown("**Or enter coordinates manually**")
    lat_col, lng_col = st.columns(2)
    with lat_col:
        _seed_widget("location_latitude", draft.latitude)
        st.text_input(
            "Latitude",
            key="location_latitude",
            placeholder=placeholder_for("location_latitude"),
            help=help_with_guidance("location_latitude"),
        )
        _field_error(draft, "latitude")
    with lng_col:
        _seed_widget("location_longitude", draft.longitude)
        st.text_input(
            "Longitude",
            key="location_longitude",
            placeholder=placeholder_for("location_longitude"),
            help=help_with_guidance("location_longitude"),
        )
        _field_error(draft, "longitude")
    draft.latitude = st.session_state["location_latitude"]
    draft.longitude = st.session_state["location_longitude"]

    coords = draft.preview_coordinates()
    if coords is not None:
        _render_location_map(coords)

    if st.button("Continue", key="location_continue", type="primary", help=help_with_guidance("location_continue")):
        _complete_step(draft.submit(), "Location information saved successfully!")


def _render_camera(draft: RooftopImageSlide) -> None:
    frame = st.camera_input(
        "Rooftop photo",
        key=f"rooftop_camera_{draft.upload_nonce}",
        help=help_with_guidance("rooftop_camera"),
    )
    if frame is not None:
        level, text = draft.take_photo(frame.getvalue())
        if level != "success":
            append_runtime_event(
                level="WARNING",
                event="camera_capture_failed",
                message="Captured frame could not be encoded.",
                context={"size_bytes": len(frame.getvalue())},
            )
        _set_flash(level, text)
        st.rerun()
    if st.button("Close Camera", key="close_camera", help=help_with_guidance("close_camera")):
        draft.release_camera()
        st.rerun()


def _render_upload_choice(draft: RooftopImageSlide) -> None:
    if st.button("Take Photo", key="open_camera", help=help_with_guidance("open_camera")):
        draft.open_camera()
        st.rerun()
    uploaded = st.file_uploader(
        "Upload Image",
        type=UPLOAD_FILE_TYPES,
        key=draft.uploader_key,
        help=upload_help(SETTINGS.max_upload_bytes),
    )
    if uploaded is None:
        return
    data = uploaded.getvalue()
    try:
        draft.upload(uploaded.type, data, max_bytes=SETTINGS.max_upload_bytes)
    except ImageRejected as exc:
        append_runtime_event(
            level="INFO",
            event="image_rejected",
            message=str(exc),
            context={"mime_type": uploaded.type, "size_bytes": len(data)},
        )
        st.rerun()
    _set_flash("success", "Image uploaded successfully!")
    st.rerun()


def _render_rooftop_image_slide(draft: RooftopImageSlide) -> None:
    st.subheader("Rooftop Analysis")
    st.caption("Upload or capture an image of your rooftop for AI-powered area analysis")

    if draft.mode == "camera":
        _render_camera(draft)
    elif draft.mode == "choice":
        _render_upload_choice(draft)
    _field_error(draft, "image")

    if draft.mode != "preview":
        return

    st.image(draft.image.data, caption="Selected rooftop image")
    remove_col, retake_col, analyze_col = st.columns(3)
    with remove_col:
        if st.button("Remove Image", key="remove_image", help=help_with_guidance("remove_image")):
            draft.remove_image()
            st.rerun()
    with retake_col:
        if st.button("Take New Photo", key="open_camera", help=help_with_guidance("open_camera")):
            draft.open_camera()
            st.rerun()
    with analyze_col:
        analyze_clicked = st.button(
            "Analyze Rooftop",
            key="analyze_rooftop",
            type="primary",
            help=help_with_guidance("analyze_rooftop"),
        )
    if analyze_clicked:
        with st.spinner("Analyzing rooftop image..."):
            if SETTINGS.image_analysis_delay_sec > 0:
                time.sleep(SETTINGS.image_analysis_delay_sec)
        draft.mark_analyzed()
        _complete_step(draft.submit(), "Image analysis completed successfully!")


SLIDE_RENDERERS = {
    Step.PERSONAL_INFO: _render_personal_info_slide,
    Step.LOCATION: _render_location_slide,
    Step.ROOFTOP_IMAGE: _render_rooftop_image_slide,
}


def _render_landing() -> None:
    st.title("Smart Rainwater Harvesting")
    st.markdown(
        "Discover how much rainwater your rooftop can collect. Get a personalised tank size, "
        "storage estimate and cost in three quick steps."
    )
    f1, f2, f3 = st.columns(3)
    f1.markdown("**AI Analysis**  \nRooftop area estimated from a photo.")
    f2.markdown("**Location Based**  \nRainfall figures for your coordinates.")
    f3.markdown("**Detailed Report**  \nA downloadable PDF summary.")

    st.subheader("How It Works")
    st.markdown(
        "1. **Personal Information**: tell us who the assessment is for.\n"
        "2. **Location Detection**: share your position or type coordinates.\n"
        "3. **Rooftop Analysis**: upload or take a photo of your roof."
    )
    if st.button("Start Assessment", key="start_assessment", type="primary", help=help_with_guidance("start_assessment")):
        _set_wizard_state(start(_wizard_state()))
        st.rerun()


def _render_examination() -> None:
    state = _wizard_state()
    back_col, title_col = st.columns([1, 6])
    with back_col:
        back_label = "Exit" if state.step_index == 0 else "Back"
        if st.button(back_label, key="wizard_back", help=help_with_guidance("wizard_back")):
            _set_wizard_state(retreat(state))
            st.rerun()
    with title_col:
        st.title("Rainwater Harvesting Assessment")
        st.caption(step_caption(state))
    st.progress(int(round(progress_pct(state))))
    _show_flash()

    draft = _current_draft(state)
    SLIDE_RENDERERS[state.current_step](draft)


def _render_report_controls(record) -> None:
    st.subheader("Report")
    if st.button("Generate Report", key="generate_report", type="primary", help=help_with_guidance("generate_report")):
        with st.spinner("Building PDF report..."):
            artifact = build_report(record, {"log_event": append_runtime_event})
        st.session_state["report_artifact"] = artifact
        append_runtime_event(
            level="INFO",
            event="report_generated",
            message="Assessment report generated.",
            context={"size_bytes": len(artifact.pdf_bytes), "notices": len(artifact.notices)},
        )
    artifact = st.session_state.get("report_artifact")
    if artifact is None:
        return
    for notice in artifact.notices:
        st.warning(notice)
    st.download_button(
        "Download Report",
        artifact.pdf_bytes,
        file_name=artifact.filename,
        mime=artifact.mime_type,
        key="download_report",
        help=help_with_guidance("download_report"),
    )


def _render_results() -> None:
    state = _wizard_state()
    record = state.record
    results = record.analysis_results
    summary = results_summary(record)

    header_col, reset_col = st.columns([5, 1])
    with header_col:
        st.title("Assessment Results")
    with reset_col:
        if st.button("Start Over", key="start_over", help=help_with_guidance("start_over")):
            _set_wizard_state(reset())
            st.session_state["report_artifact"] = None
            st.rerun()
    _show_flash()

    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Annual Rainfall", f"{results.average_rainfall:,} mm")
    m2.metric("Tank Capacity", f"{results.recommended_tank_size:,} L")
    m3.metric("Monthly Storage", f"{results.monthly_storage:,} L")
    m4.metric("Construction Cost", f"₹{results.construction_cost:,}")

    detail_col, side_col = st.columns([2, 1])
    with detail_col:
        st.subheader("Detailed Analysis")
        spec_df = pd.DataFrame(
            [
                ("Rooftop Area", f"{summary['rooftop_area']} sq meters"),
                ("Collection Efficiency", f"{summary['collection_efficiency_pct']}%"),
                ("Annual Collection", f"{summary['annual_collection_liters']:,.0f} liters"),
                ("Cost per Sq Meter", f"₹{summary['cost_per_sqm']:,}"),
            ],
            columns=["Technical Specifications", "Value"],
        )
        st.dataframe(spec_df, width="stretch", hide_index=True)
        location_df = pd.DataFrame(
            [
                ("City", results.location),
                ("Latitude", f"{record.latitude:.6f}"),
                ("Longitude", f"{record.longitude:.6f}"),
                ("Climate Zone", summary["climate_zone"]),
            ],
            columns=["Location Details", "Value"],
        )
        st.dataframe(location_df, width="stretch", hide_index=True)
        _render_location_map((record.latitude, record.longitude))

        st.subheader("Recommendations")
        for heading, text in summary["recommendations"]:
            st.markdown(f"**{heading}:** {text}")

    with side_col:
        st.subheader("Assessment Details")
        st.markdown(f"**Full Name**  \n{record.name}")
        st.markdown(f"**Contact Information**  \n{record.mobile}  \n{record.email}")
        st.markdown(f"**Assessment Date**  \n{date.today().strftime('%d/%m/%Y')}")
        if record.rooftop_image is not None:
            st.subheader("Analyzed Rooftop")
            st.image(record.rooftop_image.data, caption="Analyzed rooftop")

    _render_report_controls(record)


def _render_diagnostics() -> None:
    with st.expander("Diagnostics", expanded=False):
        log_path = Path(runtime_log_path())
        st.caption(f"Runtime log file: `{log_path}`")
        st.number_input(
            "Recent runtime log rows",
            min_value=10,
            max_value=1000,
            step=10,
            key="runtime_log_limit",
            help="Number of recent runtime events shown below.",
        )
        st.selectbox(
            "Minimum level",
            list(LEVELS),
            key="runtime_log_min_level",
            help="Hide runtime events below this severity.",
        )
        runtime_events = read_runtime_events(
            limit=int(st.session_state["runtime_log_limit"]),
            min_level=st.session_state["runtime_log_min_level"],
        )
        if runtime_events:
            runtime_df = pd.DataFrame(runtime_events)
            preferred_cols = ["timestamp_utc", "level", "event", "message", "exception_type", "context"]
            runtime_cols = [c for c in preferred_cols if c in runtime_df.columns]
            if "context" in runtime_df.columns:
                runtime_df["context"] = runtime_df["context"].astype(str)
            st.dataframe(runtime_df[runtime_cols], width="stretch", hide_index=True)
        else:
            st.caption("No runtime events logged yet.")


st.set_page_config(page_title="Rainwater Harvesting Assessment", layout="wide")

st.session_state.setdefault("wizard_state", reset())
for k, v in SESSION_DEFAULTS.items():
    st.session_state.setdefault(k, v)

with st.sidebar:
    st.header("Rainwater Harvesting Calculator")
    st.caption("Estimates are indicative placeholders, not survey results.")
    _render_diagnostics()

phase = _wizard_state().phase
if phase is Phase.LANDING:
    _render_landing()
elif phase is Phase.EXAMINATION:
    _render_examination()
else:
    _render_results()
