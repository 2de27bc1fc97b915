"""Streamlit frontend for STEMI detection from uploaded ECG images."""
import logging

import streamlit as st

from stemi_detection.config.settings import (
    ALLOWED_IMAGE_TYPES,
    LOG_FORMAT,
    LOG_LEVEL,
    MAX_UPLOAD_MB,
)
from stemi_detection.errors import ConstructionError
from stemi_detection.frontend.session import decode_upload, get_pipeline, run_analysis
from stemi_detection.schemas import AnalysisReport

# Configure logging
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

# Page config
st.set_page_config(
    page_title="STEMI Detection AI",
    page_icon="🫀",
    layout="centered"
)


def render_report(report: AnalysisReport):
    """Render the analysis report."""
    if report.stemi_detected:
        st.error("## ⚠️ STEMI DETECTED")
    else:
        st.success("## ✅ NO STEMI DETECTED")

    st.write("**Confidence Level**")
    st.progress(min(int(report.confidence), 100), text=f"{report.confidence:.1f}%")

    col1, col2 = st.columns(2)
    col1.metric("STEMI Probability", f"{report.stemi_probability:.1f}%")
    col2.metric("Normal Probability", f"{report.no_stemi_probability:.1f}%")

    st.subheader("ECG Features (simulated)")
    st.caption("Randomly generated for demonstration. Not derived from the image or the model.")
    features = report.features
    st.markdown(f"""
    - **ST Elevation:** {"Detected" if features.st_elevation else "Not Detected"}
    - **Q Wave Changes:** {"Present" if features.q_wave_changes else "Absent"}
    - **T Wave Inversion:** {"Present" if features.t_wave_inversion else "Absent"}
    - **Heart Rate:** {features.heart_rate} bpm
    """)

    st.subheader("Clinical Recommendation")
    if report.stemi_detected:
        st.error(report.recommendation)
    else:
        st.success(report.recommendation)

    st.warning(
        "**⚠️ Disclaimer:** This AI tool is for educational and screening purposes only. "
        "Always consult with qualified healthcare professionals for accurate diagnosis "
        "and treatment decisions."
    )


def main():
    """Main Streamlit application."""
    st.title("🫀 STEMI Detection AI")
    st.markdown(
        "Advanced ML-powered ECG analysis for ST-Elevation Myocardial Infarction detection"
    )
    st.markdown("---")

    try:
        pipeline = get_pipeline()
    except ConstructionError as e:
        logger.error(f"Failed to build model: {e}", exc_info=True)
        st.error(f"❌ Failed to load AI model: {e}")
        st.stop()

    # Initialize session state
    if "report" not in st.session_state:
        st.session_state.report = None
    if "upload_id" not in st.session_state:
        st.session_state.upload_id = None

    uploaded_file = st.file_uploader("📁 Upload ECG Image", type=ALLOWED_IMAGE_TYPES)

    image_bytes = None
    if uploaded_file is None:
        st.session_state.upload_id = None
        st.session_state.report = None
    else:
        # A new upload clears the previous result
        upload_id = uploaded_file.file_id if hasattr(uploaded_file, "file_id") else uploaded_file.name
        if st.session_state.upload_id != upload_id:
            st.session_state.upload_id = upload_id
            st.session_state.report = None

        image_bytes = uploaded_file.getvalue()
        preview = decode_upload(image_bytes)
        if preview is None:
            image_bytes = None
        else:
            st.image(preview, caption="ECG Preview")

    if st.button(
        "🔍 Analyze for STEMI",
        type="primary",
        disabled=image_bytes is None,
        width="stretch",
    ):
        if len(image_bytes) > MAX_UPLOAD_MB * 1024 * 1024:
            st.session_state.report = None
            st.error(f"Image is larger than {MAX_UPLOAD_MB} MB. Please upload a smaller file.")
        else:
            run_analysis(pipeline, preview)

    if st.session_state.report is not None:
        st.markdown("---")
        render_report(st.session_state.report)

    st.markdown("---")
    st.subheader("About STEMI Detection")
    st.markdown("""
    ST-Elevation Myocardial Infarction (STEMI) is a severe type of heart attack that requires
    immediate treatment. This AI system analyzes ECG images to detect characteristic patterns including:

    - ST segment elevation in specific leads
    - Q wave abnormalities
    - T wave inversions
    - Heart rate variations

    **Model:** Convolutional Neural Network (CNN) with 3 convolutional layers, dropout
    regularization, and binary classification output. The model is untrained and initialized
    fresh for each session, so its output is not a diagnostic signal.
    """)


if __name__ == "__main__":
    main()
