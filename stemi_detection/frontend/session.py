"""Session-scoped actions behind the Streamlit page.

Each action keeps `st.session_state.report` consistent: it holds the last
successful report, or None after any failure.
"""
import logging
from typing import Optional

import streamlit as st
from PIL import Image

from stemi_detection.errors import InferenceError
from stemi_detection.inference.pipeline import InferencePipeline, decode_image
from stemi_detection.report.report import build_report

logger = logging.getLogger(__name__)


def get_pipeline() -> InferencePipeline:
    """Build the model once per browser session and keep it in session state.

    Raises:
        ConstructionError: If the model cannot be built
    """
    if "pipeline" not in st.session_state:
        with st.spinner("Loading AI Model..."):
            st.session_state.pipeline = InferencePipeline.from_settings()
        logger.info("Inference pipeline created for new session")
    return st.session_state.pipeline


def decode_upload(image_bytes: bytes) -> Optional[Image.Image]:
    """Decode an uploaded file for preview and analysis.

    Returns None and notifies the user when the file is not a readable image.
    """
    try:
        return decode_image(image_bytes)
    except InferenceError as e:
        logger.error(f"Could not decode upload: {e}", exc_info=True)
        st.session_state.report = None
        st.error("Could not read the uploaded file as an image. Please upload a valid ECG image.")
        return None


def run_analysis(pipeline: InferencePipeline, image) -> None:
    """Analyze an image and store the report; reset and notify on failure."""
    with st.spinner("🔄 Analyzing..."):
        try:
            result = pipeline.analyze(image)
            st.session_state.report = build_report(result)
        except InferenceError as e:
            logger.error(f"Error analyzing ECG: {e}", exc_info=True)
            st.session_state.report = None
            st.error("Error analyzing ECG image. Please try again.")
