"""Build the analysis report shown to the user.

The ECG features in the report are simulated demo output generated from a
random source. They are not extracted from the image and are unrelated to
the model's prediction.
"""
import logging
import random
from typing import Optional

from stemi_detection.config.settings import STEMI_THRESHOLD
from stemi_detection.schemas import AnalysisReport, PredictionResult, SimulatedFeatures

logger = logging.getLogger(__name__)

URGENT_RECOMMENDATION = (
    "URGENT: Possible STEMI detected. Immediate medical attention required. "
    "Activate catheterization lab."
)
ROUTINE_RECOMMENDATION = "No STEMI detected. Continue monitoring and clinical assessment."


def simulate_features(rng: Optional[random.Random] = None) -> SimulatedFeatures:
    """Generate random ECG feature flags for display.

    Args:
        rng: Random source, a fresh unseeded one if None

    Returns:
        SimulatedFeatures with `simulated` set
    """
    if rng is None:
        rng = random.Random()

    return SimulatedFeatures(
        st_elevation=rng.random() > 0.5,
        q_wave_changes=rng.random() > 0.6,
        t_wave_inversion=rng.random() > 0.7,
        heart_rate=int(rng.random() * 60) + 60,
    )


def build_report(
    result: PredictionResult,
    rng: Optional[random.Random] = None,
    threshold: float = STEMI_THRESHOLD,
) -> AnalysisReport:
    """Combine a prediction with simulated features into a report."""
    stemi_prob = result.stemi_probability
    no_stemi_prob = result.no_stemi_probability
    stemi_detected = stemi_prob > threshold

    report = AnalysisReport(
        stemi_detected=stemi_detected,
        confidence=max(stemi_prob, no_stemi_prob) * 100,
        stemi_probability=stemi_prob * 100,
        no_stemi_probability=no_stemi_prob * 100,
        features=simulate_features(rng),
        recommendation=URGENT_RECOMMENDATION if stemi_detected else ROUTINE_RECOMMENDATION,
    )
    logger.debug(f"Report built: stemi_detected={stemi_detected}, confidence={report.confidence:.1f}%")
    return report
