"""Pydantic schemas for prediction results and analysis reports."""
from pydantic import BaseModel, Field


class PredictionResult(BaseModel):
    """Two softmax probabilities produced by one forward pass."""
    no_stemi_probability: float = Field(ge=0.0, le=1.0)  # class 0
    stemi_probability: float = Field(ge=0.0, le=1.0)  # class 1


class SimulatedFeatures(BaseModel):
    """Randomly generated ECG features for demo display.

    These are NOT derived from the image or the model output.
    """
    st_elevation: bool
    q_wave_changes: bool
    t_wave_inversion: bool
    heart_rate: int = Field(ge=60, le=119)
    simulated: bool = True


class AnalysisReport(BaseModel):
    """Report rendered after an analysis. Probabilities are in percent."""
    stemi_detected: bool
    confidence: float
    stemi_probability: float
    no_stemi_probability: float
    features: SimulatedFeatures
    recommendation: str
