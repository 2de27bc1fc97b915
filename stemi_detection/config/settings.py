"""Centralized configuration settings for the STEMI detection app."""
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Load environment variables
load_dotenv(PROJECT_ROOT / ".env")


def _optional_int(value: Optional[str]) -> Optional[int]:
    """Parse an optional integer environment value ("" or unset -> None)."""
    if value is None or value.strip() == "":
        return None
    return int(value)


# Model configuration
MODEL_INPUT_SIZE = (224, 224)  # Height, Width
MODEL_INPUT_CHANNELS = 3
NUM_CLASSES = 2
CLASS_NAMES = ["no_stemi", "stemi"]  # Index 0: no STEMI, Index 1: STEMI
LEARNING_RATE = float(os.getenv("LEARNING_RATE", "0.001"))

# Fixed seed for parameter initialisation, unset means a fresh random model per session
MODEL_SEED = _optional_int(os.getenv("MODEL_SEED"))

# Inference device override ("cpu", "cuda", "mps"), unset means auto-detect
DEVICE = os.getenv("DEVICE") or None

# Prediction threshold on the STEMI probability
STEMI_THRESHOLD = float(os.getenv("STEMI_THRESHOLD", "0.5"))

# Upload configuration
MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "16"))
ALLOWED_IMAGE_TYPES = ["png", "jpg", "jpeg", "bmp", "gif", "webp"]

# Logging configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
