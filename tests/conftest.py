"""Shared fixtures for the STEMI detection tests."""
import io

import numpy as np
import pytest
from PIL import Image

from stemi_detection.models.cnn_model import build_model


def encode_image(array: np.ndarray, fmt: str = "PNG") -> bytes:
    """Encode a uint8 array as image file bytes."""
    buffer = io.BytesIO()
    Image.fromarray(array).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture(scope="session")
def seeded_model():
    """A CPU model with a fixed initialization, shared across tests."""
    return build_model(seed=1234, device="cpu")


@pytest.fixture
def random_image_bytes():
    rng = np.random.default_rng(0)
    array = rng.integers(0, 256, size=(300, 400, 3), dtype=np.uint8)
    return encode_image(array)


@pytest.fixture
def make_image_bytes():
    """Factory fixture: encode a uint8 array as image file bytes."""
    return encode_image
