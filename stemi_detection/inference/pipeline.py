"""Image preprocessing and forward inference for the STEMI classifier."""
import io
import logging
from typing import Optional, Tuple, Union

import numpy as np
import torch
import torch.nn as nn
import torchvision.transforms.functional as TF
from PIL import Image, ImageOps, UnidentifiedImageError
from torchvision.transforms import InterpolationMode

from stemi_detection.config.settings import (
    CLASS_NAMES,
    MODEL_INPUT_CHANNELS,
    MODEL_INPUT_SIZE,
    MODEL_SEED,
)
from stemi_detection.errors import InferenceError
from stemi_detection.models.cnn_model import CompiledModel, build_model
from stemi_detection.schemas import PredictionResult

logger = logging.getLogger(__name__)

INPUT_SHAPE = (1, *MODEL_INPUT_SIZE, MODEL_INPUT_CHANNELS)

ImageInput = Union[bytes, bytearray, Image.Image, np.ndarray]


def decode_image(image: ImageInput) -> Image.Image:
    """Decode supported inputs into an upright RGB PIL image.

    EXIF orientation is applied, so photos arrive the way a browser shows them.

    Raises:
        InferenceError: If the input cannot be decoded
    """
    if isinstance(image, (bytes, bytearray)):
        if not image:
            raise InferenceError("Empty image data")
        try:
            image = Image.open(io.BytesIO(image))
            image.load()
            image = ImageOps.exif_transpose(image)
        except (
            UnidentifiedImageError,
            OSError,
            SyntaxError,
            ValueError,
            Image.DecompressionBombError,
        ) as e:
            raise InferenceError(f"Could not decode image: {e}") from e
    elif isinstance(image, np.ndarray):
        try:
            image = Image.fromarray(image)
        except (TypeError, ValueError) as e:
            raise InferenceError(f"Unsupported image array of shape {image.shape}: {e}") from e
    elif isinstance(image, Image.Image):
        image = ImageOps.exif_transpose(image)
    else:
        raise InferenceError(f"Unsupported image type: {type(image)}")

    # Convert to RGB if needed (grayscale, palette, RGBA, ...)
    if image.mode != "RGB":
        image = image.convert("RGB")
    return image


def preprocess(image: ImageInput) -> torch.Tensor:
    """Preprocess an image for model inference.

    The image is resized to 224x224 with nearest-neighbor sampling
    (source index = floor(dst * in / out)), scaled to [0, 1] and given a
    leading batch dimension.

    Args:
        image: Encoded image bytes, PIL Image, or uint8 numpy array (H, W, 3)

    Returns:
        Float tensor of shape (1, 224, 224, 3)

    Raises:
        InferenceError: If the image cannot be decoded
    """
    image = decode_image(image)

    # (3, H, W) uint8
    img_tensor = TF.pil_to_tensor(image)
    img_tensor = TF.resize(
        img_tensor,
        list(MODEL_INPUT_SIZE),
        interpolation=InterpolationMode.NEAREST,
        antialias=False,
    )

    img_tensor = img_tensor.float().div(255.0)

    # CHW to HWC, then add batch dimension
    return img_tensor.permute(1, 2, 0).unsqueeze(0).contiguous()


def predict(model: Union[CompiledModel, nn.Module], image_tensor: torch.Tensor) -> Tuple[float, float]:
    """Run one forward pass and read out the two class probabilities.

    The output tensor, and the device copy of the input, are released
    before returning on both the success and the failure path.

    Args:
        model: Compiled model (or bare network)
        image_tensor: Preprocessed tensor (1, 224, 224, 3) or (224, 224, 3)

    Returns:
        Tuple of (no_stemi_probability, stemi_probability)

    Raises:
        InferenceError: On a shape mismatch or a backend failure
    """
    network = model.network if isinstance(model, CompiledModel) else model

    if not isinstance(image_tensor, torch.Tensor):
        raise InferenceError(f"Expected a torch.Tensor, got {type(image_tensor)}")

    # Add batch dimension if needed
    if image_tensor.dim() == 3:
        image_tensor = image_tensor.unsqueeze(0)

    if tuple(image_tensor.shape) != INPUT_SHAPE:
        raise InferenceError(
            f"Expected input of shape {INPUT_SHAPE}, got {tuple(image_tensor.shape)}"
        )

    device = next(network.parameters()).device
    network.eval()

    batch = None
    outputs = None
    try:
        batch = image_tensor.to(device=device, dtype=torch.float32)
        with torch.no_grad():
            outputs = network(batch)
            no_stemi_prob, stemi_prob = outputs[0].tolist()
    except RuntimeError as e:
        logger.error(f"Error during forward pass: {e}", exc_info=True)
        raise InferenceError(f"Forward pass failed: {e}") from e
    finally:
        del batch, outputs

    return no_stemi_prob, stemi_prob


class InferencePipeline:
    """Owns a model and turns uploaded images into prediction results."""

    def __init__(self, model: CompiledModel):
        self.model = model

    @classmethod
    def from_settings(cls, seed: Optional[int] = MODEL_SEED) -> "InferencePipeline":
        """Build a fresh model from settings and wrap it in a pipeline."""
        return cls(build_model(seed=seed))

    def analyze(self, image: ImageInput) -> PredictionResult:
        """Preprocess an image, run it through the model and return the result.

        Raises:
            InferenceError: If preprocessing or the forward pass fails
        """
        image_tensor = None
        try:
            image_tensor = preprocess(image)
            no_stemi_prob, stemi_prob = predict(self.model, image_tensor)
        finally:
            del image_tensor

        logger.info(
            f"Analysis complete: {CLASS_NAMES[0]}={no_stemi_prob:.4f}, "
            f"{CLASS_NAMES[1]}={stemi_prob:.4f}"
        )
        return PredictionResult(
            no_stemi_probability=no_stemi_prob,
            stemi_probability=stemi_prob,
        )
