"""PyTorch CNN model for STEMI classification of ECG images."""
import logging
from typing import Optional

import torch
import torch.nn as nn
import torch.nn.functional as F
import torch.optim as optim

from stemi_detection.config.settings import (
    DEVICE,
    LEARNING_RATE,
    MODEL_INPUT_CHANNELS,
    MODEL_INPUT_SIZE,
    NUM_CLASSES,
)
from stemi_detection.errors import ConstructionError

logger = logging.getLogger(__name__)

# Clip applied to probabilities before taking the log
EPSILON = 1e-7


class STEMINet(nn.Module):
    """Convolutional Neural Network for STEMI detection.

    Architecture:
    - Input: 224x224x3 RGB image, channels-last (N, H, W, C)
    - Output: softmax over 2 classes (no_stemi, stemi)
    """

    def __init__(self, num_classes: int = NUM_CLASSES):
        super(STEMINet, self).__init__()

        # Convolutional layers (no padding)
        self.conv1 = nn.Conv2d(MODEL_INPUT_CHANNELS, 32, kernel_size=3)
        self.conv2 = nn.Conv2d(32, 64, kernel_size=3)
        self.conv3 = nn.Conv2d(64, 128, kernel_size=3)

        # Pooling
        self.pool = nn.MaxPool2d(2, 2)

        # 224 -> 222 -> 111 -> 109 -> 54 -> 52 -> 26
        self.flat_features = 128 * 26 * 26

        # Fully connected layers
        self.dropout1 = nn.Dropout(0.5)
        self.fc1 = nn.Linear(self.flat_features, 128)
        self.dropout2 = nn.Dropout(0.3)
        self.fc2 = nn.Linear(128, num_classes)

    def forward(self, x):
        # Channels-last input to the NCHW layout conv layers expect
        x = x.permute(0, 3, 1, 2)

        x = self.pool(F.relu(self.conv1(x)))
        x = self.pool(F.relu(self.conv2(x)))
        x = self.pool(F.relu(self.conv3(x)))

        x = torch.flatten(x, 1)

        x = self.dropout1(x)
        x = F.relu(self.fc1(x))
        x = self.dropout2(x)
        x = self.fc2(x)

        return F.softmax(x, dim=1)


def categorical_crossentropy(probabilities: torch.Tensor, targets: torch.Tensor) -> torch.Tensor:
    """Categorical cross-entropy between softmax outputs and one-hot targets."""
    probabilities = probabilities.clamp(EPSILON, 1.0 - EPSILON)
    return -(targets * torch.log(probabilities)).sum(dim=1).mean()


def accuracy(probabilities: torch.Tensor, targets: torch.Tensor) -> torch.Tensor:
    """Fraction of samples whose arg-max class matches the one-hot target."""
    return (probabilities.argmax(dim=1) == targets.argmax(dim=1)).float().mean()


METRICS = {"accuracy": accuracy}


class CompiledModel:
    """A network together with its optimizer, loss and tracked metrics.

    The network is never trained here; the optimizer, loss and metrics only
    record the compile configuration.
    """

    def __init__(self, network: STEMINet, optimizer: optim.Optimizer, loss_fn, metrics, device: str):
        self.network = network
        self.optimizer = optimizer
        self.loss_fn = loss_fn
        self.metrics = list(metrics)
        self.device = device

    @property
    def input_shape(self):
        return (*MODEL_INPUT_SIZE, MODEL_INPUT_CHANNELS)

    def __call__(self, x: torch.Tensor) -> torch.Tensor:
        return self.network(x)

    def count_params(self) -> int:
        return sum(p.numel() for p in self.network.parameters())


def get_device() -> str:
    """Determine the best available device for inference.

    Priority: DEVICE setting > CUDA (NVIDIA) > MPS (Apple Silicon) > CPU
    """
    if DEVICE:
        return DEVICE
    if torch.cuda.is_available():
        return "cuda"
    elif hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
        return "mps"
    else:
        return "cpu"


def create_network(num_classes: int = NUM_CLASSES, seed: Optional[int] = None) -> STEMINet:
    """Create a freshly initialized network.

    Args:
        num_classes: Number of output classes
        seed: Optional seed for deterministic initialization. The global
            torch RNG state is left untouched.

    Returns:
        Randomly initialized network
    """
    if seed is None:
        return STEMINet(num_classes=num_classes)

    with torch.random.fork_rng(devices=[]):
        torch.manual_seed(seed)
        return STEMINet(num_classes=num_classes)


def build_model(
    seed: Optional[int] = None,
    device: Optional[str] = None,
    learning_rate: float = LEARNING_RATE,
) -> CompiledModel:
    """Build and compile the STEMI classifier.

    No weights are loaded: parameters keep their default random
    initialization.

    Args:
        seed: Optional seed for reproducible initialization
        device: Device to place the model on, auto-detected if None
        learning_rate: Adam learning rate

    Returns:
        Compiled model in evaluation mode

    Raises:
        ConstructionError: If the backend fails to allocate the model
    """
    if device is None:
        device = get_device()

    try:
        network = create_network(seed=seed)
        network.to(device)
        network.eval()
        optimizer = optim.Adam(network.parameters(), lr=learning_rate)
    except (RuntimeError, ValueError, MemoryError) as e:
        logger.error(f"Error building model on device {device}: {e}", exc_info=True)
        raise ConstructionError(f"Failed to build model on device {device}: {e}") from e

    model = CompiledModel(
        network=network,
        optimizer=optimizer,
        loss_fn=categorical_crossentropy,
        metrics=METRICS.keys(),
        device=device,
    )
    logger.info(
        f"Model built on device {device} with {model.count_params()} parameters "
        f"(seed={seed}, learning_rate={learning_rate})"
    )
    return model
