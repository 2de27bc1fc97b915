"""Exceptions raised by the STEMI detection model and inference pipeline."""


class STEMIDetectionError(Exception):
    """Base class for all STEMI detection errors."""


class ConstructionError(STEMIDetectionError):
    """The model or its numeric backend failed to initialize.

    Fatal: the application should not continue without a model.
    """


class InferenceError(STEMIDetectionError):
    """Preprocessing or the forward pass failed for a single analysis.

    Recoverable: the caller resets its result and accepts a new attempt.
    """
