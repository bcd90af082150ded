"""Error taxonomy for the detection workflow."""
from __future__ import annotations


class DetectionError(Exception):
    """Base class for every failure raised by the detection workflow."""


class DecodeError(DetectionError):
    """Input image is missing, unreadable or corrupt."""


class ModelLoadError(DetectionError):
    """Model file is missing or malformed, or the backend cannot load it."""


class ConfigurationError(ModelLoadError, ValueError):
    """Inference options are missing, out of range or name an unknown engine."""


class InferenceError(DetectionError):
    """Backend or translator failed while running a prediction."""


class OutputWriteError(DetectionError, OSError):
    """Annotated image could not be encoded or written."""
