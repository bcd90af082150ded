"""Scoped model and predictor resources."""
from __future__ import annotations

import logging
from typing import Any, List, Optional

import numpy as np

from ..errors import InferenceError, ModelLoadError
from ..models import DetectionResult
from .backend import ENGINE_SUFFIXES, InferenceBackend, get_backend
from .criteria import INPUT_TYPE, OUTPUT_TYPE, InferenceConfig
from .translator import TRANSLATORS, YoloV8Translator, build_translator

LOGGER = logging.getLogger(__name__)


class ModelHandle:
    """Loaded model bound to a backend; release with ``close()`` or a ``with`` block."""

    def __init__(self, config: InferenceConfig, backend: InferenceBackend, native: Any) -> None:
        self.config = config
        self.backend = backend
        self._native = native
        self._translator = build_translator(config)
        self._predictors: List[Predictor] = []
        self.closed = False

    def new_predictor(self) -> "Predictor":
        if self.closed:
            raise ModelLoadError("Cannot create a predictor from a closed model")
        self.backend.open_session(self._native)
        predictor = Predictor(self, self._translator)
        self._predictors.append(predictor)
        return predictor

    def _forward(self, batch: np.ndarray):
        if self.closed:
            raise InferenceError("Model has already been released")
        return self.backend.forward(self._native, batch, self.config)

    def _release_predictor(self, predictor: "Predictor") -> None:
        if predictor in self._predictors:
            self._predictors.remove(predictor)
        self.backend.close_session(self._native)

    def close(self) -> None:
        if self.closed:
            return
        for predictor in list(self._predictors):
            predictor.close()
        self.closed = True
        self.backend.unload(self._native)
        self._native = None
        LOGGER.debug("Released model %s", self.config.model_path)

    def __enter__(self) -> "ModelHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class Predictor:
    """Runs one inference per ``predict`` call against its owning model."""

    def __init__(self, model: ModelHandle, translator: YoloV8Translator) -> None:
        self.model = model
        self.translator = translator
        self.closed = False

    def predict(self, image: np.ndarray) -> DetectionResult:
        if self.closed:
            raise InferenceError("Predictor has already been released")
        try:
            batch, ctx = self.translator.process_input(image)
            raw = self.model._forward(batch)
            return self.translator.process_output(raw, ctx)
        except InferenceError:
            raise
        except Exception as exc:
            raise InferenceError(f"Prediction failed: {exc}") from exc

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.model._release_predictor(self)
        LOGGER.debug("Released predictor")

    def __enter__(self) -> "Predictor":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _validate(config: InferenceConfig) -> None:
    if (config.input_type, config.output_type) != (INPUT_TYPE, OUTPUT_TYPE):
        raise ModelLoadError(
            f"Unsupported types {config.input_type} -> {config.output_type}; "
            f"only {INPUT_TYPE} -> {OUTPUT_TYPE} is available"
        )
    if config.translator not in TRANSLATORS:
        raise ModelLoadError(f"Unknown translator {config.translator!r}")
    if not config.model_path.is_file():
        raise ModelLoadError(f"Model file not found: {config.model_path}")
    suffixes = ENGINE_SUFFIXES.get(config.engine, ())
    if config.model_path.suffix.lower() not in suffixes:
        raise ModelLoadError(
            f"{config.engine} expects a model file ending in {', '.join(suffixes)}, got {config.model_path.name}"
        )


def load_model(config: InferenceConfig, backend: Optional[InferenceBackend] = None) -> ModelHandle:
    """Validate ``config`` and load the model through its backend."""

    config.report("validate")
    _validate(config)
    config.report("load")
    try:
        backend = backend or get_backend(config.engine)
        native = backend.load(config)
    except Exception as exc:
        raise ModelLoadError(f"Failed to load {config.engine} model {config.model_path}: {exc}") from exc
    handle = ModelHandle(config, backend, native)
    try:
        config.report("ready")
    except Exception:
        handle.close()
        raise
    return handle
