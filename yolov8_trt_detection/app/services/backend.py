"""Inference backends able to execute exported YOLOv8 models."""
from __future__ import annotations

import logging
from typing import Any, Dict, Protocol, Tuple

import numpy as np

try:  # pragma: no cover - import guarded for environments without ultralytics
    import torch
    from ultralytics import YOLO
except ImportError as exc:  # pragma: no cover
    raise ImportError(
        "ultralytics (with torch) is required to run YOLOv8 engines. Install dependencies via "
        "`pip install -e .` before running detect.py."
    ) from exc

from .criteria import InferenceConfig
from .translator import RawOutput

LOGGER = logging.getLogger(__name__)

ENGINE_SUFFIXES: Dict[str, Tuple[str, ...]] = {
    "TensorRT": (".engine",),
    "OnnxRuntime": (".onnx",),
    "PyTorch": (".pt",),
}


class InferenceBackend(Protocol):
    """Operations a backend must provide to load and run a detection model."""

    def load(self, config: InferenceConfig) -> Any:
        ...

    def open_session(self, native: Any) -> None:
        ...

    def forward(self, native: Any, batch: np.ndarray, config: InferenceConfig) -> RawOutput:
        ...

    def close_session(self, native: Any) -> None:
        ...

    def unload(self, native: Any) -> None:
        ...


class UltralyticsBackend:
    """Runs TensorRT/ONNX/PyTorch exports of YOLOv8 through ultralytics."""

    def load(self, config: InferenceConfig) -> YOLO:
        LOGGER.info("Loading %s model from %s", config.engine, config.model_path)
        return YOLO(str(config.model_path), task="detect")

    def open_session(self, native: YOLO) -> None:
        # ultralytics builds its predictor lazily on the first call
        native.predictor = None

    def forward(self, native: YOLO, batch: np.ndarray, config: InferenceConfig) -> RawOutput:
        if batch.ndim == 4:
            source: Any = torch.from_numpy(batch)
            imgsz = tuple(batch.shape[2:])
        else:
            source = batch
            imgsz = (config.height, config.width)
        results = native.predict(
            source,
            imgsz=imgsz,
            conf=config.threshold,
            iou=config.iou,
            device=config.device,
            verbose=False,
        )
        names = dict(getattr(native, "names", {}) or {})
        if not results or results[0].boxes is None:
            return RawOutput(np.empty((0, 4)), np.empty(0), np.empty(0), names)
        boxes = results[0].boxes
        return RawOutput(
            boxes=boxes.xyxy.cpu().numpy(),
            scores=boxes.conf.cpu().numpy(),
            class_ids=boxes.cls.cpu().numpy(),
            names=results[0].names or names,
        )

    def close_session(self, native: YOLO) -> None:
        native.predictor = None

    def unload(self, native: YOLO) -> None:
        native.predictor = None
        if torch.cuda.is_available():
            torch.cuda.empty_cache()


_BACKENDS: Dict[str, InferenceBackend] = {}


def get_backend(engine: str) -> InferenceBackend:
    """Return the backend registered for ``engine``; every known engine runs through ultralytics."""

    if engine not in ENGINE_SUFFIXES:
        raise KeyError(f"No backend registered for engine {engine!r}")
    if engine not in _BACKENDS:
        _BACKENDS[engine] = UltralyticsBackend()
    return _BACKENDS[engine]
