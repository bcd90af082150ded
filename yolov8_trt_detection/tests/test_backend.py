from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import numpy as np
import pytest
import torch

from yolov8_trt_detection.app.services import backend as backend_module
from yolov8_trt_detection.app.services.backend import UltralyticsBackend, get_backend
from yolov8_trt_detection.app.services.criteria import InferenceConfig


def fake_tensor(values) -> MagicMock:
    tensor = MagicMock()
    tensor.cpu.return_value.numpy.return_value = np.asarray(values, dtype=np.float32)
    return tensor


def build_native(boxes=None) -> MagicMock:
    native = MagicMock()
    native.names = {0: "person"}
    result = MagicMock()
    result.names = {0: "person"}
    result.boxes = boxes
    native.predict.return_value = [result]
    return native


@pytest.fixture()
def config() -> InferenceConfig:
    return InferenceConfig(model_path=Path("yolov8s.engine"), width=64, height=32, threshold=0.5, device="cpu")


def test_forward_feeds_tensor_and_converts_boxes(config: InferenceConfig) -> None:
    boxes = MagicMock()
    boxes.xyxy = fake_tensor([[1, 2, 3, 4]])
    boxes.conf = fake_tensor([0.8])
    boxes.cls = fake_tensor([0])
    native = build_native(boxes)
    batch = np.zeros((1, 3, 32, 64), dtype=np.float32)

    raw = UltralyticsBackend().forward(native, batch, config)

    source = native.predict.call_args.args[0]
    kwargs = native.predict.call_args.kwargs
    assert isinstance(source, torch.Tensor)
    assert tuple(source.shape) == (1, 3, 32, 64)
    assert kwargs["imgsz"] == (32, 64)
    assert kwargs["conf"] == pytest.approx(0.5)
    assert kwargs["device"] == "cpu"
    assert raw.boxes.tolist() == [[1, 2, 3, 4]]
    assert raw.scores.tolist() == pytest.approx([0.8])
    assert raw.names == {0: "person"}


def test_forward_passes_arrays_through(config: InferenceConfig) -> None:
    native = build_native(boxes=None)
    frame = np.zeros((32, 64, 3), dtype=np.uint8)

    raw = UltralyticsBackend().forward(native, frame, config)

    assert native.predict.call_args.args[0] is frame
    assert native.predict.call_args.kwargs["imgsz"] == (32, 64)
    assert len(raw) == 0


def test_load_uses_detect_task(monkeypatch: pytest.MonkeyPatch, config: InferenceConfig) -> None:
    yolo = MagicMock()
    monkeypatch.setattr(backend_module, "YOLO", yolo)

    native = UltralyticsBackend().load(config)

    yolo.assert_called_once_with("yolov8s.engine", task="detect")
    assert native is yolo.return_value


def test_sessions_drop_ultralytics_predictor() -> None:
    native = build_native()
    native.predictor = object()
    backend = UltralyticsBackend()
    backend.close_session(native)
    assert native.predictor is None


def test_get_backend() -> None:
    assert isinstance(get_backend("TensorRT"), UltralyticsBackend)
    assert get_backend("TensorRT") is get_backend("TensorRT")
    with pytest.raises(KeyError):
        get_backend("OpenVINO")
