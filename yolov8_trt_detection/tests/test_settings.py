from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from yolov8_trt_detection.app.config.settings import AppSettings, load_settings


def test_defaults_point_at_fixed_locations() -> None:
    settings = AppSettings()
    assert settings.image_path == Path("/home/images/group.jpg")
    assert settings.model_path == Path("/home/model/yolov8s.engine")
    assert settings.output_path == Path("/home/output/yolov8_detected.png")
    assert settings.engine == "TensorRT"
    assert settings.confidence_threshold == pytest.approx(0.6)


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("YOLO_TRT_CONFIDENCE_THRESHOLD", "0.4")
    monkeypatch.setenv("YOLO_TRT_OUTPUT_DIR", "~/detections")
    settings = load_settings()
    assert settings.confidence_threshold == pytest.approx(0.4)
    assert settings.output_dir == Path("~/detections").expanduser()


def test_explicit_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("YOLO_TRT_WIDTH", "640")
    settings = load_settings(width=1280)
    assert settings.width == 1280


def test_output_filename_must_be_png() -> None:
    with pytest.raises(ValidationError):
        AppSettings(output_filename="detected.jpg")


def test_threshold_range_enforced() -> None:
    with pytest.raises(ValidationError):
        AppSettings(confidence_threshold=-0.1)
