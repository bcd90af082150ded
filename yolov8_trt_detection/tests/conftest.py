from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np
import pytest

from yolov8_trt_detection.app.config.settings import AppSettings
from yolov8_trt_detection.app.services.translator import RawOutput

COCO_NAMES = {0: "person", 16: "dog"}


def empty_output() -> RawOutput:
    return RawOutput(np.empty((0, 4)), np.empty(0), np.empty(0), COCO_NAMES)


def person_and_dog() -> RawOutput:
    # person at (10, 10, 50x100) and a low-confidence dog at (60, 60, 40x40)
    return RawOutput(
        boxes=np.array([[10, 10, 60, 110], [60, 60, 100, 100]], dtype=np.float32),
        scores=np.array([0.91, 0.3], dtype=np.float32),
        class_ids=np.array([0, 16]),
        names=COCO_NAMES,
    )


class FakeBackend:
    """Backend double that counts acquire/release calls."""

    def __init__(self, raw: Optional[RawOutput] = None, fail_on: Optional[str] = None) -> None:
        self.raw = raw if raw is not None else empty_output()
        self.fail_on = fail_on
        self.calls: Counter = Counter()
        self.batches: List[np.ndarray] = []

    def _record(self, name: str) -> None:
        self.calls[name] += 1
        if self.fail_on == name:
            raise RuntimeError(f"{name} exploded")

    def load(self, config):
        self._record("load")
        return object()

    def open_session(self, native) -> None:
        self._record("open_session")

    def forward(self, native, batch, config) -> RawOutput:
        self.batches.append(batch)
        self._record("forward")
        return self.raw

    def close_session(self, native) -> None:
        self._record("close_session")

    def unload(self, native) -> None:
        self._record("unload")


@pytest.fixture()
def image_file(tmp_path: Path) -> Path:
    path = tmp_path / "images" / "group.png"
    path.parent.mkdir(parents=True)
    cv2.imwrite(str(path), np.zeros((256, 320, 3), dtype=np.uint8))
    return path


@pytest.fixture()
def model_file(tmp_path: Path) -> Path:
    path = tmp_path / "model" / "yolov8s.engine"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"engine")
    return path


@pytest.fixture()
def settings(tmp_path: Path, image_file: Path, model_file: Path) -> AppSettings:
    return AppSettings(
        image_path=image_file,
        model_path=model_file,
        output_dir=tmp_path / "output" / "nested",
        width=320,
        height=256,
        show_progress=False,
    )


@pytest.fixture()
def make_backend():
    return FakeBackend


@pytest.fixture()
def detections_output() -> RawOutput:
    return person_and_dog()
