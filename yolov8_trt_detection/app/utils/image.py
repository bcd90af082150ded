"""Image decode, draw and encode helpers built on OpenCV."""
from __future__ import annotations

import zlib
import logging
from pathlib import Path
from typing import Tuple

import cv2
import numpy as np

from ..errors import DecodeError
from ..models import DetectionResult

LOGGER = logging.getLogger(__name__)

Color = Tuple[int, int, int]


def load_image(path: Path) -> np.ndarray:
    """Decode the image at ``path`` into a BGR array."""

    path = Path(path)
    if not path.is_file():
        raise DecodeError(f"Input image not found: {path}")
    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise DecodeError(f"Unable to decode image: {path}")
    LOGGER.debug("Loaded image %s with shape %s", path, image.shape)
    return image


def decode_image_bytes(data: bytes) -> np.ndarray:
    """Decode an in-memory encoded image (PNG, JPEG, ...) into a BGR array."""

    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR) if buffer.size else None
    if image is None:
        raise DecodeError("Unable to decode image bytes")
    return image


def encode_png(image: np.ndarray) -> bytes:
    success, encoded = cv2.imencode(".png", image)
    if not success:
        raise ValueError("OpenCV failed to encode image as PNG")
    return encoded.tobytes()


def class_color(class_name: str) -> Color:
    """Stable BGR colour for a class label."""

    digest = zlib.crc32(class_name.encode("utf-8")).to_bytes(4, "big")
    # channels stay within [64, 255]
    return tuple(64 + value % 192 for value in digest[:3])  # type: ignore[return-value]


def draw_detections(
    image: np.ndarray,
    result: DetectionResult,
    *,
    font_scale: float = 0.6,
    thickness: int = 2,
) -> np.ndarray:
    """Draw every detection box with its label and score onto ``image`` in place."""

    height, width = image.shape[:2]
    for detection in result:
        color = class_color(detection.class_name)
        x1, y1, x2, y2 = (int(round(value)) for value in detection.bbox.xyxy)
        x1, x2 = max(0, min(x1, width - 1)), max(0, min(x2, width - 1))
        y1, y2 = max(0, min(y1, height - 1)), max(0, min(y2, height - 1))
        cv2.rectangle(image, (x1, y1), (x2, y2), color, thickness)

        label = f"{detection.class_name} {detection.confidence:.2f}"
        (text_w, text_h), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, 1)
        tab_top = y1 - text_h - baseline if y1 - text_h - baseline >= 0 else y1
        cv2.rectangle(image, (x1, tab_top), (x1 + text_w, tab_top + text_h + baseline), color, cv2.FILLED)
        cv2.putText(
            image,
            label,
            (x1, tab_top + text_h),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            (255, 255, 255),
            1,
            lineType=cv2.LINE_AA,
        )
    LOGGER.debug("Drew %d bounding boxes", result.number_of_objects)
    return image
