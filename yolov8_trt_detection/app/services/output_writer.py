"""Persist annotated detection images."""
from __future__ import annotations

import logging
from pathlib import Path

import cv2
import numpy as np

from ..errors import OutputWriteError
from ..utils.image import encode_png

LOGGER = logging.getLogger(__name__)


def ensure_output_dir(directory: Path) -> Path:
    """Create ``directory`` and any missing parents."""

    directory = Path(directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputWriteError(f"Unable to create output directory {directory}: {exc}") from exc
    return directory


def save_annotated_image(image: np.ndarray, target: Path) -> Path:
    """Encode ``image`` as PNG and write it to ``target``."""

    target = Path(target)
    try:
        payload = encode_png(image)
    except (ValueError, cv2.error) as exc:
        raise OutputWriteError(f"Unable to encode annotated image: {exc}") from exc
    try:
        with target.open("wb") as handle:
            handle.write(payload)
    except OSError as exc:
        raise OutputWriteError(f"Unable to write annotated image {target}: {exc}") from exc
    LOGGER.debug("Wrote %d bytes to %s", len(payload), target)
    return target
