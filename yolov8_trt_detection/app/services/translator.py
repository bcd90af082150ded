"""Translate between images, backend tensors and detection results."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple, Type

import cv2
import numpy as np

from ..models import BoundingBox, Detection, DetectionResult
from .criteria import InferenceConfig

LOGGER = logging.getLogger(__name__)

Size = Tuple[int, int]


@dataclass
class RawOutput:
    """Candidate boxes as returned by a backend, in the coordinates of the fed image."""

    boxes: np.ndarray
    scores: np.ndarray
    class_ids: np.ndarray
    names: Mapping[int, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.boxes = np.asarray(self.boxes, dtype=np.float32).reshape(-1, 4)
        self.scores = np.asarray(self.scores, dtype=np.float32).reshape(-1)
        self.class_ids = np.asarray(self.class_ids).astype(np.int64).reshape(-1)
        if not (len(self.boxes) == len(self.scores) == len(self.class_ids)):
            raise ValueError(
                f"Mismatched raw output lengths: boxes={len(self.boxes)} "
                f"scores={len(self.scores)} class_ids={len(self.class_ids)}"
            )

    def __len__(self) -> int:
        return len(self.scores)


@dataclass(frozen=True)
class TranslatorContext:
    """Sizes (width, height) of the original image and of what was fed to the backend."""

    original_size: Size
    input_size: Size

    @property
    def ratio(self) -> Tuple[float, float]:
        return (
            self.original_size[0] / self.input_size[0],
            self.original_size[1] / self.input_size[1],
        )


class YoloV8Translator:
    """Pre/post-processing for YOLOv8 detection models."""

    def __init__(self, config: InferenceConfig) -> None:
        self.width = config.width
        self.height = config.height
        self.resize = config.resize
        self.to_tensor = config.to_tensor
        self.apply_ratio = config.apply_ratio
        self.threshold = config.threshold

    def process_input(self, image: np.ndarray) -> Tuple[np.ndarray, TranslatorContext]:
        """Return the batch to feed the backend along with the sizes needed to undo it."""

        if image.ndim != 3 or image.shape[2] != 3:
            raise ValueError(f"Expected an HxWx3 image, got shape {image.shape}")
        original_size = (image.shape[1], image.shape[0])
        prepared = image
        if self.resize and original_size != (self.width, self.height):
            prepared = cv2.resize(image, (self.width, self.height), interpolation=cv2.INTER_LINEAR)
        input_size = (prepared.shape[1], prepared.shape[0])

        if self.to_tensor:
            rgb = cv2.cvtColor(prepared, cv2.COLOR_BGR2RGB)
            batch = np.ascontiguousarray(rgb.transpose(2, 0, 1)[np.newaxis], dtype=np.float32) / 255.0
        else:
            batch = prepared
        LOGGER.debug("Prepared input %s from image of size %s", batch.shape, original_size)
        return batch, TranslatorContext(original_size=original_size, input_size=input_size)

    def process_output(self, raw: RawOutput, ctx: TranslatorContext) -> DetectionResult:
        """Filter by threshold, map boxes back to the target image and build the result."""

        keep = raw.scores >= self.threshold
        boxes = raw.boxes[keep]
        scores = raw.scores[keep]
        class_ids = raw.class_ids[keep]

        if self.apply_ratio:
            sx, sy = ctx.ratio
            boxes = boxes * np.array([sx, sy, sx, sy], dtype=np.float32)
            target_w, target_h = ctx.original_size
        else:
            target_w, target_h = ctx.input_size
        if len(boxes):
            boxes[:, [0, 2]] = np.clip(boxes[:, [0, 2]], 0, target_w)
            boxes[:, [1, 3]] = np.clip(boxes[:, [1, 3]], 0, target_h)

        detections: List[Detection] = []
        for index in np.argsort(-scores, kind="stable"):
            class_id = int(class_ids[index])
            detections.append(
                Detection(
                    bbox=BoundingBox.from_xyxy(boxes[index].tolist()),
                    confidence=float(scores[index]),
                    class_id=class_id,
                    class_name=str(raw.names.get(class_id, class_id)),
                )
            )
        LOGGER.debug("Kept %d of %d candidates at threshold %.2f", len(detections), len(raw), self.threshold)
        return DetectionResult(tuple(detections))


TRANSLATORS: Dict[str, Type[YoloV8Translator]] = {"yolov8": YoloV8Translator}


def build_translator(config: InferenceConfig) -> YoloV8Translator:
    try:
        factory = TRANSLATORS[config.translator]
    except KeyError:
        raise KeyError(f"Unknown translator {config.translator!r}") from None
    return factory(config)
