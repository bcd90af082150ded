"""Shared data models for YOLOv8 detection results."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Sequence, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in pixel coordinates (top-left corner plus size)."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_xyxy(cls, bbox: Sequence[float]) -> "BoundingBox":
        x1, y1, x2, y2 = (float(value) for value in bbox)
        return cls(x=x1, y=y1, width=max(0.0, x2 - x1), height=max(0.0, y2 - y1))

    @property
    def xyxy(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def scaled(self, sx: float, sy: float) -> "BoundingBox":
        return BoundingBox(x=self.x * sx, y=self.y * sy, width=self.width * sx, height=self.height * sy)

    def to_dict(self) -> Dict[str, float]:
        return {
            "x": round(self.x, 2),
            "y": round(self.y, 2),
            "width": round(self.width, 2),
            "height": round(self.height, 2),
        }


@dataclass(frozen=True)
class Detection:
    """Represents a single detected object."""

    bbox: BoundingBox
    confidence: float
    class_id: int
    class_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "class_name": self.class_name,
            "class_id": self.class_id,
            "confidence": round(self.confidence, 4),
            "bbox": self.bbox.to_dict(),
        }


@dataclass(frozen=True)
class DetectionResult:
    """Ordered, immutable collection of detections produced by one prediction."""

    detections: Tuple[Detection, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "detections", tuple(self.detections))

    def __len__(self) -> int:
        return len(self.detections)

    def __iter__(self) -> Iterator[Detection]:
        return iter(self.detections)

    def __getitem__(self, index: int) -> Detection:
        return self.detections[index]

    @property
    def number_of_objects(self) -> int:
        return len(self.detections)

    @property
    def class_names(self) -> List[str]:
        return [detection.class_name for detection in self.detections]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number_of_objects": self.number_of_objects,
            "detections": [detection.to_dict() for detection in self.detections],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def __str__(self) -> str:
        return self.to_json()
