"""Validated option bag describing how a model should be loaded and run."""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config.settings import AppSettings
from ..errors import ConfigurationError

SUPPORTED_ENGINES = ("TensorRT", "OnnxRuntime", "PyTorch")
INPUT_TYPE = "image"
OUTPUT_TYPE = "detected_objects"

ProgressHook = Callable[[str], None]


class InferenceConfig(BaseModel):
    """Everything needed to build a model handle, validated on construction."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, protected_namespaces=())

    input_type: str = INPUT_TYPE
    output_type: str = OUTPUT_TYPE
    model_path: Path
    engine: str = "TensorRT"
    width: int = Field(default=1024, gt=0)
    height: int = Field(default=1024, gt=0)
    resize: bool = True
    to_tensor: bool = True
    apply_ratio: bool = True
    threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    iou: float = Field(default=0.45, ge=0.0, le=1.0)
    device: Optional[str] = None
    translator: str = "yolov8"
    progress: Optional[ProgressHook] = None

    @field_validator("model_path", mode="before")
    @classmethod
    def _require_model_path(cls, value: object) -> Path:
        if value is None or not str(value).strip():
            raise ValueError("model_path is required")
        return Path(value).expanduser()

    @field_validator("engine")
    @classmethod
    def _require_known_engine(cls, value: str) -> str:
        if value not in SUPPORTED_ENGINES:
            raise ValueError(f"engine must be one of {', '.join(SUPPORTED_ENGINES)}, got {value!r}")
        return value

    def report(self, stage: str) -> None:
        if self.progress is not None:
            self.progress(stage)

    @classmethod
    def from_settings(cls, settings: AppSettings, progress: Optional[ProgressHook] = None) -> "InferenceConfig":
        try:
            return cls(
                model_path=settings.model_path,
                engine=settings.engine,
                width=settings.width,
                height=settings.height,
                resize=settings.resize,
                to_tensor=settings.to_tensor,
                apply_ratio=settings.apply_ratio,
                threshold=settings.confidence_threshold,
                iou=settings.iou_threshold,
                device=settings.device,
                progress=progress,
            )
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid inference configuration: {exc}") from exc
