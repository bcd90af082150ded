"""Configuration utilities for YOLOv8 TensorRT detection."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application configuration sourced from environment variables or defaults."""

    model_config = SettingsConfigDict(env_prefix="YOLO_TRT_", case_sensitive=False, protected_namespaces=())

    image_path: Path = Field(default=Path("/home/images/group.jpg"), description="Image to run detection on")
    model_path: Path = Field(default=Path("/home/model/yolov8s.engine"), description="Exported YOLOv8 engine")
    output_dir: Path = Field(default=Path("/home/output"), description="Directory for the annotated image.")
    output_filename: str = Field(default="yolov8_detected.png")
    engine: str = Field(default="TensorRT", description="Execution backend identifier")
    width: int = Field(default=1024, gt=0)
    height: int = Field(default=1024, gt=0)
    resize: bool = Field(default=True, description="Resize the image to width x height before inference.")
    to_tensor: bool = Field(default=True, description="Feed a normalized CHW tensor instead of a raw BGR array.")
    apply_ratio: bool = Field(default=True, description="Map boxes back to the original image size.")
    confidence_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    iou_threshold: float = Field(default=0.45, ge=0.0, le=1.0)
    device: Optional[str] = Field(default=None, description="Backend device, e.g. '0' or 'cpu'.")
    log_format: str = Field(default="text")
    overlay_font_scale: float = Field(default=0.6, gt=0.0)
    overlay_thickness: int = Field(default=2, ge=1)
    show_progress: bool = Field(default=True, description="Render a progress bar while the model loads.")

    @field_validator("image_path", "model_path", "output_dir", mode="before")
    @classmethod
    def _expand_path(cls, value: str | Path) -> Path:
        return Path(value).expanduser()

    @field_validator("output_filename")
    @classmethod
    def _require_png(cls, value: str) -> str:
        if not value.lower().endswith(".png"):
            raise ValueError("output_filename must use the .png extension")
        return value

    @property
    def output_path(self) -> Path:
        return self.output_dir / self.output_filename


def load_settings(**overrides: object) -> AppSettings:
    """Return application settings, applying optional overrides."""

    return AppSettings(**overrides)
