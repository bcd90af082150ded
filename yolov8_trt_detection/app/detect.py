"""Entry point for YOLOv8 TensorRT detection on a single image."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config.settings import AppSettings, load_settings
from .models import DetectionResult
from .services.backend import InferenceBackend
from .services.criteria import InferenceConfig, ProgressHook
from .services.model import load_model
from .services.output_writer import ensure_output_dir, save_annotated_image
from .utils.image import draw_detections, load_image
from .utils.progress import ProgressBar

LOGGER = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="YOLOv8 TensorRT detection on a single image")
    parser.add_argument("--image", type=str, default=None, help="Input image path")
    parser.add_argument("--model", type=str, default=None, help="Exported model path (.engine/.onnx/.pt)")
    parser.add_argument("--output-dir", type=str, default=None, help="Directory for the annotated image")
    parser.add_argument("--output-name", type=str, default=None, help="Annotated PNG file name")
    parser.add_argument("--engine", type=str, default=None, help="Execution backend (TensorRT, OnnxRuntime, PyTorch)")
    parser.add_argument("--width", type=int, default=None, help="Model input width")
    parser.add_argument("--height", type=int, default=None, help="Model input height")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold")
    parser.add_argument("--device", type=str, default=None, help="Backend device, e.g. 0 or cpu")
    parser.add_argument("--no-resize", action="store_true", help="Feed the image at its original size")
    parser.add_argument("--no-tensor", action="store_true", help="Feed a BGR array instead of a normalized tensor")
    parser.add_argument("--no-ratio", action="store_true", help="Report boxes in model input coordinates")
    parser.add_argument("--log-format", choices=["text", "json"], default=None, help="Logging format")
    parser.add_argument("--no-progress", action="store_true", help="Disable the model loading progress bar")
    return parser


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with the message escaped."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(settings: AppSettings) -> None:
    log_level = logging.INFO
    if settings.log_format == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    logging.basicConfig(level=log_level, handlers=[handler], force=True)


def resolve_settings(args: argparse.Namespace) -> AppSettings:
    overrides = {}
    if args.image:
        overrides["image_path"] = Path(args.image)
    if args.model:
        overrides["model_path"] = Path(args.model)
    if args.output_dir:
        overrides["output_dir"] = Path(args.output_dir)
    if args.output_name:
        overrides["output_filename"] = args.output_name
    if args.engine:
        overrides["engine"] = args.engine
    if args.width is not None:
        overrides["width"] = args.width
    if args.height is not None:
        overrides["height"] = args.height
    if args.conf is not None:
        overrides["confidence_threshold"] = args.conf
    if args.iou is not None:
        overrides["iou_threshold"] = args.iou
    if args.device:
        overrides["device"] = args.device
    if args.no_resize:
        overrides["resize"] = False
    if args.no_tensor:
        overrides["to_tensor"] = False
    if args.no_ratio:
        overrides["apply_ratio"] = False
    if args.log_format:
        overrides["log_format"] = args.log_format
    if args.no_progress:
        overrides["show_progress"] = False

    return load_settings(**overrides)


def predict(
    settings: AppSettings,
    *,
    backend: Optional[InferenceBackend] = None,
    progress: Optional[ProgressHook] = None,
    logger: logging.Logger = LOGGER,
) -> DetectionResult:
    """Detect objects in ``settings.image_path`` and save an annotated copy when any are found."""

    image = load_image(settings.image_path)
    config = InferenceConfig.from_settings(settings, progress=progress)

    with load_model(config, backend=backend) as model, model.new_predictor() as predictor:
        output_dir = ensure_output_dir(settings.output_dir)
        detection = predictor.predict(image)
        if detection.number_of_objects > 0:
            draw_detections(
                image,
                detection,
                font_scale=settings.overlay_font_scale,
                thickness=settings.overlay_thickness,
            )
            output = save_annotated_image(image, output_dir / settings.output_filename)
            logger.info("Detected objects saved to %s", output)
        return detection


def run_detection(args: argparse.Namespace) -> int:
    settings = resolve_settings(args)
    setup_logging(settings)

    LOGGER.info("Running %s detection on %s", settings.engine, settings.image_path)
    progress = ProgressBar() if settings.show_progress else None
    try:
        detection = predict(settings, progress=progress)
    finally:
        if progress is not None:
            progress.close()
    LOGGER.info("%s", detection)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    sys.exit(run_detection(args))


if __name__ == "__main__":  # pragma: no cover
    main()
