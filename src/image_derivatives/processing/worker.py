"""并发处理的工作单元。"""

from __future__ import annotations

import logging
from typing import Optional

from PIL import Image

from image_derivatives.core.models import JobOutcome, ResizeJob
from image_derivatives.core.writer import ImageWriteError, save_jpeg_atomic
from image_derivatives.processing.image_loader import ImageLoadingError, load_image
from image_derivatives.processing.resizing import resize_to_variant

LOGGER = logging.getLogger(__name__)


def run_job(job: ResizeJob, jpeg_quality: int = 85) -> JobOutcome:
    """在工作进程中生成一张派生图。单个任务失败只返回错误结果，不抛出异常。"""

    image: Optional[Image.Image] = None
    resized: Optional[Image.Image] = None

    try:
        image = load_image(job.source)
    except ImageLoadingError as exc:
        return _failure(job, "error-load", exc)

    try:
        resized = resize_to_variant(image, job.variant)
        save_jpeg_atomic(resized, job.destination, quality=jpeg_quality)
    except ImageWriteError as exc:
        return _failure(job, "error-write", exc)
    finally:
        _close_if_needed(image, resized)

    return JobOutcome(
        source=job.source,
        destination=job.destination,
        variant_name=job.variant.name,
        status="resized",
    )


def _failure(job: ResizeJob, status: str, exc: Exception) -> JobOutcome:
    LOGGER.warning("任务失败 %s [%s]: %s", job.source, job.variant.name, exc)
    return JobOutcome(
        source=job.source,
        destination=job.destination,
        variant_name=job.variant.name,
        status=status,
        message=str(exc),
    )


def _close_if_needed(*images: Optional[Image.Image]) -> None:
    for img in images:
        if img is not None:
            img.close()
