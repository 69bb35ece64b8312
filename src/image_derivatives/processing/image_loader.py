"""图片加载与基础预处理实现。"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from image_derivatives.core.exceptions import ImageDerivativesError

LOGGER = logging.getLogger(__name__)


class ImageLoadingError(ImageDerivativesError):
    """图片加载失败。"""


def load_image(path: Path) -> Image.Image:
    """加载单张图片并执行 EXIF 旋转与模式归一化。

    返回值为新的 Image 对象，调用者负责关闭。
    """

    try:
        with Image.open(path) as img:
            img.load()

            # EXIF Orientation 校正
            img = ImageOps.exif_transpose(img)

            if img.mode != "RGB":
                img = img.convert("RGB")

            return img.copy()
    except (UnidentifiedImageError, OSError) as exc:
        LOGGER.debug("无法识别图像文件 %s: %s", path, exc)
        raise ImageLoadingError(f"无法加载图像: {path}") from exc
