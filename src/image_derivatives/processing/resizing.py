"""按尺寸规格缩放图片。"""

from __future__ import annotations

from PIL import Image

from image_derivatives.core.config import SizeVariant

_RESAMPLING = getattr(Image, "Resampling", Image)


def fit_within(size: tuple[int, int], bounds: tuple[int, int]) -> tuple[int, int]:
    """计算等比缩放进 ``bounds`` 后的尺寸，不放大。"""

    width, height = size
    max_w, max_h = bounds
    if width <= max_w and height <= max_h:
        return width, height

    scale = min(max_w / width, max_h / height)
    return max(1, round(width * scale)), max(1, round(height * scale))


def resize_to_variant(image: Image.Image, variant: SizeVariant) -> Image.Image:
    """返回缩放到 ``variant`` 边界框内的新图片，原图不变。"""

    target = fit_within(image.size, variant.size)
    if target == image.size:
        return image.copy()
    return image.resize(target, _RESAMPLING.LANCZOS)
