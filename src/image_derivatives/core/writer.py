"""派生图写入。"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from PIL import Image

from image_derivatives.core.exceptions import ImageDerivativesError
from image_derivatives.core.filesystem import ensure_directory

LOGGER = logging.getLogger(__name__)


class ImageWriteError(ImageDerivativesError):
    """输出写入失败。"""


def save_jpeg_atomic(image: Image.Image, destination: Path, quality: int = 85) -> None:
    """将图片以 JPEG 写入 ``destination``。

    先写入同目录下的临时文件再原子替换，中途失败不会留下半截的派生图，
    也就不会被下一次增量扫描误认为已完成。
    """

    image_to_save = image if image.mode == "RGB" else image.convert("RGB")
    tmp_path: Optional[Path] = None
    try:
        ensure_directory(destination.parent)
        # 临时文件名保持很短，目标文件名接近长度上限时也能写入
        fd, tmp_name = tempfile.mkstemp(prefix=".", suffix=".tmp", dir=destination.parent)
        tmp_path = Path(tmp_name)
        with os.fdopen(fd, "wb") as handle:
            image_to_save.save(handle, format="JPEG", quality=quality, optimize=True)
        os.replace(tmp_path, destination)
    except OSError as exc:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise ImageWriteError(f"写入文件失败: {destination}") from exc

    LOGGER.debug("已写入 %s", destination)
