"""文件扫描与筛选逻辑。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator

from image_derivatives.core.exceptions import EnumerationError

LOGGER = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg"}


def is_image_file(path: Path) -> bool:
    """按扩展名（不区分大小写）判断是否为待处理图片。"""

    return path.suffix.lower() in IMAGE_EXTENSIONS


def iter_image_files(root: Path, exclude: Iterable[Path] = ()) -> Iterator[Path]:
    """深度优先遍历 ``root``，逐个产出图片文件路径。

    ``root`` 不存在或不是目录时不产出任何内容。``exclude`` 中的目录不会被进入。
    读取已存在目录失败时抛出 :class:`EnumerationError`。
    """

    if not root.is_dir():
        return

    excluded = set(exclude)
    stack = [root]
    while stack:
        directory = stack.pop()
        for entry in _list_directory(directory):
            if entry.is_dir():
                if entry in excluded:
                    LOGGER.debug("跳过排除目录: %s", entry)
                    continue
                stack.append(entry)
            elif is_image_file(entry):
                yield entry


def collect_image_files(root: Path, exclude: Iterable[Path] = ()) -> list[Path]:
    """扫描目录并按完整路径排序，保证结果与文件系统遍历顺序无关。"""

    collected = sorted(iter_image_files(root, exclude))
    LOGGER.debug("在 %s 下发现 %d 个图片文件", root, len(collected))
    return collected


def _list_directory(directory: Path) -> list[Path]:
    try:
        return list(directory.iterdir())
    except OSError as exc:
        raise EnumerationError(directory, exc.strerror or str(exc)) from exc
