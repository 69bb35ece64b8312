"""源文件到派生文件的路径映射。

映射规则是磁盘格式的一部分：

    <derivative_root>/<相对目录>/<原文件名主干>-<尺寸名称>.<原扩展名>

后续的增量运行依赖同样的规则来识别已存在的派生图，因此修改规则等同于让全部派生图失效。
该模块只做纯路径运算，不访问文件系统。
"""

from __future__ import annotations

import logging
from pathlib import Path

from image_derivatives.core.config import EngineConfig, SizeVariant
from image_derivatives.core.exceptions import (
    MissingExtensionError,
    MissingFileNameError,
    MissingParentError,
    PrefixMismatchError,
)

LOGGER = logging.getLogger(__name__)


def resolve_destination(config: EngineConfig, source_path: Path, variant: SizeVariant) -> Path:
    """计算 ``source_path`` 在 ``variant`` 尺寸下的派生文件路径。"""

    path = _rebase_derivative(config, source_path)

    stem = path.stem
    if not stem:
        raise MissingFileNameError(source_path)

    parent = path.parent
    if parent == path:
        raise MissingParentError(source_path)

    try:
        relative_dir = parent.relative_to(config.source_root)
    except ValueError as exc:
        raise PrefixMismatchError(source_path) from exc

    suffix = path.suffix
    if not suffix:
        raise MissingExtensionError(source_path)

    return config.derivative_root / relative_dir / f"{stem}-{variant.name}{suffix}"


def _rebase_derivative(config: EngineConfig, path: Path) -> Path:
    """兼容处理：误传入派生目录下的文件时，先去掉派生目录前缀再映射回源目录。

    路径同时位于两个根目录之下时，以更深的那个根目录为准。
    """

    if not path.is_relative_to(config.derivative_root):
        return path
    if path.is_relative_to(config.source_root) and not config.derivative_root_is_nested:
        # 源目录嵌套在派生目录内，路径本身就是源文件
        return path

    relative = path.relative_to(config.derivative_root)
    LOGGER.warning("路径位于派生目录中，按源目录重新映射: %s", path)
    return config.source_root / relative
