"""目录检查与创建。"""

from __future__ import annotations

import logging
from pathlib import Path

from image_derivatives.core.config import EngineConfig
from image_derivatives.core.exceptions import InvalidConfigurationError

LOGGER = logging.getLogger(__name__)


def check_directory(path: Path) -> bool:
    """返回目录是否已存在；若该路径是普通文件则视为配置错误。"""

    if path.is_dir():
        return True
    if path.exists() and not path.is_dir():
        raise InvalidConfigurationError(f"路径已存在但不是目录: {path}")
    return False


def ensure_directory(path: Path) -> None:
    """确保目录存在，可重复调用。不会覆盖同名的已有文件。"""

    if check_directory(path):
        return

    LOGGER.info("目录 %s 不存在，正在创建", path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except (FileExistsError, NotADirectoryError) as exc:
        # 某一级父路径是普通文件
        raise InvalidConfigurationError(f"无法创建目录（存在同名文件）: {path}") from exc


def verify_roots(config: EngineConfig, create: bool = True) -> None:
    """在扫描之前检查源目录与派生目录。"""

    if config.source_root == config.derivative_root:
        raise InvalidConfigurationError(f"源目录与派生目录不能相同: {config.source_root}")

    for root in (config.source_root, config.derivative_root):
        if create:
            ensure_directory(root)
        else:
            check_directory(root)
