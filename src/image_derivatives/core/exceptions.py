"""项目内使用的自定义异常定义。"""

from __future__ import annotations

from pathlib import Path


class ImageDerivativesError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(ImageDerivativesError):
    """配置不合法时抛出（例如目标根目录实际上是一个普通文件）。"""


class EnumerationError(ImageDerivativesError):
    """读取已存在的目录失败时抛出，整个扫描过程随之中止。"""

    def __init__(self, directory: Path, reason: str) -> None:
        super().__init__(f"无法读取目录 {directory}: {reason}")
        self.directory = directory


class PathResolutionError(ImageDerivativesError):
    """源文件路径无法映射为派生文件路径。"""

    description = "路径无法解析"

    def __init__(self, path: Path) -> None:
        super().__init__(f"{self.description}: {path}")
        self.path = path


class MissingFileNameError(PathResolutionError):
    description = "路径缺少文件名"


class MissingParentError(PathResolutionError):
    description = "路径缺少父目录"


class MissingExtensionError(PathResolutionError):
    description = "路径缺少扩展名"


class PrefixMismatchError(PathResolutionError):
    description = "路径不在源目录之下"
