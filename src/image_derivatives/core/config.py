"""派生图任务的配置模型。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

from image_derivatives.core.exceptions import InvalidConfigurationError

_RESERVED_NAMES = {".", ".."}


@dataclass(frozen=True, slots=True)
class SizeVariant:
    """一种命名的缩放规格，名称会写入派生文件名。"""

    name: str
    width: int
    height: int

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height


DEFAULT_VARIANTS: Tuple[SizeVariant, ...] = (
    SizeVariant("thumb", 400, 400),
    SizeVariant("small", 1024, 1024),
    SizeVariant("medium", 1600, 1600),
    SizeVariant("large", 2560, 2560),
)


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """增量计算所需的全部输入：源目录、派生目录与尺寸规格。"""

    source_root: Path
    derivative_root: Path
    variants: Tuple[SizeVariant, ...] = field(default=DEFAULT_VARIANTS)

    @property
    def derivative_root_is_nested(self) -> bool:
        """派生目录是否位于源目录内部。"""

        return self.derivative_root.is_relative_to(self.source_root)


@dataclass(slots=True)
class ExecutionConfig:
    """执行缩放任务时的并发与输出配置。"""

    max_workers: int = 4
    jpeg_quality: int = 85
    report_path: Optional[Path] = None


def validate_variants(variants: Sequence[SizeVariant]) -> Tuple[SizeVariant, ...]:
    """校验尺寸规格，返回不可变的元组。

    名称会原样拼接进文件名，因此不允许包含路径分隔符，也不允许重名。
    """

    if not variants:
        raise InvalidConfigurationError("至少需要一个尺寸规格")

    seen: set[str] = set()
    for variant in variants:
        name = variant.name
        if not name or name.strip() != name:
            raise InvalidConfigurationError(f"尺寸名称不合法: {name!r}")
        if "/" in name or "\\" in name or name in _RESERVED_NAMES:
            raise InvalidConfigurationError(f"尺寸名称不能包含路径分隔符: {name!r}")
        if name in seen:
            raise InvalidConfigurationError(f"尺寸名称重复: {name}")
        if variant.width <= 0 or variant.height <= 0:
            raise InvalidConfigurationError(f"尺寸必须大于 0: {name}={variant.width}x{variant.height}")
        seen.add(name)

    return tuple(variants)


def build_engine_config(
    source_root: Path,
    derivative_root: Path,
    variants: Optional[Iterable[SizeVariant]] = None,
) -> EngineConfig:
    """构建并校验引擎配置。"""

    checked = validate_variants(list(variants) if variants is not None else DEFAULT_VARIANTS)
    if source_root == derivative_root:
        raise InvalidConfigurationError(f"源目录与派生目录不能相同: {source_root}")
    return EngineConfig(source_root=source_root, derivative_root=derivative_root, variants=checked)

