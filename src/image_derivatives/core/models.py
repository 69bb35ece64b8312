"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from image_derivatives.core.config import SizeVariant


@dataclass(frozen=True, slots=True)
class ResizeJob:
    """一个待执行的缩放任务：为某张源图生成某一尺寸的派生图。

    所有字段均为独立的值，可直接跨进程传递。
    """

    source: Path
    destination: Path
    variant: SizeVariant


WorkSet = Dict[Path, List[ResizeJob]]


def iter_jobs(work_set: WorkSet) -> Iterator[ResizeJob]:
    """按源文件顺序展开全部任务。"""

    for jobs in work_set.values():
        yield from jobs


def count_jobs(work_set: WorkSet) -> int:
    return sum(len(jobs) for jobs in work_set.values())


@dataclass(slots=True)
class JobOutcome:
    """记录单个任务的执行结果（用于报告/日志）。"""

    source: Path
    destination: Path
    variant_name: str
    status: str
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "resized"


@dataclass(slots=True)
class BatchResult:
    """一次增量执行的汇总结果。"""

    succeeded: list[JobOutcome]
    failed: list[JobOutcome]
    up_to_date: list[Path]

    def all_outcomes(self) -> list[JobOutcome]:
        """返回所有结果记录，方便生成报告。"""

        return [*self.succeeded, *self.failed]
