"""对比源文件与已有派生图，计算需要补齐的缩放任务。"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Sequence

from image_derivatives.core.config import EngineConfig, SizeVariant
from image_derivatives.core.models import ResizeJob, WorkSet, iter_jobs
from image_derivatives.core.paths import resolve_destination


def derive_jobs(
    config: EngineConfig,
    sources: Iterable[Path],
    derivatives: Iterable[Path],
    variants: Optional[Sequence[SizeVariant]] = None,
) -> WorkSet:
    """为每个源文件列出缺失的派生图任务。

    每个源文件都会出现在结果中，任务列表为空表示已是最新。任务顺序为
    源文件顺序 × 尺寸规格顺序。任意路径解析失败都会中止整个计算。
    """

    if variants is None:
        variants = config.variants

    existing = set(derivatives)
    work_set: WorkSet = {}

    for source in sources:
        jobs = work_set.setdefault(source, [])
        for variant in variants:
            destination = resolve_destination(config, source, variant)
            if destination in existing:
                continue
            jobs.append(ResizeJob(source=source, destination=destination, variant=variant))

    return work_set


@dataclass(slots=True)
class WorkSummary:
    """任务集合的统计信息。"""

    sources: int
    up_to_date: int
    pending_jobs: int
    per_variant: dict[str, int] = field(default_factory=dict)

    def describe(self) -> str:
        text = f"源图 {self.sources} 张，已是最新 {self.up_to_date} 张，待生成 {self.pending_jobs} 个"
        if self.per_variant:
            detail = ", ".join(f"{name}={count}" for name, count in self.per_variant.items())
            text += f" ({detail})"
        return text


def summarize(work_set: WorkSet) -> WorkSummary:
    per_variant = Counter(job.variant.name for job in iter_jobs(work_set))
    return WorkSummary(
        sources=len(work_set),
        up_to_date=sum(1 for jobs in work_set.values() if not jobs),
        pending_jobs=sum(per_variant.values()),
        per_variant=dict(per_variant),
    )
