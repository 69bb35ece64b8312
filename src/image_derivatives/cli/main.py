"""命令行入口。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, NoReturn, Optional

import typer
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from image_derivatives.core.config import (
    EngineConfig,
    ExecutionConfig,
    SizeVariant,
    build_engine_config,
)
from image_derivatives.core.diff import summarize
from image_derivatives.core.exceptions import ImageDerivativesError
from image_derivatives.core.models import iter_jobs
from image_derivatives.core.progress import ProgressUpdate
from image_derivatives.processing.pipeline import execute_work_set, plan_work
from image_derivatives.utils.logging import setup_logging

app = typer.Typer(help="增量生成图片的多尺寸派生图。")
console = Console()

SOURCE_ENV = "IMAGE_DERIVATIVES_SOURCE"
DEST_ENV = "IMAGE_DERIVATIVES_DEST"


def _parse_variant(value: str) -> SizeVariant:
    """解析形如 ``thumb=400x300`` 的尺寸规格。"""

    name, sep, dims = value.partition("=")
    if not sep:
        raise typer.BadParameter("尺寸规格必须形如 thumb=400x400")
    parts = dims.lower().split("x")
    if len(parts) != 2:
        raise typer.BadParameter("尺寸必须形如 400x400")
    try:
        width = int(parts[0])
        height = int(parts[1])
    except ValueError as exc:
        raise typer.BadParameter("尺寸必须为整数") from exc
    return SizeVariant(name=name.strip(), width=width, height=height)


def _build_config(source: Path, dest: Path, variant: Optional[List[str]]) -> EngineConfig:
    variants = [_parse_variant(item) for item in variant] if variant else None
    return build_engine_config(
        source.expanduser().resolve(),
        dest.expanduser().resolve(),
        variants,
    )


def _build_progress_callback(progress: Progress) -> Callable[[ProgressUpdate], None]:
    task_id: Optional[int] = None

    def callback(update: ProgressUpdate) -> None:
        nonlocal task_id
        if update.total == 0:
            return
        if task_id is None:
            task_id = progress.add_task("生成派生图", total=update.total)
        progress.update(task_id, completed=update.completed)

    return callback


def _fail(exc: ImageDerivativesError) -> NoReturn:
    typer.echo(f"错误：{exc}", err=True)
    raise typer.Exit(code=1)


SourceArg = typer.Option(..., "--source", "-s", envvar=SOURCE_ENV, help="原图根目录")
DestArg = typer.Option(..., "--dest", "-d", envvar=DEST_ENV, help="派生图根目录")
VariantOpt = typer.Option(None, "--variant", "-v", help="尺寸规格 name=WxH，可指定多个，默认使用内置规格")
VerboseOpt = typer.Option(False, "--verbose", help="输出调试日志")


@app.command("plan")
def plan_cli(
    source: Path = SourceArg,
    dest: Path = DestArg,
    variant: Optional[List[str]] = VariantOpt,
    limit: int = typer.Option(50, "--limit", help="最多列出的任务数量，0 表示全部"),
    verbose: bool = VerboseOpt,
) -> None:
    """列出缺失的派生图，不创建目录也不写入文件。"""

    setup_logging(logging.DEBUG if verbose else logging.WARNING)

    try:
        config = _build_config(source, dest, variant)
        work_set = plan_work(config, create_directories=False)
    except ImageDerivativesError as exc:
        _fail(exc)

    table = Table(title="待生成的派生图")
    table.add_column("源文件")
    table.add_column("尺寸")
    table.add_column("目标路径")
    for index, job in enumerate(iter_jobs(work_set)):
        if limit and index >= limit:
            break
        table.add_row(
            str(job.source.relative_to(config.source_root)),
            job.variant.name,
            str(job.destination.relative_to(config.derivative_root)),
        )

    summary = summarize(work_set)
    if summary.pending_jobs:
        console.print(table)
    typer.echo(summary.describe())


@app.command("run")
def run_cli(
    source: Path = SourceArg,
    dest: Path = DestArg,
    variant: Optional[List[str]] = VariantOpt,
    max_workers: int = typer.Option(4, "--workers", "-w", help="并发进程数量"),
    quality: int = typer.Option(85, "--quality", min=1, max=95, help="JPEG 质量"),
    report: Optional[Path] = typer.Option(None, "--report", help="CSV 报告输出路径"),
    verbose: bool = VerboseOpt,
) -> None:
    """生成所有缺失的派生图。"""

    setup_logging(logging.DEBUG if verbose else logging.INFO)
    logging.getLogger(__name__).debug("CLI 参数解析完成")

    execution = ExecutionConfig(
        max_workers=max_workers,
        jpeg_quality=quality,
        report_path=report.expanduser().resolve() if report else None,
    )

    try:
        config = _build_config(source, dest, variant)
        work_set = plan_work(config)
    except ImageDerivativesError as exc:
        _fail(exc)

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
        console=console,
    )

    try:
        with progress:
            result = execute_work_set(work_set, execution, progress_callback=_build_progress_callback(progress))
    except ImageDerivativesError as exc:
        _fail(exc)

    typer.echo(
        f"处理完成：生成 {len(result.succeeded)} 个，失败 {len(result.failed)} 个，"
        f"已是最新 {len(result.up_to_date)} 张源图。"
    )
    if execution.report_path:
        typer.echo(f"报告文件：{execution.report_path}")
    if result.failed:
        for outcome in result.failed:
            typer.echo(f"失败：{outcome.source} [{outcome.variant_name}] {outcome.message or outcome.status}", err=True)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
