"""处理流水线：扫描两棵目录树、计算缺失的派生图并并发执行。"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Callable, Optional

from image_derivatives.core.config import EngineConfig, ExecutionConfig
from image_derivatives.core.diff import derive_jobs, summarize
from image_derivatives.core.exceptions import InvalidConfigurationError
from image_derivatives.core.filesystem import verify_roots
from image_derivatives.core.models import BatchResult, JobOutcome, ResizeJob, WorkSet, iter_jobs
from image_derivatives.core.progress import ProgressUpdate
from image_derivatives.core.report import write_csv_report
from image_derivatives.core.scanner import collect_image_files
from image_derivatives.processing.worker import run_job

LOGGER = logging.getLogger(__name__)


ProgressCallback = Optional[Callable[[ProgressUpdate], None]]


def plan_work(config: EngineConfig, create_directories: bool = True) -> WorkSet:
    """检查目录、扫描源目录与派生目录，返回需要补齐的任务集合。"""

    verify_roots(config, create=create_directories)

    exclude = (config.derivative_root,) if config.derivative_root_is_nested else ()

    LOGGER.info("开始扫描源目录 %s", config.source_root)
    sources = collect_image_files(config.source_root, exclude=exclude)
    LOGGER.info("开始扫描派生目录 %s", config.derivative_root)
    derivatives = collect_image_files(config.derivative_root)

    work_set = derive_jobs(config, sources, derivatives)
    LOGGER.info("扫描完成：%s", summarize(work_set).describe())
    return work_set


def execute_work_set(
    work_set: WorkSet,
    execution: Optional[ExecutionConfig] = None,
    progress_callback: ProgressCallback = None,
) -> BatchResult:
    """执行任务集合。单个任务失败会被记录并跳过，其余任务继续执行。"""

    execution = execution or ExecutionConfig()
    jobs = list(iter_jobs(work_set))
    total = len(jobs)

    succeeded: list[JobOutcome] = []
    failed: list[JobOutcome] = []
    up_to_date = [source for source, source_jobs in work_set.items() if not source_jobs]

    if total == 0:
        _emit_progress(progress_callback, 0, 0, 0, "所有派生图均已是最新")
        result = BatchResult(succeeded=succeeded, failed=failed, up_to_date=up_to_date)
        _write_report(execution, result)
        return result

    _emit_progress(progress_callback, 0, total, 0, "开始执行缩放任务")
    completed = 0

    if execution.max_workers <= 1:
        for job in jobs:
            try:
                outcome = run_job(job, execution.jpeg_quality)
            except InvalidConfigurationError:
                raise
            except Exception as exc:  # noqa: BLE001
                LOGGER.exception("任务执行异常：%s", exc)
                outcome = _worker_failure(job, exc)
            _record_outcome(outcome, succeeded, failed)
            completed += 1
            _emit_progress(progress_callback, completed, total, len(failed), _describe(job))
    else:
        executor = ProcessPoolExecutor(max_workers=execution.max_workers)
        try:
            future_map = {executor.submit(run_job, job, execution.jpeg_quality): job for job in jobs}
            for future in as_completed(future_map):
                job = future_map[future]
                try:
                    outcome = future.result()
                except InvalidConfigurationError:
                    executor.shutdown(wait=False, cancel_futures=True)
                    raise
                except Exception as exc:  # noqa: BLE001
                    LOGGER.exception("任务执行异常：%s", exc)
                    outcome = _worker_failure(job, exc)
                _record_outcome(outcome, succeeded, failed)
                completed += 1
                _emit_progress(progress_callback, completed, total, len(failed), _describe(job))
        finally:
            executor.shutdown(wait=True)

    result = BatchResult(succeeded=succeeded, failed=failed, up_to_date=up_to_date)
    _write_report(execution, result)
    _emit_progress(progress_callback, total, total, len(failed), "处理完成")
    LOGGER.info("执行完成：成功 %d 个，失败 %d 个", len(succeeded), len(failed))
    return result


def run_incremental(
    config: EngineConfig,
    execution: Optional[ExecutionConfig] = None,
    progress_callback: ProgressCallback = None,
) -> BatchResult:
    """增量入口：计算缺失的派生图并全部生成。"""

    work_set = plan_work(config)
    return execute_work_set(work_set, execution, progress_callback)


def _record_outcome(outcome: JobOutcome, succeeded: list[JobOutcome], failed: list[JobOutcome]) -> None:
    if outcome.ok:
        succeeded.append(outcome)
    else:
        failed.append(outcome)


def _describe(job: ResizeJob) -> str:
    return f"{job.source.name} -> {job.variant.name}"


def _worker_failure(job: ResizeJob, exc: Exception) -> JobOutcome:
    return JobOutcome(
        source=job.source,
        destination=job.destination,
        variant_name=job.variant.name,
        status="error-worker",
        message=str(exc),
    )


def _emit_progress(
    callback: ProgressCallback,
    completed: int,
    total: int,
    failed: int,
    message: Optional[str] = None,
) -> None:
    if not callback:
        return
    callback(ProgressUpdate(total=total, completed=completed, failed=failed, message=message))


def _write_report(execution: ExecutionConfig, result: BatchResult) -> None:
    if execution.report_path is None:
        return
    try:
        write_csv_report(result.all_outcomes(), execution.report_path)
    except OSError as exc:
        LOGGER.error("写入报告失败：%s", exc)
