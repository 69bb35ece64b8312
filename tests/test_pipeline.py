"""增量执行流水线测试：扫描、缩放与输出。"""

from __future__ import annotations

import csv
from pathlib import Path

import pytest
from PIL import Image

from image_derivatives.core.config import EngineConfig, ExecutionConfig, SizeVariant
from image_derivatives.core.exceptions import InvalidConfigurationError
from image_derivatives.core.progress import ProgressUpdate
from image_derivatives.processing.pipeline import execute_work_set, plan_work, run_incremental

VARIANTS = (SizeVariant("thumb", 100, 100), SizeVariant("medium", 400, 400))


def make_config(tmp_path: Path, dest: Path | None = None) -> EngineConfig:
    return EngineConfig(
        source_root=tmp_path / "orig",
        derivative_root=dest or tmp_path / "resized",
        variants=VARIANTS,
    )


def save_jpeg(path: Path, size: tuple[int, int] = (800, 600), color: str = "blue") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path, format="JPEG")
    return path


def test_run_generates_every_variant(tmp_path: Path) -> None:
    config = make_config(tmp_path)
    save_jpeg(config.source_root / "2020" / "beach.jpg")
    save_jpeg(config.source_root / "portrait.JPG", size=(300, 900), color="red")

    result = run_incremental(config, ExecutionConfig(max_workers=1))

    assert len(result.succeeded) == 4
    assert result.failed == []

    with Image.open(config.derivative_root / "2020" / "beach-thumb.jpg") as img:
        assert img.size == (100, 75)
        assert img.format == "JPEG"
    with Image.open(config.derivative_root / "2020" / "beach-medium.jpg") as img:
        assert img.size == (400, 300)
    with Image.open(config.derivative_root / "portrait-thumb.JPG") as img:
        assert img.size == (33, 100)


def test_second_run_has_nothing_to_do(tmp_path: Path) -> None:
    config = make_config(tmp_path)
    save_jpeg(config.source_root / "a.jpg")
    save_jpeg(config.source_root / "sub" / "b.jpeg")

    run_incremental(config, ExecutionConfig(max_workers=1))
    work_set = plan_work(config)
    result = execute_work_set(work_set, ExecutionConfig(max_workers=1))

    assert all(jobs == [] for jobs in work_set.values())
    assert result.succeeded == []
    assert sorted(result.up_to_date) == sorted(work_set)


def test_new_variant_only_adds_missing_files(tmp_path: Path) -> None:
    config = make_config(tmp_path)
    save_jpeg(config.source_root / "a.jpg")
    run_incremental(config, ExecutionConfig(max_workers=1))

    extended = EngineConfig(
        source_root=config.source_root,
        derivative_root=config.derivative_root,
        variants=(*VARIANTS, SizeVariant("tiny", 20, 20)),
    )
    result = run_incremental(extended, ExecutionConfig(max_workers=1))

    assert [outcome.variant_name for outcome in result.succeeded] == ["tiny"]
    assert (config.derivative_root / "a-tiny.jpg").exists()


def test_small_images_are_not_upscaled(tmp_path: Path) -> None:
    config = make_config(tmp_path)
    save_jpeg(config.source_root / "small.jpg", size=(50, 40))

    run_incremental(config, ExecutionConfig(max_workers=1))

    with Image.open(config.derivative_root / "small-medium.jpg") as img:
        assert img.size == (50, 40)


def test_broken_image_does_not_abort_batch(tmp_path: Path) -> None:
    config = make_config(tmp_path)
    save_jpeg(config.source_root / "good.jpg")
    broken = config.source_root / "broken.jpg"
    broken.write_text("not an image")
    report = tmp_path / "reports" / "report.csv"

    result = run_incremental(config, ExecutionConfig(max_workers=1, report_path=report))

    assert len(result.succeeded) == 2
    assert len(result.failed) == 2
    assert {outcome.status for outcome in result.failed} == {"error-load"}
    assert not (config.derivative_root / "broken-thumb.jpg").exists()

    with report.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))
    assert len(rows) == 4
    assert {row["status"] for row in rows} == {"resized", "error-load"}


def test_no_temporary_files_are_left_behind(tmp_path: Path) -> None:
    config = make_config(tmp_path)
    save_jpeg(config.source_root / "a.jpg")

    run_incremental(config, ExecutionConfig(max_workers=1))

    names = sorted(path.name for path in config.derivative_root.iterdir())
    assert names == ["a-medium.jpg", "a-thumb.jpg"]


def test_nested_derivative_root_is_not_rescanned_as_source(tmp_path: Path) -> None:
    config = make_config(tmp_path, dest=tmp_path / "orig" / ".resized")
    save_jpeg(config.source_root / "a.jpg")

    first = run_incremental(config, ExecutionConfig(max_workers=1))
    work_set = plan_work(config)

    assert len(first.succeeded) == 2
    assert list(work_set) == [config.source_root / "a.jpg"]
    assert work_set[config.source_root / "a.jpg"] == []


def test_file_in_place_of_derivative_root_is_fatal(tmp_path: Path) -> None:
    config = make_config(tmp_path)
    save_jpeg(config.source_root / "a.jpg")
    config.derivative_root.write_text("")

    with pytest.raises(InvalidConfigurationError):
        plan_work(config)


def test_progress_callback_reports_completion(tmp_path: Path) -> None:
    config = make_config(tmp_path)
    save_jpeg(config.source_root / "a.jpg")
    updates: list[ProgressUpdate] = []

    run_incremental(config, ExecutionConfig(max_workers=1), progress_callback=updates.append)

    assert updates[0].completed == 0
    assert updates[-1].completed == updates[-1].total == 2


def test_process_pool_execution(tmp_path: Path) -> None:
    config = make_config(tmp_path)
    for index in range(3):
        save_jpeg(config.source_root / f"img{index}.jpg")

    result = run_incremental(config, ExecutionConfig(max_workers=2))

    assert len(result.succeeded) == 6
    assert len(list(config.derivative_root.glob("*.jpg"))) == 6


def test_source_root_inside_derivative_root_settles(tmp_path: Path) -> None:
    config = make_config(tmp_path, dest=tmp_path)
    save_jpeg(config.source_root / "x.jpg")

    first = run_incremental(config, ExecutionConfig(max_workers=1))
    work_set = plan_work(config)

    assert len(first.succeeded) == 2
    assert (tmp_path / "x-thumb.jpg").exists()
    assert sorted(path.name for path in config.source_root.iterdir()) == ["x.jpg"]
    assert list(work_set) == [config.source_root / "x.jpg"]
    assert work_set[config.source_root / "x.jpg"] == []


@pytest.mark.parametrize("max_workers", [1, 2])
def test_write_failure_does_not_abort_batch(tmp_path: Path, max_workers: int) -> None:
    config = make_config(tmp_path)
    save_jpeg(config.source_root / "a.jpg")
    save_jpeg(config.source_root / "b.jpg")
    # 目录占用了目标文件名，替换时必然失败
    (config.derivative_root / "a-thumb.jpg").mkdir(parents=True)

    result = run_incremental(config, ExecutionConfig(max_workers=max_workers))

    assert [(o.source.name, o.variant_name, o.status) for o in result.failed] == [("a.jpg", "thumb", "error-write")]
    assert len(result.succeeded) == 3
    assert (config.derivative_root / "b-thumb.jpg").is_file()
    assert not any(path.name.endswith(".tmp") for path in config.derivative_root.iterdir())


def test_long_file_name_near_limit_is_written(tmp_path: Path) -> None:
    config = make_config(tmp_path)
    long_stem = "a" * 240
    save_jpeg(config.source_root / f"{long_stem}.jpg")
    save_jpeg(config.source_root / "b.jpg")

    result = run_incremental(config, ExecutionConfig(max_workers=1))

    assert result.failed == []
    assert len(result.succeeded) == 4
    assert (config.derivative_root / f"{long_stem}-medium.jpg").is_file()
