"""报告生成工具。"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from image_derivatives.core.models import JobOutcome

HEADER = ["source_path", "output_path", "variant", "status", "message"]


def write_csv_report(outcomes: Iterable[JobOutcome], report_path: Path) -> Path:
    """将任务执行结果写入 CSV 报告。"""

    report_path.parent.mkdir(parents=True, exist_ok=True)
    with report_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        for record in outcomes:
            writer.writerow(
                [
                    str(record.source),
                    str(record.destination),
                    record.variant_name,
                    record.status,
                    record.message or "",
                ]
            )
    return report_path
