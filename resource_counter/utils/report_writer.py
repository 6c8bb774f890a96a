"""Report output: JSON for stdout and one CSV row per run for files."""

import csv
import logging
import os

from ..models.report import InventoryReport

logger = logging.getLogger(__name__)


def render_json(report: InventoryReport) -> str:
    """Serialize the report, including run-level and per-family errors."""
    return report.model_dump_json(indent=2)


def write_csv_row(report: InventoryReport, path: str, append: bool = False) -> None:
    """
    Write the report as one CSV row.

    The header is written when the file is created or replaced. When
    appending to an existing file only the row is added, so repeated runs
    against several accounts accumulate in one sheet.

    Args:
        report: Inventory report to write
        path: Destination file
        append: Append to path instead of replacing it
    """
    row = report.as_row()
    write_header = not (append and os.path.exists(path) and os.path.getsize(path) > 0)

    with open(path, "a" if append else "w", newline="", encoding="utf-8") as output:
        writer = csv.DictWriter(output, fieldnames=list(row.keys()))
        if write_header:
            writer.writeheader()
        writer.writerow(row)

    logger.info(f"Wrote inventory row for account {report.account_id or 'unknown'} to {path}")
