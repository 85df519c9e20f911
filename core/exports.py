# ================================================================
# File     : exports.py
# Purpose  : Streaming CSV writers for the two licence reports
# Notes    : One writer per report, opened once, a row at a time
# ================================================================

import csv
import pathlib
from typing import Dict, Any, List, Optional

from core.utils import fncPrintMessage, fncEnsureFolder, fncTimestamp

DETAILED_REPORT_PREFIX = "DetailedO365UserLicenseReport"
SIMPLE_REPORT_PREFIX = "SimpleO365UserLicenseReport"


# ================================================================
# Function: fncGetReportPaths
# Purpose  : Build the two timestamped report paths
# Notes    : Returns (detailed_path, simple_path)
# ================================================================
def fncGetReportPaths(out_dir, timestamp: Optional[str] = None) -> tuple:
    root = fncEnsureFolder(out_dir)
    ts = timestamp or fncTimestamp()
    return (
        root / f"{DETAILED_REPORT_PREFIX}_{ts}.csv",
        root / f"{SIMPLE_REPORT_PREFIX}_{ts}.csv",
    )


class ReportWriter:
    """
    Append-mode CSV writer with a fixed column order.

    The header goes in only when the file is new or empty, so re-opening an
    existing report keeps adding rows underneath it.
    """

    def __init__(self, path, columns: List[str]):
        self.path = pathlib.Path(path)
        self.columns = list(columns)
        self.rows_written = 0
        self._fh = None
        self._writer = None

    def open(self) -> "ReportWriter":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fresh = not self.path.exists() or self.path.stat().st_size == 0
        self._fh = open(self.path, "a", newline="", encoding="utf-8")
        self._writer = csv.DictWriter(self._fh, fieldnames=self.columns, extrasaction="ignore")
        if fresh:
            self._writer.writeheader()
        fncPrintMessage(f"Writing CSV → {self.path}", "debug")
        return self

    def write(self, row: Dict[str, Any]) -> None:
        self._writer.writerow({k: ("" if row.get(k) is None else row.get(k)) for k in self.columns})
        self._fh.flush()
        self.rows_written += 1

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
            self._writer = None

    def __enter__(self) -> "ReportWriter":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
