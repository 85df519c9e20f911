# ================================================================
# File     : modules/entra/licence_report.py
# Purpose  : Office 365 user licence report (detailed + simple CSV)
# Notes    : Follows the run(client, args) shape; cfg and the two
#            friendly-name tables come in explicitly
# ================================================================

import csv
import pathlib
from typing import Dict, Any, Iterator, List, Optional, Tuple

from core.utils import fncPrintMessage, fncToTable, fncBlurb
from core.config import fncOutputDir
from core.exports import ReportWriter, fncGetReportPaths
from core.licensing import DETAILED_COLUMNS, SUMMARY_COLUMNS, fncFlattenUser, fncIsLicensed
from core.reference_data import fncBuildReferenceData
from handlers.graph.graph_helpers import list_subscribed_skus, list_users, find_users_by_display_name

REQUIRED_PERMS = ["User.Read.All", "Directory.Read.All"]

PREVIEW_ROWS = 25


class UserListError(Exception):
    """The user list CSV cannot be used."""


# ================================================================
# Function: fncReadDisplayNames
# Purpose : Names from a single-column CSV with a DisplayName header
# Notes   : Blank cells skipped; order kept
# ================================================================
def fncReadDisplayNames(path: str) -> List[str]:
    p = pathlib.Path(path).expanduser()
    if not p.is_file():
        raise UserListError(f"User list not found: {p}")

    with open(p, "r", newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        fields = [(h or "").strip() for h in (reader.fieldnames or [])]
        if "DisplayName" not in fields:
            raise UserListError(f"{p} needs a 'DisplayName' header column")
        reader.fieldnames = fields
        names = [(row.get("DisplayName") or "").strip() for row in reader]

    return [n for n in names if n]


# ================================================================
# Function: fncSelectUsers
# Purpose : Yield the licensed users the report covers
# Notes   : Filtered mode when display_names is given (even empty),
#           else every user. Unknown names are skipped with a warning.
# ================================================================
def fncSelectUsers(client, display_names: Optional[List[str]] = None) -> Iterator[Dict[str, Any]]:
    if display_names is not None:
        for name in display_names:
            matches = find_users_by_display_name(client, name)
            if not matches:
                fncPrintMessage(f"No directory user found with display name '{name}' — skipped.", "warn")
                continue
            licensed = [u for u in matches if fncIsLicensed(u)]
            if not licensed:
                fncPrintMessage(f"'{name}' holds no licences — skipped.", "debug")
                continue
            if len(matches) > 1:
                fncPrintMessage(
                    f"{len(matches)} users share the display name '{name}' "
                    f"({len(licensed)} licensed); using {licensed[0].get('userPrincipalName')}",
                    "warn",
                )
            yield licensed[0]
    else:
        for user in list_users(client):
            if fncIsLicensed(user):
                yield user


# ================================================================
# Function: fncWriteReports
# Purpose : Flatten each user into the two open writers
# Notes   : Returns (users_processed, summary_rows)
# ================================================================
def fncWriteReports(users, ref, detailed: ReportWriter, simple: ReportWriter) -> Tuple[int, List[Dict[str, Any]]]:
    processed = 0
    summaries: List[Dict[str, Any]] = []
    for user in users:
        processed += 1
        fncPrintMessage(f"Processing user {processed}: {user.get('userPrincipalName')}", "info")
        summary = fncFlattenUser(user, ref, detailed.write)
        simple.write(summary)
        if len(summaries) < PREVIEW_ROWS:
            summaries.append(summary)
    return processed, summaries


# ================================================================
# Function: run
# Purpose : Entry point for module execution
# Notes   : client is an initialised GraphClient; friendly_names is
#           (licence_names, service_names)
# ================================================================
def run(client, args, cfg: dict, friendly_names: tuple) -> Dict[str, Any]:
    users_csv = getattr(args, "users_csv", None)
    fncBlurb("filtered" if users_csv else "full")

    display_names = fncReadDisplayNames(users_csv) if users_csv else None
    if display_names is not None:
        fncPrintMessage(f"{len(display_names)} display name(s) read from {users_csv}", "info")

    licence_names, service_names = friendly_names
    ref = fncBuildReferenceData(list_subscribed_skus(client), licence_names, service_names)

    detailed_path, simple_path = fncGetReportPaths(fncOutputDir(cfg))

    with ReportWriter(detailed_path, DETAILED_COLUMNS) as detailed, ReportWriter(simple_path, SUMMARY_COLUMNS) as simple:
        processed, preview = fncWriteReports(fncSelectUsers(client, display_names), ref, detailed, simple)
        detail_rows = detailed.rows_written

    if processed:
        print(fncToTable(preview, headers=SUMMARY_COLUMNS, max_rows=PREVIEW_ROWS))
    else:
        fncPrintMessage("No licensed users matched — reports contain headers only.", "warn")

    fncPrintMessage(f"Detailed report available in: {detailed_path}", "success")
    fncPrintMessage(f"Simple report available in: {simple_path}", "success")
    fncPrintMessage(f"licence_report complete — {processed} user(s), {detail_rows} service row(s)", "success")

    return {
        "summary": {"users": processed, "detailRows": detail_rows},
        "detailedReport": str(detailed_path),
        "simpleReport": str(simple_path),
    }
