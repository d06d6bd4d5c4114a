"""Excel report of duplicate resolution decisions.

`build_decision_rows` is a pure transform kept separate from the writer so
the row layout stays testable without touching the filesystem.
"""

from __future__ import annotations

import logging
from os import PathLike
from pathlib import Path
from typing import Any, Dict, List, Sequence

import pandas as pd
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from .models import ActivityDetail, ResolutionDecision, ScoreBreakdown
from .scoring import system_label
from .utils import format_duration

LOGGER = logging.getLogger(__name__)

DECISIONS_SHEET = "Decisions"
EXCEL_DATETIME_FORMAT = "yyyy-mm-dd hh:mm:ss"

CLUSTER_COL = "Cluster"
ROLE_COL = "Role"
ID_COL = "Activity ID"
NAME_COL = "Name"
START_COL = "Start"
SYSTEM_COL = "System"
SCORE_COL = "Score"
DISTANCE_COL = "Distance (km)"
MOVING_COL = "Moving Time"
REASONS_COL = "Reasons"

COLUMNS = [
    CLUSTER_COL,
    ROLE_COL,
    ID_COL,
    NAME_COL,
    START_COL,
    SYSTEM_COL,
    SCORE_COL,
    DISTANCE_COL,
    MOVING_COL,
    REASONS_COL,
]

ROLE_KEEP = "Keep"
ROLE_DELETE = "Delete"
ROLE_MISMATCH = "Mismatch"

AUTOSIZE_MAX_WIDTH = 60
AUTOSIZE_MIN_WIDTH = 6
AUTOSIZE_PADDING = 2

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(patternType="solid", fgColor="FFDDEBF7")
HEADER_BORDER = Border(
    left=Side(style="thin", color="000000"),
    right=Side(style="thin", color="000000"),
    top=Side(style="thin", color="000000"),
    bottom=Side(style="thin", color="000000"),
)

PathInput = str | Path | PathLike[str]


def _row(cluster: int, role: str, detail: ActivityDetail, score: ScoreBreakdown) -> Dict[str, Any]:
    start = detail.start_date_local
    if start is not None and start.tzinfo is not None:
        # openpyxl rejects aware datetimes.
        start = start.replace(tzinfo=None)
    return {
        CLUSTER_COL: cluster,
        ROLE_COL: role,
        ID_COL: detail.id,
        NAME_COL: detail.name,
        START_COL: start,
        SYSTEM_COL: system_label(detail),
        SCORE_COL: round(score.total, 2),
        DISTANCE_COL: round(detail.distance / 1000.0, 2),
        MOVING_COL: format_duration(detail.moving_time),
        REASONS_COL: "; ".join(score.reasons),
    }


def build_decision_rows(decisions: Sequence[ResolutionDecision]) -> List[Dict[str, Any]]:
    """Flatten decisions into one row per activity, winner first."""

    rows: List[Dict[str, Any]] = []
    for cluster, decision in enumerate(decisions, start=1):
        winner = decision.winner
        rows.append(_row(cluster, ROLE_KEEP, winner.detail, winner.score))
        for loser in decision.losers:
            role = ROLE_MISMATCH if loser.size_mismatch else ROLE_DELETE
            rows.append(_row(cluster, role, loser.detail, loser.score))
    return rows


def _style_header_row(ws: Worksheet, max_col: int) -> None:
    for col in range(1, max_col + 1):
        cell = ws.cell(row=1, column=col)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = HEADER_BORDER


def _autosize(ws: Worksheet) -> None:
    for col_cells in ws.columns:
        max_len = 0
        col_letter = getattr(col_cells[0], "column_letter", None)
        for cell in col_cells:
            if cell.value is None:
                continue
            max_len = max(max_len, len(str(cell.value)))
        width = min(AUTOSIZE_MAX_WIDTH, max(AUTOSIZE_MIN_WIDTH, max_len + AUTOSIZE_PADDING))
        if col_letter:
            ws.column_dimensions[col_letter].width = width


def write_decision_report(
    filepath: PathInput, decisions: Sequence[ResolutionDecision]
) -> int:
    """Write the decisions sheet to ``filepath``; return the number of rows."""

    rows = build_decision_rows(decisions)
    target = str(Path(filepath))
    with pd.ExcelWriter(
        target, engine="openpyxl", datetime_format=EXCEL_DATETIME_FORMAT
    ) as writer:
        if rows:
            df = pd.DataFrame(rows, columns=COLUMNS)
        else:
            df = pd.DataFrame({"Message": ["No duplicates found."]})
        df.to_excel(writer, sheet_name=DECISIONS_SHEET, index=False)
        ws = writer.sheets[DECISIONS_SHEET]
        _style_header_row(ws, len(df.columns))
        _autosize(ws)
    LOGGER.info("Decision report saved to %s (rows=%d)", target, len(rows))
    return len(rows)


__all__ = ["COLUMNS", "build_decision_rows", "write_decision_report"]
