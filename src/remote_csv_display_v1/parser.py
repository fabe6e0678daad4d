from __future__ import annotations

import csv
import logging
import math
from typing import List, Optional

from .errors import MalformedCsvError
from .models import TabularDataset

MAX_ROWS = 1500

logger = logging.getLogger("remote_csv_display_v1.parser")


def parse_csv_text(body: str, max_rows: int = MAX_ROWS) -> TabularDataset:
    """Parse a comma-separated body into a header and equal-width rows.

    Only the last ``max_rows`` data lines are kept; sources are assumed to be
    append-only, so the tail holds the most recent records. Rows whose width
    differs from the header are dropped.
    """
    lines = [line.rstrip("\r") for line in body.strip().split("\n")]
    lines = [line for line in lines if line.strip()]
    if not lines:
        raise MalformedCsvError("csv has no header line")

    header = _split_line(lines[0])
    if header is None or not header or not any(name.strip() for name in header):
        raise MalformedCsvError("csv header is empty")

    candidates = lines[1:]
    if max_rows > 0 and len(candidates) > max_rows:
        candidates = candidates[-max_rows:]

    width = len(header)
    rows: List[List[str]] = []
    dropped = 0
    for line in candidates:
        fields = _split_line(line)
        if fields is None or len(fields) != width:
            dropped += 1
            continue
        rows.append(fields)

    if dropped:
        logger.debug("dropped %d csv rows with a width other than %d", dropped, width)

    if not rows:
        raise MalformedCsvError("csv has no rows matching the header width")

    return TabularDataset(header=header, rows=rows)


def _split_line(line: str) -> Optional[List[str]]:
    try:
        return next(csv.reader([line], delimiter=",", quotechar='"'), [])
    except csv.Error:
        return None


def parse_number(cell: str) -> Optional[float]:
    """Finite float value of a cell, or None.

    Underscore digit grouping is refused because the browser does not accept it.
    """
    if "_" in cell:
        return None
    try:
        value = float(cell)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return value
