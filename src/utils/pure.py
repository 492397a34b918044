from datetime import date, datetime, timezone
from typing import Any, List, Literal, Optional

from utils.config import settings


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[Any]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows; cells are converted with str(), None becomes "-".
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all left ('l').

    Returns:
        str: Markdown formatted table, or "" when there are no rows.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [_cell(h) for h in headers]
    rows = [[_cell(c) for c in row] for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["l"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    # pipes would split the cell
    return str(value).replace("|", "\\|").replace("\n", " ")


def format_vnd(amount: int | float | None) -> str:
    """5000000 -> '5.000.000 ₫'"""
    if amount is None:
        return "-"
    grouped = f"{int(round(amount)):,}".replace(",", ".")
    return f"{grouped} {settings.currency_symbol}"


def format_date(value: date | datetime | str | None) -> str:
    """Render a date or an ISO string as dd/mm/yyyy, unknown strings as-is."""
    if value is None or value == "":
        return "-"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value.strftime("%d/%m/%Y")


def page_count(total: int, page_size: int) -> int:
    """At least one page, even for an empty result."""
    if page_size < 1:
        raise ValueError("page_size must be positive")
    return max((total + page_size - 1) // page_size, 1)


def iso_timestamp(value: date | datetime | str) -> str:
    """
    Render a date or datetime as `YYYY-MM-DDTHH:MM:SS.mmmZ` in UTC.
    Strings are assumed to be timestamps already and pass through untouched.
    Naive datetimes and plain dates count as UTC.
    """
    if isinstance(value, str):
        return value
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
