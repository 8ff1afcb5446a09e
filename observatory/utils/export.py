"""
CSV export of climate aggregates.

Column names are stable and match the aggregate field names. Missing values
are written as empty cells and numbers as plain decimal strings.
"""

import csv
import io
from typing import Any, Iterable, Sequence

from observatory.schemas.climate import DailyAggregate, MonthlyAggregate


DAILY_CSV_FIELDS = tuple(DailyAggregate.model_fields)
MONTHLY_CSV_FIELDS = tuple(MonthlyAggregate.model_fields)

DECIMAL_PLACES = 4


def format_value(value: Any) -> str:
    """
    Format one aggregate value for a CSV cell.

    None -> "", bools -> "true"/"false", floats -> fixed-point decimal with
    trailing zeros removed, lists -> ";"-joined.

    Example:
        >>> format_value(0.8333333)
        '0.8333'
        >>> format_value(None)
        ''
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        text = f"{value:.{DECIMAL_PLACES}f}".rstrip("0").rstrip(".")
        return "0" if text in ("", "-0") else text
    if isinstance(value, (list, tuple)):
        return ";".join(str(item) for item in value)
    return str(value)


def rows_to_csv(rows: Iterable[Any], fields: Sequence[str]) -> str:
    """Write model rows as CSV text, header first."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(fields)
    for row in rows:
        writer.writerow([format_value(getattr(row, field)) for field in fields])
    return buffer.getvalue()


def daily_to_csv(daily: Iterable[DailyAggregate]) -> str:
    """CSV text for daily aggregates."""
    return rows_to_csv(daily, DAILY_CSV_FIELDS)


def monthly_to_csv(monthly: Iterable[MonthlyAggregate]) -> str:
    """CSV text for monthly aggregates."""
    return rows_to_csv(monthly, MONTHLY_CSV_FIELDS)
