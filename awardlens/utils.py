"""Utility functions for AwardLens."""

import math
import unicodedata
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Optional, Tuple

OTHER_INFO_FIELDS = ("other_info_1", "other_info_2", "other_info_3")
OTHER_INFO_SEPARATOR = " | "


def parse_amount(value: Any) -> float:
    """Coerce a SODA amount field into a non-negative float.

    SODA returns numbers as strings. Anything missing, unparseable,
    non-finite or negative becomes 0.0; this never raises.

    Args:
        value: Raw field value (usually a string)

    Returns:
        Parsed amount
    """
    if value is None or value == "":
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(amount) or math.isinf(amount) or amount < 0:
        return 0.0
    return amount


def parse_date(value: Any) -> Optional[date]:
    """Parse a SODA date or floating timestamp into a calendar date.

    Handles both ``2026-01-15`` and ``2026-01-15T00:00:00.000``.

    Args:
        value: Raw field value

    Returns:
        The date, or None when absent or unparseable
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def concatenate_other_info(row: Mapping[str, Any]) -> str:
    """Join the non-blank other_info fields with a pipe separator."""
    parts = [
        row.get(name)
        for name in OTHER_INFO_FIELDS
        if isinstance(row.get(name), str) and row.get(name).strip()
    ]
    return OTHER_INFO_SEPARATOR.join(parts)


def clean_text(value: Any) -> Optional[str]:
    """Return a string field or None when it is missing or empty."""
    if value is None:
        return None
    text = str(value)
    return text if text else None


def name_sort_key(name: str) -> Tuple[str, str]:
    """Locale-style collation key for entity names.

    Accents are stripped and case folded so "Émile" sorts beside "emile";
    the raw name breaks remaining ties deterministically.
    """
    if not name:
        return ("", "")
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (stripped.casefold(), name)


def format_currency(amount: Optional[float]) -> str:
    """Format amount as abbreviated USD.

    Rules:
    - None / NaN → $0
    - 999 → $999
    - 1,200 → $1.2K
    - 1,500,000 → $1.50M
    - 2,000,000,000 → $2.00B
    """
    if amount is None:
        return "$0"
    try:
        num = float(amount)
    except (TypeError, ValueError):
        return "$0"
    if math.isnan(num):
        return "$0"

    if num >= 1e9:
        return f"${num / 1e9:.2f}B"
    elif num >= 1e6:
        return f"${num / 1e6:.2f}M"
    elif num >= 1e3:
        return f"${num / 1e3:.1f}K"
    return f"${num:,.0f}"


def format_currency_full(amount: Optional[float]) -> str:
    """Format amount as full USD with cents and thousands separators."""
    if amount is None or (isinstance(amount, float) and math.isnan(amount)):
        return "$0"
    return f"${float(amount):,.2f}"


def format_number(num: Optional[float]) -> str:
    """Format a count with thousands separators."""
    if num is None or (isinstance(num, float) and math.isnan(num)):
        return "0"
    return f"{num:,}"


def truncate(text: Optional[str], max_length: int = 50) -> str:
    """Truncate text with an ellipsis."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


# Date helpers (YYYY-MM-DD strings, as the SODA $where clause expects)


def format_date(value: Optional[date]) -> str:
    if not value:
        return ""
    return value.isoformat()


def get_today(today: Optional[date] = None) -> str:
    return format_date(today or date.today())


def get_days_ago(days: int, today: Optional[date] = None) -> str:
    return format_date((today or date.today()) - timedelta(days=days))


def get_start_of_week(today: Optional[date] = None) -> str:
    """Monday of the current week."""
    current = today or date.today()
    return format_date(current - timedelta(days=current.weekday()))


def get_start_of_month(today: Optional[date] = None) -> str:
    return format_date((today or date.today()).replace(day=1))
