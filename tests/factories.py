"""Raw SODA row builders shared by the tests."""

from typing import Any, Dict

SODA_URL = "https://data.example.test/resource/awards.json"


def make_row(
    vendor: Any = "Acme Corp",
    agency: Any = "Department of Sanitation",
    amount: Any = "1000",
    **extra: Any,
) -> Dict[str, Any]:
    """Build a raw SODA row; pass None to leave a field out."""
    row: Dict[str, Any] = {
        "request_id": extra.pop("request_id", "20260101001"),
        "start_date": extra.pop("start_date", "2026-01-15T00:00:00.000"),
        "short_title": extra.pop("short_title", "Street cleaning services"),
    }
    if vendor is not None:
        row["vendor_name"] = vendor
    if agency is not None:
        row["agency_name"] = agency
    if amount is not None:
        row["contract_amount"] = amount
    row.update(extra)
    return row
