"""
AwardLens contract records - typed model for NYC contract award rows

Raw SODA rows arrive as untyped string dicts. ``normalize_record`` is the single
place where they are coerced; everything downstream works on ContractRecord.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .utils import clean_text, concatenate_other_info, parse_amount, parse_date

UNKNOWN_VENDOR = "Unknown Vendor"
UNKNOWN_AGENCY = "Unknown Agency"


@dataclass(frozen=True)
class ContractRecord:
    """One awarded contract.

    Names are kept as reported (None when absent) so that search and the
    vendor/agency pickers see the real values; ``vendor_key``/``agency_key``
    provide the substituted labels used for grouping.
    """

    vendor_name: Optional[str] = None
    agency_name: Optional[str] = None
    contract_amount: float = 0.0
    short_title: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    other_info_1: Optional[str] = None
    other_info_2: Optional[str] = None
    other_info_3: Optional[str] = None
    additional_info: str = ""

    # Pass-through columns shown in contract details
    request_id: Optional[str] = None
    vendor_address: Optional[str] = None
    type_of_notice_description: Optional[str] = None
    category_description: Optional[str] = None
    selection_method_description: Optional[str] = None
    pin: Optional[str] = None

    @property
    def vendor_key(self) -> str:
        return self.vendor_name or UNKNOWN_VENDOR

    @property
    def agency_key(self) -> str:
        return self.agency_name or UNKNOWN_AGENCY

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to a JSON-ready dictionary."""
        return {
            "request_id": self.request_id,
            "vendor_name": self.vendor_name,
            "agency_name": self.agency_name,
            "contract_amount": self.contract_amount,
            "short_title": self.short_title,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "vendor_address": self.vendor_address,
            "type_of_notice_description": self.type_of_notice_description,
            "category_description": self.category_description,
            "selection_method_description": self.selection_method_description,
            "pin": self.pin,
            "other_info_1": self.other_info_1,
            "other_info_2": self.other_info_2,
            "other_info_3": self.other_info_3,
            "additional_info": self.additional_info,
        }


def normalize_record(row: Mapping[str, Any]) -> ContractRecord:
    """Build a ContractRecord from one raw API row."""
    return ContractRecord(
        vendor_name=clean_text(row.get("vendor_name")),
        agency_name=clean_text(row.get("agency_name")),
        contract_amount=parse_amount(row.get("contract_amount")),
        short_title=clean_text(row.get("short_title")),
        start_date=parse_date(row.get("start_date")),
        end_date=parse_date(row.get("end_date")),
        other_info_1=clean_text(row.get("other_info_1")),
        other_info_2=clean_text(row.get("other_info_2")),
        other_info_3=clean_text(row.get("other_info_3")),
        additional_info=concatenate_other_info(row),
        request_id=clean_text(row.get("request_id")),
        vendor_address=clean_text(row.get("vendor_address")),
        type_of_notice_description=clean_text(row.get("type_of_notice_description")),
        category_description=clean_text(row.get("category_description")),
        selection_method_description=clean_text(
            row.get("selection_method_description")
        ),
        pin=clean_text(row.get("pin")),
    )


def normalize_records(rows: Iterable[Mapping[str, Any]]) -> List[ContractRecord]:
    """Normalize a sequence of raw rows, preserving order."""
    return [normalize_record(row) for row in rows]
