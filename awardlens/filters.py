"""Filter state and client-side filtering for contract records."""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence

from .aggregation import AGENCY, VENDOR
from .ranking import DEFAULT_SORT, SortSpec
from .records import ContractRecord
from .utils import (
    get_days_ago,
    get_start_of_month,
    get_start_of_week,
    get_today,
    name_sort_key,
)

logger = logging.getLogger(__name__)

DEFAULT_START_DATE = "2026-01-01"
DATE_PRESETS = ("today", "week", "month", "30days")


@dataclass(frozen=True)
class FilterState:
    """Snapshot of the current filter selection.

    Date range and minimum amount are server-side bounds (see ``api_params``);
    search, vendor and agency selections are client-local refinements.
    """

    start_date: Optional[str] = DEFAULT_START_DATE
    end_date: Optional[str] = None
    search_query: str = ""
    min_amount: float = 0.0
    selected_vendors: FrozenSet[str] = field(default_factory=frozenset)
    selected_agencies: FrozenSet[str] = field(default_factory=frozenset)
    sort_by: SortSpec = DEFAULT_SORT
    active_preset: Optional[str] = None

    def __post_init__(self):
        # Accept plain strings/lists from callers and coerce once here
        object.__setattr__(self, "sort_by", SortSpec.parse(self.sort_by))
        object.__setattr__(self, "selected_vendors", frozenset(self.selected_vendors))
        object.__setattr__(
            self, "selected_agencies", frozenset(self.selected_agencies)
        )

    def replace(self, **changes: Any) -> "FilterState":
        return replace(self, **changes)

    def with_preset(
        self,
        preset: str,
        today: Optional[date] = None,
        default_start: str = DEFAULT_START_DATE,
    ) -> "FilterState":
        """Apply a date preset; unknown presets fall back to the default start."""
        start = preset_start_date(preset, today, default_start=default_start)
        return replace(
            self,
            start_date=start,
            end_date=get_today(today),
            active_preset=preset,
        )

    @classmethod
    def reset(
        cls, default_start: str = DEFAULT_START_DATE, today: Optional[date] = None
    ) -> "FilterState":
        return cls(start_date=default_start, end_date=get_today(today))

    def api_params(self) -> Dict[str, Any]:
        """Parameters for the data-source query."""
        return {
            "start_date": self.start_date,
            "end_date": self.end_date,
            "min_amount": self.min_amount,
        }

    def with_selection(self, kind: str, name: str) -> "FilterState":
        """Add a vendor or agency to the selection (no-op if already selected)."""
        attr = _selection_attr(kind)
        return replace(self, **{attr: getattr(self, attr) | {name}})

    def without_selection(self, kind: str, name: str) -> "FilterState":
        attr = _selection_attr(kind)
        return replace(self, **{attr: getattr(self, attr) - {name}})

    def needs_refetch(self, other: "FilterState") -> bool:
        """True when server-side bounds differ from ``other``."""
        return self.api_params() != other.api_params()


@dataclass(frozen=True)
class FilterOptions:
    vendors: List[str]
    agencies: List[str]

    def to_dict(self) -> Dict[str, List[str]]:
        return {"vendors": self.vendors, "agencies": self.agencies}


def _selection_attr(kind: str) -> str:
    if kind == VENDOR:
        return "selected_vendors"
    if kind == AGENCY:
        return "selected_agencies"
    raise ValueError(f"Unknown selection kind: {kind!r}")


def preset_start_date(
    preset: Optional[str],
    today: Optional[date] = None,
    default_start: str = DEFAULT_START_DATE,
) -> str:
    if preset == "today":
        return get_today(today)
    if preset == "week":
        return get_start_of_week(today)
    if preset == "month":
        return get_start_of_month(today)
    if preset == "30days":
        return get_days_ago(30, today)
    return default_start


def matches_search(record: ContractRecord, query: str) -> bool:
    """Case-insensitive substring match on any searchable text field."""
    if not query:
        return True
    needle = query.lower()
    fields = (
        record.vendor_name,
        record.agency_name,
        record.short_title,
        record.additional_info,
    )
    return any(text and needle in text.lower() for text in fields)


def apply_filters(
    records: Iterable[ContractRecord], state: FilterState
) -> List[ContractRecord]:
    """Apply search/vendor/agency predicates, then the active sort."""
    filtered = list(records)

    if state.search_query:
        filtered = [r for r in filtered if matches_search(r, state.search_query)]

    if state.selected_vendors:
        filtered = [r for r in filtered if r.vendor_name in state.selected_vendors]

    if state.selected_agencies:
        filtered = [r for r in filtered if r.agency_name in state.selected_agencies]

    logger.debug(
        "Client filters kept %s records (search=%r, vendors=%s, agencies=%s)",
        len(filtered),
        state.search_query,
        len(state.selected_vendors),
        len(state.selected_agencies),
    )
    return sort_records(filtered, state.sort_by)


def sort_records(
    records: Sequence[ContractRecord], sort: SortSpec = DEFAULT_SORT
) -> List[ContractRecord]:
    """Stable per-record sort.

    Record-level ``count`` has no per-record meaning and sorts by amount.
    """
    if sort.field == "name":
        key = lambda r: name_sort_key((r.vendor_name or "").lower())  # noqa: E731
    else:
        key = lambda r: r.contract_amount  # noqa: E731
    return sorted(records, key=key, reverse=sort.descending)


def get_filter_options(records: Iterable[ContractRecord]) -> FilterOptions:
    """Distinct reported vendor/agency names for the pickers."""
    vendors = set()
    agencies = set()
    for record in records:
        if record.vendor_name:
            vendors.add(record.vendor_name)
        if record.agency_name:
            agencies.add(record.agency_name)
    return FilterOptions(vendors=sorted(vendors), agencies=sorted(agencies))
