"""AwardLens - NYC contract awards explorer."""

from .aggregation import Aggregation, aggregate, summarize
from .filters import FilterState, apply_filters
from .records import ContractRecord, normalize_records
from .soda_client import FetchError, SodaClient

__all__ = [
    "Aggregation",
    "ContractRecord",
    "FetchError",
    "FilterState",
    "SodaClient",
    "aggregate",
    "apply_filters",
    "normalize_records",
    "summarize",
]
