"""Dashboard session: fetched data, current filters and the active view."""

import logging
from datetime import date, datetime, timezone
from typing import Any, List, Optional, Union

from .aggregation import (
    AGENCY,
    VENDOR,
    Aggregation,
    GraphProjection,
    MatrixProjection,
    Summary,
    aggregate,
    summarize,
)
from .config import Settings, settings as default_settings
from .filters import FilterOptions, FilterState, apply_filters, get_filter_options
from .records import ContractRecord
from .soda_client import FetchError, SodaClient

logger = logging.getLogger(__name__)

VIEWS = ("flow", "matrix")


class ContractExplorer:
    """Holds one dashboard session and produces render-ready projections.

    Every render pass reads a single FilterState snapshot; changing filters
    swaps the snapshot rather than mutating it.
    """

    def __init__(
        self,
        client: Optional[SodaClient] = None,
        config: Optional[Settings] = None,
        filters: Optional[FilterState] = None,
    ):
        self.config = config or default_settings
        self.client = client or SodaClient(self.config)
        self.filters = filters or FilterState.reset(self.config.default_start_date)
        self.raw_records: List[ContractRecord] = []
        self.filtered_records: List[ContractRecord] = []
        self.active_view = "flow"
        self.last_fetch_time: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Data fetching
    # ------------------------------------------------------------------
    def refresh(self) -> List[ContractRecord]:
        """Re-fetch from the data source and re-apply client filters.

        On failure the previous data is left untouched and FetchError is
        re-raised for the caller to report.
        """
        params = self.filters.api_params()
        logger.info(f"Fetching contract awards {params}")
        try:
            records = self.client.fetch_all(**params)
        except FetchError as e:
            logger.error(f"Error fetching data: {e}")
            raise

        self.raw_records = records
        self.last_fetch_time = datetime.now(timezone.utc)
        self.apply_client_filters()
        return self.filtered_records

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------
    def apply_client_filters(self) -> List[ContractRecord]:
        self.filtered_records = apply_filters(self.raw_records, self.filters)
        return self.filtered_records

    def update_filters(self, **changes: Any) -> FilterState:
        """Replace the filter snapshot.

        Client-local changes re-filter immediately; server-side bounds
        (dates, minimum amount) take effect on the next ``refresh``.
        """
        previous = self.filters
        self.filters = self.filters.replace(**changes)
        if self.filters.needs_refetch(previous):
            logger.info("Date range or minimum amount changed; refresh to re-fetch")
        self.apply_client_filters()
        return self.filters

    def drill_down(
        self, vendor: Optional[str] = None, agency: Optional[str] = None
    ) -> FilterState:
        """Narrow to a clicked node (one name) or matrix cell (both names)."""
        state = self.filters
        if vendor:
            state = state.with_selection(VENDOR, vendor)
        if agency:
            state = state.with_selection(AGENCY, agency)
        self.filters = state
        self.apply_client_filters()
        return self.filters

    def remove_selection(self, kind: str, name: str) -> FilterState:
        self.filters = self.filters.without_selection(kind, name)
        self.apply_client_filters()
        return self.filters

    def apply_preset(self, preset: str, today: Optional[date] = None) -> FilterState:
        self.filters = self.filters.with_preset(
            preset, today=today, default_start=self.config.default_start_date
        )
        return self.filters

    def reset_filters(self, today: Optional[date] = None) -> FilterState:
        self.filters = FilterState.reset(self.config.default_start_date, today)
        self.apply_client_filters()
        return self.filters

    def filter_options(self) -> FilterOptions:
        return get_filter_options(self.raw_records)

    def stats(self) -> Summary:
        """Totals over the unwindowed filtered set."""
        return summarize(self.filtered_records)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def aggregation(self) -> Aggregation:
        return aggregate(self.filtered_records)

    def flow_view(self, grouped: Optional[Aggregation] = None) -> GraphProjection:
        if grouped is None:
            grouped = self.aggregation()
        graph = grouped.to_graph(self.filters.sort_by)
        return graph.windowed(self.config.max_flow_links)

    def matrix_view(self, grouped: Optional[Aggregation] = None) -> MatrixProjection:
        if grouped is None:
            grouped = self.aggregation()
        matrix = grouped.to_matrix(self.filters.sort_by)
        return matrix.windowed(
            self.config.max_matrix_vendors, self.config.max_matrix_agencies
        )

    def switch_view(self, name: str) -> Union[GraphProjection, MatrixProjection]:
        if name not in VIEWS:
            raise ValueError(f"Unknown view: {name!r}")
        self.active_view = name
        return self.render_active_view()

    def render_active_view(self) -> Union[GraphProjection, MatrixProjection]:
        if self.active_view == "matrix":
            return self.matrix_view()
        return self.flow_view()
