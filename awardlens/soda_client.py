"""NYC Open Data (SODA) client for contract award records."""

import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from .config import Settings, settings as default_settings
from .records import ContractRecord, normalize_records

logger = logging.getLogger(__name__)

SELECT_FIELDS = [
    "request_id",
    "start_date",
    "end_date",
    "agency_name",
    "vendor_name",
    "vendor_address",
    "contract_amount",
    "short_title",
    "type_of_notice_description",
    "category_description",
    "selection_method_description",
    "pin",
    "other_info_1",
    "other_info_2",
    "other_info_3",
]


class FetchError(Exception):
    """Raised when contract data cannot be fetched from the data source."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _format_number(value: float) -> str:
    """Render a SoQL numeric literal (``0`` rather than ``0.0``)."""
    if not math.isfinite(float(value)):
        raise ValueError(f"Invalid amount: {value!r}")
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def _format_date(value: str) -> str:
    """Render a SoQL date literal; only strict YYYY-MM-DD is accepted."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date().isoformat()
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value!r}") from e


def build_where_clause(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    min_amount: float = 0,
) -> str:
    conditions = []
    if start_date:
        conditions.append(f"start_date >= '{_format_date(start_date)}'")
    if end_date:
        conditions.append(f"start_date <= '{_format_date(end_date)}'")
    conditions.append(f"contract_amount > {_format_number(min_amount or 0)}")
    # Awards only
    conditions.append("vendor_name IS NOT NULL")
    return " AND ".join(conditions)


def build_query_params(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    min_amount: float = 0,
    limit: int = 10_000,
    offset: int = 0,
) -> Dict[str, str]:
    """Build SoQL query parameters for one page."""
    return {
        "$where": build_where_clause(start_date, end_date, min_amount),
        "$select": ",".join(SELECT_FIELDS),
        "$order": "contract_amount DESC",
        "$limit": str(limit),
        "$offset": str(offset),
    }


class SodaClient:
    """Paginated reader for the contract awards resource."""

    def __init__(
        self,
        config: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config or default_settings
        self.base_url = self.config.soda_base_url
        self.page_size = self.config.page_size
        self.max_records = self.config.max_records
        self.timeout = self.config.http_timeout_seconds
        self.session = session or requests.Session()
        self.session.headers.update(self.config.request_headers())

    def fetch_page(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        min_amount: float = 0,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Fetch one page of raw rows.

        Raises:
            FetchError: On network errors, non-2xx statuses or a bad payload
        """
        params = build_query_params(
            start_date=start_date,
            end_date=end_date,
            min_amount=min_amount,
            limit=limit or self.page_size,
            offset=offset,
        )
        logger.debug(f"Requesting {self.base_url} offset={offset}")

        try:
            response = self.session.get(
                self.base_url, params=params, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"HTTP error fetching contracts at offset {offset}: {e}")
            raise FetchError(f"HTTP error! status: {status}", status) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed fetching contracts at offset {offset}: {e}")
            raise FetchError(f"Request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise FetchError("Invalid JSON in contracts response") from e

        if not isinstance(data, list):
            raise FetchError(
                f"Unexpected response shape: expected list, got {type(data).__name__}"
            )
        return data

    def fetch_all_rows(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        min_amount: float = 0,
    ) -> List[Dict[str, Any]]:
        """Fetch every page until a short page or the safety cap."""
        rows: List[Dict[str, Any]] = []
        offset = 0

        while True:
            page = self.fetch_page(
                start_date=start_date,
                end_date=end_date,
                min_amount=min_amount,
                limit=self.page_size,
                offset=offset,
            )
            if not page:
                break

            rows.extend(page)
            offset += self.page_size
            logger.info(f"Fetched page of {len(page)} rows ({len(rows):,} total)")

            if len(rows) >= self.max_records:
                logger.warning(
                    f"Reached safety limit of {self.max_records:,} records"
                )
                del rows[self.max_records :]
                break

            if len(page) < self.page_size:
                break

        return rows

    def fetch_all(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        min_amount: float = 0,
    ) -> List[ContractRecord]:
        """Fetch and normalize all matching contract records.

        Raises:
            FetchError: If any page fails; no partial data is returned
        """
        rows = self.fetch_all_rows(
            start_date=start_date, end_date=end_date, min_amount=min_amount
        )
        records = normalize_records(rows)
        logger.info(f"Fetched {len(records)} records")
        return records

    def close(self) -> None:
        self.session.close()
