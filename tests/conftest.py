"""Pytest configuration and fixtures."""

from typing import Any, Dict, Generator, List

import pytest
import requests_mock

from awardlens.config import Settings
from awardlens.records import ContractRecord, normalize_records
from awardlens.soda_client import SodaClient
from tests.factories import SODA_URL, make_row


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings isolated from the environment."""
    return Settings(
        _env_file=None,
        soda_base_url=SODA_URL,
        page_size=10_000,
        max_records=100_000,
        log_level="DEBUG",
    )


@pytest.fixture
def soda_mock() -> Generator[requests_mock.Mocker, None, None]:
    """Mock the SODA endpoint."""
    with requests_mock.Mocker() as m:
        yield m


@pytest.fixture
def soda_client(test_settings: Settings) -> SodaClient:
    return SodaClient(test_settings)


@pytest.fixture
def scenario_records() -> List[ContractRecord]:
    """A→X 100, A→Y 50, B→X 25."""
    return normalize_records(
        [
            make_row("A", "X", "100"),
            make_row("A", "Y", "50"),
            make_row("B", "X", "25"),
        ]
    )


@pytest.fixture
def sample_rows() -> List[Dict[str, Any]]:
    """A realistic mix of rows, including malformed values."""
    return [
        make_row(
            "Acme Corp",
            "Department of Sanitation",
            "250000.50",
            other_info_1="Emergency procurement",
            other_info_2="  ",
            other_info_3="Borough: Queens",
        ),
        make_row("Acme Corp", "Department of Transportation", "1200"),
        make_row(
            "Bright Futures LLC",
            "Department of Education",
            "98000",
            short_title="After-school tutoring",
        ),
        make_row("Bright Futures LLC", "Department of Sanitation", "not-a-number"),
        make_row(None, None, "500", short_title="Unlabelled award"),
        make_row("Ćity Builders", "Department of Transportation", "75000"),
    ]


@pytest.fixture
def sample_records(sample_rows: List[Dict[str, Any]]) -> List[ContractRecord]:
    return normalize_records(sample_rows)
