"""Tests for awardlens/aggregation.py - shared grouping and both projections."""

import math

import pytest

from awardlens.aggregation import (
    AGENCY,
    VENDOR,
    MatrixCell,
    aggregate,
    aggregate_for_flow,
    aggregate_for_matrix,
    summarize,
)
from awardlens.ranking import SortSpec
from awardlens.records import normalize_records
from awardlens.utils import name_sort_key
from tests.factories import make_row

AMOUNT_DESC = SortSpec("amount", "desc")


def _grid_records(vendors: int, agencies: int):
    rows = []
    for v in range(vendors):
        for a in range(agencies):
            amount = str(v * 100 + a + 1)
            rows.append(make_row(f"Vendor {v:02d}", f"Agency {a:02d}", amount))
    return normalize_records(rows)


class TestScenario:
    """A→X 100, A→Y 50, B→X 25."""

    def test_graph_projection(self, scenario_records) -> None:
        graph = aggregate(scenario_records).to_graph(AMOUNT_DESC)

        assert [(n.name, n.kind, n.total) for n in graph.nodes] == [
            ("A", VENDOR, 150.0),
            ("B", VENDOR, 25.0),
            ("X", AGENCY, 125.0),
            ("Y", AGENCY, 50.0),
        ]
        assert graph.nodes[0].id == "vendor:A"
        assert graph.nodes[2].id == "agency:X"
        edges = [
            (link.source, link.target, link.value, link.count) for link in graph.links
        ]
        assert edges == [(0, 2, 100.0, 1), (0, 3, 50.0, 1), (1, 2, 25.0, 1)]
        assert graph.total_amount == 175.0

    def test_matrix_projection(self, scenario_records) -> None:
        matrix = aggregate(scenario_records).to_matrix(AMOUNT_DESC)

        assert matrix.vendors == ("A", "B")
        assert matrix.agencies == ("X", "Y")
        assert matrix.cell("A", "X") == MatrixCell(100.0, 1)
        assert matrix.cell("A", "Y") == MatrixCell(50.0, 1)
        assert matrix.cell("B", "X") == MatrixCell(25.0, 1)
        assert matrix.cell("B", "Y") == MatrixCell(0.0, 0)
        assert matrix.vendor_totals == (150.0, 25.0)
        assert matrix.agency_totals == (125.0, 50.0)
        assert matrix.grand_total == 175.0
        assert matrix.max_cell_amount == 100.0

    def test_count_sort(self, scenario_records) -> None:
        matrix = aggregate_for_matrix(scenario_records, SortSpec("count", "asc"))
        assert matrix.vendors == ("B", "A")
        assert matrix.agencies == ("Y", "X")
        assert matrix.vendor_counts == (1, 2)
        assert matrix.cells[0][0] == MatrixCell(0.0, 0)

    def test_unknown_cell_lookup(self, scenario_records) -> None:
        matrix = aggregate_for_matrix(scenario_records)
        assert matrix.cell("Nobody", "X") == MatrixCell()


def test_unknown_names_bucketed_together() -> None:
    records = normalize_records(
        [make_row(None, None, "40"), make_row("", None, "60"), make_row("A", "X", "5")]
    )
    grouped = aggregate(records)

    bucket = grouped.buckets[("Unknown Vendor", "Unknown Agency")]
    assert bucket.amount == 100.0
    assert bucket.count == 2
    assert len(bucket.contracts) == 2
    assert grouped.vendor_totals["Unknown Vendor"].amount == 100.0
    assert grouped.agency_totals["Unknown Agency"].count == 2

    matrix = grouped.to_matrix(AMOUNT_DESC)
    assert matrix.vendors[0] == "Unknown Vendor"
    assert matrix.agencies[0] == "Unknown Agency"


def test_links_carry_contributing_records(sample_records) -> None:
    graph = aggregate_for_flow(sample_records)
    pair = ("Acme Corp", "Department of Sanitation")
    link = next(link for link in graph.links if (link.vendor, link.agency) == pair)
    assert link.count == 1
    info = link.contracts[0].additional_info
    assert info == "Emergency procurement | Borough: Queens"
    assert "contracts" in link.to_dict(include_contracts=True)
    assert "contracts" not in link.to_dict()


@pytest.mark.parametrize("sort", ["amount-desc", "count-asc", "name-asc", "name-desc"])
def test_graph_and_matrix_agree(sample_records, sort) -> None:
    """Totals match across both views, and match the input sum."""
    spec = SortSpec.parse(sort)
    grouped = aggregate(sample_records)
    graph = grouped.to_graph(spec)
    matrix = grouped.to_matrix(spec)

    input_total = sum(r.contract_amount for r in sample_records)
    cell_total = sum(c.amount for row in matrix.cells for c in row)

    assert math.isclose(graph.total_amount, input_total)
    assert math.isclose(cell_total, input_total)
    assert math.isclose(matrix.grand_total, input_total)
    assert [n.name for n in graph.vendors] == list(matrix.vendors)
    assert [n.name for n in graph.agencies] == list(matrix.agencies)
    assert [n.total for n in graph.vendors] == list(matrix.vendor_totals)
    assert sum(c.count for row in matrix.cells for c in row) == len(sample_records)


def test_entity_counts_match_distinct_names(sample_records) -> None:
    graph = aggregate_for_flow(sample_records)
    vendor_keys = {r.vendor_key for r in sample_records}
    agency_keys = {r.agency_key for r in sample_records}
    assert len(graph.vendors) == len(vendor_keys)
    assert len(graph.agencies) == len(agency_keys)


def test_idempotent(sample_records) -> None:
    spec = SortSpec("name", "asc")
    assert aggregate_for_flow(sample_records, spec) == aggregate_for_flow(
        sample_records, spec
    )
    assert aggregate_for_matrix(sample_records, spec) == aggregate_for_matrix(
        sample_records, spec
    )


def test_name_asc_is_strictly_ordered(sample_records) -> None:
    matrix = aggregate_for_matrix(sample_records, SortSpec("name", "asc"))
    keys = [name_sort_key(v) for v in matrix.vendors]
    assert all(a < b for a, b in zip(keys, keys[1:]))


def test_empty_input() -> None:
    grouped = aggregate([])
    graph = grouped.to_graph()
    matrix = grouped.to_matrix()

    assert graph.nodes == () and graph.links == ()
    assert graph.is_empty
    assert matrix.vendors == () and matrix.cells == ()
    assert matrix.grand_total == 0
    assert matrix.is_empty
    assert summarize([]).contracts == 0


class TestWindowing:
    def test_graph_window_caps_links(self) -> None:
        records = _grid_records(15, 10)
        graph = aggregate_for_flow(records, SortSpec("name", "asc"))
        assert len(graph.links) == 150

        windowed = graph.windowed(100)
        assert len(windowed.links) == 100

        kept_values = sorted((link.value for link in windowed.links), reverse=True)
        all_values = sorted((link.value for link in graph.links), reverse=True)
        assert kept_values == all_values[:100]

        referenced = set()
        for link in windowed.links:
            referenced.update((link.source, link.target))
        assert referenced == set(range(len(windowed.nodes)))
        for link in windowed.links:
            assert windowed.nodes[link.source].name == link.vendor
            assert windowed.nodes[link.target].name == link.agency

    def test_graph_window_keeps_node_order(self) -> None:
        records = _grid_records(15, 10)
        graph = aggregate_for_flow(records, SortSpec("name", "asc"))
        windowed = graph.windowed(100)
        names = [n.name for n in windowed.vendors]
        assert names == sorted(names)
        assert all(n.kind == VENDOR for n in windowed.nodes[: len(names)])

    def test_graph_window_does_not_touch_totals(self) -> None:
        records = _grid_records(15, 10)
        graph = aggregate_for_flow(records)
        windowed = graph.windowed(10)
        full_totals = {n.id: n.total for n in graph.nodes}
        assert all(full_totals[n.id] == n.total for n in windowed.nodes)
        assert math.isclose(summarize(records).total_amount, graph.total_amount)

    def test_matrix_window(self) -> None:
        records = _grid_records(60, 40)
        matrix = aggregate_for_matrix(records)
        windowed = matrix.windowed(50, 30)

        assert len(windowed.vendors) == 50
        assert len(windowed.agencies) == 30
        assert all(len(row) == 30 for row in windowed.cells)
        assert windowed.vendors == matrix.vendors[:50]
        assert windowed.vendor_totals == matrix.vendor_totals[:50]
        assert windowed.cells[3][7] == matrix.cells[3][7]

    def test_window_larger_than_data(self, scenario_records) -> None:
        matrix = aggregate_for_matrix(scenario_records)
        assert matrix.windowed(50, 30) == matrix
        graph = aggregate_for_flow(scenario_records)
        assert graph.windowed(100).links == graph.links


def test_to_dict_shapes(scenario_records) -> None:
    grouped = aggregate(scenario_records)
    graph = grouped.to_graph().to_dict()
    matrix = grouped.to_matrix().to_dict()

    assert graph["nodes"][0] == {
        "id": "vendor:A",
        "name": "A",
        "type": "vendor",
        "total": 150.0,
        "count": 2,
    }
    assert graph["links"][0]["source"] == 0
    assert matrix["matrix"][1][1] == {"amount": 0.0, "count": 0}
    assert matrix["grandTotal"] == 175.0
