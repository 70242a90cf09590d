"""
AwardLens aggregation engine - vendor/agency cross-tabulations

One grouping pass over the filtered records produces an ``Aggregation``
(bucket map plus per-entity totals). The flow graph and the matrix are both
pure views of that object, so the two never disagree on totals for the same
input and sort.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .ranking import DEFAULT_SORT, SortSpec, rank_entities, top_n, window_edges
from .records import ContractRecord

VENDOR = "vendor"
AGENCY = "agency"

PairKey = Tuple[str, str]


@dataclass
class Bucket:
    """Accumulator for one (vendor, agency) pair."""

    vendor: str
    agency: str
    amount: float = 0.0
    count: int = 0
    contracts: List[ContractRecord] = field(default_factory=list)

    def add(self, record: ContractRecord) -> None:
        self.amount += record.contract_amount
        self.count += 1
        self.contracts.append(record)


@dataclass
class EntityTotal:
    """Per-vendor or per-agency rollup."""

    name: str
    kind: str
    amount: float = 0.0
    count: int = 0


@dataclass(frozen=True)
class Summary:
    """Header statistics over the unwindowed filtered set."""

    contracts: int
    total_amount: float

    def to_dict(self) -> Dict[str, Any]:
        return {"contracts": self.contracts, "total_amount": self.total_amount}


# ---------------------------------------------------------------------------
# Graph (flow) projection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GraphNode:
    name: str
    kind: str
    total: float
    count: int

    @property
    def id(self) -> str:
        return f"{self.kind}:{self.name}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.kind,
            "total": self.total,
            "count": self.count,
        }


@dataclass(frozen=True)
class GraphLink:
    source: int
    target: int
    value: float
    count: int
    vendor: str
    agency: str
    contracts: Tuple[ContractRecord, ...] = ()

    def to_dict(self, include_contracts: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "source": self.source,
            "target": self.target,
            "value": self.value,
            "count": self.count,
            "vendor": self.vendor,
            "agency": self.agency,
        }
        if include_contracts:
            data["contracts"] = [c.to_dict() for c in self.contracts]
        return data


@dataclass(frozen=True)
class GraphProjection:
    """Nodes (vendors first, then agencies) and vendor→agency links.

    The flow renderer lays out its left column from the vendor order and its
    right column from the agency order, so node order is significant.
    """

    nodes: Tuple[GraphNode, ...] = ()
    links: Tuple[GraphLink, ...] = ()

    @property
    def vendors(self) -> List[GraphNode]:
        return [n for n in self.nodes if n.kind == VENDOR]

    @property
    def agencies(self) -> List[GraphNode]:
        return [n for n in self.nodes if n.kind == AGENCY]

    @property
    def total_amount(self) -> float:
        return sum(link.value for link in self.links)

    @property
    def is_empty(self) -> bool:
        return not self.nodes or not self.links

    def windowed(self, max_links: Optional[int]) -> "GraphProjection":
        """Keep the heaviest links and only the nodes they reference.

        Surviving nodes keep their relative order and are re-indexed.
        """
        kept = window_edges(self.links, max_links)
        used = {link.source for link in kept} | {link.target for link in kept}

        remap: Dict[int, int] = {}
        nodes: List[GraphNode] = []
        for old_index, node in enumerate(self.nodes):
            if old_index in used:
                remap[old_index] = len(nodes)
                nodes.append(node)

        links = tuple(
            GraphLink(
                source=remap[link.source],
                target=remap[link.target],
                value=link.value,
                count=link.count,
                vendor=link.vendor,
                agency=link.agency,
                contracts=link.contracts,
            )
            for link in kept
        )
        return GraphProjection(nodes=tuple(nodes), links=links)

    def to_dict(self, include_contracts: bool = False) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [link.to_dict(include_contracts) for link in self.links],
        }


# ---------------------------------------------------------------------------
# Matrix projection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MatrixCell:
    amount: float = 0.0
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": self.amount, "count": self.count}


EMPTY_CELL = MatrixCell()


@dataclass(frozen=True)
class MatrixProjection:
    """Dense vendor × agency grid with parallel row/column totals."""

    vendors: Tuple[str, ...] = ()
    agencies: Tuple[str, ...] = ()
    cells: Tuple[Tuple[MatrixCell, ...], ...] = ()
    vendor_totals: Tuple[float, ...] = ()
    agency_totals: Tuple[float, ...] = ()
    vendor_counts: Tuple[int, ...] = ()
    agency_counts: Tuple[int, ...] = ()

    @property
    def grand_total(self) -> float:
        return sum(self.vendor_totals)

    @property
    def max_cell_amount(self) -> float:
        return max((c.amount for row in self.cells for c in row), default=0.0)

    @property
    def is_empty(self) -> bool:
        return not self.vendors or not self.agencies

    def cell(self, vendor: str, agency: str) -> MatrixCell:
        """Look up a cell by names; unknown pairs read as zero."""
        try:
            return self.cells[self.vendors.index(vendor)][self.agencies.index(agency)]
        except ValueError:
            return EMPTY_CELL

    def windowed(
        self, max_vendors: Optional[int], max_agencies: Optional[int]
    ) -> "MatrixProjection":
        """Keep the leading rows/columns; totals stay the full entity totals."""
        rows = len(top_n(self.vendors, max_vendors))
        cols = len(top_n(self.agencies, max_agencies))
        return MatrixProjection(
            vendors=self.vendors[:rows],
            agencies=self.agencies[:cols],
            cells=tuple(row[:cols] for row in self.cells[:rows]),
            vendor_totals=self.vendor_totals[:rows],
            agency_totals=self.agency_totals[:cols],
            vendor_counts=self.vendor_counts[:rows],
            agency_counts=self.agency_counts[:cols],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vendors": list(self.vendors),
            "agencies": list(self.agencies),
            "matrix": [[c.to_dict() for c in row] for row in self.cells],
            "vendorTotals": list(self.vendor_totals),
            "agencyTotals": list(self.agency_totals),
            "vendorCounts": list(self.vendor_counts),
            "agencyCounts": list(self.agency_counts),
            "grandTotal": self.grand_total,
        }


# ---------------------------------------------------------------------------
# Shared grouping
# ---------------------------------------------------------------------------


@dataclass
class Aggregation:
    """Result of a single grouping pass; both projections derive from it."""

    buckets: Dict[PairKey, Bucket] = field(default_factory=dict)
    vendor_totals: Dict[str, EntityTotal] = field(default_factory=dict)
    agency_totals: Dict[str, EntityTotal] = field(default_factory=dict)

    def ranked_vendors(self, sort: SortSpec = DEFAULT_SORT) -> List[EntityTotal]:
        return rank_entities(self.vendor_totals.values(), sort)

    def ranked_agencies(self, sort: SortSpec = DEFAULT_SORT) -> List[EntityTotal]:
        return rank_entities(self.agency_totals.values(), sort)

    def to_graph(self, sort: SortSpec = DEFAULT_SORT) -> GraphProjection:
        nodes: List[GraphNode] = []
        index: Dict[str, int] = {}

        for entity in self.ranked_vendors(sort) + self.ranked_agencies(sort):
            node = GraphNode(
                name=entity.name,
                kind=entity.kind,
                total=entity.amount,
                count=entity.count,
            )
            index[node.id] = len(nodes)
            nodes.append(node)

        links = tuple(
            GraphLink(
                source=index[f"{VENDOR}:{bucket.vendor}"],
                target=index[f"{AGENCY}:{bucket.agency}"],
                value=bucket.amount,
                count=bucket.count,
                vendor=bucket.vendor,
                agency=bucket.agency,
                contracts=tuple(bucket.contracts),
            )
            for bucket in self.buckets.values()
        )
        return GraphProjection(nodes=tuple(nodes), links=links)

    def to_matrix(self, sort: SortSpec = DEFAULT_SORT) -> MatrixProjection:
        vendors = self.ranked_vendors(sort)
        agencies = self.ranked_agencies(sort)

        cells = []
        for vendor in vendors:
            row = []
            for agency in agencies:
                bucket = self.buckets.get((vendor.name, agency.name))
                row.append(
                    MatrixCell(bucket.amount, bucket.count) if bucket else EMPTY_CELL
                )
            cells.append(tuple(row))

        return MatrixProjection(
            vendors=tuple(v.name for v in vendors),
            agencies=tuple(a.name for a in agencies),
            cells=tuple(cells),
            vendor_totals=tuple(v.amount for v in vendors),
            agency_totals=tuple(a.amount for a in agencies),
            vendor_counts=tuple(v.count for v in vendors),
            agency_counts=tuple(a.count for a in agencies),
        )


def aggregate(records: Iterable[ContractRecord]) -> Aggregation:
    """Group records into (vendor, agency) buckets in one pass."""
    result = Aggregation()

    for record in records:
        vendor = record.vendor_key
        agency = record.agency_key
        amount = record.contract_amount

        bucket = result.buckets.get((vendor, agency))
        if bucket is None:
            bucket = result.buckets[(vendor, agency)] = Bucket(vendor, agency)
        bucket.add(record)

        vendor_total = result.vendor_totals.get(vendor)
        if vendor_total is None:
            vendor_total = result.vendor_totals[vendor] = EntityTotal(vendor, VENDOR)
        vendor_total.amount += amount
        vendor_total.count += 1

        agency_total = result.agency_totals.get(agency)
        if agency_total is None:
            agency_total = result.agency_totals[agency] = EntityTotal(agency, AGENCY)
        agency_total.amount += amount
        agency_total.count += 1

    return result


def aggregate_for_flow(
    records: Iterable[ContractRecord], sort: SortSpec = DEFAULT_SORT
) -> GraphProjection:
    return aggregate(records).to_graph(sort)


def aggregate_for_matrix(
    records: Iterable[ContractRecord], sort: SortSpec = DEFAULT_SORT
) -> MatrixProjection:
    return aggregate(records).to_matrix(sort)


def summarize(records: Iterable[ContractRecord]) -> Summary:
    """Contract count and total amount for the header stats."""
    contracts = 0
    total = 0.0
    for record in records:
        contracts += 1
        total += record.contract_amount
    return Summary(contracts=contracts, total_amount=total)
