"""Ranking and windowing policy for vendor/agency entities."""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Sequence, TypeVar, Union

from .utils import name_sort_key

SORT_FIELDS = ("amount", "count", "name")
SORT_DIRECTIONS = ("asc", "desc")
SORT_CHOICES = [
    f"{field}-{direction}" for field in SORT_FIELDS for direction in ("desc", "asc")
]


@dataclass(frozen=True)
class SortSpec:
    """Sort selection, e.g. ``amount-desc``."""

    field: str = "amount"
    direction: str = "desc"

    def __post_init__(self):
        if self.field not in SORT_FIELDS:
            raise ValueError(f"Unknown sort field: {self.field!r}")
        if self.direction not in SORT_DIRECTIONS:
            raise ValueError(f"Unknown sort direction: {self.direction!r}")

    @classmethod
    def parse(cls, value: Union[str, "SortSpec"]) -> "SortSpec":
        """Parse ``"<field>-<direction>"`` into a SortSpec."""
        if isinstance(value, SortSpec):
            return value
        field, sep, direction = (value or "").partition("-")
        if not sep:
            raise ValueError(f"Invalid sort option: {value!r}")
        return cls(field=field, direction=direction)

    @property
    def descending(self) -> bool:
        return self.direction == "desc"

    def __str__(self) -> str:
        return f"{self.field}-{self.direction}"


DEFAULT_SORT = SortSpec()


class Ranked(Protocol):
    name: str
    amount: float
    count: int


T = TypeVar("T", bound=Ranked)
E = TypeVar("E")


def rank_entities(entities: Iterable[T], sort: SortSpec = DEFAULT_SORT) -> List[T]:
    """Order entities by the active sort.

    ``sorted`` is stable in both directions, so ties keep their input order.
    """
    if sort.field == "amount":
        key = lambda e: e.amount  # noqa: E731
    elif sort.field == "count":
        key = lambda e: e.count  # noqa: E731
    else:
        key = lambda e: name_sort_key(e.name)  # noqa: E731
    return sorted(entities, key=key, reverse=sort.descending)


def top_n(items: Sequence[E], n: Optional[int]) -> List[E]:
    """Keep the first ``n`` items; None or n <= 0 keeps everything."""
    if n is None or n <= 0:
        return list(items)
    return list(items[:n])


def window_edges(edges: Iterable[E], max_edges: Optional[int]) -> List[E]:
    """Keep the heaviest edges by descending value, regardless of user sort."""
    return top_n(sorted(edges, key=lambda edge: edge.value, reverse=True), max_edges)
