"""
Data models and exception hierarchy for the torrent search state engine.

All state handed to consumers is a frozen dataclass. Every new state is
built from the previous one with :func:`dataclasses.replace`; nothing is
mutated in place, so snapshots can be shared with any number of observers.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import asdict, dataclass, field, replace
from typing import Any

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class TorrentSearchError(Exception):
    """Base exception for all torrentsearch errors."""


class FacetInvariantError(TorrentSearchError):
    """A patch dropped, added, or addressed an unknown facet key.

    This is a programming error: the facet key set is fixed by the registry.
    """

    def __init__(self, message: str, missing: Iterable[str] = (), unexpected: Iterable[str] = ()):
        self.missing = tuple(sorted(missing))
        self.unexpected = tuple(sorted(unexpected))
        super().__init__(message)


class ControllerClosedError(TorrentSearchError):
    """The controller was torn down and no longer accepts patches."""


# ---------------------------------------------------------------------------
# Normalization helpers
# ---------------------------------------------------------------------------


def normalize_filter(values: Iterable[str] | None) -> tuple[str, ...] | None:
    """Trim, drop empties, dedupe and sort filter values.

    Returns ``None`` instead of an empty tuple; an empty filter is never
    represented. Matching is case-sensitive.
    """
    if values is None:
        return None
    if isinstance(values, str):
        values = (values,)
    cleaned = {v.strip() for v in values if isinstance(v, str)}
    cleaned.discard("")
    return tuple(sorted(cleaned)) or None


# ---------------------------------------------------------------------------
# State models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FacetState:
    """Activation and filter state of one facet.

    ``filter`` is normalized on construction, so every instance holds a
    sorted, deduplicated tuple or ``None``.
    """

    active: bool = False
    filter: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "filter", normalize_filter(self.filter))


INACTIVE_FACET = FacetState()


class FacetMap(Mapping[str, Any]):
    """Read-only, hashable map from facet key to its slot.

    Snapshots share their facet maps with every observer, so the map
    offers no way to change a slot in place. Build a new one instead
    (see :meth:`~torrentsearch.facets.FacetDefinition.patch_input`).
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | Iterable[tuple[str, Any]] = ()) -> None:
        self._data = dict(data)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __hash__(self) -> int:
        return hash(frozenset(self._data.items()))

    def __repr__(self) -> str:
        return f"FacetMap({self._data!r})"


@dataclass(frozen=True)
class OrderBy:
    """Sort order: a field from the order-by taxonomy and a direction."""

    field: str
    descending: bool = True


@dataclass(frozen=True)
class SearchControls:
    """The canonical search state.

    Args:
        language: Active UI language code.
        query_string: Free-text query, ``None`` when there is no query.
        page: 1-based page number.
        limit: Page size.
        content_type: A key of the content-type taxonomy, or ``None`` for any.
        order_by: Current sort.
        facets: One :class:`FacetState` per registered facet key.
    """

    language: str
    page: int
    limit: int
    order_by: OrderBy
    facets: Mapping[str, FacetState]
    query_string: str | None = None
    content_type: str | None = None

    def __post_init__(self) -> None:
        errors: list[str] = []
        if isinstance(self.page, bool) or not isinstance(self.page, int) or self.page < 1:
            errors.append(f"page must be an integer >= 1, got {self.page!r}")
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit < 1:
            errors.append(f"limit must be an integer >= 1, got {self.limit!r}")
        if errors:
            raise ValueError("Invalid search controls: " + "; ".join(errors))

        if not self.query_string:
            object.__setattr__(self, "query_string", None)
        if not isinstance(self.facets, FacetMap):
            object.__setattr__(self, "facets", FacetMap(self.facets))

    def facet(self, key: str) -> FacetState:
        try:
            return self.facets[key]
        except KeyError:
            raise FacetInvariantError(f"Unknown facet key {key!r}", unexpected=[key]) from None

    def replace(self, **changes: Any) -> SearchControls:
        """Return a copy with *changes* applied."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict (e.g. for JSON output)."""
        return {
            "language": self.language,
            "page": self.page,
            "limit": self.limit,
            "order_by": asdict(self.order_by),
            "facets": {key: asdict(state) for key, state in self.facets.items()},
            "query_string": self.query_string,
            "content_type": self.content_type,
        }


# ---------------------------------------------------------------------------
# Aggregations and display models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AggregationEntry:
    """One backend-computed count for a facet value."""

    value: str | None
    count: int
    label: str | None = None
    is_estimate: bool = False


@dataclass(frozen=True)
class LabelledAggregation:
    entry: AggregationEntry
    label: str


@dataclass(frozen=True)
class FacetInfo:
    """Display model for one facet: state, relevance and labelled counts."""

    key: str
    active: bool
    filter: tuple[str, ...] | None
    relevant: bool
    aggregations: tuple[LabelledAggregation, ...] = ()


# ---------------------------------------------------------------------------
# Backend parameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FacetParams:
    aggregate: bool = False
    filter: tuple[str, ...] | None = None


@dataclass(frozen=True)
class SearchParams:
    """The minimal parameter set the fetch layer needs.

    Language is deliberately absent: switching language changes labels,
    not results.
    """

    query_string: str | None
    limit: int
    page: int
    content_type: str | None
    order_by: OrderBy
    facets: Mapping[str, FacetParams] = field(default_factory=FacetMap)

    def __post_init__(self) -> None:
        if not isinstance(self.facets, FacetMap):
            object.__setattr__(self, "facets", FacetMap(self.facets))

    def to_variables(self) -> dict[str, Any]:
        """Build GraphQL variables for the torrent content search query."""
        facets: dict[str, Any] = {
            "contentType": {
                "aggregate": True,
                "filter": _content_type_filter(self.content_type),
            }
        }
        for key, params in self.facets.items():
            facets[key] = {
                "aggregate": params.aggregate,
                "filter": list(params.filter) if params.filter else None,
            }
        return {
            "input": {
                "queryString": self.query_string,
                "limit": self.limit,
                "page": self.page,
                "totalCount": True,
                "hasNextPage": True,
                "orderBy": [
                    {"field": self.order_by.field, "descending": self.order_by.descending}
                ],
                "facets": facets,
            }
        }


def _content_type_filter(content_type: str | None) -> list[str | None] | None:
    if content_type is None:
        return None
    # "null" selects items whose content type is unknown
    return [None if content_type == "null" else content_type]
