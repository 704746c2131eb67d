"""
Facet definitions and the facet registry.

Each :class:`FacetDefinition` owns one filterable dimension: it reads and
writes its slice of ``SearchControls.facets``, projects its counts out of
the backend aggregation payload, and labels those counts for display.
The registry :data:`FACETS` is a constant tuple; facets are never
registered at runtime.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from torrentsearch.i18n import Translator
from torrentsearch.models import (
    INACTIVE_FACET,
    AggregationEntry,
    FacetInfo,
    FacetInvariantError,
    FacetMap,
    FacetState,
    LabelledAggregation,
    SearchControls,
)
from torrentsearch.taxonomy import UNKNOWN_CONTENT_TYPE, VIDEO_CONTENT_TYPES

logger = logging.getLogger(__name__)

LabelResolver = Callable[[AggregationEntry, Translator, str | None], str]


# ---------------------------------------------------------------------------
# Label resolvers
# ---------------------------------------------------------------------------


def _backend_label(entry: AggregationEntry, translator: Translator, language: str | None) -> str:
    return entry.label or entry.value or ""


def _raw_value(entry: AggregationEntry, translator: Translator, language: str | None) -> str:
    return entry.value or ""


def _translated(prefix: str) -> LabelResolver:
    def resolve(entry: AggregationEntry, translator: Translator, language: str | None) -> str:
        return translator.translate(f"{prefix}.{entry.value}", language)

    return resolve


def _video_resolution(
    entry: AggregationEntry, translator: Translator, language: str | None
) -> str:
    value = entry.value or ""
    # backend enum values are prefixed so they are valid identifiers: V1080p
    return value[1:] if value.startswith("V") else value


# ---------------------------------------------------------------------------
# Aggregation parsing
# ---------------------------------------------------------------------------


def _parse_entries(key: str, raw: Any) -> tuple[AggregationEntry, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        logger.warning("Aggregation %r is %s, expected list", key, type(raw).__name__)
        return ()

    entries: list[AggregationEntry] = []
    for item in raw:
        if not isinstance(item, dict):
            logger.warning("Skipping non-dict aggregation item for facet %r", key)
            continue
        count = item.get("count")
        if isinstance(count, bool) or not isinstance(count, int):
            logger.warning("Skipping aggregation item with count=%r for facet %r", count, key)
            continue
        value = item.get("value")
        label = item.get("label")
        entries.append(
            AggregationEntry(
                value=None if value is None else str(value),
                count=count,
                label=label if isinstance(label, str) else None,
                is_estimate=bool(item.get("isEstimate", False)),
            )
        )
    return tuple(entries)


# ---------------------------------------------------------------------------
# FacetDefinition
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FacetDefinition:
    """Static descriptor for one facet.

    Args:
        key: URL parameter name and ``SearchControls.facets`` key.
        icon: Material icon name shown next to the facet.
        content_types: When set, the facet is only relevant for these
            content types. Relevance gates visibility, not filtering.
        label_resolver: Turns an aggregation entry into display text.
    """

    key: str
    icon: str
    label_resolver: LabelResolver
    content_types: frozenset[str] | None = None

    def extract_input(self, facets: Mapping[str, FacetState]) -> FacetState:
        try:
            return facets[self.key]
        except KeyError:
            raise FacetInvariantError(
                f"Facet map has no entry for {self.key!r}", missing=[self.key]
            ) from None

    def patch_input(
        self, facets: Mapping[str, FacetState], state: FacetState
    ) -> FacetMap:
        """Return a new map with this facet's slice replaced by *state*."""
        if self.key not in facets:
            raise FacetInvariantError(
                f"Facet map has no entry for {self.key!r}", missing=[self.key]
            )
        patched = dict(facets)
        patched[self.key] = state
        return FacetMap(patched)

    def extract_aggregations(
        self, aggregations: Mapping[str, Any] | None
    ) -> tuple[AggregationEntry, ...]:
        if not aggregations:
            return ()
        return _parse_entries(self.key, aggregations.get(self.key))

    def resolve_label(
        self, entry: AggregationEntry, translator: Translator, language: str | None = None
    ) -> str:
        if entry.value is None:
            return translator.translate("general.unknown", language)
        return self.label_resolver(entry, translator, language)

    def is_relevant(self, content_type: str | None) -> bool:
        if self.content_types is None:
            return True
        return (
            content_type is not None
            and content_type != UNKNOWN_CONTENT_TYPE
            and content_type in self.content_types
        )


FACETS: tuple[FacetDefinition, ...] = (
    FacetDefinition(
        key="genre",
        icon="theater_comedy",
        label_resolver=_backend_label,
        content_types=VIDEO_CONTENT_TYPES,
    ),
    FacetDefinition(
        key="language",
        icon="translate",
        label_resolver=_translated("languages"),
    ),
    FacetDefinition(
        key="fileType",
        icon="file_present",
        label_resolver=_translated("file_types"),
    ),
    FacetDefinition(
        key="torrentSource",
        icon="mediation",
        label_resolver=_backend_label,
    ),
    FacetDefinition(
        key="torrentTag",
        icon="sell",
        label_resolver=_raw_value,
    ),
    FacetDefinition(
        key="videoResolution",
        icon="aspect_ratio",
        label_resolver=_video_resolution,
        content_types=VIDEO_CONTENT_TYPES,
    ),
    FacetDefinition(
        key="videoSource",
        icon="album",
        label_resolver=_raw_value,
        content_types=VIDEO_CONTENT_TYPES,
    ),
)

_FACETS_BY_KEY: dict[str, FacetDefinition] = {f.key: f for f in FACETS}


def facet_keys() -> tuple[str, ...]:
    return tuple(_FACETS_BY_KEY)


def get_facet(key: str) -> FacetDefinition:
    try:
        return _FACETS_BY_KEY[key]
    except KeyError:
        raise FacetInvariantError(f"Unknown facet key {key!r}", unexpected=[key]) from None


def initial_facets() -> dict[str, FacetState]:
    return {f.key: INACTIVE_FACET for f in FACETS}


def check_facet_keys(facets: Mapping[str, FacetState]) -> None:
    """Raise :class:`FacetInvariantError` unless *facets* is a complete, well-typed map.

    The keys must be exactly the registry keys and every slot must hold a
    :class:`FacetState`.
    """
    keys = set(facets)
    expected = set(_FACETS_BY_KEY)
    if keys != expected:
        missing = expected - keys
        unexpected = keys - expected
        raise FacetInvariantError(
            f"Facet keys changed: missing={sorted(missing)} unexpected={sorted(unexpected)}",
            missing=missing,
            unexpected=unexpected,
        )
    malformed = sorted(key for key, state in facets.items() if not isinstance(state, FacetState))
    if malformed:
        kinds = ", ".join(f"{key}={type(facets[key]).__name__}" for key in malformed)
        raise FacetInvariantError(f"Facet slots must hold FacetState: {kinds}")


def describe_facets(
    controls: SearchControls,
    aggregations: Mapping[str, Any] | None,
    translator: Translator,
    facets: Iterable[FacetDefinition] = FACETS,
) -> list[FacetInfo]:
    """Combine state and the latest aggregation payload into display models."""
    infos: list[FacetInfo] = []
    for facet in facets:
        state = facet.extract_input(controls.facets)
        infos.append(
            FacetInfo(
                key=facet.key,
                active=state.active,
                filter=state.filter,
                relevant=facet.is_relevant(controls.content_type),
                aggregations=tuple(
                    LabelledAggregation(
                        entry=entry,
                        label=facet.resolve_label(entry, translator, controls.language),
                    )
                    for entry in facet.extract_aggregations(aggregations)
                ),
            )
        )
    return infos
