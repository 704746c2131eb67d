"""Tests for torrentsearch.facets -- registry, projections, aggregations and labels."""

from __future__ import annotations

import logging

import pytest

from torrentsearch.facets import (
    FACETS,
    check_facet_keys,
    describe_facets,
    facet_keys,
    get_facet,
    initial_facets,
)
from torrentsearch.i18n import CatalogTranslator
from torrentsearch.models import (
    AggregationEntry,
    FacetInvariantError,
    FacetMap,
    FacetState,
    SearchControls,
)

AGGREGATIONS = {
    "genre": [
        {"value": "action", "label": "Action", "count": 12, "isEstimate": False},
        {"value": "drama", "count": 3},
    ],
    "language": [
        {"value": "fr", "count": 5},
        {"value": None, "count": 2},
    ],
    "videoResolution": [{"value": "V1080p", "count": 9, "isEstimate": True}],
    "torrentTag": ["not-a-dict", {"value": "hd", "count": "many"}, {"value": "x", "count": 1}],
}


class TestRegistry:
    def test_keys_in_order(self) -> None:
        assert facet_keys() == (
            "genre",
            "language",
            "fileType",
            "torrentSource",
            "torrentTag",
            "videoResolution",
            "videoSource",
        )

    def test_initial_facets_all_inactive(self) -> None:
        assert all(state == FacetState() for state in initial_facets().values())
        assert tuple(initial_facets()) == facet_keys()

    def test_get_facet(self) -> None:
        assert get_facet("genre").key == "genre"

    def test_get_unknown_facet(self) -> None:
        with pytest.raises(FacetInvariantError):
            get_facet("codec")

    def test_check_keys_accepts_registry(self) -> None:
        check_facet_keys(initial_facets())

    def test_check_keys_rejects_missing(self) -> None:
        facets = initial_facets()
        del facets["genre"]
        with pytest.raises(FacetInvariantError) as exc_info:
            check_facet_keys(facets)
        assert exc_info.value.missing == ("genre",)

    def test_check_keys_rejects_extra(self) -> None:
        facets = {**initial_facets(), "codec": FacetState()}
        with pytest.raises(FacetInvariantError) as exc_info:
            check_facet_keys(facets)
        assert exc_info.value.unexpected == ("codec",)

    def test_check_keys_rejects_non_state_slot(self) -> None:
        facets = {**initial_facets(), "language": ("en",)}
        with pytest.raises(FacetInvariantError, match="language=tuple"):
            check_facet_keys(facets)


class TestInputProjection:
    @pytest.mark.parametrize("facet", FACETS, ids=lambda f: f.key)
    def test_patch_of_extract_is_identity(self, facet) -> None:
        facets = {**initial_facets(), facet.key: FacetState(True, ("b", "a"))}
        assert facet.patch_input(facets, facet.extract_input(facets)) == facets

    def test_patch_returns_new_map(self) -> None:
        facet = get_facet("genre")
        facets = initial_facets()
        patched = facet.patch_input(facets, FacetState(active=True))
        assert patched is not facets
        assert isinstance(patched, FacetMap)
        assert facets["genre"].active is False
        assert patched["genre"].active is True

    def test_patch_normalizes_filter(self) -> None:
        facet = get_facet("fileType")
        patched = facet.patch_input(
            initial_facets(), FacetState(True, ("video", "audio", "video"))
        )
        assert facet.extract_input(patched).filter == ("audio", "video")

    def test_patch_leaves_other_facets(self) -> None:
        facets = {**initial_facets(), "language": FacetState(True, ("en",))}
        patched = get_facet("genre").patch_input(facets, FacetState(True))
        assert patched["language"] == FacetState(True, ("en",))

    def test_extract_missing_key_raises(self) -> None:
        with pytest.raises(FacetInvariantError):
            get_facet("genre").extract_input({})

    def test_patch_missing_key_raises(self) -> None:
        with pytest.raises(FacetInvariantError):
            get_facet("genre").patch_input({}, FacetState())


class TestRelevance:
    def test_video_facet_relevant_for_movie(self) -> None:
        assert get_facet("genre").is_relevant("movie") is True

    def test_video_facet_not_relevant_for_any(self) -> None:
        assert get_facet("genre").is_relevant(None) is False

    def test_video_facet_not_relevant_for_other_type(self) -> None:
        assert get_facet("genre").is_relevant("music") is False
        assert get_facet("genre").is_relevant("tv") is False

    def test_video_facet_not_relevant_for_unknown_type(self) -> None:
        assert get_facet("videoResolution").is_relevant("null") is False

    def test_unrestricted_facet_always_relevant(self) -> None:
        assert get_facet("language").is_relevant(None) is True
        assert get_facet("language").is_relevant("null") is True


class TestAggregations:
    def test_extracts_entries(self) -> None:
        entries = get_facet("genre").extract_aggregations(AGGREGATIONS)
        assert entries == (
            AggregationEntry(value="action", count=12, label="Action"),
            AggregationEntry(value="drama", count=3),
        )

    def test_estimate_flag(self) -> None:
        (entry,) = get_facet("videoResolution").extract_aggregations(AGGREGATIONS)
        assert entry.is_estimate is True

    def test_missing_facet_is_empty(self) -> None:
        assert get_facet("videoSource").extract_aggregations(AGGREGATIONS) == ()
        assert get_facet("videoSource").extract_aggregations(None) == ()

    def test_skips_malformed_items(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="torrentsearch.facets"):
            entries = get_facet("torrentTag").extract_aggregations(AGGREGATIONS)
        assert entries == (AggregationEntry(value="x", count=1),)
        assert "non-dict" in caplog.text

    def test_non_list_payload_is_empty(self) -> None:
        assert get_facet("genre").extract_aggregations({"genre": {"value": "x"}}) == ()


class TestLabels:
    def test_backend_label(self, translator: CatalogTranslator) -> None:
        facet = get_facet("genre")
        assert facet.resolve_label(AggregationEntry("action", 1, "Action"), translator) == "Action"
        assert facet.resolve_label(AggregationEntry("drama", 1), translator) == "drama"

    def test_translated_label(self, translator: CatalogTranslator) -> None:
        facet = get_facet("language")
        assert facet.resolve_label(AggregationEntry("fr", 1), translator) == "French"
        assert facet.resolve_label(AggregationEntry("fr", 1), translator, "fr") == "Français"

    def test_missing_translation_returns_key(self, translator: CatalogTranslator) -> None:
        label = get_facet("fileType").resolve_label(AggregationEntry("archive", 1), translator)
        assert label == "file_types.archive"

    def test_video_resolution_strips_prefix(self, translator: CatalogTranslator) -> None:
        facet = get_facet("videoResolution")
        assert facet.resolve_label(AggregationEntry("V1080p", 1), translator) == "1080p"

    def test_null_value_is_unknown(self, translator: CatalogTranslator) -> None:
        facet = get_facet("language")
        assert facet.resolve_label(AggregationEntry(None, 1), translator) == "Unknown"
        assert facet.resolve_label(AggregationEntry(None, 1), translator, "fr") == "Inconnu"


class TestDescribeFacets:
    def test_combines_state_and_aggregations(
        self, controls: SearchControls, translator: CatalogTranslator
    ) -> None:
        controls = controls.replace(
            content_type="movie",
            language="fr",
            facets=get_facet("language").patch_input(
                controls.facets, FacetState(True, ("fr",))
            ),
        )
        infos = {info.key: info for info in describe_facets(controls, AGGREGATIONS, translator)}

        assert list(infos) == list(facet_keys())
        assert infos["language"].active is True
        assert infos["language"].filter == ("fr",)
        assert [a.label for a in infos["language"].aggregations] == ["Français", "Inconnu"]
        assert infos["genre"].relevant is True

    def test_irrelevant_facet_keeps_state(
        self, controls: SearchControls, translator: CatalogTranslator
    ) -> None:
        controls = controls.replace(
            content_type="music",
            facets=get_facet("genre").patch_input(
                controls.facets, FacetState(True, ("action",))
            ),
        )
        genre = describe_facets(controls, None, translator)[0]
        assert genre.relevant is False
        assert genre.active is True
        assert genre.filter == ("action",)
        assert genre.aggregations == ()
