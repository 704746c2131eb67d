"""Closed vocabularies shared by the codec, facets and controller.

Labels are translation keys, resolved through :mod:`torrentsearch.i18n`.
"""

from __future__ import annotations

# "null" is a selectable value meaning "content type unknown"; Python None
# means no content-type filter at all.
CONTENT_TYPES: dict[str, str] = {
    "movie": "content_types.singular.movie",
    "tv_show": "content_types.singular.tv_show",
    "music": "content_types.singular.music",
    "ebook": "content_types.singular.ebook",
    "comic": "content_types.singular.comic",
    "audiobook": "content_types.singular.audiobook",
    "game": "content_types.singular.game",
    "software": "content_types.singular.software",
    "xxx": "content_types.singular.xxx",
    "null": "content_types.singular.null",
}

UNKNOWN_CONTENT_TYPE = "null"

VIDEO_CONTENT_TYPES = frozenset({"movie", "tv_show"})

RELEVANCE = "relevance"

ORDER_BY_FIELDS: tuple[str, ...] = (
    RELEVANCE,
    "published_at",
    "updated_at",
    "size",
    "files_count",
    "seeders",
    "leechers",
    "name",
    "info_hash",
)

FILE_TYPES: tuple[str, ...] = (
    "archive",
    "audio",
    "data",
    "document",
    "image",
    "software",
    "subtitles",
    "video",
)


def is_content_type(value: object) -> bool:
    return isinstance(value, str) and value in CONTENT_TYPES


def is_order_by_field(value: object) -> bool:
    return isinstance(value, str) and value in ORDER_BY_FIELDS
