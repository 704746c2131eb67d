"""
URL codec for search state.

Two pure directions:

* :func:`decode_params` turns a query-parameter bag into a patch function
  ``SearchControls -> SearchControls``. Decoding is total: malformed values
  are treated as absent and never raise.
* :func:`encode_controls` turns state back into a parameter bag, omitting
  defaults so shareable URLs stay short.

Parameter values are percent-encoded individually (like JavaScript's
``encodeURIComponent``) before the bag is rendered into a query string,
so values may safely contain commas.

Usage::

    patch = decode_params(parse_query_string("query=matrix&facets=genre"), config)
    controls = patch(controls)
    render_query_string(encode_controls(controls, config))
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import quote, unquote

import httpx

from torrentsearch.config import SearchConfig
from torrentsearch.facets import FACETS
from torrentsearch.models import FacetState, OrderBy, SearchControls, normalize_filter
from torrentsearch.taxonomy import RELEVANCE, is_content_type

logger = logging.getLogger(__name__)

QUERY = "query"
PAGE = "page"
LIMIT = "limit"
CONTENT_TYPE = "content_type"
ACTIVE_FACETS = "facets"

# characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"
_DIGITS_RE = re.compile(r"[0-9]+")

Params = Mapping[str, Any]
Patch = Callable[[SearchControls], SearchControls]


# ---------------------------------------------------------------------------
# Parameter readers
# ---------------------------------------------------------------------------


def _string_param(params: Params, key: str) -> str | None:
    raw = params.get(key)
    # repeated keys arrive as lists and are treated as malformed
    if not isinstance(raw, str):
        if raw is not None:
            logger.debug("Ignoring non-string %s=%r", key, raw)
        return None
    return unquote(raw) or None


def _string_list_param(params: Params, key: str) -> tuple[str, ...] | None:
    raw = _string_param(params, key)
    if raw is None:
        return None
    return normalize_filter(raw.split(","))


def _int_param(params: Params, key: str) -> int | None:
    raw = params.get(key)
    if not isinstance(raw, str) or not _DIGITS_RE.fullmatch(raw):
        if raw is not None:
            logger.debug("Ignoring malformed %s=%r", key, raw)
        return None
    value = int(raw)
    if value < 1:
        logger.debug("Ignoring out-of-range %s=%r", key, raw)
        return None
    return value


def _content_type_param(params: Params, key: str) -> str | None:
    raw = _string_param(params, key)
    if raw is not None and not is_content_type(raw):
        logger.debug("Ignoring unknown %s=%r", key, raw)
        return None
    return raw


# ---------------------------------------------------------------------------
# Ordering heuristic
# ---------------------------------------------------------------------------


def resolve_order_by(
    previous: SearchControls, query_string: str | None, config: SearchConfig
) -> OrderBy:
    """Pick the ordering for a state whose query becomes *query_string*.

    A new non-empty query forces relevance ordering. Clearing the query
    while sorted by relevance falls back to the structural default.
    Anything else keeps the current ordering.
    """
    if query_string:
        if query_string != previous.query_string:
            return config.default_query_order_by
    elif previous.order_by.field == RELEVANCE:
        return config.default_order_by
    return previous.order_by


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


def decode_params(params: Params, config: SearchConfig) -> Patch:
    """Build a patch applying the URL parameters *params* to a previous state."""
    query_string = _string_param(params, QUERY)
    content_type = _content_type_param(params, CONTENT_TYPE)
    limit = _int_param(params, LIMIT)
    page = _int_param(params, PAGE)
    active_facets = _string_list_param(params, ACTIVE_FACETS) or ()
    facet_states = {
        facet.key: FacetState(
            active=facet.key in active_facets,
            filter=_string_list_param(params, facet.key),
        )
        for facet in FACETS
    }

    def patch(controls: SearchControls) -> SearchControls:
        facets = controls.facets
        for facet in FACETS:
            facets = facet.patch_input(facets, facet_states[facet.key])
        return controls.replace(
            query_string=query_string,
            order_by=resolve_order_by(controls, query_string, config),
            content_type=content_type,
            limit=limit if limit is not None else controls.limit,
            page=page if page is not None else controls.page,
            facets=facets,
        )

    return patch


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


def encode_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def encode_controls(controls: SearchControls, config: SearchConfig) -> dict[str, str]:
    """Map state to URL parameters, leaving out default values."""
    params: dict[str, str] = {}
    if controls.query_string:
        params[QUERY] = encode_component(controls.query_string)
    if controls.page != 1:
        params[PAGE] = str(controls.page)
    if controls.limit != config.default_limit:
        params[LIMIT] = str(controls.limit)
    if controls.content_type is not None:
        params[CONTENT_TYPE] = controls.content_type

    active: list[str] = []
    filters: dict[str, str] = {}
    for facet in FACETS:
        state = facet.extract_input(controls.facets)
        if not state.active:
            continue
        active.append(facet.key)
        if state.filter:
            filters[facet.key] = encode_component(",".join(state.filter))
    if active:
        params[ACTIVE_FACETS] = ",".join(active)
    params.update(filters)
    return params


# ---------------------------------------------------------------------------
# Query strings
# ---------------------------------------------------------------------------


def parse_query_string(query: str | bytes) -> dict[str, str | list[str]]:
    """Parse a raw URL query string into a parameter bag.

    Keys that occur more than once map to a list of their values.
    """
    bag: dict[str, str | list[str]] = {}
    for key, value in httpx.QueryParams(query).multi_items():
        if key in bag:
            existing = bag[key]
            bag[key] = [*existing, value] if isinstance(existing, list) else [existing, value]
        else:
            bag[key] = value
    return bag


def render_query_string(params: Mapping[str, str]) -> str:
    return str(httpx.QueryParams(params))
