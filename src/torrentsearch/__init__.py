"""torrentsearch: query state, facets and URL synchronization for torrent search."""

from torrentsearch.codec import (
    decode_params,
    encode_controls,
    parse_query_string,
    render_query_string,
    resolve_order_by,
)
from torrentsearch.config import SearchConfig
from torrentsearch.controller import SearchController, initial_controls, to_params
from torrentsearch.facets import FACETS, FacetDefinition, describe_facets, facet_keys, get_facet
from torrentsearch.i18n import CatalogTranslator, Translator
from torrentsearch.logging import (
    bind_navigation_id,
    configure_logging,
    get_navigation_id,
    url_param_diff,
)
from torrentsearch.models import (
    AggregationEntry,
    ControllerClosedError,
    FacetInfo,
    FacetInvariantError,
    FacetMap,
    FacetParams,
    FacetState,
    OrderBy,
    SearchControls,
    SearchParams,
    TorrentSearchError,
)
from torrentsearch.stream import Subscription, ValueStream
from torrentsearch.sync import UrlSync

__version__ = "0.1.0"

__all__ = [
    "FACETS",
    "AggregationEntry",
    "CatalogTranslator",
    "ControllerClosedError",
    "FacetDefinition",
    "FacetInfo",
    "FacetInvariantError",
    "FacetMap",
    "FacetParams",
    "FacetState",
    "OrderBy",
    "SearchConfig",
    "SearchController",
    "SearchControls",
    "SearchParams",
    "Subscription",
    "TorrentSearchError",
    "Translator",
    "UrlSync",
    "ValueStream",
    "__version__",
    "bind_navigation_id",
    "configure_logging",
    "decode_params",
    "describe_facets",
    "encode_controls",
    "facet_keys",
    "get_facet",
    "get_navigation_id",
    "initial_controls",
    "parse_query_string",
    "render_query_string",
    "resolve_order_by",
    "to_params",
    "url_param_diff",
]
