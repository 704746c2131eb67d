"""
Search controller: the single owner of search state.

The controller holds one :class:`~torrentsearch.models.SearchControls`
value. Every transition is a patch function applied atomically through
:meth:`SearchController.update`; the result is published on the
``controls`` stream. The ``params`` stream is the de-duplicated backend
view of the same state.

Usage::

    controller = SearchController(config=SearchConfig(), language="fr")
    controller.params.subscribe(fetch)
    controller.update(decode_params(url_params, controller.config))
    controller.activate_filter("genre", "action")
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from torrentsearch.codec import resolve_order_by
from torrentsearch.config import SearchConfig
from torrentsearch.facets import FACETS, check_facet_keys, get_facet, initial_facets
from torrentsearch.models import (
    ControllerClosedError,
    FacetParams,
    FacetState,
    OrderBy,
    SearchControls,
    SearchParams,
    TorrentSearchError,
)
from torrentsearch.stream import ValueStream
from torrentsearch.taxonomy import is_content_type, is_order_by_field

logger = logging.getLogger(__name__)

Patch = Callable[[SearchControls], SearchControls]


def initial_controls(config: SearchConfig, language: str | None = None) -> SearchControls:
    """Build the state of a fresh search in *language*."""
    return SearchControls(
        language=language or config.default_language,
        page=1,
        limit=config.default_limit,
        order_by=config.default_order_by,
        facets=initial_facets(),
    )


def to_params(controls: SearchControls) -> SearchParams:
    """Project state onto the parameters the fetch layer needs."""
    facets: dict[str, FacetParams] = {}
    for facet in FACETS:
        state = facet.extract_input(controls.facets)
        facets[facet.key] = FacetParams(
            aggregate=state.active,
            filter=state.filter if state.active else None,
        )
    return SearchParams(
        query_string=controls.query_string,
        limit=controls.limit,
        page=controls.page,
        content_type=controls.content_type,
        order_by=controls.order_by,
        facets=facets,
    )


class SearchController:
    """Owns the search state and publishes every transition.

    A patch that returns a value equal to the current one is still
    published on ``controls``; ``params`` only emits when the backend view
    actually changes.
    """

    def __init__(
        self,
        config: SearchConfig | None = None,
        *,
        language: str | None = None,
        initial: SearchControls | None = None,
    ) -> None:
        self._config = config or SearchConfig.from_env()
        start = initial or initial_controls(self._config, language)
        check_facet_keys(start.facets)

        self._lock = threading.RLock()
        self._closed = False
        self._controls: ValueStream[SearchControls] = ValueStream(start)
        self._params: ValueStream[SearchParams] = self._controls.map(to_params).distinct()

        logger.debug(
            "SearchController created language=%s limit=%d", start.language, start.limit
        )

    @property
    def config(self) -> SearchConfig:
        return self._config

    @property
    def controls(self) -> ValueStream[SearchControls]:
        return self._controls

    @property
    def params(self) -> ValueStream[SearchParams]:
        return self._params

    @property
    def current(self) -> SearchControls:
        return self._controls.value

    def update(self, patch: Patch) -> SearchControls:
        """Apply *patch* to the current state and publish the result.

        Raises:
            FacetInvariantError: If the patch added or dropped a facet key or
                put something other than a FacetState in a slot. The state is
                left unchanged.
            ValueError: If the patch produced a page or limit below 1.
            ControllerClosedError: If the controller was closed.
        """
        with self._lock:
            if self._closed:
                raise ControllerClosedError("SearchController is closed")
            previous = self._controls.value
            nxt = patch(previous)
            if not isinstance(nxt, SearchControls):
                raise TorrentSearchError(
                    f"Patch returned {type(nxt).__name__}, expected SearchControls"
                )
            check_facet_keys(nxt.facets)
            if nxt == previous:
                logger.debug("Publishing unchanged search controls")
            self._controls.emit(nxt)
            return nxt

    def close(self) -> None:
        """Tear down the controller and complete both streams."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._controls.close()
        logger.debug("SearchController closed")

    def __enter__(self) -> SearchController:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # -- Convenience patches -------------------------------------------------

    def select_language(self, language: str) -> SearchControls:
        if language not in self._config.available_languages:
            logger.warning("Selecting unavailable language %r", language)
        return self.update(lambda ctrl: ctrl.replace(language=language))

    def set_query_string(self, query_string: str | None) -> SearchControls:
        query_string = query_string or None

        def patch(ctrl: SearchControls) -> SearchControls:
            return ctrl.replace(
                query_string=query_string,
                order_by=resolve_order_by(ctrl, query_string, self._config),
                page=1,
            )

        return self.update(patch)

    def select_content_type(self, content_type: str | None) -> SearchControls:
        if content_type is not None and not is_content_type(content_type):
            raise ValueError(f"Unknown content type {content_type!r}")
        return self.update(lambda ctrl: ctrl.replace(content_type=content_type, page=1))

    def select_order_by(self, field: str, descending: bool = True) -> SearchControls:
        if not is_order_by_field(field):
            raise ValueError(f"Unknown order-by field {field!r}")
        order_by = OrderBy(field=field, descending=descending)
        return self.update(lambda ctrl: ctrl.replace(order_by=order_by, page=1))

    def select_page(self, page: int) -> SearchControls:
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        return self.update(lambda ctrl: ctrl.replace(page=page))

    def select_limit(self, limit: int) -> SearchControls:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        return self.update(lambda ctrl: ctrl.replace(limit=limit, page=1))

    def activate_facet(self, key: str) -> SearchControls:
        facet = get_facet(key)

        def patch(ctrl: SearchControls) -> SearchControls:
            state = facet.extract_input(ctrl.facets)
            return ctrl.replace(
                facets=facet.patch_input(ctrl.facets, FacetState(True, state.filter)),
                page=1,
            )

        return self.update(patch)

    def deactivate_facet(self, key: str) -> SearchControls:
        facet = get_facet(key)

        def patch(ctrl: SearchControls) -> SearchControls:
            return ctrl.replace(
                facets=facet.patch_input(ctrl.facets, FacetState(False, None)),
                page=1,
            )

        return self.update(patch)

    def activate_filter(self, key: str, value: str) -> SearchControls:
        facet = get_facet(key)

        def patch(ctrl: SearchControls) -> SearchControls:
            state = facet.extract_input(ctrl.facets)
            values = [*(state.filter or ()), value]
            return ctrl.replace(
                facets=facet.patch_input(ctrl.facets, FacetState(True, tuple(values))),
                page=1,
            )

        return self.update(patch)

    def deactivate_filter(self, key: str, value: str) -> SearchControls:
        facet = get_facet(key)

        def patch(ctrl: SearchControls) -> SearchControls:
            state = facet.extract_input(ctrl.facets)
            values = tuple(v for v in state.filter or () if v != value)
            return ctrl.replace(
                facets=facet.patch_input(ctrl.facets, FacetState(state.active, values)),
                page=1,
            )

        return self.update(patch)
