"""
Two-way binding between a :class:`~torrentsearch.controller.SearchController`
and the shareable URL.

URL changes are decoded into patches; every published state is encoded
and handed to a navigation sink. The sink is only called when the encoded
parameters differ from the last ones seen in either direction, so a URL
change never echoes back as a rewrite.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

import httpx

from torrentsearch.codec import decode_params, encode_controls
from torrentsearch.controller import SearchController
from torrentsearch.logging import bind_navigation_id, url_param_diff
from torrentsearch.models import SearchControls

logger = logging.getLogger(__name__)

Navigate = Callable[[dict[str, str]], None]


class UrlSync:
    """Keep the URL and the controller state in step.

    Args:
        controller: The state owner.
        navigate: Receives the encoded parameter bag whenever the URL needs
            rewriting. It must replace the URL without a full reload.
        params: Parameters of the URL the page was opened with. They are
            applied before the first rewrite so a bookmarked URL wins over
            the initial state.
    """

    def __init__(
        self,
        controller: SearchController,
        navigate: Navigate,
        params: Mapping[str, Any] | None = None,
    ) -> None:
        self._controller = controller
        self._navigate = navigate
        self._last: dict[str, str] | None = None
        if params is not None:
            self.on_url_change(params)
        self._subscription = controller.controls.subscribe(self._on_controls)

    def on_url_change(self, params: Mapping[str, Any]) -> SearchControls:
        """Apply parameters of a URL the user navigated to."""
        nid = bind_navigation_id()
        self._last = {k: v for k, v in params.items() if isinstance(v, str)}
        logger.debug("URL change navigation_id=%s params=%r", nid, self._last)
        return self._controller.update(decode_params(params, self._controller.config))

    def href(self, base_url: str) -> str:
        """Render the current state as a URL below *base_url*."""
        encoded = encode_controls(self._controller.current, self._controller.config)
        return str(httpx.URL(base_url, params=encoded))

    def _on_controls(self, controls: SearchControls) -> None:
        encoded = encode_controls(controls, self._controller.config)
        if encoded == self._last:
            return
        logger.debug(
            "Rewriting URL params=%r",
            encoded,
            extra={"param_diff": url_param_diff(self._last, encoded)},
        )
        self._last = encoded
        self._navigate(encoded)

    def close(self) -> None:
        self._subscription.unsubscribe()

    def __enter__(self) -> UrlSync:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
