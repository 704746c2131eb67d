"""
Structured logging for torrentsearch with navigation-id correlation.

Each URL change handled by :class:`~torrentsearch.sync.UrlSync` binds a
navigation id, so the decode, update and URL rewrite it triggers can be
followed across log lines. URL rewrites carry a ``param_diff`` extra built
by :func:`url_param_diff`.

Usage::

    from torrentsearch.logging import configure_logging, bind_navigation_id
    configure_logging()             # JSON to stderr, INFO level
    bind_navigation_id("nav-42")    # all subsequent logs include navigation_id
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Mapping
from contextvars import ContextVar
from datetime import datetime, timezone

_navigation_id_var: ContextVar[str] = ContextVar("torrentsearch_navigation_id", default="")

_STDLIB_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys())


def bind_navigation_id(navigation_id: str | None = None) -> str:
    """Set the navigation id for the current context.

    If *navigation_id* is ``None``, a short random id is generated.
    Returns the active id.
    """
    nid = navigation_id or uuid.uuid4().hex[:12]
    _navigation_id_var.set(nid)
    return nid


def get_navigation_id() -> str:
    """Return the current navigation id, or ``""`` if none is bound."""
    return _navigation_id_var.get()


def url_param_diff(
    before: Mapping[str, str] | None, after: Mapping[str, str]
) -> dict[str, list[str]]:
    """Describe how a URL parameter bag changed, key by key.

    Meant for ``extra=`` on URL rewrite log lines, so a JSON log shows
    which parameters a canonicalization dropped or rewrote.
    """
    before = before or {}
    return {
        "added": sorted(after.keys() - before.keys()),
        "removed": sorted(before.keys() - after.keys()),
        "changed": sorted(k for k in after.keys() & before.keys() if after[k] != before[k]),
    }


class _NavigationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.navigation_id = _navigation_id_var.get()  # type: ignore[attr-defined]
        return True


class JSONFormatter(logging.Formatter):
    """Emit each log record as a single-line JSON object.

    Core fields: ``timestamp``, ``level``, ``logger``, ``message`` and,
    when bound, ``navigation_id``. Values passed through ``extra={}`` are
    merged at the top level.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        nid = getattr(record, "navigation_id", "") or _navigation_id_var.get()
        if nid:
            entry["navigation_id"] = nid

        for key, val in record.__dict__.items():
            if key not in _STDLIB_ATTRS and key != "navigation_id":
                entry[key] = val

        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def configure_logging(
    level: int = logging.INFO,
    json_format: bool = True,
) -> None:
    """Configure the ``torrentsearch`` logger hierarchy.

    Args:
        level: Logging level (default ``logging.INFO``).
        json_format: If ``True``, emit JSON lines; otherwise a text format
            that still carries the navigation id.
    """
    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)-5s [%(navigation_id)s] %(name)s - %(message)s",
                defaults={"navigation_id": ""},
            )
        )
    handler.addFilter(_NavigationIdFilter())

    package_logger = logging.getLogger("torrentsearch")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False
