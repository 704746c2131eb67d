"""
Configuration for the search state engine.

The defaults that shape a fresh search (page size, the two default sort
orders, languages) live in one immutable object handed to the controller
and codec. Environment variables are read once via
``SearchConfig.from_env()``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from torrentsearch.models import OrderBy
from torrentsearch.taxonomy import RELEVANCE, is_order_by_field

logger = logging.getLogger(__name__)

_DEFAULT_LIMIT = 20
_DEFAULT_LANGUAGE = "en"
_DEFAULT_AVAILABLE_LANGUAGES = ("en", "fr", "es", "de", "zh")
_DEFAULT_ORDER_BY = OrderBy(field="published_at", descending=True)
_DEFAULT_QUERY_ORDER_BY = OrderBy(field=RELEVANCE, descending=True)


@dataclass(frozen=True)
class SearchConfig:
    """Validated, immutable defaults for search state.

    Args:
        default_limit: Page size of a fresh search; omitted from URLs.
        default_order_by: Structural sort used when there is no query.
        default_query_order_by: Relevance sort forced when a new query is typed.
        default_language: Language of a fresh search.
        fallback_language: Language used for labels missing a translation.
        available_languages: Languages the label resolver can serve.
    """

    default_limit: int = _DEFAULT_LIMIT
    default_order_by: OrderBy = _DEFAULT_ORDER_BY
    default_query_order_by: OrderBy = _DEFAULT_QUERY_ORDER_BY
    default_language: str = _DEFAULT_LANGUAGE
    fallback_language: str = _DEFAULT_LANGUAGE
    available_languages: tuple[str, ...] = _DEFAULT_AVAILABLE_LANGUAGES

    def __post_init__(self) -> None:
        errors: list[str] = []

        if self.default_limit < 1:
            errors.append(f"default_limit must be >= 1, got {self.default_limit}")
        if not is_order_by_field(self.default_order_by.field):
            errors.append(f"default_order_by has unknown field {self.default_order_by.field!r}")
        elif self.default_order_by.field == RELEVANCE:
            errors.append("default_order_by must not be the relevance ordering")
        if self.default_query_order_by.field != RELEVANCE:
            errors.append(
                f"default_query_order_by must order by {RELEVANCE!r},"
                f" got {self.default_query_order_by.field!r}"
            )
        if not self.available_languages:
            errors.append("available_languages must not be empty")
        if self.default_language not in self.available_languages:
            errors.append(f"default_language {self.default_language!r} is not available")
        if self.fallback_language not in self.available_languages:
            errors.append(f"fallback_language {self.fallback_language!r} is not available")

        if errors:
            raise ValueError("Invalid search configuration: " + "; ".join(errors))

    @classmethod
    def from_env(cls, **overrides: object) -> SearchConfig:
        """Build config from environment variables with optional overrides.

        Environment variables:
            TORRENTSEARCH_DEFAULT_LIMIT         -- Default page size (default 20)
            TORRENTSEARCH_DEFAULT_LANGUAGE      -- Initial language (default en)
            TORRENTSEARCH_FALLBACK_LANGUAGE     -- Label fallback language (default en)
            TORRENTSEARCH_AVAILABLE_LANGUAGES   -- Comma list (default en,fr,es,de,zh)

        Explicit keyword arguments override environment variables.
        """

        def _env_int(key: str, default: int) -> int:
            raw = os.environ.get(key)
            if raw is None:
                return default
            try:
                return int(raw)
            except ValueError:
                raise ValueError(f"Environment variable {key}={raw!r} is not a valid integer")

        def _env_list(key: str, default: tuple[str, ...]) -> tuple[str, ...]:
            raw = os.environ.get(key)
            if raw is None:
                return default
            return tuple(part.strip() for part in raw.split(",") if part.strip())

        kwargs: dict[str, object] = {
            "default_limit": _env_int("TORRENTSEARCH_DEFAULT_LIMIT", _DEFAULT_LIMIT),
            "default_language": os.environ.get(
                "TORRENTSEARCH_DEFAULT_LANGUAGE", _DEFAULT_LANGUAGE
            ),
            "fallback_language": os.environ.get(
                "TORRENTSEARCH_FALLBACK_LANGUAGE", _DEFAULT_LANGUAGE
            ),
            "available_languages": _env_list(
                "TORRENTSEARCH_AVAILABLE_LANGUAGES", _DEFAULT_AVAILABLE_LANGUAGES
            ),
        }
        kwargs.update({k: v for k, v in overrides.items() if v is not None})

        config = cls(**kwargs)  # type: ignore[arg-type]
        logger.info(
            "Search config: default_limit=%d default_language=%s languages=%s",
            config.default_limit,
            config.default_language,
            ",".join(config.available_languages),
        )
        return config
