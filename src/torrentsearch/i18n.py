"""Label resolution for facet aggregations.

The engine never interprets translation tables itself: facets call a
:class:`Translator`, and the active language is forwarded from the
controller state. :class:`CatalogTranslator` is a small in-memory
implementation with fallback-language lookup.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Translator(Protocol):
    """Resolve a translation key for a language.

    Implementations return the key itself when no translation exists.
    """

    def translate(self, key: str, language: str | None = None) -> str: ...


class CatalogTranslator:
    """A :class:`Translator` backed by per-language key/text tables.

    Usage::

        translator = CatalogTranslator(
            {"en": {"languages.fr": "French"}, "fr": {"languages.fr": "Français"}},
            language="fr",
        )
        translator.translate("languages.fr")  # "Français"
    """

    def __init__(
        self,
        catalogs: Mapping[str, Mapping[str, str]],
        *,
        language: str = "en",
        fallback_language: str = "en",
    ) -> None:
        self._catalogs = {lang: dict(table) for lang, table in catalogs.items()}
        self._fallback = fallback_language
        self.language = language

    def translate(self, key: str, language: str | None = None) -> str:
        lang = language or self.language
        text = self._catalogs.get(lang, {}).get(key)
        if text is None and lang != self._fallback:
            text = self._catalogs.get(self._fallback, {}).get(key)
            if text is not None:
                logger.debug("Translation %r missing for %s, using %s", key, lang, self._fallback)
        return key if text is None else text
