"""
Pytest configuration and shared fixtures.

Every fixture builds its own ``SearchConfig`` so tests never depend on
``TORRENTSEARCH_*`` environment variables.
"""

import logging

import pytest

from torrentsearch.config import SearchConfig
from torrentsearch.controller import SearchController, initial_controls
from torrentsearch.i18n import CatalogTranslator
from torrentsearch.models import SearchControls


@pytest.fixture
def config() -> SearchConfig:
    return SearchConfig()


@pytest.fixture
def controls(config: SearchConfig) -> SearchControls:
    return initial_controls(config)


@pytest.fixture
def controller(config: SearchConfig):
    with SearchController(config) as ctrl:
        yield ctrl


@pytest.fixture
def translator() -> CatalogTranslator:
    return CatalogTranslator(
        {
            "en": {
                "languages.fr": "French",
                "languages.en": "English",
                "file_types.video": "Video",
                "general.unknown": "Unknown",
            },
            "fr": {
                "languages.fr": "Français",
                "general.unknown": "Inconnu",
            },
        },
        language="en",
        fallback_language="en",
    )


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo ``configure_logging`` so caplog keeps seeing package records."""
    logger = logging.getLogger("torrentsearch")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
