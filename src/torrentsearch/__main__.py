"""CLI entry point: python -m torrentsearch 'query=matrix&facets=genre'

Decodes a URL query string against a fresh search and prints the resulting
state, its canonical URL query and the GraphQL variables it maps to.
"""

import argparse
import json
import logging
import sys

from torrentsearch.codec import (
    decode_params,
    encode_controls,
    parse_query_string,
    render_query_string,
)
from torrentsearch.config import SearchConfig
from torrentsearch.controller import SearchController, to_params
from torrentsearch.logging import bind_navigation_id, configure_logging
from torrentsearch.models import TorrentSearchError


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="torrentsearch",
        description="Decode a torrent search URL query into search state",
    )
    parser.add_argument("query", nargs="?", default="", help="URL query string (without '?')")
    parser.add_argument("--language", type=str, default=None, help="Active UI language")
    parser.add_argument(
        "--limit-default", type=int, default=None, help="Default page size omitted from URLs"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable DEBUG-level logging to stderr"
    )
    parser.add_argument(
        "--json-log", action="store_true", help="Emit JSON log lines (default: text)"
    )

    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.WARNING
    configure_logging(level=level, json_format=args.json_log)
    bind_navigation_id()

    try:
        config = SearchConfig.from_env(
            default_limit=args.limit_default, default_language=args.language
        )
        with SearchController(config, language=args.language) as controller:
            controls = controller.update(
                decode_params(parse_query_string(args.query.lstrip("?")), config)
            )
    except (TorrentSearchError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    output = {
        "controls": controls.to_dict(),
        "url_query": render_query_string(encode_controls(controls, config)),
        "variables": to_params(controls).to_variables(),
    }
    print(json.dumps(output, indent=2, default=str))


if __name__ == "__main__":
    main()
