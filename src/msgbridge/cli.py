"""Command-line helpers: inspect the error cache and provider detection."""

from __future__ import annotations

import argparse
import json
import sys

from msgbridge.config import Config
from msgbridge.error_cache import ErrorCache
from msgbridge.presets import PRESETS, needs_translation, preset_for_url


def _last_error(args: argparse.Namespace) -> int:
    config = Config.from_env()
    cache = ErrorCache(args.file) if args.file else ErrorCache.from_config(config)
    error = cache.peek_and_clear()
    if error is None:
        print("No pending API error.")
        return 0
    print(json.dumps(error.model_dump(by_alias=True), indent=2))
    return 0


def _presets(_args: argparse.Namespace) -> int:
    for preset in PRESETS:
        model = f"  (model: {preset.recommended_model})" if preset.recommended_model else ""
        print(f"{preset.key:<12}{preset.label:<20}{preset.url}{model}")
    return 0


def _detect(args: argparse.Namespace) -> int:
    print(f"preset: {preset_for_url(args.url)}")
    print(f"translation: {'gemini' if needs_translation(args.url) else 'none'}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Return the ``msgbridge`` argument parser."""
    parser = argparse.ArgumentParser(
        prog="msgbridge",
        description="Messages-protocol adapter utilities.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    last_error = sub.add_parser("last-error", help="Pop the most recent upstream API error")
    last_error.add_argument("--file", help="Error cache file (default: $MSGBRIDGE_HOME)")
    last_error.set_defaults(func=_last_error)

    presets = sub.add_parser("presets", help="List known provider base URLs")
    presets.set_defaults(func=_presets)

    detect = sub.add_parser("detect", help="Show how calls to a base URL are handled")
    detect.add_argument("url")
    detect.set_defaults(func=_detect)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``msgbridge`` console script."""
    args = build_parser().parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    sys.exit(main())
