"""Command line entry point: run the service or convert a colour."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

import uvicorn

from .colors import InvalidColorFormat, cie_color
from .main import create_app, load_settings

_LOGGER = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="goal-lights",
        description="Flash Hue lights when the scoreboard changes.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the poller and HTTP controls")
    serve.add_argument("--host", default=os.getenv("GOAL_LIGHTS_HOST", "0.0.0.0"))
    serve.add_argument(
        "--port", type=int, default=int(os.getenv("GOAL_LIGHTS_PORT", "3000"))
    )
    serve.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"))

    color = subparsers.add_parser("color", help="Print the lamp xy for a hex colour")
    color.add_argument("hex", nargs="?", help="Six digit hex colour; random if omitted")

    return parser.parse_args(argv)


def _serve(args: argparse.Namespace) -> None:
    logging.basicConfig(level=args.log_level.upper())
    settings = load_settings()
    if not settings.hue_host:
        _LOGGER.warning("HUE_HOST is not set; lighting commands will be skipped")
    uvicorn.run(
        create_app(settings),
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )


def _color(args: argparse.Namespace) -> int:
    try:
        point = cie_color(args.hex)
    except InvalidColorFormat as exc:
        print(str(exc), file=sys.stderr)
        return 2
    print(json.dumps({"x": point.x, "y": point.y}))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.command == "color":
        return _color(args)
    _serve(args)
    return 0


if __name__ == "__main__":  # pragma: no cover - manual execution only
    sys.exit(main())
