"""Command-line utilities for site_carbon."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from .errors import SiteCarbonError
from .estimation.parameters import available_models
from .logging_pipeline import configure_structured_logging, shutdown_listeners
from .settings import SiteCarbonSettings, get_settings

LOGGER = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="site-carbon", description="Estimate the carbon emitted per page visit."
    )
    subparsers = parser.add_subparsers(dest="command")

    estimate = subparsers.add_parser("estimate", help="Estimate one page and print JSON.")
    estimate.add_argument("url", help="Absolute http(s) URL of the page.")
    estimate.add_argument("--model", help="Registered emission model to use.")
    estimate.add_argument(
        "--no-notify",
        action="store_true",
        help="Skip the lead notification after estimating.",
    )

    serve = subparsers.add_parser("serve", help="Run the HTTP service.")
    serve.add_argument("--host", default="0.0.0.0", help="Interface to bind.")
    serve.add_argument("--port", type=int, help="Port to bind; defaults to $PORT.")

    subparsers.add_parser("models", help="List registered emission models.")
    return parser


async def _estimate(
    settings: SiteCarbonSettings, url: str, *, notify: bool
) -> dict[str, object]:
    from .pipeline import EmissionPipeline
    from .schemas import CalculateRequest

    pipeline = EmissionPipeline.from_settings(settings)
    result = await pipeline.run(CalculateRequest(url=url))
    if notify:
        await pipeline.notify(result)
    payload = result.report.model_dump()
    payload["model"] = result.estimate.model_version
    return payload


def _serve(settings: SiteCarbonSettings, host: str, port: int | None) -> int:
    import uvicorn

    from .api import create_app

    listener = configure_structured_logging(
        logging.getLogger("site_carbon"), level=settings.log_level.upper()
    )
    try:
        uvicorn.run(create_app(settings=settings), host=host, port=port or settings.port)
    finally:
        shutdown_listeners([listener])
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``site-carbon`` command."""

    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:  # pragma: no cover - controlled via tests
        exit_code = int(exc.code) if isinstance(exc.code, int) else 1
        return 0 if exit_code == 0 else 1

    if args.command is None:
        parser.print_usage(sys.stderr)
        print("No command provided.", file=sys.stderr)
        return 1

    if args.command == "models":
        print(json.dumps(available_models(), indent=2))
        return 0

    settings = get_settings()
    if args.command == "serve":
        return _serve(settings, args.host, args.port)

    if args.model:
        settings = settings.model_copy(update={"emission_model": args.model})
    try:
        payload = asyncio.run(_estimate(settings, args.url, notify=not args.no_notify))
    except SiteCarbonError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
