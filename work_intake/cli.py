"""CLI entry point for work-intake."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .config import Settings
from .errors import ConfigurationError
from .orchestrator import TaskOrchestrator, select_backend


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="work-intake",
        description="Turn free-text task descriptions into Asana or Planner tasks.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Create a task from text")
    create.add_argument(
        "text",
        type=str,
        help="Task description, or '-' to read it from stdin",
    )
    create.add_argument(
        "--platform",
        choices=["asana", "planner"],
        default=None,
        help="Backend to use (defaults to the first configured one)",
    )
    create.add_argument(
        "--assignee",
        type=str,
        default=None,
        help="Display name of the person to assign (looked up in WORK_INTAKE_ASSIGNEES)",
    )
    create.add_argument(
        "--output-json",
        type=str,
        default=None,
        help="Write the result to a JSON file",
    )

    sub.add_parser("health", help="Show which backends are configured")

    serve = sub.add_parser("serve", help="Run the HTTP intake webhook")
    serve.add_argument("--host", type=str, default="0.0.0.0", help="Bind address")
    serve.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (or set PORT env var)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(message)s",
    )

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logging.error("%s", e)
        return 1

    if args.command == "health":
        print(json.dumps(_health(settings), indent=2))
        return 0

    if args.command == "serve":
        return _serve(settings, args.host, args.port)

    text = sys.stdin.read() if args.text == "-" else args.text
    if not text.strip():
        logging.error("No task text provided")
        return 1

    result = asyncio.run(_create(settings, text, args.platform, args.assignee))
    if result.success:
        logging.info("%s: %s", result.message, result.task_url)
        for warning in result.warnings:
            logging.warning("  - %s", warning)
    else:
        logging.error("%s: %s", result.message, result.error)

    if args.output_json:
        Path(args.output_json).write_text(json.dumps(result.to_dict(), indent=2))
        logging.info("Result written to %s", args.output_json)

    return 0 if result.success else 1


async def _create(settings: Settings, text: str, platform: str | None, assignee: str | None):
    orchestrator = TaskOrchestrator(settings)
    try:
        return await orchestrator.handle(text, platform=platform, assignee=assignee)
    finally:
        await orchestrator.aclose()


def _health(settings: Settings) -> dict:
    return {
        "asanaConfigured": settings.asana_configured,
        "plannerConfigured": settings.planner_configured,
        "defaultBackend": select_backend(settings),
    }


def _serve(settings: Settings, host: str, port: int | None) -> int:
    import uvicorn

    from .webhook import create_app

    uvicorn.run(create_app(settings), host=host, port=port or settings.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
