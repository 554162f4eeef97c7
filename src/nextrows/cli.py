"""Command line interface for the NextRows client.

Usage:
    python -m nextrows extract --type url https://example.com --prompt "..."
    python -m nextrows run-app abc123 --input url=https://example.com --input maxItems=10
    python -m nextrows credits
    python -m nextrows token --mock
    python -m nextrows config --json

Credentials come from ``NEXTROWS_*`` environment variables.
"""

import argparse
from collections.abc import Sequence
import dataclasses
import json
import logging
from pathlib import Path
import sys
from typing import Any

import httpx

from nextrows.client import NextrowsClient
from nextrows.config import load_configuration
from nextrows.exceptions import APIError, NextrowsError
from nextrows.types import AppInputValue, ExtractRequest, RunAppRequest

# ruff: noqa: T201


def parse_input(pair: str) -> tuple[str, AppInputValue]:
    """Split ``key=value``; JSON scalars keep their type, anything else is a str."""
    key, sep, raw = pair.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected key=value, got {pair!r}")
    try:
        value = json.loads(raw)
    except ValueError:
        return key, raw
    if isinstance(value, str | int | float | bool):
        return key, value
    return key, raw


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Call the NextRows API",
        prog="nextrows",
    )
    parser.add_argument(
        "--env-file", help="Read NEXTROWS_* settings from this .env file"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log HTTP calls to stderr"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    extract = sub.add_parser("extract", help="Extract structured data")
    extract.add_argument("sources", nargs="+", help="URLs or raw text")
    extract.add_argument("--type", choices=["url", "text"], default="url")
    extract.add_argument("--prompt", help="Natural language instruction")
    extract.add_argument("--schema", type=Path, help="JSON Schema file")

    run_app = sub.add_parser("run-app", help="Run a published app")
    run_app.add_argument("app_id")
    run_app.add_argument(
        "--input",
        dest="inputs",
        action="append",
        type=parse_input,
        default=[],
        metavar="KEY=VALUE",
    )

    sub.add_parser("credits", help="Show the credit balance")

    token = sub.add_parser("token", help="Issue an OAuth2 access token")
    token.add_argument(
        "--mock", action="store_true", help="Use the mock token host"
    )

    config = sub.add_parser("config", help="Show the effective configuration")
    config.add_argument("--json", action="store_true", help="Output as JSON")
    return parser


def _dump(value: Any) -> None:
    print(json.dumps(value, indent=2, ensure_ascii=False, default=str))


def _print_config(env_file: str | None, as_json: bool) -> None:
    redacted = load_configuration(env_file=env_file).redacted()
    if as_json:
        _dump(redacted)
        return
    print("=== Effective Configuration ===")
    for name, value in redacted.items():
        print(f"  {name}: {value}")


def run(
    args: argparse.Namespace, transport: httpx.BaseTransport | None = None
) -> int:
    """Execute the parsed command and print its JSON result."""
    if args.command == "config":
        _print_config(args.env_file, args.json)
        return 0

    with NextrowsClient.from_env(args.env_file, transport=transport) as client:
        if args.command == "extract":
            schema = None
            if args.schema is not None:
                schema = json.loads(args.schema.read_text(encoding="utf-8"))
            response = client.extract(
                ExtractRequest(
                    type=args.type, data=args.sources, prompt=args.prompt, schema=schema
                )
            )
        elif args.command == "run-app":
            response = client.run_app_json(
                RunAppRequest.from_mapping(args.app_id, dict(args.inputs))
            )
        elif args.command == "credits":
            response = client.get_credits()
        else:
            request = client.token_request()
            if args.mock:
                request = dataclasses.replace(request, mock=True)
            response = client.issue_access_token(request)
    _dump(response.model_dump(by_alias=True))
    return 0


def main(
    argv: Sequence[str] | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> int:
    """CLI entry point; returns the process exit code."""
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    try:
        return run(args, transport)
    except APIError as e:
        print(f"API error {e.status_code}: {e.message or e.error or e}", file=sys.stderr)
        return 1
    except (NextrowsError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
