"""Command-line entrypoint: run one GraphQL request and print its data."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

from minigql.client import Client
from minigql.config import ClientConfig, config_from_env, load_config
from minigql.context import Context
from minigql.exceptions import ConfigError, ContextError, MiniGQLError, RemoteError
from minigql.request import Request


def _package_version() -> str:
    try:
        return version("minigql")
    except PackageNotFoundError:
        return "0.0.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="minigql", description="Execute a GraphQL request and print its data.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")

    target = parser.add_mutually_exclusive_group()
    target.add_argument("--endpoint", help="GraphQL endpoint URL (default: $MINIGQL_ENDPOINT)")
    target.add_argument("--config", help="Path to a JSON client config file")

    query = parser.add_mutually_exclusive_group(required=True)
    query.add_argument("--query", "-q", help="GraphQL document")
    query.add_argument("--query-file", "-f", help="Read the GraphQL document from a file")

    parser.add_argument("--operation-name", default=None, help="Operation to run when the document has several")
    parser.add_argument(
        "--var",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Set a variable; VALUE is parsed as JSON when possible (repeatable)",
    )
    parser.add_argument("--vars-json", default=None, help="JSON object of variables, applied before --var")
    parser.add_argument("--timeout", type=float, default=None, help="Deadline for the whole request in seconds")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def _parse_var(item: str) -> tuple[str, Any]:
    key, sep, raw = item.partition("=")
    if not sep or not key:
        raise ValueError(f"expected KEY=VALUE, got {item!r}")
    try:
        return key, json.loads(raw)
    except json.JSONDecodeError:
        return key, raw


def _build_request(args: argparse.Namespace) -> Request:
    if args.query_file is not None:
        query = Path(args.query_file).read_text(encoding="utf-8")
    else:
        query = args.query

    request = Request(query, operation_name=args.operation_name)
    if args.vars_json:
        variables = json.loads(args.vars_json)
        if not isinstance(variables, dict):
            raise ValueError("--vars-json must be a JSON object")
        for key, value in variables.items():
            request.set_variable(key, value)
    for item in args.var:
        key, value = _parse_var(item)
        request.set_variable(key, value)
    return request


def _resolve_config(args: argparse.Namespace) -> ClientConfig:
    if args.endpoint:
        try:
            return ClientConfig(endpoint=args.endpoint)
        except ValueError as exc:
            raise ConfigError(f"invalid endpoint: {exc}") from exc
    if args.config:
        return load_config(args.config)
    return config_from_env()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s", stream=sys.stderr)

    try:
        config = _resolve_config(args)
        request = _build_request(args)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    context = Context.background()
    if args.timeout is not None:
        context = context.with_timeout(args.timeout)

    try:
        with Client.from_config(config) as client:
            data = client.execute(request, dict[str, Any], context=context)
    except RemoteError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 3
    except ContextError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 5
    except MiniGQLError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 4

    print(json.dumps(data, indent=2))
    return 0


__all__ = ["build_parser", "main"]
