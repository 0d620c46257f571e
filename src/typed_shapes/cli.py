"""Command-line tool for checking shape declarations."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from typed_shapes.checker import CheckResult, ShapeChecker
from typed_shapes.keys import UnionKeyPolicy


def print_result(result: CheckResult, as_json: bool = False) -> None:
    """Print a result as an aligned table (or JSON) followed by its message."""
    if as_json:
        payload: dict[str, Any] = {"ok": result.ok, "rows": result.rows}
        if result.message:
            payload["message"] = result.message
        if result.error is not None:
            payload["error"] = type(result.error).__name__
        print(json.dumps(payload, indent=2, default=str))
        return

    if result.error is not None:
        print(f"Error: {result.message}", file=sys.stderr)
        return

    if result.columns and result.rows:
        widths = {
            col: max(len(col), *(len(str(row.get(col, ""))) for row in result.rows))
            for col in result.columns
        }
        print("  ".join(col.ljust(widths[col]) for col in result.columns).rstrip())
        print("  ".join("-" * widths[col] for col in result.columns))
        for row in result.rows:
            print("  ".join(str(row.get(col, "")).ljust(widths[col]) for col in result.columns).rstrip())
    if result.message:
        print(result.message)


def _parse_value(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"invalid JSON value: {e}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="typed-shapes",
        description="Resolve shape declarations and check key access",
    )
    parser.add_argument(
        "file",
        type=Path,
        help="Path to a file of interface/type declarations",
    )
    parser.add_argument(
        "-j", "--json",
        action="store_true",
        help="Output as JSON",
    )
    parser.add_argument(
        "--policy",
        choices=[p.value for p in UnionKeyPolicy],
        default=UnionKeyPolicy.COMMON.value,
        help="Which keys of a union are accessible (default: common)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log declarations and resolutions to stderr",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="List declared shapes")

    keys_cmd = commands.add_parser("keys", help="Print the keys of a shape")
    keys_cmd.add_argument("name")

    describe_cmd = commands.add_parser("describe", help="Show fields and types of a shape")
    describe_cmd.add_argument("name")

    check_cmd = commands.add_parser("check", help="Validate a key against a shape")
    check_cmd.add_argument("name")
    check_cmd.add_argument("key")

    access_cmd = commands.add_parser("access", help="Read a key from a JSON value")
    access_cmd.add_argument("name")
    access_cmd.add_argument("key")
    access_cmd.add_argument("--value", type=_parse_value, required=True, help="JSON object")

    match_cmd = commands.add_parser("match", help="Check a JSON value against a shape")
    match_cmd.add_argument("name")
    match_cmd.add_argument("--value", type=_parse_value, required=True, help="JSON value")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if not args.file.exists():
        print(f"Error: File not found: {args.file}", file=sys.stderr)
        return 1

    checker = ShapeChecker(policy=UnionKeyPolicy(args.policy))
    loaded = checker.load(args.file.read_text())
    if not loaded.ok:
        print_result(loaded, args.json)
        return 1

    if args.command == "list":
        result = checker.list_shapes()
    elif args.command == "keys":
        result = checker.keys(args.name)
    elif args.command == "describe":
        result = checker.describe(args.name)
    elif args.command == "check":
        result = checker.check(args.name, args.key)
    elif args.command == "access":
        result = checker.access(args.value, args.name, args.key)
    else:
        result = checker.match(args.value, args.name)
        print_result(result, args.json)
        return 0 if result.ok and result.matched else 1

    print_result(result, args.json)
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
