"""Command line interface for the Energy Converter plugin."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from .core import (
    DEFAULT_PRECISION,
    UNIT_PRIORITY,
    ConversionError,
    convert_all,
    count_significant_digits,
    list_units,
)


def _print(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def command_units(args: argparse.Namespace) -> None:
    _print({"units": list_units()})


def command_convert(args: argparse.Namespace) -> None:
    result = convert_all(args.value, args.unit, precision=args.precision)
    _print({"unit": args.unit, "precision": result["precision"], "values": result["formatted"]})


def command_digits(args: argparse.Namespace) -> None:
    _print({"text": args.text, "significant_digits": count_significant_digits(args.text)})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Energy unit converter")
    subparsers = parser.add_subparsers(dest="command", required=True)

    units_parser = subparsers.add_parser("units", help="List supported units")
    units_parser.set_defaults(func=command_units)

    convert_parser = subparsers.add_parser("convert", help="Convert a value to every unit")
    convert_parser.add_argument("value", help="Number as typed, e.g. 0.00450 or 1.2e10")
    convert_parser.add_argument("unit", choices=UNIT_PRIORITY, help="Unit of VALUE")
    convert_parser.add_argument(
        "--precision", type=int, default=DEFAULT_PRECISION, help="Significant digits (1-30)"
    )
    convert_parser.set_defaults(func=command_convert)

    digits_parser = subparsers.add_parser("digits", help="Count significant digits of a numeral")
    digits_parser.add_argument("text")
    digits_parser.set_defaults(func=command_digits)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except ConversionError as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc


if __name__ == "__main__":
    main()
