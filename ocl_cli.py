"""CLI for parsing OCL files and printing their plain JSON projection."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from ocl import HeredocError, OclDecodeError, parse_document, project, serialize


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Parse an OCL file and print its read-only projection as JSON.",
    )
    parser.add_argument("input", help="Path to the OCL file to parse.")
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation width (default: 2).",
    )
    parser.add_argument(
        "--diagnostics",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Print lexical and syntax diagnostics to stderr (default: disabled).",
    )
    return parser.parse_args(argv)


def dump(text: str, indent: int) -> tuple[str, list[str]]:
    document = parse_document(text)
    output = json.dumps(serialize(project(document)), indent=indent)
    return output, [str(diagnostic) for diagnostic in document.diagnostics]


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    source = Path(args.input)
    if not source.is_file():
        print(f"Input path does not exist: {source}", file=sys.stderr)
        return 2
    text = source.read_text(encoding="utf-8")
    try:
        output, diagnostics = dump(text, args.indent)
    except (HeredocError, OclDecodeError) as exc:
        print(f"Failed to parse {source}: {exc}", file=sys.stderr)
        return 1
    if args.diagnostics:
        for diagnostic in diagnostics:
            print(f"{source}:{diagnostic}", file=sys.stderr)
    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
