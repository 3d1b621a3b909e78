from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from .common import load_json_object, read_source, write_if_changed
from .errors import BlanketTraitError
from .expand import expand_text, resolve_options
from .splitter import MODES, STRICT, split_text


def command_expand(args: argparse.Namespace) -> int:
    config = load_json_object(Path(args.config).resolve()) if args.config else {}
    options = resolve_options(config)
    if args.mode:
        options = replace(options, mode=args.mode)
    if args.check_defaults:
        options = replace(options, check_defaults=True)
    if args.check and not args.output:
        raise BlanketTraitError("--check requires --output.")

    input_path = Path(args.input).resolve()
    output, expanded = expand_text(read_source(input_path), options)
    print(
        f"Expanded {expanded} #[{options.attribute}] trait(s) from '{input_path}' in {options.mode} mode.",
        file=sys.stderr,
    )

    if args.output:
        return write_if_changed(Path(args.output).resolve(), output, args.check, args.dry_run)
    sys.stdout.write(output)
    return 0


def command_split(args: argparse.Namespace) -> int:
    source = read_source(Path(args.input).resolve())
    result = split_text(args.header, source, mode=args.mode, check_defaults=args.check_defaults)
    print(result.render())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blanket_trait_codegen",
        description="Split Rust traits with default bodies into a bare trait plus a blanket impl.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    expand = sub.add_parser("expand", help="Expand every #[blanket_trait(...)] trait in a Rust source file.")
    expand.add_argument("--input", required=True, help="Rust source file to expand.")
    expand.add_argument("--output", help="Write expanded source to path (default: stdout).")
    expand.add_argument("--config", help="Path to expansion config JSON.")
    expand.add_argument("--mode", choices=MODES, help="Split strategy (overrides config).")
    expand.add_argument(
        "--check-defaults",
        action="store_true",
        help="In relaxed mode, reject members without a default.",
    )
    expand.add_argument("--check", action="store_true", help="Print a diff and fail if --output is out of date.")
    expand.add_argument("--dry-run", action="store_true", help="Do not write --output.")
    expand.set_defaults(func=command_expand)

    split = sub.add_parser("split", help="Split a single trait item with an explicit impl header.")
    split.add_argument("--header", required=True, help="Impl header, e.g. 'impl<T: A> B for T'.")
    split.add_argument("--input", required=True, help="File holding the trait item.")
    split.add_argument("--mode", choices=MODES, default=STRICT, help="Split strategy (default: strict).")
    split.add_argument(
        "--check-defaults",
        action="store_true",
        help="In relaxed mode, reject members without a default.",
    )
    split.set_defaults(func=command_split)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args))
    except BlanketTraitError as exc:
        print(f"blanket_trait error: {exc}", file=sys.stderr)
        return 2
