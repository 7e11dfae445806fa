"""Command-line entry point."""

from __future__ import annotations

import argparse
import os
import sys

from wxapkg.console import console
from wxapkg.scan import default_root, run_scan
from wxapkg.unpack_cmd import run_unpack

PROGRAM = "wxapkg"
VERSION = "v0.0.1"
COMMIT = "b7122099"

_BEAUTIFY_HELP = "disable js,html,json beautify"


def _say(text: str, style: str) -> None:
    console.print(text, style=style, markup=False, highlight=False)


def _unpack_example_root() -> str:
    root = default_root()
    if sys.platform == "darwin":
        return root
    return os.path.join(root, "wx00000000000000")


def _run_scan(args: argparse.Namespace, beautify: bool) -> None:
    run_scan(args.root, beautify)


def _run_unpack(args: argparse.Namespace, beautify: bool) -> None:
    run_unpack(args.root, args.output, args.thread, beautify)


def build_parser() -> argparse.ArgumentParser:
    """Return the parser for the command line."""
    parser = argparse.ArgumentParser(
        prog=PROGRAM,
        description="A tool to scan and decrypt wechat mini program",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s version {VERSION}({COMMIT})")
    parser.add_argument("--disable-beautify", action="store_true", help=_BEAUTIFY_HELP)

    shared = argparse.ArgumentParser(add_help=False)
    shared.add_argument(
        "--disable-beautify", action="store_true", default=argparse.SUPPRESS, help=_BEAUTIFY_HELP
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command")

    scan_root = default_root()
    scan = subparsers.add_parser(
        "scan",
        parents=[shared],
        help="Scan the wechat mini program",
        description="Scan the wechat mini program",
        epilog=f'example:\n  {PROGRAM} scan -r "{scan_root}"',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    scan.add_argument("-r", "--root", default=scan_root, help="the mini app path")
    scan.set_defaults(handler=_run_scan)

    example = _unpack_example_root()
    unpack = subparsers.add_parser(
        "unpack",
        parents=[shared],
        help="Decrypt wechat mini program",
        description="Decrypt wechat mini program",
        epilog=f'example:\n  {PROGRAM} unpack -o unpack -r "{example}"',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    unpack.add_argument(
        "-r", "--root", required=True,
        help=f"the mini progress path you want to decrypt, see: {example}",
    )
    unpack.add_argument("-o", "--output", default="unpack", help="the output path to save result")
    unpack.add_argument("-n", "--thread", type=int, default=30, help="the thread number")
    unpack.set_defaults(handler=_run_unpack)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the command line; return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 0
    try:
        handler(args, not args.disable_beautify)
    except (OSError, ValueError, RuntimeError) as error:
        _say(f"[!] {error}", "red")
    return 0


if __name__ == "__main__":
    sys.exit(main())