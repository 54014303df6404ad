"""Command-line entry point for the image optimiser filter."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Iterable, Optional, Sequence, TextIO

from .config import DEFAULT_VIRTUAL_NAMESPACE, FilterConfig, describe_loadonvisible
from .errors import ImageOptError
from .matcher import iter_image_tags
from .paths import (
    decode_optimised_url,
    decode_url,
    encode_optimised_url,
    encode_original_url,
)
from .rewriter import ImageOptFilter
from .store import LocalFileStore

logger = logging.getLogger("imageopt.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or (first.startswith("-") and first != "-"):
        return argv
    return ("filter", *argv)


def _add_input_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "input",
        help="HTML file to read, or '-' for standard input",
    )
    parser.add_argument(
        "--namespace",
        default=DEFAULT_VIRTUAL_NAMESPACE,
        help="Virtual component that serves optimised images",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    _add_input_argument(parser)
    parser.add_argument(
        "--store",
        required=True,
        type=Path,
        help="Directory laid out as <contextid>/<component>/<filearea>/<itemid>/<path>",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the filtered HTML here instead of standard output",
    )
    parser.add_argument(
        "--maxwidth",
        type=int,
        default=None,
        help="Maximum image width in pixels; enables optimiser URLs",
    )
    parser.add_argument(
        "--loadonvisible",
        action="store_true",
        help="Delay loading of images until visible",
    )
    parser.add_argument(
        "--eager-count",
        type=int,
        default=0,
        help="Number of leading images that always load immediately",
    )
    parser.add_argument(
        "--scale-placeholder",
        action="store_true",
        help="Scale lazy-load placeholders down to --maxwidth",
    )


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Route stored images in HTML through the image optimiser.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    filter_parser = subparsers.add_parser(
        "filter", help="Rewrite image tags in an HTML document"
    )
    _add_filter_arguments(filter_parser)

    scan_parser = subparsers.add_parser(
        "scan", help="List the stored images referenced by an HTML document"
    )
    _add_input_argument(scan_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _run_filter(args: argparse.Namespace) -> None:
    config = FilterConfig(
        maxwidth=args.maxwidth,
        loadonvisible=args.loadonvisible,
        eager_load_count=args.eager_count,
        scale_placeholder=args.scale_placeholder,
        virtual_namespace=args.namespace,
    )
    logger.debug(
        "maxwidth=%s, load on visible: %s",
        config.maxwidth,
        describe_loadonvisible(config),
    )

    html = _read_input(args.input)
    image_filter = ImageOptFilter(config, LocalFileStore(args.store))
    start = time.perf_counter()
    filtered = image_filter.transform(html)
    elapsed = time.perf_counter() - start
    logger.info("Filtered %s in %.3fs", args.input, elapsed)

    if args.output:
        args.output.write_text(filtered, encoding="utf-8")
        logger.info("Saved filtered HTML to %s", args.output)
    else:
        sys.stdout.write(filtered)
        sys.stdout.flush()


def _run_scan(args: argparse.Namespace, out: TextIO) -> None:
    html = _read_input(args.input)
    for ordinal, match in enumerate(iter_image_tags(html), start=1):
        original = decode_optimised_url(match.src, args.namespace)
        if original is not None:
            out.write(
                f"{ordinal}\toptimised\t{match.src}\t{encode_original_url(original)}\n"
            )
            continue
        ref = decode_url(match.src)
        if ref is None:
            out.write(f"{ordinal}\tunparsed\t{match.src}\n")
            continue
        out.write(
            f"{ordinal}\toriginal\t{match.src}\t"
            f"{encode_optimised_url(ref, args.namespace)}\n"
        )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    try:
        if args.command == "filter":
            _run_filter(args)
        else:
            _run_scan(args, sys.stdout)
    except (ImageOptError, OSError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
