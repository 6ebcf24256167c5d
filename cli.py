"""Command line knight's tour solver."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from board_shapes import (
    BOARD_FILE_FORMATS, IMAGE_MODES, parse_board_pos, parse_board_size, shaped_board,
)
from config import CFG
from progress import ATTEMPT_LOGGER
from render import render_svg, render_text
from solver.orchestrator import ENGINES, solve_orchestrator


def _arg_type(parser_fn):
    def _wrapped(text: str):
        try:
            return parser_fn(text)
        except ValueError as e:
            raise argparse.ArgumentTypeError(str(e))
    _wrapped.__name__ = parser_fn.__name__
    return _wrapped


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Calculates a knight's tour on a board of the given size and starting square."
    )
    parser.add_argument(
        "-s", "--board-size", type=_arg_type(parse_board_size),
        help='board size as <WIDTH>[x<HEIGHT>], e.g. "12x9" or "23" (default: %s)' % CFG.DEFAULT_SIZE,
    )
    parser.add_argument(
        "-w", "--use-warnsdorff", action="store_true",
        help="search the whole board with the backtracking Warnsdorff engine (slow on large boards)",
    )
    parser.add_argument(
        "-p", "--starting-pos", type=_arg_type(parse_board_pos),
        help='starting square such as "A1" or "C-4" (implies --use-warnsdorff)',
    )
    parser.add_argument(
        "-c", "--corner-radius",
        help='round the board corners: "r", "a b c d" or "(v h) ..." (implies --use-warnsdorff)',
    )
    parser.add_argument(
        "-f", "--board-file", type=Path,
        help="board layout file, text or image (implies --use-warnsdorff)",
    )
    parser.add_argument(
        "-F", "--board-file-format", choices=BOARD_FILE_FORMATS,
        help="layout file type; guessed from the extension when omitted. text: printable "
             "characters are squares, blanks are holes. image: one square per pixel, see --image-mode",
    )
    parser.add_argument(
        "-i", "--image-mode", choices=IMAGE_MODES, default="luminance",
        help="luminance: pixels at least THRESHOLD bright are holes; alpha: pixels at least "
             "THRESHOLD opaque are holes; black-white: black pixels are holes, white ones squares",
    )
    parser.add_argument(
        "-I", "--invert-image-mode", action="store_true",
        help="swap holes and squares when reading an image",
    )
    parser.add_argument(
        "-t", "--threshold", type=int, default=CFG.IMAGE_THRESHOLD,
        help="hole threshold for image layouts, 0-255 (default: %(default)s)",
    )
    parser.add_argument("-e", "--engine", choices=ENGINES, help="solver engine (default: %s)" % CFG.ENGINE)
    parser.add_argument("--closed", action="store_true", help="ask the cp_sat engine for a closed tour")
    parser.add_argument(
        "-q", "--quiet", action="store_true",
        help="only print the time taken to reach a conclusion",
    )
    parser.add_argument("-o", "--output-file", type=Path, help="write the board to this file")
    parser.add_argument(
        "-O", "--output-format", choices=("auto", "text", "svg"), default="auto",
        help="output format; auto picks svg for .svg files and text otherwise",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="echo solver events to stderr",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.quiet and args.output_file:
        parser.error("--quiet cannot be combined with --output-file")
    if args.board_file and args.board_size:
        parser.error("--board-file and --board-size are mutually exclusive")
    if args.board_file_format and not args.board_file:
        parser.error("--board-file-format requires --board-file")
    if not 0 <= args.threshold <= 255:
        parser.error("--threshold must be between 0 and 255")

    if args.verbose:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        ATTEMPT_LOGGER.addHandler(handler)
        ATTEMPT_LOGGER.setLevel(logging.DEBUG if args.verbose > 1 else logging.INFO)

    try:
        size, dead = shaped_board(
            args.board_size or parse_board_size(CFG.DEFAULT_SIZE),
            corner_radius=args.corner_radius,
            board_file=args.board_file,
            file_format=args.board_file_format,
            image_mode=args.image_mode,
            threshold=args.threshold,
            invert_image=args.invert_image_mode,
        )
    except (ValueError, OSError) as e:
        print(f"Bad board: {e}", file=sys.stderr)
        return 2

    engine = args.engine
    custom = args.use_warnsdorff or args.board_file or args.corner_radius or args.starting_pos
    if engine is None and custom:
        engine = "warnsdorff"

    ok, graph, elapsed, strategy, reason, _meta = solve_orchestrator(
        size, dead, args.starting_pos, engine=engine, closed=args.closed
    )
    if strategy == "error":
        print(reason, file=sys.stderr)
        return 2

    print(f"Elapsed time: {elapsed:.3f} seconds ({strategy})")
    if not ok or graph is None:
        print(reason or f"No knight's tour possible for this board configuration ({size}).")
        return 1
    if args.quiet:
        return 0

    board = graph.to_board(dead)
    fmt = args.output_format
    if fmt == "auto":
        is_svg = args.output_file is not None and args.output_file.suffix.lower() == ".svg"
        fmt = "svg" if is_svg else "text"
    out = render_svg(graph, elapsed) if fmt == "svg" else render_text(board)

    if args.output_file:
        args.output_file.write_text(out, encoding="utf-8")
    else:
        sys.stdout.write(out)

    missing = board.unvisited()
    if missing:
        print("Unvisited squares:", file=sys.stderr)
        for pos in missing:
            print(pos, file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
