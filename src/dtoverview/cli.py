#!/usr/bin/env python3

# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

# This script uses the dtoverview library to print the overview of a hardware
# graph snapshot (as written by an upstream devicetree provider) to stdout,
# the way a tree view would show it. It's mostly a debugging aid for bindings
# and snapshots.

import argparse
import sys

from dtoverview.bindings import load_bindings
from dtoverview.board import Board, BoardInfoProvider
from dtoverview.context import ContextProvider, OverviewContext
from dtoverview.devicetree.loader import load_graph
from dtoverview.error import OverviewError
from dtoverview.log import setup_logging
from dtoverview.treeview import OverviewTreeProvider


def main() -> None:
    args = parse_args()
    setup_logging(args.loglevel)

    try:
        bindings = load_bindings(args.bindings_dirs) if args.bindings_dirs else {}
        graph = load_graph(args.graph, bindings)
    except OverviewError as e:
        sys.exit(f"dtoverview: error: {e}")

    board = None
    if args.board:
        board = Board(args.board, BoardInfoProvider(args.board_roots))

    ctx = OverviewContext(args.name or args.board or args.graph, graph, board, [args.graph])
    sys.exit(print_tree(OverviewTreeProvider(ContextProvider([ctx])), ctx))


def parse_args() -> argparse.Namespace:
    # Returns parsed command-line arguments

    parser = argparse.ArgumentParser(prog="dtoverview", allow_abbrev=False)
    parser.add_argument(
        "--graph", required=True, help="hardware graph snapshot in YAML format"
    )
    parser.add_argument(
        "--bindings-dirs",
        nargs="+",
        default=[],
        help="directory with DTS bindings in YAML format, we allow multiple",
    )
    parser.add_argument("--board", help="board identifier, e.g. nrf52840dk/nrf52840")
    parser.add_argument(
        "--board-roots",
        nargs="+",
        default=[],
        help="directory with board metadata in YAML format, we allow multiple",
    )
    parser.add_argument("--name", help="context name (default: board or graph)")
    parser.add_argument(
        "--loglevel",
        default="warning",
        choices=["debug", "info", "warning", "error"],
        help="logging level, default=warning",
    )

    args = parser.parse_args()

    if args.board_roots and not args.board:
        parser.error("--board-roots requires --board")

    return args


def print_tree(tree: OverviewTreeProvider, ctx: OverviewContext) -> int:
    """
    Print the overview of 'ctx' as served by 'tree', one element per line,
    indented by depth. Returns the exit status: 1 if there is no overview.
    """
    overviews = tree.get_children(ctx)
    if not overviews:
        print(f"no overview available for {ctx.name}", file=sys.stderr)
        return 1

    def print_element(element, depth: int) -> None:
        presentation = tree.get_item_presentation(element)
        if presentation is None:
            return
        line = "  " * depth + presentation.label
        if presentation.description:
            line += f"  {presentation.description}"
        print(line)
        for child in tree.get_children(element):
            print_element(child, depth + 1)

    for overview in overviews:
        print_element(overview, 0)
    return 0


if __name__ == "__main__":
    main()
