# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from collections import OrderedDict
from typing import Optional

from dtoverview.context import OverviewContext
from dtoverview.item import OverviewItem

# Board metadata fields and their labels, in display order.
_FIELD_LABELS: OrderedDict[str, str] = OrderedDict(
    [
        ("name", "Name:"),
        ("arch", "Architecture:"),
        ("supported", "Supported features"),
        ("toolchain", "Supported toolchains"),
    ]
)


def board_overview(ctx: OverviewContext) -> Optional[OverviewItem]:
    """
    Summarize the board of 'ctx': name, architecture, supported features and
    supported toolchains. The 'model' property of the root node takes
    precedence over the board name from the metadata.

    Returns None if the context has no board or no board metadata.
    """
    if ctx.board is None or ctx.board.info is None:
        return None

    fields = ctx.board.info.fields()
    if not fields:
        return None

    board = OverviewItem("Board", "circuit-board")
    board.path = ctx.root.path

    model = ctx.root.prop("model")
    for field, label in _FIELD_LABELS.items():
        if field == "name" and model is not None and model.string:
            item = OverviewItem(label, description=model.string)
            item.path = model.path
            board.add_child(item)
            continue

        val = fields.get(field)
        if not val:
            continue

        item = OverviewItem(label)
        if isinstance(val, list):
            for elem in val:
                item.add_child(OverviewItem(elem))
        else:
            item.description = val
        board.add_child(item)

    return board if board.children else None
