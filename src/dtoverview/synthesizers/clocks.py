# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Optional

from dtoverview.context import OverviewContext
from dtoverview.item import OverviewItem, collapse_single_child


def clock_overview(ctx: OverviewContext) -> Optional[OverviewItem]:
    """
    Summarize the clock controllers of 'ctx' and the nodes they clock. The
    cells of each 'clocks' entry are decoded with the controller binding's
    'clock-cells'.

    Returns None if there are no clock controllers.
    """
    clocks = OverviewItem("Clocks", "clock")

    for node in ctx.nodes:
        if node.binding is None or not node.binding.is_("clock-controller"):
            continue

        controller = OverviewItem(node.unique_name)
        controller.path = node.path
        controller.tooltip = node.description

        names = node.binding.cells("clock") or []
        for ref in ctx.graph.references.referrers(node, "clocks"):
            user = ref.node
            item = OverviewItem(user.unique_name)
            item.path = ref.prop.path
            item.tooltip = user.description

            cells = ref.entry.cells
            for name, cell in zip(names, cells):
                item.add_child(OverviewItem(name, description=str(cell)))
            controller.add_child(item)

        if not controller.children:
            controller.add_child(OverviewItem("", description="No users"))

        clocks.add_child(controller)

    return collapse_single_child(clocks)
