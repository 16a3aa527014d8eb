# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from collections import OrderedDict
from typing import NamedTuple, Optional

from dtoverview.context import OverviewContext
from dtoverview.devicetree.hwgraph import Node
from dtoverview.graph import Reference
from dtoverview.item import OverviewItem, collapse_single_child


class Channel(NamedTuple):
    """
    One IO channel in use.

    index:
      The channel index, the first cell of the 'io-channels' entry, or -1 if
      the entry has no cells.

    user:
      The Node using the channel.

    name:
      The name of the channel from 'io-channel-names', an ordinal for unnamed
      channels of a node with several channels, or None.
    """

    index: int
    user: Node
    name: Optional[str]


def io_channel_overview(ctx: OverviewContext, kind: str) -> Optional[OverviewItem]:
    """
    Summarize the IO channel controllers of the given kind, "ADC" or "DAC",
    with their channels sorted by channel index.

    Returns None if there are no such controllers.
    """
    domain = OverviewItem(f"{kind}s", kind.lower())
    binding_kind = f"{kind.lower()}-controller"

    for node in ctx.nodes:
        if node.binding is None or not node.binding.is_(binding_kind):
            continue

        controller = OverviewItem(node.unique_name)
        controller.path = node.path
        controller.tooltip = node.description

        for channel in channels(node):
            item = OverviewItem(f"Channel {channel.index}")
            item.description = channel.user.unique_name
            if channel.name is not None:
                item.description += f" • {channel.name}"
            item.path = channel.user.path
            item.tooltip = channel.user.description
            controller.add_child(item)

        if not controller.children:
            controller.add_child(OverviewItem("", description="No channels in use"))

        domain.add_child(controller)

    return collapse_single_child(domain)


def adc_overview(ctx: OverviewContext) -> Optional[OverviewItem]:
    "The overview of the analog-to-digital converters in 'ctx'."
    return io_channel_overview(ctx, "ADC")


def dac_overview(ctx: OverviewContext) -> Optional[OverviewItem]:
    "The overview of the digital-to-analog converters in 'ctx'."
    return io_channel_overview(ctx, "DAC")


def channels(controller: Node) -> list[Channel]:
    """
    The channels of 'controller' that are in use, sorted by channel index.
    Channels with the same index keep the order of the graph.
    """
    by_user: OrderedDict[Node, list[Reference]] = OrderedDict()
    for ref in controller.graph.references.referrers(controller, "io-channels"):
        by_user.setdefault(ref.node, []).append(ref)

    result = []
    for user, refs in by_user.items():
        names_prop = user.prop("io-channel-names")
        names = names_prop.strings if names_prop else []

        for ordinal, ref in enumerate(refs):
            cells = ref.entry.cells
            if ref.index < len(names):
                name = names[ref.index]
            elif len(refs) > 1:
                name = str(ordinal)
            else:
                name = None
            result.append(Channel(cells[0] if cells else -1, user, name))

    return sorted(result, key=lambda channel: channel.index)
