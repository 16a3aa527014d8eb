# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import re
from typing import Optional

from dtoverview.context import OverviewContext
from dtoverview.devicetree.hwgraph import Node
from dtoverview.item import OverviewItem, count_text, hex_text

# Logging object
_LOG = logging.getLogger(__name__)

# Bus properties worth showing on the bus item
_BUS_PROP_RES = [
    re.compile(pattern)
    for pattern in (
        r".*-speed$",
        r".*-pin$",
        r"^pinctrl-[0-9]+$",
        r"^clock-frequency$",
        r"^hw-flow-control$",
        r"^dma-channels$",
    )
]


def bus_overview(ctx: OverviewContext) -> Optional[OverviewItem]:
    """
    Summarize every bus in 'ctx': its relevant settings and the nodes on it.
    SPI devices also show their chip select GPIO.

    Returns None if there are no buses.
    """
    buses = OverviewItem("Buses", "bus")

    for node in ctx.nodes:
        if node.binding is None or not node.binding.buses:
            continue

        bus = OverviewItem(node.unique_name)
        bus.path = node.path
        bus.tooltip = node.description

        parts = []
        if not any(kind.lower() in bus.name.lower() for kind in node.binding.buses):
            parts.append(node.binding.bus)

        for prop in node.props.values():
            if prop.is_empty or not any(r.match(prop.name) for r in _BUS_PROP_RES):
                continue
            info = OverviewItem(
                prop.name.replace("-", " ") + ":", description=prop.value_text
            )
            info.path = prop.path
            bus.add_child(info)

        nodes = OverviewItem("Nodes")
        nodes.path = node.path
        for child in node.children:
            nodes.add_child(_device_item(node, child))

        if nodes.children:
            parts.append(count_text(len(nodes.children), "node"))
        else:
            nodes.description = "Nothing connected"
        bus.add_child(nodes)

        bus.description = " • ".join(parts) or None
        buses.add_child(bus)

    return buses if buses.children else None


def _device_item(bus: Node, device: Node) -> OverviewItem:
    # Item for a device on 'bus'

    item = OverviewItem(device.local_unique_name)
    item.path = device.path
    item.tooltip = device.description

    addr = device.unit_addr
    if addr is None:
        return item

    item.description = f"@ {hex_text(addr)}"

    if "spi" in bus.binding.buses:
        cs_gpios = bus.prop("cs-gpios")
        entries = cs_gpios.entries if cs_gpios else []
        if addr < len(entries) and entries[addr].target is not None:
            cs = OverviewItem("Chip select", description=str(entries[addr]))
            cs.path = cs_gpios.path
            item.add_child(cs)
        else:
            _LOG.debug(f"no chip select for {device.path}")

    return item
