# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

"""
The flash overview: the partition layout of every flash device.

Partitions come from 'fixed-partitions' nodes. Gaps between partitions, and
the space between the last partition and the end of the device, are shown as
free space. Overlapping partitions are flagged. Devices without a partition
table fall back to their plain memory areas ('soc-nv-flash' nodes).
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Optional

from dtoverview.context import OverviewContext
from dtoverview.devicetree.hwgraph import Node, Register
from dtoverview.item import OverviewItem, hex_text, size_string

# Logging object
_LOG = logging.getLogger(__name__)


class LayoutEntry(NamedTuple):
    """
    One slot of a flash layout: a partition, or free space if 'node' is None.

    node:
      The partition Node, or None for free space.

    start:
      The start offset of the slot.

    size:
      The size of the slot in bytes.

    overlap:
      The number of bytes at the start of the partition that are also covered
      by preceding partitions. Always 0 for free space.
    """

    node: Optional[Node]
    start: int
    size: int
    overlap: int = 0

    @property
    def end(self) -> int:
        "The offset just past the slot."
        return self.start + self.size


def flash_overview(ctx: OverviewContext) -> Optional[OverviewItem]:
    """
    Summarize the flash devices of 'ctx'. With more than one partition table,
    every flash device gets its own sub-item. Returns None if there is nothing
    to show.
    """
    flash = OverviewItem("Flash", "flash")

    tables = [
        node
        for node in ctx.nodes
        if node.parent is not None
        and node.binding is not None
        and node.binding.is_("fixed-partitions")
    ]

    for table in tables:
        device = table.parent
        assert device is not None

        if len(tables) > 1:
            parent = OverviewItem(device.unique_name)
            flash.add_child(parent)
        else:
            parent = flash

        capacity = device.regs[0].size if device.regs else None
        if capacity is not None:
            parent.description = size_string(capacity)
        parent.path = device.path
        parent.tooltip = device.description or table.description

        for entry in partition_layout(table.children, capacity):
            parent.add_child(_layout_item(entry))

    if not flash.children:
        _add_memory_areas(flash, ctx)

    return flash if flash.children else None


def partition_layout(
    partitions: list[Node], capacity: Optional[int] = None
) -> list[LayoutEntry]:
    """
    Lay out 'partitions' by start offset.

    Only partitions with exactly one register that has both an address and a
    size take part; others are skipped. Partitions with the same start keep
    their relative order. A gap before a partition becomes a free space
    entry. If 'capacity' is given, the space after the last partition is
    free space as well.

    The running offset is the end of the partition processed last, so free
    space is measured from there even if an earlier partition reaches
    further.
    """
    placed: list[tuple[Node, Register]] = []
    for node in partitions:
        if (
            len(node.regs) != 1
            or node.regs[0].addr is None
            or node.regs[0].size is None
        ):
            _LOG.debug(f"not laying out {node.path}: no single address/size pair")
            continue
        placed.append((node, node.regs[0]))

    # sort() is stable
    placed.sort(key=lambda entry: entry[1].addr)

    layout: list[LayoutEntry] = []
    offset = 0
    for node, reg in placed:
        start, size = reg.addr, reg.size
        if start > offset:
            layout.append(LayoutEntry(None, offset, start - offset))
        layout.append(LayoutEntry(node, start, size, max(offset - start, 0)))
        offset = start + size

    if capacity is not None and offset < capacity:
        layout.append(LayoutEntry(None, offset, capacity - offset))

    return layout


def partition_name(node: Node) -> str:
    "The 'label' property of a partition, or its unique name if it has none."
    label = node.prop("label")
    if label is not None and label.string:
        return label.string
    return node.unique_name


#
# Private global functions
#


def _layout_item(entry: LayoutEntry) -> OverviewItem:
    if entry.node is None:
        return OverviewItem(
            f"Free space @ {hex_text(entry.start)}",
            description=size_string(entry.size),
        )

    item = OverviewItem(partition_name(entry.node), description=size_string(entry.size))
    if entry.overlap:
        item.description += f" - {size_string(entry.overlap)} overlap!"
    item.tooltip = f"{hex_text(entry.start)} - {hex_text(entry.end - 1)}"
    item.path = entry.node.path
    _add_area_children(item, entry.start, entry.size)
    return item


def _add_memory_areas(flash: OverviewItem, ctx: OverviewContext) -> None:
    # Fallback for devices without partition tables: show the memory areas
    # of the flash memory nodes themselves.

    memories = [
        node
        for node in ctx.nodes
        if node.binding is not None and node.binding.is_("soc-nv-flash")
    ]

    for node in memories:
        if len(memories) > 1:
            parent = OverviewItem(node.unique_name)
            flash.add_child(parent)
        else:
            parent = flash
        parent.path = node.path
        parent.tooltip = node.description

        areas = [reg for reg in node.regs if reg.addr is not None and reg.size is not None]
        for i, reg in enumerate(areas, 1):
            if len(areas) > 1:
                area = OverviewItem(f"Area {i}")
                area.path = node.path
                parent.add_child(area)
            else:
                area = parent
            area.description = size_string(reg.size)
            _add_area_children(area, reg.addr, reg.size)


def _add_area_children(item: OverviewItem, start: int, size: int) -> None:
    start_item = OverviewItem("Start", description=hex_text(start))
    start_item.path = item.path
    item.add_child(start_item)

    if not size:
        return
    size_item = OverviewItem("Size", description=f"{size_string(size)} ({hex_text(size)})")
    size_item.path = item.path
    item.add_child(size_item)
