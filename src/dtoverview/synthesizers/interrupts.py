# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from typing import Optional

from dtoverview.context import OverviewContext
from dtoverview.devicetree.hwgraph import Node, Property
from dtoverview.item import OverviewItem, collapse_single_child

# Logging object
_LOG = logging.getLogger(__name__)


def interrupt_overview(ctx: OverviewContext) -> Optional[OverviewItem]:
    """
    Summarize interrupt routing: every interrupt controller with the nodes
    whose interrupts it handles, sorted by interrupt number. The cells of
    each interrupt are decoded with the controller binding's 'interrupt-cells'.

    Returns None if no controller has consumers.
    """
    interrupts = OverviewItem("Interrupts", "interrupts")

    controllers = [node for node in ctx.nodes if "interrupt-controller" in node.props]
    consumers: dict[Node, list[tuple[Node, Property]]] = {
        controller: [] for controller in controllers
    }

    for node in ctx.nodes:
        prop = node.prop("interrupts")
        if prop is None:
            continue

        parent = interrupt_parent(node)
        if parent is None or parent not in consumers:
            _LOG.debug(f"no interrupt controller found for {node.path}")
            continue
        consumers[parent].append((node, prop))

    for controller in controllers:
        if not consumers[controller]:
            continue

        item = OverviewItem(controller.unique_name)
        item.path = controller.path
        item.tooltip = controller.description

        cells = controller.binding.cells("interrupt") if controller.binding else None
        ncells = _interrupt_cells(controller, cells)

        for node, prop in sorted(consumers[controller], key=_first_cell):
            for irq in _interrupt_items(node, prop, cells, ncells):
                item.add_child(irq)

        interrupts.add_child(item)

    return collapse_single_child(interrupts)


def interrupt_parent(node: Node) -> Optional[Node]:
    """
    The controller that handles the interrupts of 'node': the target of the
    'interrupt-parent' property on 'node' or its nearest ancestor that has
    one. Returns None if no node up to the root has the property, or if the
    reference dangles.
    """
    while node is not None:
        prop = node.prop("interrupt-parent")
        if prop is not None:
            entry = prop.phandle
            return entry.target if entry else None
        node = node.parent
    return None


#
# Private global functions
#


def _interrupt_items(
    node: Node, prop: Property, cells: Optional[list[str]], ncells: Optional[int]
) -> list[OverviewItem]:
    # One item per interrupt specifier of 'prop'

    specifiers = prop.arrays(ncells)
    names_prop = node.prop("interrupt-names")
    names = names_prop.strings if names_prop else []

    items = []
    for i, values in enumerate(specifiers):
        irq = OverviewItem(node.unique_name)
        if len(specifiers) > 1:
            irq.name += f" ({names[i] if i < len(names) else i})"
        irq.path = node.path
        irq.tooltip = node.description

        if cells and "priority" in cells:
            index = cells.index("priority")
            if index < len(values):
                irq.description = f"Priority: {values[index]}"

        for index, cell in enumerate(cells or []):
            irq.add_child(
                OverviewItem(
                    f"{cell[:1].upper()}{cell[1:]}:",
                    description=str(values[index]) if index < len(values) else "N/A",
                )
            )
        items.append(irq)

    return items


def _interrupt_cells(controller: Node, cells: Optional[list[str]]) -> Optional[int]:
    # The number of cells per interrupt specifier: '#interrupt-cells' on the
    # controller, or the number of named cells in its binding.
    prop = controller.prop("#interrupt-cells")
    if prop is not None and prop.number:
        return prop.number
    return len(cells) if cells else None


def _first_cell(consumer: tuple[Node, Property]) -> tuple[int, int]:
    # Sort key: the first cell of the first interrupt specifier. Consumers
    # without cells go last.
    cells = consumer[1].cells
    return (0, cells[0]) if cells else (1, 0)
