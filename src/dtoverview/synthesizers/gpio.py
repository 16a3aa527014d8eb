# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import re
from typing import Optional

from dtoverview.context import OverviewContext
from dtoverview.devicetree.hwgraph import PinAssignment
from dtoverview.item import OverviewItem, count_text

# Trailing port/pin suffix of pin configuration names, e.g. "_pa9".
_PIN_SUFFIX_RE = re.compile(r"_?p[a-zA-Z]\d+$")


def gpio_overview(ctx: OverviewContext) -> Optional[OverviewItem]:
    """
    Summarize pin usage per GPIO controller. Every controller with pins gets
    an item listing its assigned pins; the controller's description counts
    its pins and how many of them are in use.

    Returns None if no node in 'ctx' has pins.
    """
    gpio = OverviewItem("GPIO", "gpio")

    for node in ctx.nodes:
        if not node.pins:
            continue

        controller = OverviewItem(node.unique_name)
        controller.path = node.path
        controller.tooltip = node.description

        for i, pin in enumerate(node.pins):
            if pin is None:
                continue

            consumer = pin.prop.node
            item = OverviewItem(
                f"Pin {i}",
                description=f"{consumer.unique_name} • {pin_function(pin)}",
            )
            item.path = pin.prop.path
            item.tooltip = consumer.description
            controller.add_child(item)

        controller.description = count_text(len(node.pins), "pin")
        if not controller.children:
            controller.description += " • Nothing connected"
        elif len(controller.children) < len(node.pins):
            controller.description += f" • {len(controller.children)} in use"

        gpio.add_child(controller)

    return gpio if gpio.children else None


def pin_function(pin: PinAssignment) -> str:
    """
    The function a pin is used for. For pin control assignments this is the
    pin configuration name without the consumer's name prefix and without the
    trailing port/pin suffix, e.g. "tx" for "usart1_tx_pa9" used by a node
    labelled "usart1". Otherwise it is the name of the consuming property,
    e.g. "cs-gpios".
    """
    if pin.pinmux is None:
        return pin.prop.name

    consumer = pin.prop.node
    prefix = (consumer.labels[0] if consumer.labels else consumer.name) + "_"
    name = pin.pinmux.name.replace(prefix, "", 1)
    return _PIN_SUFFIX_RE.sub("", name)
