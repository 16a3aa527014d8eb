# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

from dtoverview.item import (
    OverviewItem,
    collapse_single_child,
    count_text,
    hex_text,
    size_string,
)

# Test suite for item.py.
#
# Run it using pytest (https://docs.pytest.org/en/stable/usage.html):
#
#   $ pytest test_item.py


def test_tree():
    """Test building item trees."""

    root = OverviewItem("Overview")
    flash = OverviewItem("Flash", "flash", "1 MB")
    root.add_child(flash)
    root.add_child(None)
    partition = OverviewItem("app")
    flash.add_child(partition)

    assert root.children == (flash,)
    assert flash.parent is root
    assert partition.root is root
    assert root.root is root

    assert root.id == "Overview"
    assert flash.id == "Overview.Flash(1 MB)"
    assert partition.id == "Overview.Flash(1 MB).app()"

    assert [(depth, item.name) for depth, item in root.walk()] == [
        (0, "Overview"),
        (1, "Flash"),
        (2, "app"),
    ]
    assert repr(flash) == "<OverviewItem Flash (1 MB), 1 children>"


def test_collapse_single_child():
    """Test flattening of domains with a single controller."""

    assert collapse_single_child(OverviewItem("Clocks", "clock")) is None

    domain = OverviewItem("Clocks", "clock")
    controller = OverviewItem("&rcc")
    controller.tooltip = "Reset and clock controller"
    user = OverviewItem("&usart1")
    controller.add_child(user)
    domain.add_child(controller)

    collapsed = collapse_single_child(domain)
    assert collapsed is controller
    assert collapsed.name == "Clocks"
    assert collapsed.description == "&rcc"
    assert collapsed.icon == "clock"
    assert collapsed.tooltip == "Reset and clock controller"
    assert collapsed.parent is None
    assert collapsed.children == (user,)
    assert user.id == "Clocks(&rcc).&usart1()"

    domain = OverviewItem("Clocks", "clock")
    domain.add_child(OverviewItem("&rcc"))
    domain.add_child(OverviewItem("&pll"))
    assert collapse_single_child(domain) is domain
    assert [child.name for child in domain.children] == ["&rcc", "&pll"]


def test_texts():
    """Test the presentation helpers."""

    assert size_string(0) == "0 B"
    assert size_string(100) == "100 B"
    assert size_string(1536) == "1536 B"
    assert size_string(0x10000) == "64 kB"
    assert size_string(0x100000) == "1 MB"
    assert size_string(0x180000) == "1536 kB"
    assert size_string(0x40000000) == "1 GB"

    assert count_text(1, "node") == "1 node"
    assert count_text(0, "node") == "0 nodes"
    assert count_text(16, "pin") == "16 pins"

    assert hex_text(0x20000) == "0x20000"
    assert hex_text(0xABCD) == "0xabcd"
    assert hex_text(0) == "0x0"
