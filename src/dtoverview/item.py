# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

"""
The overview item model: a generic tree of named items, used as the uniform
output of every overview synthesizer, plus the presentation helpers the
synthesizers share.
"""

from __future__ import annotations

from typing import Any, Optional


class OverviewItem:
    """
    Represents a node in an overview tree.

    These attributes are available on OverviewItem objects:

    name:
      The label of the item.

    icon:
      An icon tag, e.g. "flash", or None.

    description:
      Secondary text shown next to the label, or None.

    tooltip:
      Tooltip text, or None.

    path:
      Navigation path into the hardware graph (a node or property path), or
      None. This is a back-reference, not ownership.

    parent:
      The parent OverviewItem, set by add_child().

    context:
      Only set on the root of an assembled overview: the context the overview
      was built for.

    Also see property docstrings.
    """

    def __init__(
        self,
        name: str,
        icon: Optional[str] = None,
        description: Optional[str] = None,
    ):
        self.name: str = name
        self.icon: Optional[str] = icon
        self.description: Optional[str] = description
        self.tooltip: Optional[str] = None
        self.path: Optional[str] = None
        self.parent: Optional[OverviewItem] = None
        self.context: Any = None
        self._children: list[OverviewItem] = []

    def __repr__(self) -> str:
        description = f" ({self.description})" if self.description else ""
        return f"<OverviewItem {self.name}{description}, {len(self._children)} children>"

    @property
    def children(self) -> tuple[OverviewItem, ...]:
        "The child items, in order. Use add_child() to add children."
        return tuple(self._children)

    @property
    def id(self) -> str:
        """
        An identifier derived from the chain of (name, description) pairs from
        the root down to this item. Items rebuilt with the same ancestry and
        labels get the same id.
        """
        if self.parent:
            return f"{self.parent.id}.{self.name}({self.description or ''})"
        return self.name

    @property
    def root(self) -> OverviewItem:
        "The root of the tree this item is in."
        item = self
        while item.parent:
            item = item.parent
        return item

    def add_child(self, child: Optional[OverviewItem]) -> None:
        """
        Append 'child' and make this item its parent. Does nothing if 'child'
        is None, so synthesizer results can be added unconditionally.
        """
        if child is None:
            return
        child.parent = self
        self._children.append(child)

    def walk(self):
        "Yields (depth, item) for this item and all descendants, depth-first."
        stack = [(0, self)]
        while stack:
            depth, item = stack.pop()
            yield depth, item
            stack.extend((depth + 1, child) for child in reversed(item._children))


def collapse_single_child(domain: OverviewItem) -> Optional[OverviewItem]:
    """
    Presentation shaping for domains grouped by controller.

    Returns None if 'domain' has no children. If it has exactly one child, that
    child is returned in place of the domain: it takes over the domain's name
    and icon, and its own name becomes its description. Otherwise 'domain' is
    returned as is.
    """
    if not domain.children:
        return None

    if len(domain.children) > 1:
        return domain

    child = domain.children[0]
    child.parent = None
    child.icon = domain.icon
    child.description = child.name
    child.name = domain.name
    return child


def size_string(size: int) -> str:
    """
    Formats a size in bytes with the largest unit that divides it evenly,
    e.g. "64 kB", "1 MB" or "100 B".
    """
    for unit, name in ((1024 * 1024 * 1024, "GB"), (1024 * 1024, "MB"), (1024, "kB")):
        if size and size % unit == 0:
            return f"{size // unit} {name}"
    return f"{size} B"


def count_text(count: int, noun: str) -> str:
    "Formats a count with a noun in singular or plural, e.g. '3 nodes'."
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def hex_text(val: int) -> str:
    "Lower-case hex text, e.g. '0x20000'."
    return f"0x{val:x}"
