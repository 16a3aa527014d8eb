# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

"""
The interface a rendering host (an IDE tree view, the dtoverview command,
...) uses to show overviews.

The host drives everything: it asks for the children of an element when the
element is expanded, and for the presentation of an element when it is
shown. The top level elements are the contexts of a ContextProvider; below
every context sits its "Overview" item. Overviews are synthesized on demand
from the current graph snapshot, and never while the provider is updating.

Neither call raises. Faults are logged, and the host just sees no children
or no presentation for the element in question.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Optional, Union

from dtoverview.context import ContextProvider, OverviewContext
from dtoverview.devicetree.hwgraph import HardwareGraph, Node, Property
from dtoverview.item import OverviewItem
from dtoverview.overview import build_overview

# Logging object
_LOG = logging.getLogger(__name__)

Element = Union[OverviewContext, OverviewItem]


class Collapsible(Enum):
    "Whether and how an element can be expanded."

    NONE = 0
    COLLAPSED = 1
    EXPANDED = 2


@dataclass
class NavigationTarget:
    """
    Where to navigate to for an item.

    path:
      The path of a node or property in the hardware graph.

    file:
      The source file to resolve 'path' in, or None if unknown.
    """

    path: str
    file: Optional[str]


@dataclass
class ItemPresentation:
    """
    How the host should show an element.

    label, description, tooltip:
      Display texts. 'description' and 'tooltip' may be None.

    icon:
      An icon tag like "flash", or None.

    collapsible:
      A Collapsible.

    id:
      A stable identifier, unique within the host's tree.

    navigation:
      A NavigationTarget, or None for elements without one.
    """

    label: str
    description: Optional[str]
    tooltip: Optional[str]
    icon: Optional[str]
    collapsible: Collapsible
    id: str
    navigation: Optional[NavigationTarget] = None


class OverviewTreeProvider:
    """
    Serves the overviews of the contexts of a ContextProvider to a rendering
    host.

    provider:
      The ContextProvider.
    """

    def __init__(self, provider: ContextProvider):
        self.provider: ContextProvider = provider

    def get_children(self, element: Optional[Element] = None) -> list[Element]:
        """
        The children of 'element': the contexts for None, the overview of a
        context (an empty list if it has none), or the children of an item.
        """
        try:
            if element is None:
                return self.provider.contexts

            if isinstance(element, OverviewContext):
                self.provider.stable()
                overview = build_overview(element)
                return [overview] if overview else []

            return list(element.children)
        except Exception:
            _LOG.exception(f"could not get the children of {element!r}")
            return []

    def get_parent(self, element: Element) -> Optional[Element]:
        "The parent of 'element', or None for top level elements."
        if isinstance(element, OverviewItem):
            if element.parent is not None:
                return element.parent
            return element.context
        return None

    def get_item_presentation(self, element: Element) -> Optional[ItemPresentation]:
        "The presentation of 'element', or None if it can't be presented."
        try:
            if isinstance(element, OverviewContext):
                return ItemPresentation(
                    label=element.name,
                    description=None,
                    tooltip="DeviceTree Context",
                    icon="devicetree-inner",
                    collapsible=(
                        Collapsible.EXPANDED
                        if element is self.provider.current
                        else Collapsible.COLLAPSED
                    ),
                    id=f"devicetree.ctx.{element.name}",
                )

            ctx = element.root.context
            return ItemPresentation(
                label=element.name,
                description=element.description,
                tooltip=element.tooltip,
                icon=element.icon,
                collapsible=(
                    Collapsible.COLLAPSED if element.children else Collapsible.NONE
                ),
                id=f"devicetree.ctx.{ctx.name if ctx else ''}.item.{element.id}",
                navigation=(
                    NavigationTarget(
                        element.path, ctx.navigation_file if ctx else None
                    )
                    if element.path
                    else None
                ),
            )
        except Exception:
            _LOG.exception(f"could not present {element!r}")
            return None


def resolve_navigation(
    graph: HardwareGraph, target: NavigationTarget
) -> Optional[Union[Node, Property]]:
    """
    Resolve the path of 'target' against 'graph': returns the Node or
    Property it points at, or None if the graph has neither.
    """
    node = graph.node_by_path(target.path)
    if node is not None:
        return node

    parent_path, _, prop_name = target.path.rpartition("/")
    node = graph.node_by_path(parent_path or "/")
    if node is None:
        return None
    return node.prop(prop_name)
