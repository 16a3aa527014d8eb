# Copyright 2009-2013, 2019 Peter A. Bigot
#
# SPDX-License-Identifier: Apache-2.0

# The edge bookkeeping is derived from the dependency graph in
# [PyXB](https://github.com/pabigot/pyxb), stripped down and modified
# specifically to index phandle references between hwgraph.Node instances.

from __future__ import annotations

from collections import defaultdict
from typing import NamedTuple, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from dtoverview.devicetree.hwgraph import Node, PHandleEntry, Property


class Reference(NamedTuple):
    """
    One phandle reference from a property to a target node.

    prop:
      The referencing Property.

    index:
      The position of the referencing PHandleEntry in prop.entries.
    """

    prop: Property
    index: int

    @property
    def node(self) -> Node:
        "The node the referencing property is on."
        return self.prop.node

    @property
    def entry(self) -> PHandleEntry:
        "The referencing PHandleEntry."
        return self.prop.entries[self.index]


class ReferenceIndex:
    """
    Represent the phandle references of a hardware graph as a directed graph
    with Node objects as vertices.

    Phandle references are not ownership edges: they form a secondary edge set
    across the node tree. An edge from C{source} to C{target} indicates that
    some property of C{source} holds a resolved phandle entry pointing at
    C{target}. Dangling and empty entries contribute no edge.

    Only the reverse edges are kept, since overviews look up what points at a
    controller, never the other way around.

    The index is built once per graph snapshot and is read-only afterwards.
    All lookups preserve the order in which nodes, properties and entries
    appear in the graph.
    """

    def __init__(self, nodes: list[Node]):
        # Graph data structures
        self._reverse_edge_map: dict[Node, list[Reference]] = defaultdict(list)

        for node in nodes:
            for prop in node.props.values():
                for index, entry in enumerate(prop.entries):
                    if entry.target is None:
                        continue
                    self._add_edge(entry.target, Reference(prop, index))

    def _add_edge(self, target: Node, reference: Reference):
        # Add a directed edge from the node of 'reference' to the 'target'
        # node.
        self._reverse_edge_map[target].append(reference)

    def referrers(
        self, target: Node, prop_name: Optional[str] = None
    ) -> list[Reference]:
        """
        Get the references pointing at 'target', optionally limited to
        properties named 'prop_name'.
        """
        return [
            ref
            for ref in self._reverse_edge_map.get(target, [])
            if prop_name is None or ref.prop.name == prop_name
        ]
