# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

"""
Loads hardware graph snapshots from YAML.

Parsing devicetree source is the job of an upstream provider. This module
reads the provider's output in a simple YAML layout, mostly useful for tests
and for the dtoverview command:

    /:
      props:
        model: "Example board"
        "#address-cells": 1
        "#size-cells": 1
      children:
        soc:
          props:
            interrupt-parent: "&nvic"
          children:
            interrupt-controller@e000e100:
              labels: [nvic]
              props:
                compatible: "arm,v7m-nvic"
                reg: [[0xe000e100, 0xc00]]
                interrupt-controller: true
                "#interrupt-cells": 2

See hwgraph.Node for the encoding of property values.
"""

from __future__ import annotations

from typing import Any, NoReturn, Optional
import yaml

from dtoverview.bindings import Binding
from dtoverview.devicetree.hwgraph import HardwareGraph, Node
from dtoverview.error import GraphError
from dtoverview.yamlutil import load_yaml

_NODE_KEYS = {"labels", "props", "children"}


def load_graph(
    path: str,
    bindings: Optional[dict[tuple[str, Optional[str]], Binding]] = None,
) -> HardwareGraph:
    """
    Load the hardware graph snapshot at 'path' and match its nodes against
    'bindings' (see bindings.load_bindings()). Raises GraphError if the file
    can't be read or isn't a valid snapshot.
    """
    try:
        snapshot = load_yaml(path)
    except yaml.YAMLError as e:
        _err(f"'{path}' isn't valid YAML: {e}")
    except OSError as e:
        _err(f"could not read hardware graph '{path}': {e}")

    return graph_from_dict(snapshot, bindings, path)


def graph_from_dict(
    snapshot: Any,
    bindings: Optional[dict[tuple[str, Optional[str]], Binding]] = None,
    source: str = "<snapshot>",
) -> HardwareGraph:
    """
    Build a hardware graph from an already parsed snapshot, i.e. a mapping
    with the single key "/". 'source' is used in error messages.
    """
    if not isinstance(snapshot, dict) or list(snapshot) != ["/"]:
        _err(f"{source}: expected a mapping with the root node '/' as only key")

    return HardwareGraph(_node_from_dict("/", snapshot["/"], source), bindings)


def _node_from_dict(name: Any, node_yaml: Any, source: str) -> Node:
    if not isinstance(name, str) or not name or (name != "/" and "/" in name):
        _err(f"{source}: invalid node name {name!r}")

    if node_yaml is None:
        node_yaml = {}
    if not isinstance(node_yaml, dict):
        _err(f"{source}: node '{name}' should be a mapping, not {node_yaml!r}")

    unexpected = set(node_yaml) - _NODE_KEYS
    if unexpected:
        _err(
            f"{source}: node '{name}' has unexpected keys "
            f"{', '.join(sorted(map(str, unexpected)))}, expected one of "
            + ", ".join(sorted(_NODE_KEYS))
        )

    labels = node_yaml.get("labels") or []
    if isinstance(labels, str):
        labels = [labels]
    if not isinstance(labels, list) or not all(isinstance(l, str) for l in labels):
        _err(f"{source}: 'labels' of node '{name}' should be a list of strings")

    props = node_yaml.get("props") or {}
    if not isinstance(props, dict):
        _err(f"{source}: 'props' of node '{name}' should be a mapping")

    children = node_yaml.get("children") or {}
    if not isinstance(children, dict):
        _err(f"{source}: 'children' of node '{name}' should be a mapping")

    child_nodes = [
        _node_from_dict(child_name, child_yaml, source)
        for child_name, child_yaml in children.items()
    ]

    try:
        return Node(name, props=props, labels=labels, children=child_nodes)
    except GraphError as e:
        _err(f"{source}: {e}")


def _err(msg) -> NoReturn:
    raise GraphError(msg)
