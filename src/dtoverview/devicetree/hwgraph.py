# Copyright (c) 2019 Nordic Semiconductor ASA
# Copyright (c) 2019 Linaro Limited
# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: BSD-3-Clause

"""
The hardware graph: an already parsed and cross-linked devicetree.

Nodes form a tree (one parent per node). Properties hold ordered values that
are integer cells, strings, explicit cell groups or phandle entries. Phandle
entries point at other nodes of the same tree; they are lookups, not
ownership edges, and they may dangle if the description is malformed.

On top of the raw tree, HardwareGraph derives what the overview synthesizers
consume:

- a binding (see bindings.py) for every node that has one,
- register ranges decoded from 'reg',
- the reference index (see graph.py) mapping each node to the properties that
  reference it,
- the pin assignments of GPIO controllers.

The graph is built once and treated as an immutable snapshot afterwards.
Nothing in this library mutates it.
"""

# NOTE: tests/test_hwgraph.py is the test suite for this module.

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
import logging
import re

from typing import (
    Any,
    Iterator,
    NamedTuple,
    NoReturn,
    Optional,
    Union,
)

from dtoverview.bindings import Binding
from dtoverview.error import GraphError
from dtoverview.graph import ReferenceIndex

#
# Private types
#


class _Ref(NamedTuple):
    # An unresolved phandle reference as written in the source, e.g. "&gpio0"
    # or "&{/soc/gpio@50000000}".
    text: str


_RawValue = Union[int, str, _Ref, list]

PropertyValue = Union[int, str, list[int], "PHandleEntry"]

#
# Private constants
#

# Logging object
_LOG = logging.getLogger(__name__)

# Number of pins of a GPIO controller without an 'ngpios' property, per the
# GPIO controller binding.
_DEFAULT_NGPIOS = 32

_PINCTRL_PROP_RE = re.compile(r"pinctrl-[0-9]+$")

#
# Public classes
#


@dataclass
class Register:
    """
    Represents a register range on a node.

    These attributes are available on Register objects:

    node:
      The Node instance this register is from

    name:
      The name of the register as given in the 'reg-names' property, or None if
      there is no 'reg-names' property

    addr:
      The starting address of the register, or None if unknown (e.g.
      #address-cells is zero)

    size:
      The length of the register in bytes, or None if unknown (e.g.
      #size-cells is zero, or the 'reg' value ends with an incomplete entry)
    """

    node: Node = field(repr=False)
    name: Optional[str]
    addr: Optional[int]
    size: Optional[int]


@dataclass
class PHandleEntry:
    """
    Represents an entry in a phandle or phandle-array property value, e.g.
    <&gpio0 4 0> in

        cs-gpios = <&gpio0 4 0>, <&gpio1 3 4>;

    These attributes are available on PHandleEntry objects:

    ref:
      The reference as written in the source, e.g. "&gpio0", or "0" for an
      empty element, e.g. the <0> in 'cs-gpios = <0>, <&gpio0 4 0>;'.

    target:
      The Node the reference resolves to, or None if it dangles or the entry
      is empty.

    cells:
      The parameter cells following the reference, e.g. [4, 0]. Their meaning
      is defined by the '<space>-cells:' key in the binding of 'target'.
    """

    ref: str
    target: Optional[Node] = field(repr=False, compare=False)
    cells: list[int] = field(default_factory=list)

    def __str__(self) -> str:
        return " ".join([self.ref] + [str(cell) for cell in self.cells])

    def is_(self, node: Node) -> bool:
        "True if this entry resolves to 'node'."
        return self.target is not None and self.target is node


@dataclass
class PinAssignment:
    """
    Represents the use of one pin of a GPIO controller.

    prop:
      The consuming Property, e.g. 'cs-gpios' on a SPI bus or 'pinctrl-0' on
      a UART.

    cells:
      The specifier cells, with the pin number first.

    pinmux:
      For assignments made through pin control, the pin configuration Node
      carrying the 'pinmux' property. None for plain GPIO specifiers.
    """

    prop: Property = field(repr=False)
    cells: list[int]
    pinmux: Optional[Node] = field(default=None, repr=False)


class Property:
    """
    Represents a property on a node. Properties are immutable once the graph
    is built.

    These attributes are available on Property objects:

    name:
      The name of the property.

    node:
      The Node the property is on.

    values:
      The ordered list of values. Each value is an int cell, a string, an
      explicit cell group (a list of ints, e.g. one <...> group of an
      'interrupts' or 'reg' property) or a PHandleEntry.

    Also see property docstrings.
    """

    def __init__(self, name: str, node: Node, raw_values: list[_RawValue]):
        self.name: str = name
        self.node: Node = node
        self._raw_values: list[_RawValue] = raw_values
        self.values: list[PropertyValue] = []

    def __repr__(self) -> str:
        return f"<Property '{self.name}' at '{self.node.path}'>"

    @property
    def path(self) -> str:
        "The navigation path of the property, e.g. '/soc/spi@40003000/cs-gpios'."
        return f"{self.node.path.rstrip('/')}/{self.name}"

    @property
    def is_empty(self) -> bool:
        "True for marker properties without a value, like 'interrupt-controller;'"
        return not self.values

    @property
    def string(self) -> Optional[str]:
        "The first value if it is a string, None otherwise."
        if self.values and isinstance(self.values[0], str):
            return self.values[0]
        return None

    @property
    def strings(self) -> list[str]:
        "All string values, in order."
        return [val for val in self.values if isinstance(val, str)]

    @property
    def cells(self) -> list[int]:
        """
        All integer cells outside of phandle entries, with explicit cell groups
        flattened.
        """
        cells: list[int] = []
        for val in self.values:
            if isinstance(val, int):
                cells.append(val)
            elif isinstance(val, list):
                cells.extend(val)
        return cells

    @property
    def number(self) -> Optional[int]:
        "The first integer cell, or None."
        cells = self.cells
        return cells[0] if cells else None

    @property
    def entries(self) -> list[PHandleEntry]:
        "The phandle entries of the property, dangling and empty ones included."
        return [val for val in self.values if isinstance(val, PHandleEntry)]

    @property
    def phandle(self) -> Optional[PHandleEntry]:
        "The first phandle entry, or None."
        entries = self.entries
        return entries[0] if entries else None

    def arrays(self, cells_per_group: Optional[int] = None) -> list[list[int]]:
        """
        The integer cells of the property split into groups.

        Explicit cell groups are returned as given. Loose cells are split into
        groups of 'cells_per_group' cells; if that is None or not positive, all
        loose cells form a single group. A trailing partial group is kept.
        """
        groups: list[list[int]] = []
        loose: list[int] = []
        for val in self.values:
            if isinstance(val, list):
                groups.append(list(val))
            elif isinstance(val, int):
                loose.append(val)

        if loose:
            if cells_per_group is None or cells_per_group <= 0:
                groups.append(loose)
            else:
                groups.extend(
                    loose[i : i + cells_per_group]
                    for i in range(0, len(loose), cells_per_group)
                )
        return groups

    @property
    def value_text(self) -> str:
        "The values formatted for display, separated by ', '."
        return ", ".join(_value_text(val) for val in self.values)

    def _resolve(self, graph: HardwareGraph) -> None:
        phandle_array = any(
            isinstance(raw, _Ref)
            or (isinstance(raw, list) and any(isinstance(v, _Ref) for v in raw))
            for raw in self._raw_values
        )
        self.values = _resolve_values(self._raw_values, graph, self, phandle_array)


class Node:
    """
    Represents a devicetree node.

    These attributes are available on Node objects:

    name:
      The name of the node including the unit address, e.g. "spi@40003000".

    labels:
      The source labels of the node, e.g. ["spi0"].

    parent:
      The parent Node, or None for the root node.

    props:
      An OrderedDict that maps property names to Property objects.

    binding:
      The Binding for the node, or None. Set when the node becomes part of a
      HardwareGraph.

    regs:
      A list of Register objects decoded from the 'reg' property. Set when the
      node becomes part of a HardwareGraph.

    pins:
      For GPIO controllers, a list with one slot per pin holding a
      PinAssignment or None. None for all other nodes. Set when the node
      becomes part of a HardwareGraph.

    graph:
      The HardwareGraph the node belongs to, or None.

    Also see property docstrings.
    """

    def __init__(
        self,
        name: str,
        props: Optional[dict[str, Any]] = None,
        labels: Optional[list[str]] = None,
        children: Optional[list[Node]] = None,
    ):
        """
        Node constructor.

        name:
          The node name, "/" for the root node.

        props:
          A dict mapping property names to raw values. A raw value is True (or
          None) for marker properties, an int, a string, a "&label" or "&{/path}"
          reference, or a list of those. Nested lists are explicit cell
          groups, like the <...> groups in devicetree source. Properties with
          a value of False are left out.

        labels:
          The source labels of the node.

        children:
          Child nodes, in order.
        """
        self.name: str = name
        self.labels: list[str] = list(labels or [])
        self.parent: Optional[Node] = None
        self.props: OrderedDict[str, Property] = OrderedDict()
        self.binding: Optional[Binding] = None
        self.regs: list[Register] = []
        self.pins: Optional[list[Optional[PinAssignment]]] = None
        self.graph: Optional[HardwareGraph] = None
        self._children: OrderedDict[str, Node] = OrderedDict()

        for prop_name, raw in (props or {}).items():
            if raw is False:
                continue
            self.props[prop_name] = Property(
                prop_name, self, _to_raw_values(raw, name, prop_name)
            )

        for child in children or []:
            self.add_child(child)

    def __repr__(self) -> str:
        binding = f"binding {self.binding.path}" if self.binding else "no binding"
        return f"<Node {self.path}, {binding}>"

    def add_child(self, child: Node) -> None:
        """
        Append 'child' to the children of this node. Only valid before the
        node becomes part of a HardwareGraph.
        """
        if child.name in self._children:
            _err(f"duplicate child node '{child.name}' in {self.path}")
        child.parent = self
        self._children[child.name] = child

    @property
    def children(self) -> list[Node]:
        "The child nodes, in order."
        return list(self._children.values())

    @property
    def path(self) -> str:
        "The path of the node, e.g. '/soc/spi@40003000'."
        if self.parent is None:
            return "/"
        return f"{self.parent.path.rstrip('/')}/{self.name}"

    @property
    def basename(self) -> str:
        "The node name without the unit address."
        return self.name.split("@", 1)[0]

    @property
    def unit_addr(self) -> Optional[int]:
        """
        An integer with the ...@<unit-address> portion of the node name, or
        None if the node name has no (hex) unit-address portion.
        """
        if "@" not in self.name:
            return None
        try:
            return int(self.name.split("@", 1)[1], 16)
        except ValueError:
            return None

    @property
    def unique_name(self) -> str:
        "'&<first label>' if the node is labelled, the node's path otherwise."
        return f"&{self.labels[0]}" if self.labels else self.path

    @property
    def local_unique_name(self) -> str:
        "'&<first label>' if the node is labelled, the node's name otherwise."
        return f"&{self.labels[0]}" if self.labels else self.name

    @property
    def compatibles(self) -> list[str]:
        "The strings of the 'compatible' property, in order."
        compatible = self.props.get("compatible")
        return compatible.strings if compatible else []

    @property
    def description(self) -> Optional[str]:
        "The description from the node's binding, or None."
        return self.binding.description if self.binding else None

    def prop(self, name: str) -> Optional[Property]:
        "The property named 'name', or None."
        return self.props.get(name)

    def _init_regs(self) -> None:
        # Initializes self.regs

        self.regs = []

        reg = self.props.get("reg")
        if reg is None or self.parent is None:
            return

        address_cells = _cells_setting(self.parent, "#address-cells", 2)
        size_cells = _cells_setting(self.parent, "#size-cells", 1)
        entry_cells = address_cells + size_cells

        chunks = []
        for group in reg.arrays(entry_cells if entry_cells else None):
            chunks.extend(
                group[i : i + entry_cells]
                for i in range(0, len(group), entry_cells or len(group) or 1)
            )

        for chunk in chunks:
            if len(chunk) < entry_cells:
                _LOG.warning(
                    f"'reg' property in {self.path} ends with an incomplete "
                    f"entry ({len(chunk)} of {entry_cells} cells)"
                )

            addr = (
                _to_num(chunk[:address_cells])
                if address_cells and len(chunk) >= address_cells
                else None
            )
            size = (
                _to_num(chunk[address_cells:entry_cells])
                if size_cells and len(chunk) >= entry_cells
                else None
            )
            # We'll fix up the name when we're done.
            self.regs.append(Register(self, None, addr, size))

        _add_names(self, "reg", self.regs)

    def _init_pins(self) -> None:
        # Initializes self.pins for GPIO controllers. Must run after the
        # reference index of the graph was built.

        if "gpio-controller" not in self.props or self.graph is None:
            return

        ngpios = self.props.get("ngpios")
        npins = (
            ngpios.number
            if ngpios is not None and ngpios.number is not None
            else _DEFAULT_NGPIOS
        )
        self.pins = [None] * npins

        def assign(cells: list[int], assignment: PinAssignment) -> None:
            # The first assignment of a pin wins.
            if cells and 0 <= cells[0] < npins and self.pins[cells[0]] is None:
                self.pins[cells[0]] = assignment

        references = self.graph.references
        for ref in references.referrers(self):
            if ref.prop.name == "gpios" or ref.prop.name.endswith("-gpios"):
                cells = ref.entry.cells
                assign(cells, PinAssignment(ref.prop, cells))
            elif ref.prop.name == "pinmux":
                # The pin configuration node is used by consumers through
                # their pinctrl-<index> properties.
                cells = ref.entry.cells
                for consumer in references.referrers(ref.node):
                    if _PINCTRL_PROP_RE.match(consumer.prop.name):
                        assign(cells, PinAssignment(consumer.prop, cells, ref.node))


class HardwareGraph:
    """
    Represents a fully parsed and cross-linked devicetree augmented with
    bindings.

    These attributes are available on HardwareGraph objects:

    root:
      The root Node.

    nodes:
      A list with all nodes, depth-first, parents before their children.

    label2node:
      A dict that maps node labels to nodes.

    path2node:
      An OrderedDict that maps node paths to nodes.

    references:
      The ReferenceIndex for the phandle references in the graph.
    """

    def __init__(
        self,
        root: Node,
        bindings: Optional[dict[tuple[str, Optional[str]], Binding]] = None,
    ):
        """
        HardwareGraph constructor.

        root:
          The root Node of a complete node tree.

        bindings:
          The bindings to match nodes against, as returned by
          bindings.load_bindings(). May be None for a graph without bindings.
        """
        self.root: Node = root
        self._bindings: dict[tuple[str, Optional[str]], Binding] = bindings or {}

        # Warning: We depend on parent nodes coming before their children.
        # This is guaranteed by _node_iter().
        self.nodes: list[Node] = list(_node_iter(root))
        self.path2node: OrderedDict[str, Node] = OrderedDict(
            (node.path, node) for node in self.nodes
        )
        self.label2node: dict[str, Node] = {}
        for node in self.nodes:
            if node.graph is not None and node.graph is not self:
                _err(f"{node!r} already belongs to another hardware graph")
            node.graph = self
            for label in node.labels:
                if label in self.label2node:
                    _err(
                        f"label '{label}' appears on both "
                        f"{self.label2node[label].path} and {node.path}"
                    )
                self.label2node[label] = node

        for node in self.nodes:
            for prop in node.props.values():
                prop._resolve(self)
            node.binding = self._binding_for(node)
            node._init_regs()
            if "@" in node.name and node.unit_addr is None:
                _LOG.warning(f"{node.path} has non-hex unit address")

        self.references: ReferenceIndex = ReferenceIndex(self.nodes)

        for node in self.nodes:
            node._init_pins()

    def __repr__(self) -> str:
        return f"<HardwareGraph with {len(self.nodes)} nodes>"

    def node_by_path(self, path: str) -> Optional[Node]:
        """
        Returns the Node at the path 'path', or the node labelled 'label' for
        a path of the form '&label'. Returns None if there is no such node.
        """
        if path.startswith("&"):
            return self.resolve(path)
        return self.path2node.get(path)

    def resolve(self, ref: str) -> Optional[Node]:
        """
        Resolves a "&label" or "&{/path}" reference to a Node. Returns None if
        the reference dangles.
        """
        if ref.startswith("&{") and ref.endswith("}"):
            return self.path2node.get(ref[2:-1])
        if ref.startswith("&"):
            return self.label2node.get(ref[1:])
        return None

    def _binding_for(self, node: Node) -> Optional[Binding]:
        # Returns the binding for 'node'. Explicit compatibles come first, in
        # order, preferring bindings for the bus the node appears on. Nodes
        # without a matching compatible get the child binding of their
        # parent's binding, if any.

        parent_binding = node.parent.binding if node.parent else None
        buses = parent_binding.buses if parent_binding else []

        for compat in node.compatibles:
            for bus in buses:
                binding = self._bindings.get((compat, bus))
                if binding is not None:
                    return binding
            binding = self._bindings.get((compat, None))
            if binding is not None:
                return binding

        if parent_binding is not None:
            return parent_binding.child_binding
        return None


#
# Private global functions
#


def _node_iter(node: Node) -> Iterator[Node]:
    # Depth-first iteration, parents before children.
    yield node
    for child in node.children:
        yield from _node_iter(child)


def _to_raw_values(raw: Any, node_name: str, prop_name: str) -> list[_RawValue]:
    # Normalizes a raw property value as passed to Node() into a list of raw
    # values.

    if raw is True or raw is None:
        return []
    if isinstance(raw, list):
        return [_to_raw_value(val, node_name, prop_name, True) for val in raw]
    return [_to_raw_value(raw, node_name, prop_name, False)]


def _to_raw_value(
    val: Any, node_name: str, prop_name: str, allow_group: bool
) -> _RawValue:
    if val is None and allow_group:
        # Empty element of a phandle-array, same as <0>
        return [0]
    if isinstance(val, bool):
        _err(
            f"'{prop_name}' in node '{node_name}' mixes booleans with other "
            "values"
        )
    if isinstance(val, int):
        return val
    if isinstance(val, str):
        return _Ref(val) if val.startswith("&") else val
    if isinstance(val, list) and allow_group:
        return [_to_raw_value(v, node_name, prop_name, False) for v in val]
    _err(
        f"'{prop_name}' in node '{node_name}' has a value of unsupported "
        f"type {type(val).__name__}: {val!r}"
    )


def _resolve_values(
    raw_values: list[_RawValue],
    graph: HardwareGraph,
    prop: Property,
    phandle_array: bool = False,
) -> list[PropertyValue]:
    # Turns raw values into property values. Each reference starts a
    # PHandleEntry that takes all integer cells up to the next non-integer
    # value as its parameter cells.
    #
    # In a phandle-array, a <0> group is an empty element. It becomes a
    # PHandleEntry without target, so that later entries keep their index.

    values: list[PropertyValue] = []
    entry: Optional[PHandleEntry] = None

    for raw in raw_values:
        if isinstance(raw, _Ref):
            target = graph.resolve(raw.text)
            if target is None:
                _LOG.warning(f"unresolved reference '{raw.text}' in {prop.path}")
            entry = PHandleEntry(raw.text, target)
            values.append(entry)
        elif phandle_array and raw == [0]:
            entry = None
            values.append(PHandleEntry("0", None))
        elif isinstance(raw, list):
            entry = None
            group = _resolve_values(raw, graph, prop)
            if all(isinstance(val, int) for val in group):
                values.append(group)
            else:
                values.extend(group)
        elif isinstance(raw, int) and entry is not None:
            entry.cells.append(raw)
        else:
            entry = None
            values.append(raw)

    return values


def _value_text(val: PropertyValue) -> str:
    if isinstance(val, str):
        return f'"{val}"'
    if isinstance(val, list):
        return " ".join(str(cell) for cell in val)
    return str(val)


def _cells_setting(node: Node, prop_name: str, default: int) -> int:
    # Returns the #address-cells/#size-cells setting on 'node', or the default
    # value per DT spec.
    prop = node.props.get(prop_name)
    if prop is None or prop.number is None:
        return default
    return prop.number


def _to_num(cells: list[int]) -> int:
    # Combines big-endian 32-bit cells into a single integer.
    num = 0
    for cell in cells:
        num = (num << 32) | cell
    return num


def _add_names(node: Node, names_ident: str, objs: list[Any]) -> None:
    # Helper for registering names from <foo>-names properties.
    #
    # node:
    #   Node which has a property that might need named elements.
    #
    # names-ident:
    #   The <foo> part of <foo>-names, e.g. "reg" for "reg-names"
    #
    # objs:
    #   list of objects whose .name field should be set

    full_names_ident = names_ident + "-names"

    if full_names_ident not in node.props:
        return

    names = node.props[full_names_ident].strings
    if len(names) != len(objs):
        _LOG.warning(
            f"{full_names_ident} property in {node.path} "
            f"has {len(names)} strings, expected {len(objs)} strings"
        )

    for obj, name in zip(objs, names):
        obj.name = name


def _err(msg) -> NoReturn:
    raise GraphError(msg)
