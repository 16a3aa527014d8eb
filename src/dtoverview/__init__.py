# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

"""
The dtoverview package synthesizes human readable overviews of a devicetree:
board identity, GPIO pin usage, flash layout, interrupt routing, bus
topology, ADC/DAC channel assignment and clock fan-out.

Note: Only use objects that are exported by the top-level dtoverview package
and do not access private (_-prefixed) identifiers.

Hint: You can view the documentation of this package with pydoc3, e.g.
'$> pydoc3 dtoverview.synthesizers.flash'
"""

# Implementation notes for the dtoverview library package
# -------------------------------------------------------
#
# The input is a hardware graph: an already parsed and cross-linked
# devicetree. Parsing .dts source is the job of an upstream provider; this
# library reads the provider's output (see devicetree/loader.py) or takes a
# graph built in memory. Bindings in YAML format tell what kind of hardware a
# node describes.
#
# Every overview domain has a synthesizer of its own (see synthesizers/). The
# synthesizers are independent of each other and only read the graph. The
# assembler (overview.py) puts their results under one "Overview" item, and
# treeview.py serves that tree to whatever renders it.
#
# None of the modules in this package is meant to have any global state. It
# should be possible to hold several contexts with independent graphs, boards
# and bindings at the same time.
#
# Synthesizers never raise for missing or malformed data. Missing data means
# a missing item, dangling references are skipped and anomalies like
# overlapping partitions are shown as annotations.

# Note: We use the 'import as X from X' convention to mark public objects to be
# exported by the package. Please do not remove those.

# Logging helper for scripts
from dtoverview.log import setup_logging as setup_logging

# Inputs: bindings, the hardware graph and board metadata
from dtoverview.bindings import (
    Binding as Binding,
    bindings_from_paths as bindings_from_paths,
    load_bindings as load_bindings,
)
from dtoverview.board import (
    Board as Board,
    BoardInfo as BoardInfo,
    BoardInfoProvider as BoardInfoProvider,
)
from dtoverview.devicetree.hwgraph import (
    HardwareGraph as HardwareGraph,
    Node as Node,
    PHandleEntry as PHandleEntry,
    PinAssignment as PinAssignment,
    Property as Property,
    Register as Register,
)
from dtoverview.devicetree.loader import (
    graph_from_dict as graph_from_dict,
    load_graph as load_graph,
)
from dtoverview.graph import (
    Reference as Reference,
    ReferenceIndex as ReferenceIndex,
)

# Contexts, the overview and the host interface
from dtoverview.context import (
    ContextProvider as ContextProvider,
    OverviewContext as OverviewContext,
)
from dtoverview.item import OverviewItem as OverviewItem
from dtoverview.overview import build_overview as build_overview
from dtoverview.treeview import (
    Collapsible as Collapsible,
    ItemPresentation as ItemPresentation,
    NavigationTarget as NavigationTarget,
    OverviewTreeProvider as OverviewTreeProvider,
    resolve_navigation as resolve_navigation,
)

# Errors that may be thrown by this library:
from dtoverview.error import (
    # Base error class: Catch this if you want to catch all errors thrown by
    # this library.
    OverviewError as OverviewError,
    # Module-specific errors:
    BindingError as BindingError,  # Error related to bindings processing.
    BoardError as BoardError,  # Error related to board metadata.
    GraphError as GraphError,  # Error related to hardware graph snapshots.
)
