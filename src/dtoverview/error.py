# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

"""
Contains all errors that may be thrown by the devicetree overview library.

The errors are organized in a hierarchy, with the base class being
OverviewError.

The following classes are defined:
- OverviewError: Base class for all errors in the overview library.
- BindingError: Error related to bindings processing.
- GraphError: Error related to loading a hardware graph snapshot.
- BoardError: Error related to board metadata.

Only loading of inputs raises. Synthesizing an overview never does: missing
data, dangling references and anomalies degrade into omitted or annotated
items instead.

Errors are kept in a separate module to avoid circular imports.
"""


class OverviewError(Exception):
    "Exception raised for overview library related errors"


class BindingError(OverviewError):
    "Exception raised for binding-related errors"


class GraphError(OverviewError):
    "Exception raised for hardware-graph related errors"


class BoardError(OverviewError):
    "Exception raised for board metadata related errors"
