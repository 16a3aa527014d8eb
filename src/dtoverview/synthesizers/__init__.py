# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

"""
The per-domain overview synthesizers.

Each synthesizer is a function that takes an OverviewContext, walks its
hardware graph on its own and returns one OverviewItem subtree for its domain,
or None if the domain has nothing to show. Synthesizers never raise for
missing or malformed data.
"""

from dtoverview.synthesizers.board import board_overview as board_overview
from dtoverview.synthesizers.buses import bus_overview as bus_overview
from dtoverview.synthesizers.clocks import clock_overview as clock_overview
from dtoverview.synthesizers.flash import (
    LayoutEntry as LayoutEntry,
    flash_overview as flash_overview,
    partition_layout as partition_layout,
)
from dtoverview.synthesizers.gpio import gpio_overview as gpio_overview
from dtoverview.synthesizers.interrupts import (
    interrupt_overview as interrupt_overview,
    interrupt_parent as interrupt_parent,
)
from dtoverview.synthesizers.iochannels import (
    adc_overview as adc_overview,
    dac_overview as dac_overview,
    io_channel_overview as io_channel_overview,
)
