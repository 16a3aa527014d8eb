# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

"""
Assembles the overview of a context from the per-domain synthesizers.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from dtoverview.context import OverviewContext
from dtoverview.item import OverviewItem
from dtoverview.synthesizers import (
    adc_overview,
    board_overview,
    bus_overview,
    clock_overview,
    dac_overview,
    flash_overview,
    gpio_overview,
    interrupt_overview,
)

# Logging object
_LOG = logging.getLogger(__name__)

Synthesizer = Callable[[OverviewContext], Optional[OverviewItem]]

# The synthesizers, in the order their domains appear in the overview
SYNTHESIZERS: tuple[Synthesizer, ...] = (
    board_overview,
    gpio_overview,
    flash_overview,
    interrupt_overview,
    bus_overview,
    adc_overview,
    dac_overview,
    clock_overview,
)


def build_overview(ctx: OverviewContext) -> Optional[OverviewItem]:
    """
    Build the "Overview" tree of 'ctx': one child per domain that has
    something to show. Returns None if no domain has.

    A synthesizer that fails on unexpected data is logged and left out, so
    the other domains are still shown.
    """
    overview = OverviewItem("Overview")
    overview.context = ctx

    for synthesize in SYNTHESIZERS:
        try:
            item = synthesize(ctx)
        except Exception:
            _LOG.exception(f"{synthesize.__name__} failed for {ctx.name}")
            continue
        overview.add_child(item)

    if not overview.children:
        _LOG.debug(f"no overview available for {ctx.name}")
        return None
    return overview
