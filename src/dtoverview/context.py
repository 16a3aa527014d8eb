# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

"""
Overview contexts and the provider that owns them.

An OverviewContext bundles what one overview is built from: a hardware graph
snapshot, the board and the source files the graph was built from.

The ContextProvider stands for the upstream component that parses and links
devicetree sources. It may rebuild graphs at any time, on any thread. While it
does so (inside updating()), stable() blocks, so that consumers never read a
graph in the middle of a relink. Change listeners are told about every
finished update.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from threading import Condition

from typing import Callable, Iterator, Optional

from dtoverview.board import Board
from dtoverview.devicetree.hwgraph import HardwareGraph, Node

#
# Private constants
#

# Logging object
_LOG = logging.getLogger(__name__)

ChangeListener = Callable[[Optional["OverviewContext"]], None]

#
# Public classes
#


class OverviewContext:
    """
    Represents one devicetree context: a board plus overlays, linked into a
    single hardware graph.

    These attributes are available on OverviewContext objects:

    name:
      The name of the context, e.g. the board name.

    graph:
      The HardwareGraph snapshot of the context.

    board:
      The Board of the context, or None.

    files:
      The source files of the context, board file first, overlays after.

    Also see property docstrings.
    """

    def __init__(
        self,
        name: str,
        graph: HardwareGraph,
        board: Optional[Board] = None,
        files: tuple[str, ...] | list[str] = (),
    ):
        self.name: str = name
        self.graph: HardwareGraph = graph
        self.board: Optional[Board] = board
        self.files: list[str] = list(files)

    def __repr__(self) -> str:
        return f"<OverviewContext {self.name}>"

    @property
    def root(self) -> Node:
        "The root node of the context's hardware graph."
        return self.graph.root

    @property
    def nodes(self) -> list[Node]:
        "All nodes of the context's hardware graph, depth-first."
        return self.graph.nodes

    @property
    def navigation_file(self) -> Optional[str]:
        """
        The file navigation targets resolve against: the last (most specific)
        source file, or None if the context has no files.
        """
        return self.files[-1] if self.files else None


class ContextProvider:
    """
    Owns the overview contexts and signals when their graphs are stable.

    These attributes are available on ContextProvider objects:

    current:
      The context the user is working in, or None.

    Also see property docstrings.
    """

    def __init__(self, contexts: Optional[list[OverviewContext]] = None):
        self._contexts: list[OverviewContext] = list(contexts or [])
        self.current: Optional[OverviewContext] = (
            self._contexts[0] if self._contexts else None
        )
        self._cond = Condition()
        self._updates_in_progress: int = 0
        self._listeners: list[ChangeListener] = []

    def __repr__(self) -> str:
        return f"<ContextProvider with {len(self._contexts)} contexts>"

    @property
    def contexts(self) -> list[OverviewContext]:
        "The contexts, in the order they were added."
        with self._cond:
            return list(self._contexts)

    def stable(self, timeout: Optional[float] = None) -> bool:
        """
        Block until no update is in progress. Returns False if 'timeout'
        seconds passed first, True otherwise.
        """
        with self._cond:
            return self._cond.wait_for(
                lambda: self._updates_in_progress == 0, timeout
            )

    @contextmanager
    def updating(self, ctx: Optional[OverviewContext] = None) -> Iterator[None]:
        """
        Context manager for the upstream provider to wrap a (re)build of
        'ctx' (or of all contexts if None). stable() blocks until the block is
        left, and change listeners are notified afterwards.
        """
        with self._cond:
            self._updates_in_progress += 1
        try:
            yield
        finally:
            with self._cond:
                self._updates_in_progress -= 1
                self._cond.notify_all()
        self._notify(ctx)

    def add_context(self, ctx: OverviewContext) -> None:
        "Add 'ctx', making it the current context."
        with self.updating(ctx):
            with self._cond:
                self._contexts.append(ctx)
                self.current = ctx

    def replace_context(self, old: OverviewContext, new: OverviewContext) -> None:
        "Replace 'old' with the rebuilt context 'new'."
        with self.updating(new):
            with self._cond:
                self._contexts[self._contexts.index(old)] = new
                if self.current is old:
                    self.current = new

    def remove_context(self, ctx: OverviewContext) -> None:
        "Remove 'ctx'."
        with self.updating(None):
            with self._cond:
                self._contexts.remove(ctx)
                if self.current is ctx:
                    self.current = self._contexts[-1] if self._contexts else None

    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        """
        Register 'listener' to be called with the changed context (or None
        for changes that affect the list of contexts) after every update.
        Returns a function that unregisters the listener.
        """
        self._listeners.append(listener)

        def unregister() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unregister

    def _notify(self, ctx: Optional[OverviewContext]) -> None:
        for listener in list(self._listeners):
            try:
                listener(ctx)
            except Exception:
                _LOG.exception(f"change listener {listener!r} failed")
