# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

"""
Board metadata: name, architecture, supported features and toolchains of a
board, as found in Zephyr-style board YAML files:

    identifier: nrf52840dk/nrf52840
    name: nRF52840-DK-NRF52840
    type: mcu
    arch: arm
    toolchain:
      - zephyr
      - gnuarmemb
    supported:
      - adc
      - gpio

Lookups are lazy: a Board only asks its BoardInfoProvider the first time its
'info' is needed, and remembers the answer (also a negative one) for as long
as the Board lives.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
import logging
import os
from threading import Lock
import yaml

from typing import Any, NoReturn, Optional, Union

from dtoverview.error import BoardError
from dtoverview.yamlutil import load_yaml

#
# Private constants
#

# Logging object
_LOG = logging.getLogger(__name__)

#
# Public classes
#


@dataclass
class BoardInfo:
    """
    Metadata record of a board.

    identifier:
      The board identifier, e.g. "nrf52840dk/nrf52840".

    name:
      The human readable board name, or None.

    arch:
      The CPU architecture, or None.

    supported:
      The supported features, e.g. ["adc", "gpio"].

    toolchain:
      The supported toolchains, e.g. ["zephyr", "gnuarmemb"].

    path:
      The YAML file the record was read from, or None.
    """

    identifier: str
    name: Optional[str] = None
    arch: Optional[str] = None
    supported: list[str] = field(default_factory=list)
    toolchain: list[str] = field(default_factory=list)
    path: Optional[str] = None

    @classmethod
    def from_yaml(cls, yaml_source: Any, path: Optional[str] = None) -> BoardInfo:
        """
        Create a BoardInfo from a parsed board YAML file. Raises BoardError if
        the contents are malformed.
        """
        if not isinstance(yaml_source, dict):
            _err(f"{path}: invalid contents, expected a mapping")

        identifier = yaml_source.get("identifier")
        if not isinstance(identifier, str) or not identifier:
            _err(f"missing or malformed 'identifier' in {path}")

        for key in ("name", "arch"):
            val = yaml_source.get(key)
            if val is not None and not isinstance(val, str):
                _err(f"malformed '{key}: {val}' in {path}, expected a string")

        lists: dict[str, list[str]] = {}
        for key in ("supported", "toolchain"):
            val = yaml_source.get(key) or []
            if not isinstance(val, list) or not all(isinstance(v, str) for v in val):
                _err(f"malformed '{key}:' in {path}, expected a list of strings")
            lists[key] = val

        return cls(
            identifier=identifier,
            name=yaml_source.get("name"),
            arch=yaml_source.get("arch"),
            supported=lists["supported"],
            toolchain=lists["toolchain"],
            path=path,
        )

    def fields(self) -> OrderedDict[str, Union[str, list[str]]]:
        """
        The non-empty metadata fields ("name", "arch", "supported",
        "toolchain"), in this order.
        """
        fields: OrderedDict[str, Union[str, list[str]]] = OrderedDict()
        for key in ("name", "arch", "supported", "toolchain"):
            val = getattr(self, key)
            if val:
                fields[key] = val
        return fields


class BoardInfoProvider:
    """
    Looks up board metadata in board directories.

    A board "foo/bar" is found in a file named "foo_bar.yaml" anywhere below
    one of the board roots, or else in any board YAML file whose 'identifier:'
    is "foo/bar". Results are cached per identifier, including misses.

    Lookups are thread-safe.
    """

    def __init__(self, board_roots: Union[str, list[str]]):
        self.board_roots: list[str] = (
            [board_roots] if isinstance(board_roots, str) else list(board_roots)
        )
        self._cache: dict[str, Optional[BoardInfo]] = {}
        self._lock = Lock()

    def __repr__(self) -> str:
        return f"<BoardInfoProvider for {', '.join(self.board_roots)}>"

    def lookup(self, identifier: str) -> Optional[BoardInfo]:
        """
        Returns the BoardInfo for the board 'identifier', or None if no (valid)
        metadata exists for it.
        """
        with self._lock:
            if identifier not in self._cache:
                self._cache[identifier] = self._find(identifier)
            return self._cache[identifier]

    def _find(self, identifier: str) -> Optional[BoardInfo]:
        yaml_paths = self._yaml_paths()

        fname = identifier.replace("/", "_") + ".yaml"
        candidates = [path for path in yaml_paths if os.path.basename(path) == fname]
        # Fall back to scanning files that mention the identifier at all.
        candidates.extend(
            path
            for path in yaml_paths
            if path not in candidates and _mentions(path, identifier)
        )

        for path in candidates:
            try:
                info = BoardInfo.from_yaml(load_yaml(path), path)
            except (BoardError, yaml.YAMLError, OSError) as e:
                _LOG.warning(f"ignoring board metadata in {path}: {e}")
                continue

            if info.identifier == identifier:
                return info

        _LOG.info(f"no board metadata found for '{identifier}'")
        return None

    def _yaml_paths(self) -> list[str]:
        yaml_paths = []
        for board_root in self.board_roots:
            for root, _, filenames in os.walk(board_root):
                for filename in sorted(filenames):
                    if filename.endswith(".yaml") or filename.endswith(".yml"):
                        yaml_paths.append(os.path.join(root, filename))
        return yaml_paths


class Board:
    """
    The board of an overview context.

    identifier:
      The board identifier.

    Also see the 'info' property.
    """

    def __init__(
        self,
        identifier: str,
        provider: Optional[BoardInfoProvider] = None,
        info: Optional[BoardInfo] = None,
    ):
        """
        Board constructor.

        identifier:
          The board identifier, e.g. "nrf52840dk/nrf52840".

        provider:
          The BoardInfoProvider used to look up the metadata on first use.

        info:
          Already known metadata. No lookup happens if given.
        """
        self.identifier: str = identifier
        self._provider: Optional[BoardInfoProvider] = provider
        self._info: Optional[BoardInfo] = info
        self._resolved: bool = info is not None or provider is None
        self._lock = Lock()

    def __repr__(self) -> str:
        return f"<Board {self.identifier}>"

    @property
    def resolved(self) -> bool:
        "True once the metadata lookup has happened (or was not needed)."
        return self._resolved

    @property
    def info(self) -> Optional[BoardInfo]:
        """
        The BoardInfo of the board, or None if there is none. The first access
        may trigger a lookup through the provider; the result is cached.
        """
        with self._lock:
            if not self._resolved:
                assert self._provider is not None
                self._info = self._provider.lookup(self.identifier)
                self._resolved = True
            return self._info


#
# Private global functions
#


def _mentions(path: str, identifier: str) -> bool:
    try:
        with open(path, encoding="utf-8") as f:
            return identifier in f.read()
    except OSError:
        return False


def _err(msg) -> NoReturn:
    raise BoardError(msg)
