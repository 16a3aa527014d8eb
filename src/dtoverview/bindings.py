# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

"""
Bindings are YAML files that describe the semantic kind of a devicetree node.
Nodes are mapped to bindings via their 'compatible = "..."' property. Nodes
without a compatible of their own may pick up the 'child-binding:' of their
parent's binding.

The overview synthesizers only ask a few questions of a binding:

- Is the node a bus, and which protocol(s) does it speak ('bus:')?
- What are the names of the cells in a specifier for a given cell domain
  ('interrupt-cells:', 'clock-cells:', 'gpio-cells:', ...)?
- Is the binding of a given kind, i.e. is it the binding for that compatible,
  or does it (transitively) include the binding file of that name
  ('adc-controller.yaml', 'clock-controller.yaml', ...)?
- What is the human readable description of the node?

Property specifications ('properties:') are merged through includes like every
other key, but they are not validated: validating the hardware description is
not a concern of this library.
"""

from __future__ import annotations

from collections import OrderedDict
import logging
import os
import yaml

from typing import (
    Any,
    NoReturn,
    Optional,
)

from dtoverview.error import BindingError
from dtoverview.yamlutil import load_yaml

#
# Private constants
#

# Logging object
_LOG = logging.getLogger(__name__)

_CELLS_SUFFIX = "-cells"

#
# Public classes
#


class Binding:
    """
    Represents a parsed devicetree binding.

    These init attributes are available on Binding objects:

    path:
      The path to the file defining the binding.

    yaml_source:
      The binding as a merged object parsed from YAML, with all includes
      resolved.

    included:
      The stems of all binding files included by this binding, transitively,
      in include order. "adc-controller.yaml" becomes "adc-controller".

    specifier2cells:
      A dict that maps specifier space names (like "gpio", "clock",
      "interrupt", etc.) to lists of cell names.

      For example, if the binding YAML contains 'pin' and 'flags' cell names
      for the 'gpio' specifier space, like this:

          gpio-cells:
          - pin
          - flags

      Then the Binding object will have a 'specifier2cells' attribute mapping
      "gpio" to ["pin", "flags"].

    child_binding:
      The Binding object for 'child-binding:', or None. It applies to child
      nodes that have no compatible of their own.

    Also see property docstrings.
    """

    def __init__(
        self,
        path: Optional[str],
        yaml_source: Any = None,
        fname2path: dict[str, str] = {},
        require_compatible: bool = True,
        require_description: bool = True,
        is_child_binding: bool = False,
    ):
        """
        Binding constructor.

        path:
          Path to binding YAML file. May be None if 'yaml_source' is given.

        yaml_source:
          Optional raw yaml source for the binding. If not given, 'path' is
          mandatory and will be opened and read.

          The source may contain unresolved "include:" lines.

          Note: The 'yaml_source' attribute will be destructively modified by
          the constructor when resolving included files. Do not modify it after
          construction.

        fname2path:
          Map from include files to their paths. Must not be None, but may be
          empty.

        require_compatible:
          If True, it is an error if the binding does not contain a
          "compatible:" line.

        require_description:
          If True, it is an error if the binding does not contain a
          "description:" line.

        is_child_binding:
          True if this binding comes from a 'child-binding:' key.
        """
        self.path: Optional[str] = path

        self._fname2path: dict[str, str] = fname2path
        self._is_child_binding: bool = is_child_binding

        if yaml_source is None:
            if path is None:
                _err("you must provide either a 'path' or a 'yaml_source'")
            yaml_source = _load(path)

        if not isinstance(yaml_source, dict):
            _err(f"{path}: invalid contents, expected a mapping")

        self.included: list[str] = []
        self._merge_includes(yaml_source, path)

        self.yaml_source: dict[str, Any] = yaml_source

        self._check(require_compatible, require_description)

        self.specifier2cells: dict[str, list[str]] = {}
        for key, val in self.yaml_source.items():
            if key.endswith(_CELLS_SUFFIX):
                self.specifier2cells[key[: -len(_CELLS_SUFFIX)]] = val

        bus = self.yaml_source.get("bus")
        if bus is None:
            self._buses: list[str] = []
        elif isinstance(bus, list):
            self._buses = bus
        else:
            # Convert bus into a list
            self._buses = [bus]

        self.child_binding: Optional[Binding] = None
        if "child-binding" in self.yaml_source:
            child_yaml = self.yaml_source["child-binding"]
            if not isinstance(child_yaml, dict):
                _err(
                    f"malformed 'child-binding:' in {self.path}, "
                    "expected a binding (dictionary with keys/values)"
                )
            self.child_binding = Binding(
                path,
                yaml_source=child_yaml,
                fname2path=fname2path,
                require_compatible=False,
                require_description=False,
                is_child_binding=True,
            )

    def __repr__(self) -> str:
        compat = f" for compatible '{self.compatible}'" if self.compatible else ""
        variant = f" on '{self.variant}'" if self.variant else ""
        basename = os.path.basename(self.path or "")
        return f"<Binding {basename}" + compat + variant + ">"

    def __hash__(self):
        return hash((self.path, self.compatible, self.variant))

    def __eq__(self, other):
        if not isinstance(other, Binding):
            return False
        return (self.path, self.compatible, self.variant) == (
            other.path,
            other.compatible,
            other.variant,
        )

    @property
    def compatible(self) -> Optional[str]:
        """
        The compatible string the binding is for, or None for bindings created
        from a 'child-binding:'.
        """
        return self.yaml_source.get("compatible")

    @property
    def description(self) -> Optional[str]:
        """
        The free-form description of the binding with leading and trailing
        whitespace removed, or None.
        """
        description = self.yaml_source.get("description")
        return description.strip() if description else None

    @property
    def variant(self) -> Optional[str]:
        """
        If nodes with this binding's compatible appear on a bus, a string
        describing the bus type (like "i2c"). None otherwise.
        """
        return self.yaml_source.get("on-bus")

    @property
    def buses(self) -> list[str]:
        """
        If nodes with this binding describe a bus, a list describing the
        supported protocols (like ["i3c", "i2c"]). An empty list otherwise.
        """
        return self._buses

    @property
    def bus(self) -> Optional[str]:
        """
        The bus kind as display text, e.g. "spi" or "i3c/i2c", or None if
        nodes with this binding are not buses.
        """
        return "/".join(self._buses) if self._buses else None

    def cells(self, space: str) -> Optional[list[str]]:
        """
        The cell names for the specifier space 'space' ("interrupt", "clock",
        ...), or None if the binding has no '<space>-cells:' key.
        """
        return self.specifier2cells.get(space)

    def is_(self, kind: str) -> bool:
        """
        True if the binding is of kind 'kind': either 'kind' is the binding's
        compatible, or the binding includes (directly or indirectly) a binding
        file whose stem is 'kind', e.g. "adc-controller" for bindings that
        include adc-controller.yaml.
        """
        return kind == self.compatible or kind in self.included

    def _merge_includes(self, yaml_source: dict[str, Any], path: Optional[str]) -> None:
        # Destructively merges included files in 'yaml_source["include"]' into
        # 'yaml_source', removing the "include" key while doing so.
        #
        # Merging advances depth first, this means that keys defined by
        # includes are overwritten by the keys defined in the binding file
        # itself, for the keys where overwriting is allowed at all.

        if "include" not in yaml_source:
            return

        merged_yaml: OrderedDict[str, Any] = OrderedDict()
        includes = yaml_source.pop("include")
        if not isinstance(includes, (str, list)):
            _err(
                f"'include:' in {path} "
                f"should be a string or list, but has type {type(includes)}"
            )

        # List of strings and maps. These types may be intermixed.
        includes = [includes] if isinstance(includes, str) else includes
        for elem in includes:
            if isinstance(elem, str):
                include_fname = elem
                allowlist = blocklist = None
            elif isinstance(elem, dict):
                elem = dict(elem)
                include_fname = elem.pop("name", None)
                allowlist = elem.pop("property-allowlist", None)
                blocklist = elem.pop("property-blocklist", None)
                # Child-binding filters only narrow 'properties:', which are
                # not interpreted here.
                elem.pop("child-binding", None)
                if elem:
                    # We've popped out all the valid keys.
                    _err(
                        f"'include:' in {path} should not have "
                        f"these unexpected contents: {elem}"
                    )
                _check_include_dict(include_fname, allowlist, blocklist, path)
            else:
                _err(
                    f"all elements in 'include:' in {path} "
                    "should be either strings or maps with a 'name' key "
                    "and optional 'property-allowlist' or "
                    f"'property-blocklist' keys, but got: {elem}"
                )

            include_path = self._fname2path.get(include_fname)
            if not include_path:
                _err(f"'{include_fname}' included from {path} not found")

            include_yaml = _load(include_path)
            if not isinstance(include_yaml, dict):
                _err(f"{include_path}: invalid contents, expected a mapping")

            _filter_properties(include_yaml.get("properties"), allowlist, blocklist)

            # Record the include before recursing so that the order reflects
            # the include hierarchy top-down.
            self.included.append(os.path.splitext(include_fname)[0])
            self._merge_includes(include_yaml, include_path)

            _merge_yaml(path, merged_yaml, include_yaml)

        _merge_yaml(path, yaml_source, merged_yaml)

    def _check(self, require_compatible: bool, require_description: bool) -> None:
        # Does sanity checking on the binding.

        yaml_source = self.yaml_source

        compatible = yaml_source.get("compatible")
        if compatible is not None:
            if not isinstance(compatible, str):
                _err(
                    f"malformed 'compatible: {compatible}' "
                    f"field in {self.path} - "
                    f"should be a string, not {type(compatible).__name__}"
                )
        elif require_compatible:
            _err(f"missing 'compatible' in {self.path}")

        if "description" in yaml_source:
            description = yaml_source["description"]
            if not isinstance(description, str) or not description:
                _err(f"malformed or empty 'description' in {self.path}")
        elif require_description:
            _err(f"missing 'description' in {self.path}")

        legacy_errors = {
            "sub-node": "use 'child-binding' instead",
            "title": "use 'description' instead",
        }
        for key in yaml_source:
            if key in legacy_errors:
                _err(f"legacy '{key}:' in {self.path}, {legacy_errors[key]}")

        for key, val in yaml_source.items():
            if not key.endswith(_CELLS_SUFFIX):
                continue
            if not isinstance(val, list) or not all(isinstance(v, str) for v in val):
                _err(
                    f"malformed '{key}:' in {self.path}, "
                    "expected a list of cell names"
                )

        bus = yaml_source.get("bus")
        if bus is not None and not (
            isinstance(bus, str)
            or (isinstance(bus, list) and all(isinstance(elem, str) for elem in bus))
        ):
            _err(
                f"malformed 'bus:' value in {self.path}, "
                "expected string or list of strings"
            )


#
# Public global functions
#


def bindings_from_paths(
    yaml_paths: list[str], ignore_errors: bool = False
) -> list[Binding]:
    """
    Get a list of Binding objects from the yaml files 'yaml_paths'.

    If 'ignore_errors' is True, YAML files that cause a BindingError when
    loaded are ignored. (No other exception types are silenced.)
    """

    ret: list[Binding] = []
    fname2path = {os.path.basename(path): path for path in yaml_paths}
    for path in yaml_paths:
        try:
            ret.append(Binding(path, fname2path=fname2path))
        except BindingError:
            if ignore_errors:
                _LOG.warning(f"ignoring malformed binding {path}")
                continue
            raise

    return ret


def load_bindings(
    bindings_dirs: str | list[str], ignore_errors: bool = False
) -> dict[tuple[str, Optional[str]], Binding]:
    """
    Load all bindings found (recursively) in 'bindings_dirs' and return a
    dictionary that maps (compatible, on-bus variant) tuples to Binding
    objects. Binding files without a 'compatible:' (i.e. include-only
    fragments) may be included by other bindings but are not registered.

    If 'ignore_errors' is True, malformed bindings are skipped with a
    warning instead of raising BindingError.
    """
    if isinstance(bindings_dirs, str):
        bindings_dirs = [bindings_dirs]

    yaml_paths = []
    for bindings_dir in bindings_dirs:
        for root, _, filenames in os.walk(bindings_dir):
            for filename in sorted(filenames):
                if filename.endswith(".yaml") or filename.endswith(".yml"):
                    yaml_paths.append(os.path.join(root, filename))

    fname2path = {os.path.basename(path): path for path in yaml_paths}

    compat2binding: dict[tuple[str, Optional[str]], Binding] = {}
    for path in yaml_paths:
        yaml_source = _load(path)
        if not isinstance(yaml_source, dict) or "compatible" not in yaml_source:
            # Empty file, binding fragment, spurious file, etc.
            continue

        try:
            binding = Binding(path, yaml_source=yaml_source, fname2path=fname2path)
        except BindingError:
            if ignore_errors:
                _LOG.warning(f"ignoring malformed binding {path}")
                continue
            raise

        key = (binding.compatible, binding.variant)
        old_binding = compat2binding.get(key)
        if old_binding:
            msg = (
                f"both {old_binding.path} and {binding.path} have "
                f"compatible '{binding.compatible}'"
            )
            if binding.variant is not None:
                msg += f" and 'on-bus: {binding.variant}'"
            _err(msg)

        compat2binding[key] = binding

    return compat2binding


#
# Private global functions
#


def _load(path: str) -> Any:
    try:
        return load_yaml(path)
    except yaml.YAMLError as e:
        _err(f"'{path}' isn't valid YAML: {e}")
    except OSError as e:
        _err(f"could not read binding '{path}': {e}")


def _check_include_dict(
    name: Optional[str],
    allowlist: Optional[list[str]],
    blocklist: Optional[list[str]],
    binding_path: Optional[str],
) -> None:
    # Check that an 'include:' named 'name' with property-allowlist
    # 'allowlist' and property-blocklist 'blocklist' has valid structure.

    if name is None:
        _err(f"'include:' element in {binding_path} should have a 'name' key")

    if allowlist is not None and blocklist is not None:
        _err(
            f"'include:' of file '{name}' in {binding_path} "
            "should not specify both 'property-allowlist:' "
            "and 'property-blocklist:'"
        )

    for filter_name, filter_list in (
        ("property-allowlist", allowlist),
        ("property-blocklist", blocklist),
    ):
        if filter_list is not None and not isinstance(filter_list, list):
            _err(f"'{filter_name}' value {filter_list} in {binding_path} should be a list")


def _filter_properties(
    props_yaml: Optional[dict[str, Any]],
    allowlist: Optional[list[str]],
    blocklist: Optional[list[str]],
) -> None:
    # Destructively removes properties from an included binding according to
    # 'allowlist' and 'blocklist'.

    if not props_yaml:
        return

    if allowlist is not None:
        for name in [name for name in props_yaml if name not in allowlist]:
            del props_yaml[name]
    elif blocklist is not None:
        for name in [name for name in props_yaml if name in blocklist]:
            del props_yaml[name]


def _merge_yaml(
    path: Optional[str],
    to_yaml: dict[str, Any],
    from_yaml: dict[str, Any],
    parent_key: Optional[str] = None,
) -> None:
    # Recursively merges 'from_yaml' into 'to_yaml', to implement 'include:'.
    #
    # If 'from_yaml' and 'to_yaml' contain a 'required:' key for the same
    # property, then the values are ORed together.
    #
    # It's an error for most other keys to appear in both 'from_yaml' and
    # 'to_yaml'. When it's not an error, the value in 'to_yaml' takes
    # precedence.

    for prop_name in from_yaml:
        if isinstance(to_yaml.get(prop_name), dict) and isinstance(
            from_yaml[prop_name], dict
        ):
            _merge_yaml(path, to_yaml[prop_name], from_yaml[prop_name], prop_name)
        elif prop_name not in to_yaml:
            to_yaml[prop_name] = from_yaml[prop_name]
        elif _bad_overwrite(prop_name, to_yaml[prop_name], from_yaml[prop_name]):
            _err(
                f"{path} (in '{parent_key}'): '{prop_name}' "
                f"from included file overwritten ('{from_yaml[prop_name]}' "
                f"replaced with '{to_yaml[prop_name]}')"
            )
        elif prop_name == "required":
            to_yaml["required"] = bool(to_yaml["required"] or from_yaml["required"])


def _bad_overwrite(prop: str, to_prop: Any, from_prop: Any) -> bool:
    # _merge_yaml() helper. Returns True in cases where it's bad that to_prop
    # takes precedence over from_prop.

    if to_prop == from_prop:
        return False

    # These are overridden deliberately
    if prop in {"description", "compatible", "required"}:
        return False

    return True


def _err(msg) -> NoReturn:
    raise BindingError(msg)
