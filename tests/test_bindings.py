# Copyright (c) 2019 Nordic Semiconductor ASA
# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: BSD-3-Clause

import contextlib
import os
import pytest

from logging import WARNING

from dtoverview.bindings import Binding, bindings_from_paths, load_bindings
from dtoverview.error import BindingError, OverviewError

# Test suite for bindings.py.
#
# Run it using pytest (https://docs.pytest.org/en/stable/usage.html):
#
#   $ pytest test_bindings.py
#
# test-bindings/ has the bindings of the test board, test-bindings-include/
# has bindings for the corner cases of 'include:'.

HERE = os.path.dirname(__file__)


@contextlib.contextmanager
def from_here():
    # Convenience hack to minimize diff from zephyr.
    cwd = os.getcwd()
    try:
        os.chdir(HERE)
        yield
    finally:
        os.chdir(cwd)


def include_fname2path():
    return {
        fname: os.path.join("test-bindings-include", fname)
        for fname in os.listdir(os.path.join(HERE, "test-bindings-include"))
    }


def test_include_filters():
    """Test property-allowlist and property-blocklist in an include."""

    fname2path = include_fname2path()

    with pytest.raises(BindingError) as e:
        with from_here():
            Binding(
                "test-bindings-include/allow-and-blocklist.yaml", fname2path=fname2path
            )
    assert (
        "should not specify both 'property-allowlist:' and 'property-blocklist:'"
        in str(e.value)
    )

    with pytest.raises(BindingError) as e:
        with from_here():
            Binding("test-bindings-include/allow-not-list.yaml", fname2path=fname2path)
    value_str = str(e.value)
    assert value_str.startswith("'property-allowlist' value")
    assert value_str.endswith("should be a list")

    with pytest.raises(BindingError) as e:
        with from_here():
            Binding(
                "test-bindings-include/include-invalid-keys.yaml", fname2path=fname2path
            )
    value_str = str(e.value)
    assert value_str.startswith(
        "'include:' in test-bindings-include/include-invalid-keys.yaml should not "
        "have these unexpected contents: "
    )
    assert "bad-key-1" in value_str
    assert "bad-key-2" in value_str

    with pytest.raises(BindingError) as e:
        with from_here():
            Binding(
                "test-bindings-include/include-invalid-type.yaml", fname2path=fname2path
            )
    assert str(e.value).startswith(
        "'include:' in test-bindings-include/include-invalid-type.yaml "
        "should be a string or list, but has type "
    )

    with pytest.raises(BindingError) as e:
        with from_here():
            Binding("test-bindings-include/include-no-name.yaml", fname2path=fname2path)
    assert str(e.value) == (
        "'include:' element in test-bindings-include/include-no-name.yaml "
        "should have a 'name' key"
    )

    with from_here():
        binding = Binding("test-bindings-include/allowlist.yaml", fname2path=fname2path)
        assert set(binding.yaml_source["properties"]) == {"x"}

        binding = Binding("test-bindings-include/blocklist.yaml", fname2path=fname2path)
        assert set(binding.yaml_source["properties"]) == {"y", "z"}


def test_include_errors():
    """Test includes that can't be merged."""

    fname2path = include_fname2path()

    with pytest.raises(BindingError) as e:
        with from_here():
            Binding("test-bindings-include/include-missing.yaml", fname2path=fname2path)
    assert str(e.value) == (
        "'missing.yaml' included from "
        "test-bindings-include/include-missing.yaml not found"
    )

    with pytest.raises(BindingError) as e:
        with from_here():
            Binding("test-bindings-include/bus-overwrite.yaml", fname2path=fname2path)
    assert "'bus' from included file overwritten ('spi' replaced with 'i2c')" in str(
        e.value
    )


def test_description_and_bus():
    """Test the keys an including binding may override, and bus lists."""

    with from_here():
        binding = Binding(
            "test-bindings-include/description-override.yaml",
            fname2path=include_fname2path(),
        )

    assert binding.description == "The including binding's description wins"
    assert binding.compatible == "description-override"
    assert binding.buses == ["i3c", "i2c"]
    assert binding.bus == "i3c/i2c"
    assert binding.included == ["described-fragment"]
    assert binding.is_("described-fragment")
    assert not binding.is_("include")


def test_malformed_bindings():
    """Test bindings that fail the sanity checks."""

    fname2path = include_fname2path()

    with pytest.raises(BindingError) as e:
        with from_here():
            Binding("test-bindings-include/bad-cells.yaml", fname2path=fname2path)
    assert str(e.value) == (
        "malformed 'gpio-cells:' in test-bindings-include/bad-cells.yaml, "
        "expected a list of cell names"
    )

    with pytest.raises(BindingError) as e:
        with from_here():
            Binding("test-bindings-include/legacy-title.yaml", fname2path=fname2path)
    assert "legacy 'title:'" in str(e.value)

    with pytest.raises(BindingError) as e:
        with from_here():
            Binding("test-bindings-include/no-description.yaml", fname2path=fname2path)
    assert str(e.value) == (
        "missing 'description' in test-bindings-include/no-description.yaml"
    )

    with from_here():
        binding = Binding(
            "test-bindings-include/no-description.yaml",
            fname2path=fname2path,
            require_description=False,
        )
    assert binding.description is None

    # BindingError is an OverviewError
    with pytest.raises(OverviewError):
        Binding(None)


def test_yaml_source():
    """Test bindings created from already parsed YAML."""

    binding = Binding(
        "inline.yaml",
        yaml_source={
            "description": "  Inline binding \n",
            "compatible": "test,inline",
            "clock-cells": ["bus", "bits"],
        },
    )
    assert binding.description == "Inline binding"
    assert binding.cells("clock") == ["bus", "bits"]
    assert binding.cells("gpio") is None
    assert binding.specifier2cells == {"clock": ["bus", "bits"]}
    assert binding.buses == []
    assert binding.bus is None
    assert binding.child_binding is None
    assert repr(binding) == "<Binding inline.yaml for compatible 'test,inline'>"

    with pytest.raises(BindingError) as e:
        Binding("inline.yaml", yaml_source=["not", "a", "mapping"])
    assert str(e.value) == "inline.yaml: invalid contents, expected a mapping"


def test_load_bindings():
    """Test loading all bindings of a directory."""

    with from_here():
        bindings = load_bindings("test-bindings")

    assert ("test,nvic", None) in bindings
    # Include-only fragments are not registered
    assert not any(compat == "base" for compat, _ in bindings)
    assert ("test,sensor", "spi") in bindings
    assert ("test,sensor", "i2c") in bindings
    assert ("test,sensor", None) not in bindings

    nvic = bindings[("test,nvic", None)]
    assert nvic.cells("interrupt") == ["irq", "priority"]
    assert nvic.included == ["base", "interrupt-controller"]
    assert nvic.description == "Test nested vectored interrupt controller"

    adc = bindings[("test,adc", None)]
    assert adc.is_("adc-controller")
    assert adc.is_("test,adc")
    assert not adc.is_("dac-controller")

    spi = bindings[("test,spi", None)]
    assert spi.buses == ["spi"]
    assert spi.bus == "spi"
    assert spi.is_("spi-controller")

    i2c = bindings[("test,i2c", None)]
    assert i2c.buses == ["i2c"]
    assert set(i2c.yaml_source["properties"]) == {
        "reg",
        "status",
        "interrupts",
        "clock-frequency",
    }

    sensor = bindings[("test,sensor", "spi")]
    assert sensor.variant == "spi"
    assert sensor.description == "Test sensor on SPI"
    assert repr(sensor).endswith("for compatible 'test,sensor' on 'spi'>")

    partitions = bindings[("fixed-partitions", None)]
    child = partitions.child_binding
    assert child is not None
    assert child.compatible is None
    assert child.description == "Flash partition"
    assert child.included == ["base"]


def test_duplicate_compatible():
    """Test that two bindings for the same compatible are an error."""

    with pytest.raises(BindingError) as e:
        with from_here():
            load_bindings("test-bindings-dup")
    assert str(e.value) == (
        "both test-bindings-dup/first.yaml and test-bindings-dup/second.yaml "
        "have compatible 'test,dup'"
    )


def test_ignore_errors(caplog):
    """Test skipping malformed bindings."""

    with from_here():
        paths = [
            "test-bindings-include/bad-cells.yaml",
            "test-bindings-include/allowlist.yaml",
            "test-bindings-include/include.yaml",
        ]
        with pytest.raises(BindingError):
            bindings_from_paths(paths)

        bindings = bindings_from_paths(paths, ignore_errors=True)

    # include.yaml has neither a compatible nor a description
    assert [binding.compatible for binding in bindings] == ["allowlist"]
    assert (
        "dtoverview.bindings",
        WARNING,
        "ignoring malformed binding test-bindings-include/bad-cells.yaml",
    ) in caplog.record_tuples
