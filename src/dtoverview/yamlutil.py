# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

"""
YAML loading shared by bindings, hardware graph snapshots and board metadata.

All three are loaded with the same safe loader, which adds two things on top
of PyYAML's SafeLoader:

- Duplicate mapping keys are errors. PyYAML silently keeps the last value,
  which would e.g. drop a node from a snapshot with two children of the same
  name.

- The legacy '!include foo.yaml' tag of bindings is accepted. It just turns
  into the list of file names, see bindings.py.
"""

import yaml

try:
    # Use the C LibYAML parser if available, rather than the Python parser.
    from yaml import CSafeLoader as SafeLoader
except ImportError:
    from yaml import SafeLoader  # type: ignore


class _Loader(SafeLoader):
    # Custom loader class, so that yaml.SafeLoader itself is left alone for
    # other users of PyYAML in the same process

    def construct_mapping(self, node, deep=False):
        if isinstance(node, yaml.MappingNode):
            # Resolve '<<' merge keys first, so that overriding a merged key
            # isn't flagged
            self.flatten_mapping(node)
            seen = set()
            for key_node, _ in node.value:
                if not isinstance(key_node, yaml.ScalarNode):
                    continue
                if key_node.value in seen:
                    raise yaml.constructor.ConstructorError(
                        "while constructing a mapping",
                        node.start_mark,
                        f"found duplicate key '{key_node.value}'",
                        key_node.start_mark,
                    )
                seen.add(key_node.value)
        return super().construct_mapping(node, deep)


def _construct_include(loader, node):
    # '!include foo.yaml' becomes ['foo.yaml'], '!include [foo, bar]' becomes
    # [foo, bar]
    if isinstance(node, yaml.ScalarNode):
        return [loader.construct_scalar(node)]

    if isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node)

    raise yaml.constructor.ConstructorError(
        None, None, "unrecognised node type in !include statement", node.start_mark
    )


_Loader.add_constructor("!include", _construct_include)


def load_yaml(path: str):
    """
    Load the YAML file at 'path'. Raises yaml.YAMLError on syntax errors and
    duplicate keys, and OSError if the file can't be read.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.load(f, Loader=_Loader)
