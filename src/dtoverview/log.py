# Copyright (c) 2024 The Zephyr Project
# SPDX-License-Identifier: Apache-2.0

import logging

_FORMAT = "%(name)s: %(levelname)s: %(message)s"


def setup_logging(level: str | int = logging.WARNING) -> None:
    """
    Route the library's log messages to stderr. 'level' is a logging level or
    its name, e.g. "debug". Only the first call has an effect.
    """
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=_FORMAT)
