from __future__ import annotations

import logging
from enum import Enum
from typing import TypeVar

E = TypeVar("E", bound=Enum)


def is_truthy_or_empty_string(x: str) -> bool:
    return x.strip().lower() in ("", "1", "true", "yes", "y", "on")


def is_falsy_string(x: str) -> bool:
    return x.strip().lower() in ("0", "false", "no", "n", "off")


def parse_bool(name: str, value: str) -> bool:
    if is_truthy_or_empty_string(value):
        return True
    if is_falsy_string(value):
        return False
    msg = f"Invalid value for {name}: {value!r} (expected a boolean)"
    raise ValueError(msg)


def parse_log_level(loglevel: str) -> int:
    numeric_level = getattr(logging, loglevel.upper(), None)
    if isinstance(numeric_level, int):
        return numeric_level
    msg = f"Invalid log level: {loglevel}"
    raise ValueError(msg)


def parse_policy(name: str, value: str | E, enum_type: type[E]) -> E:
    """Convert a policy name (case-insensitive) to the given enum type.
    Enum members are passed through unchanged."""
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(str(value).strip().lower())
    except ValueError as e:
        options = ", ".join(repr(m.value) for m in enum_type)
        msg = f"Invalid value for {name}: {value!r} (possible values: {options})"
        raise ValueError(msg) from e
