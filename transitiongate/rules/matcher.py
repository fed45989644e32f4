"""
Condition matching between an inbound CI event and a configured pattern.

A pattern is a partial template of the event. Matching walks the pattern's
keys and compares each against the event, recursing into nested mappings and
lists. The pattern is satisfied when ANY of its keys matches, so
``{eventName: pull_request, action: opened}`` also matches a
``pull_request``/``closed`` event. Existing configurations depend on this, so
it must not be tightened to an all-keys match without a migration.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Sequence, Union

logger = logging.getLogger(__name__)

JsonScalar = Union[str, int, float, bool, None]
JsonValue = Union[JsonScalar, Dict[str, Any], List[Any]]


def is_container(value: Any) -> bool:
    """Mappings and lists are matched structurally; strings are scalars."""
    if isinstance(value, (str, bytes)):
        return False
    return isinstance(value, (Mapping, Sequence))


def _lookup(container: Any, key: Any) -> JsonValue:
    # Absent keys and out-of-range indexes read as None.
    if isinstance(container, Mapping):
        return container.get(key)
    if is_container(container):
        try:
            index = int(key)
        except (TypeError, ValueError):
            return None
        if 0 <= index < len(container):
            return container[index]
    return None


def _keys(pattern: Any) -> List[Any]:
    if isinstance(pattern, Mapping):
        return list(pattern.keys())
    return list(range(len(pattern)))


def strict_equals(left: JsonValue, right: JsonValue) -> bool:
    # bool is an int subclass; True must not equal 1.
    if isinstance(left, bool) or isinstance(right, bool):
        equal = isinstance(left, bool) and isinstance(right, bool) and left is right
    elif is_container(left) or is_container(right):
        equal = False
    else:
        equal = left == right
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Comparing a:%s to b:%s (%s)",
            json.dumps(left, default=str),
            json.dumps(right, default=str),
            equal,
        )
    return equal


def matches(payload: JsonValue, pattern: JsonValue) -> bool:
    """Return True if any key of ``pattern`` matches the same key in ``payload``."""
    if not is_container(pattern):
        return False
    for key in _keys(pattern):
        expected = _lookup(pattern, key)
        actual = _lookup(payload, key)
        if is_container(actual) and is_container(expected):
            if matches(actual, expected):
                return True
        elif strict_equals(actual, expected):
            return True
    return False
