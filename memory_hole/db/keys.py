"""Key renaming between store column names and application keys.

Result rows come back with store names (``support_issue_id``,
``lastLogin``); callers see hyphenated lower-case keys
(``support-issue-id``, ``last-login``).
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Callable, Mapping

_SEPARATORS = re.compile(r"[\s_]+")


@lru_cache(maxsize=None)
def to_kebab_key(key: str) -> str:
    """Hyphenated lower-case form of ``key``; results are cached per key."""
    chars = []
    for char in key:
        if chars and chars[-1].islower() and char.isupper():
            chars.append("-")
        chars.append(char)
    return _SEPARATORS.sub("-", "".join(chars)).lower()


def to_param_name(key: str) -> str:
    """Bind parameter name for an application key (``user-id`` -> ``user_id``)."""
    return key.replace("-", "_")


def transform_keys(transform: Callable[[str], Any], data):
    """Recursively apply ``transform`` to every string key of every mapping in ``data``."""
    if isinstance(data, Mapping):
        return {
            (transform(key) if isinstance(key, str) else key): transform_keys(transform, value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [transform_keys(transform, item) for item in data]
    if isinstance(data, tuple):
        return tuple(transform_keys(transform, item) for item in data)
    return data


def kebab_keys(data):
    return transform_keys(to_kebab_key, data)
