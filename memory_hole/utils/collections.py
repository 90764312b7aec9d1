"""Small ordered-set helpers for relation reconciliation."""
from typing import Iterable, List


def _key(item):
    # Decoded records are lists; compare them by value
    return tuple(item) if isinstance(item, list) else item


def distinct(items: Iterable) -> List:
    """Items in first-seen order with duplicates removed."""
    seen = set()
    result = []
    for item in items or ():
        key = _key(item)
        if key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result


def difference(items: Iterable, excluded: Iterable) -> List:
    """Distinct ``items`` not present in ``excluded``, in first-seen order."""
    excluded_keys = {_key(item) for item in excluded or ()}
    return [item for item in distinct(items) if _key(item) not in excluded_keys]
