"""Identity-key reconciliation shared by asset and column impacts."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from typing import TypeVar

T = TypeVar("T")


def dedupe(records: Iterable[T], key: Callable[[T], Hashable]) -> list[T]:
    """Drop records whose key was already seen; the first occurrence wins."""
    seen: set[Hashable] = set()
    unique: list[T] = []
    for record in records:
        k = key(record)
        if k in seen:
            continue
        seen.add(k)
        unique.append(record)
    return unique


def without_keys(records: Iterable[T], excluded: Iterable[T], key: Callable[[T], Hashable]) -> list[T]:
    """Records of *records* whose key does not occur in *excluded*."""
    excluded_keys = {key(r) for r in excluded}
    return [r for r in records if key(r) not in excluded_keys]


def reconcile(
    direct: Iterable[T],
    indirect: Iterable[T],
    key: Callable[[T], Hashable],
) -> tuple[list[T], list[T]]:
    """Apply direct precedence, then de-duplicate each side independently.

    Any indirect record sharing a key with a direct record is removed, so
    the returned lists are disjoint by key and each is internally unique.
    """
    direct_list = list(direct)
    indirect_list = without_keys(indirect, direct_list, key)
    return dedupe(direct_list, key), dedupe(indirect_list, key)
