"""Lookup index from mailbox/principal identifiers to the records referencing them."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from .types import PermissionRecord

PermissionIndex = dict[str, list[PermissionRecord]]


def build_index(records: Iterable[PermissionRecord]) -> PermissionIndex:
    """File every record under its mailbox and, when set, its delegate.

    Keys are raw identifiers. A record whose delegate equals its mailbox is
    filed twice under that key; nothing is deduplicated.
    """

    index: PermissionIndex = {}
    for record in records:
        index.setdefault(record.mailbox, []).append(record)
        if record.delegate:
            index.setdefault(record.delegate, []).append(record)
    return index


def records_for(
    index: Mapping[str, Sequence[PermissionRecord]],
    identifier: str,
) -> Sequence[PermissionRecord]:
    return index.get(identifier, ())


__all__ = ["PermissionIndex", "build_index", "records_for"]
