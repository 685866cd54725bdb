"""Well-known folder resolution and folder path normalisation."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

LOGGER = logging.getLogger(__name__)

TARGET_SEPARATOR = "\\"
SOURCE_SEPARATOR = "/"

# First path segment (lower-cased) -> folder scope keyword understood by the resolver.
WELL_KNOWN_PREFIXES: dict[str, str] = {
    "inbox": "Inbox",
    "calendar": "Calendar",
    "tasks": "Tasks",
    "contacts": "Contacts",
    "sent": "SentItems",
}
CALENDAR_SCOPE = "Calendar"

DEFAULT_FOLDER_NAMES: dict[str, str] = {
    "Inbox": "Inbox",
    "Calendar": "Calendar",
    "Tasks": "Tasks",
    "Contacts": "Contacts",
    "SentItems": "Sent Items",
}


class FolderResolutionError(LookupError):
    """Raised when a well-known folder cannot be resolved for a mailbox."""

    def __init__(self, mailbox: str, scope: str, reason: str | None = None) -> None:
        message = f"Cannot resolve {scope} folder for {mailbox}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.mailbox = mailbox
        self.scope = scope


@runtime_checkable
class WellKnownFolderResolver(Protocol):
    """Looks up the actual (possibly localised) name of a well-known folder."""

    def resolve(self, mailbox: str, scope: str) -> str:
        """Return the folder name for the scope or raise FolderResolutionError."""


class StaticFolderResolver:
    """Answers from configured folder names instead of a live mailbox lookup."""

    def __init__(
        self,
        defaults: Mapping[str, str] | None = None,
        mailboxes: Mapping[str, Mapping[str, str]] | None = None,
    ) -> None:
        self._defaults = dict(DEFAULT_FOLDER_NAMES if defaults is None else defaults)
        self._mailboxes = {
            mailbox.strip().lower(): dict(names) for mailbox, names in (mailboxes or {}).items()
        }

    def resolve(self, mailbox: str, scope: str) -> str:
        overrides = self._mailboxes.get(mailbox.strip().lower(), {})
        name = overrides.get(scope) or self._defaults.get(scope)
        if not name:
            raise FolderResolutionError(mailbox, scope, "no folder name configured")
        return name


class CachingFolderResolver:
    """Memoises successful answers per (mailbox, scope) for the lifetime of a run."""

    def __init__(self, inner: WellKnownFolderResolver) -> None:
        self._inner = inner
        self._cache: dict[tuple[str, str], str] = {}

    def resolve(self, mailbox: str, scope: str) -> str:
        key = (mailbox.strip().lower(), scope)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        name = self._inner.resolve(mailbox, scope)
        if not name:
            raise FolderResolutionError(mailbox, scope, "resolver returned no folder name")
        self._cache[key] = name
        return name

    def __len__(self) -> int:
        return len(self._cache)


@dataclass(frozen=True)
class ResolvedPath:
    """Target folder identifier computed from a source folder path."""

    target_id: str
    calendar: bool = False
    scope: str | None = None


def match_well_known(path: str) -> tuple[str, str] | None:
    """Return (scope, sub_path) when the path starts with a well-known folder."""

    if not path.startswith(SOURCE_SEPARATOR):
        return None
    head, _sep, rest = path[1:].partition(SOURCE_SEPARATOR)
    scope = WELL_KNOWN_PREFIXES.get(head.lower())
    if scope is None:
        return None
    return scope, rest


def resolve_path(mailbox: str, path: str, resolver: WellKnownFolderResolver) -> ResolvedPath:
    """Normalise a source folder path into a `mailbox:folder` identifier.

    Well-known prefixes are substituted with the resolver's folder name and
    the separators converted to the target convention. Other paths are kept
    as they are. FolderResolutionError from the resolver propagates.
    """

    matched = match_well_known(path)
    if matched is None:
        return ResolvedPath(target_id=f"{mailbox}:{path}")

    scope, rest = matched
    folder = resolver.resolve(mailbox, scope)
    if not folder:
        raise FolderResolutionError(mailbox, scope, "resolver returned no folder name")
    segments = [folder, *(part for part in rest.split(SOURCE_SEPARATOR) if part)]
    target = TARGET_SEPARATOR + TARGET_SEPARATOR.join(segments)
    LOGGER.debug("Resolved %s on %s to %s", path, mailbox, target)
    return ResolvedPath(
        target_id=f"{mailbox}:{target}",
        calendar=scope == CALENDAR_SCOPE,
        scope=scope,
    )


__all__ = [
    "WELL_KNOWN_PREFIXES",
    "DEFAULT_FOLDER_NAMES",
    "FolderResolutionError",
    "WellKnownFolderResolver",
    "StaticFolderResolver",
    "CachingFolderResolver",
    "ResolvedPath",
    "match_well_known",
    "resolve_path",
]
