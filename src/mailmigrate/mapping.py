"""Translate exported ACL records into target-system permission grants."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from .folders import WellKnownFolderResolver, resolve_path
from .types import ROOT_TYPE, AssignmentKind, GrantAction, GrantKind, PermissionRecord

LOGGER = logging.getLogger(__name__)

DEFAULT_PRINCIPAL = "Default"
ANONYMOUS_PRINCIPAL = "Anonymous"

ROOT_FULL_ACCESS_LETTERS = frozenset({"rwidx", "rwidxa"})
ROOT_READ_LETTERS = "r"
FOLDER_LETTERS: dict[str, GrantKind] = {
    "r": GrantKind.REVIEWER,
    "rwidx": GrantKind.EDITOR,
    "rwidxa": GrantKind.OWNER,
    "rwidxp": GrantKind.OWNER,
}
CALENDAR_FLAG_KINDS = frozenset({GrantKind.REVIEWER, GrantKind.EDITOR})


def classify(type_: str, assignment_kind: str, permission_letters: str) -> GrantKind:
    """Classify one ACL tuple. Never raises; unknown combinations are UNSUPPORTED."""

    letters = (permission_letters or "").strip().lower()
    if (type_ or "").strip().upper() == ROOT_TYPE:
        if letters in ROOT_FULL_ACCESS_LETTERS:
            return GrantKind.FULL_ACCESS_SEND_AS
        if letters == ROOT_READ_LETTERS:
            return GrantKind.READ_PERMISSION
        return GrantKind.UNSUPPORTED

    raw_kind = (assignment_kind or "").strip()
    if not raw_kind:
        return GrantKind.NONE
    kind = AssignmentKind.parse(raw_kind)
    if kind is AssignmentKind.PUB:
        return GrantKind.LIMITED_DETAILS
    if kind is AssignmentKind.GUEST:
        return GrantKind.AVAILABILITY_ONLY
    if kind in (AssignmentKind.ALL, AssignmentKind.DOM):
        return GrantKind.DEFAULT_REVIEWER
    if not letters:
        return GrantKind.NONE
    return FOLDER_LETTERS.get(letters, GrantKind.UNSUPPORTED)


def principal_for(kind: GrantKind, delegate: str) -> str:
    if kind in (GrantKind.LIMITED_DETAILS, GrantKind.DEFAULT_REVIEWER):
        return DEFAULT_PRINCIPAL
    if kind is GrantKind.AVAILABILITY_ONLY:
        return ANONYMOUS_PRINCIPAL
    return delegate


@dataclass(frozen=True)
class CalendarOptions:
    """Notification and sharing settings attached to calendar reviewer/editor grants."""

    notify: bool = False
    sharing_flags: tuple[str, ...] = ()


class MappingEngine:
    """Map ACL records one at a time into GrantAction descriptors."""

    def __init__(
        self,
        resolver: WellKnownFolderResolver,
        *,
        calendar: CalendarOptions | None = None,
    ) -> None:
        self._resolver = resolver
        self._calendar = calendar or CalendarOptions()

    def map_records(self, records: Iterable[PermissionRecord]) -> Iterator[GrantAction]:
        for record in records:
            yield self.map_record(record)

    def map_record(self, record: PermissionRecord) -> GrantAction:
        kind = classify(record.type, record.assignment_kind, record.permission_letters)
        if record.is_root:
            return self._build(record, kind, target=record.mailbox, calendar=False)

        try:
            resolved = resolve_path(record.mailbox, record.path, self._resolver)
        except Exception as exc:
            LOGGER.warning("Skipping %s %s: %s", record.mailbox, record.path, exc)
            return self._build(
                record,
                GrantKind.UNRESOLVED,
                target=f"{record.mailbox}:{record.path}",
                calendar=False,
                detail=str(exc),
            )
        return self._build(record, kind, target=resolved.target_id, calendar=resolved.calendar)

    def _build(
        self,
        record: PermissionRecord,
        kind: GrantKind,
        *,
        target: str,
        calendar: bool,
        detail: str = "",
    ) -> GrantAction:
        letters = record.permission_letters
        principal = principal_for(kind, record.delegate)
        if kind is GrantKind.UNSUPPORTED:
            detail = (
                f"unsupported permission '{letters}' for type {record.type or '<empty>'}"
                f" and assignment {record.assignment_kind or '<empty>'}"
            )
            LOGGER.info("Unsupported grant on %s (%s): %s", record.mailbox, record.path, detail)

        notify: bool | None = None
        sharing_flags: tuple[str, ...] | None = None
        if calendar and kind in CALENDAR_FLAG_KINDS:
            notify = self._calendar.notify
            sharing_flags = tuple(self._calendar.sharing_flags)

        return GrantAction(
            mailbox=record.mailbox,
            path=record.path,
            type=record.type,
            kind=kind,
            principal=principal,
            perms_display=_perms_display(letters, kind),
            resolved_target_id=target,
            action_description=_describe(kind, principal, target, detail),
            detail=detail,
            calendar=calendar,
            notify=notify,
            sharing_flags=sharing_flags,
        )


@dataclass
class MappingSummary:
    """Counts of produced actions per grant kind."""

    counts: dict[GrantKind, int] = field(default_factory=dict)

    def record(self, action: GrantAction) -> None:
        self.counts[action.kind] = self.counts.get(action.kind, 0) + 1

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def supported(self) -> int:
        return sum(count for kind, count in self.counts.items() if kind.is_grant)

    @property
    def unsupported(self) -> int:
        return self.total - self.supported


def filter_batch_records(
    records: Iterable[PermissionRecord],
    batch: Iterable[str],
) -> list[PermissionRecord]:
    """Keep records whose mailbox or delegate belongs to the batch."""

    users = {address.strip().lower() for address in batch if address and address.strip()}
    return [
        record
        for record in records
        if record.mailbox.strip().lower() in users or record.delegate.strip().lower() in users
    ]


def _perms_display(letters: str, kind: GrantKind) -> str:
    shown = letters or "-"
    if kind.is_grant:
        return f"{shown} ({'+'.join(kind.access_rights)})"
    return f"{shown} ({kind.value.lower()})"


def _describe(kind: GrantKind, principal: str, target: str, detail: str) -> str:
    who = principal or "<no principal>"
    if kind is GrantKind.FULL_ACCESS_SEND_AS:
        return f"Grant FullAccess and SendAs on {target} to {who}"
    if kind is GrantKind.READ_PERMISSION:
        return f"Grant ReadPermission on {target} to {who}"
    if kind.is_grant:
        return f"Set {'+'.join(kind.access_rights)} on {target} for {who}"
    return f"{kind.value}: {detail}"


__all__ = [
    "DEFAULT_PRINCIPAL",
    "ANONYMOUS_PRINCIPAL",
    "classify",
    "principal_for",
    "CalendarOptions",
    "MappingEngine",
    "MappingSummary",
    "filter_batch_records",
]
