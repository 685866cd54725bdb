"""Core immutable data structures shared by the scorer and the mapping engine."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

ROOT_TYPE = "ROOT"
RECORD_FIELDS = (
    "mailbox",
    "path",
    "type",
    "delegate",
    "assignment_kind",
    "permission_letters",
)


class AssignmentKind(str, Enum):
    """Principal class of an exported ACL entry."""

    USR = "usr"
    GRP = "grp"
    DOM = "dom"
    ALL = "all"
    PUB = "pub"
    GUEST = "guest"

    @classmethod
    def parse(cls, value: str | None) -> AssignmentKind | None:
        """Return the matching member, or None for empty/unknown text."""

        normalized = (value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        return None


class GrantKind(str, Enum):
    """Closed set of classification outcomes for one ACL record."""

    FULL_ACCESS_SEND_AS = "FullAccess+SendAs"
    READ_PERMISSION = "ReadPermission"
    NONE = "None"
    LIMITED_DETAILS = "LimitedDetails"
    AVAILABILITY_ONLY = "AvailabilityOnly"
    DEFAULT_REVIEWER = "DefaultReviewer"
    REVIEWER = "Reviewer"
    EDITOR = "Editor"
    OWNER = "Owner"
    UNSUPPORTED = "Unsupported"
    UNRESOLVED = "Unresolved"

    @property
    def is_grant(self) -> bool:
        return self not in (GrantKind.UNSUPPORTED, GrantKind.UNRESOLVED)

    @property
    def access_rights(self) -> tuple[str, ...]:
        """Target-system access right names carried by this grant."""

        return _ACCESS_RIGHTS.get(self, ())


_ACCESS_RIGHTS: dict[GrantKind, tuple[str, ...]] = {
    GrantKind.FULL_ACCESS_SEND_AS: ("FullAccess", "SendAs"),
    GrantKind.READ_PERMISSION: ("ReadPermission",),
    GrantKind.NONE: ("None",),
    GrantKind.LIMITED_DETAILS: ("LimitedDetails",),
    GrantKind.AVAILABILITY_ONLY: ("AvailabilityOnly",),
    GrantKind.DEFAULT_REVIEWER: ("Reviewer",),
    GrantKind.REVIEWER: ("Reviewer",),
    GrantKind.EDITOR: ("Editor",),
    GrantKind.OWNER: ("Owner",),
}


@dataclass(frozen=True)
class PermissionRecord:
    """One exported ACL entry."""

    mailbox: str
    path: str
    type: str
    delegate: str = ""
    assignment_kind: str = ""
    permission_letters: str = ""

    @classmethod
    def from_row(cls, fields: Sequence[str | None]) -> PermissionRecord:
        """Build a record from raw export fields, padding short rows with empty strings."""

        values = [(str(value) if value is not None else "").strip() for value in fields]
        values = (values + [""] * len(RECORD_FIELDS))[: len(RECORD_FIELDS)]
        mailbox, path, type_, delegate, kind, letters = values
        return cls(
            mailbox=mailbox,
            path=path,
            type=type_,
            delegate=delegate,
            assignment_kind=kind.lower(),
            permission_letters=letters,
        )

    @property
    def is_root(self) -> bool:
        return self.type.strip().upper() == ROOT_TYPE


@dataclass(frozen=True)
class ScoredMailbox:
    """Eligibility score for one candidate shared mailbox."""

    email_address: str
    total_perms: int
    total_weight: int
    in_batch_perms: int
    in_batch_weight: int
    percentage: int
    is_excluded: bool
    eligible: bool


@dataclass(frozen=True)
class GrantAction:
    """Target-system grant derived from a single ACL record."""

    mailbox: str
    path: str
    type: str
    kind: GrantKind
    principal: str
    perms_display: str
    resolved_target_id: str
    action_description: str
    detail: str = ""
    calendar: bool = False
    notify: bool | None = None
    sharing_flags: tuple[str, ...] | None = None

    @property
    def is_supported(self) -> bool:
        return self.kind.is_grant


__all__ = [
    "ROOT_TYPE",
    "RECORD_FIELDS",
    "AssignmentKind",
    "GrantKind",
    "PermissionRecord",
    "ScoredMailbox",
    "GrantAction",
]
