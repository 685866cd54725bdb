"""Grant executors: turn GrantAction descriptors into target-system commands."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Protocol, runtime_checkable

from .mapping import ANONYMOUS_PRINCIPAL, DEFAULT_PRINCIPAL
from .types import GrantAction, GrantKind

LOGGER = logging.getLogger(__name__)
SCRIPT_HEADER = "# Generated by mailmigrate; review before running in an Exchange Online session."


@runtime_checkable
class GrantExecutor(Protocol):
    """Performs a single grant against the mail system."""

    def execute(self, action: GrantAction) -> None:
        """Apply the grant. Raising marks only this action as failed."""


def quote(value: str) -> str:
    """Quote a value as a PowerShell single-quoted string."""

    return "'" + value.replace("'", "''") + "'"


def render_commands(action: GrantAction) -> list[str]:
    """Render the commands that apply a supported action; unsupported actions render nothing."""

    if not action.is_supported:
        return []
    kind = action.kind
    if kind is GrantKind.FULL_ACCESS_SEND_AS:
        return [
            f"Add-MailboxPermission -Identity {quote(action.mailbox)} "
            f"-User {quote(action.principal)} -AccessRights FullAccess -InheritanceType All",
            f"Add-RecipientPermission -Identity {quote(action.mailbox)} "
            f"-Trustee {quote(action.principal)} -AccessRights SendAs -Confirm:$false",
        ]
    if kind is GrantKind.READ_PERMISSION:
        return [
            f"Add-MailboxPermission -Identity {quote(action.mailbox)} "
            f"-User {quote(action.principal)} -AccessRights ReadPermission",
        ]

    # Default and Anonymous entries always exist on a folder, so they are updated in place.
    verb = "Set" if action.principal in (DEFAULT_PRINCIPAL, ANONYMOUS_PRINCIPAL) else "Add"
    command = (
        f"{verb}-MailboxFolderPermission -Identity {quote(action.resolved_target_id)} "
        f"-User {quote(action.principal)} -AccessRights {','.join(kind.access_rights)}"
    )
    if action.notify:
        command += " -SendNotificationToUser $true"
    if action.sharing_flags:
        command += f" -SharingPermissionFlags {','.join(action.sharing_flags)}"
    return [command]


class LoggingExecutor:
    """Dry-run executor that only logs the commands it would run."""

    def __init__(self) -> None:
        self.commands: list[str] = []

    def execute(self, action: GrantAction) -> None:
        for command in render_commands(action):
            self.commands.append(command)
            LOGGER.info("[dry-run] %s", command)


class ScriptExecutor:
    """Write rendered commands to a script file for later review and execution."""

    def __init__(self, path: Path) -> None:
        self.path = path.expanduser()
        self._handle: IO[str] | None = None
        self.lines_written = 0

    def __enter__(self) -> ScriptExecutor:
        self.open()
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:
        self.close()

    def open(self) -> None:
        if self._handle is not None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self.path.open("w", encoding="utf-8")
        self._handle.write(f"{SCRIPT_HEADER}\n")

    def close(self) -> None:
        if self._handle is None:
            return
        self._handle.close()
        self._handle = None

    def execute(self, action: GrantAction) -> None:
        if self._handle is None:
            raise RuntimeError(f"Script {self.path} is not open.")
        self._handle.write(f"# {action.action_description}\n")
        for command in render_commands(action):
            self._handle.write(f"{command}\n")
            self.lines_written += 1


@dataclass
class ExecutionResult:
    """Counters for a batch of executed actions."""

    executed: int = 0
    skipped: int = 0
    failed: int = 0


def execute_actions(actions: Iterable[GrantAction], executor: GrantExecutor) -> ExecutionResult:
    """Execute every supported action; one failure never stops the rest."""

    result = ExecutionResult()
    for action in actions:
        if not action.is_supported:
            result.skipped += 1
            LOGGER.debug("Not executing %s: %s", action.kind.value, action.detail)
            continue
        try:
            executor.execute(action)
        except Exception:
            result.failed += 1
            LOGGER.exception("Grant failed: %s", action.action_description)
            continue
        result.executed += 1
    return result


__all__ = [
    "GrantExecutor",
    "LoggingExecutor",
    "ScriptExecutor",
    "ExecutionResult",
    "execute_actions",
    "render_commands",
    "quote",
]
