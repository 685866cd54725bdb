from __future__ import annotations

from pathlib import Path

from mailmigrate.executor import (
    SCRIPT_HEADER,
    GrantExecutor,
    LoggingExecutor,
    ScriptExecutor,
    execute_actions,
    quote,
    render_commands,
)
from mailmigrate.types import GrantAction, GrantKind


def _action(
    kind: GrantKind,
    *,
    principal: str = "bob@example.com",
    target: str = "shared@example.com:\\Calendar",
    notify: bool | None = None,
    sharing_flags: tuple[str, ...] | None = None,
) -> GrantAction:
    return GrantAction(
        mailbox="shared@example.com",
        path="/Calendar",
        type="appointment",
        kind=kind,
        principal=principal,
        perms_display="r",
        resolved_target_id=target,
        action_description=f"{kind.value} for {principal}",
        detail="" if kind.is_grant else "unsupported permission 'rw'",
        notify=notify,
        sharing_flags=sharing_flags,
    )


class FlakyExecutor:
    def __init__(self) -> None:
        self.seen: list[GrantAction] = []

    def execute(self, action: GrantAction) -> None:
        self.seen.append(action)
        if action.principal == "broken@example.com":
            raise RuntimeError("remote call failed")


def test_quote_escapes_single_quotes() -> None:
    assert quote("o'neil@example.com") == "'o''neil@example.com'"


def test_full_access_renders_two_commands() -> None:
    commands = render_commands(
        _action(GrantKind.FULL_ACCESS_SEND_AS, target="shared@example.com")
    )

    assert commands == [
        "Add-MailboxPermission -Identity 'shared@example.com' -User 'bob@example.com' "
        "-AccessRights FullAccess -InheritanceType All",
        "Add-RecipientPermission -Identity 'shared@example.com' -Trustee 'bob@example.com' "
        "-AccessRights SendAs -Confirm:$false",
    ]


def test_read_permission_renders_mailbox_permission() -> None:
    (command,) = render_commands(_action(GrantKind.READ_PERMISSION))

    assert command.startswith("Add-MailboxPermission -Identity 'shared@example.com'")
    assert command.endswith("-AccessRights ReadPermission")


def test_folder_grant_includes_calendar_flags() -> None:
    (command,) = render_commands(
        _action(GrantKind.EDITOR, notify=True, sharing_flags=("Delegate", "CanViewPrivateItems"))
    )

    assert command == (
        "Add-MailboxFolderPermission -Identity 'shared@example.com:\\Calendar' "
        "-User 'bob@example.com' -AccessRights Editor -SendNotificationToUser $true "
        "-SharingPermissionFlags Delegate,CanViewPrivateItems"
    )


def test_default_principal_is_updated_in_place() -> None:
    (command,) = render_commands(_action(GrantKind.LIMITED_DETAILS, principal="Default"))

    assert command.startswith("Set-MailboxFolderPermission")
    assert "-AccessRights LimitedDetails" in command


def test_unsupported_actions_render_nothing() -> None:
    assert render_commands(_action(GrantKind.UNSUPPORTED)) == []
    assert render_commands(_action(GrantKind.UNRESOLVED)) == []


def test_execute_actions_skips_unsupported_and_survives_failures() -> None:
    executor = FlakyExecutor()
    actions = [
        _action(GrantKind.REVIEWER),
        _action(GrantKind.UNSUPPORTED),
        _action(GrantKind.OWNER, principal="broken@example.com"),
        _action(GrantKind.EDITOR, principal="ann@example.com"),
    ]

    result = execute_actions(actions, executor)

    assert (result.executed, result.skipped, result.failed) == (2, 1, 1)
    assert [action.kind for action in executor.seen] == [
        GrantKind.REVIEWER,
        GrantKind.OWNER,
        GrantKind.EDITOR,
    ]
    assert isinstance(executor, GrantExecutor)


def test_logging_executor_collects_commands() -> None:
    executor = LoggingExecutor()

    execute_actions([_action(GrantKind.FULL_ACCESS_SEND_AS), _action(GrantKind.OWNER)], executor)

    assert len(executor.commands) == 3


def test_script_executor_writes_commands(tmp_path: Path) -> None:
    script_path = tmp_path / "out" / "grants.ps1"

    with ScriptExecutor(script_path) as executor:
        result = execute_actions(
            [_action(GrantKind.REVIEWER), _action(GrantKind.UNSUPPORTED)],
            executor,
        )

    lines = script_path.read_text(encoding="utf-8").splitlines()
    assert result.executed == 1
    assert executor.lines_written == 1
    assert lines[0] == SCRIPT_HEADER
    assert lines[1] == "# Reviewer for bob@example.com"
    assert lines[2].startswith("Add-MailboxFolderPermission")
    assert len(lines) == 3


def test_script_executor_requires_open_file(tmp_path: Path) -> None:
    executor = ScriptExecutor(tmp_path / "grants.ps1")

    result = execute_actions([_action(GrantKind.REVIEWER)], executor)

    assert result.failed == 1
    assert not (tmp_path / "grants.ps1").exists()
