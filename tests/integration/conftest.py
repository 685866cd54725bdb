from __future__ import annotations

from pathlib import Path

import pytest

PERMISSION_EXPORT = """\
mailbox,path,type,delegate,kind,perms
sales@example.com,/,ROOT,ann@example.com,usr,rwidxa
sales@example.com,/,ROOT,bob@example.com,usr,rwidx
sales@example.com,/Calendar,appointment,bob@example.com,usr,rwidx
sales@example.com,/Calendar,appointment,,pub,r
sales@example.com,/Inbox/Leads,message,sales-team@example.com,grp,r
hr@example.com,/,ROOT,carol@example.com,usr,rwidxa
hr@example.com,/Contacts,contact,ann@example.com,usr,rwidxp
hr@example.com,/Tasks,task,carol@example.com,usr,rwid
hr@example.com,/Archive/2020,message,,dom,r
ann@example.com,/Sent,message,bob@example.com,usr,r
"""


class CountingResolver:
    """Stands in for the remote folder lookup and counts the calls it receives."""

    def __init__(self, localized: dict[str, dict[str, str]]) -> None:
        self.localized = localized
        self.calls = 0

    def resolve(self, mailbox: str, scope: str) -> str:
        self.calls += 1
        return self.localized.get(mailbox, {}).get(scope, scope)


@pytest.fixture()
def export_dir(tmp_path: Path) -> Path:
    (tmp_path / "batch.csv").write_text(
        "EmailAddress\nann@example.com\nbob@example.com\n", encoding="utf-8"
    )
    (tmp_path / "shared.csv").write_text(
        "EmailAddress\nsales@example.com\nhr@example.com\nlegal@example.com\n",
        encoding="utf-8",
    )
    (tmp_path / "exclude.csv").write_text("legal@example.com\n", encoding="utf-8")
    (tmp_path / "permissions.csv").write_text(PERMISSION_EXPORT, encoding="utf-8")
    return tmp_path


@pytest.fixture()
def resolver() -> CountingResolver:
    return CountingResolver({"sales@example.com": {"Calendar": "Kalender"}})
