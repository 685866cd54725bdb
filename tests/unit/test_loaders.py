from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from mailmigrate.loaders import LoaderError, read_addresses, read_permissions


def _write(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
    return path


def test_read_addresses_skips_header_comments_and_blanks(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "batch.csv",
        """
        EmailAddress
        # wave 3
        ann@example.com

         bob@example.com ,Bob Example
        ann@example.com
        """,
    )

    assert read_addresses(path) == ["ann@example.com", "bob@example.com", "ann@example.com"]


def test_read_addresses_without_header(tmp_path: Path) -> None:
    path = _write(tmp_path, "shared.txt", "shared@example.com\n")

    assert read_addresses(path) == ["shared@example.com"]


def test_read_permissions_parses_and_pads_rows(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "perms.csv",
        """
        mailbox,path,type,delegate,kind,perms
        shared@example.com,/,ROOT,bob@example.com,usr,rwidxa
        shared@example.com,/Calendar,appointment,,pub,r

        shared@example.com,/Inbox
        """,
    )

    records = read_permissions(path)

    assert len(records) == 3
    assert records[0].is_root
    assert records[0].permission_letters == "rwidxa"
    assert records[1].delegate == ""
    assert records[1].assignment_kind == "pub"
    assert records[2].path == "/Inbox"
    assert records[2].type == ""
    assert records[2].permission_letters == ""


def test_read_permissions_with_custom_delimiter(tmp_path: Path) -> None:
    path = _write(tmp_path, "perms.txt", "shared@example.com;/Tasks;task;ann@example.com;GRP;r\n")

    (record,) = read_permissions(path, delimiter=";")

    assert record.path == "/Tasks"
    assert record.assignment_kind == "grp"


def test_missing_file_raises_loader_error(tmp_path: Path) -> None:
    with pytest.raises(LoaderError) as excinfo:
        read_addresses(tmp_path / "missing.csv")
    assert "not found" in str(excinfo.value)
