from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from mailmigrate.config import CONFIG_ENV_VAR, Config, ConfigError, load_config


def _write_config(tmp_path: Path, content: str) -> Path:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(textwrap.dedent(content), encoding="utf-8")
    return config_path


def test_load_config_success(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path,
        f"""
        rootdir: {tmp_path}/state
        threshold: 60
        weights:
          usr: 3
          grp: 8
        delimiter: ";"
        calendar:
          notify: true
          sharing_flags: [Delegate, CanViewPrivateItems]
        folders:
          defaults:
            SentItems: Sent
          mailboxes:
            hans@example.com:
              Calendar: Kalender
        logging:
          level: debug
          debug_file: true
        """,
    )

    config = load_config(config_path)

    assert config.root_dir == tmp_path / "state"
    assert config.scoring.threshold == 60
    assert config.scoring.weights.weight_for("usr") == 3
    assert config.scoring.weights.weight_for("grp") == 8
    assert config.scoring.weights.weight_for("dom") == 0
    assert config.delimiter == ";"
    assert config.calendar.notify is True
    assert config.calendar.sharing_flags == ("Delegate", "CanViewPrivateItems")
    assert config.folders.defaults["SentItems"] == "Sent"
    assert config.folders.defaults["Inbox"] == "Inbox"
    assert config.folders.mailboxes["hans@example.com"] == {"Calendar": "Kalender"}
    assert config.logging.level == "debug"
    assert config.logging.debug_file is True


def test_load_config_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, "threshold: 90\n")

    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))
    config = load_config()

    assert config.scoring.threshold == 90
    assert config.scoring.weights.weight_for("grp") == 5


def test_missing_default_config_uses_defaults(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))

    config = load_config()

    assert config == Config()
    assert config.scoring.threshold == 75


def test_missing_explicit_config_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError) as excinfo:
        load_config(tmp_path / "absent.yaml")
    assert "Config file not found" in str(excinfo.value)


def test_empty_config_file_uses_defaults(tmp_path: Path) -> None:
    config = load_config(_write_config(tmp_path, ""))

    assert config.scoring.threshold == 75
    assert config.calendar.notify is False


@pytest.mark.parametrize(
    "bad_content, expected_message",
    [
        ("- just\n- a list\n", "Configuration root must be a mapping"),
        ("threshold: 120\n", "threshold must be between 0 and 100"),
        ("threshold: high\n", "threshold must be an integer"),
        ("weights: [1, 2]\n", "weights must be a mapping"),
        ("weights:\n  cos: 3\n", "Unknown assignment kind"),
        ("weights:\n  usr: -2\n", "cannot be negative"),
        ("calendar:\n  notify: maybe\n", "calendar.notify must be true or false"),
        ("calendar:\n  sharing_flags: {a: b}\n", "calendar.sharing_flags must be a list"),
        ("folders:\n  defaults:\n    Drafts: Entwürfe\n", "unknown folder scope 'Drafts'"),
        (
            "folders:\n  mailboxes:\n    a@example.com:\n      Inbox: ''\n",
            "folders.mailboxes.a@example.com.Inbox must be a non-empty string",
        ),
        ("delimiter: ';;'\n", "delimiter must be a single character"),
        ("logging: debug\n", "logging must be a mapping"),
        ("threshold: [\n", "Invalid YAML"),
    ],
)
def test_load_config_validation_errors(
    bad_content: str,
    expected_message: str,
    tmp_path: Path,
) -> None:
    config_path = _write_config(tmp_path, bad_content)
    with pytest.raises(ConfigError) as excinfo:
        load_config(config_path)
    assert expected_message in str(excinfo.value)
