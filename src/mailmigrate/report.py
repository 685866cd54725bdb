"""CSV reports and console lines for scoring and mapping runs."""

from __future__ import annotations

import csv
import uuid
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import IO

from .types import GrantAction, ScoredMailbox

SCORE_COLUMNS = (
    "EmailAddress",
    "TotalPerms",
    "TotalWeight",
    "InBatchPerms",
    "InBatchWeight",
    "Percentage",
    "IsExcluded",
    "Eligible",
)
ACTION_COLUMNS = (
    "Mailbox",
    "Path",
    "Type",
    "Perms",
    "Principal",
    "TargetId",
    "Kind",
    "Action",
    "Notify",
    "SharingFlags",
)


def score_row(scored: ScoredMailbox) -> list[str]:
    return [
        scored.email_address,
        str(scored.total_perms),
        str(scored.total_weight),
        str(scored.in_batch_perms),
        str(scored.in_batch_weight),
        str(scored.percentage),
        str(scored.is_excluded),
        str(scored.eligible),
    ]


def action_row(action: GrantAction) -> list[str]:
    return [
        action.mailbox,
        action.path,
        action.type,
        action.perms_display,
        action.principal,
        action.resolved_target_id,
        action.kind.value,
        action.action_description,
        "" if action.notify is None else str(action.notify),
        "" if action.sharing_flags is None else ";".join(action.sharing_flags),
    ]


def write_scores_csv(path: Path, scores: Iterable[ScoredMailbox]) -> Path:
    return _write_csv(path, SCORE_COLUMNS, (score_row(item) for item in scores))


def write_actions_csv(path: Path, actions: Iterable[GrantAction]) -> Path:
    return _write_csv(path, ACTION_COLUMNS, (action_row(item) for item in actions))


def format_score_line(scored: ScoredMailbox) -> str:
    if scored.is_excluded:
        marker = "excluded"
    elif scored.eligible:
        marker = "eligible"
    else:
        marker = "not eligible"
    return (
        f"{scored.email_address}: {scored.percentage}% "
        f"({scored.in_batch_perms}/{scored.total_perms} perms, "
        f"weight {scored.in_batch_weight}/{scored.total_weight}) {marker}"
    )


def format_action_line(action: GrantAction) -> str:
    if action.is_supported:
        return f"{action.mailbox} {action.path} [{action.perms_display}] -> {action.action_description}"
    return (
        f"{action.mailbox} {action.path} type={action.type} [{action.perms_display}] "
        f"!! {action.detail}"
    )


def _write_csv(
    path: Path,
    header: Iterable[str],
    rows: Iterable[list[str]],
) -> Path:
    target = path.expanduser()

    def _write(handle: IO[str]) -> None:
        writer = csv.writer(handle)
        writer.writerow(list(header))
        writer.writerows(rows)

    _atomic_write(target, _write)
    return target


def _atomic_write(target: Path, writer: Callable[[IO[str]], None]) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
    try:
        with tmp_path.open("w", encoding="utf-8", newline="") as handle:
            writer(handle)
        tmp_path.replace(target)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


__all__ = [
    "SCORE_COLUMNS",
    "ACTION_COLUMNS",
    "score_row",
    "action_row",
    "write_scores_csv",
    "write_actions_csv",
    "format_score_line",
    "format_action_line",
]
