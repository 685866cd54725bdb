"""Batch eligibility scoring for shared mailboxes."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field, fields

from .index import records_for
from .types import PermissionRecord, ScoredMailbox

LOGGER = logging.getLogger(__name__)
DEFAULT_THRESHOLD = 75


@dataclass(frozen=True)
class WeightTable:
    """Weight per assignment kind; unknown kinds weigh nothing."""

    usr: int = 2
    grp: int = 5
    dom: int = 1
    all: int = 1
    pub: int = 1
    guest: int = 1

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"Weight for '{item.name}' must be an integer.")
            if value < 0:
                raise ValueError(f"Weight for '{item.name}' cannot be negative.")

    @classmethod
    def kinds(cls) -> tuple[str, ...]:
        return tuple(item.name for item in fields(cls))

    @classmethod
    def from_mapping(cls, values: Mapping[str, int]) -> WeightTable:
        """Build a table from a partial mapping; omitted kinds weigh 0."""

        known = set(cls.kinds())
        unknown = sorted(str(key) for key in values if str(key).lower() not in known)
        if unknown:
            raise ValueError(f"Unknown assignment kind(s) in weights: {', '.join(unknown)}")
        weights = dict.fromkeys(known, 0)
        weights.update({str(key).lower(): value for key, value in values.items()})
        return cls(**weights)

    def weight_for(self, kind: str | None) -> int:
        normalized = (kind or "").strip().lower()
        if normalized not in self.kinds():
            return 0
        return int(getattr(self, normalized))

    def as_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in self.kinds()}


@dataclass(frozen=True)
class ScoringConfig:
    """Threshold and weights used by the scorer."""

    threshold: int = DEFAULT_THRESHOLD
    weights: WeightTable = field(default_factory=WeightTable)

    def __post_init__(self) -> None:
        if not 0 <= self.threshold <= 100:
            raise ValueError(f"Threshold must be between 0 and 100, got {self.threshold}.")


@dataclass
class ScoreSummary:
    """Counters over a scoring run."""

    candidates: int = 0
    eligible: int = 0
    excluded: int = 0

    def record(self, scored: ScoredMailbox) -> None:
        self.candidates += 1
        if scored.eligible:
            self.eligible += 1
        if scored.is_excluded:
            self.excluded += 1


class BatchScorer:
    """Score candidate shared mailboxes against a migration batch."""

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self._config = config or ScoringConfig()

    @property
    def config(self) -> ScoringConfig:
        return self._config

    def score(
        self,
        index: Mapping[str, Sequence[PermissionRecord]],
        batch: Iterable[str],
        candidates: Iterable[str],
        excluded: Iterable[str] = (),
    ) -> Iterator[ScoredMailbox]:
        """Yield one score per candidate, in candidate order."""

        batch_users = _normalize_all(batch)
        excluded_set = set(_normalize_all(excluded))
        for candidate in candidates:
            yield self.score_mailbox(
                index,
                candidate,
                batch_users,
                excluded=excluded_set,
            )

    def score_mailbox(
        self,
        index: Mapping[str, Sequence[PermissionRecord]],
        candidate: str,
        batch: Iterable[str],
        *,
        excluded: Iterable[str] = (),
    ) -> ScoredMailbox:
        weights = self._config.weights
        batch_users = _normalize_all(batch)
        records = records_for(index, candidate)

        total_perms = len(records)
        total_weight = 0
        in_batch_perms = 0
        in_batch_weight = 0
        for record in records:
            weight = weights.weight_for(record.assignment_kind)
            total_weight += weight
            mailbox = _normalize(record.mailbox)
            delegate = _normalize(record.delegate)
            for user in batch_users:
                if user == mailbox or user == delegate:
                    in_batch_perms += 1
                    in_batch_weight += weight

        percentage = _percentage(in_batch_perms, total_perms)
        is_excluded = _normalize(candidate) in set(_normalize_all(excluded))
        eligible = percentage >= self._config.threshold and not is_excluded
        LOGGER.debug(
            "Scored %s: %s/%s perms in batch (%s%%), weight %s/%s, excluded=%s",
            candidate,
            in_batch_perms,
            total_perms,
            percentage,
            in_batch_weight,
            total_weight,
            is_excluded,
        )
        return ScoredMailbox(
            email_address=candidate,
            total_perms=total_perms,
            total_weight=total_weight,
            in_batch_perms=in_batch_perms,
            in_batch_weight=in_batch_weight,
            percentage=percentage,
            is_excluded=is_excluded,
            eligible=eligible,
        )


def _percentage(in_batch: int, total: int) -> int:
    """Truncated percentage, capped at 100 since in-batch counts are per user."""

    if total <= 0:
        return 0
    return min(in_batch * 100 // total, 100)


def _normalize(address: str | None) -> str:
    return (address or "").strip().lower()


def _normalize_all(addresses: Iterable[str]) -> list[str]:
    normalized = (_normalize(address) for address in addresses)
    return [address for address in normalized if address]


__all__ = [
    "DEFAULT_THRESHOLD",
    "WeightTable",
    "ScoringConfig",
    "ScoreSummary",
    "BatchScorer",
]
