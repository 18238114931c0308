from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

# record attribute -> key used in API payloads
SUM_FIELDS: dict[str, str] = {
    "message": "message",
    "plan_message": "planMessage",
    "spend": "spend",
    "plan_spend": "planSpend",
    "net_messages": "netMessages",
    "lost_messages": "lostMessages",
    "deposit": "deposit",
    "turnover": "turnover",
    "turnover_adser": "turnoverAdser",
    "silent": "silent",
    "duplicate": "duplicate",
    "has_user": "hasUser",
    "spam": "spam",
    "blocked": "blocked",
    "under18": "under18",
    "over50": "over50",
    "foreign": "foreign",
}


@dataclass
class MetricTotals:
    message: int = 0
    plan_message: int = 0
    spend: float = 0.0
    plan_spend: float = 0.0
    net_messages: int = 0
    lost_messages: int = 0
    deposit: int = 0
    turnover: float = 0.0
    turnover_adser: float = 0.0
    silent: int = 0
    duplicate: int = 0
    has_user: int = 0
    spam: int = 0
    blocked: int = 0
    under18: int = 0
    over50: int = 0
    foreign: int = 0
    day_count: int = 0
    first_date: date | None = field(default=None)

    def add(self, record: Any) -> None:
        for name in SUM_FIELDS:
            setattr(self, name, getattr(self, name) + (getattr(record, name, 0) or 0))
        self.day_count += 1
        if self.first_date is None:
            self.first_date = record.date

    def to_payload(self) -> dict[str, float]:
        return {key: getattr(self, name) for name, key in SUM_FIELDS.items()}


class BucketMap:
    """Insertion-ordered key -> MetricTotals map scoped to a single request."""

    def __init__(self) -> None:
        self._buckets: dict[Hashable, MetricTotals] = {}

    def bucket(self, key: Hashable) -> MetricTotals:
        totals = self._buckets.get(key)
        if totals is None:
            totals = MetricTotals()
            self._buckets[key] = totals
        return totals

    def add(self, key: Hashable, record: Any) -> MetricTotals:
        totals = self.bucket(key)
        totals.add(record)
        return totals

    def items(self):
        return self._buckets.items()

    def __contains__(self, key: object) -> bool:
        return key in self._buckets

    def __len__(self) -> int:
        return len(self._buckets)


def sum_records(records: Iterable[Any]) -> MetricTotals:
    totals = MetricTotals()
    for record in records:
        totals.add(record)
    return totals


def adser_pairs(records: Iterable[Any]) -> list[tuple[str, str]]:
    """Distinct (adser, team) pairs in first-seen order; rows without an adser are skipped."""
    pairs: dict[tuple[str, str], None] = {}
    for record in records:
        if record.adser:
            pairs.setdefault((record.adser, record.team), None)
    return list(pairs)


def adser_labels(
    pairs: Iterable[tuple[str, str]], always_show_team: bool
) -> dict[tuple[str, str], str]:
    pairs = list(pairs)
    teams_by_adser: dict[str, set[str]] = {}
    for adser, team in pairs:
        teams_by_adser.setdefault(adser, set()).add(team)

    labels: dict[tuple[str, str], str] = {}
    for adser, team in pairs:
        if always_show_team or len(teams_by_adser[adser]) > 1:
            labels[(adser, team)] = f"{adser} ({team})"
        else:
            labels[(adser, team)] = adser
    return labels
