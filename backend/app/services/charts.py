from __future__ import annotations

from collections.abc import Hashable, Sequence
from datetime import date, timedelta
from typing import Any

from sqlalchemy.orm import Session

from app.models.metric_record import MetricRecord
from app.services.aggregation import (
    BucketMap,
    MetricTotals,
    adser_labels,
    adser_pairs,
    sum_records,
)
from app.services.dashboard import TOTAL_LABEL, fetch_records
from app.services.kpi import compute_kpis, dollar_per_cover, round_half_up

PERIODS = ("daily", "monthly")

THAI_MONTH_ABBREVIATIONS = (
    "ม.ค.",
    "ก.พ.",
    "มี.ค.",
    "เม.ย.",
    "พ.ค.",
    "มิ.ย.",
    "ก.ค.",
    "ส.ค.",
    "ก.ย.",
    "ต.ค.",
    "พ.ย.",
    "ธ.ค.",
)


def iter_intervals(start_date: date, end_date: date, period: str, today: date) -> list[date]:
    """Interval start dates from ``start_date`` to ``end_date``, skipping any after ``today``."""
    intervals: list[date] = []
    if period == "monthly":
        current = start_date.replace(day=1)
        while current <= end_date and current <= today:
            intervals.append(current)
            current = (current + timedelta(days=32)).replace(day=1)
        return intervals
    current = start_date
    while current <= end_date and current <= today:
        intervals.append(current)
        current += timedelta(days=1)
    return intervals


def interval_label(interval: date, period: str) -> str:
    if period == "monthly":
        return THAI_MONTH_ABBREVIATIONS[interval.month - 1]
    return f"{interval.day:02d}"


def _slice_key(day: date, period: str) -> Hashable:
    return (day.year, day.month) if period == "monthly" else day


def _bucket_entry(
    current: MetricTotals, cumulative: MetricTotals | None, exchange_rate: float
) -> dict[str, Any]:
    kpis = compute_kpis(
        current.spend,
        current.deposit,
        current.message,
        current.turnover_adser,
        exchange_rate,
    )
    if cumulative is not None:
        kpis["dollarPerCover"] = round_half_up(
            dollar_per_cover(cumulative.spend, cumulative.turnover_adser, exchange_rate), 4
        )
    return {
        "cpm": kpis["cpm"],
        "costPerDeposit": kpis["costPerDeposit"],
        "depositAmount": current.deposit,
        "dollarPerCover": kpis["dollarPerCover"],
        "spend": current.spend,
        "deposit": current.deposit,
        "turnoverAdser": current.turnover_adser,
    }


def _group_slice(
    records: Sequence[MetricRecord],
    view: str,
    teams: Sequence[str],
    always_show_team: bool,
) -> list[tuple[str, Hashable, MetricTotals]]:
    """Returns (display label, cumulative identity, totals) for one interval."""
    if view == "all":
        return [(TOTAL_LABEL, TOTAL_LABEL, sum_records(records))]

    buckets = BucketMap()
    if view == "adser":
        pairs = adser_pairs(records)
        labels = adser_labels(pairs, always_show_team)
        for record in records:
            if record.adser:
                buckets.add((record.adser, record.team), record)
        return [(labels[pair], pair, buckets.bucket(pair)) for pair in pairs]

    for record in records:
        buckets.add(record.team, record)
    return [(team, team, buckets.bucket(team)) for team in teams if team in buckets]


def build_chart_series(
    records: Sequence[MetricRecord],
    tab: str,
    teams: Sequence[str],
    start_date: date,
    end_date: date,
    view: str,
    period: str,
    exchange_rate: float,
    today: date,
    always_show_team_tabs: Sequence[str] = (),
) -> list[dict[str, Any]]:
    slices: dict[Hashable, list[MetricRecord]] = {}
    for record in records:
        slices.setdefault(_slice_key(record.date, period), []).append(record)

    always_show_team = tab in always_show_team_tabs
    cumulative = BucketMap() if period == "daily" else None
    series: list[dict[str, Any]] = []

    for interval in iter_intervals(start_date, end_date, period, today):
        slice_records = slices.get(_slice_key(interval, period), [])
        point: dict[str, Any] = {
            "period": interval_label(interval, period),
            "date": interval.isoformat(),
            "depositAmount": sum(record.deposit or 0 for record in slice_records),
        }
        for label, identity, totals in _group_slice(
            slice_records, view, teams, always_show_team
        ):
            running = None
            if cumulative is not None:
                running = cumulative.bucket(identity)
                running.spend += totals.spend
                running.turnover_adser += totals.turnover_adser
            point[label] = _bucket_entry(totals, running, exchange_rate)
        series.append(point)
    return series


def get_chart_data(
    db: Session,
    tab: str,
    teams: Sequence[str],
    start_date: date,
    end_date: date,
    view: str,
    period: str,
    exchange_rate: float,
    today: date,
    always_show_team_tabs: Sequence[str] = (),
) -> list[dict[str, Any]]:
    records = fetch_records(db, teams, start_date, end_date)
    return build_chart_series(
        records,
        tab,
        teams,
        start_date,
        end_date,
        view,
        period,
        exchange_rate,
        today,
        always_show_team_tabs,
    )
