from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.metric_record import MetricRecord
from app.services.aggregation import BucketMap, adser_labels, adser_pairs
from app.services.kpi import compute_kpis

TOTAL_LABEL = "รวม"
VIEWS = ("team", "adser", "all")


def fetch_records(
    db: Session, teams: Sequence[str], start_date: date, end_date: date
) -> list[MetricRecord]:
    if not teams:
        return []
    return list(
        db.scalars(
            select(MetricRecord)
            .where(
                MetricRecord.team.in_(list(teams)),
                MetricRecord.date >= start_date,
                MetricRecord.date <= end_date,
            )
            .order_by(MetricRecord.team.asc(), MetricRecord.date.asc(), MetricRecord.id.asc())
        )
    )


def group_records(
    records: Sequence[MetricRecord],
    view: str,
    teams: Sequence[str],
    always_show_team: bool,
) -> BucketMap:
    """Fold records into display-labelled buckets for the table view."""
    buckets = BucketMap()
    if view == "all":
        for record in records:
            buckets.add(TOTAL_LABEL, record)
    elif view == "adser":
        labels = adser_labels(adser_pairs(records), always_show_team)
        for record in records:
            if not record.adser:
                continue
            buckets.add(labels[(record.adser, record.team)], record)
    else:
        # every configured team gets a row, even when nothing was synced for it
        for team in teams:
            buckets.bucket(team)
        for record in records:
            buckets.add(record.team, record)
    return buckets


def build_rows(
    buckets: BucketMap, start_date: date, exchange_rate: float
) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for label, totals in buckets.items():
        row: dict[str, Any] = {
            "team": label,
            "date": (totals.first_date or start_date).isoformat(),
        }
        row.update(totals.to_payload())
        row.update(
            compute_kpis(
                totals.spend,
                totals.deposit,
                totals.message,
                totals.turnover_adser,
                exchange_rate,
            )
        )
        rows.append(row)
    return rows


def get_dashboard_data(
    db: Session,
    tab: str,
    teams: Sequence[str],
    start_date: date,
    end_date: date,
    view: str,
    exchange_rate: float,
    always_show_team_tabs: Sequence[str] = (),
) -> list[dict[str, Any]]:
    records = fetch_records(db, teams, start_date, end_date)
    buckets = group_records(records, view, teams, tab in always_show_team_tabs)
    return build_rows(buckets, start_date, exchange_rate)
