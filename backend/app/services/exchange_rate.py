from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

import httpx
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.models.exchange_rate import ExchangeRate

logger = logging.getLogger(__name__)


class ExchangeRateUnavailable(Exception):
    def __init__(self, message: str, status_code: int, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


def get_latest_rate(db: Session) -> ExchangeRate | None:
    return db.scalar(
        select(ExchangeRate).order_by(ExchangeRate.timestamp.desc(), ExchangeRate.id.desc()).limit(1)
    )


def resolve_exchange_rate(db: Session, default: float) -> float:
    latest = get_latest_rate(db)
    if latest is None:
        logger.info("No exchange rate stored, using default %s", default)
        return default
    return float(latest.rate)


def is_within_active_hours(now: datetime, start_hour: int, end_hour: int) -> bool:
    # window wraps past midnight, e.g. 12 -> 2 means 12:00 through 02:59
    hour = now.hour
    if start_hour <= end_hour:
        return start_hour <= hour <= end_hour
    return hour >= start_hour or hour <= end_hour


def fetch_remote_rate(
    url: str,
    currency: str,
    timeout: float,
    transport: httpx.BaseTransport | None = None,
) -> float:
    with httpx.Client(timeout=timeout, transport=transport) as client:
        response = client.get(url)
        response.raise_for_status()
        payload = response.json()
    if not isinstance(payload, dict):
        raise ValueError("Invalid rate data received from API")
    rate = (payload.get("rates") or {}).get(currency)
    if isinstance(rate, bool) or not isinstance(rate, (int, float)) or rate <= 0:
        raise ValueError("Invalid rate data received from API")
    return float(rate)


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _rate_payload(row: ExchangeRate, source: str) -> dict[str, Any]:
    return {
        "rate": float(row.rate),
        "timestamp": _aware(row.timestamp),
        "source": source,
    }


def _cache_fallback(cached: ExchangeRate | None, exc: Exception, error: str) -> dict[str, Any]:
    if cached is None:
        raise ExchangeRateUnavailable(error, status_code=500, details=str(exc)) from exc
    payload = _rate_payload(cached, "cache_fallback")
    payload["message"] = "Using cached rate due to API error"
    return payload


def get_current_rate(
    db: Session,
    settings: Settings,
    now: datetime | None = None,
    transport: httpx.BaseTransport | None = None,
) -> dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    local_now = now.astimezone(ZoneInfo(settings.timezone))
    max_age = timedelta(seconds=settings.exchange_rate_max_age_seconds)
    active = is_within_active_hours(
        local_now,
        settings.exchange_rate_active_start_hour,
        settings.exchange_rate_active_end_hour,
    )
    window = (
        f"{settings.exchange_rate_active_start_hour:02d}:00 - "
        f"{settings.exchange_rate_active_end_hour:02d}:59"
    )

    cached = get_latest_rate(db)
    if cached is not None:
        fresh = now - _aware(cached.timestamp) < max_age
        if fresh or not active:
            payload = _rate_payload(cached, "cache")
            payload["cacheAge"] = int((now - _aware(cached.timestamp)).total_seconds())
            payload["nextUpdate"] = (
                (_aware(cached.timestamp) + max_age).isoformat()
                if fresh
                else f"Outside active hours ({window})"
            )
            return payload

    if not active:
        raise ExchangeRateUnavailable(
            f"No exchange rate available. Please try again during active hours ({window})",
            status_code=503,
        )

    logger.info("Fetching fresh exchange rate from %s", settings.exchange_rate_api_url)
    try:
        rate = fetch_remote_rate(
            settings.exchange_rate_api_url,
            settings.exchange_rate_currency,
            settings.http_timeout_seconds,
            transport=transport,
        )
    except (httpx.HTTPError, ValueError) as exc:
        logger.exception("Exchange rate fetch failed")
        return _cache_fallback(cached, exc, "Failed to fetch exchange rate")

    row = ExchangeRate(rate=rate, timestamp=now)
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
    except SQLAlchemyError as exc:
        logger.exception("Storing exchange rate %s failed", rate)
        db.rollback()
        return _cache_fallback(cached, exc, "Failed to store exchange rate")

    payload = _rate_payload(row, "api")
    payload["nextUpdate"] = (now + max_age).isoformat()
    return payload
