from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.deps import SettingsDep, TeamTabs, Today
from app.api.errors import ApiError
from app.db.session import get_db
from app.schemas.dashboard import ChartResponse, DashboardDataResponse, DateRange
from app.services.charts import PERIODS, get_chart_data
from app.services.dashboard import VIEWS, get_dashboard_data
from app.services.exchange_rate import resolve_exchange_rate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

MISSING_PARAMS = "Missing required parameters: startDate, endDate, tab"
END_OF_DAY = time(23, 59, 59, 999000)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ApiError(f"Invalid date: {value}") from None


def _parse_range(
    start_date: str | None, end_date: str | None, tab: str | None
) -> tuple[date, date, str]:
    if not start_date or not end_date or not tab:
        raise ApiError(MISSING_PARAMS)
    start = _parse_date(start_date)
    end = _parse_date(end_date)
    if start > end:
        raise ApiError("Invalid date range: startDate is after endDate")
    return start, end, tab


def _teams_for_tab(team_tabs: dict[str, list[str]], tab: str) -> list[str]:
    teams = team_tabs.get(tab)
    if teams is None:
        raise ApiError(f"Invalid tab: {tab}")
    return teams


def _check_choice(name: str, value: str, allowed: tuple[str, ...]) -> None:
    if value not in allowed:
        raise ApiError(f"Invalid {name}: {value}")


@router.get("/data", response_model=DashboardDataResponse)
def dashboard_data(
    settings: SettingsDep,
    team_tabs: TeamTabs,
    db: Session = Depends(get_db),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    tab: str | None = Query(default=None),
    view: str | None = Query(default=None),
) -> DashboardDataResponse:
    view = view or "team"
    start, end, tab = _parse_range(start_date, end_date, tab)
    teams = _teams_for_tab(team_tabs, tab)
    _check_choice("view", view, VIEWS)

    try:
        exchange_rate = resolve_exchange_rate(db, settings.default_exchange_rate)
        rows = get_dashboard_data(
            db,
            tab,
            teams,
            start,
            end,
            view,
            exchange_rate,
            settings.adser_label_team_tabs,
        )
    except SQLAlchemyError as exc:
        logger.exception("Dashboard data query failed for tab=%s", tab)
        raise ApiError(
            "Failed to fetch dashboard data",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=str(exc),
        ) from exc

    tz = ZoneInfo(settings.timezone)
    return DashboardDataResponse(
        data=rows,
        exchange_rate=exchange_rate,
        count=len(rows),
        timestamp=datetime.now(timezone.utc),
        date_range=DateRange(
            start=datetime.combine(start, time.min, tzinfo=tz),
            end=datetime.combine(end, END_OF_DAY, tzinfo=tz),
        ),
    )


@router.get("/charts", response_model=ChartResponse)
def dashboard_charts(
    settings: SettingsDep,
    team_tabs: TeamTabs,
    today: Today,
    db: Session = Depends(get_db),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    tab: str | None = Query(default=None),
    view: str | None = Query(default=None),
    period: str | None = Query(default=None),
) -> ChartResponse:
    view = view or "team"
    period = period or "daily"
    start, end, tab = _parse_range(start_date, end_date, tab)
    teams = _teams_for_tab(team_tabs, tab)
    _check_choice("view", view, VIEWS)
    _check_choice("period", period, PERIODS)

    try:
        exchange_rate = resolve_exchange_rate(db, settings.default_exchange_rate)
        series = get_chart_data(
            db,
            tab,
            teams,
            start,
            end,
            view,
            period,
            exchange_rate,
            today,
            settings.adser_label_team_tabs,
        )
    except SQLAlchemyError as exc:
        logger.exception("Chart data query failed for tab=%s", tab)
        raise ApiError(
            "Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=str(exc),
        ) from exc

    return ChartResponse(success=True, data=series, period=period, view=view)
