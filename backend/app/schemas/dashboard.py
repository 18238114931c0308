from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DashboardRow(CamelModel):
    team: str
    date: str
    message: int
    plan_message: int
    spend: float
    plan_spend: float
    net_messages: int
    lost_messages: int
    cpm: float
    deposit: int
    cost_per_deposit: float
    turnover: float
    turnover_adser: float
    dollar_per_cover: float
    silent: int
    duplicate: int
    has_user: int
    spam: int
    blocked: int
    under18: int
    over50: int
    foreign: int


class DateRange(BaseModel):
    start: datetime
    end: datetime


class DashboardDataResponse(CamelModel):
    data: list[DashboardRow]
    exchange_rate: float
    count: int
    timestamp: datetime
    date_range: DateRange


class ChartResponse(BaseModel):
    success: bool = True
    # one point per interval; bucket labels are dynamic keys
    data: list[dict[str, Any]]
    period: str
    view: str
