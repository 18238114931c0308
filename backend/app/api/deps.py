from datetime import date, datetime
from typing import Annotated
from zoneinfo import ZoneInfo

from fastapi import Depends

from app.core.config import Settings, get_settings

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_team_tabs(settings: SettingsDep) -> dict[str, list[str]]:
    return settings.team_tabs


def get_today(settings: SettingsDep) -> date:
    return datetime.now(ZoneInfo(settings.timezone)).date()


TeamTabs = Annotated[dict[str, list[str]], Depends(get_team_tabs)]
Today = Annotated[date, Depends(get_today)]
