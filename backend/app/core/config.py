import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Dict, List

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_TEAM_TABS: Dict[str, List[str]] = {
    "lottery": ["สาวอ้อย", "อลิน", "อัญญาC", "อัญญาD"],
    "baccarat": ["สเปชบาร์", "บาล้าน", "เอก เหนือมังกร"],
    "horse-racing": ["คิงมหาเฮง", "ญาดา พารับทรัพย์"],
    "football-area": ["ฟุตบอลแอร์เรีย", "ฟุตบอลแอร์เรีย(ฮารุ)"],
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "adser-dashboard-api"
    log_level: str = "INFO"
    log_format: str = "text"
    api_prefix: str = "/api"
    allowed_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://0.0.0.0:3000",
        ]
    )

    database_url: str = "postgresql+psycopg://postgres:postgres@db:5432/adser"
    redis_url: str = "redis://redis:6379/0"
    timezone: str = "Asia/Bangkok"

    team_tabs: Dict[str, List[str]] = Field(
        default_factory=lambda: {tab: list(teams) for tab, teams in DEFAULT_TEAM_TABS.items()}
    )
    team_tabs_file: str | None = None
    adser_label_team_tabs: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["baccarat", "horse-racing"]
    )

    default_exchange_rate: float = 35.0
    exchange_rate_api_url: str = "https://api.exchangerate-api.com/v4/latest/USD"
    exchange_rate_currency: str = "THB"
    exchange_rate_max_age_seconds: int = 30 * 60
    exchange_rate_active_start_hour: int = 12
    exchange_rate_active_end_hour: int = 2
    http_timeout_seconds: float = 10.0

    @field_validator("allowed_origins", "adser_label_team_tabs", mode="before")
    @classmethod
    def split_csv(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @model_validator(mode="after")
    def load_team_tabs_file(self) -> "Settings":
        if not self.team_tabs_file:
            return self
        payload = json.loads(Path(self.team_tabs_file).read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError("team tabs file must contain a JSON object")
        self.team_tabs = {
            str(tab): [str(team) for team in teams] for tab, teams in payload.items()
        }
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
