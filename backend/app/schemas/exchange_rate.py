from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ExchangeRateResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    rate: float
    timestamp: datetime
    source: str
    cache_age: int | None = None
    next_update: str | None = None
    message: str | None = None
