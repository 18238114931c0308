from app.models.exchange_rate import ExchangeRate
from app.models.metric_record import MetricRecord

__all__ = [
    "ExchangeRate",
    "MetricRecord",
]
