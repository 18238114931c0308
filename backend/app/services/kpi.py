from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def safe_ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def round_half_up(value: float, places: int) -> float:
    """Round like JavaScript's ``Number(x.toFixed(places))``.

    The float is expanded to its exact decimal value first, so ``1.005`` stays
    ``1.0`` exactly as the dashboard frontend has always shown it, and ties on
    representable values go away from zero instead of to even.
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def dollar_per_cover(spend: float, turnover_adser: float, exchange_rate: float) -> float:
    if spend <= 0 or exchange_rate <= 0:
        return 0.0
    return (turnover_adser / exchange_rate) / spend


def compute_kpis(
    spend: float,
    deposit: float,
    message: float,
    turnover_adser: float,
    exchange_rate: float,
) -> dict[str, float]:
    return {
        "cpm": round_half_up(safe_ratio(spend, message), 2),
        "costPerDeposit": round_half_up(safe_ratio(spend, deposit), 2),
        "dollarPerCover": round_half_up(
            dollar_per_cover(spend, turnover_adser, exchange_rate), 4
        ),
    }
