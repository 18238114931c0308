from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import SettingsDep
from app.api.errors import ApiError
from app.db.session import get_db
from app.schemas.exchange_rate import ExchangeRateResponse
from app.services.exchange_rate import ExchangeRateUnavailable, get_current_rate

router = APIRouter(prefix="/exchange-rate", tags=["exchange-rate"])


@router.get("", response_model=ExchangeRateResponse, response_model_exclude_none=True)
def current_exchange_rate(
    settings: SettingsDep,
    db: Session = Depends(get_db),
) -> ExchangeRateResponse:
    try:
        payload = get_current_rate(db, settings)
    except ExchangeRateUnavailable as exc:
        raise ApiError(exc.message, status_code=exc.status_code, details=exc.details) from exc
    return ExchangeRateResponse(**payload)
