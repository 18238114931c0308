from datetime import date

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_today
from app.db.session import get_db
from app.models.metric_record import MetricRecord
from app.services.charts import build_chart_series, interval_label, iter_intervals

LOTTERY = ["สาวอ้อย", "อลิน", "อัญญาC", "อัญญาD"]
TODAY = date(2025, 6, 30)


def _record(team: str, adser: str | None, day: date, **counters) -> MetricRecord:
    return MetricRecord(team=team, adser=adser, date=day, **counters)


def _series(
    records,
    view="team",
    period="daily",
    start=date(2025, 1, 1),
    end=date(2025, 1, 3),
    tab="lottery",
    today=TODAY,
):
    return build_chart_series(
        records,
        tab,
        LOTTERY,
        start,
        end,
        view,
        period,
        35.0,
        today,
        ["baccarat", "horse-racing"],
    )


def test_daily_dollar_per_cover_is_cumulative() -> None:
    records = [
        _record("สาวอ้อย", "A", date(2025, 1, 1), spend=100, message=10, deposit=2, turnover_adser=3500),
        _record("สาวอ้อย", "A", date(2025, 1, 2), spend=100, message=25, deposit=4, turnover_adser=0),
        _record("สาวอ้อย", "A", date(2025, 1, 3), spend=200, message=40, deposit=0, turnover_adser=7000),
    ]

    series = _series(records)

    day1, day2, day3 = (point["สาวอ้อย"] for point in series)
    assert day1["dollarPerCover"] == 1.0
    # (3500 / 35) / 200
    assert day2["dollarPerCover"] == 0.5
    # (10500 / 35) / 400
    assert day3["dollarPerCover"] == 0.75
    # cpm and cost per deposit stay per-day
    assert day2["cpm"] == 4.0
    assert day2["costPerDeposit"] == 25.0
    assert day3["costPerDeposit"] == 0
    assert day3["spend"] == 200
    assert day3["turnoverAdser"] == 7000


def test_monthly_dollar_per_cover_is_not_cumulative() -> None:
    records = [
        _record("สาวอ้อย", "A", date(2025, 1, 10), spend=100, turnover_adser=3500),
        _record("สาวอ้อย", "A", date(2025, 2, 10), spend=100, turnover_adser=1750),
    ]

    series = _series(records, period="monthly", end=date(2025, 2, 28))

    assert [point["period"] for point in series] == ["ม.ค.", "ก.พ."]
    assert [point["date"] for point in series] == ["2025-01-01", "2025-02-01"]
    assert series[0]["สาวอ้อย"]["dollarPerCover"] == 1.0
    assert series[1]["สาวอ้อย"]["dollarPerCover"] == 0.5


def test_interval_shape_and_deposit_totals() -> None:
    records = [
        _record("สาวอ้อย", "A", date(2025, 1, 1), spend=50, deposit=3),
        _record("อลิน", "B", date(2025, 1, 1), spend=20, deposit=2),
    ]

    point = _series(records, end=date(2025, 1, 1))[0]

    assert point["period"] == "01"
    assert point["date"] == "2025-01-01"
    assert point["depositAmount"] == 5
    assert point["อลิน"] == {
        "cpm": 0,
        "costPerDeposit": 10.0,
        "depositAmount": 2,
        "dollarPerCover": 0,
        "spend": 20,
        "deposit": 2,
        "turnoverAdser": 0,
    }


def test_team_view_only_includes_teams_with_records() -> None:
    records = [
        _record("อลิน", "B", date(2025, 1, 1), spend=20),
        _record("สาวอ้อย", "A", date(2025, 1, 2), spend=10),
    ]

    day1, day2, day3 = _series(records)

    assert "อลิน" in day1 and "สาวอ้อย" not in day1
    assert "สาวอ้อย" in day2 and "อลิน" not in day2
    assert set(day3) == {"period", "date", "depositAmount"}


def test_all_view_emits_total_for_every_interval() -> None:
    records = [
        _record("สาวอ้อย", "A", date(2025, 1, 1), spend=100, turnover_adser=3500),
        _record("อลิน", "B", date(2025, 1, 1), spend=100, turnover_adser=3500),
    ]

    day1, day2, _ = _series(records, view="all")

    assert day1["รวม"]["spend"] == 200
    assert day2["รวม"]["spend"] == 0
    # cumulative cover carries over an empty day
    assert day2["รวม"]["dollarPerCover"] == 1.0


def test_adser_view_labels_are_resolved_per_interval() -> None:
    records = [
        _record("สาวอ้อย", "Alex", date(2025, 1, 1), spend=10),
        _record("อลิน", "Alex", date(2025, 1, 1), spend=20),
        _record("สาวอ้อย", "Alex", date(2025, 1, 2), spend=30),
        _record("อลิน", None, date(2025, 1, 2), spend=99),
    ]

    day1, day2, _ = _series(records, view="adser")

    assert day1["Alex (สาวอ้อย)"]["spend"] == 10
    assert day1["Alex (อลิน)"]["spend"] == 20
    assert day2["Alex"]["spend"] == 30
    assert day2["depositAmount"] == 0


def test_adser_cumulative_tracks_adser_team_pair() -> None:
    records = [
        _record("สาวอ้อย", "Alex", date(2025, 1, 1), spend=100, turnover_adser=3500),
        _record("อลิน", "Alex", date(2025, 1, 1), spend=100, turnover_adser=0),
        _record("สาวอ้อย", "Alex", date(2025, 1, 2), spend=100, turnover_adser=0),
    ]

    _, day2, _ = _series(records, view="adser")

    # only สาวอ้อย's history counts: (3500 / 35) / 200
    assert day2["Alex"]["dollarPerCover"] == 0.5


def test_future_intervals_are_dropped() -> None:
    series = _series([], start=date(2025, 6, 29), end=date(2025, 7, 2))

    assert [point["date"] for point in series] == ["2025-06-29", "2025-06-30"]


def test_iter_intervals_monthly_starts_at_month_start() -> None:
    intervals = iter_intervals(date(2024, 11, 15), date(2025, 2, 3), "monthly", TODAY)

    assert intervals == [date(2024, 11, 1), date(2024, 12, 1), date(2025, 1, 1), date(2025, 2, 1)]


def test_interval_labels() -> None:
    assert interval_label(date(2025, 3, 7), "daily") == "07"
    assert interval_label(date(2025, 12, 1), "monthly") == "ธ.ค."


def test_charts_endpoint(client: TestClient, db: Session) -> None:
    db.add_all(
        [
            _record("สาวอ้อย", "A", date(2025, 1, 1), spend=100, message=50, deposit=5, turnover_adser=3500),
            _record("สาวอ้อย", "A", date(2025, 1, 2), spend=100, message=50, deposit=5, turnover_adser=0),
        ]
    )
    db.commit()
    client.app.dependency_overrides[get_today] = lambda: TODAY

    response = client.get(
        "/api/dashboard/charts",
        params={"startDate": "2025-01-01", "endDate": "2025-01-02", "tab": "lottery"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["period"] == "daily"
    assert payload["view"] == "team"
    assert [point["period"] for point in payload["data"]] == ["01", "02"]
    assert payload["data"][1]["สาวอ้อย"]["dollarPerCover"] == 0.5
    assert payload["data"][1]["สาวอ้อย"]["cpm"] == 2.0


def test_charts_endpoint_validates_parameters(client: TestClient) -> None:
    base = {"startDate": "2025-01-01", "endDate": "2025-01-02", "tab": "lottery"}

    missing = client.get("/api/dashboard/charts", params={"startDate": "2025-01-01"})
    assert missing.status_code == 400
    assert missing.json() == {"error": "Missing required parameters: startDate, endDate, tab"}

    unknown_tab = client.get("/api/dashboard/charts", params={**base, "tab": "poker"})
    assert unknown_tab.status_code == 400
    assert unknown_tab.json() == {"error": "Invalid tab: poker"}

    bad_period = client.get("/api/dashboard/charts", params={**base, "period": "weekly"})
    assert bad_period.status_code == 400
    assert bad_period.json() == {"error": "Invalid period: weekly"}


def test_charts_database_failure_returns_500(client: TestClient) -> None:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    broken = sessionmaker(bind=engine)

    def override_get_db():
        db = broken()
        try:
            yield db
        finally:
            db.close()

    client.app.dependency_overrides[get_db] = override_get_db

    response = client.get(
        "/api/dashboard/charts",
        params={"startDate": "2025-01-01", "endDate": "2025-01-02", "tab": "lottery"},
    )

    assert response.status_code == 500
    payload = response.json()
    assert payload["error"] == "Internal server error"
    assert "no such table" in payload["details"]


def test_charts_unexpected_error_returns_json_500(client: TestClient, monkeypatch) -> None:
    from app.api.routes import dashboard as dashboard_route

    def explode(*args, **kwargs):
        raise RuntimeError("series builder crashed")

    monkeypatch.setattr(dashboard_route, "get_chart_data", explode)

    with TestClient(client.app, raise_server_exceptions=False) as lenient:
        response = lenient.get(
            "/api/dashboard/charts",
            params={"startDate": "2025-01-01", "endDate": "2025-01-02", "tab": "lottery"},
        )

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    assert response.json() == {"error": "Internal server error", "details": "series builder crashed"}
