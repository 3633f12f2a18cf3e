"""Integration tests for API endpoints"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from dealer_gateway.config import settings
from dealer_gateway.domain.models import Lead, Tier
from dealer_gateway.infrastructure.database.models import FinancingCalculationLog, LeadRecord, LeadScoreEvent
from dealer_gateway.infrastructure.database.repositories import CalculationLogRepository, LeadRepository


def calculate(client: TestClient, **body):
    return client.post("/v1/financing/calculate", json=body)


@pytest.fixture
def lead(db: Session) -> LeadRecord:
    """Two-day-old lead at score 50"""
    record = LeadRecord(
        id="lead-1",
        name="Ana Torres",
        score=50,
        status="Red",
        model_interested="MT-07",
        timeframe="Soon",
        created_at=datetime.now(timezone.utc) - timedelta(days=2),
    )
    db.add(record)
    db.commit()
    return record


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "dealer_financing_quotes" in response.text


def test_calculate_rule_quote(client: TestClient, seeded_db: Session):
    """Test POST /v1/financing/calculate on a standing rule"""
    response = calculate(client, model="mt 07", financing_type="Corto Plazo Interno", lead_id="lead-9")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["model"] == "MT-07"
    assert data["price_formatted"] == "$150,000.00 MXN"
    assert data["down_payment"] == 45000
    assert data["down_payment_percent"] == 30
    assert data["amount_financed"] == 105000
    assert data["monthly_payment"] == 9477
    assert data["monthly_payment_formatted"] == "$9,477.00 MXN"
    assert data["interest_rate_formatted"] == "15.00%"
    assert data["campaign_active"] is False
    assert "X-Request-ID" in response.headers


def test_calculate_writes_audit_log(client: TestClient, seeded_db: Session):
    calculate(client, model="MT-07", financing_type="Corto Plazo Interno", lead_id="lead-9")

    entries = seeded_db.query(FinancingCalculationLog).all()
    assert len(entries) == 1
    assert entries[0].lead_id == "lead-9"
    assert entries[0].monthly_payment == 9477
    assert entries[0].calculation_source == "api"

    history = client.get("/v1/leads/lead-9/quotes")
    assert history.status_code == 200
    assert len(history.json()["quotes"]) == 1


def test_calculate_campaign_quote(client: TestClient, seeded_db: Session):
    """Live campaign wins; the not-yet-started campaign is ignored"""
    response = calculate(client, model="MT-07", financing_type="campaign", term_months=6)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["campaign_active"] is True
    assert data["campaign_name"] == "Yamaha Especial"
    assert data["provider"] == "Yamaha Motor Finance"
    assert data["term_months"] == 12
    assert data["down_payment"] == 75000
    assert data["monthly_payment"] == 6250
    assert data["interest_rate_formatted"] == "No interest"


def test_calculate_unknown_financing_type(client: TestClient, seeded_db: Session):
    response = calculate(client, model="MT-07", financing_type="Nonexistent")

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "FINANCING_TYPE_NOT_FOUND"
    assert "Corto Plazo Interno" in body["message"]
    assert "Caja Colon S/I 18" in body["message"]
    assert "Retired Plan" not in body["message"]
    assert seeded_db.query(FinancingCalculationLog).count() == 0


def test_calculate_missing_model(client: TestClient, seeded_db: Session):
    response = calculate(client, financing_type="Corto Plazo Interno")

    assert response.status_code == 400
    assert response.json()["error"] == "MISSING_FIELD"


def test_calculate_malformed_body(client: TestClient, seeded_db: Session):
    response = calculate(client, model="MT-07", financing_type="Corto Plazo Interno", term_months="twelve")

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_REQUEST"


def test_calculate_price_below_minimum(client: TestClient, seeded_db: Session):
    response = calculate(client, model="YZF-R3", financing_type="Caja Colon S/I 18")

    assert response.status_code == 400
    assert response.json()["error"] == "PRICE_BELOW_MINIMUM"


def test_calculate_wrong_verb(client: TestClient):
    response = client.get("/v1/financing/calculate")

    assert response.status_code == 405
    assert response.json()["error"] == "METHOD_NOT_ALLOWED"


def test_calculate_requires_api_key_when_configured(
    client: TestClient, seeded_db: Session, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(settings, "api_key", "s3cret")
    body = {"model": "MT-07", "financing_type": "Corto Plazo Interno"}

    missing = client.post("/v1/financing/calculate", json=body)
    wrong = client.post("/v1/financing/calculate", json=body, headers={"X-API-Key": "nope"})
    good = client.post("/v1/financing/calculate", json=body, headers={"X-API-Key": "s3cret"})

    assert missing.status_code == 401
    assert missing.json()["error"] == "UNAUTHORIZED"
    assert wrong.status_code == 401
    assert good.status_code == 200


def test_non_ascii_api_key_is_unauthorized(client: TestClient, monkeypatch: pytest.MonkeyPatch):
    """A key outside ASCII is a wrong key, not a server fault"""
    monkeypatch.setattr(settings, "api_key", "s3cret")

    response = client.get("/v1/financing/types", headers={"X-API-Key": "café".encode("latin-1")})

    assert response.status_code == 401
    assert response.json()["error"] == "UNAUTHORIZED"


def test_audit_log_failure_does_not_fail_quote(client: TestClient, seeded_db: Session):
    """A logging fault is not a quote fault"""
    with patch.object(CalculationLogRepository, "record_quote", side_effect=SQLAlchemyError("disk full")):
        response = calculate(client, model="MT-07", financing_type="Corto Plazo Interno")

    assert response.status_code == 200
    assert response.json()["data"]["monthly_payment"] == 9477


def test_calculate_unexpected_error(client: TestClient, seeded_db: Session):
    with patch("dealer_gateway.api.v1.financing.resolve_financing", side_effect=RuntimeError("boom")):
        response = calculate(client, model="MT-07", financing_type="Corto Plazo Interno")

    assert response.status_code == 500
    assert response.json()["success"] is False


def test_list_financing_types(client: TestClient, seeded_db: Session):
    """Test GET /v1/financing/types lists only active rules"""
    response = client.get("/v1/financing/types")

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    names = [item["financing_type"] for item in body["financing_types"]]
    assert names == ["Caja Colon S/I 18", "Corto Plazo Interno"]
    caja = body["financing_types"][0]
    assert caja["interest_rate_formatted"] == "No interest"
    assert caja["minimum_price_formatted"] == "$130,000.00 MXN"
    assert body["campaigns"] is None


def test_list_financing_types_with_campaigns_for_model(client: TestClient, seeded_db: Session):
    response = client.get("/v1/financing/types", params={"model": "MT-07"})

    campaigns = response.json()["campaigns"]
    assert [c["campaign_name"] for c in campaigns] == ["Yamaha Especial", "Summer Ride"]
    assert campaigns[0]["is_active_now"] is True
    assert campaigns[0]["days_remaining"] == 20
    assert campaigns[1]["is_active_now"] is False
    assert campaigns[1]["days_remaining"] == 60


def test_list_financing_types_include_campaigns(client: TestClient, seeded_db: Session):
    response = client.get("/v1/financing/types", params={"include_campaigns": "true", "model": "YZF-R3"})

    campaigns = response.json()["campaigns"]
    assert len(campaigns) == 1
    assert campaigns[0]["applicable_models"] == ["MT-07", "YZF-R3"]


def test_simulate_schedule(client: TestClient):
    response = client.post(
        "/v1/financing/simulate",
        json={"principal": 12000, "annual_rate": 0, "term_months": 12, "start_date": "2026-01-15"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["monthly_payment"] == 1000
    assert body["total_paid"] == 12000
    assert body["total_interest"] == 0
    assert len(body["schedule"]) == 12
    assert body["schedule"][0]["due_date"] == "2026-02-15"
    assert body["schedule"][-1]["balance"] == 0


def test_simulate_rejects_negative_rate(client: TestClient):
    response = client.post("/v1/financing/simulate", json={"principal": 1000, "annual_rate": -0.1, "term_months": 12})
    assert response.status_code == 400


@pytest.mark.parametrize("term_months", [0, -12, 601, 120000])
def test_simulate_rejects_out_of_range_term(client: TestClient, term_months: int):
    response = client.post(
        "/v1/financing/simulate", json={"principal": 1000, "annual_rate": 0.1, "term_months": term_months}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_REQUEST"


def test_simulate_accepts_longest_term(client: TestClient):
    response = client.post("/v1/financing/simulate", json={"principal": 60000, "annual_rate": 0, "term_months": 600})

    assert response.status_code == 200
    assert len(response.json()["schedule"]) == 600


def test_simulate_rejects_negative_principal(client: TestClient):
    response = client.post("/v1/financing/simulate", json={"principal": -1000, "annual_rate": 0.1, "term_months": 12})

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_REQUEST"


def test_score_event_updates_lead(client: TestClient, db: Session, lead: LeadRecord):
    """Test POST /v1/leads/{lead_id}/score-events"""
    response = client.post(
        "/v1/leads/lead-1/score-events",
        json={"event": {"type": "interaction", "channel": "WhatsApp", "direction": "inbound"}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["previous_score"] == 50
    assert body["new_score"] == 63
    assert body["delta"] == 13
    assert body["tier"] == "Yellow"

    stored = db.query(LeadRecord).filter(LeadRecord.id == "lead-1").one()
    assert stored.score == 63
    assert stored.status == "Yellow"
    assert stored.version == 1
    events = db.query(LeadScoreEvent).filter(LeadScoreEvent.lead_id == "lead-1").all()
    assert len(events) == 1
    assert events[0].event_type == "interaction"
    assert events[0].delta == 13


def test_score_event_on_stale_lead(client: TestClient, db: Session, lead: LeadRecord):
    lead.created_at = datetime.now(timezone.utc) - timedelta(days=60)
    db.commit()

    response = client.post("/v1/leads/lead-1/score-events", json={"event": {"type": "follow_up", "completed": False}})

    assert response.status_code == 200
    assert response.json()["delta"] == -5
    assert response.json()["new_score"] == 45


def test_score_event_preference_change(client: TestClient, lead: LeadRecord):
    response = client.post(
        "/v1/leads/lead-1/score-events",
        json={
            "event": {
                "type": "preference_change",
                "old_timeframe": "Future",
                "new_timeframe": "Immediate",
                "new_financing": "Yamaha Especial",
            }
        },
    )

    assert response.status_code == 200
    assert response.json()["new_score"] == 77


def test_score_event_unknown_lead(client: TestClient, db: Session):
    response = client.post("/v1/leads/nobody/score-events", json={"event": {"type": "follow_up", "completed": True}})
    assert response.status_code == 404


def test_score_event_invalid_type(client: TestClient, lead: LeadRecord):
    response = client.post("/v1/leads/lead-1/score-events", json={"event": {"type": "telepathy"}})
    assert response.status_code == 400


def test_score_event_concurrent_write_conflict(client: TestClient, db: Session, lead: LeadRecord):
    """A snapshot with an outdated version is not written"""
    outdated = Lead(
        id="lead-1",
        score=50,
        tier=Tier.RED,
        created_at=datetime.now(timezone.utc),
        version=7,
    )
    with patch.object(LeadRepository, "get_lead", return_value=outdated):
        response = client.post(
            "/v1/leads/lead-1/score-events", json={"event": {"type": "follow_up", "completed": True}}
        )

    assert response.status_code == 409
    stored = db.query(LeadRecord).filter(LeadRecord.id == "lead-1").one()
    assert stored.score == 50
    assert db.query(LeadScoreEvent).count() == 0
