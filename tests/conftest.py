"""Pytest fixtures for testing"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from dealer_gateway.api.main import create_app
from dealer_gateway.infrastructure.database.models import (
    Base,
    CatalogItem,
    FinancingCampaignRecord,
    FinancingRuleRecord,
)
from dealer_gateway.infrastructure.database.session import get_db
from dealer_gateway.domain.models import CatalogPrice, FinancingCampaign, FinancingRule


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def seeded_db(db: Session) -> Session:
    """Catalog, standing rules and one live campaign"""
    today = date.today()
    db.add_all(
        [
            CatalogItem(model="MT-07", segment="Naked", price_cash=Decimal("150000.00")),
            CatalogItem(model="YZF-R3", segment="Sport", price_cash=Decimal("120000.00")),
            CatalogItem(model="XMAX 300", segment="Scooter", price_cash=Decimal("110000.00"), active=False),
            FinancingRuleRecord(
                financing_type="Corto Plazo Interno",
                min_term_months=12,
                max_term_months=12,
                interest_rate=Decimal("0.15"),
                min_down_payment_percent=Decimal("30"),
                description="In-house short term plan",
            ),
            FinancingRuleRecord(
                financing_type="Caja Colon S/I 18",
                min_term_months=6,
                max_term_months=18,
                interest_rate=Decimal("0"),
                min_down_payment_percent=Decimal("0"),
                fixed_down_payment_percent=Decimal("20"),
                requires_minimum_price=True,
                minimum_price=Decimal("130000.00"),
            ),
            FinancingRuleRecord(
                financing_type="Retired Plan",
                min_term_months=12,
                max_term_months=24,
                interest_rate=Decimal("0.20"),
                active=False,
            ),
            FinancingCampaignRecord(
                campaign_name="Yamaha Especial",
                campaign_type="yamaha_special",
                provider="Yamaha Motor Finance",
                start_date=today - timedelta(days=10),
                end_date=today + timedelta(days=20),
                applicable_models=["MT-07", "YZF-R3"],
                down_payment_percent=Decimal("50"),
                term_months=12,
                interest_rate=Decimal("0"),
                benefits_description="Half down, twelve months without interest",
                priority=50,
            ),
            FinancingCampaignRecord(
                campaign_name="Summer Ride",
                provider="Banco Norte",
                start_date=today + timedelta(days=5),
                end_date=today + timedelta(days=60),
                applicable_models=["MT-07"],
                down_payment_percent=Decimal("25"),
                term_months=24,
                interest_rate=Decimal("0.10"),
                priority=10,
            ),
        ]
    )
    db.commit()
    return db


@pytest.fixture
def catalog() -> list[CatalogPrice]:
    """In-memory catalog for resolver tests"""
    return [
        CatalogPrice(model="MT-07", cash_price=Decimal("150000")),
        CatalogPrice(model="MT-09 SP", cash_price=Decimal("260000")),
        CatalogPrice(model="YZF-R3", cash_price=Decimal("120000")),
        CatalogPrice(model="XMAX 300", cash_price=Decimal("110000"), active=False),
        CatalogPrice(model="DEMO-0", cash_price=Decimal("0")),
    ]


@pytest.fixture
def rules() -> list[FinancingRule]:
    """In-memory standing rules for resolver tests"""
    return [
        FinancingRule(
            financing_type="Corto Plazo Interno",
            min_term_months=12,
            max_term_months=12,
            annual_interest_rate=Decimal("0.15"),
            min_down_payment_percent=Decimal("30"),
        ),
        FinancingRule(
            financing_type="Credito Flexible",
            min_term_months=6,
            max_term_months=36,
            annual_interest_rate=Decimal("0.18"),
            min_down_payment_percent=Decimal("20"),
        ),
        FinancingRule(
            financing_type="Caja Colon S/I 18",
            min_term_months=18,
            max_term_months=18,
            annual_interest_rate=Decimal("0"),
            fixed_down_payment_percent=Decimal("20"),
            requires_minimum_price=True,
            minimum_price=Decimal("130000"),
        ),
        FinancingRule(
            financing_type="Retired Plan",
            min_term_months=12,
            max_term_months=24,
            annual_interest_rate=Decimal("0.20"),
            active=False,
        ),
    ]


@pytest.fixture
def today() -> date:
    return date(2026, 3, 15)


@pytest.fixture
def campaigns(today: date) -> list[FinancingCampaign]:
    """Two overlapping campaigns for MT-07 and one expired campaign"""
    return [
        FinancingCampaign(
            name="Spring Ride",
            provider="Banco Norte",
            start_date=today - timedelta(days=30),
            end_date=today + timedelta(days=30),
            applicable_models=frozenset({"MT-07"}),
            down_payment_percent=Decimal("25"),
            term_months=24,
            annual_interest_rate=Decimal("0.10"),
            priority=10,
        ),
        FinancingCampaign(
            name="Yamaha Especial",
            provider="Yamaha Motor Finance",
            start_date=today - timedelta(days=5),
            end_date=today + timedelta(days=5),
            applicable_models=frozenset({"MT-07", "YZF-R3"}),
            down_payment_percent=Decimal("50"),
            term_months=12,
            annual_interest_rate=Decimal("0"),
            priority=50,
            id="camp-50",
        ),
        FinancingCampaign(
            name="Winter Clearance",
            provider="Banco Sur",
            start_date=today - timedelta(days=90),
            end_date=today - timedelta(days=1),
            applicable_models=frozenset({"MT-07", "YZF-R3"}),
            down_payment_percent=Decimal("10"),
            term_months=36,
            annual_interest_rate=Decimal("0.05"),
            priority=99,
        ),
    ]
