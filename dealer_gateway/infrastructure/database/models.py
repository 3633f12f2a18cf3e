"""SQLAlchemy ORM models for the dealership record store"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Date, Integer, Numeric, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class CatalogItem(Base):
    """Vehicle model offered for sale"""

    __tablename__ = "catalog"

    id = Column(String(36), primary_key=True, default=_new_id)
    model = Column(Text, nullable=False, unique=True)
    segment = Column(Text, nullable=True)
    price_cash = Column(Numeric(12, 2), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class FinancingRuleRecord(Base):
    """Standing financing plan"""

    __tablename__ = "financing_rules"

    id = Column(String(36), primary_key=True, default=_new_id)
    financing_type = Column(Text, nullable=False, unique=True)
    min_term_months = Column(Integer, nullable=False)
    max_term_months = Column(Integer, nullable=False)
    interest_rate = Column(Numeric(6, 4), nullable=False, default=0)
    min_down_payment_percent = Column(Numeric(5, 2), nullable=False, default=0)
    fixed_down_payment_percent = Column(Numeric(5, 2), nullable=True)
    requires_minimum_price = Column(Boolean, nullable=False, default=False)
    minimum_price = Column(Numeric(12, 2), nullable=True)
    description = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class FinancingCampaignRecord(Base):
    """Time-boxed financing promotion"""

    __tablename__ = "financing_campaigns"

    id = Column(String(36), primary_key=True, default=_new_id)
    campaign_name = Column(Text, nullable=False)
    campaign_type = Column(Text, nullable=True)
    provider = Column(Text, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    applicable_models = Column(JSON, nullable=False, default=list)
    min_price = Column(Numeric(12, 2), nullable=True)
    max_price = Column(Numeric(12, 2), nullable=True)
    down_payment_percent = Column(Numeric(5, 2), nullable=False)
    term_months = Column(Integer, nullable=False)
    interest_rate = Column(Numeric(6, 4), nullable=False, default=0)
    benefits_description = Column(Text, nullable=True)
    priority = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class FinancingCalculationLog(Base):
    """Audit trail of every quote handed out"""

    __tablename__ = "financing_calculations_log"

    id = Column(String(36), primary_key=True, default=_new_id)
    lead_id = Column(Text, nullable=True, index=True)
    model = Column(Text, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    financing_type = Column(Text, nullable=False)
    campaign_id = Column(Text, nullable=True)
    down_payment = Column(Numeric(12, 2), nullable=False)
    term_months = Column(Integer, nullable=False)
    monthly_payment = Column(Numeric(12, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    interest_amount = Column(Numeric(12, 2), nullable=False)
    calculation_source = Column(Text, nullable=False, default="api")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class LeadRecord(Base):
    """Sales lead; score and status are written only from scoring results"""

    __tablename__ = "leads"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    score = Column(Integer, nullable=False, default=50)
    status = Column(Text, nullable=False, default="Red")
    model_interested = Column(Text, nullable=True)
    timeframe = Column(Text, nullable=True)
    financing_type = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    score_events = relationship("LeadScoreEvent", back_populates="lead", cascade="all, delete-orphan")


class LeadScoreEvent(Base):
    """One applied score adjustment"""

    __tablename__ = "lead_score_events"

    id = Column(String(36), primary_key=True, default=_new_id)
    lead_id = Column(String(36), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    event_type = Column(Text, nullable=False)
    previous_score = Column(Integer, nullable=False)
    new_score = Column(Integer, nullable=False)
    delta = Column(Integer, nullable=False)
    tier = Column(Text, nullable=False)
    reason = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    lead = relationship("LeadRecord", back_populates="score_events")
