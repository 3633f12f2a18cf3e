"""Data access layer: ORM rows in, domain dataclasses out"""

from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.sql import func
from dealer_gateway.infrastructure.database.models import (
    CatalogItem,
    FinancingCalculationLog,
    FinancingCampaignRecord,
    FinancingRuleRecord,
    LeadRecord,
    LeadScoreEvent,
)
from dealer_gateway.domain.exceptions import StaleLeadError
from dealer_gateway.domain.models import (
    CatalogPrice,
    FinancingCampaign,
    FinancingQuote,
    FinancingRule,
    Lead,
    ScoreResult,
    Timeframe,
)
from dealer_gateway.domain.scoring import tier_for_score
from dealer_gateway.utils.formatting import round_cents, round_currency


class CatalogRepository:
    """Repository for catalog prices"""

    def __init__(self, db: Session):
        self.db = db

    def list_active(self) -> List[CatalogPrice]:
        """Active catalog entries ordered by model name"""
        rows = (
            self.db.query(CatalogItem)
            .filter(CatalogItem.active.is_(True))
            .order_by(CatalogItem.model)
            .all()
        )
        return [
            CatalogPrice(model=row.model, cash_price=row.price_cash, active=row.active, id=row.id)
            for row in rows
        ]


class FinancingRuleRepository:
    """Repository for standing financing rules"""

    def __init__(self, db: Session):
        self.db = db

    def list_active(self) -> List[FinancingRule]:
        """Active rules ordered by financing type"""
        rows = (
            self.db.query(FinancingRuleRecord)
            .filter(FinancingRuleRecord.active.is_(True))
            .order_by(FinancingRuleRecord.financing_type)
            .all()
        )
        return [
            FinancingRule(
                financing_type=row.financing_type,
                min_term_months=row.min_term_months,
                max_term_months=row.max_term_months,
                annual_interest_rate=row.interest_rate,
                min_down_payment_percent=row.min_down_payment_percent,
                fixed_down_payment_percent=row.fixed_down_payment_percent,
                requires_minimum_price=row.requires_minimum_price,
                minimum_price=row.minimum_price,
                active=row.active,
                id=row.id,
                description=row.description,
            )
            for row in rows
        ]


class CampaignRepository:
    """Repository for financing campaigns"""

    def __init__(self, db: Session):
        self.db = db

    def list_active(self) -> List[FinancingCampaign]:
        """
        Active campaigns, highest priority first.

        Date windows are not filtered here; eligibility on a given day is a
        domain decision.
        """
        rows = (
            self.db.query(FinancingCampaignRecord)
            .filter(FinancingCampaignRecord.active.is_(True))
            .order_by(FinancingCampaignRecord.priority.desc(), FinancingCampaignRecord.created_at)
            .all()
        )
        return [
            FinancingCampaign(
                name=row.campaign_name,
                provider=row.provider,
                start_date=row.start_date,
                end_date=row.end_date,
                applicable_models=frozenset(row.applicable_models or []),
                down_payment_percent=row.down_payment_percent,
                term_months=row.term_months,
                annual_interest_rate=row.interest_rate,
                priority=row.priority,
                min_price=row.min_price,
                max_price=row.max_price,
                active=row.active,
                id=row.id,
                campaign_type=row.campaign_type,
                benefits_description=row.benefits_description,
            )
            for row in rows
        ]


class CalculationLogRepository:
    """Repository for the financing audit log"""

    def __init__(self, db: Session):
        self.db = db

    def record_quote(self, quote: FinancingQuote, source: str = "api") -> FinancingCalculationLog:
        """Append a quote to the audit log; monthly payment is stored rounded"""
        entry = FinancingCalculationLog(
            lead_id=quote.lead_id,
            model=quote.model,
            price=quote.price,
            financing_type=quote.financing_type,
            campaign_id=quote.campaign_id,
            down_payment=round_cents(quote.down_payment),
            term_months=quote.term_months,
            monthly_payment=round_currency(quote.monthly_payment),
            total_amount=round_cents(quote.total_amount),
            interest_amount=round_cents(quote.interest_amount),
            calculation_source=source,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_by_lead(self, lead_id: str, limit: int = 20) -> List[FinancingCalculationLog]:
        """Most recent quotes for a lead"""
        return (
            self.db.query(FinancingCalculationLog)
            .filter(FinancingCalculationLog.lead_id == lead_id)
            .order_by(FinancingCalculationLog.created_at.desc())
            .limit(limit)
            .all()
        )


def _parse_timeframe(value: Optional[str]) -> Optional[Timeframe]:
    if not value:
        return None
    try:
        return Timeframe(value)
    except ValueError:
        return None


class LeadRepository:
    """Repository for lead scores"""

    def __init__(self, db: Session):
        self.db = db

    def get_lead(self, lead_id: str) -> Optional[Lead]:
        """Snapshot of a lead for scoring"""
        row = self.db.query(LeadRecord).filter(LeadRecord.id == lead_id).first()
        if row is None:
            return None
        return Lead(
            id=row.id,
            score=row.score,
            tier=tier_for_score(row.score),
            created_at=row.created_at,
            model_interested=row.model_interested,
            timeframe=_parse_timeframe(row.timeframe),
            financing_type=row.financing_type,
            version=row.version,
        )

    def update_score(
        self,
        lead: Lead,
        result: ScoreResult,
        event_type: str,
    ) -> LeadScoreEvent:
        """
        Persist a score result and its log entry.

        The write is conditional on the version read with the snapshot; if
        another writer got there first nothing is written.

        Raises:
            StaleLeadError: Lead version changed since `lead` was read
        """
        updated = (
            self.db.query(LeadRecord)
            .filter(LeadRecord.id == lead.id, LeadRecord.version == lead.version)
            .update(
                {
                    LeadRecord.score: result.new_score,
                    LeadRecord.status: result.new_tier.value,
                    LeadRecord.version: LeadRecord.version + 1,
                    LeadRecord.updated_at: func.now(),
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            raise StaleLeadError(f"Lead {lead.id} was modified concurrently")

        event = LeadScoreEvent(
            lead_id=lead.id,
            event_type=event_type,
            previous_score=lead.score,
            new_score=result.new_score,
            delta=result.delta,
            tier=result.new_tier.value,
            reason=result.reason,
        )
        self.db.add(event)
        self.db.flush()
        return event
