"""Lead endpoints: score adjustments and quote history"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from dealer_gateway.api.v1.schemas import (
    QuoteHistoryItem,
    QuoteHistoryResponse,
    ScoreEventRequest,
    ScoreEventResponse,
)
from dealer_gateway.api.dependencies import get_request_id, verify_api_key
from dealer_gateway.config import settings
from dealer_gateway.domain.exceptions import LeadNotFoundError, StaleLeadError
from dealer_gateway.domain.scoring import adjust_score
from dealer_gateway.infrastructure.database.session import get_db
from dealer_gateway.infrastructure.database.repositories import CalculationLogRepository, LeadRepository
from dealer_gateway.infrastructure.observability.metrics import record_score_adjustment, score_conflict_counter
from dealer_gateway.infrastructure.observability.logging import log_score_adjustment

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.post("/leads/{lead_id}/score-events", response_model=ScoreEventResponse)
def apply_score_event(
    lead_id: str,
    request_body: ScoreEventRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Apply a sales event to a lead's qualification score.

    The write is guarded by the lead's version; if another writer updated the
    lead in between, nothing is persisted and 409 tells the caller to re-read
    and retry.
    """
    request_id = get_request_id(request)
    event_type = request_body.event.type
    lead_repo = LeadRepository(db)

    try:
        lead = lead_repo.get_lead(lead_id)
        if lead is None:
            raise LeadNotFoundError(lead_id)

        result = adjust_score(
            lead,
            request_body.event.to_domain(),
            flagship=settings.flagship_financing_type,
            stale_after_days=settings.stale_lead_days,
        )
        lead_repo.update_score(lead, result, event_type)
        db.commit()

    except LeadNotFoundError:
        raise HTTPException(status_code=404, detail="Lead not found")

    except StaleLeadError as e:
        db.rollback()
        score_conflict_counter.inc()
        logging.warning(f"Score write conflict: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail="Lead was updated concurrently, retry with fresh data")

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    record_score_adjustment(event_type, result.new_tier.value)
    log_score_adjustment(request_id, lead_id, event_type, lead.score, result)

    return ScoreEventResponse(
        lead_id=lead_id,
        previous_score=lead.score,
        new_score=result.new_score,
        delta=result.delta,
        reason=result.reason,
        tier=result.new_tier.value,
    )


@router.get("/leads/{lead_id}/quotes", response_model=QuoteHistoryResponse)
def get_quote_history(
    lead_id: str,
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Most recent financing quotes logged for a lead"""
    entries = CalculationLogRepository(db).get_by_lead(lead_id, limit=limit)

    return QuoteHistoryResponse(
        lead_id=lead_id,
        quotes=[
            QuoteHistoryItem(
                model=e.model,
                financing_type=e.financing_type,
                term_months=e.term_months,
                down_payment=float(e.down_payment),
                monthly_payment=float(e.monthly_payment),
                total_amount=float(e.total_amount),
                created_at=e.created_at.isoformat(),
            )
            for e in entries
        ],
    )
