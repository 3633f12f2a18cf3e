"""Financing endpoints: quote calculation, offer listing and payment simulation"""

import time
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dealer_gateway.api.v1.schemas import (
    CalculateFinancingRequest,
    CalculateFinancingResponse,
    CampaignItem,
    FinancingTypeItem,
    FinancingTypesResponse,
    QuoteData,
    ScheduleRowSchema,
    SimulateRequest,
    SimulateResponse,
)
from dealer_gateway.api.dependencies import get_request_id, verify_api_key
from dealer_gateway.config import settings
from dealer_gateway.domain.amortization import amortization_schedule, monthly_payment
from dealer_gateway.domain.exceptions import FinancingValidationError
from dealer_gateway.domain.financing import campaign_availability, resolve_financing
from dealer_gateway.domain.models import CampaignAvailability, FinancingQuote, FinancingRequest, FinancingRule
from dealer_gateway.infrastructure.database.session import get_db
from dealer_gateway.infrastructure.database.repositories import (
    CalculationLogRepository,
    CampaignRepository,
    CatalogRepository,
    FinancingRuleRepository,
)
from dealer_gateway.infrastructure.observability.metrics import (
    audit_log_failure_counter,
    record_quote,
    record_rejection,
)
from dealer_gateway.infrastructure.observability.logging import log_quote, log_quote_rejected
from dealer_gateway.utils.formatting import format_money, format_rate, round_cents, round_currency

router = APIRouter(dependencies=[Depends(verify_api_key)])


def _quote_data(quote: FinancingQuote) -> QuoteData:
    suffix = settings.currency_suffix
    rounded_payment = round_currency(quote.monthly_payment)
    return QuoteData(
        model=quote.model,
        price_cash=float(quote.price),
        price_formatted=format_money(quote.price, suffix),
        financing_type=quote.financing_type,
        term_months=quote.term_months,
        down_payment=float(round_cents(quote.down_payment)),
        down_payment_formatted=format_money(quote.down_payment, suffix),
        down_payment_percent=float(quote.down_payment_percent),
        amount_financed=float(round_cents(quote.amount_financed)),
        amount_financed_formatted=format_money(quote.amount_financed, suffix),
        monthly_payment=int(rounded_payment),
        monthly_payment_formatted=format_money(rounded_payment, suffix),
        total_amount=float(round_cents(quote.total_amount)),
        total_amount_formatted=format_money(quote.total_amount, suffix),
        interest_amount=float(round_cents(quote.interest_amount)),
        interest_amount_formatted=format_money(quote.interest_amount, suffix),
        interest_rate=float(quote.annual_interest_rate),
        interest_rate_formatted=format_rate(quote.annual_interest_rate),
        campaign_active=quote.from_campaign,
        campaign_name=quote.campaign_name,
        campaign_description=quote.campaign_description,
        provider=quote.provider,
    )


def _record_audit(db: Session, quote: FinancingQuote, request_id: str) -> None:
    """Write the quote to the calculation log; a failed write never fails the quote"""
    try:
        CalculationLogRepository(db).record_quote(quote)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        audit_log_failure_counter.inc()
        logging.warning(f"Calculation log write failed: {e}", extra={"request_id": request_id})


@router.post("/financing/calculate", response_model=CalculateFinancingResponse)
def calculate_financing(
    request_body: CalculateFinancingRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Resolve a financing quote for a catalog model.

    Flow:
    1. Load active catalog, rules and campaigns
    2. Resolve the offer (campaign or standing rule) and amortize it
    3. Append the quote to the calculation log
    4. Return the quote with display strings

    Validation failures return 400 with a machine-stable error code.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        catalog = CatalogRepository(db).list_active()
        rules = FinancingRuleRepository(db).list_active()
        campaigns = CampaignRepository(db).list_active()

        result = resolve_financing(
            FinancingRequest(
                model=request_body.model,
                financing_type=request_body.financing_type,
                term_months=request_body.term_months,
                down_payment=request_body.down_payment,
                lead_id=request_body.lead_id,
            ),
            catalog,
            rules,
            campaigns,
            currency_suffix=settings.currency_suffix,
        )
    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    if isinstance(result, FinancingValidationError):
        record_rejection(result.code.value)
        log_quote_rejected(
            request_id, request_body.model, request_body.financing_type, result.code.value, result.message
        )
        body = CalculateFinancingResponse(success=False, error=result.code.value, message=result.message)
        return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))

    _record_audit(db, result, request_id)

    duration_ms = (time.time() - start_time) * 1000
    record_quote(result.from_campaign)
    log_quote(request_id, result, duration_ms)

    return CalculateFinancingResponse(success=True, data=_quote_data(result))


def _rule_item(rule: FinancingRule) -> FinancingTypeItem:
    return FinancingTypeItem(
        id=rule.id,
        financing_type=rule.financing_type,
        description=rule.description,
        min_term_months=rule.min_term_months,
        max_term_months=rule.max_term_months,
        interest_rate=float(rule.annual_interest_rate),
        interest_rate_formatted=format_rate(rule.annual_interest_rate),
        min_down_payment_percent=float(rule.min_down_payment_percent),
        fixed_down_payment_percent=(
            float(rule.fixed_down_payment_percent) if rule.fixed_down_payment_percent is not None else None
        ),
        requires_minimum_price=rule.requires_minimum_price,
        minimum_price=float(rule.minimum_price) if rule.minimum_price is not None else None,
        minimum_price_formatted=(
            format_money(rule.minimum_price, settings.currency_suffix) if rule.minimum_price is not None else None
        ),
    )


def _campaign_item(entry: CampaignAvailability) -> CampaignItem:
    campaign = entry.campaign
    return CampaignItem(
        id=campaign.id,
        campaign_name=campaign.name,
        campaign_type=campaign.campaign_type,
        provider=campaign.provider,
        description=campaign.benefits_description,
        applicable_models=sorted(campaign.applicable_models),
        start_date=campaign.start_date,
        end_date=campaign.end_date,
        term_months=campaign.term_months,
        down_payment_percent=float(campaign.down_payment_percent),
        interest_rate=float(campaign.annual_interest_rate),
        interest_rate_formatted=format_rate(campaign.annual_interest_rate),
        min_price=float(campaign.min_price) if campaign.min_price is not None else None,
        min_price_formatted=(
            format_money(campaign.min_price, settings.currency_suffix) if campaign.min_price is not None else None
        ),
        max_price=float(campaign.max_price) if campaign.max_price is not None else None,
        priority=campaign.priority,
        is_active_now=entry.is_active_now,
        days_remaining=entry.days_remaining,
    )


@router.get("/financing/types", response_model=FinancingTypesResponse)
def list_financing_types(
    include_campaigns: bool = Query(False, description="Also list campaigns"),
    model: Optional[str] = Query(None, description="Only campaigns covering this model"),
    db: Session = Depends(get_db),
):
    """
    List active standing rules and, optionally, campaigns.

    Passing `model` implies `include_campaigns`.
    """
    try:
        rules = FinancingRuleRepository(db).list_active()
        campaigns = None
        if include_campaigns or model:
            availability = campaign_availability(CampaignRepository(db).list_active(), model, date.today())
            campaigns = [_campaign_item(entry) for entry in availability]
    except Exception as e:
        logging.error(f"Unexpected error listing financing types: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return FinancingTypesResponse(
        count=len(rules),
        financing_types=[_rule_item(rule) for rule in rules],
        campaigns=campaigns,
    )


@router.post("/financing/simulate", response_model=SimulateResponse)
def simulate_financing(request_body: SimulateRequest):
    """Monthly payment and amortization schedule for arbitrary loan terms"""
    payment = monthly_payment(request_body.principal, request_body.annual_rate, request_body.term_months)
    schedule = amortization_schedule(
        request_body.principal,
        request_body.annual_rate,
        request_body.term_months,
        start_date=request_body.start_date,
    )
    total_paid = sum((row.payment for row in schedule), round_cents(0))
    principal_paid = sum((row.principal for row in schedule), round_cents(0))

    rounded_payment = round_currency(payment)
    return SimulateResponse(
        monthly_payment=int(rounded_payment),
        monthly_payment_formatted=format_money(rounded_payment, settings.currency_suffix),
        total_paid=float(total_paid),
        total_interest=float(total_paid - principal_paid),
        schedule=[
            ScheduleRowSchema(
                period=row.period,
                due_date=row.due_date,
                payment=float(row.payment),
                interest=float(row.interest),
                principal=float(row.principal),
                balance=float(row.balance),
            )
            for row in schedule
        ],
    )
