"""Financing offer resolution - picks a campaign or standing rule and prices it"""

import re
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence, Union

from dealer_gateway.domain.amortization import monthly_payment
from dealer_gateway.domain.exceptions import ErrorCode, FinancingValidationError
from dealer_gateway.domain.models import (
    CampaignAvailability,
    CatalogPrice,
    FinancingCampaign,
    FinancingQuote,
    FinancingRequest,
    FinancingRule,
)
from dealer_gateway.utils.formatting import format_money, round_cents, to_decimal

CAMPAIGN_FINANCING_TYPE = "campaign"

# Explicit down payments within one currency unit of a fixed down payment are accepted
FIXED_DOWN_PAYMENT_TOLERANCE = Decimal("1")


def normalize_model_name(raw: str) -> str:
    """Canonical catalog token: " mt 07 " -> "MT-07", "YZF-R3!" -> "YZF-R3" """
    token = re.sub(r"\s+", "-", raw.strip().upper())
    return re.sub(r"[^A-Z0-9-]", "", token)


def find_catalog_item(catalog: Sequence[CatalogPrice], model: str) -> Optional[CatalogPrice]:
    """
    Locate the active catalog entry for a user-typed model name.

    Exact case-insensitive match on the normalized name first, then a substring
    match of either the normalized or the raw input; the first hit in catalog
    order wins.
    """
    active = [item for item in catalog if item.active]
    normalized = normalize_model_name(model)

    for item in active:
        if item.model.upper() == normalized:
            return item

    needles = {needle for needle in (normalized, model.strip().upper()) if needle}
    for item in active:
        candidate = item.model.upper()
        if any(needle in candidate for needle in needles):
            return item

    return None


def _covers_model(campaign: FinancingCampaign, model: str) -> bool:
    wanted = normalize_model_name(model)
    return any(normalize_model_name(m) == wanted for m in campaign.applicable_models)


def is_campaign_live(campaign: FinancingCampaign, today: date) -> bool:
    """Active flag set and today inside the inclusive date window"""
    return campaign.active and campaign.start_date <= today <= campaign.end_date


def select_active_campaign(
    campaigns: Sequence[FinancingCampaign],
    model: str,
    price: Decimal,
    today: date,
) -> Optional[FinancingCampaign]:
    """
    Highest-priority campaign eligible for a model at a price on a given day.

    Ties keep the caller's ordering (stable sort).
    """
    eligible = [
        c
        for c in campaigns
        if is_campaign_live(c, today)
        and _covers_model(c, model)
        and (c.min_price is None or price >= to_decimal(c.min_price))
        and (c.max_price is None or price <= to_decimal(c.max_price))
    ]
    if not eligible:
        return None
    return sorted(eligible, key=lambda c: c.priority, reverse=True)[0]


def campaign_availability(
    campaigns: Sequence[FinancingCampaign],
    model: Optional[str],
    today: date,
) -> List[CampaignAvailability]:
    """Active campaigns (optionally for one model) annotated for display"""
    selected = [c for c in campaigns if c.active and (not model or _covers_model(c, model))]
    selected.sort(key=lambda c: c.priority, reverse=True)
    return [
        CampaignAvailability(
            campaign=c,
            is_active_now=is_campaign_live(c, today),
            days_remaining=(c.end_date - today).days,
        )
        for c in selected
    ]


def _build_quote(
    item: CatalogPrice,
    price: Decimal,
    down_payment: Decimal,
    term_months: int,
    annual_rate: Decimal,
    financing_type: str,
    lead_id: Optional[str],
    campaign: Optional[FinancingCampaign] = None,
) -> FinancingQuote:
    amount_financed = price - down_payment
    payment = monthly_payment(amount_financed, annual_rate, term_months)
    total_amount = down_payment + payment * term_months

    return FinancingQuote(
        model=item.model,
        price=price,
        financing_type=financing_type,
        term_months=term_months,
        down_payment=down_payment,
        down_payment_percent=round_cents(down_payment / price * 100),
        amount_financed=amount_financed,
        monthly_payment=payment,
        total_amount=total_amount,
        interest_amount=total_amount - price,
        annual_interest_rate=annual_rate,
        from_campaign=campaign is not None,
        campaign_name=campaign.name if campaign else None,
        campaign_id=campaign.id if campaign else None,
        provider=campaign.provider if campaign else None,
        campaign_description=campaign.benefits_description if campaign else None,
        lead_id=lead_id,
    )


def _invalid_down_payment() -> FinancingValidationError:
    return FinancingValidationError(
        ErrorCode.INVALID_DOWN_PAYMENT,
        "Down payment must be between zero and the vehicle price",
    )


def _campaign_quote(
    request: FinancingRequest,
    item: CatalogPrice,
    price: Decimal,
    campaign: FinancingCampaign,
) -> FinancingQuote:
    if request.down_payment is not None:
        down_payment = to_decimal(request.down_payment)
    else:
        down_payment = price * to_decimal(campaign.down_payment_percent) / 100

    if down_payment < 0 or price - down_payment < 0:
        raise _invalid_down_payment()

    # Campaigns are fixed-term: request.term_months is ignored
    return _build_quote(
        item,
        price,
        down_payment,
        campaign.term_months,
        to_decimal(campaign.annual_interest_rate),
        financing_type=campaign.name,
        lead_id=request.lead_id,
        campaign=campaign,
    )


def _rule_quote(
    request: FinancingRequest,
    item: CatalogPrice,
    price: Decimal,
    rules: Sequence[FinancingRule],
    currency_suffix: str,
) -> FinancingQuote:
    financing_type = request.financing_type.strip()
    active_rules = [r for r in rules if r.active]
    rule = next((r for r in active_rules if r.financing_type == financing_type), None)

    if rule is None:
        available = ", ".join(r.financing_type for r in active_rules) or "none"
        raise FinancingValidationError(
            ErrorCode.FINANCING_TYPE_NOT_FOUND,
            f'Financing type "{financing_type}" was not found. Available types: {available}',
        )

    minimum_price = to_decimal(rule.minimum_price) if rule.minimum_price is not None else None
    if rule.requires_minimum_price and minimum_price is not None and price < minimum_price:
        raise FinancingValidationError(
            ErrorCode.PRICE_BELOW_MINIMUM,
            f"This financing type requires a minimum price of "
            f"{format_money(minimum_price, currency_suffix)}",
        )

    term_months = request.term_months if request.term_months is not None else rule.min_term_months
    if term_months < rule.min_term_months or term_months > rule.max_term_months:
        if rule.min_term_months == rule.max_term_months:
            message = f"This financing type only allows a term of {rule.min_term_months} months"
        else:
            message = (
                f"Term must be between {rule.min_term_months} and "
                f"{rule.max_term_months} months for this financing type"
            )
        raise FinancingValidationError(ErrorCode.INVALID_TERM, message)

    requested_down = to_decimal(request.down_payment) if request.down_payment is not None else None

    if rule.fixed_down_payment_percent is not None:
        fixed_percent = to_decimal(rule.fixed_down_payment_percent)
        down_payment = price * fixed_percent / 100
        if requested_down is not None and abs(requested_down - down_payment) > FIXED_DOWN_PAYMENT_TOLERANCE:
            raise FinancingValidationError(
                ErrorCode.FIXED_DOWN_PAYMENT_REQUIRED,
                f"This financing type requires a fixed down payment of {fixed_percent}% "
                f"({format_money(down_payment, currency_suffix)})",
            )
    else:
        min_percent = to_decimal(rule.min_down_payment_percent)
        min_down_payment = price * min_percent / 100
        down_payment = requested_down if requested_down is not None else min_down_payment
        if down_payment < min_down_payment:
            raise FinancingValidationError(
                ErrorCode.DOWN_PAYMENT_TOO_LOW,
                f"Minimum down payment is {min_percent}% "
                f"({format_money(min_down_payment, currency_suffix)})",
            )

    if down_payment < 0 or down_payment > price:
        raise _invalid_down_payment()

    return _build_quote(
        item,
        price,
        down_payment,
        term_months,
        to_decimal(rule.annual_interest_rate),
        financing_type=rule.financing_type,
        lead_id=request.lead_id,
    )


def _resolve(
    request: FinancingRequest,
    catalog: Sequence[CatalogPrice],
    rules: Sequence[FinancingRule],
    campaigns: Sequence[FinancingCampaign],
    today: date,
    currency_suffix: str,
) -> FinancingQuote:
    if not request.model or not request.model.strip():
        raise FinancingValidationError(ErrorCode.MISSING_FIELD, "A vehicle model is required")
    if not request.financing_type or not request.financing_type.strip():
        raise FinancingValidationError(ErrorCode.MISSING_FIELD, "A financing type is required")

    item = find_catalog_item(catalog, request.model)
    if item is None:
        raise FinancingValidationError(
            ErrorCode.MODEL_NOT_FOUND,
            f'Model "{request.model}" was not found in the active catalog',
        )

    price = to_decimal(item.cash_price)
    if price <= 0:
        raise FinancingValidationError(
            ErrorCode.INVALID_PRICE,
            f'Model "{item.model}" has no valid cash price configured',
        )

    campaign = select_active_campaign(campaigns, item.model, price, today)

    if request.financing_type.strip().lower() == CAMPAIGN_FINANCING_TYPE:
        if campaign is None:
            raise FinancingValidationError(
                ErrorCode.NO_CAMPAIGN_AVAILABLE,
                f'No financing campaign is currently available for "{item.model}"',
            )
        return _campaign_quote(request, item, price, campaign)

    return _rule_quote(request, item, price, rules, currency_suffix)


def resolve_financing(
    request: FinancingRequest,
    catalog: Sequence[CatalogPrice],
    rules: Sequence[FinancingRule],
    campaigns: Sequence[FinancingCampaign],
    today: date | None = None,
    currency_suffix: str = "MXN",
) -> Union[FinancingQuote, FinancingValidationError]:
    """
    Main entry point: resolve a financing request into a quote.

    Flow:
    1. Find the model in the active catalog (exact, then fuzzy)
    2. Pick the highest-priority campaign eligible today, if any
    3. financing_type "campaign" prices the campaign; anything else looks up
       the standing rule of that name
    4. Validate term and down payment against the chosen offer
    5. Amortize the amount financed

    Validation failures are returned as a FinancingValidationError value,
    never raised, so callers branch on the result type.
    """
    if today is None:
        today = date.today()

    try:
        return _resolve(request, catalog, rules, campaigns, today, currency_suffix)
    except FinancingValidationError as error:
        return error
