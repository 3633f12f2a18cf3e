"""Pydantic schemas for API request/response validation"""

from datetime import date
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from dealer_gateway.domain.models import (
    EditEvent,
    FollowUpEvent,
    InteractionEvent,
    PreferenceChangeEvent,
    ScoringEvent,
    Timeframe,
)

# Fifty years of monthly payments
MAX_SIMULATED_TERM_MONTHS = 600


class ErrorResponse(BaseModel):
    """Uniform failure body"""

    success: bool = False
    error: str
    message: str


class CalculateFinancingRequest(BaseModel):
    """Request body for POST /v1/financing/calculate"""

    # Presence is checked by the resolver so a missing field maps to MISSING_FIELD
    model: Optional[str] = Field(None, description="Vehicle model, e.g. MT-07")
    financing_type: Optional[str] = Field(None, description='Standing rule name or "campaign"')
    term_months: Optional[int] = Field(None, description="Requested term; ignored for campaigns")
    down_payment: Optional[Decimal] = Field(None, description="Requested down payment")
    lead_id: Optional[str] = Field(None, description="Lead to attribute the quote to")


class QuoteData(BaseModel):
    """Resolved quote with display strings"""

    model: str
    price_cash: float
    price_formatted: str
    financing_type: str
    term_months: int
    down_payment: float
    down_payment_formatted: str
    down_payment_percent: float
    amount_financed: float
    amount_financed_formatted: str
    monthly_payment: int
    monthly_payment_formatted: str
    total_amount: float
    total_amount_formatted: str
    interest_amount: float
    interest_amount_formatted: str
    interest_rate: float
    interest_rate_formatted: str
    campaign_active: bool
    campaign_name: Optional[str] = None
    campaign_description: Optional[str] = None
    provider: Optional[str] = None


class CalculateFinancingResponse(BaseModel):
    """Response for POST /v1/financing/calculate"""

    success: bool
    data: Optional[QuoteData] = None
    error: Optional[str] = None
    message: Optional[str] = None


class FinancingTypeItem(BaseModel):
    """Active standing rule"""

    id: Optional[str] = None
    financing_type: str
    description: Optional[str] = None
    min_term_months: int
    max_term_months: int
    interest_rate: float
    interest_rate_formatted: str
    min_down_payment_percent: float
    fixed_down_payment_percent: Optional[float] = None
    requires_minimum_price: bool
    minimum_price: Optional[float] = None
    minimum_price_formatted: Optional[str] = None


class CampaignItem(BaseModel):
    """Campaign annotated with today's availability"""

    id: Optional[str] = None
    campaign_name: str
    campaign_type: Optional[str] = None
    provider: str
    description: Optional[str] = None
    applicable_models: List[str]
    start_date: date
    end_date: date
    term_months: int
    down_payment_percent: float
    interest_rate: float
    interest_rate_formatted: str
    min_price: Optional[float] = None
    min_price_formatted: Optional[str] = None
    max_price: Optional[float] = None
    priority: int
    is_active_now: bool
    days_remaining: int


class FinancingTypesResponse(BaseModel):
    """Response for GET /v1/financing/types"""

    success: bool = True
    count: int
    financing_types: List[FinancingTypeItem]
    campaigns: Optional[List[CampaignItem]] = None


class SimulateRequest(BaseModel):
    """Request body for POST /v1/financing/simulate"""

    principal: Decimal = Field(..., ge=0, description="Amount financed")
    annual_rate: Decimal = Field(..., ge=0, description="Annual rate as a fraction, 0.15 = 15%")
    term_months: int = Field(..., gt=0, le=MAX_SIMULATED_TERM_MONTHS, description="Number of monthly payments")
    start_date: Optional[date] = None


class ScheduleRowSchema(BaseModel):
    """Single month in an amortization schedule"""

    period: int
    due_date: date
    payment: float
    interest: float
    principal: float
    balance: float


class SimulateResponse(BaseModel):
    """Response for POST /v1/financing/simulate"""

    monthly_payment: int
    monthly_payment_formatted: str
    total_paid: float
    total_interest: float
    schedule: List[ScheduleRowSchema]


class QuoteHistoryItem(BaseModel):
    """Logged quote"""

    model: str
    financing_type: str
    term_months: int
    down_payment: float
    monthly_payment: float
    total_amount: float
    created_at: str


class QuoteHistoryResponse(BaseModel):
    """Response for GET /v1/leads/{lead_id}/quotes"""

    lead_id: str
    quotes: List[QuoteHistoryItem]


class InteractionEventIn(BaseModel):
    type: Literal["interaction"]
    kind: Optional[str] = None
    channel: Optional[str] = None
    direction: Optional[str] = None

    def to_domain(self) -> ScoringEvent:
        return InteractionEvent(kind=self.kind, channel=self.channel, direction=self.direction)


class FollowUpEventIn(BaseModel):
    type: Literal["follow_up"]
    completed: bool

    def to_domain(self) -> ScoringEvent:
        return FollowUpEvent(completed=self.completed)


class PreferenceChangeEventIn(BaseModel):
    type: Literal["preference_change"]
    old_timeframe: Optional[Timeframe] = None
    new_timeframe: Optional[Timeframe] = None
    old_financing: Optional[str] = None
    new_financing: Optional[str] = None

    def to_domain(self) -> ScoringEvent:
        return PreferenceChangeEvent(
            old_timeframe=self.old_timeframe,
            new_timeframe=self.new_timeframe,
            old_financing=self.old_financing,
            new_financing=self.new_financing,
        )


class EditEventIn(BaseModel):
    type: Literal["edit"]
    old_model: Optional[str] = None
    new_model: Optional[str] = None
    old_timeframe: Optional[Timeframe] = None
    new_timeframe: Optional[Timeframe] = None
    old_financing: Optional[str] = None
    new_financing: Optional[str] = None

    def to_domain(self) -> ScoringEvent:
        return EditEvent(
            old_model=self.old_model,
            new_model=self.new_model,
            old_timeframe=self.old_timeframe,
            new_timeframe=self.new_timeframe,
            old_financing=self.old_financing,
            new_financing=self.new_financing,
        )


ScoreEventIn = Annotated[
    Union[InteractionEventIn, FollowUpEventIn, PreferenceChangeEventIn, EditEventIn],
    Field(discriminator="type"),
]


class ScoreEventRequest(BaseModel):
    """Request body for POST /v1/leads/{lead_id}/score-events"""

    event: ScoreEventIn


class ScoreEventResponse(BaseModel):
    """Response for POST /v1/leads/{lead_id}/score-events"""

    lead_id: str
    previous_score: int
    new_score: int
    delta: int
    reason: str
    tier: str
