"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import FrozenSet, Optional, Union


class Tier(str, Enum):
    """Lead qualification bucket derived from score"""

    RED = "Red"
    YELLOW = "Yellow"
    GREEN = "Green"


class Timeframe(str, Enum):
    """How soon the lead intends to buy"""

    IMMEDIATE = "Immediate"
    SOON = "Soon"
    FUTURE = "Future"


@dataclass
class Lead:
    """Snapshot of a lead record as read from the store"""

    id: str
    score: int
    tier: Tier
    created_at: datetime
    model_interested: Optional[str] = None
    timeframe: Optional[Timeframe] = None
    financing_type: Optional[str] = None
    version: int = 0


@dataclass(frozen=True)
class InteractionEvent:
    """A logged contact with the lead"""

    kind: Optional[str] = None  # meeting | test_drive | quotation | message ...
    channel: Optional[str] = None  # WhatsApp | Phone | In-Person | Email ...
    direction: Optional[str] = None  # inbound | outbound


@dataclass(frozen=True)
class FollowUpEvent:
    """A scheduled follow-up that was either completed or missed"""

    completed: bool = False


@dataclass(frozen=True)
class PreferenceChangeEvent:
    """Lead changed purchase timeframe or financing preference"""

    old_timeframe: Optional[Timeframe] = None
    new_timeframe: Optional[Timeframe] = None
    old_financing: Optional[str] = None
    new_financing: Optional[str] = None


@dataclass(frozen=True)
class EditEvent:
    """Staff edited the lead record"""

    old_model: Optional[str] = None
    new_model: Optional[str] = None
    old_timeframe: Optional[Timeframe] = None
    new_timeframe: Optional[Timeframe] = None
    old_financing: Optional[str] = None
    new_financing: Optional[str] = None


ScoringEvent = Union[InteractionEvent, FollowUpEvent, PreferenceChangeEvent, EditEvent]


@dataclass(frozen=True)
class ScoreResult:
    """Output of a score adjustment"""

    new_score: int
    delta: int
    reason: str
    new_tier: Tier


@dataclass
class CatalogPrice:
    """Cash price of a catalog model"""

    model: str
    cash_price: Decimal
    active: bool = True
    id: Optional[str] = None


@dataclass
class FinancingRule:
    """Standing financing plan, available while active"""

    financing_type: str
    min_term_months: int
    max_term_months: int
    annual_interest_rate: Decimal
    min_down_payment_percent: Decimal = Decimal("0")
    fixed_down_payment_percent: Optional[Decimal] = None
    requires_minimum_price: bool = False
    minimum_price: Optional[Decimal] = None
    active: bool = True
    id: Optional[str] = None
    description: Optional[str] = None


@dataclass
class FinancingCampaign:
    """Time-boxed, model-scoped financing promotion"""

    name: str
    provider: str
    start_date: date
    end_date: date  # inclusive
    applicable_models: FrozenSet[str]
    down_payment_percent: Decimal
    term_months: int
    annual_interest_rate: Decimal
    priority: int = 0
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    active: bool = True
    id: Optional[str] = None
    campaign_type: Optional[str] = None
    benefits_description: Optional[str] = None


@dataclass(frozen=True)
class FinancingRequest:
    """Caller's request for a financing quote"""

    model: Optional[str]
    financing_type: Optional[str]
    term_months: Optional[int] = None
    down_payment: Optional[Decimal] = None
    lead_id: Optional[str] = None


@dataclass(frozen=True)
class FinancingQuote:
    """Resolved financing offer; amounts are unrounded"""

    model: str
    price: Decimal
    financing_type: str
    term_months: int
    down_payment: Decimal
    down_payment_percent: Decimal
    amount_financed: Decimal
    monthly_payment: Decimal
    total_amount: Decimal
    interest_amount: Decimal
    annual_interest_rate: Decimal
    from_campaign: bool
    campaign_name: Optional[str] = None
    campaign_id: Optional[str] = None
    provider: Optional[str] = None
    campaign_description: Optional[str] = None
    lead_id: Optional[str] = None


@dataclass(frozen=True)
class CampaignAvailability:
    """Campaign annotated with its standing on a given day"""

    campaign: FinancingCampaign
    is_active_now: bool
    days_remaining: int


@dataclass(frozen=True)
class ScheduleRow:
    """Single month in an amortization schedule"""

    period: int
    due_date: date
    payment: Decimal
    interest: Decimal
    principal: Decimal
    balance: Decimal
