"""Lead scoring engine - turns sales events into a score delta and tier"""

from datetime import datetime
from typing import List, Optional, Tuple

from dealer_gateway.domain.models import (
    EditEvent,
    FollowUpEvent,
    InteractionEvent,
    Lead,
    PreferenceChangeEvent,
    ScoreResult,
    ScoringEvent,
    Tier,
    Timeframe,
)
from dealer_gateway.utils.date_utils import days_since, utc_now

MIN_SCORE = 0
MAX_SCORE = 100

GREEN_THRESHOLD = 80
YELLOW_THRESHOLD = 60

FLAGSHIP_FINANCING_TYPE = "Yamaha Especial"

STALE_AFTER_DAYS = 30
STALE_PROGRESS_THRESHOLD = 5
STALE_PENALTY = 2

DIRECTION_DELTAS = {
    "inbound": (8, "Lead-initiated contact (high intent)"),
    "outbound": (3, "Successful outreach by sales team"),
}

CHANNEL_DELTAS = {
    "whatsapp": (5, "WhatsApp channel (highly responsive)"),
    "phone": (7, "Phone call (direct contact)"),
    "in-person": (12, "In-person visit (very high interest)"),
}

# Kind deltas add to direction/channel deltas but replace their reason text
KIND_DELTAS = {
    "meeting": (15, "Meeting scheduled and held (high probability)"),
    "test_drive": (20, "Test drive completed (very high purchase intent)"),
    "quotation": (10, "Quotation requested (commercial interest)"),
}


def tier_for_score(score: int) -> Tier:
    """
    Map a score to its qualification tier.

    Tier bands:
    - 80-100: Green
    - 60-79:  Yellow
    - 0-59:   Red
    """
    if score >= GREEN_THRESHOLD:
        return Tier.GREEN
    elif score >= YELLOW_THRESHOLD:
        return Tier.YELLOW
    else:
        return Tier.RED


def clamp_score(score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def _lookup(table: dict, key: Optional[str]) -> Optional[Tuple[int, str]]:
    if not key:
        return None
    return table.get(key.strip().lower())


def _interaction_delta(event: InteractionEvent) -> Tuple[int, List[str]]:
    delta = 0
    reasons: List[str] = []

    for table, key in ((DIRECTION_DELTAS, event.direction), (CHANNEL_DELTAS, event.channel)):
        match = _lookup(table, key)
        if match:
            delta += match[0]
            reasons.append(match[1])

    kind = _lookup(KIND_DELTAS, event.kind)
    if kind:
        delta += kind[0]
        reasons = [kind[1]]

    return delta, reasons


def _follow_up_delta(event: FollowUpEvent) -> Tuple[int, List[str]]:
    if event.completed:
        return 6, ["Follow-up completed (pipeline progress)"]
    return -3, ["Scheduled follow-up not completed (low responsiveness)"]


def _preference_delta(event: PreferenceChangeEvent, flagship: str) -> Tuple[int, List[str]]:
    delta = 0
    reasons: List[str] = []

    if event.old_timeframe == Timeframe.FUTURE and event.new_timeframe == Timeframe.IMMEDIATE:
        delta += 15
        reasons.append("Timeframe moved to immediate (purchase urgency)")
    elif event.old_timeframe == Timeframe.IMMEDIATE and event.new_timeframe == Timeframe.FUTURE:
        delta -= 10
        reasons.append("Timeframe moved to future (lower urgency)")

    if event.new_financing == flagship and event.old_financing != flagship:
        delta += 12
        reasons.append(f"Interested in {flagship} financing (best conditions)")
    elif event.old_financing == flagship and event.new_financing != flagship:
        delta -= 8
        reasons.append(f"Moved away from {flagship} financing (re-evaluating)")

    return delta, reasons


def _edit_delta(event: EditEvent, flagship: str) -> Tuple[int, List[str]]:
    delta = 0
    reasons: List[str] = []

    if event.new_model and event.new_model != event.old_model:
        delta += 3
        reasons.append("Updated model preference (active interest)")

    if event.new_timeframe != event.old_timeframe:
        if event.new_timeframe == Timeframe.IMMEDIATE:
            delta += 15
            reasons.append("Immediate purchase urgency")
        elif event.new_timeframe == Timeframe.FUTURE:
            delta -= 10
            reasons.append("Future purchase (lower priority)")

    if event.new_financing != event.old_financing and event.new_financing == flagship:
        delta += 12
        reasons.append("Strategic financing selected")

    return delta, reasons


def event_delta(event: ScoringEvent, flagship: str = FLAGSHIP_FINANCING_TYPE) -> Tuple[int, List[str]]:
    """Signed delta and reason fragments for a single event, before staleness"""
    if isinstance(event, InteractionEvent):
        return _interaction_delta(event)
    if isinstance(event, FollowUpEvent):
        return _follow_up_delta(event)
    if isinstance(event, PreferenceChangeEvent):
        return _preference_delta(event, flagship)
    if isinstance(event, EditEvent):
        return _edit_delta(event, flagship)
    return 0, []


def adjust_score(
    lead: Lead,
    event: ScoringEvent,
    now: datetime | None = None,
    flagship: str = FLAGSHIP_FINANCING_TYPE,
    stale_after_days: int = STALE_AFTER_DAYS,
) -> ScoreResult:
    """
    Main entry point: apply a sales event to a lead snapshot.

    Deltas from every matching clause stack. Leads older than
    `stale_after_days` whose event moved the score by less than 5 points lose
    a further 2 points. The resulting score is clamped to [0, 100] and the
    tier is re-derived from it.

    The function reads no state other than its arguments; `now` defaults to
    the current UTC time and is only used to age the lead.
    """
    if now is None:
        now = utc_now()

    delta, reasons = event_delta(event, flagship)

    if days_since(lead.created_at, now) > stale_after_days and delta < STALE_PROGRESS_THRESHOLD:
        delta -= STALE_PENALTY
        reasons.append("Aging lead without significant progress")

    new_score = clamp_score(lead.score + delta)

    return ScoreResult(
        new_score=new_score,
        delta=delta,
        reason=" + ".join(reasons),
        new_tier=tier_for_score(new_score),
    )
