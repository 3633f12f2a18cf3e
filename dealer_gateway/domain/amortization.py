"""Fixed-rate amortization: monthly payment and repayment schedule"""

from datetime import date
from decimal import Decimal
from typing import List

from dealer_gateway.domain.models import ScheduleRow
from dealer_gateway.utils.date_utils import add_months
from dealer_gateway.utils.formatting import Number, round_cents, to_decimal

MONTHS_PER_YEAR = 12


def monthly_payment(principal: Number, annual_rate: Number, months: int) -> Decimal:
    """
    Fixed monthly payment that retires `principal` over `months` at `annual_rate`.

    Requirements:
    - principal <= 0 or months <= 0 returns 0
    - zero rate is a straight-line split
    - otherwise M = P * r * (1+r)^n / ((1+r)^n - 1), r = annual_rate / 12
    - no rounding here; callers round at presentation time

    Args:
        principal: Amount financed
        annual_rate: Annual interest rate as a fraction (0.15 = 15%)
        months: Number of monthly payments
    """
    principal = to_decimal(principal)
    annual_rate = to_decimal(annual_rate)

    if principal <= 0 or months <= 0:
        return Decimal("0")

    if annual_rate == 0:
        return principal / months

    monthly_rate = annual_rate / MONTHS_PER_YEAR
    growth = (1 + monthly_rate) ** months
    return principal * monthly_rate * growth / (growth - 1)


def amortization_schedule(
    principal: Number,
    annual_rate: Number,
    months: int,
    start_date: date | None = None,
) -> List[ScheduleRow]:
    """
    Month-by-month breakdown of a fixed-payment loan.

    Each row splits the payment into interest on the outstanding balance and
    principal. Amounts are rounded to cents per row; the last row absorbs the
    rounding remainder so the principal column sums exactly to the principal
    and the closing balance is zero.

    Example:
        1000 at 0% over 3 months -> 333.33, 333.33, 333.34
    """
    principal = round_cents(principal)
    if principal <= 0 or months <= 0:
        return []

    if start_date is None:
        start_date = date.today()

    monthly_rate = to_decimal(annual_rate) / MONTHS_PER_YEAR
    payment = round_cents(monthly_payment(principal, annual_rate, months))

    rows = []
    balance = principal
    for period in range(1, months + 1):
        interest = round_cents(balance * monthly_rate)

        if period == months:
            principal_part = balance
            amount = principal_part + interest
        else:
            principal_part = payment - interest
            amount = payment

        balance -= principal_part
        rows.append(
            ScheduleRow(
                period=period,
                due_date=add_months(start_date, period),
                payment=amount,
                interest=interest,
                principal=principal_part,
                balance=balance,
            )
        )

    return rows
