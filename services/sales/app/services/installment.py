from __future__ import annotations

import calendar
import math
from dataclasses import dataclass
from datetime import date

from services.sales.app.models.buyer import INSTALLMENT_DURATIONS
from services.sales.app.services.errors import ValidationError


@dataclass(frozen=True, slots=True)
class ScheduleEntry:
    month: int
    amount: float
    due_date: date


def add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def monthly_payment(total: float, duration_months: int) -> float:
    return math.ceil(total / duration_months)


def build_schedule(total: float, duration_months: int, start: date) -> list[ScheduleEntry]:
    """Preview of an interest-free installment plan.

    Every month pays the rounded-up monthly amount except the last, which pays whatever
    remains so the schedule sums exactly to ``total``.
    """

    if duration_months not in INSTALLMENT_DURATIONS:
        raise ValidationError(f"Installment duration must be one of {INSTALLMENT_DURATIONS}")
    if total < 0:
        raise ValidationError("Installment total cannot be negative")

    monthly = monthly_payment(total, duration_months)
    entries: list[ScheduleEntry] = []
    for month in range(1, duration_months + 1):
        amount = monthly if month < duration_months else total - monthly * (duration_months - 1)
        entries.append(
            ScheduleEntry(month=month, amount=amount, due_date=add_months(start, month))
        )
    return entries
