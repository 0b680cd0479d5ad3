from datetime import date

import pytest
from services.sales.app.services.errors import ValidationError
from services.sales.app.services.installment import add_months, build_schedule


def test_last_month_pays_the_remainder() -> None:
    entries = build_schedule(100000, 3, date(2026, 1, 31))

    assert [e.amount for e in entries] == [33334, 33334, 33332]
    assert sum(e.amount for e in entries) == 100000
    assert [e.due_date for e in entries] == [
        date(2026, 2, 28),
        date(2026, 3, 31),
        date(2026, 4, 30),
    ]


def test_even_split() -> None:
    entries = build_schedule(1200, 12, date(2026, 3, 1))
    assert {e.amount for e in entries} == {100}
    assert entries[-1].due_date == date(2027, 3, 1)


def test_due_dates_roll_over_the_year() -> None:
    assert add_months(date(2026, 11, 15), 2) == date(2027, 1, 15)


@pytest.mark.parametrize("duration", [0, 1, 7, 24])
def test_unknown_duration_is_rejected(duration: int) -> None:
    with pytest.raises(ValidationError):
        build_schedule(1000, duration, date(2026, 1, 1))
