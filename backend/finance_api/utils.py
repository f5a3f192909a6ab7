"""
Money, date-range and series helpers shared by the transaction and summary services.
"""
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple, Union

MILIUNITS_PER_UNIT = 1000
DEFAULT_RANGE_DAYS = 30
DATE_PARAM_FORMAT = "%Y-%m-%d"


def convert_amount_to_miliunits(amount: Union[str, int, float, Decimal]) -> int:
    """Convert a display amount (e.g. "12.345") to integer miliunits."""
    value = Decimal(str(amount).strip()) * MILIUNITS_PER_UNIT
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def convert_amount_from_miliunits(amount: int) -> Decimal:
    return Decimal(amount) / MILIUNITS_PER_UNIT


def calculate_percentage_change(current: int, previous: int) -> float:
    if previous == 0:
        return 0.0 if current == 0 else 100.0
    return (current - previous) / previous * 100


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def parse_date_param(value: Optional[str]) -> Optional[date]:
    """
    Parse a yyyy-MM-dd query parameter. Blank values mean "not provided".

    Raises:
        ValueError: If the value is present but not a valid date
    """
    if value is None or not value.strip():
        return None
    return datetime.strptime(value.strip(), DATE_PARAM_FORMAT).date()


def resolve_date_range(
    from_date: Optional[date],
    to_date: Optional[date],
    today: Optional[date] = None,
) -> Tuple[datetime, datetime]:
    """
    Resolve optional bounds into an inclusive [start-of-day, end-of-day] window.

    Missing bounds default to the 30 days ending today, clamped so that a
    single supplied bound never lands on the wrong side of the default one.

    Raises:
        ValueError: If both bounds are given and 'from' falls after 'to'
    """
    today = today or today_utc()
    default_start = today - timedelta(days=DEFAULT_RANGE_DAYS)
    if from_date and to_date and from_date > to_date:
        raise ValueError("'from' must not be after 'to'")
    start_day = from_date or min(default_start, to_date or default_start)
    end_day = to_date or max(today, start_day)
    return datetime.combine(start_day, time.min), datetime.combine(end_day, time.max)


def period_length_days(start: datetime, end: datetime) -> int:
    return (end.date() - start.date()).days + 1


def fill_missing_days(
    active_days: Dict[date, Tuple[int, int]],
    start: date,
    end: date,
) -> List[dict]:
    """
    Expand {day: (income, expenses)} into one entry per calendar day in
    [start, end], with zeros for days that had no activity.
    """
    days = []
    current = start
    while current <= end:
        income, expenses = active_days.get(current, (0, 0))
        days.append({
            "date": current.isoformat(),
            "income": income,
            "expenses": expenses,
        })
        current += timedelta(days=1)
    return days
