"""Instalment date keys and default payment dates."""

import re
from datetime import date, datetime
from typing import Dict, Optional, Union

from dateutil.relativedelta import relativedelta

from app.core.enums import PaymentPlan

ONE_SHOT_KEY = "one-shot"
MONTHS_PER_SEMESTER = 6

_INSTALMENT_KEY = re.compile(r"^semester-(\d+)-instalment-(\d+)$")


def instalment_key(semester_number: int, instalment_index: int) -> str:
    return f"semester-{semester_number}-instalment-{instalment_index}"


def parse_instalment_key(key: str) -> Optional[tuple]:
    """(semester_number, instalment_index) for a `semester-<n>-instalment-<i>` key, else None."""
    match = _INSTALMENT_KEY.match(key)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def to_date(value: Union[date, datetime, str]) -> date:
    """Parse an ISO date or datetime; trailing text is an error."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    try:
        return date.fromisoformat(text)
    except ValueError:
        return datetime.fromisoformat(text).date()


def normalize_dates(dates: Dict[str, str]) -> Dict[str, str]:
    """Same keys with each value rewritten as YYYY-MM-DD."""
    return {key: to_date(value).isoformat() for key, value in dates.items() if value}


def default_payment_date(start: Union[date, str], semester_number: int, instalment_index: int) -> str:
    """Semester n starts (n-1)*6 months after the cohort start; instalments follow a month apart."""
    offset = (semester_number - 1) * MONTHS_PER_SEMESTER + instalment_index
    return (to_date(start) + relativedelta(months=offset)).isoformat()


def generate_default_dates(
    plan: PaymentPlan,
    start: Union[date, str],
    number_of_semesters: int,
    instalments_per_semester: int,
) -> Dict[str, str]:
    """Every date key the plan uses, mapped to its default ISO date."""
    if plan == PaymentPlan.ONE_SHOT:
        return {ONE_SHOT_KEY: to_date(start).isoformat()}
    if plan == PaymentPlan.SEM_WISE:
        instalments_per_semester = 1
    elif plan != PaymentPlan.INSTALMENT_WISE:
        return {}
    return {
        instalment_key(sem, i): default_payment_date(start, sem, i)
        for sem in range(1, number_of_semesters + 1)
        for i in range(instalments_per_semester)
    }


def resolve_payment_date(
    key: str,
    default: Optional[str],
    custom_dates: Optional[Dict[str, str]],
) -> Optional[str]:
    """Caller-supplied dates win over computed defaults, matched by exact key."""
    if custom_dates and custom_dates.get(key):
        return custom_dates[key]
    return default
