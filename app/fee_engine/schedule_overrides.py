"""
Mapping between instalment date keys and the per-plan JSON stored on a fee structure.

Stored shapes:
    one_shot:        {"program_fee_due_date": "2025-02-01"}
    sem_wise:        {"semesters": {"semester_1": {"due_date": "2025-02-01"}}}
    instalment_wise: {"semesters": {"semester_1": {"installments": {"installment_0": "2025-02-01"}}}}

Older rows hold the flat key form ({"semester-1-instalment-0": "..."}); both are read.
"""

from typing import Any, Dict, Mapping, Optional

from app.core.enums import PaymentPlan

from .dates import ONE_SHOT_KEY, instalment_key, parse_instalment_key

PROGRAM_FEE_DUE_DATE = "program_fee_due_date"
SEMESTERS = "semesters"
DUE_DATE = "due_date"
INSTALLMENTS = "installments"

PLAN_DATE_FIELDS = {
    "one_shot_dates": PaymentPlan.ONE_SHOT,
    "sem_wise_dates": PaymentPlan.SEM_WISE,
    "instalment_wise_dates": PaymentPlan.INSTALMENT_WISE,
}


def _semester_number(semester_key: str) -> Optional[int]:
    number = semester_key.replace("semester_", "", 1)
    return int(number) if number.isdigit() else None


def to_plan_specific_json(dates: Mapping[str, str], plan: PaymentPlan) -> Dict[str, Any]:
    """Flat date keys -> the nested JSON stored for `plan`. Keys the plan does not use are dropped."""
    if plan == PaymentPlan.ONE_SHOT:
        return {PROGRAM_FEE_DUE_DATE: dates[ONE_SHOT_KEY]} if dates.get(ONE_SHOT_KEY) else {}

    semesters: Dict[str, Dict[str, Any]] = {}
    for key, value in dates.items():
        parsed = parse_instalment_key(key)
        if parsed is None or not value:
            continue
        semester, index = parsed
        semester_data = semesters.setdefault(f"semester_{semester}", {})
        if plan == PaymentPlan.SEM_WISE:
            if index == 0:
                semester_data[DUE_DATE] = value
        elif plan == PaymentPlan.INSTALMENT_WISE:
            semester_data.setdefault(INSTALLMENTS, {})[f"installment_{index}"] = value
    semesters = {key: data for key, data in semesters.items() if data}
    return {SEMESTERS: semesters} if semesters else {}


def from_plan_specific_json(plan_json: Optional[Mapping[str, Any]], plan: PaymentPlan) -> Dict[str, str]:
    """
    Stored plan JSON -> flat date keys.

    A dict in the flat key form is returned as-is so that unknown keys still
    reach validation.
    """
    if not plan_json:
        return {}

    if plan == PaymentPlan.ONE_SHOT:
        if PROGRAM_FEE_DUE_DATE not in plan_json:
            return dict(plan_json)
        due = plan_json[PROGRAM_FEE_DUE_DATE]
        return {ONE_SHOT_KEY: due} if due else {}

    semesters = plan_json.get(SEMESTERS)
    if not isinstance(semesters, Mapping):
        return dict(plan_json)

    flat: Dict[str, str] = {}
    for semester_key, semester_data in semesters.items():
        semester = _semester_number(semester_key)
        if semester is None or not isinstance(semester_data, Mapping):
            continue
        if plan == PaymentPlan.SEM_WISE:
            if semester_data.get(DUE_DATE):
                flat[instalment_key(semester, 0)] = semester_data[DUE_DATE]
        elif plan == PaymentPlan.INSTALMENT_WISE:
            for installment_key, value in (semester_data.get(INSTALLMENTS) or {}).items():
                index = installment_key.replace("installment_", "", 1)
                if index.isdigit() and value:
                    flat[instalment_key(semester, int(index))] = value
    return flat


def flatten_plan_dates(value: Any, field_name: str) -> Any:
    """pydantic `before` hook for the three plan date fields; anything that is not a dict is left to pydantic."""
    if not isinstance(value, Mapping):
        return value
    return from_plan_specific_json(value, PLAN_DATE_FIELDS[field_name])
