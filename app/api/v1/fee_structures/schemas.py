"""Fee structure schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from app.core.enums import FeeStructureType, PaymentPlan
from app.fee_engine.schedule_overrides import flatten_plan_dates

_PLAN_DATE_FIELDS = ("one_shot_dates", "sem_wise_dates", "instalment_wise_dates")


class FeeStructureUpsert(BaseModel):
    """
    Range checks are done by the fee engine so every field error comes back in one 422.
    Plan dates may be sent as flat keys or in the stored per-plan shape.
    """

    admission_fee: Decimal
    total_program_fee: Decimal
    number_of_semesters: int
    instalments_per_semester: int
    one_shot_discount_percentage: Decimal = Decimal("0")
    one_shot_dates: Dict[str, str] = Field(default_factory=dict)
    sem_wise_dates: Dict[str, str] = Field(default_factory=dict)
    instalment_wise_dates: Dict[str, str] = Field(default_factory=dict)

    @field_validator(*_PLAN_DATE_FIELDS, mode="before")
    @classmethod
    def flat_dates(cls, v, info: ValidationInfo):
        return flatten_plan_dates(v, info.field_name)


class StudentFeeStructureUpsert(FeeStructureUpsert):
    selected_payment_plan: Optional[PaymentPlan] = None


class FeeStructureResponse(BaseModel):
    """Plan dates come back as flat instalment keys."""

    id: UUID
    tenant_id: UUID
    cohort_id: UUID
    structure_type: FeeStructureType
    student_id: Optional[UUID] = None
    admission_fee: Decimal
    total_program_fee: Decimal
    number_of_semesters: int
    instalments_per_semester: int
    one_shot_discount_percentage: Decimal
    one_shot_dates: Dict[str, str]
    sem_wise_dates: Dict[str, str]
    instalment_wise_dates: Dict[str, str]
    selected_payment_plan: Optional[PaymentPlan] = None
    is_setup_complete: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_validator(*_PLAN_DATE_FIELDS, mode="before")
    @classmethod
    def flat_dates(cls, v, info: ValidationInfo):
        return flatten_plan_dates(v or {}, info.field_name)
