"""Fee engine input and output models."""

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from app.core.enums import PaymentPlan

from .schedule_overrides import flatten_plan_dates

NO_SCHOLARSHIP = "no_scholarship"
TEMP_ID_PREFIX = "temp-"


# --- Inputs ---
class FeeStructureInput(BaseModel):
    """Fee structure as the engine sees it. Range checks live in validation.validate_fee_structure."""

    admission_fee: Decimal
    total_program_fee: Decimal
    number_of_semesters: int
    instalments_per_semester: int
    one_shot_discount_percentage: Decimal = Decimal("0")
    one_shot_dates: Dict[str, str] = Field(default_factory=dict)
    sem_wise_dates: Dict[str, str] = Field(default_factory=dict)
    instalment_wise_dates: Dict[str, str] = Field(default_factory=dict)

    class Config:
        from_attributes = True

    @field_validator("one_shot_dates", "sem_wise_dates", "instalment_wise_dates", mode="before")
    @classmethod
    def flat_dates(cls, v, info: ValidationInfo):
        return flatten_plan_dates(v, info.field_name)

    def dates_for_plan(self, plan: PaymentPlan) -> Dict[str, str]:
        if plan == PaymentPlan.ONE_SHOT:
            return dict(self.one_shot_dates or {})
        if plan == PaymentPlan.SEM_WISE:
            return dict(self.sem_wise_dates or {})
        if plan == PaymentPlan.INSTALMENT_WISE:
            return dict(self.instalment_wise_dates or {})
        return {}


class ScholarshipInput(BaseModel):
    """Scholarship tier: students scoring within [start, end] get amount_percentage off the program fee."""

    id: Optional[str] = None
    name: str = ""
    description: Optional[str] = None
    start_percentage: Decimal
    end_percentage: Decimal
    amount_percentage: Decimal

    class Config:
        from_attributes = True

    @property
    def is_temporary(self) -> bool:
        return self.id is None or self.id.startswith(TEMP_ID_PREFIX)


class ValidationError(BaseModel):
    field: str
    message: str


# --- Review output ---
class _ReviewModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class AdmissionFeeLine(_ReviewModel):
    base_amount: Decimal
    gst_amount: Decimal
    scholarship_amount: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    total_payable: Decimal


class InstalmentLine(_ReviewModel):
    instalment_number: int
    date_key: str
    payment_date: Optional[str] = None
    base_amount: Decimal
    gst_amount: Decimal
    discount_amount: Decimal = Decimal("0")
    scholarship_amount: Decimal = Decimal("0")
    amount_payable: Decimal


class SemesterTotal(_ReviewModel):
    base_amount: Decimal
    gst_amount: Decimal
    discount_amount: Decimal
    scholarship_amount: Decimal
    total_payable: Decimal


class SemesterBreakdown(_ReviewModel):
    semester_number: int
    instalments: List[InstalmentLine]
    total: SemesterTotal


class OverallSummary(_ReviewModel):
    total_program_fee: Decimal
    admission_fee: Decimal
    total_gst: Decimal = Field(alias="totalGST")
    total_discount: Decimal
    total_scholarship: Decimal
    total_amount_payable: Decimal


class FeeStructureReview(_ReviewModel):
    """Itemized breakdown for one (plan, scholarship, dates) selection. Replaced wholesale, never edited."""

    payment_plan: PaymentPlan
    scholarship_id: Optional[str] = None
    admission_fee: AdmissionFeeLine
    semesters: List[SemesterBreakdown] = Field(default_factory=list)
    one_shot_payment: Optional[InstalmentLine] = None
    overall_summary: OverallSummary
    is_fallback: bool = False

    def instalments(self) -> List[InstalmentLine]:
        """All instalment lines in payment order."""
        if self.one_shot_payment is not None:
            return [self.one_shot_payment]
        return [line for semester in self.semesters for line in semester.instalments]
