"""Fee review schemas. Review bodies themselves come from the fee engine (camelCase on the wire)."""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from app.core.enums import PaymentPlan
from app.fee_engine.schemas import FeeStructureInput, FeeStructureReview, ScholarshipInput


class FeeReviewPreviewRequest(BaseModel):
    """Unsaved wizard state. custom_dates defaults to the plan's dates stored on fee_structure."""

    fee_structure: FeeStructureInput
    scholarships: List[ScholarshipInput] = Field(default_factory=list)
    plan: PaymentPlan
    test_score: Optional[Decimal] = None
    cohort_start_date: Optional[date] = None
    scholarship_id: Optional[str] = None
    custom_dates: Optional[Dict[str, str]] = None
    additional_discount_percentage: Decimal = Decimal("0")


class DefaultDatesResponse(BaseModel):
    plan: PaymentPlan
    dates: Dict[str, str]


class FeeReviewMatrixResponse(BaseModel):
    """Default-date reviews for every plan and scholarship option of a cohort."""

    cohort_id: str
    reviews: List[FeeStructureReview]
