"""Scholarship schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.fee_engine.gst import round_money
from app.fee_engine.schemas import ValidationError


class ScholarshipItem(BaseModel):
    """
    One tier of the edited list. Unsaved tiers carry a `temp-...` id or none at all.
    Percentages are rounded to the stored precision (0.01) before any check runs.
    """

    id: Optional[str] = None
    name: str = ""
    description: Optional[str] = None
    start_percentage: Decimal
    end_percentage: Decimal
    amount_percentage: Decimal

    @field_validator("start_percentage", "end_percentage", "amount_percentage")
    @classmethod
    def to_stored_precision(cls, v: Decimal) -> Decimal:
        return round_money(v)


class ScholarshipsSaveRequest(BaseModel):
    scholarships: List[ScholarshipItem] = Field(default_factory=list)


class ScholarshipValidateRequest(BaseModel):
    scholarships: List[ScholarshipItem] = Field(default_factory=list)
    require_at_least_one: bool = False


class ScholarshipValidateResponse(BaseModel):
    valid: bool
    errors: List[ValidationError]
    field_errors: Dict[str, str]


class ScholarshipResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    cohort_id: UUID
    name: str
    description: Optional[str] = None
    start_percentage: Decimal
    end_percentage: Decimal
    amount_percentage: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# --- Student scholarship ---
class StudentScholarshipUpsert(BaseModel):
    scholarship_id: UUID
    additional_discount_percentage: Decimal = Field(Decimal("0"), ge=0, le=100)

    @field_validator("additional_discount_percentage")
    @classmethod
    def to_stored_precision(cls, v: Decimal) -> Decimal:
        return round_money(v)


class StudentScholarshipResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    cohort_id: UUID
    student_id: UUID
    scholarship_id: UUID
    additional_discount_percentage: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
