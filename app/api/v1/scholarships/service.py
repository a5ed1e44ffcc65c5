"""Scholarship service: cohort tiers saved as a full list, per-student awards, with audit."""

import logging
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.cohorts.service import get_cohort_or_404
from app.api.v1.fee_structures.service import log_fee_audit
from app.core.enums import FeeAuditAction
from app.core.exceptions import ServiceError, ValidationFailed
from app.core.models import Scholarship, StudentScholarship
from app.fee_engine.gst import round_money, to_decimal
from app.fee_engine.schemas import ScholarshipInput
from app.fee_engine.validation import errors_to_dict, validate_scholarships

from .schemas import (
    ScholarshipItem,
    ScholarshipResponse,
    ScholarshipValidateResponse,
    StudentScholarshipResponse,
    StudentScholarshipUpsert,
)

logger = logging.getLogger(__name__)

SCHOLARSHIP_TABLE = "cohort_scholarships"
STUDENT_SCHOLARSHIP_TABLE = "student_scholarships"


def _to_uuid(val):
    if val is None:
        return None
    return val if isinstance(val, UUID) else UUID(str(val))


def _snapshot(s: Scholarship) -> dict:
    return {
        "name": s.name,
        "description": s.description,
        "start_percentage": str(round_money(s.start_percentage)),
        "end_percentage": str(round_money(s.end_percentage)),
        "amount_percentage": str(round_money(s.amount_percentage)),
    }


def _apply(row: Scholarship, item: ScholarshipInput) -> None:
    row.name = item.name.strip()
    row.description = (item.description or "").strip() or None
    row.start_percentage = item.start_percentage
    row.end_percentage = item.end_percentage
    row.amount_percentage = item.amount_percentage


def _to_inputs(items: List[ScholarshipItem]) -> List[ScholarshipInput]:
    return [ScholarshipInput(**item.model_dump()) for item in items]


def to_scholarship_input(s: Scholarship) -> ScholarshipInput:
    return ScholarshipInput(
        id=str(s.id),
        name=s.name,
        description=s.description,
        start_percentage=to_decimal(s.start_percentage),
        end_percentage=to_decimal(s.end_percentage),
        amount_percentage=to_decimal(s.amount_percentage),
    )


async def _list_rows(db: AsyncSession, tenant_id: UUID, cohort_id: UUID) -> List[Scholarship]:
    result = await db.execute(
        select(Scholarship)
        .where(Scholarship.tenant_id == tenant_id, Scholarship.cohort_id == cohort_id)
        .order_by(Scholarship.start_percentage)
    )
    return list(result.scalars().all())


async def list_scholarship_inputs(db: AsyncSession, tenant_id: UUID, cohort_id: UUID) -> List[ScholarshipInput]:
    return [to_scholarship_input(s) for s in await _list_rows(db, tenant_id, cohort_id)]


# --- Validation (no persistence) ---
def check_scholarships(items: List[ScholarshipItem], require_at_least_one: bool = False) -> ScholarshipValidateResponse:
    errors = validate_scholarships(_to_inputs(items), require_at_least_one=require_at_least_one)
    return ScholarshipValidateResponse(valid=not errors, errors=errors, field_errors=errors_to_dict(errors))


# --- Cohort scholarships ---
async def list_cohort_scholarships(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
) -> List[ScholarshipResponse]:
    await get_cohort_or_404(db, tenant_id, cohort_id)
    return [ScholarshipResponse.model_validate(s) for s in await _list_rows(db, tenant_id, cohort_id)]


async def save_cohort_scholarships(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
    items: List[ScholarshipItem],
    changed_by: Optional[UUID],
) -> List[ScholarshipResponse]:
    """
    Persist the edited list as the cohort's complete set of tiers.

    Temporary (or unknown) ids are inserted and receive real ids, known ids are
    updated in place, and stored tiers missing from the list are deleted along
    with any student awards pointing at them.
    """
    await get_cohort_or_404(db, tenant_id, cohort_id)
    inputs = _to_inputs(items)
    errors = validate_scholarships(inputs, require_at_least_one=True)
    if errors:
        raise ValidationFailed([e.model_dump() for e in errors], "Scholarships are invalid")

    existing: Dict[str, Scholarship] = {str(s.id): s for s in await _list_rows(db, tenant_id, cohort_id)}
    kept = set()

    for item in inputs:
        row = None if item.is_temporary else existing.get(item.id)
        if row is None:
            row = Scholarship(tenant_id=tenant_id, cohort_id=cohort_id)
            _apply(row, item)
            db.add(row)
            await db.flush()
            await log_fee_audit(
                db, tenant_id, SCHOLARSHIP_TABLE, row.id, FeeAuditAction.CREATE, None, _snapshot(row), changed_by
            )
        else:
            old = _snapshot(row)
            _apply(row, item)
            new = _snapshot(row)
            if new != old:
                await log_fee_audit(
                    db, tenant_id, SCHOLARSHIP_TABLE, row.id, FeeAuditAction.UPDATE, old, new, changed_by
                )
        kept.add(str(row.id))

    removed = [row for key, row in existing.items() if key not in kept]
    if removed:
        await db.execute(
            delete(StudentScholarship).where(
                StudentScholarship.scholarship_id.in_([row.id for row in removed])
            )
        )
        for row in removed:
            await log_fee_audit(
                db, tenant_id, SCHOLARSHIP_TABLE, row.id, FeeAuditAction.DELETE, _snapshot(row), None, changed_by
            )
            await db.delete(row)

    await db.commit()
    logger.info(
        "Saved %d scholarships (%d removed)",
        len(kept),
        len(removed),
        extra={"tenant_id": str(tenant_id), "cohort_id": str(cohort_id)},
    )
    return [ScholarshipResponse.model_validate(s) for s in await _list_rows(db, tenant_id, cohort_id)]


# --- Student scholarship ---
async def get_student_scholarship_row(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
    student_id: UUID,
) -> Optional[StudentScholarship]:
    result = await db.execute(
        select(StudentScholarship).where(
            StudentScholarship.tenant_id == tenant_id,
            StudentScholarship.cohort_id == cohort_id,
            StudentScholarship.student_id == student_id,
        )
    )
    return result.scalar_one_or_none()


async def upsert_student_scholarship(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
    student_id: UUID,
    payload: StudentScholarshipUpsert,
    changed_by: Optional[UUID],
) -> StudentScholarshipResponse:
    await get_cohort_or_404(db, tenant_id, cohort_id)
    scholarship = await db.get(Scholarship, payload.scholarship_id)
    if not scholarship or _to_uuid(scholarship.tenant_id) != tenant_id or _to_uuid(scholarship.cohort_id) != cohort_id:
        raise ServiceError("Invalid scholarship for this cohort", status.HTTP_400_BAD_REQUEST)

    row = await get_student_scholarship_row(db, tenant_id, cohort_id, student_id)
    new_value = {
        "scholarship_id": str(payload.scholarship_id),
        "additional_discount_percentage": str(round_money(payload.additional_discount_percentage)),
    }
    if row is None:
        row = StudentScholarship(
            tenant_id=tenant_id,
            cohort_id=cohort_id,
            student_id=student_id,
            scholarship_id=payload.scholarship_id,
            additional_discount_percentage=payload.additional_discount_percentage,
        )
        db.add(row)
        await db.flush()
        await log_fee_audit(
            db, tenant_id, STUDENT_SCHOLARSHIP_TABLE, row.id, FeeAuditAction.CREATE, None, new_value, changed_by
        )
    else:
        old_value = {
            "scholarship_id": str(row.scholarship_id),
            "additional_discount_percentage": str(round_money(row.additional_discount_percentage)),
        }
        row.scholarship_id = payload.scholarship_id
        row.additional_discount_percentage = payload.additional_discount_percentage
        await log_fee_audit(
            db, tenant_id, STUDENT_SCHOLARSHIP_TABLE, row.id, FeeAuditAction.UPDATE, old_value, new_value, changed_by
        )

    await db.commit()
    await db.refresh(row)
    logger.info(
        "Assigned scholarship %s",
        payload.scholarship_id,
        extra={"tenant_id": str(tenant_id), "cohort_id": str(cohort_id), "student_id": str(student_id)},
    )
    return StudentScholarshipResponse.model_validate(row)


async def get_student_scholarship(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
    student_id: UUID,
) -> Optional[StudentScholarshipResponse]:
    row = await get_student_scholarship_row(db, tenant_id, cohort_id, student_id)
    return StudentScholarshipResponse.model_validate(row) if row else None
