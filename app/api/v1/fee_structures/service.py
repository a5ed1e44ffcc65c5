"""Fee structure service: cohort structure lifecycle and per-student overrides, with audit."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.cohorts.service import get_cohort_or_404
from app.core.enums import FeeAuditAction, FeeStructureType
from app.core.exceptions import ServiceError, ValidationFailed
from app.core.models import FeeAuditLog, FeeStructure
from app.fee_engine.dates import normalize_dates
from app.fee_engine.gst import round_money, to_decimal
from app.fee_engine.schedule_overrides import PLAN_DATE_FIELDS, to_plan_specific_json
from app.fee_engine.schemas import FeeStructureInput
from app.fee_engine.validation import validate_fee_structure

from .schemas import FeeStructureResponse, FeeStructureUpsert, StudentFeeStructureUpsert

logger = logging.getLogger(__name__)

FEE_STRUCTURE_TABLE = "fee_structures"

_FEE_FIELDS = (
    "admission_fee",
    "total_program_fee",
    "number_of_semesters",
    "instalments_per_semester",
    "one_shot_discount_percentage",
    "one_shot_dates",
    "sem_wise_dates",
    "instalment_wise_dates",
)


# --- Audit helper ---
async def log_fee_audit(
    db: AsyncSession,
    tenant_id: UUID,
    reference_table: str,
    reference_id: UUID,
    action_type: FeeAuditAction,
    old_value: Optional[dict],
    new_value: Optional[dict],
    changed_by: Optional[UUID],
) -> None:
    """Queue an audit row on the caller's session; it commits with the change it describes."""
    db.add(
        FeeAuditLog(
            tenant_id=tenant_id,
            reference_table=reference_table,
            reference_id=reference_id,
            action_type=action_type.value,
            old_value=old_value,
            new_value=new_value,
            changed_by=changed_by,
        )
    )


def _snapshot(fs: FeeStructure) -> dict:
    """JSON-safe copy of the financial fields for the audit log."""
    return {
        "admission_fee": str(round_money(fs.admission_fee)),
        "total_program_fee": str(round_money(fs.total_program_fee)),
        "number_of_semesters": fs.number_of_semesters,
        "instalments_per_semester": fs.instalments_per_semester,
        "one_shot_discount_percentage": str(round_money(fs.one_shot_discount_percentage)),
        "one_shot_dates": dict(fs.one_shot_dates or {}),
        "sem_wise_dates": dict(fs.sem_wise_dates or {}),
        "instalment_wise_dates": dict(fs.instalment_wise_dates or {}),
        "selected_payment_plan": fs.selected_payment_plan,
        "is_setup_complete": bool(fs.is_setup_complete),
    }


def to_fee_structure_input(fs: FeeStructure) -> FeeStructureInput:
    return FeeStructureInput(
        admission_fee=to_decimal(fs.admission_fee),
        total_program_fee=to_decimal(fs.total_program_fee),
        number_of_semesters=fs.number_of_semesters,
        instalments_per_semester=fs.instalments_per_semester,
        one_shot_discount_percentage=to_decimal(fs.one_shot_discount_percentage),
        one_shot_dates=dict(fs.one_shot_dates or {}),
        sem_wise_dates=dict(fs.sem_wise_dates or {}),
        instalment_wise_dates=dict(fs.instalment_wise_dates or {}),
    )


def _validate(payload: FeeStructureUpsert) -> None:
    errors = validate_fee_structure(FeeStructureInput(**payload.model_dump(include=set(_FEE_FIELDS))))
    if errors:
        raise ValidationFailed([e.model_dump() for e in errors], "Fee structure is invalid")


def _apply(fs: FeeStructure, payload: FeeStructureUpsert) -> None:
    """Copy payload fields onto the row; plan dates are stored in their per-plan JSON shape."""
    for field in _FEE_FIELDS:
        value = getattr(payload, field)
        if field in PLAN_DATE_FIELDS:
            value = to_plan_specific_json(normalize_dates(value), PLAN_DATE_FIELDS[field])
        setattr(fs, field, value)


async def _get_structure(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
    student_id: Optional[UUID] = None,
) -> Optional[FeeStructure]:
    stmt = select(FeeStructure).where(
        FeeStructure.tenant_id == tenant_id,
        FeeStructure.cohort_id == cohort_id,
    )
    if student_id is None:
        stmt = stmt.where(FeeStructure.structure_type == FeeStructureType.COHORT.value)
    else:
        stmt = stmt.where(
            FeeStructure.structure_type == FeeStructureType.CUSTOM.value,
            FeeStructure.student_id == student_id,
        )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def _insert_structure(
    db: AsyncSession,
    fs: FeeStructure,
    tenant_id: UUID,
    cohort_id: UUID,
    student_id: Optional[UUID] = None,
) -> Optional[FeeStructure]:
    """
    Insert a new structure. Returns None on success, or the row a concurrent
    request inserted first (the unique index rejected ours).
    """
    db.add(fs)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        existing = await _get_structure(db, tenant_id, cohort_id, student_id)
        if existing is None:
            raise
        logger.info(
            "Fee structure created concurrently, updating %s",
            existing.id,
            extra={"tenant_id": str(tenant_id), "cohort_id": str(cohort_id)},
        )
        return existing
    return None


async def get_effective_fee_structure(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
    student_id: Optional[UUID] = None,
) -> Optional[FeeStructure]:
    """The student's custom structure when one exists, else the cohort structure."""
    if student_id is not None:
        custom = await _get_structure(db, tenant_id, cohort_id, student_id)
        if custom is not None:
            return custom
    return await _get_structure(db, tenant_id, cohort_id)


# --- Cohort fee structure ---
async def upsert_cohort_fee_structure(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
    payload: FeeStructureUpsert,
    changed_by: Optional[UUID],
) -> FeeStructureResponse:
    await get_cohort_or_404(db, tenant_id, cohort_id)
    _validate(payload)

    fs = await _get_structure(db, tenant_id, cohort_id)
    created = False
    if fs is None:
        fs = FeeStructure(
            tenant_id=tenant_id,
            cohort_id=cohort_id,
            structure_type=FeeStructureType.COHORT.value,
            is_setup_complete=False,
        )
        _apply(fs, payload)
        existing = await _insert_structure(db, fs, tenant_id, cohort_id)
        if existing is None:
            created = True
            await log_fee_audit(
                db, tenant_id, FEE_STRUCTURE_TABLE, fs.id, FeeAuditAction.CREATE, None, _snapshot(fs), changed_by
            )
        else:
            fs = existing

    if not created:
        if fs.is_setup_complete:
            raise ServiceError(
                "Fee structure setup is complete; reopen it for editing first",
                status.HTTP_409_CONFLICT,
            )
        old = _snapshot(fs)
        _apply(fs, payload)
        await log_fee_audit(
            db, tenant_id, FEE_STRUCTURE_TABLE, fs.id, FeeAuditAction.UPDATE, old, _snapshot(fs), changed_by
        )

    await db.commit()
    await db.refresh(fs)
    logger.info(
        "Saved fee structure %s",
        fs.id,
        extra={"tenant_id": str(tenant_id), "cohort_id": str(cohort_id)},
    )
    return FeeStructureResponse.model_validate(fs)


async def get_cohort_fee_structure(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
) -> Optional[FeeStructureResponse]:
    fs = await _get_structure(db, tenant_id, cohort_id)
    return FeeStructureResponse.model_validate(fs) if fs else None


async def set_setup_complete(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
    complete: bool,
    changed_by: Optional[UUID],
) -> FeeStructureResponse:
    """Mark the cohort structure read-only (complete) or reopen it for editing."""
    fs = await _get_structure(db, tenant_id, cohort_id)
    if fs is None:
        raise ServiceError("Fee structure not found", status.HTTP_404_NOT_FOUND)
    if bool(fs.is_setup_complete) != complete:
        old = _snapshot(fs)
        fs.is_setup_complete = complete
        action = FeeAuditAction.COMPLETE if complete else FeeAuditAction.REOPEN
        await log_fee_audit(db, tenant_id, FEE_STRUCTURE_TABLE, fs.id, action, old, _snapshot(fs), changed_by)
        await db.commit()
        await db.refresh(fs)
    return FeeStructureResponse.model_validate(fs)


# --- Student override ---
async def upsert_student_fee_structure(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
    student_id: UUID,
    payload: StudentFeeStructureUpsert,
    changed_by: Optional[UUID],
) -> FeeStructureResponse:
    await get_cohort_or_404(db, tenant_id, cohort_id)
    _validate(payload)

    plan = payload.selected_payment_plan.value if payload.selected_payment_plan else None
    fs = await _get_structure(db, tenant_id, cohort_id, student_id)
    created = False
    if fs is None:
        fs = FeeStructure(
            tenant_id=tenant_id,
            cohort_id=cohort_id,
            structure_type=FeeStructureType.CUSTOM.value,
            student_id=student_id,
            selected_payment_plan=plan,
            is_setup_complete=True,
        )
        _apply(fs, payload)
        existing = await _insert_structure(db, fs, tenant_id, cohort_id, student_id)
        if existing is None:
            created = True
            await log_fee_audit(
                db, tenant_id, FEE_STRUCTURE_TABLE, fs.id, FeeAuditAction.CREATE, None, _snapshot(fs), changed_by
            )
        else:
            fs = existing

    if not created:
        old = _snapshot(fs)
        _apply(fs, payload)
        fs.selected_payment_plan = plan
        await log_fee_audit(
            db, tenant_id, FEE_STRUCTURE_TABLE, fs.id, FeeAuditAction.UPDATE, old, _snapshot(fs), changed_by
        )

    await db.commit()
    await db.refresh(fs)
    logger.info(
        "Saved custom fee structure %s",
        fs.id,
        extra={"tenant_id": str(tenant_id), "cohort_id": str(cohort_id), "student_id": str(student_id)},
    )
    return FeeStructureResponse.model_validate(fs)


async def get_student_fee_structure(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
    student_id: UUID,
) -> Optional[FeeStructureResponse]:
    fs = await _get_structure(db, tenant_id, cohort_id, student_id)
    return FeeStructureResponse.model_validate(fs) if fs else None
