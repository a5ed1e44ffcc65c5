"""Fee structure per cohort, plus per-student custom overrides of it."""

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.core.enums import FeeStructureType
from app.db.session import Base


class FeeStructure(Base):
    """
    One row per cohort (structure_type = cohort) and at most one per student
    override (structure_type = custom, student_id set).
    admission_fee is GST-inclusive; the rest of the program fee is GST-exclusive.
    Plan date columns hold operator-chosen ISO dates in each plan's JSON shape
    (see fee_engine.schedule_overrides).
    """

    __tablename__ = "fee_structures"
    __table_args__ = (
        CheckConstraint(
            "structure_type IN ('cohort','custom')",
            name="chk_fee_structure_type",
        ),
        CheckConstraint(
            "(structure_type = 'cohort' AND student_id IS NULL)"
            " OR (structure_type = 'custom' AND student_id IS NOT NULL)",
            name="chk_fee_structure_student",
        ),
        CheckConstraint("total_program_fee > 0", name="chk_fee_structure_total_positive"),
        CheckConstraint("admission_fee >= 0", name="chk_fee_structure_admission_non_negative"),
        Index(
            "uq_fee_structure_cohort",
            "tenant_id",
            "cohort_id",
            unique=True,
            postgresql_where=text("structure_type = 'cohort'"),
            sqlite_where=text("structure_type = 'cohort'"),
        ),
        Index(
            "uq_fee_structure_student",
            "cohort_id",
            "student_id",
            unique=True,
            postgresql_where=text("structure_type = 'custom'"),
            sqlite_where=text("structure_type = 'custom'"),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    cohort_id = Column(UUID(as_uuid=True), ForeignKey("cohorts.id", ondelete="CASCADE"), nullable=False, index=True)
    structure_type = Column(String(20), nullable=False, default=FeeStructureType.COHORT.value)
    student_id = Column(UUID(as_uuid=True), nullable=True, index=True)

    admission_fee = Column(Numeric(12, 2), nullable=False)
    total_program_fee = Column(Numeric(12, 2), nullable=False)
    number_of_semesters = Column(Integer, nullable=False)
    instalments_per_semester = Column(Integer, nullable=False)
    one_shot_discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)

    one_shot_dates = Column(JSON, nullable=False, default=dict)
    sem_wise_dates = Column(JSON, nullable=False, default=dict)
    instalment_wise_dates = Column(JSON, nullable=False, default=dict)

    selected_payment_plan = Column(String(30), nullable=True)  # custom overrides only
    is_setup_complete = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    cohort = relationship("Cohort", back_populates="fee_structures")
