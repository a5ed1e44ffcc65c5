import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.session import Base


class StudentScholarship(Base):
    """Scholarship awarded to one student of a cohort, with an optional extra discount on top."""

    __tablename__ = "student_scholarships"
    __table_args__ = (
        UniqueConstraint("cohort_id", "student_id", name="uq_student_scholarship_cohort_student"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    cohort_id = Column(UUID(as_uuid=True), ForeignKey("cohorts.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    scholarship_id = Column(
        UUID(as_uuid=True),
        ForeignKey("cohort_scholarships.id", ondelete="CASCADE"),
        nullable=False,
    )
    additional_discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    scholarship = relationship("Scholarship")
