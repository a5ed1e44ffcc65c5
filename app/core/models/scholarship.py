import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.session import Base


class Scholarship(Base):
    """
    Cohort scholarship tier: test-score range [start_percentage, end_percentage]
    mapped to a percentage off the total program fee. Ranges within a cohort must not overlap;
    that is enforced by the save path, not the database.
    """

    __tablename__ = "cohort_scholarships"
    __table_args__ = (
        CheckConstraint("start_percentage < end_percentage", name="chk_scholarship_range"),
        CheckConstraint(
            "amount_percentage > 0 AND amount_percentage <= 100",
            name="chk_scholarship_amount",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    cohort_id = Column(UUID(as_uuid=True), ForeignKey("cohorts.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_percentage = Column(Numeric(5, 2), nullable=False)
    end_percentage = Column(Numeric(5, 2), nullable=False)
    amount_percentage = Column(Numeric(5, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    cohort = relationship("Cohort", back_populates="scholarships")
