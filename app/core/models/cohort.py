import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.session import Base


class Cohort(Base):
    """
    Cohort (batch) of students in a program. Tenant-scoped.
    start_date anchors the default payment dates of every fee plan.
    """

    __tablename__ = "cohorts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    fee_structures = relationship("FeeStructure", back_populates="cohort", passive_deletes=True)
    scholarships = relationship("Scholarship", back_populates="cohort", passive_deletes=True)
