"""Fee audit log: immutable change tracking for fee structures and scholarships."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID

from app.db.session import Base


class FeeAuditLog(Base):
    """Immutable audit trail for fee-related changes."""

    __tablename__ = "fee_audit_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    reference_table = Column(String(50), nullable=False)
    reference_id = Column(UUID(as_uuid=True), nullable=False)
    action_type = Column(String(30), nullable=False)  # CREATE, UPDATE, DELETE, COMPLETE, REOPEN
    old_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)
    changed_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
