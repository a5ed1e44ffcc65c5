from app.core.models.cohort import Cohort
from app.core.models.fee_structure import FeeStructure
from app.core.models.scholarship import Scholarship
from app.core.models.student_scholarship import StudentScholarship
from app.core.models.fee_audit_log import FeeAuditLog

__all__ = [
    "Cohort",
    "FeeStructure",
    "Scholarship",
    "StudentScholarship",
    "FeeAuditLog",
]
