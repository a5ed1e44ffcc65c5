from enum import Enum


class PaymentPlan(str, Enum):
    ONE_SHOT = "one_shot"
    SEM_WISE = "sem_wise"
    INSTALMENT_WISE = "instalment_wise"
    NOT_SELECTED = "not_selected"


class FeeStructureType(str, Enum):
    COHORT = "cohort"
    CUSTOM = "custom"


class FeeAuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    COMPLETE = "COMPLETE"
    REOPEN = "REOPEN"
