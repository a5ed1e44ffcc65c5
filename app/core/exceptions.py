from typing import Any, Dict, List, Optional

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationFailed(ServiceError):
    """Input failed field validation. `errors` holds field-keyed messages for the caller."""

    def __init__(self, errors: List[Dict[str, Any]], message: Optional[str] = None) -> None:
        super().__init__(message or "Validation failed", status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.errors = errors
