from typing import Dict
from uuid import UUID

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated user for RBAC checks.
    Built from the access token claims; permissions map module -> action -> allowed.
    """

    id: UUID
    tenant_id: UUID
    role: str
    permissions: Dict[str, Dict[str, bool]]
