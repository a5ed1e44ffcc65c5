"""Cohort schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field


class CohortCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    start_date: date


class CohortResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    name: str
    start_date: date
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
