import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.schema_check import ensure_tables


@pytest.mark.asyncio
async def test_ensure_tables_creates_missing_then_is_idempotent() -> None:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    try:
        created = await ensure_tables(engine)
        assert set(created) == {
            "cohorts",
            "fee_structures",
            "cohort_scholarships",
            "student_scholarships",
            "fee_audit_logs",
        }
        assert await ensure_tables(engine) == []
    finally:
        await engine.dispose()
