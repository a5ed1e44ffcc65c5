"""Review session: caching, debounced date edits, immediate selection changes, preload."""

import asyncio
from decimal import Decimal

import pytest

from app.core.enums import PaymentPlan
from app.fee_engine.schemas import FeeStructureInput, ScholarshipInput
from app.fee_engine.session import FeeReviewSession, SessionState, make_cache_key

KEY = "semester-1-instalment-0"


def structure(**overrides) -> FeeStructureInput:
    values = dict(
        admission_fee=Decimal("50000"),
        total_program_fee=Decimal("500000"),
        number_of_semesters=4,
        instalments_per_semester=3,
    )
    values.update(overrides)
    return FeeStructureInput(**values)


TIERS = [
    ScholarshipInput(
        id="merit",
        name="Merit",
        start_percentage=Decimal("0"),
        end_percentage=Decimal("50"),
        amount_percentage=Decimal("10"),
    ),
    ScholarshipInput(
        id="excellence",
        name="Excellence",
        start_percentage=Decimal("51"),
        end_percentage=Decimal("100"),
        amount_percentage=Decimal("20"),
    ),
]


def test_cache_key_ignores_date_order() -> None:
    a = make_cache_key(PaymentPlan.SEM_WISE, None, {"b": "2025-01-01", "a": "2025-02-01"})
    b = make_cache_key("sem_wise", "no_scholarship", {"a": "2025-02-01", "b": "2025-01-01"})
    assert a == b


@pytest.mark.asyncio
async def test_repeat_selection_is_served_from_cache() -> None:
    session = FeeReviewSession(structure(), TIERS, "2025-01-31", debounce_seconds=0.01)

    assert session.select_plan(PaymentPlan.SEM_WISE) is None
    review = await session.wait()
    assert review.payment_plan == PaymentPlan.SEM_WISE
    assert session.computations == 1

    session.select_plan(PaymentPlan.ONE_SHOT)
    await session.wait()
    assert session.computations == 2

    hit = session.select_plan(PaymentPlan.SEM_WISE)
    assert hit is review
    assert session.review is review
    assert session.state == SessionState.IDLE
    assert session.computations == 2


@pytest.mark.asyncio
async def test_date_edits_are_debounced() -> None:
    session = FeeReviewSession(structure(), TIERS, "2025-01-31", debounce_seconds=0.05)
    session.select_plan(PaymentPlan.INSTALMENT_WISE)
    await session.wait()
    assert session.computations == 1

    for day in ("01", "02", "03"):
        session.set_payment_date(KEY, f"2025-03-{day}")
    assert session.state == SessionState.COMPUTING

    review = await session.wait()
    assert session.computations == 2
    assert review.semesters[0].instalments[0].payment_date == "2025-03-03"
    assert session.state == SessionState.IDLE


@pytest.mark.asyncio
async def test_selection_change_skips_debounce() -> None:
    session = FeeReviewSession(structure(), TIERS, "2025-01-31", debounce_seconds=30)
    session.select_plan(PaymentPlan.INSTALMENT_WISE)
    first = await asyncio.wait_for(session.wait(), timeout=2)

    session.set_payment_date(KEY, "2025-04-01")
    await asyncio.sleep(0.01)
    assert session.state == SessionState.COMPUTING
    assert session.review is first  # previous review stays visible

    session.select_scholarship("excellence")
    review = await asyncio.wait_for(session.wait(), timeout=2)
    assert review.scholarship_id == "excellence"
    assert review.semesters[0].instalments[0].payment_date == "2025-04-01"
    session.close()


@pytest.mark.asyncio
async def test_preload_fills_cache() -> None:
    session = FeeReviewSession(structure(), TIERS, "2025-01-31")
    assert await session.preload() == 9  # 3 plans x (none + 2 tiers)
    assert session.cache_size == 9
    assert await session.preload() == 0

    hit = session.select_scholarship("merit")
    assert hit is not None
    assert hit.payment_plan == PaymentPlan.ONE_SHOT
    assert hit.scholarship_id == "merit"
    assert session.computations == 0


@pytest.mark.asyncio
async def test_preload_swallows_failures() -> None:
    session = FeeReviewSession(structure(number_of_semesters=0), TIERS, "2025-01-31")
    assert await session.preload() == 0
    assert session.cache_size == 0


@pytest.mark.asyncio
async def test_fallback_reviews_are_not_cached() -> None:
    session = FeeReviewSession(structure(total_program_fee=Decimal("0")), [], "2025-01-31")
    session.select_plan(PaymentPlan.SEM_WISE)
    review = await session.wait()
    assert review.is_fallback is True
    assert session.cache_size == 0


@pytest.mark.asyncio
async def test_stored_plan_dates_seed_the_session() -> None:
    fs = structure(sem_wise_dates={KEY: "2025-02-15"})
    session = FeeReviewSession(fs, [], "2025-01-31", plan=PaymentPlan.SEM_WISE)
    session.refresh()
    review = await session.wait()
    assert review.semesters[0].instalments[0].payment_date == "2025-02-15"
