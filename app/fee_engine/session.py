"""
Review session: memoized fee reviews for one fee structure while it is being edited.

Plan and scholarship switches recompute immediately; payment-date edits are
debounced so a burst of keystrokes costs one recomputation. Every result is
cached under (plan, scholarship, dates) for the lifetime of the session.
"""

import asyncio
import json
import logging
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union

from app.core.enums import PaymentPlan

from .gst import Amount
from .review import COMPUTATION_ERRORS, compute_fee_review, review_with_fallback
from .schemas import NO_SCHOLARSHIP, FeeStructureInput, FeeStructureReview, ScholarshipInput

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5

REVIEW_PLANS = (PaymentPlan.ONE_SHOT, PaymentPlan.SEM_WISE, PaymentPlan.INSTALMENT_WISE)

CacheKey = Tuple[str, str, str]


class SessionState(str, Enum):
    IDLE = "idle"
    COMPUTING = "computing"


def make_cache_key(plan: Union[PaymentPlan, str], scholarship_id: Optional[str], dates: Optional[Dict[str, str]]) -> CacheKey:
    return (
        PaymentPlan(plan).value,
        scholarship_id or NO_SCHOLARSHIP,
        json.dumps(dates or {}, sort_keys=True),
    )


class FeeReviewSession:
    """Cache plus debounce in front of the review generator. Must be driven from a running event loop."""

    def __init__(
        self,
        fee_structure: FeeStructureInput,
        scholarships: Sequence[ScholarshipInput],
        cohort_start_date: Optional[Union[date, str]],
        *,
        test_score: Optional[Amount] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        plan: PaymentPlan = PaymentPlan.ONE_SHOT,
        scholarship_id: str = NO_SCHOLARSHIP,
    ) -> None:
        self.fee_structure = fee_structure
        self.scholarships = list(scholarships)
        self.cohort_start_date = cohort_start_date
        self.test_score = test_score
        self.debounce_seconds = debounce_seconds

        self.plan = PaymentPlan(plan)
        self.scholarship_id = scholarship_id
        self.dates: Dict[PaymentPlan, Dict[str, str]] = {
            p: fee_structure.dates_for_plan(p) for p in REVIEW_PLANS
        }

        self.state = SessionState.IDLE
        self.review: Optional[FeeStructureReview] = None
        self.computations = 0

        self._cache: Dict[CacheKey, FeeStructureReview] = {}
        self._pending: Optional[asyncio.Task] = None
        self._last_selection: Optional[Tuple[PaymentPlan, str]] = None

    # --- cache ---
    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def current_key(self) -> CacheKey:
        return make_cache_key(self.plan, self.scholarship_id, self.dates.get(self.plan))

    def cached(self, plan: PaymentPlan, scholarship_id: Optional[str], dates: Optional[Dict[str, str]] = None) -> Optional[FeeStructureReview]:
        return self._cache.get(make_cache_key(plan, scholarship_id, dates))

    # --- selection changes ---
    def select_plan(self, plan: Union[PaymentPlan, str]) -> Optional[FeeStructureReview]:
        self.plan = PaymentPlan(plan)
        return self.refresh()

    def select_scholarship(self, scholarship_id: Optional[str]) -> Optional[FeeStructureReview]:
        self.scholarship_id = scholarship_id or NO_SCHOLARSHIP
        return self.refresh()

    def set_payment_date(self, key: str, value: str) -> Optional[FeeStructureReview]:
        """Edit one date of the current plan. Debounced unless the edit lands on a cached variant."""
        plan_dates = dict(self.dates.get(self.plan, {}))
        plan_dates[key] = value
        self.dates[self.plan] = plan_dates
        return self.refresh()

    def refresh(self) -> Optional[FeeStructureReview]:
        """
        Serve the current selection from cache, or arm a recomputation.

        Returns the cached review on a hit. On a miss returns None and the
        previous review stays in `review` until the recomputation lands.
        """
        selection = (self.plan, self.scholarship_id)
        selection_changed = selection != self._last_selection
        self._last_selection = selection

        key = self.current_key()
        hit = self._cache.get(key)
        if hit is not None:
            logger.debug("Fee review cache hit for %s", key[:2])
            self._cancel_pending()
            self.review = hit
            self.state = SessionState.IDLE
            return hit

        delay = 0.0 if selection_changed else self.debounce_seconds
        self._cancel_pending()
        self.state = SessionState.COMPUTING
        self._pending = asyncio.get_running_loop().create_task(
            self._recompute_after(delay, key, self.plan, self.scholarship_id, dict(self.dates.get(self.plan, {})))
        )
        return None

    async def wait(self) -> Optional[FeeStructureReview]:
        """Wait for any armed recomputation and return the current review."""
        while self._pending is not None and not self._pending.done():
            pending = self._pending
            try:
                await pending
            except asyncio.CancelledError:
                if pending is self._pending:
                    raise
        return self.review

    def close(self) -> None:
        self._cancel_pending()
        self.state = SessionState.IDLE

    # --- preload ---
    async def preload(self) -> int:
        """Cache every plan x scholarship combination with empty dates. Returns how many were computed."""
        computed = 0
        scholarship_ids: List[str] = [NO_SCHOLARSHIP] + [s.id for s in self.scholarships if s.id]
        for plan in REVIEW_PLANS:
            for scholarship_id in scholarship_ids:
                key = make_cache_key(plan, scholarship_id, {})
                if key in self._cache:
                    continue
                try:
                    self._cache[key] = compute_fee_review(
                        self.fee_structure,
                        self.scholarships,
                        plan,
                        test_score=self.test_score,
                        cohort_start_date=self.cohort_start_date,
                        scholarship_id=scholarship_id,
                        custom_dates={},
                    )
                    computed += 1
                except COMPUTATION_ERRORS:
                    logger.warning("Preloading fee review for %s/%s failed", plan.value, scholarship_id, exc_info=True)
                # Yield between combinations so interactive requests are not starved.
                await asyncio.sleep(0)
        return computed

    # --- internals ---
    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _recompute_after(
        self,
        delay: float,
        key: CacheKey,
        plan: PaymentPlan,
        scholarship_id: str,
        dates: Dict[str, str],
    ) -> None:
        if delay:
            await asyncio.sleep(delay)
        review = review_with_fallback(
            self.fee_structure,
            self.scholarships,
            plan,
            test_score=self.test_score,
            cohort_start_date=self.cohort_start_date,
            scholarship_id=scholarship_id,
            custom_dates=dates,
        )
        self.computations += 1
        if not review.is_fallback:
            self._cache[key] = review
        self.review = review
        self.state = SessionState.IDLE
