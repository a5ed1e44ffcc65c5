from app.fee_engine.gst import (
    GST_RATE,
    calculate_gst,
    extract_base_amount_from_total,
    extract_gst_from_total,
    format_currency,
)
from app.fee_engine.review import build_fallback_review, compute_fee_review, review_with_fallback
from app.fee_engine.schedule_overrides import from_plan_specific_json, to_plan_specific_json
from app.fee_engine.schemas import FeeStructureInput, FeeStructureReview, ScholarshipInput, ValidationError
from app.fee_engine.session import FeeReviewSession
from app.fee_engine.validation import (
    errors_to_dict,
    ranges_overlap,
    validate_fee_structure,
    validate_scholarships,
)

__all__ = [
    "GST_RATE",
    "calculate_gst",
    "extract_base_amount_from_total",
    "extract_gst_from_total",
    "format_currency",
    "build_fallback_review",
    "compute_fee_review",
    "review_with_fallback",
    "FeeStructureInput",
    "FeeStructureReview",
    "ScholarshipInput",
    "from_plan_specific_json",
    "to_plan_specific_json",
    "ValidationError",
    "FeeReviewSession",
    "errors_to_dict",
    "ranges_overlap",
    "validate_fee_structure",
    "validate_scholarships",
]
