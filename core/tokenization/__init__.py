"""
Package core.tokenization - Token accounting pipeline.

Modules:
- encoders: tiktoken encoder cache theo encoding name
- cache: LRU cache key theo (encoding, sha1(text))
- estimator: TokenEstimator (exact / heuristic / mixed)
- compatibility: Phan loai total so voi model context limits
- limit_errors: Doi chieu estimate voi loi token limit cua vendor
- types: TokenCalculationResult
"""

from core.tokenization.compatibility import (
    CompatibilityStatus,
    ModelCompatibility,
    ModelCompatibilityClassifier,
)
from core.tokenization.estimator import TokenEstimator, calculate_total_tokens
from core.tokenization.limit_errors import (
    parse_token_limit_error,
    reconcile_with_actual,
)
from core.tokenization.types import TokenCalculationResult

__all__ = [
    "CompatibilityStatus",
    "ModelCompatibility",
    "ModelCompatibilityClassifier",
    "TokenEstimator",
    "calculate_total_tokens",
    "parse_token_limit_error",
    "reconcile_with_actual",
    "TokenCalculationResult",
]
