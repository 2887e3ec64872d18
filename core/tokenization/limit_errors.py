"""
Token limit errors - Doi chieu estimate voi so token vendor bao ve.

Khi vendor tu choi request vi vuot context window, message thuong co dang:
    "...maximum context length is 65536 tokens. However, you requested
     97153 tokens (88961 in the messages, ...)"

parse_token_limit_error() tach (actual_tokens, model_limit) tu message;
reconcile_with_actual() tao result moi voi total = actual_tokens va log
do chinh xac cua estimate.
"""

import re
from dataclasses import dataclass
from typing import Mapping, Optional

from core.logging_config import LogSink, log_operation
from core.tokenization.compatibility import ModelCompatibilityClassifier
from core.tokenization.types import TokenCalculationResult

_LIMIT_PATTERN = re.compile(r"maximum context length is (\d+)", re.IGNORECASE)
_REQUESTED_PATTERN = re.compile(r"you requested (\d+) tokens", re.IGNORECASE)
_MARKERS = ("maximum context length", "token limit exceeded")


@dataclass(frozen=True)
class TokenLimitError:
    """Thong tin tach tu message loi token limit cua vendor."""

    actual_tokens: int
    model_limit: int


def is_token_limit_error(message: str) -> bool:
    lowered = (message or "").lower()
    return any(marker in lowered for marker in _MARKERS)


def parse_token_limit_error(message: str) -> Optional[TokenLimitError]:
    """
    Tach so token thuc te va model limit tu message loi.

    Returns:
        TokenLimitError, hoac None neu khong phai loi token limit
        hoac khong tach duoc ca hai so
    """
    if not is_token_limit_error(message):
        return None

    limit_match = _LIMIT_PATTERN.search(message)
    requested_match = _REQUESTED_PATTERN.search(message)
    if not limit_match or not requested_match:
        return None

    actual_tokens = int(requested_match.group(1))
    model_limit = int(limit_match.group(1))
    if actual_tokens <= 0 or model_limit <= 0:
        return None
    return TokenLimitError(actual_tokens=actual_tokens, model_limit=model_limit)


def reconcile_with_actual(
    result: TokenCalculationResult,
    message: str,
    model_limits: Optional[Mapping[str, int]] = None,
    classifier: Optional[ModelCompatibilityClassifier] = None,
    log_sink: Optional[LogSink] = None,
) -> TokenCalculationResult:
    """
    Ghi de total cua result bang so token vendor bao ve (neu co).

    Args:
        result: Result da estimate
        message: Message loi tu vendor
        model_limits: Bang limit de phan loai lai (optional)
        classifier: Classifier dung de phan loai lai (optional)
        log_sink: Sink cho operation log

    Returns:
        Result moi neu message la loi token limit, nguoc lai result cu
    """
    parsed = parse_token_limit_error(message)
    if parsed is None:
        return result

    observed_ratio = result.total_tokens / parsed.actual_tokens
    log_operation(
        f"Token estimation accuracy: {observed_ratio:.2%} "
        f"(estimated: {result.total_tokens:,}, actual: {parsed.actual_tokens:,})",
        log_sink,
    )

    compatibility = None
    if model_limits is not None:
        classifier = classifier or ModelCompatibilityClassifier()
        compatibility = classifier.classify_labels(parsed.actual_tokens, model_limits)

    return result.with_actual_total(parsed.actual_tokens, compatibility)
