"""
Model Compatibility - Phan loai tong token so voi context limit cua model.

Precedence: Exceeds > Approaching > Within
- total > limit                         -> EXCEEDS
- total >= limit * warning_threshold    -> APPROACHING_LIMIT
- con lai                               -> WITHIN_LIMIT

percentage = min(100, total / limit * 100)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Union

from core.errors import ConfigurationError
from core.tokenization.types import TokenCalculationResult

DEFAULT_WARNING_THRESHOLD = 0.9


class CompatibilityStatus(Enum):
    """Trang thai cua corpus so voi mot model."""

    WITHIN_LIMIT = "✅ Within limit"
    APPROACHING_LIMIT = "⚠️ Approaching limit"
    EXCEEDS = "❌ Exceeds limit"


@dataclass(frozen=True)
class ModelCompatibility:
    """Ket qua phan loai cho mot model."""

    model: str
    status: CompatibilityStatus
    percentage: float
    total_tokens: int
    limit: int

    @property
    def label(self) -> str:
        """VD: "⚠️ Approaching limit (92.5% - 7,400/8,000)"."""
        return (
            f"{self.status.value} ({self.percentage:.1f}% - "
            f"{self.total_tokens:,}/{self.limit:,})"
        )


class ModelCompatibilityClassifier:
    """
    Phan loai token total voi bang model limits.

    Usage:
        classifier = ModelCompatibilityClassifier()
        labels = classifier.classify_labels(result, get_model_limits())
    """

    def __init__(self, warning_threshold: float = DEFAULT_WARNING_THRESHOLD):
        if not 0 < warning_threshold <= 1:
            raise ConfigurationError(
                f"warning_threshold must be in (0, 1], got {warning_threshold}"
            )
        self.warning_threshold = warning_threshold

    def classify_one(
        self, model: str, total_tokens: int, limit: int
    ) -> ModelCompatibility:
        if limit <= 0:
            raise ConfigurationError(f"Invalid context limit for {model}: {limit}")

        if total_tokens > limit:
            status = CompatibilityStatus.EXCEEDS
        elif total_tokens >= limit * self.warning_threshold:
            status = CompatibilityStatus.APPROACHING_LIMIT
        else:
            status = CompatibilityStatus.WITHIN_LIMIT

        percentage = min(100.0, total_tokens / limit * 100)
        return ModelCompatibility(model, status, percentage, total_tokens, limit)

    def classify(
        self,
        result_or_total: Union[TokenCalculationResult, int],
        limits: Mapping[str, int],
    ) -> Dict[str, ModelCompatibility]:
        """
        Phan loai cho tat ca model trong bang limits.

        Args:
            result_or_total: TokenCalculationResult hoac tong token
            limits: model id -> context limit (phai > 0)

        Returns:
            model id -> ModelCompatibility

        Raises:
            ConfigurationError: Neu co limit <= 0
        """
        if isinstance(result_or_total, TokenCalculationResult):
            total = result_or_total.total_tokens
        else:
            total = int(result_or_total)

        return {
            model: self.classify_one(model, total, limit)
            for model, limit in limits.items()
        }

    def classify_labels(
        self,
        result_or_total: Union[TokenCalculationResult, int],
        limits: Mapping[str, int],
    ) -> Dict[str, str]:
        """Giong classify() nhung tra ve label string cho moi model."""
        return {
            model: compat.label
            for model, compat in self.classify(result_or_total, limits).items()
        }
