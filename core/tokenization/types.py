"""
Tokenization Types - Ket qua token accounting cho mot corpus.

TokenCalculationResult la immutable: estimator tao mot lan, caller
muon sua total (vd: vendor tra ve so token that) thi dung
with_actual_total() de tao ban moi.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

# Bien do sai so cua estimate so voi so token thuc te vendor dem
ESTIMATE_LOWER_FACTOR = 0.80
ESTIMATE_UPPER_FACTOR = 1.50

MODE_EXACT = "exact"
MODE_HEURISTIC = "heuristic"
MODE_MIXED = "mixed"


def _frozen(mapping: Optional[Mapping]) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class TokenCalculationResult:
    """
    Token breakdown cua corpus + prompt template.

    Invariants:
        total_tokens = prompt + files + section headers + buffer
        sum(tokens_by_extension.values()) == file_tokens

    Attributes:
        total_tokens: Tong so token
        prompt_template_tokens: Token cua prompt template
        file_tokens: Token cua tat ca file (header + content + footer)
        section_header_tokens: Token cua cac section header theo extension
        buffer_tokens: Safety buffer
        tokens_by_file: relative_path -> tokens
        tokens_by_extension: extension -> tokens
        model_compatibility: model id -> status label
        encoding_name: Encoding da dung, None neu heuristic hoan toan
        estimated_units: So text unit phai fallback sang heuristic
        total_units: Tong so text unit da dem
    """

    total_tokens: int = 0
    prompt_template_tokens: int = 0
    file_tokens: int = 0
    section_header_tokens: int = 0
    buffer_tokens: int = 0
    tokens_by_file: Mapping[str, int] = field(default_factory=dict)
    tokens_by_extension: Mapping[str, int] = field(default_factory=dict)
    model_compatibility: Mapping[str, str] = field(default_factory=dict)
    encoding_name: Optional[str] = None
    estimated_units: int = 0
    total_units: int = 0

    def __post_init__(self):
        # Freeze cac mapping de result thuc su immutable
        object.__setattr__(self, "tokens_by_file", _frozen(self.tokens_by_file))
        object.__setattr__(
            self, "tokens_by_extension", _frozen(self.tokens_by_extension)
        )
        object.__setattr__(
            self, "model_compatibility", _frozen(self.model_compatibility)
        )

    @property
    def mode(self) -> str:
        """Che do dem: exact, heuristic hoac mixed (mot so unit fallback)."""
        if self.encoding_name is None:
            return MODE_HEURISTIC
        if self.estimated_units > 0:
            return MODE_MIXED
        return MODE_EXACT

    @property
    def is_estimate(self) -> bool:
        return self.mode != MODE_EXACT

    def get_breakdown(self) -> str:
        """Human-readable breakdown cua token allocation."""
        return (
            f"Total: {self.total_tokens:,} tokens\n"
            f"- Prompt: {self.prompt_template_tokens:,} tokens\n"
            f"- Files: {self.file_tokens:,} tokens\n"
            f"- Headers: {self.section_header_tokens:,} tokens\n"
            f"- Buffer: {self.buffer_tokens:,} tokens"
        )

    def estimate_range(self) -> Tuple[int, int]:
        """(lower, upper) cho so token thuc te vendor co the dem."""
        return (
            int(self.total_tokens * ESTIMATE_LOWER_FACTOR),
            int(self.total_tokens * ESTIMATE_UPPER_FACTOR),
        )

    def with_actual_total(
        self,
        actual_total: int,
        model_compatibility: Optional[Mapping[str, str]] = None,
    ) -> "TokenCalculationResult":
        """
        Tao result moi voi total_tokens = so token vendor bao ve.

        Breakdown giu nguyen (chi total bi ghi de).

        Args:
            actual_total: So token thuc te
            model_compatibility: Bang compatibility moi (optional)
        """
        return replace(
            self,
            total_tokens=actual_total,
            model_compatibility=(
                model_compatibility
                if model_compatibility is not None
                else self.model_compatibility
            ),
        )
