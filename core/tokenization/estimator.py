"""
TokenEstimator - Tinh tong token cua corpus + prompt template.

Text units duoc dem doc lap roi cong lai:
- Prompt template (0 neu rong)
- Mot section header moi extension: "--- .PY FILES ---\\n\\n"
- Moi file: header "File: {rel}\\n```{lang}\\n" + content + footer "\\n```\\n"
  (file co content rong tinh 0 token)

Buffer = ceil((prompt + headers + files) * buffer_ratio).

Fallback Strategy:
  Exact mode dung tiktoken encoder. Khi encoder khong load duoc thi ca
  lan tinh dung heuristic ceil(len * token_ratio), log warning mot lan.
  Khi encode() that bai tren mot unit, chi unit do dung heuristic va
  estimated_units tang len 1. Khong bao gio abort ca lan tinh.
"""

import math
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional, Tuple

from config.model_config import get_model_limits
from core.errors import ConfigurationError, TokenEncodingError
from core.ingestion.types import Corpus, FileRecord
from core.logging_config import LogSink, log_operation, log_warning
from core.prompting.formatting import (
    FILE_FOOTER,
    format_file_header,
    format_section_header,
)
from core.tokenization.cache import TokenCache, token_cache
from core.tokenization.compatibility import (
    DEFAULT_WARNING_THRESHOLD,
    ModelCompatibilityClassifier,
)
from core.tokenization.encoders import (
    DEFAULT_ENCODING,
    DEFAULT_TOKEN_RATIO,
    estimate_tokens,
    get_encoder,
)
from core.tokenization.types import TokenCalculationResult

DEFAULT_BUFFER_RATIO = 0.05

# Worker config cho file counting
MIN_FILES_FOR_PARALLEL = 10
MAX_COUNT_WORKERS = 8


class _UnitCounter:
    """Dem token cho tung text unit trong mot lan estimate()."""

    def __init__(
        self,
        encoder: Optional[Any],
        encoding_name: str,
        token_ratio: float,
        cache: TokenCache,
        log_sink: Optional[LogSink],
    ):
        self.encoder = encoder
        self.encoding_name = encoding_name
        self.token_ratio = token_ratio
        self.cache = cache
        self.log_sink = log_sink

    def _encode(self, text: str) -> int:
        try:
            return len(self.encoder.encode(text, disallowed_special=()))
        except Exception as e:
            raise TokenEncodingError(str(e)) from e

    def count(self, text: str, unit_name: str) -> Tuple[int, bool]:
        """
        Dem token cho mot unit.

        Returns:
            (tokens, estimated) - estimated=True neu dung heuristic
        """
        if not text:
            return 0, False

        if self.encoder is None:
            return estimate_tokens(text, self.token_ratio), True

        cached = self.cache.get(self.encoding_name, text)
        if cached is not None:
            return cached, False

        try:
            tokens = self._encode(text)
        except TokenEncodingError as e:
            log_operation(
                f"Error encoding {unit_name}: {e}. Estimating tokens.", self.log_sink
            )
            return estimate_tokens(text, self.token_ratio), True

        self.cache.put(self.encoding_name, text, tokens)
        return tokens, False

    def count_file(self, record: FileRecord) -> Tuple[int, int, int]:
        """
        Dem token cho header + content + footer cua mot file.

        Returns:
            (tokens, estimated_units, total_units)
        """
        if not record.content:
            return 0, 0, 0

        header = format_file_header(record.relative_path, record.extension)
        total = 0
        estimated = 0
        for text, unit_name in (
            (header, "file header"),
            (record.content, "file content"),
            (FILE_FOOTER, "file footer"),
        ):
            tokens, is_estimate = self.count(text, unit_name)
            total += tokens
            estimated += int(is_estimate)
        return total, estimated, 3


class TokenEstimator:
    """
    Tinh TokenCalculationResult cho corpus.

    Usage:
        estimator = TokenEstimator()
        result = estimator.estimate(corpus, prompt_template)
        print(result.get_breakdown())
    """

    def __init__(
        self,
        encoding_name: str = DEFAULT_ENCODING,
        token_ratio: float = DEFAULT_TOKEN_RATIO,
        buffer_ratio: float = DEFAULT_BUFFER_RATIO,
        model_limits: Optional[Mapping[str, int]] = None,
        warning_threshold: float = DEFAULT_WARNING_THRESHOLD,
        log_sink: Optional[LogSink] = None,
        cache: Optional[TokenCache] = None,
    ):
        if token_ratio <= 0:
            raise ConfigurationError(f"token_ratio must be > 0, got {token_ratio}")
        if buffer_ratio < 0:
            raise ConfigurationError(f"buffer_ratio must be >= 0, got {buffer_ratio}")

        self.encoding_name = encoding_name
        self.token_ratio = token_ratio
        self.buffer_ratio = buffer_ratio
        self.model_limits = (
            model_limits if model_limits is not None else get_model_limits()
        )
        self.classifier = ModelCompatibilityClassifier(warning_threshold)
        self.log_sink = log_sink
        self._cache = cache if cache is not None else token_cache
        # Flag theo doi trang thai fallback, chi warn mot lan
        self._using_estimation = False

    def _resolve_encoder(self, encoder_available: Optional[bool]) -> Optional[Any]:
        """
        Chon encoder theo yeu cau cua caller.

        - False: heuristic, khong load encoder
        - None/True: thu load encoder, None neu khong kha dung
        """
        if encoder_available is False:
            return None

        encoder = get_encoder(self.encoding_name)
        if encoder is None and not self._using_estimation:
            log_warning(
                f"[TokenEstimator] Encoder {self.encoding_name} khong kha dung, "
                f"dang su dung uoc luong (~{self.token_ratio} token/ky tu). "
                "Ket qua co the sai lech so voi thuc te."
            )
            self._using_estimation = True
        return encoder

    def _count_files(
        self, counter: _UnitCounter, records: List[FileRecord]
    ) -> List[Tuple[int, int, int]]:
        """Dem token cho tung file, song song khi corpus du lon."""
        if len(records) < MIN_FILES_FOR_PARALLEL or counter.encoder is None:
            return [counter.count_file(r) for r in records]

        max_workers = min(MAX_COUNT_WORKERS, os.cpu_count() or 4)
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(counter.count_file, records))

    def estimate(
        self,
        corpus: Corpus,
        prompt_template: str,
        encoder_available: Optional[bool] = None,
    ) -> TokenCalculationResult:
        """
        Tinh token breakdown cho corpus + prompt template.

        Args:
            corpus: Extension -> FileRecords
            prompt_template: Prompt dat o dau
            encoder_available: False de ep heuristic, None de tu detect

        Returns:
            TokenCalculationResult (immutable)
        """
        encoder = self._resolve_encoder(encoder_available)
        counter = _UnitCounter(
            encoder, self.encoding_name, self.token_ratio, self._cache, self.log_sink
        )

        estimated_units = 0
        total_units = 0

        prompt_template = prompt_template or ""
        prompt_tokens, is_estimate = counter.count(prompt_template, "prompt template")
        if prompt_template:
            total_units += 1
            estimated_units += int(is_estimate)

        section_header_tokens = 0
        file_tokens = 0
        tokens_by_file: Dict[str, int] = {}
        tokens_by_extension: Dict[str, int] = {}

        for extension in sorted(corpus):
            records = corpus[extension]
            if not records:
                continue

            header_tokens, is_estimate = counter.count(
                format_section_header(extension), "section header"
            )
            section_header_tokens += header_tokens
            total_units += 1
            estimated_units += int(is_estimate)

            ext_tokens = 0
            for record, (tokens, est, units) in zip(
                records, self._count_files(counter, records)
            ):
                tokens_by_file[record.relative_path] = (
                    tokens_by_file.get(record.relative_path, 0) + tokens
                )
                ext_tokens += tokens
                estimated_units += est
                total_units += units

            tokens_by_extension[extension] = ext_tokens
            file_tokens += ext_tokens

        pre_buffer = prompt_tokens + section_header_tokens + file_tokens
        buffer_tokens = math.ceil(pre_buffer * self.buffer_ratio)
        total_tokens = pre_buffer + buffer_tokens

        return TokenCalculationResult(
            total_tokens=total_tokens,
            prompt_template_tokens=prompt_tokens,
            file_tokens=file_tokens,
            section_header_tokens=section_header_tokens,
            buffer_tokens=buffer_tokens,
            tokens_by_file=tokens_by_file,
            tokens_by_extension=tokens_by_extension,
            model_compatibility=self.classifier.classify_labels(
                total_tokens, self.model_limits
            ),
            encoding_name=self.encoding_name if encoder is not None else None,
            estimated_units=estimated_units if encoder is not None else total_units,
            total_units=total_units,
        )


def calculate_total_tokens(
    corpus: Corpus,
    prompt_template: str,
    encoder_available: Optional[bool] = None,
    model_limits: Optional[Mapping[str, int]] = None,
) -> TokenCalculationResult:
    """Convenience wrapper: TokenEstimator(...).estimate(...)."""
    estimator = TokenEstimator(model_limits=model_limits)
    return estimator.estimate(corpus, prompt_template, encoder_available)
