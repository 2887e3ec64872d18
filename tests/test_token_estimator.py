"""
Unit tests cho TokenEstimator.

Test các case:
- Heuristic mode: ceil(len * ratio), buffer ceil(sum * 0.05)
- Exact mode với fake encoder: tổng theo unit, tokens_by_extension
- Mixed mode: một unit encode lỗi -> chỉ unit đó fallback heuristic
- Encoder không khả dụng -> heuristic toàn bộ
- Tolerance band giữa heuristic và tiktoken thật
"""

import math

import pytest
from unittest.mock import patch

from core.errors import ConfigurationError
from core.prompting.formatting import (
    FILE_FOOTER,
    format_file_header,
    format_section_header,
)
from core.tokenization.encoders import get_encoder
from core.tokenization.estimator import TokenEstimator, calculate_total_tokens

LIMITS = {"small": 100, "big": 100000}


class WordEncoder:
    """Fake encoder: mỗi từ (split theo whitespace) là một token."""

    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.calls = 0

    def encode(self, text, disallowed_special="all"):
        self.calls += 1
        if self.fail_on and self.fail_on in text:
            raise ValueError("cannot encode")
        return text.split()


def words(text: str) -> int:
    return len(text.split())


def _estimator(fresh_cache, **kwargs):
    kwargs.setdefault("model_limits", LIMITS)
    return TokenEstimator(cache=fresh_cache, **kwargs)


class TestHeuristicMode:
    """encoder_available=False -> ceil(len * token_ratio)."""

    def test_prompt_only(self, fresh_cache):
        """'Hello' -> prompt 2, buffer 1, total 3."""
        result = _estimator(fresh_cache).estimate({}, "Hello", encoder_available=False)

        assert result.prompt_template_tokens == 2
        assert result.file_tokens == 0
        assert result.section_header_tokens == 0
        assert result.buffer_tokens == 1
        assert result.total_tokens == 3
        assert result.mode == "heuristic"
        assert result.encoding_name is None

    def test_empty_everything(self, fresh_cache):
        result = _estimator(fresh_cache).estimate({}, "", encoder_available=False)

        assert result.total_tokens == 0
        assert result.buffer_tokens == 0

    def test_file_units(self, fresh_cache, make_record):
        rec = make_record("src/a.py", "x" * 40)
        corpus = {".py": [rec]}

        result = _estimator(fresh_cache).estimate(corpus, "", encoder_available=False)

        header = format_file_header(rec.relative_path, ".py")
        expected_file = (
            math.ceil(len(header) * 0.25)
            + math.ceil(40 * 0.25)
            + math.ceil(len(FILE_FOOTER) * 0.25)
        )
        expected_section = math.ceil(len(format_section_header(".py")) * 0.25)
        assert result.file_tokens == expected_file
        assert result.tokens_by_file == {"src/a.py": expected_file}
        assert result.section_header_tokens == expected_section
        assert result.buffer_tokens == math.ceil(
            (expected_file + expected_section) * 0.05
        )

    def test_custom_ratios(self, fresh_cache):
        result = _estimator(fresh_cache, token_ratio=0.5, buffer_ratio=0.1).estimate(
            {}, "abcdef", encoder_available=False
        )

        assert result.prompt_template_tokens == 3
        assert result.buffer_tokens == 1
        assert result.total_tokens == 4

    def test_invalid_ratios(self):
        with pytest.raises(ConfigurationError):
            TokenEstimator(token_ratio=0)
        with pytest.raises(ConfigurationError):
            TokenEstimator(buffer_ratio=-0.1)


class TestExactMode:
    """Exact mode với fake encoder."""

    def test_units_summed(self, fresh_cache, make_record):
        """Tổng = prompt + section headers + files + buffer."""
        encoder = WordEncoder()
        corpus = {
            ".py": [
                make_record("a.py", "def f ( ) : pass"),
                make_record("b.py", "x = 1"),
            ],
            ".md": [make_record("README.md", "hello world")],
        }
        prompt = "Please analyze these files"

        with patch("core.tokenization.estimator.get_encoder", return_value=encoder):
            result = _estimator(fresh_cache).estimate(corpus, prompt)

        def file_tokens(rec):
            return (
                words(format_file_header(rec.relative_path, rec.extension))
                + words(rec.content)
                + words(FILE_FOOTER)
            )

        expected_by_file = {
            rec.relative_path: file_tokens(rec)
            for recs in corpus.values()
            for rec in recs
        }
        expected_sections = sum(words(format_section_header(e)) for e in corpus)

        assert result.mode == "exact"
        assert result.encoding_name == "cl100k_base"
        assert result.prompt_template_tokens == words(prompt)
        assert dict(result.tokens_by_file) == expected_by_file
        assert result.file_tokens == sum(expected_by_file.values())
        assert result.section_header_tokens == expected_sections
        assert result.total_tokens == (
            result.prompt_template_tokens
            + result.file_tokens
            + result.section_header_tokens
            + result.buffer_tokens
        )
        pre_buffer = result.total_tokens - result.buffer_tokens
        assert result.buffer_tokens == math.ceil(pre_buffer * 0.05)

    def test_tokens_by_extension_sum(self, fresh_cache, make_record):
        """sum(tokens_by_extension) == file_tokens."""
        corpus = {
            ".py": [make_record(f"m{i}.py", "a b c " * i) for i in range(15)],
            ".cs": [make_record("P.cs", "class P { }")],
        }

        with patch(
            "core.tokenization.estimator.get_encoder", return_value=WordEncoder()
        ):
            result = _estimator(fresh_cache).estimate(corpus, "")

        assert sum(result.tokens_by_extension.values()) == result.file_tokens
        py_total = sum(
            v for k, v in result.tokens_by_file.items() if k.endswith(".py")
        )
        assert result.tokens_by_extension[".py"] == py_total

    def test_empty_content_counts_zero(self, fresh_cache, make_record):
        """File rỗng tính 0 token, section header vẫn được tính."""
        corpus = {".py": [make_record("empty.py", "")]}

        with patch(
            "core.tokenization.estimator.get_encoder", return_value=WordEncoder()
        ):
            result = _estimator(fresh_cache).estimate(corpus, "")

        assert result.tokens_by_file == {"empty.py": 0}
        assert result.file_tokens == 0
        assert result.section_header_tokens == words(format_section_header(".py"))

    def test_disallowed_special_passed(self, fresh_cache):
        """encode() được gọi với disallowed_special=() cho mọi unit."""
        seen = []

        class RecordingEncoder:
            def encode(self, text, disallowed_special="all"):
                seen.append(disallowed_special)
                return [0]

        with patch(
            "core.tokenization.estimator.get_encoder",
            return_value=RecordingEncoder(),
        ):
            _estimator(fresh_cache).estimate({}, "<|endoftext|>")

        assert seen == [()]

    def test_cache_reused(self, fresh_cache, make_record):
        """Lần estimate thứ hai dùng cache, không encode lại."""
        encoder = WordEncoder()
        corpus = {".py": [make_record("a.py", "one two three")]}

        with patch("core.tokenization.estimator.get_encoder", return_value=encoder):
            first = _estimator(fresh_cache).estimate(corpus, "prompt")
            calls_after_first = encoder.calls
            second = _estimator(fresh_cache).estimate(corpus, "prompt")

        assert second.total_tokens == first.total_tokens
        assert encoder.calls == calls_after_first
        assert fresh_cache.hits > 0

    def test_model_compatibility_filled(self, fresh_cache):
        with patch(
            "core.tokenization.estimator.get_encoder", return_value=WordEncoder()
        ):
            result = _estimator(fresh_cache).estimate({}, "a " * 200)

        assert set(result.model_compatibility) == set(LIMITS)
        assert result.model_compatibility["small"].startswith("❌ Exceeds limit")
        assert result.model_compatibility["big"].startswith("✅ Within limit")


class TestFallback:
    """Fallback khi encoder lỗi hoặc không khả dụng."""

    def test_unit_failure_falls_back(self, fresh_cache, make_record):
        """Chỉ unit lỗi dùng heuristic; mode = mixed."""
        encoder = WordEncoder(fail_on="BOOM")
        content = "BOOM " * 8
        corpus = {".py": [make_record("bad.py", content)]}
        logs = []

        with patch("core.tokenization.estimator.get_encoder", return_value=encoder):
            result = _estimator(fresh_cache, log_sink=logs.append).estimate(
                corpus, "ok prompt"
            )

        header = format_file_header("bad.py", ".py")
        expected = (
            words(header) + math.ceil(len(content) * 0.25) + words(FILE_FOOTER)
        )
        assert result.tokens_by_file["bad.py"] == expected
        assert result.estimated_units == 1
        assert result.mode == "mixed"
        assert any("Estimating tokens" in line for line in logs)

    def test_encoder_unavailable(self, fresh_cache):
        """Encoder không load được -> heuristic, không raise."""
        with patch("core.tokenization.estimator.get_encoder", return_value=None):
            estimator = _estimator(fresh_cache)
            result = estimator.estimate({}, "Hello", encoder_available=True)
            estimator.estimate({}, "Hello")

        assert result.mode == "heuristic"
        assert result.total_tokens == 3
        assert estimator._using_estimation is True

    def test_forced_heuristic_skips_encoder(self, fresh_cache):
        with patch("core.tokenization.estimator.get_encoder") as mock_get:
            _estimator(fresh_cache).estimate({}, "Hello", encoder_available=False)

        mock_get.assert_not_called()


class TestRealEncoder:
    """So sánh với tiktoken thật (skip nếu không load được encoding)."""

    SAMPLE = (
        "def calculate_total(items):\n"
        "    \"\"\"Sum the price of every item in the cart.\"\"\"\n"
        "    total = 0\n"
        "    for item in items:\n"
        "        if item.price > 0:\n"
        "            total += item.price * item.quantity\n"
        "    return total\n\n"
        "class ShoppingCart:\n"
        "    def __init__(self, owner):\n"
        "        self.owner = owner\n"
        "        self.items = []\n\n"
        "    def add(self, item):\n"
        "        self.items.append(item)\n"
    ) * 5

    @pytest.fixture
    def encoder(self):
        enc = get_encoder("cl100k_base")
        if enc is None:
            pytest.skip("cl100k_base encoding not available")
        return enc

    def test_heuristic_within_tolerance(self, encoder):
        """Heuristic nằm trong ±30% so với exact count."""
        exact = len(encoder.encode(self.SAMPLE, disallowed_special=()))
        heuristic = math.ceil(len(self.SAMPLE) * 0.25)

        assert 0.7 * exact <= heuristic <= 1.3 * exact

    def test_special_token_text_counted(self, encoder, fresh_cache, make_record):
        """Text giống special token được đếm như text thường."""
        corpus = {".txt": [make_record("notes.txt", "before <|endoftext|> after")]}

        result = _estimator(fresh_cache).estimate(corpus, "", encoder_available=True)

        assert result.mode == "exact"
        assert result.tokens_by_file["notes.txt"] > 0

    def test_calculate_total_tokens_wrapper(self, encoder, make_record):
        corpus = {".py": [make_record("a.py", self.SAMPLE)]}

        result = calculate_total_tokens(corpus, "Review", model_limits=LIMITS)

        assert result.total_tokens == (
            result.prompt_template_tokens
            + result.file_tokens
            + result.section_header_tokens
            + result.buffer_tokens
        )
