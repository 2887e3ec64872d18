"""
AI Code Analyzer - Command line entry point

Scan mot project folder, tinh token budget va phan loai theo context
window cua cac model.

Usage:
    python main.py ./my-project --ext .py,.md --top 10
    python main.py ./my-project --add ../shared/utils.py --output prompt.txt
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from config.app_settings import AppSettings
from config.model_config import (
    format_context_length,
    get_model_by_id,
    get_model_limits,
)
from config.paths import ensure_app_directories
from core.errors import ConfigurationError
from core.ingestion.types import SkipReason
from core.logging_config import (
    cleanup_old_logs,
    flush_logs,
    log_error,
    set_debug_mode,
)
from core.prompting.prompt_builder import build_prompt
from core.tokenization.types import TokenCalculationResult
from services.corpus_service import CorpusService
from services.settings_manager import load_app_settings

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_INTERRUPTED = 130


def create_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ai-code-analyzer",
        description=(
            "Scan a project folder into an LLM-ready corpus and estimate "
            "its token budget against known model context windows."
        ),
    )
    parser.add_argument("root_dir", type=str, help="Project root directory")
    parser.add_argument(
        "-e",
        "--ext",
        type=str,
        default=None,
        help="Comma-separated file extensions (default: settings)",
    )
    parser.add_argument(
        "--max-kb",
        type=int,
        default=None,
        help="Skip files larger than this many KB (default: settings)",
    )
    parser.add_argument(
        "--add",
        nargs="+",
        default=[],
        metavar="FILE",
        help="Extra files to add after the folder scan",
    )
    parser.add_argument(
        "--prompt-file",
        type=str,
        default=None,
        help="Read the prompt template from this file",
    )
    parser.add_argument(
        "--heuristic",
        action="store_true",
        help="Skip the tokenizer and use the character-ratio estimate",
    )
    parser.add_argument(
        "--top", type=int, default=10, help="Show the N largest files (default: 10)"
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Write the assembled prompt to this file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def parse_extensions(raw: str) -> List[str]:
    """Parse --ext: "py, .MD" -> [".py", ".md"]."""
    result = []
    for part in raw.split(","):
        part = part.strip().lower()
        if not part:
            continue
        result.append(part if part.startswith(".") else "." + part)
    return result


def build_settings(args: argparse.Namespace) -> AppSettings:
    """Settings tu file, ghi de bang CLI flags."""
    settings = load_app_settings()
    if args.ext:
        settings.source_file_extensions = parse_extensions(args.ext)
    if args.max_kb is not None:
        if args.max_kb < 0:
            raise ConfigurationError(f"--max-kb must be >= 0, got {args.max_kb}")
        settings.max_file_size_kb = args.max_kb
    if args.prompt_file:
        try:
            settings.prompt_template = Path(args.prompt_file).read_text(
                encoding="utf-8"
            )
        except OSError as e:
            raise ConfigurationError(f"Cannot read prompt file: {e}") from e
    return settings


def print_report(
    result: TokenCalculationResult, top: int, selected_model: str
) -> None:
    print("\n--- Tokens by Extension ---")
    for ext, tokens in sorted(
        result.tokens_by_extension.items(), key=lambda kv: kv[1], reverse=True
    ):
        print(f"{ext or '(none)':<12} | {tokens:>10,}")

    if top > 0 and result.tokens_by_file:
        print(f"\n--- Top {top} Largest Files (Tokens) ---")
        print(f"{'Rank':<5} | {'Tokens':<10} | {'File Path'}")
        print("-" * 60)
        ranked = sorted(
            result.tokens_by_file.items(), key=lambda kv: kv[1], reverse=True
        )
        for i, (path, tokens) in enumerate(ranked[:top]):
            print(f"{i + 1:<5} | {tokens:<10,} | {path}")
        print("-" * 60)

    lower, upper = result.estimate_range()
    print(f"\n{result.get_breakdown()}")
    print(f"Mode: {result.mode}  |  Range: {lower:,} - {upper:,} tokens")
    if result.estimated_units and result.encoding_name:
        print(f"({result.estimated_units} text units estimated heuristically)")

    print("\n--- Model Compatibility ---")
    for model_id, label in result.model_compatibility.items():
        model = get_model_by_id(model_id)
        name = (
            f"{model.name} ({format_context_length(model.context_length)})"
            if model
            else model_id
        )
        marker = "*" if model_id == selected_model else " "
        print(f"{marker} {name:<24} {label}")


def run(args: argparse.Namespace) -> int:
    settings = build_settings(args)
    service = CorpusService(settings_provider=lambda: settings)

    try:
        scan = service.scan_folder(args.root_dir)
        if args.add:
            extra = service.add_files(args.add)
            for skipped in extra.skipped:
                if skipped.reason == SkipReason.NOT_FOUND:
                    print(f"Warning: file not found: {skipped.path}", file=sys.stderr)
    except KeyboardInterrupt:
        service.cancel()
        raise

    print("--- ai-code-analyzer ---")
    print(f"Scanning: {service.selected_folder}")
    print(f"Files:    {service.file_count} ({len(scan.skipped)} skipped)")

    result = service.calculate_tokens(
        encoder_available=False if args.heuristic else None
    )

    if settings.model_id not in get_model_limits():
        settings.model_id = "default"
    print_report(result, args.top, settings.model_id)

    if args.output:
        prompt = build_prompt(service.files_by_extension, settings.prompt_template)
        Path(args.output).write_text(prompt, encoding="utf-8")
        print(f"\nPrompt written to: {args.output}")

    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_arg_parser()
    args = parser.parse_args(argv)
    if args.debug:
        set_debug_mode(True)

    try:
        ensure_app_directories()
        return run(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        return EXIT_INTERRUPTED
    except OSError as e:
        log_error("[CLI] Command failed", e)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    finally:
        flush_logs()
        cleanup_old_logs(max_age_days=7)


if __name__ == "__main__":
    sys.exit(main())
