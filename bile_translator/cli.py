"""Command-line interface for bilingual article translation."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from . import __version__
from .config import load_config
from .errors import TranslationError
from .main import ArticleTranslator
from .model_selector import PerformanceTracker
from .models import Strategy


def read_input(path: Path) -> Any:
    """Read a .json article (object or array) or a plain text file."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    return text


def load_tracker(path: Optional[str]) -> PerformanceTracker:
    if not path or not Path(path).exists():
        return PerformanceTracker()
    with open(path, 'r', encoding='utf-8') as f:
        return PerformanceTracker.from_dict(json.load(f))


def save_tracker(tracker: PerformanceTracker, path: Optional[str]):
    if not path:
        return
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(tracker.to_dict(), f, indent=2)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bile-translate",
        description="Bilingual article translation with free-tier LLM providers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Translate a scraped article (JSON) to English
  bile-translate article.json -o result.json

  # Translate plain text to German with OpenRouter first
  bile-translate notes.txt -t de -p openrouter

  # Explain slang in a second pass only when needed
  bile-translate article.json -s twopass

  # Check API keys and connectivity
  bile-translate --test-connection
        """
    )

    parser.add_argument(
        "input",
        nargs="?",
        help="Input file: .json article (object or element array) or plain text"
    )

    parser.add_argument(
        "-o", "--output",
        help="Write result JSON here (default: stdout)"
    )

    parser.add_argument(
        "-t", "--target",
        help="Target language code (default from config, usually 'en')"
    )

    parser.add_argument(
        "-p", "--provider",
        help="Provider to try first (groq, openrouter)"
    )

    parser.add_argument(
        "-m", "--model",
        help="Explicit model for the first attempt"
    )

    parser.add_argument(
        "-s", "--strategy",
        choices=[s.value for s in Strategy],
        help="Prompt strategy (default: minimal)"
    )

    parser.add_argument(
        "-c", "--config",
        default="config.yaml",
        help="Configuration file (default: config.yaml)"
    )

    parser.add_argument(
        "--chunk-size",
        type=int,
        help="Maximum characters per chunk"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose logging"
    )

    parser.add_argument(
        "--test-connection",
        action="store_true",
        help="Test provider connectivity and exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.test_connection and not args.input:
        parser.error("the following arguments are required: input")

    # Initialize translator
    try:
        config = load_config(args.config)
        if args.chunk_size:
            config.translation.max_chunk_chars = args.chunk_size
        tracker = load_tracker(config.performance_file)
        translator = ArticleTranslator(config=config, tracker=tracker)
    except Exception as e:
        print(f"Error initializing translator: {e}", file=sys.stderr)
        return 2

    if args.test_connection:
        status = translator.test_connection()
        for name, ok in status.items():
            print(f"{name}: {'OK' if ok else 'FAILED'}")
        return 0 if all(status.values()) else 1

    source = Path(args.input)
    if not source.exists():
        print(f"Error: Input file not found: {args.input}", file=sys.stderr)
        return 1

    try:
        raw = read_input(source)
    except (OSError, ValueError) as e:
        print(f"Error reading {args.input}: {e}", file=sys.stderr)
        return 1

    try:
        result = translator.translate(
            raw,
            target_language=args.target,
            strategy=args.strategy,
            model=args.model,
            provider=args.provider,
        )
    except (TranslationError, ValueError) as e:
        print(f"Translation failed: {e}", file=sys.stderr)
        return 1
    finally:
        save_tracker(translator.tracker, config.performance_file)

    output = json.dumps(result.to_dict(), ensure_ascii=False, indent=2)
    summary_stream = sys.stdout
    if args.output:
        Path(args.output).write_text(output + "\n", encoding="utf-8")
    else:
        print(output)
        summary_stream = sys.stderr

    meta = result.metadata
    print("=" * 60, file=summary_stream)
    print(f"Translated: {result.title_original} -> {result.title_translated}", file=summary_stream)
    print(
        f"  {result.source_language} -> {result.target_language}, "
        f"{len(result.sections)} sections, "
        f"{sum(len(s.slang_terms) for s in result.sections)} slang terms",
        file=summary_stream,
    )
    print(
        f"  {meta.provider}/{meta.model} ({meta.strategy}), "
        f"{meta.duration_ms}ms, {meta.attempt_count} attempt(s)"
        + (f", {meta.chunk_count} chunks" if meta.chunked else ""),
        file=summary_stream,
    )
    if args.output:
        print(f"  Output: {args.output}", file=summary_stream)
    return 0


if __name__ == "__main__":
    sys.exit(main())
