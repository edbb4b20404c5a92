#!/usr/bin/env python3
"""
Main Entry Point

Long-form expansion engine: turn a short source plus free-text instructions
into a structured, length-controlled document.
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.rule import Rule

from expander.config.loader import DEFAULT_SETTINGS_PATH, load_settings, validate_secret_env
from expander.db.repositories import SQLiteJobStatusStore, SQLiteSectionStore
from expander.llm.errors import ProviderError
from expander.llm.provider import build_backend
from expander.models import ExpansionRequest, SectionComplete
from expander.orchestration.events import CallbackSink
from expander.orchestration.pipeline import ExpansionPipeline
from expander.utils import structured_log
from expander.utils.logging_config import LogLevel, setup_logging

console = Console()

# Load environment variables from .env file
load_dotenv()


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Long-form expansion engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("input", type=str, help="Path to the source text file")
    parser.add_argument(
        "--instructions",
        "-i",
        type=str,
        default="",
        help="Free-text expansion instructions (or @path to read them from a file)",
    )
    parser.add_argument("--target", type=int, default=None, help="Target word count when instructions give none")
    parser.add_argument("--provider", type=str, default=None, help="Provider name from settings (default: settings)")
    parser.add_argument("--max-words", type=int, default=None, help="Stop starting new sections past this many words")
    parser.add_argument("--output", "-o", type=str, default=None, help="Write the expanded document here")
    parser.add_argument(
        "--config",
        type=str,
        default=os.getenv("EXPANDER_CONFIG", DEFAULT_SETTINGS_PATH),
        help=f"Path to settings file (default: {DEFAULT_SETTINGS_PATH})",
    )
    parser.add_argument(
        "--db",
        type=str,
        nargs="?",
        const="data/expansions.db",
        default=None,
        help="Persist finalized sections to SQLite (default path: data/expansions.db)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output (detailed logging)")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug mode (full logging with all details)")
    parser.add_argument(
        "--log-file",
        type=str,
        nargs="?",
        const="logs/expander.log",
        default=None,
        help="Enable file logging. Use --log-file for logs/expander.log or --log-file <path>",
    )

    return parser.parse_args(argv)


def _read_instructions(raw: str) -> str:
    if raw.startswith("@"):
        return Path(raw[1:]).read_text(encoding="utf-8")
    return raw


def _on_event(event) -> None:
    if isinstance(event, SectionComplete):
        console.print(
            f"[green]Section {event.index + 1}/{event.total}[/green] {event.section_name} "
            f"({event.word_count} words, {event.cumulative_word_count} total, {event.percent}%)"
        )
    elif event.kind == "outline":
        console.print(f"[cyan]Outline ready[/cyan] for {event.total_sections} sections")
    elif event.kind == "progress":
        console.print(f"[dim]{event.message}[/dim]")
    elif event.kind == "error":
        console.print(f"[red]Failed during {event.stage.value}:[/red] {event.message}")


async def run(args) -> int:
    settings = load_settings(args.config)
    missing = validate_secret_env(settings, args.provider)
    if missing:
        console.print(f"[red]Missing required environment variables: {', '.join(missing)}[/red]")
        return 2

    structured_log.configure_run_logging(settings.log_dir)
    backend = build_backend(settings, args.provider)

    db_path = args.db or (settings.persistence.db_path if settings.persistence.enabled else None)
    section_store = SQLiteSectionStore(db_path) if db_path else None
    status_store = SQLiteJobStatusStore(db_path) if db_path else None

    pipeline = ExpansionPipeline(
        settings,
        backend,
        sink=CallbackSink(_on_event),
        section_store=section_store,
        status_store=status_store,
    )
    request = ExpansionRequest(
        text=Path(args.input).read_text(encoding="utf-8"),
        instructions=_read_instructions(args.instructions),
        target_word_count=args.target,
        provider=backend.name,
        max_words=args.max_words,
    )

    console.print(Rule(f"[bold]Expansion job {request.job_id}[/bold]"))
    result = await pipeline.run(request)

    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(result.expanded_text, encoding="utf-8")
        console.print(f"Wrote {result.output_word_count} words to [bold]{out_path}[/bold]")
    else:
        print(result.expanded_text)

    console.print(Rule("[bold]Summary[/bold]"))
    console.print(
        f"{result.input_word_count} -> {result.output_word_count} words, "
        f"{result.sections_generated} sections in {result.processing_time_ms / 1000:.1f}s"
    )
    if result.stopped_early:
        console.print(f"[yellow]Stopped early at the {args.max_words} word ceiling[/yellow]")
    if result.stitch is not None and result.stitch.repairs_requested:
        console.print(f"Stitch repairs applied: {result.stitch.repairs_applied}/{result.stitch.repairs_requested}")
    totals = backend.totals
    console.print(f"LLM calls: {totals.calls}, tokens {totals.tokens_in}/{totals.tokens_out}, cost ${totals.cost_usd:.4f}")
    return 0


def main():
    """Main entry point."""
    args = parse_args()
    setup_logging(
        level=LogLevel.DETAILED if args.verbose or args.debug else LogLevel.NORMAL,
        log_file=args.log_file,
        verbose=args.verbose,
        debug=args.debug,
    )
    try:
        exit_code = asyncio.run(run(args))
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        exit_code = 1
    except ProviderError as e:
        console.print(f"[red]Provider error: {e}[/red]")
        exit_code = 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        exit_code = 130
    finally:
        structured_log.close_run_logging()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
