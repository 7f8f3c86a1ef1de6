# ai_court/main.py
"""Command-line front end: ``ai-court quick|trial|document``."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional
from loguru import logger

from .config.schemas import CourtConfig
from .core.court_session import CourtSession, SAMPLE_SCENARIOS
from .core.data_models import CaseType, LegalCategory, Side, StreamChunk, TrialSetup
from .core.exceptions import AICourtError, InvalidInputError, UsageLimitExceededError
from .core.round_manager import TrialPhase
from .providers import get_provider
from .utils.config_loader import load_config
from .utils.formatters import format_round_header, format_usage, format_verdict
from .utils.logging_config import setup_logging


class ConsolePrinter:
    """Streams chunks to stdout, announcing each trial round on its first chunk."""

    def __init__(self, session: Optional[CourtSession] = None):
        self.session = session
        self._at_start = True

    def __call__(self, chunk: StreamChunk):
        trial = self.session.trial if self.session is not None else None
        if self._at_start and trial is not None:
            print(f"\n{format_round_header(trial.round)}")
        self._at_start = False
        if chunk.done:
            print()
            self._at_start = True
            return
        print(chunk.content, end="", flush=True)


def _read_document(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


async def run_quick(session: CourtSession, args) -> int:
    answer = await session.quick_consult(args.question, LegalCategory(args.category), ConsolePrinter())
    return 1 if answer.failed else 0


async def run_document(session: CourtSession, args) -> int:
    analysis = await session.analyze_document(_read_document(args.file), Side(args.side), ConsolePrinter())
    return 1 if analysis.failed else 0


async def run_trial(session: CourtSession, args) -> int:
    if args.plaintiff or args.defendant:
        setup = TrialSetup(
            plaintiff_claim=args.plaintiff or "",
            defendant_claim=args.defendant or "",
            case_type=CaseType(args.case_type),
        )
    else:
        setup = SAMPLE_SCENARIOS[args.scenario]

    trial = await session.start_trial(setup, on_chunk=ConsolePrinter(session))
    async with trial:
        if args.manual:
            while trial.phase == TrialPhase.RUNNING:
                input(f"\nPress Enter for round {trial.round}...")
                await trial.advance()
        elif trial.auto_advance:
            await trial.wait_settled()
        else:
            await trial.run_to_completion()

        if trial.phase != TrialPhase.FINISHED:
            print(f"\nThe trial stopped at round {trial.round}. Re-run to start over.")
            return 1

        print("\nAnalyzing the verdict...")
        analysis = await trial.wait_for_verdict()
        if analysis is not None:
            print(format_verdict(analysis))
    return 0


async def run_command(config: CourtConfig, args) -> int:
    handlers = {"quick": run_quick, "trial": run_trial, "document": run_document}
    async with get_provider(config.provider) as provider:
        session = CourtSession(provider, config=config)
        try:
            return await handlers[args.command](session, args)
        except (InvalidInputError, UsageLimitExceededError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
        finally:
            logger.debug(f"Remaining today: {format_usage(await session.remaining())}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ai-court",
        description="AI legal consultation and virtual trial simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", "-c", default=None, help="Path to a YAML configuration file")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    quick = subparsers.add_parser("quick", help="Ask a quick legal question")
    quick.add_argument("question", help="The question to ask")
    quick.add_argument(
        "--category",
        choices=[c.value for c in LegalCategory],
        default=LegalCategory.OTHER.value,
        help="Legal category (default: other)",
    )

    trial = subparsers.add_parser("trial", help="Run a seven-round virtual trial")
    trial.add_argument(
        "--scenario",
        choices=sorted(SAMPLE_SCENARIOS),
        default="deposit",
        help="Sample case to try when no claims are given (default: deposit)",
    )
    trial.add_argument("--plaintiff", default=None, help="The plaintiff's claim")
    trial.add_argument("--defendant", default=None, help="The defendant's claim")
    trial.add_argument(
        "--case-type",
        choices=[c.value for c in CaseType],
        default=CaseType.CIVIL.value,
        help="Case type for custom claims (default: civil)",
    )
    trial.add_argument("--manual", action="store_true", help="Wait for Enter between rounds")

    document = subparsers.add_parser("document", help="Analyze a legal document")
    document.add_argument("file", help="Path to a text file, or - for stdin")
    document.add_argument(
        "--side",
        choices=[s.value for s in Side],
        default=Side.PLAINTIFF.value,
        help="Your side in the dispute (default: plaintiff)",
    )
    return parser


def cli(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    config = load_config(args.config)
    if args.log_level:
        config.logging.level = args.log_level
    if getattr(args, "manual", False):
        config.trial.auto_advance = False
    setup_logging(config.logging)

    try:
        return asyncio.run(run_command(config, args))
    except AICourtError as e:
        logger.error(f"Command failed: {e}")
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(cli())
