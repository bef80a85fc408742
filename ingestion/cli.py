"""
Command line interface for the bulk import.

Usage:
    python -m ingestion.cli                 Run (or resume) the full import
    python -m ingestion.cli --status        Show checkpoint progress
    python -m ingestion.cli --phase bills   Run one phase
    python -m ingestion.cli --dry-run       Fetch and transform without writing
    python -m ingestion.cli --reset         Delete the checkpoint
    python -m ingestion.cli --force         Start a fresh run
"""

import argparse
import asyncio
import logging
import sys
from typing import Callable, List, Optional

from core.config import settings
from core.database import dispose_engine
from core.exceptions import ConfigurationError
from core.logging import setup_logging
from ingestion.checkpoint import CheckpointStore
from ingestion.congress_client import CongressAPIClient
from ingestion.importers.registry import build_importers
from ingestion.orchestrator import PhaseOrchestrator
from ingestion.phases import PHASE_ORDER, ImportOptions, Phase, parse_phase
from ingestion.run_lock import RunLock
from ingestion.runner import EXIT_FAILURE, EXIT_SUCCESS, RunContext, run

logger = logging.getLogger(__name__)

Printer = Callable[[str], None]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bulk-import",
        description="Checkpointed bulk import of Congress.gov data",
    )
    parser.add_argument("-d", "--dry-run", action="store_true",
                        help="fetch and transform without writing to the database or checkpoint")
    parser.add_argument("-r", "--resume", action="store_true",
                        help="resume from the last checkpoint (default behaviour)")
    parser.add_argument("-s", "--status", action="store_true",
                        help="show checkpoint progress and exit")
    parser.add_argument("--reset", action="store_true",
                        help="delete the checkpoint and exit")
    parser.add_argument("-f", "--force", action="store_true",
                        help="discard the checkpoint and start a fresh run")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="debug logging")
    parser.add_argument("-p", "--phase", metavar="PHASE",
                        help=f"run a single phase ({', '.join(p.value for p in PHASE_ORDER)})")
    return parser


def phase_marker(store: CheckpointStore, phase: Phase) -> str:
    if store.is_phase_completed(phase):
        return "✓ COMPLETE"
    state = store.state
    if state is not None and state.phase == phase:
        return "→ IN PROGRESS"
    return "PENDING"


def print_status(store: CheckpointStore, out: Printer = print) -> None:
    summary = store.get_progress_summary()
    if summary is None:
        out("No import checkpoint found.")
        return

    out(f"Run:        {summary.run_id}")
    out(f"Phase:      {summary.phase.value}")
    out(f"Progress:   {summary.progress}% ({summary.records_processed}/{summary.total_expected})")
    out(f"Elapsed:    {summary.elapsed}")
    out(f"Completed:  {summary.completed_phases}/{summary.total_phases} phases")
    if summary.last_error:
        out(f"Last error: {summary.last_error}")
    out("")
    for phase in PHASE_ORDER:
        out(f"  {phase.value:<12} {phase_marker(store, phase)}")


def validate_environment() -> None:
    """
    Raises:
        ConfigurationError: If the API key or database URL is missing
    """
    missing = [
        name for name in ("CONGRESS_API_KEY", "DATABASE_URL")
        if not getattr(settings, name, None)
    ]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}",
            context={"missing": missing}
        )


async def run_import(
    store: CheckpointStore,
    options: ImportOptions,
    phase: Optional[Phase] = None,
) -> int:
    async with CongressAPIClient() as client:
        importers = build_importers(client, store)
        context = RunContext(
            store=store,
            orchestrator=PhaseOrchestrator(store, importers),
            options=options,
            phase=phase,
            lock=RunLock(settings.CHECKPOINT_DIR),
        )
        try:
            return await run(context)
        finally:
            await dispose_engine()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return EXIT_SUCCESS if e.code in (0, None) else EXIT_FAILURE

    setup_logging("DEBUG" if args.verbose else None)
    directory = settings.CHECKPOINT_DIR

    if args.status:
        store = CheckpointStore(directory, read_only=True)
        store.load()
        print_status(store)
        return EXIT_SUCCESS

    if args.reset:
        if RunLock(directory).is_locked() and not args.force:
            print("An import run is active; refusing to reset (use --force to override).")
            return EXIT_FAILURE
        CheckpointStore(directory).reset()
        print("Checkpoint reset.")
        return EXIT_SUCCESS

    phase = None
    if args.phase:
        try:
            phase = parse_phase(args.phase)
        except ValueError:
            print(f"Unknown phase '{args.phase}'. "
                  f"Valid phases: {', '.join(p.value for p in PHASE_ORDER)}")
            return EXIT_FAILURE

    try:
        validate_environment()
    except ConfigurationError as e:
        print(f"Environment validation failed: {e.message}")
        return EXIT_FAILURE

    store = CheckpointStore(directory, read_only=args.dry_run)
    if args.force:
        if not args.dry_run and RunLock(directory).is_locked():
            print("An import run is active; refusing to start a fresh run.")
            return EXIT_FAILURE
        store.reset()
        store.create()
    elif phase is None:
        store.load_or_create()
    else:
        # Created by the run once the phase's dependencies are met
        store.load()

    options = ImportOptions(
        dry_run=args.dry_run,
        verbose=args.verbose,
        force=args.force,
        resume=True,
    )
    code = asyncio.run(run_import(store, options, phase))

    if code != EXIT_SUCCESS:
        print("\nImport failed. Current status:")
        print_status(store)
        if not args.dry_run and RunLock(directory).is_locked():
            print("\nAnother import run holds the lock; wait for it to finish before rerunning.")
        else:
            print("\nRerun the same command to resume from the last checkpoint.")
    return code


if __name__ == "__main__":
    sys.exit(main())
