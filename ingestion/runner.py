"""
Import run entry point.

``run()`` owns one import run for its whole lifetime: the run lock, the
SIGINT/SIGTERM handlers that save the checkpoint before stopping, and the
mapping from outcome to process exit code. Everything it needs arrives in
an explicit ``RunContext``.
"""

import asyncio
import logging
import signal
from dataclasses import dataclass, field
from typing import Optional

from core.exceptions import CheckpointPersistError, DependencyError, RunLockError
from ingestion.checkpoint import CheckpointStore
from ingestion.orchestrator import PhaseOrchestrator
from ingestion.phases import ImportOptions, Phase
from ingestion.run_lock import RunLock

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@dataclass
class RunContext:
    """Everything one import run needs"""
    store: CheckpointStore
    orchestrator: PhaseOrchestrator
    options: ImportOptions = field(default_factory=ImportOptions)
    phase: Optional[Phase] = None
    lock: Optional[RunLock] = None
    install_signal_handlers: bool = True


def _install_handlers(loop: asyncio.AbstractEventLoop, handler) -> list:
    installed = []
    for sig in HANDLED_SIGNALS:
        try:
            loop.add_signal_handler(sig, handler, sig)
        except (NotImplementedError, RuntimeError, ValueError):
            # Not supported on this platform or outside the main thread
            continue
        installed.append(sig)
    return installed


async def run(context: RunContext) -> int:
    """
    Run the whole pipeline, or ``context.phase`` alone, and return an
    exit code.

    A termination signal saves the checkpoint, stops the run at its
    current suspension point and exits with success; the next run
    resumes from the saved checkpoint.
    """
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    interrupted = False

    def on_signal(sig: signal.Signals) -> None:
        nonlocal interrupted
        if interrupted:
            return
        interrupted = True
        logger.warning(f"Received {signal.Signals(sig).name}, saving checkpoint and stopping")
        try:
            context.store.flush()
        except CheckpointPersistError as e:
            logger.error(f"Failed to save checkpoint on shutdown: {e}")
        task.cancel()

    installed = _install_handlers(loop, on_signal) if context.install_signal_handlers else []
    use_lock = context.lock is not None and not context.options.dry_run
    lock_held = False

    try:
        if use_lock:
            context.lock.acquire()
            lock_held = True

        if context.phase is not None:
            context.orchestrator.check_dependencies(context.phase)
        state = context.store.state or context.store.load_or_create()
        mode = " in dry-run mode" if context.options.dry_run else ""
        logger.info(f"Import run {state.run_id} started{mode}")

        if context.phase is not None:
            await context.orchestrator.execute_phase(context.phase, context.options)
        else:
            await context.orchestrator.execute_all(context.options)

        summary = context.store.get_progress_summary()
        logger.info(
            f"Import run {summary.run_id} finished: "
            f"{summary.completed_phases}/{summary.total_phases} phases complete "
            f"in {summary.elapsed}"
        )
        return EXIT_SUCCESS

    except asyncio.CancelledError:
        if not interrupted:
            raise
        context.store.flush()
        logger.info("Import interrupted; rerun the same command to resume")
        return EXIT_SUCCESS

    except (DependencyError, RunLockError) as e:
        logger.error(str(e))
        return EXIT_FAILURE

    except CheckpointPersistError as e:
        logger.error(f"Checkpoint could not be persisted, stopping: {e}")
        return EXIT_FAILURE

    except Exception as e:
        logger.exception(f"Import failed: {e}")
        state = context.store.state
        message = str(e) or type(e).__name__
        if state is not None and state.last_error != message:
            try:
                context.store.record_error(e)
            except CheckpointPersistError as persist_error:
                logger.error(f"Could not record failure: {persist_error}")
        return EXIT_FAILURE

    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        if lock_held:
            context.lock.release()
