"""
Checkpointed multi-phase bulk import of Congress.gov data.

Modules:
    phases: Phase tags, dependency graph and next-phase resolver
    checkpoint: File-backed checkpoint store (atomic writes, backup fallback)
    run_lock: Advisory lock keeping two runs off one checkpoint
    rate_limiter: Async token bucket shared by every upstream request
    congress_client: Paginated, retrying Congress.gov API client
    batch: Batch upsert engine with skip-ahead resume
    orchestrator: Runs phases in dependency order over the checkpoint
    runner: Run entry point with scoped signal handling and exit codes
    cli: Command line interface
    scheduler: APScheduler integration for periodic imports
    import_config: Static import constants

Subpackages:
    transformers: Raw upstream items to domain records
    loaders: Idempotent create-or-update of domain records
    importers: One importer per phase

Phases run in the order legislators, committees, bills, votes, validate.
Each phase persists its position after every batch, so an interrupted
run resumes where it stopped:

    python -m ingestion.cli            # run or resume
    python -m ingestion.cli --status   # show progress

Error Handling:
    Per-record transform and upsert failures are counted and skipped.
    Fetch failures after retries, count thresholds and checkpoint
    persistence failures fail the phase; see core.exceptions.
"""

__all__ = [
    "CheckpointStore",
    "PhaseOrchestrator",
    "BatchUpsertEngine",
    "CongressAPIClient",
    "RunContext",
    "run",
    "main",
]
