"""Collection runner with parallel execution and failure isolation."""

import contextvars
import time
import uuid
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog

from metaingest.collectors.base import Collector
from metaingest.collectors.batch import BatchCollector, FailureItem
from metaingest.collectors.context import ExecutionContext
from metaingest.collectors.errors import get_error_code
from metaingest.collectors.metrics import CollectorMetrics
from metaingest.collectors.models import TableMetadata
from metaingest.collectors.statistics import (
    StatisticsResult,
    fetch_table_statistics_with_timeout,
    get_statistics_timeout,
)
from metaingest.config.schemas.retry import RetryConfig
from metaingest.matcher.matcher import MatcherSet
from metaingest.observability.logging import bind_run_context, clear_run_context
from metaingest.settings.app import EngineSettings


logger = structlog.get_logger()


@dataclass(frozen=True)
class CollectionJob:
    """One unit of independent collection work.

    Each job owns its collector; collectors are never shared across jobs.
    """

    job_id: str
    collector: Collector
    source: str
    catalog: str
    schema: str
    tables: list[str]
    collect_statistics: bool = False


@dataclass
class JobResult:
    """Result of running a single job."""

    job_id: str
    source: str
    tables: list[TableMetadata] = field(default_factory=list)
    failures: list[FailureItem] = field(default_factory=list)
    statistics: dict[str, StatisticsResult] = field(default_factory=dict)
    error: str | None = None
    error_code: str = ""
    duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        """Check if the job ran to completion (item failures allowed)."""
        return self.error is None


@dataclass
class RunnerResult:
    """Result of a complete runner execution."""

    run_id: str
    started_at: datetime
    finished_at: datetime
    job_results: dict[str, JobResult]
    total_tables: int = 0
    total_failures: int = 0
    jobs_succeeded: int = 0
    jobs_failed: int = 0

    @property
    def success(self) -> bool:
        """Check if any jobs succeeded."""
        return self.jobs_succeeded > 0

    @property
    def duration_ms(self) -> float:
        """Get total duration in milliseconds."""
        return (self.finished_at - self.started_at).total_seconds() * 1000


class CollectionRunner:
    """Runs collection jobs with parallel execution.

    Provides:
    - Parallel job processing with configurable concurrency
    - Failure isolation (one job failing doesn't stop others)
    - Optional scoping of catalogs, schemas and tables
    - Bounded-time statistics per collected table
    """

    def __init__(
        self,
        max_workers: int = 4,
        retry_config: RetryConfig | None = None,
        statistics_timeout: float = 0.0,
        matchers: MatcherSet | None = None,
        run_id: str | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            max_workers: Maximum parallel workers.
            retry_config: Retry policy for per-table calls.
            statistics_timeout: Soft bound for each statistics call, in
                seconds; <= 0 disables it.
            matchers: Scoping rules; None keeps everything.
            run_id: Unique run identifier (generated when omitted).
        """
        self._max_workers = max_workers
        self._retry_config = retry_config
        self._statistics_timeout = statistics_timeout
        self._matchers = matchers
        self._run_id = run_id or uuid.uuid4().hex
        self._metrics = CollectorMetrics.get_instance()
        self._log = logger.bind(component="runner")

    @classmethod
    def from_settings(
        cls,
        settings: EngineSettings,
        *,
        retry_config: RetryConfig | None = None,
        matchers: MatcherSet | None = None,
        run_id: str | None = None,
    ) -> "CollectionRunner":
        """Build a runner sized by METAINGEST_MAX_WORKERS.

        The statistics bound comes from METAINGEST_STATISTICS_TIMEOUT_SECONDS.
        """
        return cls(
            max_workers=settings.max_workers,
            retry_config=retry_config,
            statistics_timeout=get_statistics_timeout(
                settings.statistics_timeout_seconds
            ),
            matchers=matchers,
            run_id=run_id,
        )

    @property
    def run_id(self) -> str:
        """Get the run identifier."""
        return self._run_id

    def run(
        self,
        ctx: ExecutionContext,
        jobs: list[CollectionJob],
    ) -> RunnerResult:
        """Run all jobs.

        The run id is bound into the log context while jobs run, including
        on worker threads.

        Args:
            ctx: Execution context shared by every job.
            jobs: Jobs to run.

        Returns:
            RunnerResult with aggregated results.

        Raises:
            ValueError: If two jobs share a job_id.
        """
        counts = Counter(j.job_id for j in jobs)
        duplicates = sorted(job_id for job_id, n in counts.items() if n > 1)
        if duplicates:
            msg = f"Duplicate job IDs found: {duplicates}"
            raise ValueError(msg)

        bind_run_context(self._run_id)
        try:
            return self._run_jobs(ctx, jobs)
        finally:
            clear_run_context()

    def _run_jobs(
        self, ctx: ExecutionContext, jobs: list[CollectionJob]
    ) -> RunnerResult:
        started_at = datetime.now(UTC)
        self._log.info(
            "runner_started",
            job_count=len(jobs),
            max_workers=self._max_workers,
        )

        active_jobs = [j for j in jobs if self._in_scope(j)]
        self._log.info(
            "jobs_filtered",
            active_count=len(active_jobs),
            skipped_count=len(jobs) - len(active_jobs),
        )

        job_results: dict[str, JobResult] = {}

        if self._max_workers <= 1:
            for job in active_jobs:
                job_results[job.job_id] = self._run_isolated(ctx, job)
        else:
            with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                future_to_job = {
                    executor.submit(
                        contextvars.copy_context().run, self._run_isolated, ctx, job
                    ): job
                    for job in active_jobs
                }
                for future in as_completed(future_to_job):
                    job = future_to_job[future]
                    job_results[job.job_id] = future.result()

        finished_at = datetime.now(UTC)
        total_tables = sum(len(r.tables) for r in job_results.values())
        total_failures = sum(len(r.failures) for r in job_results.values())
        jobs_succeeded = sum(1 for r in job_results.values() if r.success)
        jobs_failed = sum(1 for r in job_results.values() if not r.success)

        self._log.info(
            "runner_complete",
            duration_ms=round((finished_at - started_at).total_seconds() * 1000, 2),
            total_tables=total_tables,
            total_failures=total_failures,
            jobs_succeeded=jobs_succeeded,
            jobs_failed=jobs_failed,
        )

        return RunnerResult(
            run_id=self._run_id,
            started_at=started_at,
            finished_at=finished_at,
            job_results=job_results,
            total_tables=total_tables,
            total_failures=total_failures,
            jobs_succeeded=jobs_succeeded,
            jobs_failed=jobs_failed,
        )

    def _in_scope(self, job: CollectionJob) -> bool:
        if self._matchers is None:
            return True
        return self._matchers.match_database(job.catalog) and self._matchers.match_schema(
            job.schema
        )

    def _run_isolated(self, ctx: ExecutionContext, job: CollectionJob) -> JobResult:
        """Run a job, converting any escaped exception into a failed JobResult."""
        try:
            return self._run_single_job(ctx, job)
        except Exception as e:  # noqa: BLE001
            code = get_error_code(e)
            self._log.error(
                "job_execution_error",
                job_id=job.job_id,
                source=job.source,
                error=str(e),
            )
            return JobResult(
                job_id=job.job_id,
                source=job.source,
                error=f"Execution error: {e}",
                error_code=code.value if code is not None else "",
            )

    def _run_single_job(self, ctx: ExecutionContext, job: CollectionJob) -> JobResult:
        start_time_ns = time.perf_counter_ns()
        log = self._log.bind(job_id=job.job_id, source=job.source)
        log.info("job_started", table_count=len(job.tables))

        batch = BatchCollector(
            job.collector,
            job.source,
            retry_config=self._retry_config,
            table_matcher=self._matchers.tables if self._matchers else None,
        )
        metadata = batch.fetch_all_table_metadata(
            ctx, job.catalog, job.schema, job.tables
        )

        statistics: dict[str, StatisticsResult] = {}
        failures = list(metadata.failures)
        if job.collect_statistics:
            for table in metadata.results:
                item = table.qualified_name
                try:
                    statistics[item] = fetch_table_statistics_with_timeout(
                        ctx,
                        job.collector,
                        table.catalog,
                        table.schema_name,
                        table.name,
                        self._statistics_timeout,
                        job.source,
                    )
                except Exception as e:  # noqa: BLE001
                    code = get_error_code(e)
                    failures.append(
                        FailureItem(
                            item=item,
                            error=str(e),
                            error_code=code.value if code is not None else "",
                        )
                    )
                    log.warning("statistics_failed", item=item, error=str(e))

        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
        self._metrics.record_duration(job.source, "job", duration_ms)

        log.info(
            "job_complete",
            tables_collected=len(metadata.results),
            failure_count=len(failures),
            statistics_count=len(statistics),
            duration_ms=round(duration_ms, 2),
        )

        return JobResult(
            job_id=job.job_id,
            source=job.source,
            tables=list(metadata.results),
            failures=failures,
            statistics=statistics,
            duration_ms=duration_ms,
        )
