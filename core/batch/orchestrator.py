"""
Batch captioning orchestrator.

Chunk Planner -> (per chunk) Job Submitter -> Job Monitor -> Result Reconciler,
strictly one chunk at a time. A chunk-level failure aborts the run;
captions already written by earlier chunks stay on disk.
"""

from pathlib import Path
from typing import Any, List, Optional
from dataclasses import dataclass, field
import asyncio
import time

from config.logging_config import get_logger
from config.constants import BATCH_POLL_INTERVAL_SECONDS, DEFAULT_CHUNK_BUDGET_BYTES

from ..errors import EncodeFailure
from ..models import CaptionOptions, ImageItem
from .chunk_planner import plan_chunks
from .job_monitor import JobMonitor, SleepFunc
from .job_submitter import JobSubmitter
from .result_reconciler import ReconcileReport, ResultReconciler

logger = get_logger(__name__)


@dataclass
class BatchRunReport:
    """Result from orchestrator processing."""
    chunk_count: int = 0
    job_ids: List[str] = field(default_factory=list)
    chunk_reports: List[ReconcileReport] = field(default_factory=list)
    encode_failures: List[EncodeFailure] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def written(self) -> List[Path]:
        return [path for report in self.chunk_reports for path in report.written]

    @property
    def failed_ids(self) -> List[str]:
        failed = [r.custom_id for report in self.chunk_reports for r in report.failed]
        missing = [cid for report in self.chunk_reports for cid in report.missing]
        return failed + missing


class BatchOrchestrator:
    """
    Runs a whole image set through the Batch API.

    Usage:
        orchestrator = BatchOrchestrator(provider, options, manifest_dir=temp_dir)
        report = await orchestrator.run(items)
    """

    def __init__(
        self,
        provider: Any,
        options: CaptionOptions,
        budget_bytes: float = DEFAULT_CHUNK_BUDGET_BYTES,
        poll_interval: float = BATCH_POLL_INTERVAL_SECONDS,
        manifest_dir: Optional[Path] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """
        Initialize orchestrator.

        Args:
            provider: Batch capability implementation
            options: Per-run request and output options
            budget_bytes: Estimated encoded bytes allowed per chunk
            poll_interval: Seconds between status polls
            manifest_dir: Optional folder for manifest copies
            sleep: Awaitable sleep used between polls
        """
        self.provider = provider
        self.options = options
        self.budget_bytes = budget_bytes

        self.submitter = JobSubmitter(provider, options, manifest_dir=manifest_dir)
        self.monitor = JobMonitor(provider, poll_interval=poll_interval, sleep=sleep)
        self.reconciler = ResultReconciler(options)

        logger.info(
            f"BatchOrchestrator initialized: "
            f"model={options.model}, fidelity={options.fidelity}, "
            f"poll_interval={poll_interval}s"
        )

    async def run(self, items: List[ImageItem]) -> BatchRunReport:
        """
        Caption all items, one batch job per chunk.

        Args:
            items: Images in input order

        Returns:
            BatchRunReport covering every processed chunk

        Raises:
            SubmissionFailure: A chunk could not be submitted
            BatchJobFailure: A job ended failed, expired or cancelled
        """
        start_time = time.time()
        self.submitter.encode_failures = []
        chunks = plan_chunks(items, self.budget_bytes)
        report = BatchRunReport(chunk_count=len(chunks))

        try:
            for chunk in chunks:
                logger.info(f"Chunk {chunk.index + 1}/{len(chunks)}: {len(chunk)} image(s)")

                handle = await self.submitter.submit(chunk)
                if handle is None:
                    continue
                report.job_ids.append(handle.job_id)

                snapshot = await self.monitor.wait(handle)

                logger.info(f"Batch job {handle.job_id} completed. Downloading results...")
                chunk_report = await self.reconciler.reconcile_job(self.provider, handle, snapshot)
                report.chunk_reports.append(chunk_report)
        except Exception as e:
            logger.error(f"Batch run aborted: {e}")
            raise
        finally:
            report.encode_failures = list(self.submitter.encode_failures)
            report.duration_seconds = time.time() - start_time

        logger.info(
            f"Batch processing complete: {len(report.written)} caption(s) written, "
            f"{len(report.failed_ids)} failed, "
            f"{len(report.encode_failures)} unreadable, "
            f"{report.duration_seconds:.1f}s"
        )
        return report
