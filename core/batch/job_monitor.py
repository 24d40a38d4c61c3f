"""
Batch job status polling.

    validating -> in_progress -> finalizing -> completed
                                            -> failed | expired
    cancelling -> cancelled

Polls on a fixed interval with no backoff and no overall timeout; the
provider's 24h completion window bounds the wait.
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional

from config.logging_config import get_logger
from config.constants import BATCH_POLL_INTERVAL_SECONDS

from ..errors import BatchJobFailure, ProviderError
from .models import JobHandle, JobStatus, JobStatusSnapshot, ResultRecord
from .result_reconciler import parse_result_lines

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


class JobMonitor:
    """
    Waits for a batch job to reach a terminal state.

    Usage:
        monitor = JobMonitor(provider, poll_interval=30)
        snapshot = await monitor.wait(handle)  # raises BatchJobFailure
    """

    def __init__(
        self,
        provider: Any,
        poll_interval: float = BATCH_POLL_INTERVAL_SECONDS,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.provider = provider
        self.poll_interval = poll_interval
        self._sleep = sleep

    async def wait(self, handle: JobHandle) -> JobStatusSnapshot:
        """
        Poll until the job completes.

        Args:
            handle: Submitted job

        Returns:
            Snapshot of the completed job (carries the output/error file ids)

        Raises:
            BatchJobFailure: If the job ends failed, expired or cancelled
        """
        logger.info(f"Waiting for batch job {handle.job_id} (chunk {handle.chunk_index}) to complete...")
        last_status: Optional[str] = None
        polls = 0

        while True:
            snapshot = await self.provider.get_job_status(handle.job_id)
            polls += 1

            if snapshot.raw_status != last_status:
                counts = snapshot.request_counts
                logger.info(
                    f"Batch {handle.job_id} status: {snapshot.raw_status} "
                    f"({counts.completed}/{counts.total} done, {counts.failed} failed)"
                )
                last_status = snapshot.raw_status
            else:
                logger.debug(f"Batch {handle.job_id} still {snapshot.raw_status} (poll {polls})")

            status = snapshot.status
            if status is None:
                logger.warning(f"Batch {handle.job_id}: unknown status '{snapshot.raw_status}', polling again")
            elif status == JobStatus.COMPLETED:
                return snapshot
            elif status.is_failure:
                await self._raise_failure(handle, snapshot)

            await self._sleep(self.poll_interval)

    async def _raise_failure(self, handle: JobHandle, snapshot: JobStatusSnapshot):
        for error in snapshot.errors:
            logger.error(f"Batch {handle.job_id}: {error}")

        diagnostics = await self._fetch_diagnostics(handle, snapshot)
        for record in diagnostics:
            if not record.success:
                logger.error(f"Error processing {record.custom_id}: {record.error_message}")

        raise BatchJobFailure(
            job_id=handle.job_id,
            status=snapshot.raw_status,
            chunk_index=handle.chunk_index,
            diagnostics=diagnostics,
            errors=list(snapshot.errors),
        )

    async def _fetch_diagnostics(
        self,
        handle: JobHandle,
        snapshot: JobStatusSnapshot,
    ) -> List[ResultRecord]:
        """Per-item errors from the job's error file; empty when there is none."""
        if not snapshot.error_file_id:
            return []

        try:
            raw_text = await self.provider.fetch_file_content(snapshot.error_file_id)
        except ProviderError as e:
            logger.error(f"Batch {handle.job_id}: could not download error file: {e}")
            return []

        return [record for record in parse_result_lines(raw_text) if record is not None]
