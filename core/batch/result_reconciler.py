"""
Maps batch results back to caption files.

Each provider record is either a success (caption written) or a per-item
failure (logged, skipped). One bad record never stops the others.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Set

from pydantic import ValidationError

from config.logging_config import get_logger

from ..caption_writer import write_caption
from ..errors import ResultItemFailure
from ..models import CaptionOptions
from .models import (
    BatchOutputLine,
    JobHandle,
    JobStatusSnapshot,
    ResultRecord,
    extract_error_message,
    extract_message_content,
)

logger = get_logger(__name__)


@dataclass
class ReconcileReport:
    """What a completed job produced."""
    chunk_index: Optional[int] = None
    written: List[Path] = field(default_factory=list)
    failed: List[ResultRecord] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    malformed_lines: int = 0
    seen_ids: Set[str] = field(default_factory=set)

    @property
    def success_count(self) -> int:
        return len(self.written)

    @property
    def failure_count(self) -> int:
        return len(self.failed) + len(self.missing)


def to_result_record(line: BatchOutputLine) -> ResultRecord:
    """
    Classify one provider record.

    Raises:
        ResultItemFailure: If the provider reported an error for the item
            or the response carries no generated text
    """
    if line.error is not None:
        raise ResultItemFailure(
            line.custom_id,
            line.error.message or line.error.code or "unknown error",
        )

    response = line.response
    if response is None:
        raise ResultItemFailure(line.custom_id, "record has neither response nor error")

    if response.status_code >= 400:
        message = extract_error_message(response.body) or f"HTTP {response.status_code}"
        raise ResultItemFailure(line.custom_id, message)

    content = extract_message_content(response.body)
    if content is None:
        raise ResultItemFailure(line.custom_id, "response contains no message content")

    return ResultRecord.ok(line.custom_id, content)


def parse_result_lines(raw_text: str) -> Iterator[Any]:
    """
    Yield a ResultRecord per valid line, or None for a malformed line.

    Blank lines are skipped.
    """
    for number, raw_line in enumerate(raw_text.splitlines(), start=1):
        if not raw_line.strip():
            continue
        try:
            line = BatchOutputLine.model_validate(json.loads(raw_line))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Skipping malformed result line {number}: {e}")
            yield None
            continue

        try:
            yield to_result_record(line)
        except ResultItemFailure as failure:
            yield ResultRecord.failed(failure.custom_id, failure.message)


class ResultReconciler:
    """
    Writes caption files for successful records and logs the failures.

    Usage:
        reconciler = ResultReconciler(options)
        report = await reconciler.reconcile_job(provider, handle, snapshot)
    """

    def __init__(self, options: CaptionOptions):
        self.options = options

    def reconcile(
        self,
        raw_text: str,
        expected_ids: Optional[Iterable[str]] = None,
        report: Optional[ReconcileReport] = None,
    ) -> ReconcileReport:
        """
        Process newline-delimited result records in provider order.

        Args:
            raw_text: Downloaded output (or error) file content
            expected_ids: Custom ids that were submitted; ids seen in
                neither this text nor earlier calls are reported missing
            report: Report to accumulate into

        Returns:
            ReconcileReport with written files and failed records
        """
        report = report or ReconcileReport()

        for record in parse_result_lines(raw_text):
            if record is None:
                report.malformed_lines += 1
                continue

            report.seen_ids.add(record.custom_id)
            if not record.success:
                logger.error(f"Error processing {record.custom_id}: {record.error_message}")
                report.failed.append(record)
                continue

            try:
                path = write_caption(self.options, record.custom_id, record.content)
            except OSError as e:
                logger.error(f"Could not write caption for {record.custom_id}: {e}")
                report.failed.append(ResultRecord.failed(record.custom_id, str(e)))
                continue

            report.written.append(path)
            logger.info(f"Processed {record.custom_id}")

        if expected_ids is not None:
            report.missing = [cid for cid in expected_ids if cid not in report.seen_ids]

        return report

    async def reconcile_job(
        self,
        provider: Any,
        handle: JobHandle,
        snapshot: JobStatusSnapshot,
    ) -> ReconcileReport:
        """Download the output and error files of a completed job and reconcile both."""
        report = ReconcileReport(chunk_index=handle.chunk_index)
        file_ids = [fid for fid in (snapshot.output_file_id, snapshot.error_file_id) if fid]

        if not file_ids:
            logger.warning(f"Job {handle.job_id} completed without output or error file")

        for file_id in file_ids:
            logger.info(f"Job {handle.job_id}: downloading results from {file_id}")
            raw_text = await provider.fetch_file_content(file_id)
            self.reconcile(raw_text, report=report)

        if handle.custom_ids:
            report.missing = [cid for cid in handle.custom_ids if cid not in report.seen_ids]
            for custom_id in report.missing:
                logger.warning(f"No result returned for {custom_id}")

        logger.info(
            f"Chunk {handle.chunk_index}: {report.success_count} caption(s) written, "
            f"{report.failure_count} failed"
        )
        return report
