"""
Batch job submission.
Builds the JSONL manifest for a chunk, uploads it and creates the job.

A rejected upload or job creation is fatal to the run. Submissions are
never retried here: a resubmitted chunk could be billed twice.
"""

from pathlib import Path
from typing import Any, List, Optional, Tuple

from config.logging_config import get_logger
from config.constants import MANIFEST_FILENAME_TEMPLATE, MIB

from ..errors import EncodeFailure, ProviderError, SubmissionFailure
from ..image_encoder import image_data_uri
from ..models import CaptionOptions
from .models import Chunk, JobHandle, JobRequest

logger = get_logger(__name__)


class JobSubmitter:
    """
    Submits chunks as batch jobs.

    Usage:
        submitter = JobSubmitter(provider, options, manifest_dir=temp_dir)
        handle = await submitter.submit(chunk)
    """

    def __init__(
        self,
        provider: Any,
        options: CaptionOptions,
        manifest_dir: Optional[Path] = None,
    ):
        """
        Args:
            provider: Batch capability (upload_manifest, create_job)
            options: Prompt, model, fidelity and token limit for every request
            manifest_dir: If set, a copy of each manifest is kept here
        """
        self.provider = provider
        self.options = options
        self.manifest_dir = Path(manifest_dir) if manifest_dir else None
        self.encode_failures: List[EncodeFailure] = []

    def build_requests(self, chunk: Chunk) -> List[JobRequest]:
        """One request per encodable item; unreadable images are logged and left out."""
        requests: List[JobRequest] = []
        seen = set()

        for item in chunk.items:
            custom_id = item.name
            if custom_id in seen:
                logger.warning(
                    f"Duplicate custom id {custom_id} in chunk {chunk.index}, skipping {item.path}"
                )
                continue

            try:
                data_uri = image_data_uri(item.path)
            except EncodeFailure as e:
                logger.error(str(e))
                self.encode_failures.append(e)
                continue

            seen.add(custom_id)
            requests.append(JobRequest(
                custom_id=custom_id,
                prompt=self.options.prompt,
                model=self.options.model,
                fidelity=self.options.fidelity,
                encoded_image=data_uri,
                max_tokens=self.options.max_tokens,
            ))

        return requests

    @staticmethod
    def serialize_manifest(requests: List[JobRequest]) -> bytes:
        return "".join(r.to_manifest_line() + "\n" for r in requests).encode("utf-8")

    def _save_manifest(self, chunk_index: int, filename: str, data: bytes):
        if not self.manifest_dir:
            return
        self.manifest_dir.mkdir(parents=True, exist_ok=True)
        path = self.manifest_dir / filename
        path.write_bytes(data)
        logger.debug(f"Chunk {chunk_index} manifest saved to {path}")

    def prepare(self, chunk: Chunk) -> Tuple[List[JobRequest], bytes]:
        requests = self.build_requests(chunk)
        return requests, self.serialize_manifest(requests)

    async def submit(self, chunk: Chunk) -> Optional[JobHandle]:
        """
        Upload the chunk's manifest and create a batch job.

        Args:
            chunk: Planned chunk

        Returns:
            JobHandle, or None when no item of the chunk could be encoded

        Raises:
            SubmissionFailure: If the upload or job creation is rejected
        """
        requests, manifest = self.prepare(chunk)
        if not requests:
            logger.warning(f"Chunk {chunk.index}: no encodable images, nothing submitted")
            return None

        filename = MANIFEST_FILENAME_TEMPLATE.format(index=chunk.index)
        self._save_manifest(chunk.index, filename, manifest)

        logger.info(
            f"Chunk {chunk.index}: uploading {len(requests)} request(s) "
            f"({len(manifest) / MIB:.1f} MiB)"
        )
        try:
            file_id = await self.provider.upload_manifest(manifest, filename)
        except ProviderError as e:
            raise SubmissionFailure(
                f"Chunk {chunk.index}: manifest upload rejected: {e}",
                chunk_index=chunk.index,
                payload=e.payload,
            ) from e

        try:
            job_id = await self.provider.create_job(file_id)
        except ProviderError as e:
            raise SubmissionFailure(
                f"Chunk {chunk.index}: batch creation rejected: {e}",
                chunk_index=chunk.index,
                payload=e.payload,
            ) from e

        logger.info(f"Chunk {chunk.index}: batch job created with ID: {job_id}")
        return JobHandle(
            job_id=job_id,
            chunk_index=chunk.index,
            input_file_id=file_id,
            custom_ids=tuple(r.custom_id for r in requests),
        )
