"""
OpenAI Provider - GPT-4o vision captions and the Batch API
"""

from typing import Optional, List, Any

from openai import AsyncOpenAI, APIError, APIStatusError

from config.constants import BATCH_COMPLETION_WINDOW, CHAT_COMPLETIONS_ENDPOINT
from config.logging_config import get_logger
from core.batch.models import (
    JobStatusSnapshot,
    RequestCounts,
    build_chat_body,
)
from core.errors import ProviderError, SyncQueryFailure

from .base import BaseVisionProvider, AIConfig

logger = get_logger(__name__)


def _error_payload(error: APIError) -> Any:
    return getattr(error, "body", None) or str(error)


def _status_code(error: APIError) -> Optional[int]:
    if isinstance(error, APIStatusError):
        return error.status_code
    return None


class OpenAIProvider(BaseVisionProvider):
    """
    OpenAI GPT Provider

    Supports:
    - GPT-4o family vision captions (chat completions)
    - Batch API: file upload, batch creation, status polling, file download
    - Model listing for the access pre-flight check
    """

    DEFAULT_MODEL = "gpt-4o"

    async def initialize(self) -> None:
        """Initialize OpenAI client"""
        self._client = AsyncOpenAI(
            api_key=self.config.api_key,
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            max_retries=self.config.max_retries,
        )

    async def _get_client(self) -> AsyncOpenAI:
        if not self._client:
            await self.initialize()
        return self._client

    async def query_image(
        self,
        image_url: str,
        prompt: str,
        model: Optional[str] = None,
        fidelity: str = "low",
        max_tokens: Optional[int] = None,
    ) -> str:
        """Caption one image with a chat completion"""
        client = await self._get_client()
        body = build_chat_body(
            model=model or self.config.model,
            prompt=prompt,
            image_url=image_url,
            fidelity=fidelity,
            max_tokens=max_tokens or self.config.max_tokens,
        )

        try:
            response = await client.chat.completions.create(**body)
        except APIError as e:
            raise SyncQueryFailure(f"Chat completion failed: {e}") from e

        if not response.choices:
            raise SyncQueryFailure("Chat completion returned no choices")
        content = response.choices[0].message.content
        if not content:
            raise SyncQueryFailure(
                f"Chat completion returned no content "
                f"(finish_reason={response.choices[0].finish_reason})"
            )
        return content

    async def upload_manifest(self, data: bytes, filename: str) -> str:
        client = await self._get_client()
        try:
            file_obj = await client.files.create(file=(filename, data), purpose="batch")
        except APIError as e:
            raise ProviderError(
                f"Failed to upload batch file: {e}",
                payload=_error_payload(e),
                status_code=_status_code(e),
            ) from e
        logger.debug(f"Uploaded {filename} ({len(data)} bytes) as {file_obj.id}")
        return file_obj.id

    async def create_job(self, input_file_id: str) -> str:
        client = await self._get_client()
        try:
            batch = await client.batches.create(
                input_file_id=input_file_id,
                endpoint=CHAT_COMPLETIONS_ENDPOINT,
                completion_window=BATCH_COMPLETION_WINDOW,
            )
        except APIError as e:
            raise ProviderError(
                f"Failed to create batch: {e}",
                payload=_error_payload(e),
                status_code=_status_code(e),
            ) from e
        return batch.id

    async def get_job_status(self, job_id: str) -> JobStatusSnapshot:
        client = await self._get_client()
        try:
            batch = await client.batches.retrieve(job_id)
        except APIError as e:
            raise ProviderError(
                f"Failed to check batch status: {e}",
                payload=_error_payload(e),
                status_code=_status_code(e),
            ) from e
        return self._to_snapshot(batch)

    @staticmethod
    def _to_snapshot(batch: Any) -> JobStatusSnapshot:
        """Build a snapshot from a Batch object, tolerating missing fields"""
        counts = getattr(batch, "request_counts", None)
        request_counts = RequestCounts(
            total=getattr(counts, "total", 0) or 0,
            completed=getattr(counts, "completed", 0) or 0,
            failed=getattr(counts, "failed", 0) or 0,
        )

        errors = []
        batch_errors = getattr(batch, "errors", None)
        for error in getattr(batch_errors, "data", None) or []:
            message = getattr(error, "message", None) or str(error)
            line = getattr(error, "line", None)
            errors.append(f"line {line}: {message}" if line is not None else message)

        return JobStatusSnapshot(
            raw_status=str(getattr(batch, "status", "")),
            output_file_id=getattr(batch, "output_file_id", None),
            error_file_id=getattr(batch, "error_file_id", None),
            request_counts=request_counts,
            errors=tuple(errors),
        )

    async def fetch_file_content(self, file_id: str) -> str:
        client = await self._get_client()
        try:
            response = await client.files.content(file_id)
        except APIError as e:
            raise ProviderError(
                f"Failed to download file {file_id}: {e}",
                payload=_error_payload(e),
                status_code=_status_code(e),
            ) from e

        if isinstance(response, bytes):
            return response.decode("utf-8")
        if isinstance(response, str):
            return response
        if hasattr(response, "text"):
            return response.text
        raise ProviderError(f"Unexpected file content type: {type(response).__name__}")

    async def list_models(self) -> List[str]:
        client = await self._get_client()
        try:
            page = await client.models.list()
        except APIError as e:
            raise ProviderError(
                f"Failed to list models: {e}",
                payload=_error_payload(e),
                status_code=_status_code(e),
            ) from e
        return [model.id for model in page.data]
