"""
Unit tests for ai_providers.openai_provider module.

The AsyncOpenAI client is replaced by a Mock; no network access.
"""

import httpx
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

from openai import APIConnectionError

from ai_providers import AIConfig, OpenAIProvider
from core.batch.models import JobStatus
from core.errors import ProviderError, SyncQueryFailure


def connection_error() -> APIConnectionError:
    return APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/files"))


@pytest.fixture
def client():
    client = Mock()
    client.chat.completions.create = AsyncMock()
    client.files.create = AsyncMock(return_value=SimpleNamespace(id="file-abc"))
    client.files.content = AsyncMock()
    client.batches.create = AsyncMock(return_value=SimpleNamespace(id="batch_abc"))
    client.batches.retrieve = AsyncMock()
    client.models.list = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def provider(client):
    provider = OpenAIProvider(AIConfig(api_key="sk-test", model="gpt-4o"))
    provider._client = client
    return provider


def completion(content, finish_reason="stop"):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason=finish_reason)])


class TestQueryImage:

    @pytest.mark.asyncio
    async def test_returns_content(self, provider, client):
        client.chat.completions.create.return_value = completion("A red bicycle")

        result = await provider.query_image(
            "data:image/png;base64,AAAA", "Describe", fidelity="high", max_tokens=100
        )

        assert result == "A red bicycle"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_tokens"] == 100
        image_part = kwargs["messages"][0]["content"][1]
        assert image_part["image_url"] == {"url": "data:image/png;base64,AAAA", "detail": "high"}

    @pytest.mark.asyncio
    async def test_empty_content(self, provider, client):
        client.chat.completions.create.return_value = completion(None, "length")
        with pytest.raises(SyncQueryFailure, match="length"):
            await provider.query_image("data:", "Describe")

    @pytest.mark.asyncio
    async def test_no_choices(self, provider, client):
        client.chat.completions.create.return_value = SimpleNamespace(choices=[])
        with pytest.raises(SyncQueryFailure):
            await provider.query_image("data:", "Describe")

    @pytest.mark.asyncio
    async def test_api_error(self, provider, client):
        client.chat.completions.create.side_effect = connection_error()
        with pytest.raises(SyncQueryFailure):
            await provider.query_image("data:", "Describe")


class TestBatchCalls:

    @pytest.mark.asyncio
    async def test_upload_manifest(self, provider, client):
        file_id = await provider.upload_manifest(b"{}\n", "batch_input_0.jsonl")

        assert file_id == "file-abc"
        client.files.create.assert_awaited_once_with(
            file=("batch_input_0.jsonl", b"{}\n"), purpose="batch"
        )

    @pytest.mark.asyncio
    async def test_upload_failure(self, provider, client):
        client.files.create.side_effect = connection_error()
        with pytest.raises(ProviderError):
            await provider.upload_manifest(b"{}\n", "batch_input_0.jsonl")

    @pytest.mark.asyncio
    async def test_create_job(self, provider, client):
        assert await provider.create_job("file-abc") == "batch_abc"
        client.batches.create.assert_awaited_once_with(
            input_file_id="file-abc",
            endpoint="/v1/chat/completions",
            completion_window="24h",
        )

    @pytest.mark.asyncio
    async def test_get_job_status(self, provider, client):
        client.batches.retrieve.return_value = SimpleNamespace(
            status="failed",
            output_file_id=None,
            error_file_id="file-err",
            request_counts=SimpleNamespace(total=3, completed=0, failed=3),
            errors=SimpleNamespace(data=[SimpleNamespace(line=2, message="invalid body")]),
        )

        snap = await provider.get_job_status("batch_abc")

        assert snap.status is JobStatus.FAILED
        assert snap.error_file_id == "file-err"
        assert snap.request_counts.failed == 3
        assert snap.errors == ("line 2: invalid body",)

    @pytest.mark.asyncio
    async def test_get_job_status_minimal_object(self, provider, client):
        client.batches.retrieve.return_value = SimpleNamespace(status="in_progress")

        snap = await provider.get_job_status("batch_abc")

        assert snap.status is JobStatus.IN_PROGRESS
        assert snap.output_file_id is None
        assert snap.request_counts.total == 0
        assert snap.errors == ()

    @pytest.mark.asyncio
    async def test_fetch_file_content_text(self, provider, client):
        client.files.content.return_value = SimpleNamespace(text='{"a": 1}\n')
        assert await provider.fetch_file_content("file-out") == '{"a": 1}\n'

    @pytest.mark.asyncio
    async def test_fetch_file_content_bytes(self, provider, client):
        client.files.content.return_value = b"line\n"
        assert await provider.fetch_file_content("file-out") == "line\n"


class TestModelAccess:

    @pytest.mark.asyncio
    async def test_has_model_access(self, provider, client):
        client.models.list.return_value = SimpleNamespace(
            data=[SimpleNamespace(id="gpt-4o"), SimpleNamespace(id="gpt-4o-mini")]
        )
        assert await provider.has_model_access()
        assert await provider.has_model_access("GPT-4O-MINI")
        assert not await provider.has_model_access("gpt-5-vision")

    @pytest.mark.asyncio
    async def test_list_models_failure(self, provider, client):
        client.models.list.side_effect = connection_error()
        with pytest.raises(ProviderError):
            await provider.list_models()
