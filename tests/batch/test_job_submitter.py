"""
Unit tests for core.batch.job_submitter module.

Tests manifest building, upload and job creation.
"""

import json
from pathlib import Path

import pytest

from core.batch.job_submitter import JobSubmitter
from core.batch.models import Chunk, JobHandle
from core.errors import ProviderError, SubmissionFailure
from core.models import ImageItem


def make_chunk(*items, index=0) -> Chunk:
    chunk = Chunk(index=index)
    for item in items:
        chunk.add(item, item.byte_size * 1.33)
    return chunk


class TestBuildRequests:
    """Tests for request construction."""

    def test_one_request_per_item(self, mock_provider, caption_options, make_image):
        chunk = make_chunk(make_image("a.png"), make_image("b.jpg"))
        submitter = JobSubmitter(mock_provider, caption_options)

        requests = submitter.build_requests(chunk)

        assert [r.custom_id for r in requests] == ["a.png", "b.jpg"]
        assert requests[0].encoded_image.startswith("data:image/png;base64,")
        assert requests[1].encoded_image.startswith("data:image/jpeg;base64,")
        assert all(r.prompt == caption_options.prompt for r in requests)
        assert all(r.fidelity == "low" for r in requests)

    def test_unreadable_item_excluded(self, mock_provider, caption_options, make_image, images_dir):
        missing = ImageItem(path=images_dir / "gone.png", byte_size=10)
        chunk = make_chunk(make_image("a.png"), missing, make_image("c.png"))
        submitter = JobSubmitter(mock_provider, caption_options)

        requests = submitter.build_requests(chunk)

        assert [r.custom_id for r in requests] == ["a.png", "c.png"]
        assert len(submitter.encode_failures) == 1
        assert submitter.encode_failures[0].path == missing.path

    def test_duplicate_custom_id_excluded(self, mock_provider, caption_options, make_image, tmp_path):
        first = make_image("same.png")
        other_dir = tmp_path / "other"
        other_dir.mkdir()
        (other_dir / "same.png").write_bytes(b"other")
        second = ImageItem.from_path(other_dir / "same.png")

        requests = JobSubmitter(mock_provider, caption_options).build_requests(make_chunk(first, second))

        assert len(requests) == 1

    def test_serialize_manifest(self, mock_provider, caption_options, make_image):
        submitter = JobSubmitter(mock_provider, caption_options)
        requests = submitter.build_requests(make_chunk(make_image("a.png"), make_image("b.png")))

        manifest = submitter.serialize_manifest(requests)

        lines = manifest.decode("utf-8").splitlines()
        assert len(lines) == 2
        assert [json.loads(line)["custom_id"] for line in lines] == ["a.png", "b.png"]
        assert manifest.endswith(b"\n")


class TestSubmit:
    """Tests for JobSubmitter.submit."""

    @pytest.mark.asyncio
    async def test_submit_returns_handle(self, mock_provider, caption_options, make_image):
        chunk = make_chunk(make_image("a.png"), make_image("b.png"), index=3)
        submitter = JobSubmitter(mock_provider, caption_options)

        handle = await submitter.submit(chunk)

        assert handle == JobHandle(
            job_id="batch_001",
            chunk_index=3,
            input_file_id="file-input",
            custom_ids=("a.png", "b.png"),
        )
        data, filename = mock_provider.upload_manifest.call_args.args
        assert filename == "batch_input_3.jsonl"
        assert len(data.splitlines()) == 2
        mock_provider.create_job.assert_awaited_once_with("file-input")

    @pytest.mark.asyncio
    async def test_manifest_copy_saved(self, mock_provider, caption_options, make_image, tmp_path):
        manifest_dir = tmp_path / "manifests"
        submitter = JobSubmitter(mock_provider, caption_options, manifest_dir=manifest_dir)

        await submitter.submit(make_chunk(make_image("a.png")))

        saved = manifest_dir / "batch_input_0.jsonl"
        assert saved.exists()
        assert json.loads(saved.read_text())["custom_id"] == "a.png"

    @pytest.mark.asyncio
    async def test_nothing_encodable_is_not_submitted(self, mock_provider, caption_options, images_dir):
        chunk = make_chunk(ImageItem(path=images_dir / "missing.png", byte_size=1))
        submitter = JobSubmitter(mock_provider, caption_options)

        assert await submitter.submit(chunk) is None
        mock_provider.upload_manifest.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upload_rejected(self, mock_provider, caption_options, make_image):
        mock_provider.upload_manifest.side_effect = ProviderError(
            "Failed to upload batch file", payload={"error": {"message": "too large"}}
        )
        submitter = JobSubmitter(mock_provider, caption_options)

        with pytest.raises(SubmissionFailure) as exc_info:
            await submitter.submit(make_chunk(make_image("a.png"), index=2))

        assert exc_info.value.chunk_index == 2
        assert exc_info.value.payload == {"error": {"message": "too large"}}
        mock_provider.create_job.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_job_creation_rejected(self, mock_provider, caption_options, make_image):
        mock_provider.create_job.side_effect = ProviderError("Failed to create batch", payload="quota")
        submitter = JobSubmitter(mock_provider, caption_options)

        with pytest.raises(SubmissionFailure) as exc_info:
            await submitter.submit(make_chunk(make_image("a.png")))

        assert exc_info.value.payload == "quota"
        mock_provider.create_job.assert_awaited_once()
