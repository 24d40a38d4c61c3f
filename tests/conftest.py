"""
Pytest configuration and shared fixtures for the image captioner tests.
"""
import json
import sys
import pytest
from pathlib import Path
from typing import Callable, Dict, List, Optional
from unittest.mock import AsyncMock, Mock

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.models import CaptionOptions, ImageItem
from core.batch.models import JobStatusSnapshot


MIB = 1024 * 1024


# ============================================================================
# Fixtures: Options & Images
# ============================================================================

@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    path = tmp_path / "output"
    path.mkdir()
    return path


@pytest.fixture
def images_dir(tmp_path: Path) -> Path:
    path = tmp_path / "images"
    path.mkdir()
    return path


@pytest.fixture
def caption_options(output_dir: Path) -> CaptionOptions:
    """Options as the CLI would build them."""
    return CaptionOptions(
        prompt="Describe this image in one sentence.",
        model="gpt-4o",
        fidelity="low",
        output_dir=output_dir,
        file_ext="txt",
    )


@pytest.fixture
def make_image(images_dir: Path) -> Callable[..., ImageItem]:
    """Factory writing a small fake image file and returning its ImageItem."""
    def _make(name: str, data: bytes = b"\x89PNG fake image bytes") -> ImageItem:
        path = images_dir / name
        path.write_bytes(data)
        return ImageItem.from_path(path)
    return _make


def sized_item(name: str, size_mib: float) -> ImageItem:
    """ImageItem with a declared size; no file on disk."""
    return ImageItem(path=Path(name), byte_size=int(size_mib * MIB))


# ============================================================================
# Fixtures: Provider
# ============================================================================

def success_line(custom_id: str, content: str) -> str:
    return json.dumps({
        "id": f"batch_req_{custom_id}",
        "custom_id": custom_id,
        "response": {
            "status_code": 200,
            "request_id": "req_123",
            "body": {
                "choices": [
                    {"index": 0, "message": {"role": "assistant", "content": content}}
                ]
            },
        },
        "error": None,
    })


def error_line(custom_id: str, message: str, code: str = "server_error") -> str:
    return json.dumps({
        "id": f"batch_req_{custom_id}",
        "custom_id": custom_id,
        "response": None,
        "error": {"code": code, "message": message},
    })


def snapshot(status: str, output_file_id: Optional[str] = None,
             error_file_id: Optional[str] = None) -> JobStatusSnapshot:
    return JobStatusSnapshot(
        raw_status=status,
        output_file_id=output_file_id,
        error_file_id=error_file_id,
    )


@pytest.fixture
def mock_provider() -> Mock:
    """Provider double with every capability as an AsyncMock."""
    provider = Mock()
    provider.query_image = AsyncMock(return_value="A caption")
    provider.upload_manifest = AsyncMock(return_value="file-input")
    provider.create_job = AsyncMock(return_value="batch_001")
    provider.get_job_status = AsyncMock(return_value=snapshot("completed", "file-output"))
    provider.fetch_file_content = AsyncMock(return_value="")
    provider.list_models = AsyncMock(return_value=["gpt-4o", "gpt-4o-mini"])
    provider.has_model_access = AsyncMock(return_value=True)
    provider.close = AsyncMock()
    return provider


@pytest.fixture
def no_sleep() -> AsyncMock:
    """Replacement for asyncio.sleep that records the requested delays."""
    return AsyncMock(return_value=None)


def file_contents(files: Dict[str, str]) -> AsyncMock:
    """fetch_file_content double serving fixed content per file id."""
    async def _fetch(file_id: str) -> str:
        return files[file_id]
    return AsyncMock(side_effect=_fetch)


def written_names(directory: Path) -> List[str]:
    return sorted(p.name for p in directory.iterdir())
