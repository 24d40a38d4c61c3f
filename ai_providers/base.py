"""
Base AI Provider - Abstract Interface
Vision query and batch job capabilities consumed by the captioning core.
"""

from abc import ABC, abstractmethod
from typing import Optional, List
from dataclasses import dataclass

from config.constants import CAPTION_MAX_TOKENS, REQUEST_TIMEOUT_SECONDS
from core.batch.models import JobStatusSnapshot


@dataclass
class AIConfig:
    """Provider configuration"""
    api_key: str
    model: str
    max_tokens: int = CAPTION_MAX_TOKENS
    base_url: Optional[str] = None  # For custom endpoints
    timeout: float = REQUEST_TIMEOUT_SECONDS
    max_retries: int = 0  # Retry policy lives in the pipelines


class BaseVisionProvider(ABC):
    """
    Abstract base class for vision captioning providers.
    All providers must implement these methods.
    """

    def __init__(self, config: AIConfig):
        self.config = config
        self._client = None

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the client connection"""
        pass

    @abstractmethod
    async def query_image(
        self,
        image_url: str,
        prompt: str,
        model: Optional[str] = None,
        fidelity: str = "low",
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Caption one image immediately.

        Args:
            image_url: Data URI of the encoded image
            prompt: Captioning instructions
            model: Model id, defaults to the configured model
            fidelity: Image detail level (low, high, auto)
            max_tokens: Completion limit

        Returns:
            Generated caption text

        Raises:
            SyncQueryFailure: On any API error or empty response
        """
        pass

    @abstractmethod
    async def upload_manifest(self, data: bytes, filename: str) -> str:
        """Upload a JSONL batch manifest and return its file id."""
        pass

    @abstractmethod
    async def create_job(self, input_file_id: str) -> str:
        """Create a batch job for an uploaded manifest and return the job id."""
        pass

    @abstractmethod
    async def get_job_status(self, job_id: str) -> JobStatusSnapshot:
        """Fetch the current status of a batch job."""
        pass

    @abstractmethod
    async def fetch_file_content(self, file_id: str) -> str:
        """Download a file (batch output or error file) as text."""
        pass

    @abstractmethod
    async def list_models(self) -> List[str]:
        """Ids of the models the API key can use."""
        pass

    async def has_model_access(self, model: Optional[str] = None) -> bool:
        """Check the API key can use the given (or configured) model"""
        wanted = (model or self.config.model).lower()
        models = await self.list_models()
        return any(model_id.lower() == wanted for model_id in models)

    async def close(self) -> None:
        if self._client is not None and hasattr(self._client, "close"):
            await self._client.close()
        self._client = None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} model={self.config.model}>"
