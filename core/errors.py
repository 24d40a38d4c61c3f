"""
Captioning error taxonomy.

Item-level failures (EncodeFailure, ResultItemFailure, SyncQueryFailure)
are handled where they occur and never abort sibling items. Chunk-level
failures (SubmissionFailure, BatchJobFailure) abort the whole run.
"""

from typing import Any, List, Optional


class CaptionError(Exception):
    """Base exception for captioning errors"""
    pass


class ConfigurationError(CaptionError):
    """Pre-flight check failed (API key, images folder, prompt, model access)"""
    pass


class ProviderError(CaptionError):
    """External API call failed"""

    def __init__(self, message: str, payload: Any = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.payload = payload
        self.status_code = status_code


class EncodeFailure(CaptionError):
    """Image file could not be read or encoded"""

    def __init__(self, path, reason: str):
        super().__init__(f"Failed to encode image {path}: {reason}")
        self.path = path
        self.reason = reason


class SubmissionFailure(CaptionError):
    """Manifest upload or batch job creation was rejected"""

    def __init__(self, message: str, chunk_index: int, payload: Any = None):
        super().__init__(message)
        self.chunk_index = chunk_index
        self.payload = payload


class BatchJobFailure(CaptionError):
    """Batch job reached a terminal failure state"""

    def __init__(
        self,
        job_id: str,
        status: str,
        chunk_index: int,
        diagnostics: Optional[List[Any]] = None,
        errors: Optional[List[str]] = None,
    ):
        super().__init__(f"Batch job {job_id} (chunk {chunk_index}) ended with status '{status}'")
        self.job_id = job_id
        self.status = status
        self.chunk_index = chunk_index
        self.diagnostics = diagnostics or []
        self.errors = errors or []


class ResultItemFailure(CaptionError):
    """Provider reported an error for one item of a completed job"""

    def __init__(self, custom_id: str, message: str):
        super().__init__(f"{custom_id}: {message}")
        self.custom_id = custom_id
        self.message = message


class SyncQueryFailure(CaptionError):
    """Single synchronous caption request failed"""
    pass
