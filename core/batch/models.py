"""
Batch job data models.

Wire records returned by the provider are validated with pydantic and
tolerate missing optional fields; everything the pipeline passes around
internally is a plain dataclass.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from config.constants import CHAT_COMPLETIONS_ENDPOINT

from ..models import ImageItem


class JobStatus(str, Enum):
    """Batch job status as reported by the provider."""
    VALIDATING = "validating"
    IN_PROGRESS = "in_progress"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["JobStatus"]:
        """Map a provider status string to a JobStatus, None if unknown."""
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_failure(self) -> bool:
        return self in FAILURE_STATUSES


FAILURE_STATUSES = frozenset({JobStatus.FAILED, JobStatus.EXPIRED, JobStatus.CANCELLED})
TERMINAL_STATUSES = FAILURE_STATUSES | {JobStatus.COMPLETED}


@dataclass
class Chunk:
    """Size-bounded group of images submitted as one batch job."""
    index: int
    items: List[ImageItem] = field(default_factory=list)
    estimated_bytes: float = 0.0

    def __len__(self) -> int:
        return len(self.items)

    def add(self, item: ImageItem, estimated_size: float):
        self.items.append(item)
        self.estimated_bytes += estimated_size


@dataclass(frozen=True)
class JobRequest:
    """One manifest record; custom_id is the correlation key for results."""
    custom_id: str
    prompt: str
    model: str
    fidelity: str
    encoded_image: str
    max_tokens: int

    def to_body(self) -> Dict[str, Any]:
        return build_chat_body(
            model=self.model,
            prompt=self.prompt,
            image_url=self.encoded_image,
            fidelity=self.fidelity,
            max_tokens=self.max_tokens,
        )

    def to_manifest_line(self) -> str:
        return json.dumps({
            "custom_id": self.custom_id,
            "method": "POST",
            "url": CHAT_COMPLETIONS_ENDPOINT,
            "body": self.to_body(),
        })


def build_chat_body(
    model: str,
    prompt: str,
    image_url: str,
    fidelity: str,
    max_tokens: int,
) -> Dict[str, Any]:
    """Chat completions body with one text part and one image part."""
    return {
        "model": model,
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {
                        "type": "image_url",
                        "image_url": {"url": image_url, "detail": fidelity},
                    },
                ],
            }
        ],
        "max_tokens": max_tokens,
    }


@dataclass(frozen=True)
class JobHandle:
    """Identifies a submitted batch job."""
    job_id: str
    chunk_index: int
    input_file_id: Optional[str] = None
    custom_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RequestCounts:
    total: int = 0
    completed: int = 0
    failed: int = 0


@dataclass(frozen=True)
class JobStatusSnapshot:
    """Provider view of a batch job at one poll."""
    raw_status: str
    output_file_id: Optional[str] = None
    error_file_id: Optional[str] = None
    request_counts: RequestCounts = field(default_factory=RequestCounts)
    errors: Tuple[str, ...] = ()

    @property
    def status(self) -> Optional[JobStatus]:
        return JobStatus.parse(self.raw_status)


# ==================== WIRE RECORDS ====================

class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class BatchItemError(_WireModel):
    code: Optional[str] = None
    message: Optional[str] = None


class BatchItemResponse(_WireModel):
    status_code: int = 200
    request_id: Optional[str] = None
    body: Optional[Dict[str, Any]] = None


class BatchOutputLine(_WireModel):
    """One line of a batch output or error file."""
    id: Optional[str] = None
    custom_id: str
    response: Optional[BatchItemResponse] = None
    error: Optional[BatchItemError] = None


@dataclass(frozen=True)
class ResultRecord:
    """Outcome of one submitted request."""
    custom_id: str
    success: bool
    content: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def ok(cls, custom_id: str, content: str) -> "ResultRecord":
        return cls(custom_id=custom_id, success=True, content=content)

    @classmethod
    def failed(cls, custom_id: str, message: str) -> "ResultRecord":
        return cls(custom_id=custom_id, success=False, error_message=message)


def extract_message_content(body: Optional[Dict[str, Any]]) -> Optional[str]:
    """Pull choices[0].message.content out of a chat completion body."""
    if not isinstance(body, dict):
        return None
    choices = body.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message") or {}
    content = message.get("content")
    return content if isinstance(content, str) else None


def extract_error_message(body: Optional[Dict[str, Any]]) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message")
    return None
