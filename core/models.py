"""
Shared data models for the captioning pipelines.
"""

from dataclasses import dataclass
from pathlib import Path

from config.constants import CAPTION_MAX_TOKENS, FIDELITY_LEVELS, OUTPUT_EXTENSIONS


@dataclass(frozen=True)
class ImageItem:
    """An image discovered in the input folder."""
    path: Path
    byte_size: int

    @classmethod
    def from_path(cls, path) -> "ImageItem":
        path = Path(path)
        return cls(path=path, byte_size=path.stat().st_size)

    @property
    def name(self) -> str:
        """Base name with extension; the batch correlation key."""
        return self.path.name

    @property
    def stem(self) -> str:
        return self.path.stem


@dataclass(frozen=True)
class CaptionOptions:
    """Per-run request and output settings, threaded through every component."""
    prompt: str
    model: str
    fidelity: str
    output_dir: Path
    file_ext: str = "txt"
    max_tokens: int = CAPTION_MAX_TOKENS

    def __post_init__(self):
        if self.fidelity not in FIDELITY_LEVELS:
            raise ValueError(f"Unsupported fidelity: {self.fidelity}")
        if self.file_ext not in OUTPUT_EXTENSIONS:
            raise ValueError(f"Unsupported output extension: {self.file_ext}")
        if not self.prompt or not self.prompt.strip():
            raise ValueError("Prompt must not be empty")
