"""
Caption cleaning and output file writing.

Training tools such as kohya_ss treat parentheses and double quotes as
prompt syntax, so they are escaped before the caption hits disk.
"""

import re
from pathlib import Path

from config.logging_config import get_logger

from .models import CaptionOptions

logger = get_logger(__name__)

_ESCAPE_PATTERN = re.compile(r'([()"])')


def clean_message(message: str) -> str:
    """
    Escape parentheses and double quotes with a backslash.

    Not idempotent: cleaning an already cleaned message escapes again.

    Example:
        >>> clean_message('He said "hi" (loudly)')
        'He said \\\\"hi\\\\" \\\\(loudly\\\\)'
    """
    return _ESCAPE_PATTERN.sub(r'\\\1', message)


def caption_stem(custom_id: str) -> str:
    """File name without its extension ('photo.v2.png' -> 'photo.v2')."""
    return Path(custom_id).stem


def caption_path(output_dir: Path, name: str, file_ext: str) -> Path:
    return Path(output_dir) / f"{caption_stem(name)}.{file_ext}"


def write_caption(options: CaptionOptions, name: str, message: str) -> Path:
    """
    Clean a generated caption and write it next to its siblings.

    Any existing file at the target path is overwritten.

    Args:
        options: Run options (output folder and extension)
        name: Image file name or custom id the caption belongs to
        message: Raw text returned by the model

    Returns:
        Path of the written caption file
    """
    target = caption_path(options.output_dir, name, options.file_ext)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(clean_message(message), encoding="utf-8")
    logger.debug(f"Wrote {target}")
    return target
