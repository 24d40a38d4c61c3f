"""
Filesystem helpers: input image discovery, folder checks and prompt loading.
"""

from pathlib import Path
from typing import Dict, Iterable, List, Union

from config.constants import IGNORED_DIRECTORY_ENTRIES, IMAGE_EXTENSIONS
from config.logging_config import get_logger

from .errors import ConfigurationError
from .models import ImageItem

logger = get_logger(__name__)


def is_image_file(path: Path, extensions: Iterable[str] = IMAGE_EXTENSIONS) -> bool:
    return path.is_file() and path.suffix[1:].lower() in extensions


def list_images(
    images_dir: Union[str, Path],
    extensions: Iterable[str] = IMAGE_EXTENSIONS,
) -> List[ImageItem]:
    """
    List the images directly inside a folder, sorted by file name.

    Files with extensions outside the allow-list are ignored; sub-folders
    are not descended into.

    Raises:
        ConfigurationError: If the folder does not exist
    """
    images_dir = Path(images_dir)
    if not images_dir.is_dir():
        raise ConfigurationError(f'The directory at "{images_dir}" does not exist.')

    extensions = tuple(ext.lower() for ext in extensions)
    items = [
        ImageItem.from_path(path)
        for path in sorted(images_dir.iterdir(), key=lambda p: p.name)
        if is_image_file(path, extensions)
    ]
    logger.info(f"Found {len(items)} image(s) in {images_dir}")
    for stem, names in stem_collisions(items).items():
        logger.warning(
            f"{', '.join(names)} share the caption name '{stem}'; "
            f"the caption written last overwrites the others"
        )
    return items


def stem_collisions(items: Iterable[ImageItem]) -> Dict[str, List[str]]:
    """Stems claimed by more than one image, mapped to the image names."""
    by_stem: Dict[str, List[str]] = {}
    for item in items:
        by_stem.setdefault(item.stem, []).append(item.name)
    return {stem: names for stem, names in by_stem.items() if len(names) > 1}


def is_directory_empty(directory: Union[str, Path]) -> bool:
    """True when the folder holds nothing but placeholder files like .gitkeep."""
    directory = Path(directory)
    if not directory.is_dir():
        raise ConfigurationError(f'The directory at "{directory}" does not exist.')
    return not any(
        entry.name not in IGNORED_DIRECTORY_ENTRIES for entry in directory.iterdir()
    )


def directory_contains_extension(directory: Union[str, Path], extension: str) -> bool:
    """Check for existing files that a run could overwrite. Missing folder -> False."""
    directory = Path(directory)
    if not directory.is_dir():
        return False
    suffix = f".{extension.lower().lstrip('.')}"
    return any(
        entry.is_file() and entry.suffix.lower() == suffix
        for entry in directory.iterdir()
    )


def load_prompt(prompt_file: Union[str, Path]) -> str:
    """
    Read the captioning prompt.

    Raises:
        ConfigurationError: If the file is missing or blank
    """
    prompt_file = Path(prompt_file)
    try:
        prompt = prompt_file.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Could not read prompt file {prompt_file}: {e}") from e

    if not prompt.strip():
        raise ConfigurationError(
            f"Prompt was empty. Please edit {prompt_file} with your prompt."
        )
    return prompt
