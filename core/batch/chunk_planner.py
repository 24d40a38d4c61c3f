"""
Chunk planning for batch submission.

Splits an ordered image list into groups whose estimated encoded size
stays under the upload budget. One greedy pass, arrival order kept.
"""

from typing import Iterable, List

from config.logging_config import get_logger
from config.constants import DEFAULT_CHUNK_BUDGET_BYTES, ENCODING_INFLATION, MIB

from ..models import ImageItem
from .models import Chunk

logger = get_logger(__name__)


def estimated_encoded_size(item: ImageItem) -> float:
    """Raw size inflated by the base64 overhead."""
    return item.byte_size * ENCODING_INFLATION


def plan_chunks(
    items: Iterable[ImageItem],
    budget_bytes: float = DEFAULT_CHUNK_BUDGET_BYTES,
) -> List[Chunk]:
    """
    Partition items into size-bounded chunks.

    A new chunk starts when adding the next item would push the running
    total over the budget and the current chunk already holds something.
    An item larger than the whole budget gets a chunk of its own.

    Args:
        items: Images in submission order
        budget_bytes: Maximum estimated encoded bytes per chunk

    Returns:
        Chunks in order; concatenated they reproduce the input exactly
    """
    if budget_bytes <= 0:
        raise ValueError(f"Chunk budget must be positive, got {budget_bytes}")

    chunks: List[Chunk] = []
    current = Chunk(index=0)

    for item in items:
        size = estimated_encoded_size(item)
        if current.items and current.estimated_bytes + size > budget_bytes:
            chunks.append(current)
            current = Chunk(index=len(chunks))
        if size > budget_bytes:
            logger.warning(
                f"{item.name} alone is ~{size / MIB:.1f} MiB encoded, "
                f"over the {budget_bytes / MIB:.1f} MiB chunk budget"
            )
        current.add(item, size)

    if current.items:
        chunks.append(current)

    logger.info(
        f"Planned {len(chunks)} chunk(s) for "
        f"{sum(len(c) for c in chunks)} image(s) "
        f"(budget {budget_bytes / MIB:.0f} MiB)"
    )
    return chunks
