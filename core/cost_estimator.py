"""
Rough cost estimate shown before the operator agrees to a run.

Image token counts follow the published per-image figures for vision
models; prompt and completion tokens are not included.
"""

from dataclasses import dataclass

from config.constants import (
    BATCH_DISCOUNT,
    HIGH_FIDELITY_BASE_TOKENS,
    HIGH_FIDELITY_TILE_TOKENS,
    HIGH_FIDELITY_TILES,
    LOW_FIDELITY_TOKENS_PER_IMAGE,
    USD_PER_1K_TOKENS,
)


@dataclass
class CostEstimate:
    image_count: int
    tokens: int
    usd: float


def estimate_image_tokens(image_count: int, fidelity: str) -> int:
    """Token estimate for a set of images; 'auto' is priced as 'high'."""
    if image_count <= 0:
        return 0
    if fidelity == "low":
        return image_count * LOW_FIDELITY_TOKENS_PER_IMAGE
    return image_count * HIGH_FIDELITY_TILE_TOKENS * HIGH_FIDELITY_TILES + HIGH_FIDELITY_BASE_TOKENS


def tokens_to_usd(tokens: int) -> float:
    if not isinstance(tokens, int):
        raise TypeError("The tokens input must be an integer.")
    return round(tokens / 1000 * USD_PER_1K_TOKENS, 2)


def estimate_cost(image_count: int, fidelity: str, batch: bool = False) -> CostEstimate:
    tokens = estimate_image_tokens(image_count, fidelity)
    usd = tokens_to_usd(tokens)
    if batch:
        usd = round(usd * BATCH_DISCOUNT, 2)
    return CostEstimate(image_count=image_count, tokens=tokens, usd=usd)
