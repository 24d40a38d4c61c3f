"""
Synchronous captioning, one image at a time.

Calls are spaced by a fixed interval derived from the requests-per-minute
ceiling. Failed calls are retried after the same interval up to a fixed
number of attempts; an item that exhausts them is logged and skipped.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional
import asyncio
import time

from config.logging_config import get_logger
from config.constants import RATE_LIMIT_PER_MINUTE, SYNC_MAX_ATTEMPTS

from .caption_writer import write_caption
from .errors import EncodeFailure, SyncQueryFailure
from .image_encoder import image_data_uri
from .models import CaptionOptions, ImageItem

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


@dataclass
class QueryOutcome:
    """Tagged result of captioning one image."""
    name: str
    success: bool
    attempts: int = 0
    output_path: Optional[Path] = None
    error: Optional[str] = None


@dataclass
class SyncRunReport:
    outcomes: List[QueryOutcome] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> List[QueryOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> List[QueryOutcome]:
        return [o for o in self.outcomes if not o.success]


def request_interval(rate_limit_per_minute: int) -> float:
    """Seconds between calls for a requests-per-minute ceiling"""
    if rate_limit_per_minute <= 0:
        raise ValueError(f"Rate limit must be positive, got {rate_limit_per_minute}")
    return 60.0 / rate_limit_per_minute


class SyncCaptionProcessor:
    """
    Captions images sequentially with bounded retry.

    Usage:
        processor = SyncCaptionProcessor(provider, options, rate_limit_per_minute=500)
        report = await processor.process_all(items)
    """

    def __init__(
        self,
        provider: Any,
        options: CaptionOptions,
        rate_limit_per_minute: int = RATE_LIMIT_PER_MINUTE,
        max_attempts: int = SYNC_MAX_ATTEMPTS,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """
        Args:
            provider: Vision query capability (query_image)
            options: Per-run request and output options
            rate_limit_per_minute: Request ceiling used to space calls
            max_attempts: Total attempts per image, first call included
            sleep: Awaitable sleep used for spacing
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

        self.provider = provider
        self.options = options
        self.interval = request_interval(rate_limit_per_minute)
        self.max_attempts = max_attempts
        self._sleep = sleep

        logger.debug(
            f"SyncCaptionProcessor initialized: "
            f"interval={self.interval * 1000:.2f}ms, attempts={max_attempts}"
        )

    async def process_all(self, items: List[ImageItem]) -> SyncRunReport:
        """Caption every item in order; one item's failure never stops the rest."""
        start_time = time.time()
        report = SyncRunReport()

        for index, item in enumerate(items):
            if index > 0:
                await self._sleep(self.interval)
            logger.info(f"Attempting to query for {item.name}")
            report.outcomes.append(await self.process_item(item))

        report.duration_seconds = time.time() - start_time
        logger.info(
            f"Processing complete: {len(report.succeeded)} succeeded, "
            f"{len(report.failed)} failed"
        )
        return report

    async def process_item(self, item: ImageItem) -> QueryOutcome:
        """Caption one image, retrying failed calls up to max_attempts."""
        try:
            data_uri = image_data_uri(item.path)
        except EncodeFailure as e:
            logger.error(f"Skipping {item.name}: {e}")
            return QueryOutcome(name=item.name, success=False, error=str(e))

        last_error: Optional[str] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                content = await self.provider.query_image(
                    data_uri,
                    self.options.prompt,
                    model=self.options.model,
                    fidelity=self.options.fidelity,
                    max_tokens=self.options.max_tokens,
                )
            except SyncQueryFailure as e:
                last_error = str(e)
                logger.error(f"Attempt {attempt} failed for: {item.name}\nError: {e}")
                if attempt < self.max_attempts:
                    logger.info(
                        f"Retrying for {item.name}... Attempt {attempt + 1} of {self.max_attempts}"
                    )
                    await self._sleep(self.interval)
                continue

            try:
                path = write_caption(self.options, item.name, content)
            except OSError as e:
                logger.error(f"Could not write caption for {item.name}: {e}")
                return QueryOutcome(
                    name=item.name, success=False, attempts=attempt, error=str(e)
                )

            return QueryOutcome(
                name=item.name, success=True, attempts=attempt, output_path=path
            )

        logger.error(f"All retry attempts failed for: {item.name}")
        return QueryOutcome(
            name=item.name,
            success=False,
            attempts=self.max_attempts,
            error=last_error,
        )
