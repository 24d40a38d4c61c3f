#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Image Captioner CLI

Captions every image in the images folder with a vision model and writes
one .txt / .caption file per image into the output folder.

Usage:
    python caption_images.py
    python caption_images.py --mode batch --ext caption --fidelity low --yes
    python caption_images.py --mode sync --images-dir ./images --output-dir ./output
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv
from pydantic import ValidationError

from ai_providers import create_provider
from config.constants import FIDELITY_LEVELS, OUTPUT_EXTENSIONS
from config.logging_config import get_logger, set_console_level
from config.settings import Settings
from core.batch import BatchOrchestrator
from core.cost_estimator import estimate_cost
from core.errors import BatchJobFailure, ConfigurationError, ProviderError, SubmissionFailure
from core.image_scanner import (
    directory_contains_extension,
    is_directory_empty,
    list_images,
    load_prompt,
)
from core.sync_processor import SyncCaptionProcessor

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_ABORTED = 130

AGREEMENT_MESSAGE = (
    "By confirming here and continuing, you agree to accept all costs incurred by these API requests. "
    "The author and all contributors of this code are not responsible for any costs. "
    "I also agree to abide by OpenAI's terms of service."
)


class Aborted(Exception):
    """Operator declined a confirmation"""
    pass


def ask_choice(message: str, choices: Sequence[str], default: str, assume_default: bool = False) -> str:
    """Numbered menu on stdin; empty answer picks the default"""
    if assume_default:
        return default

    print(f"\n{message}")
    for number, choice in enumerate(choices, start=1):
        marker = " (default)" if choice == default else ""
        print(f"  {number}. {choice}{marker}")

    while True:
        answer = input(f"Choose (1-{len(choices)}) [{choices.index(default) + 1}]: ").strip()
        if not answer:
            return default
        if answer.isdigit() and 1 <= int(answer) <= len(choices):
            return choices[int(answer) - 1]
        if answer in choices:
            return answer
        print(f"  [X] Invalid choice: {answer}")


def ask_confirm(message: str, default: bool, assume_yes: bool = False) -> bool:
    if assume_yes:
        return True

    hint = "Y/n" if default else "y/N"
    answer = input(f"\n{message} [{hint}]: ").strip().lower()
    if not answer:
        return default
    return answer in ("y", "yes")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Caption training images with a vision model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--images-dir', help='Folder with the input images')
    parser.add_argument('--output-dir', help='Folder for the caption files')
    parser.add_argument('--prompt-file', help='Text file holding the captioning prompt')
    parser.add_argument('--model', help='Vision model id')
    parser.add_argument('--ext', choices=OUTPUT_EXTENSIONS, help='Caption file extension')
    parser.add_argument('--fidelity', choices=FIDELITY_LEVELS, help='Image detail level')
    parser.add_argument('--mode', choices=['batch', 'sync'], help='Batch API or one request per image')
    parser.add_argument('--rate-limit', type=int, dest='rate_limit_per_minute',
                        help='Requests per minute ceiling for sync mode')
    parser.add_argument('--max-attempts', type=int, help='Attempts per image in sync mode')
    parser.add_argument('--poll-interval', type=float, dest='poll_interval_seconds',
                        help='Seconds between batch status polls')
    parser.add_argument('--chunk-budget-mb', type=float, help='Encoded MiB per batch job')
    parser.add_argument('-y', '--yes', action='store_true',
                        help='Accept defaults and confirm every prompt')
    parser.add_argument('-v', '--verbose', action='store_true', help='Show debug output')
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Settings from .env/environment, overridden by explicit CLI flags"""
    overrides = {
        'images_dir': args.images_dir,
        'output_dir': args.output_dir,
        'prompt_file': args.prompt_file,
        'model': args.model,
        'rate_limit_per_minute': args.rate_limit_per_minute,
        'max_attempts': args.max_attempts,
        'poll_interval_seconds': args.poll_interval_seconds,
        'chunk_budget_mb': args.chunk_budget_mb,
    }
    try:
        return Settings(**{key: value for key, value in overrides.items() if value is not None})
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise ConfigurationError(f"Invalid settings: {problems}") from e


async def preflight(settings: Settings, provider) -> str:
    """
    Checks that must pass before anything is asked or spent.

    Returns:
        The prompt text

    Raises:
        ConfigurationError: On the first failing check
    """
    if is_directory_empty(settings.images_dir):
        raise ConfigurationError(
            f'The directory at "{settings.images_dir}" is empty. '
            "Don't forget to put your images in the images folder."
        )

    prompt = load_prompt(settings.prompt_file)

    try:
        has_model = await provider.has_model_access(settings.model)
    except ProviderError as e:
        raise ConfigurationError(f"Could not list models for this API key: {e}") from e
    if not has_model:
        raise ConfigurationError(
            f"You do not have access to the required {settings.model} model. Unable to proceed."
        )

    return prompt


async def run(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    provider = create_provider(settings)

    try:
        prompt = await preflight(settings, provider)

        file_ext = args.ext or ask_choice(
            "Which file extension would you like to save the output as? Kohya_ss supports both.",
            OUTPUT_EXTENSIONS, settings.output_ext, assume_default=args.yes,
        )
        if directory_contains_extension(settings.output_dir, file_ext):
            if not ask_confirm(
                f".{file_ext} file(s) were detected in the output folder. "
                "These could be overwritten. Would you like to continue?",
                default=True, assume_yes=args.yes,
            ):
                raise Aborted()

        fidelity = args.fidelity or ask_choice(
            "Please choose a fidelity level of image understanding.\n"
            "Low = low image understanding, low constant token usage (Recommended)\n"
            "High = high image understanding, very high token usage\n"
            "Auto = the provider will decide",
            FIDELITY_LEVELS, settings.fidelity, assume_default=args.yes,
        )

        items = list_images(settings.images_dir)
        if not items:
            raise ConfigurationError(f"No supported images found in {settings.images_dir}")

        if args.mode:
            use_batch = args.mode == 'batch'
        else:
            use_batch = ask_confirm(
                "Would you like to use batch processing? This is 50% cheaper and has higher "
                "rate limits, but results may take up to 24 hours to complete.",
                default=True, assume_yes=args.yes,
            )

        estimate = estimate_cost(len(items), fidelity, batch=use_batch)
        print(
            f"\nThe ROUGHLY ESTIMATED COST is {estimate.tokens} image tokens "
            f"which translates to roughly ${estimate.usd} USD."
        )
        if not ask_confirm(AGREEMENT_MESSAGE, default=False, assume_yes=args.yes):
            raise Aborted()

        settings.ensure_directories()
        options = settings.caption_options(prompt, file_ext=file_ext, fidelity=fidelity)

        if use_batch:
            logger.info("Proceeding with batch processing...")
            orchestrator = BatchOrchestrator(
                provider,
                options,
                budget_bytes=settings.chunk_budget_bytes,
                poll_interval=settings.poll_interval_seconds,
                manifest_dir=settings.temp_dir,
            )
            report = await orchestrator.run(items)
            return EXIT_OK if not report.failed_ids and not report.encode_failures else EXIT_FAILURE

        logger.info("Proceeding with synchronous processing...")
        processor = SyncCaptionProcessor(
            provider,
            options,
            rate_limit_per_minute=settings.rate_limit_per_minute,
            max_attempts=settings.max_attempts,
        )
        sync_report = await processor.process_all(items)
        return EXIT_OK if not sync_report.failed else EXIT_FAILURE

    except Aborted:
        print("Aborted.")
        return EXIT_ABORTED
    except ConfigurationError as e:
        logger.error(f"Error: {e}")
        return EXIT_FAILURE
    except (SubmissionFailure, BatchJobFailure, ProviderError) as e:
        logger.error(f"Error: {e}")
        return EXIT_FAILURE
    finally:
        await provider.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    if args.verbose:
        set_console_level(logging.DEBUG)

    try:
        return asyncio.run(run(args))
    except ConfigurationError as e:
        logger.error(f"Error: {e}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        print("\n[!] Interrupted. Submitted batch jobs keep running on the provider side.")
        return EXIT_ABORTED


if __name__ == "__main__":
    sys.exit(main())
