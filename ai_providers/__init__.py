"""
AI Providers Package
Vision captioning and batch job capabilities.

Usage:
    from ai_providers import create_provider

    provider = create_provider(settings)
    caption = await provider.query_image(data_uri, prompt, fidelity="low")
"""

from .base import (
    BaseVisionProvider,
    AIConfig
)

from .openai_provider import OpenAIProvider


def create_provider(settings) -> BaseVisionProvider:
    """Build the OpenAI provider from application settings."""
    return OpenAIProvider(AIConfig(
        api_key=settings.get_api_key(),
        model=settings.model,
        max_tokens=settings.max_tokens,
        base_url=settings.openai_base_url,
        timeout=settings.request_timeout_seconds,
    ))


__all__ = [
    'BaseVisionProvider',
    'AIConfig',
    'OpenAIProvider',
    'create_provider',
]
