"""
LLM Review Engine

This module provides review prompt construction, provider dispatch for
text generation, and normalization of the generated review.
"""

from .prompts import PromptBuilder
from .normalizer import ResponseNormalizer
from .providers import (
    LLMProvider,
    LLMProviderError,
    OpenAIProvider,
    AnthropicProvider,
    AzureOpenAIProvider,
    create_provider,
)

__all__ = [
    'PromptBuilder',
    'ResponseNormalizer',
    'LLMProvider',
    'LLMProviderError',
    'OpenAIProvider',
    'AnthropicProvider',
    'AzureOpenAIProvider',
    'create_provider',
]
