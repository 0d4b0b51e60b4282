"""
LLM Providers

Each provider turns a prompt into raw response text. The provider is
chosen once from configuration; the review pipeline only calls ``invoke``.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..config import LLMConfig


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an expert code reviewer. Always respond with valid JSON format."


class LLMProviderError(Exception):
    """LLM provider related errors"""
    def __init__(self, message: str, provider: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class LLMProvider:
    """
    Base class for text-generation backends.

    Subclasses implement ``invoke(prompt) -> str``.
    """

    name = "base"

    def __init__(self, config: LLMConfig):
        """
        Initialize provider.

        Args:
            config: LLM settings (model, sampling, credentials)
        """
        self.config = config
        self.model = config.model
        self.temperature = config.temperature
        self.max_tokens = config.max_tokens
        self.timeout = config.timeout_seconds

    def invoke(self, prompt: str) -> str:
        raise NotImplementedError

    def __call__(self, prompt: str) -> str:
        return self.invoke(prompt)


class HTTPProvider(LLMProvider):
    """Provider that talks to a JSON HTTP API."""

    def __init__(self, config: LLMConfig, session: Optional[requests.Session] = None):
        super().__init__(config)
        self.session = session or requests.Session()

    def _require(self, value: Optional[str], env_var: str) -> str:
        if not value:
            raise LLMProviderError(f"{env_var} environment variable is not set", provider=self.name)
        return value

    def _post(self, url: str, headers: Dict[str, str], payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a JSON payload and return the decoded response."""
        logger.info(f"Sending request to {self.name} ({self.model})")

        try:
            response = self.session.post(url, headers=headers, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"{self.name} request failed: {e}")
            raise LLMProviderError(f"{self.name} request failed: {e}", provider=self.name) from e

        if not response.ok:
            try:
                error = response.json().get('error') or {}
                message = error.get('message') if isinstance(error, dict) else str(error)
            except ValueError:
                message = None
            raise LLMProviderError(
                f"{self.name} API error: {message or response.reason}",
                provider=self.name,
                status_code=response.status_code,
            )

        return response.json()

    def _chat_messages(self, prompt: str) -> List[Dict[str, str]]:
        return [
            {'role': 'system', 'content': SYSTEM_PROMPT},
            {'role': 'user', 'content': prompt},
        ]

    def _chat_content(self, data: Dict[str, Any]) -> str:
        """Text of the first choice of a chat completion response."""
        try:
            return data['choices'][0]['message']['content']
        except (KeyError, IndexError, TypeError) as e:
            raise LLMProviderError(f"Unexpected {self.name} response format", provider=self.name) from e


class OpenAIProvider(HTTPProvider):
    """OpenAI chat completions."""

    name = "openai"
    API_URL = "https://api.openai.com/v1/chat/completions"

    def invoke(self, prompt: str) -> str:
        api_key = self._require(self.config.api_key, 'OPENAI_API_KEY')

        data = self._post(
            self.API_URL,
            headers={
                'Authorization': f'Bearer {api_key}',
                'Content-Type': 'application/json',
            },
            payload={
                'model': self.model,
                'messages': self._chat_messages(prompt),
                'temperature': self.temperature,
                'max_tokens': self.max_tokens,
            },
        )
        return self._chat_content(data)


class AzureOpenAIProvider(HTTPProvider):
    """Azure OpenAI chat completions; ``model`` is the deployment name."""

    name = "azure"

    def invoke(self, prompt: str) -> str:
        api_key = self._require(self.config.api_key, 'AZURE_OPENAI_API_KEY')
        endpoint = self._require(self.config.endpoint, 'AZURE_OPENAI_ENDPOINT').rstrip('/')

        data = self._post(
            f"{endpoint}/openai/deployments/{self.model}/chat/completions"
            f"?api-version={self.config.api_version}",
            headers={
                'api-key': api_key,
                'Content-Type': 'application/json',
            },
            payload={
                'messages': self._chat_messages(prompt),
                'temperature': self.temperature,
                'max_tokens': self.max_tokens,
            },
        )
        return self._chat_content(data)


class AnthropicProvider(HTTPProvider):
    """Anthropic messages API."""

    name = "anthropic"
    API_URL = "https://api.anthropic.com/v1/messages"
    API_VERSION = "2023-06-01"

    def invoke(self, prompt: str) -> str:
        api_key = self._require(self.config.api_key, 'ANTHROPIC_API_KEY')

        data = self._post(
            self.API_URL,
            headers={
                'x-api-key': api_key,
                'Content-Type': 'application/json',
                'anthropic-version': self.API_VERSION,
            },
            payload={
                'model': self.model,
                'max_tokens': self.max_tokens,
                'temperature': self.temperature,
                'messages': [{'role': 'user', 'content': prompt}],
            },
        )
        try:
            return data['content'][0]['text']
        except (KeyError, IndexError, TypeError) as e:
            raise LLMProviderError("Unexpected anthropic response format", provider=self.name) from e


def create_provider(config: LLMConfig) -> LLMProvider:
    """
    Select the provider for a configuration.

    Args:
        config: LLM settings

    Returns:
        Provider instance

    Raises:
        ValueError: If the provider is not supported
    """
    if config.provider == 'local':
        # transformers/torch are only needed for local inference
        from .local import LocalTransformersProvider
        return LocalTransformersProvider(config)

    providers = {
        'openai': OpenAIProvider,
        'anthropic': AnthropicProvider,
        'azure': AzureOpenAIProvider,
    }
    if config.provider not in providers:
        raise ValueError(f"Unsupported LLM provider: {config.provider}")

    logger.info(f"Using LLM provider {config.provider} with model {config.model}")
    return providers[config.provider](config)
