"""
Unit tests for LLM providers.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from llm_code_review.config import LLMConfig
from llm_code_review.llm.providers import (
    AnthropicProvider,
    AzureOpenAIProvider,
    LLMProviderError,
    OpenAIProvider,
    SYSTEM_PROMPT,
    create_provider,
)


def make_response(json_data, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = "Error"
    response.json.return_value = json_data
    return response


class TestOpenAIProvider:
    """Tests for the OpenAI provider."""

    def setup_method(self):
        self.session = Mock()
        self.config = LLMConfig(provider="openai", model="gpt-4", api_key="sk-test")

    def test_invoke_returns_first_choice(self):
        self.session.post.return_value = make_response(
            {"choices": [{"message": {"content": "[]"}}]}
        )
        provider = OpenAIProvider(self.config, session=self.session)

        assert provider.invoke("review this") == "[]"

        args, kwargs = self.session.post.call_args
        assert args[0] == OpenAIProvider.API_URL
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
        assert kwargs["json"]["model"] == "gpt-4"
        assert kwargs["json"]["temperature"] == 0.1
        assert kwargs["json"]["max_tokens"] == 2000
        assert kwargs["json"]["messages"] == [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": "review this"},
        ]
        assert kwargs["timeout"] == 60

    def test_provider_is_callable(self):
        self.session.post.return_value = make_response({"choices": [{"message": {"content": "ok"}}]})

        assert OpenAIProvider(self.config, session=self.session)("prompt") == "ok"

    def test_missing_api_key(self):
        provider = OpenAIProvider(LLMConfig(provider="openai"), session=self.session)

        with pytest.raises(LLMProviderError, match="OPENAI_API_KEY"):
            provider.invoke("prompt")
        self.session.post.assert_not_called()

    def test_api_error_message(self):
        self.session.post.return_value = make_response({"error": {"message": "bad key"}}, status_code=401)
        provider = OpenAIProvider(self.config, session=self.session)

        with pytest.raises(LLMProviderError, match="bad key") as exc_info:
            provider.invoke("prompt")
        assert exc_info.value.status_code == 401
        assert exc_info.value.provider == "openai"

    def test_network_error(self):
        self.session.post.side_effect = requests.Timeout("slow")
        provider = OpenAIProvider(self.config, session=self.session)

        with pytest.raises(LLMProviderError, match="request failed"):
            provider.invoke("prompt")

    def test_unexpected_response_shape(self):
        self.session.post.return_value = make_response({"choices": []})
        provider = OpenAIProvider(self.config, session=self.session)

        with pytest.raises(LLMProviderError, match="Unexpected"):
            provider.invoke("prompt")


class TestAzureOpenAIProvider:
    """Tests for the Azure OpenAI provider."""

    def test_deployment_url_and_key_header(self):
        session = Mock()
        session.post.return_value = make_response({"choices": [{"message": {"content": "[]"}}]})
        config = LLMConfig(
            provider="azure",
            model="review-deploy",
            api_key="az-key",
            endpoint="https://acme.openai.azure.com/",
        )

        assert AzureOpenAIProvider(config, session=session).invoke("p") == "[]"

        args, kwargs = session.post.call_args
        assert args[0] == (
            "https://acme.openai.azure.com/openai/deployments/review-deploy/chat/completions"
            "?api-version=2023-12-01-preview"
        )
        assert kwargs["headers"]["api-key"] == "az-key"

    def test_missing_endpoint(self):
        config = LLMConfig(provider="azure", api_key="az-key")

        with pytest.raises(LLMProviderError, match="AZURE_OPENAI_ENDPOINT"):
            AzureOpenAIProvider(config, session=Mock()).invoke("p")


class TestAnthropicProvider:
    """Tests for the Anthropic provider."""

    def test_invoke_returns_first_text_block(self):
        session = Mock()
        session.post.return_value = make_response({"content": [{"type": "text", "text": "[]"}]})
        config = LLMConfig(provider="anthropic", model="claude-3-sonnet", api_key="sk-ant")

        assert AnthropicProvider(config, session=session).invoke("p") == "[]"

        args, kwargs = session.post.call_args
        assert args[0] == AnthropicProvider.API_URL
        assert kwargs["headers"]["x-api-key"] == "sk-ant"
        assert kwargs["headers"]["anthropic-version"] == "2023-06-01"
        assert kwargs["json"]["messages"] == [{"role": "user", "content": "p"}]


class TestCreateProvider:
    """Tests for provider selection."""

    @pytest.mark.parametrize("name, provider_class", [
        ("openai", OpenAIProvider),
        ("anthropic", AnthropicProvider),
        ("azure", AzureOpenAIProvider),
    ])
    def test_http_providers(self, name, provider_class):
        assert isinstance(create_provider(LLMConfig(provider=name)), provider_class)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unsupported LLM provider"):
            create_provider(LLMConfig(provider="cohere"))


class TestLocalTransformersProvider:
    """Tests for the in-process transformers provider."""

    def test_generates_from_loaded_model(self):
        torch = pytest.importorskip("torch")
        pytest.importorskip("transformers")

        tokenizer = Mock()
        tokenizer.pad_token = None
        tokenizer.eos_token = "</s>"
        tokenizer.encode.return_value = torch.tensor([[1, 2, 3]])
        tokenizer.decode.return_value = " [] "
        model = Mock()
        model.generate.return_value = torch.tensor([[1, 2, 3, 4, 5]])

        with patch("llm_code_review.llm.local.AutoTokenizer") as auto_tokenizer, \
                patch("llm_code_review.llm.local.AutoModelForCausalLM") as auto_model:
            auto_tokenizer.from_pretrained.return_value = tokenizer
            auto_model.from_pretrained.return_value = model

            from llm_code_review.llm.local import LocalTransformersProvider
            provider = LocalTransformersProvider(LLMConfig(provider="local", model="tiny-model"), device="cpu")

            assert provider.invoke("review") == "[]"

        assert tokenizer.pad_token == "</s>"
        generated = tokenizer.decode.call_args.args[0]
        assert generated.tolist() == [4, 5]
        assert provider.get_model_info()["device"] == "cpu"
