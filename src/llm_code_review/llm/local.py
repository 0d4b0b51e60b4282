"""
Local Transformers Provider

Runs a Hugging Face causal language model in-process. Requires the
``local`` extra (transformers, torch).
"""

import logging
from typing import Dict, Optional, Any

from transformers import AutoTokenizer, AutoModelForCausalLM
import torch

from ..config import LLMConfig
from .providers import LLMProvider, LLMProviderError, SYSTEM_PROMPT


logger = logging.getLogger(__name__)


class LocalTransformersProvider(LLMProvider):
    """
    Generates review text with a locally loaded model.

    ``config.model`` is a Hugging Face model id or local path.
    """

    name = "local"

    def __init__(self, config: LLMConfig, device: Optional[str] = None):
        """
        Initialize local provider.

        Args:
            config: LLM settings
            device: Device to run model on ('cpu', 'cuda', etc.)
        """
        super().__init__(config)
        self.device = device or ("cuda" if torch.cuda.is_available() else "cpu")

        logger.info(f"Loading LLM model: {self.model}")
        try:
            self.tokenizer = AutoTokenizer.from_pretrained(self.model)
            self.llm = AutoModelForCausalLM.from_pretrained(self.model)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load model {self.model}: {e}")
            raise LLMProviderError(f"Failed to load model {self.model}: {e}", provider=self.name) from e

        # Set pad token if not available
        if self.tokenizer.pad_token is None:
            self.tokenizer.pad_token = self.tokenizer.eos_token

        self.llm.to(self.device)
        logger.info(f"Model loaded successfully on {self.device}")

    def invoke(self, prompt: str) -> str:
        full_prompt = f"{SYSTEM_PROMPT}\n\n{prompt}"
        inputs = self.tokenizer.encode(full_prompt, return_tensors="pt").to(self.device)

        with torch.no_grad():
            outputs = self.llm.generate(
                inputs,
                max_new_tokens=self.max_tokens,
                temperature=max(self.temperature, 1e-5),
                do_sample=self.temperature > 0,
                pad_token_id=self.tokenizer.pad_token_id,
                eos_token_id=self.tokenizer.eos_token_id,
                num_return_sequences=1
            )

        # Decode only the generated part
        generated = outputs[0][inputs.shape[1]:]
        return self.tokenizer.decode(generated, skip_special_tokens=True).strip()

    def get_model_info(self) -> Dict[str, Any]:
        """Get information about the loaded model."""
        return {
            'model_name': self.model,
            'device': self.device,
            'vocab_size': self.tokenizer.vocab_size,
            'max_tokens': self.max_tokens,
            'temperature': self.temperature,
        }
