import logging
import os
from abc import ABC, abstractmethod

import requests

from booksum.config import DEFAULT_API_URL, DEFAULT_MODEL_NAME
from booksum.exceptions import FatalError, ThrottledError

logger = logging.getLogger(__name__)

THROTTLE_STATUS_CODES = (429, 503, 529)
THROTTLE_MARKERS = ("too many requests", "overloaded", "rate limit")


class LLMAdapter(ABC):
    """
    Abstract interface for Large Language Models.
    All implementations must be stateless and safe to reuse across calls.

    Implementations make exactly one request per `generate` call and report failures as
    `ThrottledError` (overload or rate limiting) or `FatalError` (anything else).
    Retrying is the caller's job.
    """

    @abstractmethod
    def generate(
        self, prompt: str, max_tokens: int, temperature: float = 0.0, top_p: float = 1.0, top_k: int = 0
    ) -> str:
        """
        Generates text from a prompt.

        Args:
            prompt (str): Input text.
            max_tokens (int): Maximum tokens to generate.
            temperature (float): Sampling temperature (0.0 = deterministic).
            top_p (float): Nucleus sampling mass.
            top_k (int): Top-k sampling cutoff (0 = disabled).

        Returns:
            str: Generated text.
        """
        pass


def is_throttle_message(message: str) -> bool:
    lowered = (message or "").lower()
    return any(marker in lowered for marker in THROTTLE_MARKERS)


class LocalTransformersAdapter(LLMAdapter):
    """
    Adapter for local models using the HuggingFace transformers library.
    """

    def __init__(self, model_name: str = "facebook/bart-large-cnn", device: str = "cpu"):
        # Lazy import to avoid heavy dependency if not used
        from transformers import pipeline

        self.model_name = model_name
        self.pipeline = pipeline("text2text-generation", model=model_name, device=device)

    def generate(
        self, prompt: str, max_tokens: int, temperature: float = 0.0, top_p: float = 1.0, top_k: int = 0
    ) -> str:
        tokenizer = self.pipeline.tokenizer
        max_length = getattr(tokenizer, "model_max_length", 1024)
        if max_length > 10**6:  # Some models have a placeholder huge value
            max_length = 1024

        sampling = {"do_sample": temperature > 0}
        if temperature > 0:
            sampling.update(temperature=temperature, top_p=top_p, top_k=top_k)

        try:
            results = self.pipeline(
                prompt, max_new_tokens=max_tokens, truncation=True, max_length=max_length, **sampling
            )
            return results[0]["generated_text"]
        except (KeyError, IndexError, TypeError) as e:
            raise FatalError(f"Local model returned an unexpected result: {e}") from e
        except RuntimeError as e:
            raise FatalError(f"Local model {self.model_name} failed: {e}") from e


class CloudAdapter(LLMAdapter):
    """
    Adapter for cloud LLMs (OpenAI-compatible REST API).
    Expects CLOUD_LLM_API_KEY environment variable.
    """

    def __init__(self, api_url: str = DEFAULT_API_URL, model_name: str = DEFAULT_MODEL_NAME, timeout: int = 300):
        self.api_url = api_url
        self.model_name = model_name
        self.timeout = timeout
        self.api_key = os.environ.get("CLOUD_LLM_API_KEY", "PLACEHOLDER_KEY")

    def generate(
        self, prompt: str, max_tokens: int, temperature: float = 0.0, top_p: float = 1.0, top_k: int = 0
    ) -> str:
        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {self.api_key}"}

        payload = {
            "model": self.model_name,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
            "top_p": top_p,
        }
        if top_k:
            payload["top_k"] = top_k

        logger.debug("Sending %d-char prompt to %s", len(prompt), self.model_name)
        try:
            response = requests.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise FatalError(f"Cloud LLM request failed: {e}") from e

        if response.status_code != 200:
            body = response.text or ""
            message = f"Cloud LLM returned HTTP {response.status_code}: {body[:200]}"
            if response.status_code in THROTTLE_STATUS_CODES or is_throttle_message(body):
                raise ThrottledError(message)
            raise FatalError(message)

        try:
            data = response.json()
            # Simplified OpenAI-style response parsing
            return data["choices"][0]["message"]["content"].strip()
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise FatalError(f"Cloud LLM returned a malformed response: {e}") from e
