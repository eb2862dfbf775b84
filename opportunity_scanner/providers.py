"""
Language model provider calls.

A provider call takes a provider, model tier, credential and prompt text and
returns the raw response text. Failures raise a provider-specific
ProviderError; the pipeline treats these as opaque.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

from .models import ModelTier, Provider
from .prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)


OPENAI_ENDPOINT = "https://api.openai.com/v1/chat/completions"
GOOGLE_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

OPENAI_MODELS = {
    ModelTier.NANO: "gpt-4.1-nano",
    ModelTier.MINI: "gpt-4.1-mini",
    ModelTier.STANDARD: "gpt-4.1",
}

GOOGLE_MODELS = {
    ModelTier.NANO: "gemini-2.0-flash-lite",
    ModelTier.MINI: "gemini-2.0-flash",
    ModelTier.STANDARD: "gemini-2.5-pro",
}


class ProviderError(Exception):
    """Raised when a provider call fails."""

    provider: Provider

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(f"{self.provider.value}: {message}")


class OpenAIProviderError(ProviderError):
    provider = Provider.OPENAI


class GoogleProviderError(ProviderError):
    provider = Provider.GOOGLE


@dataclass
class ProviderConfig:
    """Request settings shared by both providers."""
    timeout: float = 120.0
    temperature: float = 0.7
    max_tokens: int = 8000
    openai_models: Dict[ModelTier, str] = field(default_factory=lambda: dict(OPENAI_MODELS))
    google_models: Dict[ModelTier, str] = field(default_factory=lambda: dict(GOOGLE_MODELS))


class ProviderClient:
    """Synchronous client for OpenAI and Google Gemini."""

    def __init__(self, config: Optional[ProviderConfig] = None, client: Optional[httpx.Client] = None):
        self.config = config or ProviderConfig()
        self.client = client or httpx.Client(timeout=self.config.timeout)

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def complete(self, provider: Provider, model_tier: ModelTier, api_key: str, prompt: str) -> str:
        """
        Send a prompt and return the raw response text.

        Raises:
            ProviderError: subclass matching the provider that failed
        """
        if provider is Provider.OPENAI:
            return self._complete_openai(model_tier, api_key, prompt)
        return self._complete_google(model_tier, api_key, prompt)

    def _complete_openai(self, model_tier: ModelTier, api_key: str, prompt: str) -> str:
        if not api_key:
            raise OpenAIProviderError("API key is required")

        model = self.config.openai_models[model_tier]
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt}
            ],
            "max_completion_tokens": self.config.max_tokens,
        }
        # nano models only accept the default temperature
        if model_tier is not ModelTier.NANO:
            payload["temperature"] = self.config.temperature

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}"
        }

        try:
            response = self.client.post(OPENAI_ENDPOINT, headers=headers, json=payload)
            response.raise_for_status()
            result = response.json()
            content = result["choices"][0]["message"]["content"]
        except httpx.HTTPStatusError as e:
            raise OpenAIProviderError(_error_detail(e.response), e.response.status_code) from e
        except httpx.HTTPError as e:
            raise OpenAIProviderError(f"request failed: {e}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise OpenAIProviderError(f"unexpected response format: {e}") from e

        if not content:
            raise OpenAIProviderError("empty response")
        logger.info("OpenAI %s returned %d characters", model, len(content))
        return content

    def _complete_google(self, model_tier: ModelTier, api_key: str, prompt: str) -> str:
        if not api_key:
            raise GoogleProviderError("API key is required")

        model = self.config.google_models[model_tier]
        url = GOOGLE_ENDPOINT.format(model=model)
        payload = {
            "systemInstruction": {"parts": [{"text": SYSTEM_PROMPT}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.config.temperature,
                "maxOutputTokens": self.config.max_tokens,
            },
        }

        try:
            response = self.client.post(url, params={"key": api_key}, json=payload)
            response.raise_for_status()
            result = response.json()
            parts = result["candidates"][0]["content"]["parts"]
            content = "".join(part.get("text", "") for part in parts)
        except httpx.HTTPStatusError as e:
            raise GoogleProviderError(_error_detail(e.response), e.response.status_code) from e
        except httpx.HTTPError as e:
            raise GoogleProviderError(f"request failed: {e}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise GoogleProviderError(f"unexpected response format: {e}") from e

        if not content:
            raise GoogleProviderError("empty response")
        logger.info("Google %s returned %d characters", model, len(content))
        return content


def _error_detail(response: httpx.Response) -> str:
    """Best-effort error message from a provider error body."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return f"HTTP {response.status_code}: {error['message']}"
    return f"HTTP {response.status_code}"
