"""
Multi-provider vision LLM client for time card extraction.

Supports:
- Gemini (cloud)
- Ollama (local)
- LM Studio (local)

With automatic fallback and retry logic.
"""

import functools
import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_incrementing

from timecard_app.config import (
    AppConfig,
    GeminiConfig,
    LLMProvider,
    LMStudioConfig,
    OllamaConfig,
    get_config,
)
from timecard_app.documents import DocumentPage
from timecard_app.llm.prompts import get_extraction_prompt

logger = logging.getLogger(__name__)


class LLMClientError(Exception):
    """Base exception for LLM client errors."""
    pass


class LLMConnectionError(LLMClientError):
    """Error connecting to LLM service."""
    pass


class LLMResponseError(LLMClientError):
    """Error in LLM response."""
    pass


def _retrying(func):
    """
    Retry connection errors with a linearly growing wait.

    Attempts and delay come from the current config on every call.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        processing = get_config().processing
        retryer = Retrying(
            stop=stop_after_attempt(max(1, processing.max_retries)),
            wait=wait_incrementing(
                start=processing.retry_base_delay,
                increment=processing.retry_base_delay,
            ),
            retry=retry_if_exception_type(LLMConnectionError),
            reraise=True,
        )
        return retryer(func, *args, **kwargs)
    return wrapper


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    def extract_page(self, page: DocumentPage) -> str:
        """Send one page image and return the raw model text."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the LLM service is available."""
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Get the provider name."""
        pass


class GeminiClient(BaseLLMClient):
    """Client for the Gemini generateContent REST API."""

    def __init__(self, config: Optional[GeminiConfig] = None):
        """Initialize Gemini client."""
        self.config = config or get_config().gemini
        self.base_url = self.config.base_url.rstrip("/")

    def get_provider_name(self) -> str:
        return "Gemini"

    def is_available(self) -> bool:
        """Check if a Gemini API key is configured."""
        return bool(self.config.api_key)

    @_retrying
    def extract_page(self, page: DocumentPage) -> str:
        """Extract records from a page using Gemini."""
        try:
            response = requests.post(
                f"{self.base_url}/models/{self.config.model}:generateContent",
                params={"key": self.config.api_key},
                json={
                    "contents": [{
                        "parts": [
                            {"inline_data": {"mime_type": page.mime_type, "data": page.to_base64()}},
                            {"text": get_extraction_prompt(page.name)},
                        ],
                    }],
                    "generationConfig": {
                        "temperature": self.config.temperature,
                        "responseMimeType": "application/json",
                    },
                },
                timeout=self.config.timeout,
            )

            if response.status_code in (401, 403):
                raise LLMClientError("Invalid Gemini API key")
            elif response.status_code in (429, 503):
                raise LLMConnectionError(f"Gemini unavailable (status {response.status_code})")
            elif response.status_code != 200:
                raise LLMResponseError(f"Gemini returned status {response.status_code}: {response.text}")

            result = response.json()
            try:
                parts = result["candidates"][0]["content"]["parts"]
            except (KeyError, IndexError):
                raise LLMResponseError("Gemini response contained no text")
            text = "".join(part.get("text", "") for part in parts)
            if not text:
                raise LLMResponseError("Gemini response contained no text")
            return text

        except requests.exceptions.ConnectionError as e:
            raise LLMConnectionError(f"Failed to connect to Gemini: {e}")
        except requests.exceptions.Timeout:
            raise LLMConnectionError("Gemini request timed out")


class OllamaClient(BaseLLMClient):
    """Client for Ollama local vision models."""

    def __init__(self, config: Optional[OllamaConfig] = None):
        """Initialize Ollama client."""
        self.config = config or get_config().ollama
        self.base_url = self.config.base_url.rstrip("/")

    def get_provider_name(self) -> str:
        return "Ollama"

    def is_available(self) -> bool:
        """Check if Ollama is running and the vision model is pulled."""
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=5)
            if response.status_code == 200:
                models = response.json().get("models", [])
                model_names = [m.get("name", "") for m in models]
                return any(
                    self.config.vision_model in name or name in self.config.vision_model
                    for name in model_names
                )
            return False
        except requests.exceptions.RequestException as e:
            logger.debug(f"Ollama not available: {e}")
            return False

    @_retrying
    def extract_page(self, page: DocumentPage) -> str:
        """Extract records from a page using an Ollama vision model."""
        if not self.config.vision_model:
            raise LLMClientError("No vision model configured for Ollama")

        try:
            response = requests.post(
                f"{self.base_url}/api/generate",
                json={
                    "model": self.config.vision_model,
                    "prompt": get_extraction_prompt(page.name),
                    "images": [page.to_base64()],
                    "stream": False,
                    "format": "json",
                    "options": {
                        "temperature": self.config.temperature,
                        "num_ctx": self.config.context_length,
                    },
                },
                timeout=self.config.timeout,
            )

            if response.status_code != 200:
                raise LLMResponseError(f"Ollama returned status {response.status_code}: {response.text}")

            return response.json().get("response", "")

        except requests.exceptions.ConnectionError as e:
            raise LLMConnectionError(f"Failed to connect to Ollama: {e}")
        except requests.exceptions.Timeout:
            raise LLMConnectionError("Ollama vision request timed out")


class LMStudioClient(BaseLLMClient):
    """Client for LM Studio local server."""

    def __init__(self, config: Optional[LMStudioConfig] = None):
        """Initialize LM Studio client."""
        self.config = config or get_config().lm_studio
        self.base_url = self.config.base_url.rstrip("/")

    def get_provider_name(self) -> str:
        return "LM Studio"

    def is_available(self) -> bool:
        """Check if LM Studio server is running."""
        try:
            response = requests.get(f"{self.base_url}/models", timeout=5)
            return response.status_code == 200
        except requests.exceptions.RequestException as e:
            logger.debug(f"LM Studio not available: {e}")
            return False

    @_retrying
    def extract_page(self, page: DocumentPage) -> str:
        """Extract records from a page using an LM Studio vision model."""
        if not self.config.vision_model:
            raise LLMClientError("No vision model configured for LM Studio")

        logger.info(f"Sending '{page.name}' to LM Studio vision model: {self.config.vision_model}")

        try:
            response = requests.post(
                f"{self.base_url}/chat/completions",
                json={
                    "model": self.config.vision_model,
                    "messages": [
                        {
                            "role": "user",
                            "content": [
                                {"type": "text", "text": get_extraction_prompt(page.name)},
                                {
                                    "type": "image_url",
                                    "image_url": {
                                        "url": f"data:{page.mime_type};base64,{page.to_base64()}"
                                    }
                                }
                            ]
                        }
                    ],
                    "temperature": self.config.temperature,
                    "max_tokens": self.config.max_tokens,
                },
                timeout=self.config.timeout,
            )

            if response.status_code != 200:
                raise LLMResponseError(f"LM Studio returned status {response.status_code}: {response.text}")

            result = response.json()
            return result["choices"][0]["message"]["content"]

        except requests.exceptions.ConnectionError as e:
            raise LLMConnectionError(f"Failed to connect to LM Studio: {e}")
        except requests.exceptions.Timeout:
            raise LLMConnectionError("LM Studio vision request timed out")


class LLMClient:
    """
    Unified LLM client with automatic provider selection and fallback.

    Tries providers in order of preference until one succeeds.
    Default order: Gemini -> Ollama -> LM Studio
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        preferred_provider: Optional[LLMProvider] = None,
        clients: Optional[dict[LLMProvider, BaseLLMClient]] = None,
    ):
        """
        Initialize the unified LLM client.

        Args:
            config: Application configuration
            preferred_provider: Preferred provider to try first
            clients: Provider clients to use instead of the defaults
        """
        self.config = config or get_config()
        self.preferred_provider = preferred_provider or self.config.llm_provider

        self.clients: dict[LLMProvider, BaseLLMClient] = clients or {
            LLMProvider.GEMINI: GeminiClient(self.config.gemini),
            LLMProvider.OLLAMA: OllamaClient(self.config.ollama),
            LLMProvider.LM_STUDIO: LMStudioClient(self.config.lm_studio),
        }

        self._last_used_provider: Optional[LLMProvider] = None

    def _get_provider_order(self) -> list[LLMProvider]:
        """Get providers in order of preference."""
        order = [self.preferred_provider]
        for provider in LLMProvider:
            if provider not in order:
                order.append(provider)
        return [p for p in order if p in self.clients]

    def get_available_providers(self) -> list[LLMProvider]:
        """Get list of currently available providers."""
        return [provider for provider, client in self.clients.items() if client.is_available()]

    @property
    def last_used_provider(self) -> Optional[LLMProvider]:
        """Get the last provider that was successfully used."""
        return self._last_used_provider

    def extract_page(
        self,
        page: DocumentPage,
        provider: Optional[LLMProvider] = None,
    ) -> tuple[str, LLMProvider]:
        """
        Extract records from one page image.

        Args:
            page: Prepared page image
            provider: Specific provider to use (optional)

        Returns:
            Tuple of (raw response text, provider used)

        Raises:
            LLMClientError: If all providers fail
        """
        providers = [provider] if provider else self._get_provider_order()

        errors = []
        for prov in providers:
            client = self.clients[prov]

            if not client.is_available():
                logger.info(f"{prov.value} not available, skipping")
                continue

            try:
                logger.info(f"Extracting '{page.name}' with {prov.value}")
                result = client.extract_page(page)
                self._last_used_provider = prov
                return result, prov
            except LLMClientError as e:
                logger.warning(f"{prov.value} failed: {e}")
                errors.append(f"{prov.value}: {str(e)}")

        if not errors:
            raise LLMClientError("No LLM provider is available")
        raise LLMClientError(f"All providers failed: {'; '.join(errors)}")
