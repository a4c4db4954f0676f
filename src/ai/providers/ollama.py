"""
Ollama API client for local LLM inference.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum

import httpx

from ai.completion import INST_BEGIN, INST_END

logger = logging.getLogger(__name__)

DEFAULT_HOST = "http://localhost:11434"
DEFAULT_MODEL = "llama3.2:3b"

# Fixed sampling parameters for single-line completions
GENERATION_OPTIONS = {
    "temperature": 0.1,
    "num_predict": 64,
    "top_k": 40,
    "top_p": 0.9,
    "repeat_penalty": 1.1,
    "stop": ["\n", INST_END, INST_BEGIN],
}


@dataclass(frozen=True)
class ServiceConfig:
    """Where the Ollama service lives and which model to use."""

    host: str = DEFAULT_HOST
    model: str = DEFAULT_MODEL

    @property
    def base_url(self) -> str:
        return self.host.rstrip("/")


class Availability(Enum):
    """Outcome of an availability check."""

    READY = "ready"
    MODEL_NOT_FOUND = "model_not_found"
    OFFLINE = "offline"


class OllamaError(Exception):
    """Base class for Ollama client failures."""


class TransportError(OllamaError):
    """The request never got an HTTP response (refused, timeout, DNS)."""


class ServiceError(OllamaError):
    """Ollama answered with a non-success status."""

    def __init__(self, status_code: int, reason: str, body: str = ""):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(f"Ollama API error: {reason}. {body}".rstrip())


class OllamaClient:
    """Async client for the Ollama model-listing and generation endpoints."""

    def __init__(self, timeout: float = 120.0, check_timeout: float = 5.0):
        self.timeout = timeout
        self.check_timeout = check_timeout

    def _parse_error(self, response: httpx.Response) -> ServiceError:
        """Build a ServiceError from a non-success response."""
        body = response.text or ""
        try:
            data = json.loads(body)
            if isinstance(data, dict) and "error" in data:
                body = str(data["error"])
        except (json.JSONDecodeError, ValueError):
            pass
        reason = response.reason_phrase or f"HTTP {response.status_code}"
        return ServiceError(response.status_code, reason, body)

    async def list_models(self, config: ServiceConfig) -> list[dict]:
        """
        List models installed on the Ollama server.

        Args:
            config: Service location

        Returns:
            List of model info dicts with 'name', 'size', etc.

        Raises:
            TransportError: If the server cannot be reached.
            ServiceError: If the server answers with a non-success status.
        """
        url = f"{config.base_url}/api/tags"

        try:
            async with httpx.AsyncClient(timeout=self.check_timeout) as client:
                response = await client.get(url)
        except httpx.TimeoutException as e:
            raise TransportError(f"Request to {url} timed out") from e
        except httpx.InvalidURL as e:
            raise TransportError(f"Invalid Ollama host {config.base_url}: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Cannot connect to Ollama at {config.base_url}: {e}") from e

        if not response.is_success:
            raise self._parse_error(response)

        data = response.json()
        models = data.get("models") if isinstance(data, dict) else None
        return models if isinstance(models, list) else []

    async def check_availability(self, config: ServiceConfig) -> Availability:
        """Check that Ollama is running and the configured model is installed."""
        try:
            models = await self.list_models(config)
        except OllamaError as e:
            logger.warning("Ollama not available at %s: %s", config.base_url, e)
            return Availability.OFFLINE
        except ValueError:
            logger.warning("Unreadable model list from %s", config.base_url)
            return Availability.OFFLINE

        names = {m.get("name") for m in models if isinstance(m, dict)}
        if config.model not in names:
            logger.info("Model %s not installed (have: %s)", config.model, sorted(map(str, names)))
            return Availability.MODEL_NOT_FOUND
        return Availability.READY

    async def generate_completion(self, config: ServiceConfig, prompt: str) -> str:
        """
        Generate a single-line completion (non-streaming).

        Args:
            config: Service location and model
            prompt: Fully built instruction prompt

        Returns:
            Raw model output, or empty string for an empty/malformed body.

        Raises:
            TransportError: If the server cannot be reached.
            ServiceError: If the server answers with a non-success status.
        """
        url = f"{config.base_url}/api/generate"
        payload = {
            "model": config.model,
            "prompt": prompt,
            "stream": False,
            "options": GENERATION_OPTIONS,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=payload)
        except httpx.TimeoutException as e:
            raise TransportError("Request timed out") from e
        except httpx.InvalidURL as e:
            raise TransportError(f"Invalid Ollama host {config.base_url}: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Cannot connect to Ollama at {config.base_url}: {e}") from e

        if not response.is_success:
            raise self._parse_error(response)

        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError):
            logger.warning("Malformed generate response from %s", url)
            return ""

        if not isinstance(data, dict):
            return ""
        text = data.get("response")
        return text if isinstance(text, str) else ""
