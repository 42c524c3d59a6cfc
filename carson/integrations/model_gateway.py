"""
Language-model gateway.

The triage engine needs exactly one capability from a model backend: send a
prompt, get text back. ``ModelGateway`` is that seam. ``HttpModelGateway``
talks to any OpenAI-compatible chat completions endpoint (hosted APIs,
Ollama, vLLM, llama.cpp server); ``OfflineModelGateway`` always fails so
every call site takes its heuristic path.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
from loguru import logger

from carson.core.exceptions import ModelUnavailableError


@dataclass
class PromptPayload:
    """A single prompt for the model."""

    prompt: str
    purpose: str = "general"  # "assessment", "gap-analysis", ...
    system: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_messages(self) -> list[dict[str, str]]:
        """Convert to chat-completions message format."""
        messages = []
        if self.system:
            messages.append({"role": "system", "content": self.system})
        messages.append({"role": "user", "content": self.prompt})
        return messages


@dataclass
class ModelResponse:
    """Text returned by the model."""

    content: str
    model: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModelResponse:
        """Parse a chat-completions response body."""
        choices = data.get("choices") or []
        if not choices:
            return cls(content="", model=data.get("model"))
        message = choices[0].get("message") or {}
        return cls(content=message.get("content") or "", model=data.get("model"))


class ModelGateway(Protocol):
    """Anything that can answer a prompt asynchronously."""

    async def invoke(self, payload: PromptPayload) -> ModelResponse:
        """Send a prompt. May raise or hang; callers bound it with a timeout."""
        ...


class HttpModelGateway:
    """HTTP gateway for OpenAI-compatible chat completion APIs."""

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str | None = None,
        timeout_seconds: float = 30.0,
        temperature: float = 0.2,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the gateway.

        Args:
            base_url: API base URL, e.g. http://localhost:11434/v1
            model: Model name sent with each request
            api_key: Optional bearer token
            timeout_seconds: Transport timeout
            temperature: Sampling temperature
            client: Preconfigured client (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            headers=headers,
            follow_redirects=True,
        )

    @classmethod
    def from_settings(cls, settings) -> HttpModelGateway:
        return cls(api_key=settings.llm_api_key, **settings.get_gateway_config())

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def invoke(self, payload: PromptPayload) -> ModelResponse:
        """
        Send one chat completion request.

        Raises:
            ModelUnavailableError: On timeout, transport or HTTP error
        """
        try:
            response = await self.client.post(
                f"{self.base_url}/chat/completions",
                json={
                    "model": self.model,
                    "messages": payload.to_messages(),
                    "temperature": self.temperature,
                },
            )
            response.raise_for_status()
            return ModelResponse.from_dict(response.json())

        except httpx.TimeoutException as e:
            logger.warning(f"Model request timed out ({payload.purpose}): {e}")
            raise ModelUnavailableError(f"Model request timed out: {e}") from e

        except httpx.HTTPStatusError as e:
            logger.warning(f"Model API error {e.response.status_code} ({payload.purpose})")
            raise ModelUnavailableError(f"Model API returned {e.response.status_code}") from e

        except httpx.RequestError as e:
            logger.warning(f"Model request failed ({payload.purpose}): {e}")
            raise ModelUnavailableError(f"Model request failed: {e}") from e

        except ValueError as e:
            # Body was not JSON
            logger.warning(f"Model API returned a non-JSON body ({payload.purpose})")
            raise ModelUnavailableError("Model API returned a non-JSON body") from e


class OfflineModelGateway:
    """Gateway with no backend: every call raises ModelUnavailableError."""

    async def invoke(self, payload: PromptPayload) -> ModelResponse:
        raise ModelUnavailableError("No model backend configured (offline mode)")


async def invoke_with_timeout(
    gateway: ModelGateway,
    payload: PromptPayload,
    timeout_seconds: float,
) -> str | None:
    """
    Call the gateway once, bounded by a timeout.

    Returns the response text, or None when the call failed or timed out.
    Failures are logged and never retried here.
    """
    try:
        response = await asyncio.wait_for(gateway.invoke(payload), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning(f"Model call '{payload.purpose}' exceeded {timeout_seconds:.0f}s, using fallback")
        return None
    except ModelUnavailableError as e:
        logger.warning(f"Model unavailable for '{payload.purpose}', using fallback: {e}")
        return None
    except Exception as e:
        logger.error(f"Model call '{payload.purpose}' failed, using fallback: {e}")
        return None

    if response is None or not isinstance(response.content, str) or not response.content.strip():
        logger.warning(f"Model returned an empty response for '{payload.purpose}', using fallback")
        return None

    return response.content
