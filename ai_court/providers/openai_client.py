# ai_court/providers/openai_client.py
"""OpenAI-compatible chat-completion client."""

from typing import Dict, Any, AsyncIterator, Optional
import httpx
from loguru import logger
import backoff

from .base_provider import BaseProvider
from ..config.schemas import ProviderConfig, DEFAULT_ENDPOINT
from ..core.data_models import ChatPayload
from ..core.exceptions import ApiError, NetworkError, ProviderError


def _is_fatal(error: Exception) -> bool:
    return isinstance(error, ApiError) and not error.retryable


class OpenAIChatClient(BaseProvider):
    """Client for an OpenAI-style ``/chat/completions`` endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 60.0,
        max_tries: int = 1,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key
        self.endpoint = endpoint
        self.max_tries = max_tries
        self.headers = {"Content-Type": "application/json"}
        if self.api_key:
            self.headers["Authorization"] = f"Bearer {self.api_key}"
        else:
            logger.debug(f"No API key configured, posting to {endpoint} without Authorization")

        self.client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls, config: ProviderConfig, client: Optional[httpx.AsyncClient] = None) -> "OpenAIChatClient":
        return cls(
            api_key=config.api_key,
            endpoint=config.endpoint,
            timeout=config.timeout,
            max_tries=config.max_tries,
            client=client
        )

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()

    async def send(self, payload: ChatPayload) -> Dict[str, Any]:
        """Make a non-streaming chat completion request.

        Retries ``NetworkError`` and retryable ``ApiError`` (429, 5xx) with
        exponential backoff when ``max_tries`` > 1.
        """
        if payload.stream:
            raise ValueError("send() requires a non-streaming payload; use open_stream()")

        post = backoff.on_exception(
            backoff.expo,
            ProviderError,
            max_tries=self.max_tries,
            giveup=_is_fatal,
        )(self._post)
        return await post(payload)

    async def _post(self, payload: ChatPayload) -> Dict[str, Any]:
        try:
            response = await self.client.post(
                self.endpoint,
                headers=self.headers,
                json=payload.to_request_body()
            )
        except httpx.TransportError as e:
            logger.error(f"Request to {self.endpoint} failed: {e!r}")
            raise NetworkError(self._describe(e)) from e

        if not response.is_success:
            logger.warning(f"Upstream returned {response.status_code}")
            raise ApiError(response.status_code, response.text)

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(response.status_code, f"Invalid JSON body: {response.text[:200]}") from e

    async def open_stream(self, payload: ChatPayload) -> AsyncIterator[bytes]:
        """Make a streaming request and yield raw body chunks as they arrive."""
        if not payload.stream:
            raise ValueError("open_stream() requires a streaming payload; use send()")

        try:
            async with self.client.stream(
                "POST",
                self.endpoint,
                headers=self.headers,
                json=payload.to_request_body()
            ) as response:
                if not response.is_success:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    logger.warning(f"Upstream returned {response.status_code}")
                    raise ApiError(response.status_code, body)

                async for chunk in response.aiter_bytes():
                    yield chunk
        except httpx.TransportError as e:
            logger.error(f"Stream from {self.endpoint} failed: {e!r}")
            raise NetworkError(self._describe(e)) from e

    @staticmethod
    def _describe(error: httpx.TransportError) -> str:
        if isinstance(error, httpx.TimeoutException):
            return "request timed out"
        if isinstance(error, httpx.ConnectError):
            return f"could not connect ({error})"
        return str(error) or error.__class__.__name__
