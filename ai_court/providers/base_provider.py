# ai_court/providers/base_provider.py
"""Base provider interface for chat-completion transports."""

from abc import ABC, abstractmethod
from typing import Dict, Any, AsyncIterator, Union

from ..core.data_models import ChatPayload

class BaseProvider(ABC):
    """Abstract base class for chat-completion transports."""

    @abstractmethod
    async def send(self, payload: ChatPayload) -> Dict[str, Any]:
        """
        Make a non-streaming chat completion request.

        Args:
            payload: Request body with ``stream=False``

        Returns:
            Parsed response body

        Raises:
            NetworkError: The endpoint could not be reached
            ApiError: The endpoint answered with a non-2xx status
        """
        pass

    @abstractmethod
    def open_stream(self, payload: ChatPayload) -> AsyncIterator[Union[bytes, str]]:
        """
        Make a streaming chat completion request.

        Returns an async iterator over the raw response body chunks. Errors are
        raised from the iterator with the same types as ``send``.
        """
        pass

    async def close(self):
        """Close any open connections."""
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def extract_message_content(response: Dict[str, Any]) -> str:
    """Return ``choices[0].message.content`` or an empty string."""
    try:
        return response["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError):
        return ""
