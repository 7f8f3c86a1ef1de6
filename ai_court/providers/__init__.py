"""Chat-completion transport implementations"""

from .base_provider import BaseProvider, extract_message_content
from .openai_client import OpenAIChatClient
from ..config.schemas import ProviderConfig

def get_provider(config: ProviderConfig, **kwargs) -> BaseProvider:
    """Factory function to get a provider instance.

    Args:
        config: Provider section of the court configuration
        **kwargs: Additional arguments for the client (e.g. ``client``)

    Returns:
        Provider instance
    """
    return OpenAIChatClient.from_config(config, **kwargs)

__all__ = [
    "BaseProvider",
    "OpenAIChatClient",
    "extract_message_content",
    "get_provider",
]
