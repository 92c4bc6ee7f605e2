"""AI provider layer

    provider = LLMProviderFactory.create("generic", "http://localhost:8001/v1", "gpt-4o-mini")
    reply = await provider.generate(prompt, system_prompt=agent.get_system_prompt())

Importing this package registers the bundled adapters.
"""

from shared.llm.base import (
    BaseLLMProvider,
    LLMConfig,
    LLMProviderError,
    LLMProviderFactory,
    LLMResponse,
    extract_json_object,
)
from shared.llm.adapters import GenericAdapter

__all__ = [
    "BaseLLMProvider",
    "LLMConfig",
    "LLMProviderError",
    "LLMProviderFactory",
    "LLMResponse",
    "extract_json_object",
    "GenericAdapter",
]
