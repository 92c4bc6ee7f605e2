"""AI Provider Interface

Capabilities that declare `requires_ai` reach an inference backend only
through BaseLLMProvider. Adapters register themselves with
LLMProviderFactory under one or more type names, so the backend can be
swapped from configuration alone.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

logger = logging.getLogger(__name__)

_decoder = json.JSONDecoder()


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Return the first JSON object embedded in `text`, if any

    Models often wrap their answer in prose or code fences; every "{" is
    tried as a starting point until one decodes to a dict.
    """
    start = text.find("{")
    while start != -1:
        try:
            value, _ = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    logger.debug("No JSON object found in provider reply")
    return None


@dataclass
class LLMConfig:
    """Sampling parameters sent with every completion request"""

    temperature: float = 0.3
    max_tokens: int = 4096
    top_p: float = 0.95
    stop_sequences: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": self.top_p,
        }
        if self.stop_sequences:
            params["stop"] = list(self.stop_sequences)
        return params


@dataclass
class LLMResponse:
    """One completion, with the JSON object found in it (if any)"""

    content: str
    model: str
    usage: Optional[Dict[str, int]] = None
    finish_reason: Optional[str] = None
    parsed_json: Optional[Dict[str, Any]] = None

    @property
    def tokens_used(self) -> int:
        if not self.usage:
            return 0
        if "total_tokens" in self.usage:
            return int(self.usage["total_tokens"])
        return int(self.usage.get("prompt_tokens", 0)) + int(self.usage.get("completion_tokens", 0))


class LLMProviderError(Exception):
    """The provider answered, but not with anything usable"""


class BaseLLMProvider(ABC):
    """An inference backend reachable at `endpoint` serving `model`"""

    def __init__(
        self,
        endpoint: str,
        model: str,
        config: Optional[LLMConfig] = None,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.model = model
        self.config = config or LLMConfig()
        self.api_key = api_key
        self.timeout = timeout

    @property
    @abstractmethod
    def model_type(self) -> str:
        """Name the adapter is registered under"""

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.model)

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        config_override: Optional[LLMConfig] = None,
    ) -> LLMResponse:
        """Run one completion

        Raises:
            LLMProviderError: Non-success status or an empty reply
        """

    def _extract_json(self, text: str) -> Optional[Dict[str, Any]]:
        return extract_json_object(text)


class LLMProviderFactory:
    """Maps provider type names to adapter classes"""

    _adapters: Dict[str, Type[BaseLLMProvider]] = {}

    FALLBACK_TYPE = "generic"

    @classmethod
    def register(cls, model_type: str, adapter_class: Type[BaseLLMProvider]) -> None:
        cls._adapters[model_type] = adapter_class

    @classmethod
    def create(
        cls,
        model_type: str,
        endpoint: str,
        model: str,
        config: Optional[LLMConfig] = None,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
    ) -> BaseLLMProvider:
        """Instantiate the adapter registered for `model_type`

        Unknown types use the generic OpenAI-compatible adapter when it
        is registered.

        Raises:
            ValueError: Unknown type and no generic adapter registered
        """
        adapter_class = cls._adapters.get(model_type)
        if adapter_class is None:
            adapter_class = cls._adapters.get(cls.FALLBACK_TYPE)
            if adapter_class is None:
                raise ValueError(f"No AI provider registered for type '{model_type}'")
            logger.warning(f"⚠️ No adapter for '{model_type}', using '{cls.FALLBACK_TYPE}'")

        return adapter_class(endpoint, model, config=config, api_key=api_key, timeout=timeout)

    @classmethod
    def get_available_types(cls) -> List[str]:
        return sorted(cls._adapters)
