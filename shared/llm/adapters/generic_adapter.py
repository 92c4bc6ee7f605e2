"""Generic LLM Adapter - For any OpenAI-compatible chat completions API

Works with hosted GPT/Claude gateways as well as local model servers
(vLLM, Ollama's OpenAI endpoint) that expose /chat/completions.
"""

import logging
from typing import Optional

import httpx

from shared.llm.base import (
    BaseLLMProvider,
    LLMConfig,
    LLMProviderError,
    LLMProviderFactory,
    LLMResponse,
)

logger = logging.getLogger(__name__)


class GenericAdapter(BaseLLMProvider):
    """Generic adapter for OpenAI-compatible LLM APIs"""

    @property
    def model_type(self) -> str:
        return "generic"

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout)

    def parse_response(self, result: dict) -> LLMResponse:
        """Turn a chat completions payload into an LLMResponse"""
        choices = result.get("choices") or []
        if not choices:
            raise LLMProviderError("LLM response contained no choices")

        content = choices[0].get("message", {}).get("content", "") or ""
        if not content.strip():
            raise LLMProviderError(
                f"Empty response from LLM (finish_reason={choices[0].get('finish_reason', 'unknown')})"
            )

        return LLMResponse(
            content=content,
            model=result.get("model", self.model),
            usage=result.get("usage"),
            finish_reason=choices[0].get("finish_reason"),
            parsed_json=self._extract_json(content),
        )

    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        config_override: Optional[LLMConfig] = None,
    ) -> LLMResponse:
        """Generate response using the chat completions API"""
        config = config_override or self.config
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.endpoint}/chat/completions",
                    headers=self._headers(),
                    json={
                        "model": self.model,
                        "messages": messages,
                        **config.to_dict(),
                    },
                )
        except httpx.TimeoutException:
            logger.error("LLM request timed out")
            raise

        if response.status_code != 200:
            logger.error(f"LLM request failed: {response.status_code}")
            raise LLMProviderError(f"LLM request failed: {response.status_code}")

        return self.parse_response(response.json())


# Register adapter
LLMProviderFactory.register("generic", GenericAdapter)
LLMProviderFactory.register("gpt", GenericAdapter)
LLMProviderFactory.register("claude", GenericAdapter)
LLMProviderFactory.register("openai", GenericAdapter)
