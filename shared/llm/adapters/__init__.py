"""Bundled AI provider adapters (registered on import)"""

from shared.llm.adapters.generic_adapter import GenericAdapter

__all__ = ["GenericAdapter"]
