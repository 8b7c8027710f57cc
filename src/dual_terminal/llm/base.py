from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Literal, Type

log = logging.getLogger(__name__)

PROVIDER_TYPE = Literal["openai", "azure_openai", "ollama"]


class BaseProvider(ABC):
    """A chat-model backend the relay can talk to."""

    @abstractmethod
    def create_client(self, **kwargs: Any) -> Any:
        """Build a LangChain chat model for one mode's model name."""


class LLMFactory:
    """Registry of chat-model backends keyed by ``LLM_PROVIDER`` value."""

    _providers: Dict[str, Type[BaseProvider]] = {}

    @classmethod
    def register_provider(cls, name: str, provider_cls: Type[BaseProvider]) -> None:
        cls._providers[name.lower()] = provider_cls
        log.debug("Registered LLM provider: %s", name)

    @classmethod
    def get_provider(cls, name: PROVIDER_TYPE) -> BaseProvider:
        """Instantiate the backend registered under ``name``.

        Raises:
            ValueError: If no backend is registered under that name.
        """
        provider_cls = cls._providers.get(name.lower())
        if provider_cls is None:
            known = ", ".join(sorted(cls._providers)) or "none"
            raise ValueError(f"Unknown LLM provider '{name}' (registered: {known})")
        return provider_cls()

    @classmethod
    def create_llm(cls, provider: PROVIDER_TYPE, **kwargs: Any) -> Any:
        """Build a chat model through the backend registered as ``provider``.

        Args:
            provider: Backend name, one of ``ollama``, ``openai``, ``azure_openai``.
            **kwargs: Passed to the backend, typically ``config`` and ``model``.
        """
        client = cls.get_provider(provider).create_client(**kwargs)
        log.info("Created %s client for model %s", provider, kwargs.get("model"))
        return client


def get_llm(provider: PROVIDER_TYPE, **kwargs: Any):
    """Module-level shortcut for :meth:`LLMFactory.create_llm`."""
    return LLMFactory.create_llm(provider, **kwargs)
