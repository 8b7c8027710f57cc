from __future__ import annotations

import logging
from typing import Any

from langchain_ollama import ChatOllama
from langchain_openai import AzureChatOpenAI, ChatOpenAI

from dual_terminal.core.config import LLMConfig

from .base import BaseProvider, LLMFactory


class OllamaProvider(BaseProvider):
    """Provider implementation for models served by a local Ollama instance.

    Example:
      >>> llm = OllamaProvider().create_client(config=LLMConfig(), model="gemma3:4b")
      >>> response = llm.invoke("Hello!")
    """

    def create_client(
        self, config: LLMConfig, model: str, **kwargs: Any
    ) -> ChatOllama:
        """Instantiate a ChatOllama client.

        Args:
            config: LLM settings (base URL, thread cap, temperature).
            model: Model tag to load, e.g. ``deepseek-r1:7b``.
            **kwargs: Optional overrides passed to ``ChatOllama``.

        Returns:
            ChatOllama: A fully initialized LangChain `ChatOllama` instance.
        """
        logging.debug(f"Initializing Ollama chat model: {model}")

        params: dict[str, Any] = {
            "model": model,
            "base_url": config.ollama_base_url,
            "temperature": config.temperature,
            "num_thread": config.num_thread,
        }
        params.update(kwargs)
        return ChatOllama(**params)


class OpenAIProvider(BaseProvider):
    """Provider implementation for OpenAI models.

    This class creates and configures a LangChain `ChatOpenAI` client instance.

    Example:
      >>> llm = OpenAIProvider().create_client(config=LLMConfig(), model="gpt-4o-mini")
      >>> response = llm.invoke("Summarize key insights from the report.")
    """

    def create_client(
        self, config: LLMConfig, model: str, **kwargs: Any
    ) -> ChatOpenAI:
        """Instantiate a ChatOpenAI client.

        Args:
            config: LLM settings holding the API key.
            model: Model name.
            **kwargs: Optional overrides (e.g., streaming).

        Returns:
            ChatOpenAI: A fully initialized LangChain `ChatOpenAI` instance.

        Raises:
            ValueError: If required parameters (`api_key` or `model`) are missing.
        """
        api_key = config.openai_api_key

        if not api_key or not model:
            raise ValueError(
                "Missing required OpenAI configuration: "
                "OPENAI_API_KEY or CHAT_MODEL/AGENT_MODEL not set."
            )

        logging.debug(f"Initializing OpenAI Chat model: {model}")

        return ChatOpenAI(
            api_key=api_key,  # type: ignore
            model=model,
            temperature=config.temperature,
            **kwargs,
        )


class AzureOpenAIProvider(BaseProvider):
    """Provider implementation for Azure-hosted OpenAI models.

    The configured chat/agent model names are used as Azure deployment ids.
    """

    def create_client(
        self, config: LLMConfig, model: str, **kwargs: Any
    ) -> AzureChatOpenAI:
        """Instantiate an AzureChatOpenAI client.

        Args:
            config: LLM settings holding the Azure endpoint and credentials.
            model: Azure deployment id.
            **kwargs: Optional runtime overrides (e.g., max_tokens, streaming).

        Returns:
            AzureChatOpenAI: A fully initialized LangChain `AzureChatOpenAI` instance.

        Raises:
            ValueError: If any required Azure configuration parameters are missing.
        """
        api_key = config.azure_api_key
        endpoint = config.azure_endpoint
        api_version = config.azure_api_version

        if not all([api_key, endpoint, model, api_version]):
            raise ValueError(
                "Missing required Azure OpenAI configuration. Ensure the following "
                "are defined in your environment: "
                "AZURE_OPENAI_API_KEY, AZURE_OPENAI_ENDPOINT, "
                "AZURE_OPENAI_API_VERSION, CHAT_MODEL/AGENT_MODEL."
            )

        logging.debug(f"Initializing Azure OpenAI deployment: {model}")

        return AzureChatOpenAI(
            api_key=api_key,  # type: ignore
            azure_endpoint=endpoint,
            azure_deployment=model,
            api_version=api_version,
            temperature=config.temperature,
            **kwargs,
        )


def _register_providers() -> None:
    """Register every supported provider with the factory."""
    LLMFactory.register_provider("ollama", OllamaProvider)
    LLMFactory.register_provider("openai", OpenAIProvider)
    LLMFactory.register_provider("azure_openai", AzureOpenAIProvider)


# Register providers on module import
_register_providers()
