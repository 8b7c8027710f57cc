"""LLM module - Initializes and registers LLM providers.

This module ensures that all provider implementations are registered
with the LLMFactory at import time.
"""

from . import provider  # Import to trigger provider registration
from .base import BaseProvider, LLMFactory, get_llm
from .relay import ModelRelay, TransportError

__all__ = [
    "get_llm",
    "LLMFactory",
    "BaseProvider",
    "ModelRelay",
    "TransportError",
    "provider",
]
