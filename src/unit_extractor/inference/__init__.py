"""Clients for the external code-understanding inference service."""

from __future__ import annotations

from typing import TYPE_CHECKING

from unit_extractor.config.models import InferenceSettings
from unit_extractor.inference.interfaces import InferenceClient, InferenceError, InferenceTimeoutError

if TYPE_CHECKING:
    from unit_extractor.inference.chat_model import LangChainInferenceClient
    from unit_extractor.inference.http import HttpInferenceClient
    from unit_extractor.inference.mock import MockInferenceClient

__all__ = [
    "HttpInferenceClient",
    "InferenceClient",
    "InferenceError",
    "InferenceTimeoutError",
    "LangChainInferenceClient",
    "MockInferenceClient",
    "build_inference_client",
]


def build_inference_client(settings: InferenceSettings) -> InferenceClient:
    if settings.backend == "langchain":
        from unit_extractor.inference.chat_model import LangChainInferenceClient as _LangChainInferenceClient

        return _LangChainInferenceClient(settings)
    from unit_extractor.inference.http import HttpInferenceClient as _HttpInferenceClient

    return _HttpInferenceClient(settings)


def __getattr__(name: str):
    if name == "HttpInferenceClient":
        from unit_extractor.inference.http import HttpInferenceClient as _HttpInferenceClient

        return _HttpInferenceClient
    if name == "LangChainInferenceClient":
        from unit_extractor.inference.chat_model import LangChainInferenceClient as _LangChainInferenceClient

        return _LangChainInferenceClient
    if name == "MockInferenceClient":
        from unit_extractor.inference.mock import MockInferenceClient as _MockInferenceClient

        return _MockInferenceClient
    raise AttributeError(name)
