from __future__ import annotations

import asyncio
import logging

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from unit_extractor.config.models import InferenceSettings
from unit_extractor.inference.interfaces import InferenceClient, InferenceError, InferenceTimeoutError

logger = logging.getLogger(__name__)


class LangChainInferenceClient(InferenceClient):
    """The same contract as HttpInferenceClient, routed through a LangChain chat model."""

    def __init__(self, settings: InferenceSettings, llm: ChatOpenAI | None = None) -> None:
        self._settings = settings
        self._llm = llm or ChatOpenAI(
            model=settings.model,
            api_key=settings.api_key or None,
            base_url=settings.base_url,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            max_retries=settings.max_retries,
        )

    async def complete(
        self,
        *,
        system_prompt: str,
        user_content: str,
        timeout_seconds: float,
    ) -> str:
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_content)]
        try:
            response = await asyncio.wait_for(self._llm.ainvoke(messages), timeout=timeout_seconds)
        except asyncio.TimeoutError as e:
            raise InferenceTimeoutError(f"Timed out after {timeout_seconds:.1f}s") from e
        except Exception as e:
            logger.warning("Chat model invocation failed. error=%s", e)
            raise InferenceError(str(e)) from e

        content = response.content
        if isinstance(content, str):
            return content
        # Content blocks: keep the text parts only
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
