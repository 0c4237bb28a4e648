from __future__ import annotations

import asyncio
import logging

import aiohttp

from unit_extractor.config.models import InferenceSettings
from unit_extractor.inference.interfaces import InferenceClient, InferenceError, InferenceTimeoutError

logger = logging.getLogger(__name__)


class HttpInferenceClient(InferenceClient):
    """OpenAI-compatible chat completions over aiohttp."""

    def __init__(self, settings: InferenceSettings) -> None:
        self._settings = settings

    @property
    def url(self) -> str:
        return f"{self._settings.base_url.rstrip('/')}/chat/completions"

    def _build_payload(self, system_prompt: str, user_content: str) -> dict:
        return {
            "model": self._settings.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
        }

    async def complete(
        self,
        *,
        system_prompt: str,
        user_content: str,
        timeout_seconds: float,
    ) -> str:
        if not self._settings.api_key:
            raise InferenceError("Inference API key is not configured")

        headers = {
            "Authorization": f"Bearer {self._settings.api_key}",
            "Content-Type": "application/json",
        }
        payload = self._build_payload(system_prompt, user_content)
        timeout = aiohttp.ClientTimeout(total=timeout_seconds)

        last_error: Exception | None = None
        for attempt in range(self._settings.max_retries + 1):
            try:
                async with aiohttp.ClientSession(timeout=timeout) as session:
                    async with session.post(self.url, headers=headers, json=payload) as resp:
                        if resp.status == 200:
                            data = await resp.json(content_type=None)
                            try:
                                return str(data["choices"][0]["message"]["content"])
                            except (KeyError, IndexError, TypeError) as e:
                                raise InferenceError("Unexpected chat completion payload shape") from e

                        response_text = await resp.text()
                        # Retry on rate limits (429) or server errors (5xx)
                        if resp.status == 429 or 500 <= resp.status < 600:
                            logger.warning(
                                "Inference request failed and will be retried. status=%s attempt=%s",
                                resp.status,
                                attempt + 1,
                            )
                            last_error = InferenceError(f"HTTP {resp.status}: {response_text}")
                        else:
                            logger.error(
                                "Inference request failed with a non-retryable status. status=%s",
                                resp.status,
                            )
                            raise InferenceError(f"HTTP {resp.status}: {response_text}")
            except asyncio.TimeoutError as e:
                logger.warning("Inference request timed out. attempt=%s", attempt + 1)
                last_error = InferenceTimeoutError(f"Timed out after {timeout_seconds:.1f}s")
                last_error.__cause__ = e
            except aiohttp.ClientError as e:
                logger.warning(
                    "Inference request encountered a network error. error=%s attempt=%s",
                    str(e),
                    attempt + 1,
                )
                last_error = InferenceError(str(e))
                last_error.__cause__ = e

            # Exponential backoff if we are going to retry
            if attempt < self._settings.max_retries:
                await asyncio.sleep(0.5 * (2**attempt))

        if last_error:
            raise last_error
        raise InferenceError("Max retries exceeded")
