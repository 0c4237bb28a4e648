from __future__ import annotations


class InferenceError(RuntimeError):
    """The inference service could not produce a response."""


class InferenceTimeoutError(InferenceError):
    """The inference call exceeded its deadline."""


class InferenceClient:
    async def complete(
        self,
        *,
        system_prompt: str,
        user_content: str,
        timeout_seconds: float,
    ) -> str:
        """
        Send one prompt pair to the inference service and return the raw text reply.

        Implementations raise InferenceError (or a subclass) on any failure.
        Callers own the hard deadline; timeout_seconds is passed so that transport
        level timeouts can be aligned with it.
        """
        raise NotImplementedError
