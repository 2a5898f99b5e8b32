"""Async Ollama wrapper providing structured and free-text generation."""

from __future__ import annotations

import logging
import re
from typing import Any, TypeVar

import httpx
from ollama import AsyncClient, ResponseError
from pydantic import BaseModel, ValidationError

from .exceptions import (
    BackendConnectionError,
    BackendModelNotFoundError,
    GenerationError,
    OmniAssistError,
)

LOGGER = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Only a fence wrapping the whole reply; fences inside JSON strings are content.
_JSON_FENCE_RE = re.compile(r"\A```(?:json)?\s*(.*?)\s*```\Z", re.IGNORECASE | re.DOTALL)


class GenerationBackend:
    """Thin request/response layer over the Ollama chat endpoint.

    Every call is a single non-streaming request. Structured calls pass the
    pydantic schema as Ollama's ``format`` so the model is constrained to
    JSON, then validate the reply against the same schema.
    """

    def __init__(
        self,
        host: str,
        model: str,
        timeout: int = 120,
        temperature: float = 0.2,
        client: Any | None = None,
    ) -> None:
        self.host = host
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self._client = client if client is not None else AsyncClient(
            host=host, timeout=timeout
        )

    @classmethod
    def from_config(
        cls, ollama_config: dict[str, Any], client: Any | None = None
    ) -> GenerationBackend:
        return cls(
            host=str(ollama_config.get("host", "http://localhost:11434")),
            model=str(ollama_config.get("model", "llama3.2")),
            timeout=int(ollama_config.get("timeout", 120)),
            temperature=float(ollama_config.get("temperature", 0.2)),
            client=client,
        )

    @staticmethod
    def _build_messages(
        prompt: str, system: str | None, images: list[str] | None
    ) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if system and system.strip():
            messages.append({"role": "system", "content": system.strip()})
        user_message: dict[str, Any] = {"role": "user", "content": prompt}
        if images:
            user_message["images"] = list(images)
        messages.append(user_message)
        return messages

    @staticmethod
    def _extract_content(response: Any) -> str:
        """Pull ``message.content`` out of an SDK object or a plain dict."""
        message_obj = getattr(response, "message", None)
        if message_obj is not None:
            value = getattr(message_obj, "content", None)
            if isinstance(value, str):
                return value
        if isinstance(response, dict):
            message = response.get("message")
            if isinstance(message, dict):
                value = message.get("content")
                if isinstance(value, str):
                    return value
            value = response.get("response")
            if isinstance(value, str):
                return value
        return ""

    @staticmethod
    def _strip_json_fence(text: str) -> str | None:
        match = _JSON_FENCE_RE.match(text.strip())
        return match.group(1) if match else None

    @classmethod
    def _validate_reply(cls, text: str, schema: type[ModelT]) -> ModelT:
        try:
            return schema.model_validate_json(text)
        except ValidationError:
            unfenced = cls._strip_json_fence(text)
            if unfenced is None:
                raise
        return schema.model_validate_json(unfenced)

    def _map_exception(self, exc: Exception) -> OmniAssistError:
        if isinstance(exc, OmniAssistError):
            return exc

        if isinstance(
            exc,
            (
                httpx.ConnectError,
                httpx.ConnectTimeout,
                httpx.ReadTimeout,
                httpx.NetworkError,
                ConnectionError,
            ),
        ):
            return BackendConnectionError(
                f"Unable to connect to Ollama host {self.host}."
            )

        lower_message = str(exc).lower()
        status_code = getattr(exc, "status_code", None)
        if isinstance(exc, ResponseError) and status_code == 404:
            return BackendModelNotFoundError(
                f"Model {self.model!r} was not found on {self.host}."
            )
        if "model" in lower_message and "not found" in lower_message:
            return BackendModelNotFoundError(
                f"Model {self.model!r} was not found on {self.host}."
            )

        return GenerationError(f"Generation failed on {self.host}: {exc}")

    async def _chat(self, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        try:
            response = await self._client.chat(
                model=self.model,
                messages=messages,
                stream=False,
                options={"temperature": self.temperature},
                **kwargs,
            )
        except Exception as exc:  # noqa: BLE001 - external API can fail in many ways.
            mapped = self._map_exception(exc)
            LOGGER.warning(
                "backend.request.failed",
                extra={
                    "event": "backend.request.failed",
                    "model": self.model,
                    "error_type": mapped.__class__.__name__,
                },
            )
            raise mapped from exc
        return self._extract_content(response)

    async def generate_structured(
        self,
        prompt: str,
        schema: type[ModelT],
        *,
        system: str | None = None,
        images: list[str] | None = None,
    ) -> ModelT:
        """Generate a reply constrained to ``schema`` and validate it.

        Raises:
            GenerationError: when the reply is empty or does not match the schema.
            BackendConnectionError, BackendModelNotFoundError: on transport errors.
        """
        text = await self._chat(
            self._build_messages(prompt, system, images),
            format=schema.model_json_schema(),
        )
        if not text.strip():
            raise GenerationError("Model returned no structured output.")
        try:
            result = self._validate_reply(text, schema)
        except ValidationError as exc:
            LOGGER.warning(
                "backend.structured.invalid",
                extra={
                    "event": "backend.structured.invalid",
                    "schema": schema.__name__,
                    "errors": exc.error_count(),
                },
            )
            raise GenerationError(
                f"Model output did not match {schema.__name__}."
            ) from exc
        LOGGER.info(
            "backend.structured.ok",
            extra={"event": "backend.structured.ok", "schema": schema.__name__},
        )
        return result

    async def generate_text(self, prompt: str, *, system: str | None = None) -> str:
        """Generate a free-text reply; returns the stripped text (may be empty)."""
        text = await self._chat(self._build_messages(prompt, system, None))
        return text.strip()

    async def check_connection(self) -> bool:
        """Return whether the Ollama host is reachable."""
        try:
            await self._client.list()
            return True
        except Exception:
            return False
