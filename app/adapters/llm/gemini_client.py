"""Google Gemini (Generative Language API) client adapter."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.adapters.llm.base import AbstractLLMClient
from app.core.errors import LLMAppError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1"


class GeminiClient(AbstractLLMClient):
    """Client for the Gemini ``generateContent`` REST endpoint.

    Issues exactly one request per call: no retries, no streaming. The API key
    travels as the ``key`` query parameter.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        temperature: float = 0.1,
        max_output_tokens: int = 1000,
        timeout_seconds: float = 45.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Gemini client.

        Args:
            api_key: Gemini API key.
            model: Model name (e.g., "gemini-2.0-flash").
            base_url: API root, without trailing slash.
            temperature: Default sampling temperature.
            max_output_tokens: Default output length cap.
            timeout_seconds: Transport timeout for each request.
            http_client: Optional shared ``httpx.AsyncClient``; a short-lived
                client is opened per call when omitted.
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    @property
    def generate_url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    @property
    def models_url(self) -> str:
        return f"{self.base_url}/models"

    def build_request_body(
        self,
        prompt: str,
        *,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
    ) -> dict[str, Any]:
        """Build the ``generateContent`` JSON body for a single text prompt."""
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature if temperature is None else temperature,
                "maxOutputTokens": (
                    self.max_output_tokens if max_output_tokens is None else max_output_tokens
                ),
            },
        }

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        params = {"key": self.api_key}
        if self._http_client is not None:
            return await self._http_client.request(
                method, url, params=params, timeout=self.timeout_seconds, **kwargs
            )
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.request(method, url, params=params, **kwargs)

    async def generate_text(
        self,
        prompt: str,
        *,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        **kwargs: Any,
    ) -> str:
        """Call ``generateContent`` and return the first candidate's text.

        Raises:
            LLMAppError: On transport failure, non-2xx status, or a response
                without ``candidates[0].content.parts[0].text``.
        """
        body = self.build_request_body(
            prompt,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )

        try:
            response = await self._request("POST", self.generate_url, json=body)
        except httpx.HTTPError as exc:
            logger.error(
                "gemini.transport_error",
                extra={"model": self.model, "error_type": type(exc).__name__},
            )
            raise LLMAppError(
                code="gemini_transport_error",
                message=f"Gemini API request failed: {type(exc).__name__}",
            ) from exc

        if response.is_error:
            logger.error(
                "gemini.http_error",
                extra={"model": self.model, "http_status": response.status_code},
            )
            raise LLMAppError(
                code="gemini_http_error",
                message=f"Gemini API error: {response.status_code}",
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise LLMAppError(
                code="gemini_invalid_response",
                message="Invalid response from Gemini API",
            ) from exc

        text = extract_candidate_text(payload)
        if text is None:
            logger.error(
                "gemini.invalid_response",
                extra={
                    "model": self.model,
                    "has_candidates": isinstance(payload, dict) and bool(payload.get("candidates")),
                },
            )
            raise LLMAppError(
                code="gemini_invalid_response",
                message="Invalid response from Gemini API",
            )
        return text

    async def list_models(self) -> list[str]:
        """Return the model names visible to the configured API key.

        Raises:
            LLMAppError: On transport failure, non-2xx status or an unreadable body.
        """
        try:
            response = await self._request("GET", self.models_url)
        except httpx.HTTPError as exc:
            raise LLMAppError(
                code="gemini_transport_error",
                message=f"Gemini API request failed: {type(exc).__name__}",
            ) from exc

        if response.is_error:
            raise LLMAppError(
                code="gemini_http_error",
                message=f"Gemini API error: {response.status_code}",
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise LLMAppError(
                code="gemini_invalid_response",
                message="Invalid response from Gemini API",
            ) from exc

        models = payload.get("models", []) if isinstance(payload, dict) else None
        if not isinstance(models, list):
            raise LLMAppError(
                code="gemini_invalid_response",
                message="Invalid response from Gemini API",
            )
        return [m["name"] for m in models if isinstance(m, dict) and "name" in m]


def extract_candidate_text(payload: Any) -> str | None:
    """Return ``candidates[0].content.parts[0].text`` or None when absent."""
    if not isinstance(payload, dict):
        return None
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    if not isinstance(content, dict):
        return None
    parts = content.get("parts")
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None
    text = parts[0].get("text")
    return text if isinstance(text, str) else None
