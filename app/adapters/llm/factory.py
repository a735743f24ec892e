"""Factory for creating the configured LLM client."""

import logging

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.gemini_client import GeminiClient
from app.core.config import settings
from app.core.errors import ConfigurationAppError

logger = logging.getLogger(__name__)


def create_llm_client() -> AbstractLLMClient:
    """Instantiate the Gemini client from app.core.config.settings.

    Called per request so a missing key surfaces as a request failure rather
    than a startup crash.

    Returns:
        AbstractLLMClient: Configured Gemini client.

    Raises:
        ConfigurationAppError: If GEMINI_API_KEY is not set.
    """
    gemini = settings.gemini

    if not gemini.api_key:
        logger.error(
            "llm_configuration_missing",
            extra={"setting": "GEMINI_API_KEY", "app_env": settings.app_env},
        )
        raise ConfigurationAppError(
            code="llm_missing_api_key",
            message="API configuration missing",
            details="GEMINI_API_KEY is not set",
        )

    return GeminiClient(
        api_key=gemini.api_key,
        model=gemini.model,
        base_url=gemini.base_url,
        temperature=gemini.temperature,
        max_output_tokens=gemini.max_output_tokens,
        timeout_seconds=gemini.timeout_seconds,
    )
