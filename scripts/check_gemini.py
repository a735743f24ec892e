#!/usr/bin/env python3
"""Manual smoke test for the configured Gemini API key.

Lists the models visible to the key, then sends a one-line prompt with a
small token cap and prints the reply:

    python scripts/check_gemini.py

Exit code 0 = key works, 1 = key missing or the API call failed.
"""

from __future__ import annotations

import asyncio
import sys

from app.adapters.llm.gemini_client import GeminiClient
from app.core.config import settings
from app.core.errors import LLMAppError

SMOKE_PROMPT = 'Antworte mit "Hallo" auf Deutsch.'
SMOKE_MAX_OUTPUT_TOKENS = 100
PLACEHOLDER_KEYS = {"", "your_gemini_api_key_here"}


async def check(client: GeminiClient) -> int:
    print("Listing available models...")
    try:
        for name in await client.list_models():
            print(f"- {name}")
    except LLMAppError as exc:
        # Listing is informational; generation below is the real check
        print(f"Could not list models: {exc.message}", file=sys.stderr)

    print(f"\nTesting content generation with {client.model}...")
    try:
        reply = await client.generate_text(
            SMOKE_PROMPT, max_output_tokens=SMOKE_MAX_OUTPUT_TOKENS
        )
    except LLMAppError as exc:
        print(f"ERROR: {exc.message}", file=sys.stderr)
        return 1

    print("OK: API test succeeded")
    print(f"Reply: {reply}")
    return 0


def main() -> int:
    api_key = settings.gemini.api_key or ""
    if api_key in PLACEHOLDER_KEYS:
        print("ERROR: GEMINI_API_KEY is not set", file=sys.stderr)
        return 1

    print(f"Using API key {api_key[:10]}...")
    client = GeminiClient(
        api_key=api_key,
        model=settings.gemini.model,
        base_url=settings.gemini.base_url,
        temperature=settings.gemini.temperature,
        timeout_seconds=settings.gemini.timeout_seconds,
    )
    return asyncio.run(check(client))


if __name__ == "__main__":
    sys.exit(main())
