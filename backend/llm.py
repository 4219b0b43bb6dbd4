# llm.py — Multi-provider LLM completion client
# Anthropic Messages, Google Gemini generateContent and OpenAI-compatible
# chat completions (openai, groq, local) behind one async complete() call.

import os
import logging
from typing import Optional, Dict, Any

import httpx

from errors import ProviderError

logger = logging.getLogger("digital-coo.llm")

LLM_PROVIDERS: Dict[str, Dict[str, Any]] = {
    "anthropic": {
        "base_url": "https://api.anthropic.com/v1",
        "env_key": "ANTHROPIC_API_KEY",
        "default_model": "claude-sonnet-4-20250514",
    },
    "gemini": {
        "base_url": "https://generativelanguage.googleapis.com/v1beta",
        "env_key": "GEMINI_API_KEY",
        "default_model": "gemini-2.5-flash",
    },
    "openai": {
        "base_url": "https://api.openai.com/v1",
        "env_key": "OPENAI_API_KEY",
        "default_model": "gpt-4o-mini",
    },
    "groq": {
        "base_url": "https://api.groq.com/openai/v1",
        "env_key": "GROQ_API_KEY",
        "default_model": "llama-3.3-70b-versatile",
    },
    "local": {
        "base_url": os.getenv("LOCAL_LLM_URL", "http://localhost:11434/v1"),
        "env_key": None,
        "default_model": "llama3.1:8b",
    },
}


class LLMClient:
    """One provider/model pair. The HTTP client is shared for the process lifetime."""

    def __init__(
        self,
        provider: str,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        provider = provider.lower()
        if provider not in LLM_PROVIDERS:
            raise ValueError(f"Unknown LLM provider: {provider}")
        self.provider = provider
        self.config = LLM_PROVIDERS[provider]
        self.model = model or self.config["default_model"]
        env_key = self.config["env_key"]
        self.api_key = api_key if api_key is not None else (os.getenv(env_key, "") if env_key else "local")
        self.http = http_client or httpx.AsyncClient(timeout=60)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def aclose(self):
        await self.http.aclose()

    async def complete(self, prompt: str, max_tokens: int = 1024) -> str:
        if not self.api_key:
            raise ProviderError(f"{self.config['env_key']} is not configured")
        try:
            if self.provider == "anthropic":
                return await self._anthropic(prompt, max_tokens)
            if self.provider == "gemini":
                return await self._gemini(prompt, max_tokens)
            return await self._openai_compatible(prompt, max_tokens)
        except httpx.HTTPStatusError as e:
            logger.warning(f"LLM call failed ({self.provider}/{self.model}): HTTP {e.response.status_code}")
            raise ProviderError(f"{self.provider} returned HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"LLM call failed ({self.provider}/{self.model}): {e}")
            raise ProviderError(f"{self.provider} request failed: {e}")
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning(f"Unexpected LLM response shape ({self.provider}/{self.model}): {e}")
            raise ProviderError(f"{self.provider} returned an unexpected response")

    async def _anthropic(self, prompt: str, max_tokens: int) -> str:
        resp = await self.http.post(
            f"{self.config['base_url']}/messages",
            headers={
                "x-api-key": self.api_key,
                "anthropic-version": "2023-06-01",
                "content-type": "application/json",
            },
            json={
                "model": self.model,
                "max_tokens": max_tokens,
                "messages": [{"role": "user", "content": prompt}],
            },
        )
        resp.raise_for_status()
        blocks = resp.json()["content"]
        return "".join(b.get("text", "") for b in blocks if b.get("type") == "text")

    async def _gemini(self, prompt: str, max_tokens: int) -> str:
        resp = await self.http.post(
            f"{self.config['base_url']}/models/{self.model}:generateContent",
            headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
            json={
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {"maxOutputTokens": max_tokens},
            },
        )
        resp.raise_for_status()
        candidates = resp.json().get("candidates") or []
        if not candidates:
            return ""
        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(p.get("text", "") for p in parts)

    async def _openai_compatible(self, prompt: str, max_tokens: int) -> str:
        headers = {"Content-Type": "application/json"}
        if self.config["env_key"]:
            headers["Authorization"] = f"Bearer {self.api_key}"
        resp = await self.http.post(
            f"{self.config['base_url']}/chat/completions",
            headers=headers,
            json={
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "max_tokens": max_tokens,
            },
        )
        resp.raise_for_status()
        return resp.json()["choices"][0]["message"]["content"] or ""
