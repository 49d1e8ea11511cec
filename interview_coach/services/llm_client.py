"""
LLMClient - generative text over OpenAI-compatible chat completions
Groq first by default, OpenAI as secondary, with retry and per-provider circuit breaker
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

from interview_coach.core.config import Settings, settings as default_settings
from interview_coach.core.metrics import collector

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    GROQ = "groq"
    OPENAI = "openai"


PROVIDER_URLS: Dict[LLMProvider, str] = {
    LLMProvider.GROQ: "https://api.groq.com/openai/v1/chat/completions",
    LLMProvider.OPENAI: "https://api.openai.com/v1/chat/completions",
}


class LLMUnavailableError(Exception):
    """Every configured provider failed or none is configured."""


@dataclass
class LLMRequest:
    """Standardized LLM request format"""
    prompt: str
    temperature: float = 0.3
    max_tokens: Optional[int] = None
    system_message: Optional[str] = None
    json_mode: bool = False


@dataclass
class LLMResponse:
    """Standardized LLM response format"""
    content: str
    provider: LLMProvider
    model: str
    tokens_used: Optional[int] = None
    response_time_ms: int = 0


@dataclass
class CircuitBreakerState:
    """Circuit breaker state for each provider"""
    failure_count: int = 0
    last_failure_time: float = 0
    is_open: bool = False
    next_attempt_time: float = 0


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, (httpx.TransportError, ValueError, KeyError))


class LLMClient:
    """
    Chat-completions client with circuit breaker and exponential backoff
    """

    def __init__(
        self,
        settings: Settings = default_settings,
        http_client: Optional[httpx.AsyncClient] = None,
        base_backoff: float = 1.0,
        max_backoff: float = 8.0,
    ):
        self.settings = settings
        self._http = http_client
        self.circuit_breakers: Dict[LLMProvider, CircuitBreakerState] = {
            provider: CircuitBreakerState() for provider in LLMProvider
        }

        # Circuit breaker config
        self.max_failures = 5
        self.circuit_timeout = 300  # 5 minutes
        self.base_backoff = base_backoff
        self.max_backoff = max_backoff

    def _credentials(self, provider: LLMProvider) -> tuple[Optional[str], str]:
        if provider == LLMProvider.GROQ:
            return self.settings.groq_api_key, self.settings.groq_model
        return self.settings.openai_api_key, self.settings.openai_model

    def _provider_order(self) -> List[LLMProvider]:
        try:
            primary = LLMProvider(self.settings.primary_llm_provider)
        except ValueError:
            primary = LLMProvider.GROQ
        order = [primary] + [p for p in LLMProvider if p != primary]
        return [p for p in order if self._credentials(p)[0]]

    def _is_circuit_open(self, provider: LLMProvider) -> bool:
        """Check if circuit breaker is open for provider"""
        breaker = self.circuit_breakers[provider]

        if not breaker.is_open:
            return False

        # Half-open after the timeout
        if time.time() > breaker.next_attempt_time:
            breaker.is_open = False
            breaker.failure_count = 0
            return False

        return True

    def _record_success(self, provider: LLMProvider) -> None:
        breaker = self.circuit_breakers[provider]
        breaker.failure_count = 0
        breaker.is_open = False

    def _record_failure(self, provider: LLMProvider) -> None:
        breaker = self.circuit_breakers[provider]
        breaker.failure_count += 1
        breaker.last_failure_time = time.time()

        if breaker.failure_count >= self.max_failures:
            breaker.is_open = True
            breaker.next_attempt_time = time.time() + self.circuit_timeout
            logger.warning("Circuit opened", extra={"provider": provider.value})

    async def _post(self, url: str, payload: Dict[str, Any], headers: Dict[str, str]) -> Dict[str, Any]:
        if self._http is not None:
            response = await self._http.post(url, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()
        async with httpx.AsyncClient(timeout=self.settings.llm_timeout_seconds) as client:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()

    async def _call_provider(self, provider: LLMProvider, request: LLMRequest) -> LLMResponse:
        api_key, model = self._credentials(provider)
        if not api_key:
            raise ValueError(f"{provider.value} API key not configured")

        messages = []
        if request.system_message:
            messages.append({"role": "system", "content": request.system_message})
        messages.append({"role": "user", "content": request.prompt})

        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": request.temperature,
        }
        if request.max_tokens:
            payload["max_tokens"] = request.max_tokens
        if request.json_mode:
            payload["response_format"] = {"type": "json_object"}

        start_time = time.time()
        data = await self._post(
            PROVIDER_URLS[provider], payload, {"Authorization": f"Bearer {api_key}"}
        )
        content = data["choices"][0]["message"]["content"]
        if not isinstance(content, str) or not content.strip():
            raise ValueError("Empty completion")

        return LLMResponse(
            content=content,
            provider=provider,
            model=model,
            tokens_used=(data.get("usage") or {}).get("total_tokens"),
            response_time_ms=int((time.time() - start_time) * 1000),
        )

    async def _call_with_retry(self, provider: LLMProvider, request: LLMRequest) -> LLMResponse:
        """Call provider with exponential backoff retry"""
        max_retries = max(1, self.settings.llm_max_retries)

        for attempt in range(max_retries):
            try:
                return await self._call_provider(provider, request)
            except Exception as e:
                if attempt < max_retries - 1 and _is_retryable(e):
                    backoff = min(self.base_backoff * (2 ** attempt), self.max_backoff)
                    logger.info(
                        f"LLM call failed, retrying in {backoff}s: {e}",
                        extra={"provider": provider.value, "attempt": attempt + 1},
                    )
                    await asyncio.sleep(backoff)
                    continue
                raise

        raise LLMUnavailableError(f"Max retries ({max_retries}) exceeded for {provider.value}")

    async def complete(self, request: LLMRequest) -> LLMResponse:
        """
        Try providers in preference order; raise LLMUnavailableError when all fail
        """
        providers = self._provider_order()
        if not providers:
            raise LLMUnavailableError("No LLM provider configured")

        errors: List[str] = []
        for provider in providers:
            if self._is_circuit_open(provider):
                errors.append(f"{provider.value}: circuit open")
                continue

            try:
                response = await self._call_with_retry(provider, request)
                self._record_success(provider)
                collector.record_histogram(f"llm_{provider.value}_ms", response.response_time_ms)
                return response
            except Exception as e:
                self._record_failure(provider)
                errors.append(f"{provider.value}: {e}")
                logger.warning(f"LLM provider failed: {e}", extra={"provider": provider.value})

        raise LLMUnavailableError("; ".join(errors))

    async def generate(self, prompt: str, temperature: float = 0.3) -> str:
        """Plain text generation used by the analyzers"""
        response = await self.complete(LLMRequest(prompt=prompt, temperature=temperature))
        return response.content

    def get_stats(self) -> Dict[str, Any]:
        return {
            "providers": [p.value for p in self._provider_order()],
            "circuit_breakers": {
                provider.value: {
                    "failure_count": breaker.failure_count,
                    "is_open": breaker.is_open,
                }
                for provider, breaker in self.circuit_breakers.items()
            },
        }

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
