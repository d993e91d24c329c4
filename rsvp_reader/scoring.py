"""Token log-probability scoring against hosted language models.

The pacing engine only needs an async ``score_fn(context_text, chunk_text)``.
:class:`TokenScorer` provides one for OpenAI-compatible and Gemini endpoints;
:func:`call_llm` is the plain text completion used for quiz generation.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import os
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import aiohttp

from .pacing.align import ScoredToken
from .pacing.params import PacingParams

__all__ = [
    "PRICING",
    "PROVIDERS",
    "CostEstimate",
    "ProviderConfig",
    "ScoringError",
    "TokenScorer",
    "build_scoring_prompt",
    "call_llm",
    "detect_provider",
    "estimate_scoring_cost",
    "parse_gemini_logprobs",
    "parse_openai_logprobs",
    "provider_config",
    "tokens_with_offsets",
]

LOGGER = logging.getLogger(__name__)

# USD per 1M tokens
PRICING: Dict[str, Tuple[float, float]] = {
    "gpt-5-mini": (0.10, 0.40),
    "gpt-4o-mini": (0.15, 0.60),
    "gemini-2.0-flash": (0.10, 0.40),
}
DEFAULT_PRICING = PRICING["gpt-4o-mini"]

SYSTEM_PROMPT = (
    "You are a text continuation assistant. Your task is to continue the given text "
    "exactly as provided. Do not add any commentary or modifications. Simply output "
    "the exact continuation text."
)


class ScoringError(RuntimeError):
    """Raised when a provider request fails or cannot be made."""


@dataclass(frozen=True)
class ProviderConfig:
    name: str
    env_key: str
    default_model: str
    endpoint: str
    supports_logprobs: bool
    scoring_model: Optional[str] = None


PROVIDERS: Dict[str, ProviderConfig] = {
    "openai": ProviderConfig(
        name="openai",
        env_key="OPENAI_API_KEY",
        default_model="gpt-5-mini",
        endpoint="https://api.openai.com/v1/chat/completions",
        supports_logprobs=True,
        # reasoning models do not return logprobs
        scoring_model="gpt-4o-mini",
    ),
    "anthropic": ProviderConfig(
        name="anthropic",
        env_key="ANTHROPIC_API_KEY",
        default_model="claude-haiku-4-5",
        endpoint="https://api.anthropic.com/v1/messages",
        supports_logprobs=False,
    ),
    "gemini": ProviderConfig(
        name="gemini",
        env_key="GEMINI_API_KEY",
        default_model="gemini-2.0-flash",
        endpoint="https://generativelanguage.googleapis.com/v1beta/models",
        supports_logprobs=True,
        scoring_model="gemini-2.0-flash",
    ),
}


def detect_provider(env: Optional[Mapping[str, str]] = None, *, need_logprobs: bool = False) -> Optional[str]:
    """Return the first provider whose API key is set in *env*."""

    env = os.environ if env is None else env
    for name, config in PROVIDERS.items():
        if need_logprobs and not config.supports_logprobs:
            continue
        if env.get(config.env_key):
            return name
    return None


def provider_config(name: str, env: Optional[Mapping[str, str]] = None) -> Tuple[ProviderConfig, str]:
    """Return the config and API key for *name*."""

    env = os.environ if env is None else env
    config = PROVIDERS.get(name)
    if config is None:
        raise ValueError(f"Unknown provider: {name}. Supported: {', '.join(PROVIDERS)}")
    api_key = env.get(config.env_key)
    if not api_key:
        raise ScoringError(f"API key not found. Set {config.env_key} environment variable.")
    return config, api_key


def build_scoring_prompt(context_text: str, chunk_text: str, *, provider: str = "openai") -> str:
    if provider == "gemini":
        if context_text:
            return (
                "Continue this text exactly without any changes:\n\n"
                f"{context_text}\n\nThe continuation is:\n{chunk_text}"
            )
        return f"Output this text exactly:\n{chunk_text}"
    if context_text:
        return f"Continue this text exactly:\n\n{context_text}\n\nThe exact continuation is:\n{chunk_text}"
    return f"Output this text exactly:\n{chunk_text}"


def tokens_with_offsets(pairs: Iterable[Tuple[str, float]]) -> List[ScoredToken]:
    """Assign chunk-relative offsets by concatenating token strings in order."""

    tokens: List[ScoredToken] = []
    position = 0
    for text, logprob in pairs:
        tokens.append(
            ScoredToken(token=text, logprob=logprob, start_char=position, end_char=position + len(text))
        )
        position += len(text)
    return tokens


def parse_openai_logprobs(data: Mapping[str, Any]) -> List[ScoredToken]:
    choices = data.get("choices") or []
    if not choices:
        return []
    content = ((choices[0] or {}).get("logprobs") or {}).get("content") or []
    return tokens_with_offsets((entry.get("token", ""), float(entry.get("logprob", 0.0))) for entry in content)


def parse_gemini_logprobs(data: Mapping[str, Any]) -> List[ScoredToken]:
    candidates = data.get("candidates") or []
    if not candidates:
        return []
    result = (candidates[0] or {}).get("logprobsResult") or {}
    chosen = result.get("chosenCandidates") or []
    return tokens_with_offsets(
        (entry.get("token") or "", float(entry.get("logProbability") or 0.0)) for entry in chosen
    )


class TokenScorer:
    """Async ``score_fn`` backed by a provider that reports token logprobs."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        provider: Optional[str] = None,
        *,
        model: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        provider = provider or detect_provider(env, need_logprobs=True)
        if provider is None:
            raise ScoringError("No API key found. Set OPENAI_API_KEY or GEMINI_API_KEY.")
        config, api_key = provider_config(provider, env)
        if not config.supports_logprobs:
            raise ScoringError(
                f"Provider {provider} does not support token logprobs. "
                "Use openai or gemini for adaptive pacing."
            )
        self.session = session
        self.config = config
        self.api_key = api_key
        self.model = model or config.scoring_model or config.default_model

    async def __call__(self, context_text: str, chunk_text: str) -> List[ScoredToken]:
        max_tokens = math.ceil(len(chunk_text) * 2)
        if self.config.name == "gemini":
            url = f"{self.config.endpoint}/{self.model}:generateContent"
            payload: Dict[str, Any] = {
                "contents": [{"parts": [{"text": build_scoring_prompt(context_text, chunk_text, provider="gemini")}]}],
                "generationConfig": {
                    "maxOutputTokens": max_tokens,
                    "responseLogprobs": True,
                    "logprobs": 1,
                },
            }
            data = await _post_json(self.session, url, payload, params={"key": self.api_key})
            return parse_gemini_logprobs(data)

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_scoring_prompt(context_text, chunk_text)},
            ],
            "max_tokens": max_tokens,
            "logprobs": True,
            "top_logprobs": 1,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        data = await _post_json(self.session, self.config.endpoint, payload, headers=headers)
        return parse_openai_logprobs(data)


async def call_llm(
    session: aiohttp.ClientSession,
    prompt: str,
    *,
    provider: Optional[str] = None,
    model: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> str:
    """Send a single user prompt and return the reply text."""

    provider = provider or detect_provider(env)
    if provider is None:
        raise ScoringError("No API key found. Set OPENAI_API_KEY, ANTHROPIC_API_KEY, or GEMINI_API_KEY.")
    config, api_key = provider_config(provider, env)
    model = model or config.default_model

    if provider == "anthropic":
        headers = {"x-api-key": api_key, "anthropic-version": "2023-06-01"}
        payload: Dict[str, Any] = {
            "model": model,
            "max_tokens": 4096,
            "messages": [{"role": "user", "content": prompt}],
        }
        data = await _post_json(session, config.endpoint, payload, headers=headers)
        return data["content"][0]["text"]
    if provider == "gemini":
        url = f"{config.endpoint}/{model}:generateContent"
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        data = await _post_json(session, url, payload, params={"key": api_key})
        return data["candidates"][0]["content"]["parts"][0]["text"]

    headers = {"Authorization": f"Bearer {api_key}"}
    payload = {"model": model, "messages": [{"role": "user", "content": prompt}]}
    data = await _post_json(session, config.endpoint, payload, headers=headers)
    return data["choices"][0]["message"]["content"]


async def _post_json(
    session: aiohttp.ClientSession,
    url: str,
    payload: Mapping[str, Any],
    *,
    headers: Optional[Mapping[str, str]] = None,
    params: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    LOGGER.debug("POST %s", url)
    try:
        async with session.post(url, json=payload, headers=headers, params=params) as response:
            if response.status >= 400:
                detail = await response.text()
                raise ScoringError(f"{url} returned HTTP {response.status}: {detail[:500]}")
            return await response.json()
    except aiohttp.ClientError as exc:
        raise ScoringError(f"Request to {url} failed: {exc}") from exc


@dataclass(frozen=True)
class CostEstimate:
    model: str
    chunks: int
    input_tokens: int
    output_tokens: int
    cost_usd: float


def estimate_scoring_cost(
    text: str,
    provider: Optional[str] = None,
    params: Optional[PacingParams] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> CostEstimate:
    """Rough cost of scoring *text*, assuming ~1.5 tokens per word."""

    params = params or PacingParams()
    provider = provider or detect_provider(env, need_logprobs=True)
    if provider is None or provider not in PROVIDERS:
        return CostEstimate(model="unknown", chunks=0, input_tokens=0, output_tokens=0, cost_usd=0.0)
    config = PROVIDERS[provider]
    model = config.scoring_model or config.default_model
    input_price, output_price = PRICING.get(model, DEFAULT_PRICING)

    words = len(text.split())
    chunks = math.ceil(words / params.chunk_size_words)
    system_prompt_tokens = 50
    chunk_tokens = params.chunk_size_words * 1.5
    context_tokens = params.chunk_overlap_context_words * 1.5
    input_tokens = math.ceil(chunks * (system_prompt_tokens + context_tokens + chunk_tokens))
    output_tokens = math.ceil(chunks * chunk_tokens)
    cost = input_tokens / 1_000_000 * input_price + output_tokens / 1_000_000 * output_price
    return CostEstimate(
        model=model,
        chunks=chunks,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        cost_usd=cost,
    )
