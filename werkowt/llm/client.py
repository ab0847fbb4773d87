# -*- coding: utf-8 -*-
"""LLM — hosted messages API client (one request per call, no retries)."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx
from fastapi import HTTPException

from ..config import settings
from .parsing import extract_text

logger = logging.getLogger(__name__)


class LLMErrorKind(str, Enum):
    invalid_url = "invalid_url"
    no_api_key = "no_api_key"
    invalid_response = "invalid_response"
    json_parsing_error = "json_parsing_error"
    network_error = "network_error"
    invalid_format = "invalid_format"


_USER_MESSAGES = {
    LLMErrorKind.invalid_url: "Invalid API URL",
    LLMErrorKind.no_api_key: "No API key configured",
    LLMErrorKind.invalid_response: "Invalid response from the meal planning service",
    LLMErrorKind.json_parsing_error: "Failed to parse meal plan data",
    LLMErrorKind.network_error: "Network error",
    LLMErrorKind.invalid_format: "The meal planning service returned an invalid meal plan format",
}


class LLMError(RuntimeError):
    def __init__(self, kind: LLMErrorKind, detail: str | None = None) -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(self.user_message if not detail else f"{self.user_message}: {detail}")

    @property
    def user_message(self) -> str:
        base = _USER_MESSAGES[self.kind]
        if self.kind == LLMErrorKind.network_error and self.detail:
            return f"{base}: {self.detail}"
        return base

    def to_http_exception(self) -> HTTPException:
        status = 503 if self.kind == LLMErrorKind.no_api_key else 502
        return HTTPException(status_code=status, detail=self.user_message)


@dataclass(frozen=True)
class LLMSettings:
    api_key: str
    base_url: str
    model: str
    version: str
    timeout: float
    max_tokens: int

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/v1/messages"


def _env_number(name: str, default: float, cast: type) -> Any:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return cast(default)
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("ignoring malformed %s=%r, using %s", name, raw, default)
        return cast(default)
    if value <= 0:
        logger.warning("ignoring non-positive %s=%r, using %s", name, raw, default)
        return cast(default)
    return value


def resolve_llm_settings() -> LLMSettings:
    api_key = (os.environ.get("ANTHROPIC_API_KEY") or settings.anthropic_api_key or "").strip()
    base_url = (os.environ.get("ANTHROPIC_BASE_URL") or settings.anthropic_base_url or "").strip().rstrip("/")
    model = (os.environ.get("ANTHROPIC_MODEL") or "").strip() or settings.anthropic_model
    version = (os.environ.get("ANTHROPIC_VERSION") or "").strip() or settings.anthropic_version
    timeout = _env_number("ANTHROPIC_TIMEOUT", settings.anthropic_timeout, float)
    max_tokens = _env_number("ANTHROPIC_MAX_TOKENS", settings.anthropic_max_tokens, int)

    parsed = urlparse(base_url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise LLMError(LLMErrorKind.invalid_url, base_url or None)
    if not api_key:
        raise LLMError(LLMErrorKind.no_api_key)

    return LLMSettings(
        api_key=api_key,
        base_url=base_url,
        model=model,
        version=version,
        timeout=timeout,
        max_tokens=max_tokens,
    )


def _provider_error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        snippet = (resp.text or "").replace("\n", " ").strip()[:200]
        return f"HTTP {resp.status_code}: {snippet}" if snippet else f"HTTP {resp.status_code}"
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict) and isinstance(err.get("message"), str):
            return f"HTTP {resp.status_code}: {err['message']}"
    return f"HTTP {resp.status_code}"


def create_message(
    messages: List[Dict[str, Any]],
    *,
    max_tokens: Optional[int] = None,
    system: Optional[str] = None,
    client: Optional[httpx.Client] = None,
) -> Dict[str, Any]:
    """POST one request to the messages endpoint and return the decoded body."""
    cfg = resolve_llm_settings()
    payload: Dict[str, Any] = {
        "model": cfg.model,
        "max_tokens": int(max_tokens or cfg.max_tokens),
        "messages": messages,
    }
    if system:
        payload["system"] = system
    headers = {
        "Content-Type": "application/json",
        "x-api-key": cfg.api_key,
        "anthropic-version": cfg.version,
    }

    started = time.monotonic()
    owns_client = client is None
    http = client or httpx.Client(timeout=cfg.timeout)
    try:
        resp = http.post(cfg.messages_url, headers=headers, json=payload)
    except httpx.HTTPError as exc:
        logger.warning("LLM request failed: %s", exc)
        raise LLMError(LLMErrorKind.network_error, str(exc)) from exc
    finally:
        if owns_client:
            http.close()

    elapsed = time.monotonic() - started
    logger.info("LLM call model=%s status=%s elapsed=%.2fs", cfg.model, resp.status_code, elapsed)

    if resp.status_code >= 400:
        raise LLMError(LLMErrorKind.invalid_response, _provider_error_message(resp))
    try:
        data = resp.json()
    except ValueError as exc:
        raise LLMError(LLMErrorKind.invalid_response, "response body is not JSON") from exc
    if not isinstance(data, dict):
        raise LLMError(LLMErrorKind.invalid_response, "response body is not an object")
    return data


def complete_text(
    prompt: str,
    *,
    max_tokens: Optional[int] = None,
    system: Optional[str] = None,
    client: Optional[httpx.Client] = None,
) -> str:
    """Single user turn in, concatenated text blocks out."""
    data = create_message(
        [{"role": "user", "content": prompt}],
        max_tokens=max_tokens,
        system=system,
        client=client,
    )
    text = extract_text(data)
    if not text.strip():
        raise LLMError(LLMErrorKind.invalid_response, "response contains no text content")
    return text
