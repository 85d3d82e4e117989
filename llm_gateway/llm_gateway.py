from __future__ import annotations  # Schema-validated chat-completions gateway

import json
import logging
import os
import threading
from typing import Any, Dict, Optional, Protocol, Sequence, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from config import LlmRoute


logger = logging.getLogger(__name__)


_ROUTE_LOCKS: Dict[str, threading.Lock] = {}
_ROUTE_LOCKS_GUARD = threading.Lock()


class HttpResponse(Protocol):  # Subset of httpx.Response used by the gateway
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...


class HttpClient(Protocol):  # Subset of httpx.Client used by the gateway
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> HttpResponse: ...


class LlmGatewayError(RuntimeError):  # Transport, status or validation failure
    pass


T = TypeVar("T", bound=BaseModel)


def call(
    task: str,
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
) -> T:  # Single user prompt, validated reply
    return chat([{"role": "user", "content": task}], schema, cfg=cfg, client=client)


def chat(
    messages: Sequence[Dict[str, str]],
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
) -> T:
    if cfg.sequential:
        with _lock_for(cfg):
            return _run(messages, schema, cfg, client)
    return _run(messages, schema, cfg, client)


def _run(
    messages: Sequence[Dict[str, str]],
    schema: Type[T],
    cfg: LlmRoute,
    client: Optional[HttpClient],
) -> T:
    schema_json = json.dumps(schema.model_json_schema(), indent=2)
    base = [{"role": "system", "content": "Reply with a single JSON object matching this schema:\n" + schema_json}]
    base.extend(_normalize_messages(messages))
    attempts = cfg.max_retries + 1
    preview = _preview(base[1:])
    logger.info("LLM request start route=%s model=%s attempts=%d preview=%s", cfg.name, cfg.model, attempts, preview)
    last_error: Optional[Exception] = None
    for attempt in range(attempts):
        attempt_messages = list(base)
        if last_error is not None:
            attempt_messages.append({"role": "system", "content": _retry_hint(str(last_error))})
        data = _send(cfg, _payload(cfg, attempt_messages), client)
        content = _extract_content(data)
        try:
            parsed = schema.model_validate_json(_strip_code_fences(content))
        except ValidationError as exc:
            logger.warning(
                "LLM output validation failed route=%s attempt=%d/%d: %s",
                cfg.name,
                attempt + 1,
                attempts,
                exc.errors()[0].get("msg", exc) if exc.errors() else exc,
            )
            last_error = exc
            continue
        logger.info("LLM request done route=%s model=%s attempt=%d", cfg.name, cfg.model, attempt + 1)
        return parsed
    raise LlmGatewayError("LLM output validation failed") from last_error


def _lock_for(cfg: LlmRoute) -> threading.Lock:
    key = cfg.name or f"{cfg.base_url}{cfg.endpoint}"
    with _ROUTE_LOCKS_GUARD:
        lock = _ROUTE_LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _ROUTE_LOCKS[key] = lock
    return lock


def _payload(cfg: LlmRoute, messages: list[Dict[str, str]]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"model": cfg.model, "messages": messages}
    if cfg.temperature is not None:
        payload["temperature"] = cfg.temperature
    if cfg.response_format:
        payload["response_format"] = {"type": cfg.response_format}
    return payload


def _headers(cfg: LlmRoute) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if cfg.api_key_env:
        api_key = os.getenv(cfg.api_key_env)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        else:
            logger.warning("API key env %s is not set for route %s", cfg.api_key_env, cfg.name)
    headers.update(cfg.extra_headers)
    return headers


def _send(cfg: LlmRoute, payload: Dict[str, Any], client: Optional[HttpClient]) -> Any:  # POST and decode JSON body
    url = f"{cfg.base_url}{cfg.endpoint}"
    headers = _headers(cfg)
    try:
        if client is not None:
            response = client.post(url, json=payload, headers=headers, timeout=cfg.timeout_s)
            return _decode(response)
        with httpx.Client(timeout=cfg.timeout_s) as http_client:
            response = http_client.post(url, json=payload, headers=headers)
            return _decode(response)
    except httpx.HTTPError as exc:
        logger.error("LLM transport failure route=%s: %s", cfg.name, exc)
        raise LlmGatewayError("LLM transport failed") from exc


def _decode(response: HttpResponse) -> Any:
    if response.status_code >= 400:
        logger.error("LLM error status: %s", response.status_code)
        raise LlmGatewayError(f"LLM returned status {response.status_code}")
    try:
        return response.json()
    except ValueError as exc:
        logger.error("Invalid JSON payload from LLM: %s", exc)
        raise LlmGatewayError("LLM payload was not JSON") from exc


def _normalize_messages(messages: Sequence[Dict[str, str]]) -> list[Dict[str, str]]:
    normalized: list[Dict[str, str]] = []
    for item in messages:
        role = str(item.get("role", "")).strip()
        if not role:
            raise ValueError("Chat message missing role")
        normalized.append({"role": role, "content": str(item.get("content", ""))})
    return normalized


def _preview(messages: Sequence[Dict[str, str]], limit: int = 120) -> str:
    for message in messages:
        text = message.get("content", "").strip()
        if text:
            first = text.splitlines()[0]
            return first if len(first) <= limit else first[: limit - 3] + "..."
    return ""


def _extract_content(data: Any) -> str:  # OpenAI-style choices or bare content
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")
            if isinstance(message, dict) and isinstance(message.get("content"), str):
                return message["content"]
        if isinstance(data.get("content"), str):
            return data["content"]
    raise LlmGatewayError("LLM response missing content")


def _strip_code_fences(content: str) -> str:
    text = content.strip()
    if not text.startswith("```"):
        return text
    lines = text.splitlines()[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines).strip()


def _retry_hint(error_text: str) -> str:
    reason = error_text.splitlines()[0].strip() if error_text else ""
    if len(reason) > 200:
        reason = reason[:197] + "..."
    hint = "The previous reply failed validation."
    if reason:
        hint += f" Reason: {reason}."
    return hint + " Return a single JSON object that matches the schema."
