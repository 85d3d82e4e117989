"""LLM route configuration loaded from the JSON registry file."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Sequence

from pydantic import BaseModel, Field


class LlmRoute(BaseModel):
    """Chat-completions endpoint used by one or more evaluator operations."""

    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(ge=0.1)
    max_retries: int = Field(default=2, ge=0)
    api_key_env: str | None = None
    response_format: str | None = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    sequential: bool = False
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)


class AppConfig(BaseModel):
    """Configuration root: named routes plus the target → route id registry."""

    llm_routes: Dict[str, LlmRoute]
    registry: Dict[str, str]


def load_config(path: Path) -> AppConfig:
    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def resolve_routes(cfg: AppConfig, targets: Sequence[str]) -> Dict[str, LlmRoute]:
    """Map every requested target to its route.

    Raises:
        KeyError: If a target has no registry entry or points at an unknown route.
    """

    resolved: Dict[str, LlmRoute] = {}
    for target in targets:
        route_id = cfg.registry.get(target)
        if route_id is None:
            raise KeyError(f"Registry entry missing for '{target}'")
        route = cfg.llm_routes.get(route_id)
        if route is None:
            raise KeyError(f"Route '{route_id}' missing for '{target}'")
        resolved[target] = route
    return resolved


def load_routes(path: Path, targets: Sequence[str]) -> Dict[str, LlmRoute]:
    return resolve_routes(load_config(path), targets)
