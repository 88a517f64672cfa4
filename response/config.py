"""Environment-driven runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from response.storage import resolve_store_path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_STORE = "data/hands.db"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return int(default)
    try:
        return int(str(raw).strip())
    except ValueError:
        return int(default)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return float(default)
    try:
        return float(str(raw).strip())
    except ValueError:
        return float(default)


def _resolve_store(raw: str) -> Path:
    raw_value = str(raw or "").strip() or DEFAULT_STORE
    candidate = resolve_store_path(raw_value)
    if candidate.is_absolute():
        return candidate
    return (PROJECT_ROOT / candidate).resolve()


@dataclass(frozen=True)
class RuntimeConfig:
    env: str
    store_path: Path
    hand_budget_seconds: float
    host: str
    port: int
    debug: bool


def load_runtime_config() -> RuntimeConfig:
    env = str(os.getenv("RESPONSE_ENV", "development")).strip().lower()
    return RuntimeConfig(
        env=env,
        store_path=_resolve_store(os.getenv("HAND_STORE_URI", DEFAULT_STORE)),
        hand_budget_seconds=max(0.0, _env_float("RESPONSE_HAND_BUDGET_SECONDS", 30.0)),
        host=str(os.getenv("RESPONSE_HOST", "127.0.0.1")).strip(),
        port=_env_int("RESPONSE_PORT", 8788),
        debug=_env_bool("RESPONSE_DEBUG", env != "production"),
    )
