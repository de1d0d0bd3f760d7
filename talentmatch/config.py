"""Load settings from .env, environment and an optional YAML file."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from talentmatch.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
MAX_UPLOAD_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
    data_dir: Path = ROOT_DIR / "data"
    upload_dir: Path = ROOT_DIR / "uploads"
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    llm_api_key: str = ""
    llm_base_url: str = GEMINI_OPENAI_BASE_URL
    llm_model: str = "gemini-2.5-flash"
    llm_timeout: float = 30.0
    llm_max_attempts: int = 2
    llm_max_tokens: int = 1200
    rank_workers: int = 1

    def with_overrides(self, **changes: Any) -> "Settings":
        return replace(self, **changes)


# settings field -> (environment variable, converter)
_ENV_KEYS: dict[str, tuple[str, Any]] = {
    "data_dir": ("TALENTMATCH_DATA_DIR", Path),
    "upload_dir": ("TALENTMATCH_UPLOAD_DIR", Path),
    "max_upload_bytes": ("TALENTMATCH_MAX_UPLOAD_BYTES", int),
    "llm_api_key": ("GEMINI_API_KEY", str),
    "llm_base_url": ("LLM_BASE_URL", str),
    "llm_model": ("LLM_MODEL", str),
    "llm_timeout": ("LLM_TIMEOUT", float),
    "llm_max_attempts": ("LLM_MAX_ATTEMPTS", int),
    "llm_max_tokens": ("LLM_MAX_TOKENS", int),
    "rank_workers": ("TALENTMATCH_RANK_WORKERS", int),
}


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        log.warning("Ignoring %s — expected a mapping at the top level", path)
        return {}
    unknown = set(data) - set(_ENV_KEYS)
    if unknown:
        log.warning("Ignoring unknown settings in %s: %s", path.name, ", ".join(sorted(unknown)))
    return {k: v for k, v in data.items() if k in _ENV_KEYS}


def load_settings(path: Path | None = None) -> Settings:
    """Build Settings: defaults < YAML file < environment variables."""
    path = path or Path(get_env("TALENTMATCH_CONFIG") or SETTINGS_PATH)
    values: dict[str, Any] = {}

    for field_name, raw in _load_yaml(path).items():
        convert = _ENV_KEYS[field_name][1]
        values[field_name] = convert(raw)

    for field_name, (env_key, convert) in _ENV_KEYS.items():
        raw = get_env(env_key)
        if not raw:
            continue
        try:
            values[field_name] = convert(raw)
        except ValueError:
            log.warning("Ignoring %s=%r — not a valid %s", env_key, raw, convert.__name__)

    return Settings(**values)


def ensure_dirs(settings: Settings) -> None:
    for d in (settings.data_dir, settings.upload_dir):
        d.mkdir(parents=True, exist_ok=True)
