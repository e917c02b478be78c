"""vidbrief configuration — loads settings from .env file or environment.

Config is loaded from (in priority order):
  1. Environment variables (highest priority)
  2. .env file in current directory
  3. .vidbrief/.env file
  4. Defaults
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

_loaded = False

# Shared by the metadata fallback and the caller-side "too short" check.
MIN_TRANSCRIPT_CHARS = 50

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_PREVIEW_CHARS = 15_000
DEFAULT_MAX_TOKENS = 900
DEFAULT_LLM_TIMEOUT = 60
DEFAULT_STRATEGY_TIMEOUT = 45
DEFAULT_PROBE_TIMEOUT = 30

_TRUTHY = {"1", "true", "yes", "on"}


def _parse_env_file(path: Path) -> dict[str, str]:
    """Parse a simple .env file (KEY=VALUE, one per line)."""
    values: dict[str, str] = {}
    if not path.exists():
        return values
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip().strip("\"'")
        values[key] = value
    return values


def load_config() -> None:
    """Load config from .env files into os.environ (if not already set)."""
    global _loaded
    if _loaded:
        return
    _loaded = True

    candidates = [
        Path.cwd() / ".env",
        Path.cwd() / ".vidbrief" / ".env",
    ]

    for env_path in candidates:
        values = _parse_env_file(env_path)
        if values:
            logger.debug("Loaded config from %s", env_path)
            for key, value in values.items():
                if key not in os.environ:  # env vars take priority
                    os.environ[key] = value
            break  # use first found


def get(key: str, default: str = "") -> str:
    """Get a config value (loads .env on first call)."""
    load_config()
    return os.environ.get(key, default)


def get_int(key: str, default: int) -> int:
    raw = get(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", key, raw, default)
        return default


def get_bool(key: str, default: bool = False) -> bool:
    raw = get(key)
    if not raw:
        return default
    return raw.strip().lower() in _TRUTHY


def debug_enabled() -> bool:
    return get_bool("VIDBRIEF_DEBUG")


def temp_dir() -> Path:
    """Directory for transient caption artifacts."""
    path = Path(get("VIDBRIEF_TEMP_DIR") or tempfile.gettempdir())
    path.mkdir(parents=True, exist_ok=True)
    return path


def llm_settings() -> tuple[str | None, str | None, str]:
    """Return (api_key, base_url, model) for the completion service."""
    api_key = get("VIDBRIEF_LLM_API_KEY") or get("OPENAI_API_KEY") or None
    base_url = get("VIDBRIEF_LLM_BASE_URL") or None
    model = get("VIDBRIEF_LLM_MODEL", DEFAULT_MODEL)
    return api_key, base_url, model


def setup_logging() -> None:
    """Configure root logging for the CLI and API entry points."""
    level = logging.DEBUG if debug_enabled() else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
