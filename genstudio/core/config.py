# genstudio/core/config.py

from __future__ import annotations

import os
from pathlib import Path
from dotenv import load_dotenv

from genstudio.core.errors import ConfigurationMissing


def _load_env():
    """
    Load .env from the project root (works locally + on hosts where env vars exist anyway).
    We don't override existing OS env vars.
    """
    # This file: genstudio/core/config.py  -> parents[2] = project root
    root_dir = Path(__file__).resolve().parents[2]
    env_path = root_dir / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)
    else:
        # fallback: try current working directory
        load_dotenv(override=False)


_load_env()


def _clean(s: str | None) -> str:
    s = (s or "").strip()
    # remove wrapping quotes if present
    if len(s) >= 2 and ((s[0] == s[-1] == '"') or (s[0] == s[-1] == "'")):
        s = s[1:-1].strip()
    return s


def _env(name: str) -> str:
    return _clean(os.getenv(name))


def _float(name: str, default: float | None) -> float | None:
    raw = _env(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int(name: str, default: int) -> int:
    try:
        return int(_env(name) or str(default))
    except ValueError:
        return default


# Left in generated frontends as a "fill me in" value; means "not configured".
PLACEHOLDER_GENERATION_URL = "https://your-fastapi-url.com"


class Settings:
    """Snapshot of the environment. Re-read with ``get_settings(reload=True)``."""

    def __init__(self):
        self.backend_url = _env("BACKEND_URL").rstrip("/")
        self.backend_anon_key = _env("BACKEND_ANON_KEY")
        self.backend_service_key = _env("BACKEND_SERVICE_KEY")

        generation_url = _env("GENERATION_API_URL").rstrip("/")
        if generation_url == PLACEHOLDER_GENERATION_URL:
            generation_url = ""
        self.generation_api_url = generation_url
        self.generation_timeout = _float("GENERATION_TIMEOUT_SECONDS", None)

        self.simulated_delay = _float("SIMULATED_DELAY_SECONDS", 5.0)
        self.progress_tick = _float("PROGRESS_TICK_SECONDS", 1.0)
        self.project_retention_min = _int("PROJECT_RETENTION_MINUTES", 60)
        self.plan_term_days = _int("PLAN_TERM_DAYS", 30)

        self.frontend_origin = _env("FRONTEND_ORIGIN") or "*"
        self.app_url = _env("APP_URL")
        self.plan_contact_url = _env("PLAN_CONTACT_URL")
        self.log_level = (_env("LOG_LEVEL") or "INFO").upper()

    def missing(self) -> list[str]:
        missing = []
        if not self.backend_url:
            missing.append("BACKEND_URL")
        if not self.backend_anon_key:
            missing.append("BACKEND_ANON_KEY")
        return missing

    @property
    def backend_configured(self) -> bool:
        return not self.missing()

    @property
    def generation_configured(self) -> bool:
        return bool(self.generation_api_url)

    def require_backend(self) -> "Settings":
        missing = self.missing()
        if missing:
            raise ConfigurationMissing(missing)
        return self


_settings: Settings | None = None


def get_settings(reload: bool = False) -> Settings:
    global _settings
    if _settings is None or reload:
        _settings = Settings()
    return _settings
