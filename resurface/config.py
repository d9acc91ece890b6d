"""Configuration loading from YAML and environment.

Secrets (API tokens) are taken from environment variables or from files
(Docker secrets). Never put real tokens in config files committed to the
repo.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _read_secret(env_key: str, file_env_key: str) -> str | None:
    """Read secret from env var or from file path in env (e.g. Docker
    secrets)."""
    value = _current_env.get(env_key)
    if value:
        return value.strip()
    file_path = _current_env.get(file_env_key)
    if file_path:
        return Path(file_path).read_text().strip()
    return None


# Injected by load_config so properties can read env/file
_current_env: dict[str, str] = {}


class RedditConfig(BaseSettings):
    """Live source (Reddit API) settings."""

    model_config = SettingsConfigDict(env_prefix="REDDIT_", extra="ignore")

    api_url: str = Field(default="https://www.reddit.com", description="API base URL")
    user_agent: str = Field(default="resurface/0.1", description="User-Agent header sent with every request")
    token: str | None = Field(default=None, description="OAuth bearer token; use env or secret file")
    chunk_size: int = Field(default=100, ge=1, le=100, description="Max ids per batched comment lookup")
    timeout: int = Field(default=30, ge=1, description="Request timeout in seconds")


class PushshiftConfig(BaseSettings):
    """Archival source (Pushshift search index) settings."""

    model_config = SettingsConfigDict(env_prefix="PUSHSHIFT_", extra="ignore")

    api_url: str = Field(default="https://api.pushshift.io", description="API base URL")
    page_size: int = Field(default=100, ge=1, le=1000, description="Max comments per archival page")
    timeout: int = Field(default=30, ge=1, description="Request timeout in seconds")


class LoaderConfig(BaseSettings):
    """Comment reconciliation settings."""

    model_config = SettingsConfigDict(env_prefix="LOADER_", extra="ignore")

    max_comments: int = Field(default=100, ge=1, le=20000, description="Archival comments to fetch per load")
    # Batches are dispatched once the head batch is this full, to hide live-source latency
    dispatch_ratio: float = Field(default=0.9, gt=0, le=1, description="Fill ratio that releases a live batch")
    # Persistent loads keep paging while the shortfall is at least this many archival pages
    shortfall_chunks: float = Field(default=1.0, ge=0, description="Persistent-retry threshold in pages")
    max_context: int = Field(default=8, ge=0, le=64, description="Max ancestor depth for context expansion")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    events_level: str | None = Field(default=None, description="Level of load progress events; unset follows level")
    http_level: str = Field(default="WARNING", description="Level of the HTTP client (urllib3) logger")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    reddit: RedditConfig = Field(default_factory=RedditConfig)
    pushshift: PushshiftConfig = Field(default_factory=PushshiftConfig)
    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def reddit_token_resolved(self) -> str | None:
        """Resolve Reddit token from config, env or Docker secret file."""
        t = self.reddit.token
        if t and not t.startswith("${"):
            return t
        return _read_secret("REDDIT_TOKEN", "REDDIT_TOKEN_FILE")


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with os.environ."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    Secrets: REDDIT_TOKEN or REDDIT_TOKEN_FILE.
    """
    global _current_env
    import os

    _current_env = dict(os.environ)

    path = config_path or Path("config.yaml")
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text()) or {}
    raw = _substitute_env(raw)

    return AppConfig(
        reddit=RedditConfig(**(raw.get("reddit") or {})),
        pushshift=PushshiftConfig(**(raw.get("pushshift") or {})),
        loader=LoaderConfig(**(raw.get("loader") or {})),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
