"""Configuration loading from YAML and environment.

Secrets (estimator API key, GitHub token) are taken from environment
variables or from files (Docker secrets). Never put real keys in config
files committed to the repo.
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


# Injected by load_config so secret resolution can read env/file
_current_env: dict[str, str] = {}


class AnalysisConfig(BaseSettings):
    """Thresholds for staleness, activity tiers and contributor cutoffs."""

    model_config = SettingsConfigDict(env_prefix="ANALYSIS_", extra="ignore")

    stale_threshold_days: float = Field(default=7, gt=0, description="Days without update before an assigned issue is stale")
    active_days: float = Field(default=1, gt=0, description="Assignee is 'active' below this many idle days")
    away_days: float = Field(default=7, gt=0, description="Assignee is 'away' below this many idle days")
    highly_active_contributions: int = Field(
        default=10, ge=0, description="Contributors above this count are highly active"
    )
    active_contributor_contributions: int = Field(
        default=50, ge=0, description="Contributors above this count get the 'active' badge"
    )


class CacheConfig(BaseSettings):
    """Per-issue completion analysis memo window."""

    model_config = SettingsConfigDict(env_prefix="CACHE_", extra="ignore")

    ttl_seconds: float = Field(default=300, ge=0, description="Freshness window for a cached analysis")
    cache_fallbacks: bool = Field(default=True, description="Also memoize fallback results")


class EstimatorConfig(BaseSettings):
    """Remote completion estimator (OpenAI-compatible chat/completions gateway)."""

    model_config = SettingsConfigDict(env_prefix="ESTIMATOR_", extra="ignore")

    api_url: str = Field(default="https://ai.gateway.lovable.dev/v1", description="Gateway base URL")
    model: str = Field(default="google/gemini-2.5-flash", description="Model name sent to the gateway")
    api_key: str | None = Field(default=None, description="Gateway key; use env or secret file")
    timeout_seconds: float = Field(default=30, gt=0, description="Upper bound for one estimate call")
    max_workers: int = Field(default=4, ge=1, description="Concurrent estimate calls")


class GitHubConfig(BaseSettings):
    """GitHub API settings."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    token: str | None = Field(default=None, description="PAT or app token; use env or secret file")
    api_url: str = Field(default="https://api.github.com", description="API base URL")
    per_page: int = Field(default=100, ge=1, le=100, description="Page size for list endpoints")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    estimator: EstimatorConfig = Field(default_factory=EstimatorConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def estimator_api_key_resolved(self) -> str | None:
        """Resolve estimator API key from config, env or Docker secret
        file."""
        k = self.estimator.api_key
        if k and not k.startswith("${"):
            return k
        return _read_secret("ESTIMATOR_API_KEY", "ESTIMATOR_API_KEY_FILE")

    @property
    def github_token_resolved(self) -> str | None:
        """Resolve GitHub token from config, env or Docker secret file."""
        t = self.github.token
        if t and not t.startswith("${"):
            return t
        return _read_secret("GITHUB_TOKEN", "GITHUB_TOKEN_FILE")


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

    Secrets: ESTIMATOR_API_KEY or ESTIMATOR_API_KEY_FILE, GITHUB_TOKEN
    or GITHUB_TOKEN_FILE.
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
        analysis=AnalysisConfig(**(raw.get("analysis") or {})),
        cache=CacheConfig(**(raw.get("cache") or {})),
        estimator=EstimatorConfig(**(raw.get("estimator") or {})),
        github=GitHubConfig(**(raw.get("github") or {})),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
