"""
Profile Comparer - Configuration

Reads the process configuration from environment variables.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional


DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "openai/gpt-4o-mini"
DEFAULT_REFERER = "https://github-profile-comparer.netlify.app"
DEFAULT_TITLE = "GitHub Profile Comparer"
GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def get_cors_allowed_origins() -> List[str]:
    """Parse CORS_ALLOW_ORIGINS from environment. Defaults to any origin."""
    raw = os.getenv("CORS_ALLOW_ORIGINS", "*")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


@dataclass
class UpstreamConfig:
    """Configuration for the generation provider."""
    api_key: str = ""
    base_url: str = DEFAULT_OPENROUTER_BASE_URL
    model: str = DEFAULT_MODEL
    referer: str = DEFAULT_REFERER
    title: str = DEFAULT_TITLE
    # Seconds to wait for each upstream read; None waits forever.
    read_timeout: Optional[float] = 60.0
    connect_timeout: float = 10.0


@dataclass
class GitHubConfig:
    """Configuration for the GitHub GraphQL collaborator."""
    token: str = ""
    graphql_url: str = GITHUB_GRAPHQL_URL
    timeout: float = 30.0


@dataclass
class Settings:
    """Process-wide settings."""
    port: int = 5000
    log_level: str = "INFO"
    otlp_endpoint: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    pacing_cadence: float = 0.02
    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        read_timeout = _get_float("UPSTREAM_READ_TIMEOUT", 60.0)

        return cls(
            port=int(os.getenv("PORT", "5000")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT") or None,
            cors_origins=get_cors_allowed_origins(),
            pacing_cadence=_get_float("PACING_CADENCE_MS", 20.0) / 1000.0,
            upstream=UpstreamConfig(
                api_key=os.getenv("OPENROUTER_API_KEY", ""),
                base_url=os.getenv("OPENROUTER_BASE_URL", DEFAULT_OPENROUTER_BASE_URL),
                model=os.getenv("OPENROUTER_MODEL", DEFAULT_MODEL),
                referer=os.getenv("OPENROUTER_REFERER", DEFAULT_REFERER),
                title=os.getenv("OPENROUTER_TITLE", DEFAULT_TITLE),
                read_timeout=read_timeout if read_timeout > 0 else None,
            ),
            github=GitHubConfig(
                token=os.getenv("GITHUB_TOKEN", ""),
            ),
        )
