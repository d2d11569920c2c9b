"""Configuration constants and credential resolution."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from . import __version__

API_URL = "https://api.github.com"
ACCEPT = "application/vnd.github+json"
DEFAULT_USER_AGENT = f"issue-upvotes/{__version__}"

PER_PAGE = 100  # GitHub's maximum page size
POSITIVE_REACTION = "+1"

DEFAULT_LIMIT = 10
DEFAULT_CONCURRENCY = 10
DEFAULT_TIMEOUT = 30  # seconds, per request

TOKEN_FILE = Path.home() / ".issue_upvotes" / "token"

# Checked in order; the first non-empty value wins.
TOKEN_ENV_VARS = ("GITHUB_PAT", "GITHUB_TOKEN")
USER_AGENT_ENV_VAR = "GITHUB_USER_AGENT"
API_URL_ENV_VAR = "GITHUB_API_URL"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    token: str
    user_agent: str = DEFAULT_USER_AGENT
    api_url: str = API_URL
    concurrency: int = DEFAULT_CONCURRENCY
    timeout: float = DEFAULT_TIMEOUT


def load_saved_token(path: Path | None = None) -> str | None:
    """Load a persisted GitHub token from disk."""
    path = path or TOKEN_FILE
    try:
        if path.exists():
            t = path.read_text().strip()
            return t if t else None
    except OSError:
        return None
    return None


def load_settings(
    token: str | None = None,
    user_agent: str | None = None,
    api_url: str | None = None,
    concurrency: int | None = None,
    timeout: float | None = None,
    environ: Mapping[str, str] | None = None,
    token_file: Path | None = None,
) -> Settings:
    """Resolve settings: explicit argument > environment > saved file > default.

    Raises ConfigError before any network activity when the token is missing
    or a value is unusable.
    """
    env = os.environ if environ is None else environ

    if token:
        token = token.strip()
    if not token:
        for var in TOKEN_ENV_VARS:
            if env.get(var):
                token = env[var].strip()
                break
    if not token:
        token = load_saved_token(token_file)
    if not token:
        raise ConfigError(
            "Missing GitHub token. Pass --token, set GITHUB_PAT or GITHUB_TOKEN,"
            f" or save one to {token_file or TOKEN_FILE}."
        )

    if user_agent is None:
        user_agent = env.get(USER_AGENT_ENV_VAR, DEFAULT_USER_AGENT)
    if not user_agent.strip():
        raise ConfigError("User agent must not be empty; GitHub rejects requests without one.")

    api_url = (api_url or env.get(API_URL_ENV_VAR) or API_URL).rstrip("/")

    if concurrency is None:
        concurrency = DEFAULT_CONCURRENCY
    if concurrency < 1:
        raise ConfigError(f"Concurrency must be at least 1, got {concurrency}.")

    if timeout is None:
        timeout = DEFAULT_TIMEOUT
    if timeout <= 0:
        raise ConfigError(f"Timeout must be positive, got {timeout}.")

    return Settings(
        token=token,
        user_agent=user_agent.strip(),
        api_url=api_url,
        concurrency=concurrency,
        timeout=timeout,
    )
