"""YAML configuration, repository resolution and token lookup."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import yaml

from .errors import ConfigError

DEFAULT_API_URL = "https://api.github.com"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "NONE")


@dataclass
class Config:
    owner: str = ""
    repo: str = ""
    api_url: str = DEFAULT_API_URL
    log_level: str = "ERROR"
    tick_interval: float = 0.25
    comment_page_size: int = 100
    timeout: float = 30
    style: Dict[str, str] = field(default_factory=dict)


def _number(raw: dict, key: str, kind, default):
    value = raw.get(key, default)
    if isinstance(value, bool):
        raise ConfigError(f"Config: '{key}' must be a number, got {value!r}.")
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Config: '{key}' must be a number, got {value!r}.") from None


def load_config(path: Optional[str]) -> Config:
    """Read ``path``; a missing file (or no path) yields the defaults."""
    if not path or not os.path.isfile(path):
        return Config()
    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Config: cannot parse {path}: {exc}") from exc
    if raw is None:
        return Config()
    if not isinstance(raw, dict):
        raise ConfigError(f"Config: {path} must contain a mapping.")
    known = set(Config.__dataclass_fields__)
    unknown = sorted(str(k) for k in raw if k not in known)
    if unknown:
        raise ConfigError(f"Config: unknown key(s): {', '.join(unknown)}")

    tick = _number(raw, "tick_interval", float, 0.25)
    if tick <= 0:
        raise ConfigError("Config: 'tick_interval' must be positive.")
    page_size = _number(raw, "comment_page_size", int, 100)
    if not 1 <= page_size <= 100:
        raise ConfigError("Config: 'comment_page_size' must be between 1 and 100.")
    timeout = _number(raw, "timeout", float, 30)
    if timeout <= 0:
        raise ConfigError("Config: 'timeout' must be positive.")
    log_level = str(raw.get("log_level") or "ERROR").upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"Config: 'log_level' must be one of {', '.join(LOG_LEVELS)}.")
    style = raw.get("style") or {}
    if not isinstance(style, dict):
        raise ConfigError("Config: 'style' must be a mapping of class name to style.")

    return Config(
        owner=str(raw.get("owner") or ""),
        repo=str(raw.get("repo") or ""),
        api_url=str(raw.get("api_url") or DEFAULT_API_URL).rstrip("/"),
        log_level=log_level,
        tick_interval=tick,
        comment_page_size=page_size,
        timeout=timeout,
        style={str(k): str(v) for k, v in style.items()},
    )


def resolve_repository(cfg: Config, positionals: List[str]) -> Tuple[str, str]:
    """Owner and repo from CLI positionals, falling back to the config file.

    Accepts ``OWNER REPO``, ``OWNER/REPO`` or ``OWNER`` alone (repo from config).
    """
    owner, repo = cfg.owner, cfg.repo
    if len(positionals) > 2:
        raise ConfigError("Expected at most OWNER and REPO.")
    if len(positionals) == 1 and "/" in positionals[0]:
        owner, _, repo = positionals[0].partition("/")
    elif positionals:
        owner = positionals[0]
        if len(positionals) == 2:
            repo = positionals[1]
    owner, repo = owner.strip(), repo.strip()
    if not owner or not repo:
        raise ConfigError("Repository owner and name are required (OWNER REPO, OWNER/REPO, or config).")
    return owner, repo


def load_dotenv_token(search_dirs: Optional[List[str]] = None) -> Optional[str]:
    """Load TOKEN or GITHUB_TOKEN from a .env file (current dir or package dir) if present."""
    if search_dirs is None:
        search_dirs = [os.getcwd(), os.path.dirname(os.path.abspath(__file__))]
    for base in search_dirs:
        path = os.path.join(base, ".env")
        if not os.path.isfile(path):
            continue
        try:
            with open(path, "r", encoding="utf-8") as f:
                lines = f.read().splitlines()
        except OSError:
            continue
        for line in lines:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            value = value.strip().strip('"').strip("'")
            if key.strip() in ("TOKEN", "GITHUB_TOKEN") and value:
                return value
    return None


def resolve_token() -> Optional[str]:
    return os.environ.get("GITHUB_TOKEN") or load_dotenv_token()
