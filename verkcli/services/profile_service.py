# verkcli/services/profile_service.py
"""
Config file + profile resolution.

Precedence for every value: CLI flag > environment (config.settings) > profile.
Profile selection: --profile > VERKCLI_PROFILE/VERKADA_PROFILE > current_profile > "default".
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlsplit

from pydantic import ValidationError

from verkcli.config import settings
from verkcli.exceptions import ConfigError
from verkcli.schemas.config_file import AuthConfig, ConfigFile, ProfileConfig
from verkcli.utils.paths import default_config_path
from verkcli.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PROFILE = "default"


@dataclass
class Overrides:
    """Global CLI flags that override file/env values."""
    config_path: Optional[str] = None
    profile: Optional[str] = None
    base_url: Optional[str] = None
    org_id: Optional[str] = None
    api_key: Optional[str] = None
    token: Optional[str] = None
    headers: list[str] = field(default_factory=list)


def first_non_empty(*values: Optional[str]) -> str:
    for v in values:
        if v is not None and v.strip():
            return v
    return ""


def resolve_config_path(flag_path: Optional[str] = None) -> Path:
    if flag_path:
        return Path(flag_path)
    if settings.CONFIG_PATH:
        return Path(settings.CONFIG_PATH)
    return default_config_path()


def normalize_config_file(cfg: ConfigFile) -> ConfigFile:
    """Materialize legacy top-level fields as the default profile and pick a current profile."""
    legacy_has_data = bool(
        (cfg.base_url or "").strip()
        or (cfg.auth is not None and (cfg.auth.api_key.strip() or cfg.auth.token.strip()))
        or cfg.headers is not None
    )
    if legacy_has_data:
        if DEFAULT_PROFILE not in cfg.profiles:
            cfg.profiles[DEFAULT_PROFILE] = ProfileConfig(
                base_url=cfg.base_url or "",
                auth=cfg.auth or AuthConfig(),
                headers=cfg.headers or {},
            )
        if not cfg.current_profile.strip():
            cfg.current_profile = DEFAULT_PROFILE

    if not cfg.current_profile.strip() and cfg.profiles:
        cfg.current_profile = DEFAULT_PROFILE if DEFAULT_PROFILE in cfg.profiles else sorted(cfg.profiles)[0]
    return cfg


def load_config(path: Union[str, Path]) -> ConfigFile:
    """Raises FileNotFoundError if absent, ConfigError if unreadable."""
    with open(path, encoding="utf-8") as f:
        raw = f.read()
    try:
        cfg = ConfigFile.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigError(f"invalid config file {path}: {e}") from e
    return normalize_config_file(cfg)


def load_config_or_empty(path: Union[str, Path]) -> ConfigFile:
    try:
        return load_config(path)
    except FileNotFoundError:
        return ConfigFile()


def write_config(path: Union[str, Path], cfg: ConfigFile):
    """Writes the profiles format only (legacy fields dropped), mode 0600."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    cfg = normalize_config_file(cfg)
    data = cfg.model_dump(exclude={"base_url", "auth", "headers"})
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(json.dumps(data, indent=2) + "\n")
    logger.debug(f"Wrote config {path}")


def selected_profile_name(overrides: Overrides, cfg: Optional[ConfigFile] = None) -> str:
    current = cfg.current_profile if cfg is not None else None
    return first_non_empty(overrides.profile, settings.PROFILE, current, DEFAULT_PROFILE)


def get_profile(cfg: ConfigFile, name: str, path: Union[str, Path]) -> ProfileConfig:
    profile = cfg.profiles.get(name)
    if profile is None:
        raise ConfigError(f"profile {name!r} not found in {path}")
    return profile


def effective_profile_config(overrides: Overrides) -> tuple[str, ProfileConfig]:
    """
    The profile every API command runs with, after env and flag overrides.
    Returns (profile_name, config); raises ConfigError when unusable.
    """
    path = resolve_config_path(overrides.config_path)
    try:
        cfg = load_config(path)
    except FileNotFoundError:
        raise ConfigError(f"config not found at {path} (run: verkcli config init)")

    name = selected_profile_name(overrides, cfg)
    profile = get_profile(cfg, name, path).model_copy(deep=True)

    profile.base_url = first_non_empty(overrides.base_url, settings.BASE_URL, profile.base_url)
    profile.org_id = first_non_empty(overrides.org_id, settings.ORG_ID, profile.org_id)
    profile.auth.api_key = first_non_empty(overrides.api_key, settings.API_KEY, profile.auth.api_key)
    profile.auth.token = first_non_empty(overrides.token, settings.TOKEN, profile.auth.token)

    if not profile.base_url.strip():
        raise ConfigError("base URL is empty (set in config, VERKCLI_BASE_URL / VERKADA_BASE_URL, or --base-url)")
    return name, profile


def update_profile(config_path: Union[str, Path], profile_name: str, mutate) -> ProfileConfig:
    """Load, apply `mutate(profile)`, write back. Returns the updated profile."""
    cfg = load_config(config_path)
    profile = get_profile(cfg, profile_name, config_path)
    mutate(profile)
    cfg.profiles[profile_name] = profile
    write_config(config_path, cfg)
    return profile


def persist_profile_token(config_path: Union[str, Path], profile_name: str, token: str, acquired_at: int):
    def _set(profile: ProfileConfig):
        profile.auth.token = token
        profile.auth.token_acquired_at = acquired_at
    update_profile(config_path, profile_name, _set)


def init_config(path: Union[str, Path], force: bool = False) -> ConfigFile:
    """Create a config with a single default profile seeded from the environment."""
    path = Path(path)
    if path.exists() and not force:
        raise ConfigError(f"config already exists at {path} (use --force to overwrite)")

    profile = ProfileConfig(
        base_url=settings.BASE_URL or settings.DEFAULT_BASE_URL,
        org_id=settings.ORG_ID or "",
        auth=AuthConfig(api_key=settings.API_KEY or "", token=settings.TOKEN or ""),
    )
    cfg = ConfigFile(current_profile=DEFAULT_PROFILE, profiles={DEFAULT_PROFILE: profile})
    write_config(path, cfg)
    return cfg


def validate_base_url(base_url: str) -> str:
    """http(s) URL with a host, and not the Command web UI."""
    parts = urlsplit(base_url)
    if parts.scheme not in ("http", "https"):
        raise ConfigError(f"invalid base URL {base_url!r}: scheme must be http or https")
    if not parts.netloc:
        raise ConfigError(f"invalid base URL {base_url!r}: host is empty")
    host = (parts.hostname or "").lower()
    if host == "command.verkada.com" or host.endswith(".command.verkada.com"):
        raise ConfigError(f"invalid base URL {base_url!r}: this looks like the Command web UI "
                          "(use https://api.verkada.com, https://api.eu.verkada.com or https://api.au.verkada.com)")
    return base_url


def add_profile(path: Union[str, Path], name: str, base_url: Optional[str] = None, org_id: Optional[str] = None,
                api_key: Optional[str] = None, token: Optional[str] = None) -> ProfileConfig:
    """
    Create or update profile `name` and make it the current profile.
    Each value comes from the argument, then the environment, then whatever
    the profile already holds. Creates the config file if needed.
    """
    name = (name or "").strip()
    if not name:
        raise ConfigError("profile name is empty")
    if any(c.isspace() for c in name):
        raise ConfigError("profile name must not contain spaces")

    cfg = load_config_or_empty(path)
    profile = cfg.profiles.get(name) or ProfileConfig()

    profile.base_url = validate_base_url(
        first_non_empty(base_url, settings.BASE_URL, profile.base_url, settings.DEFAULT_BASE_URL).strip()
    )
    profile.org_id = first_non_empty(org_id, settings.ORG_ID, profile.org_id).strip()
    profile.auth.api_key = first_non_empty(api_key, settings.API_KEY, profile.auth.api_key).strip()
    profile.auth.token = first_non_empty(token, settings.TOKEN, profile.auth.token).strip()

    cfg.profiles[name] = profile
    cfg.current_profile = name
    write_config(path, cfg)
    logger.info(f"👤 Saved profile '{name}' to {path}")
    return profile
