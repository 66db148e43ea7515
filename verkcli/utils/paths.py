# verkcli/utils/paths.py
"""
On-disk locations for the config file and the per-tenant camera index.

Index files are partitioned by base-URL host, org id and profile so two
tenants never share a database:
    <cache_root>/verkcli/index/<host>/<org>/<profile>/cameras.sqlite
"""

import os
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from verkcli.config import settings

APP_DIR_NAME = "verkcli"
INDEX_FILE_NAME = "cameras.sqlite"
PLACEHOLDER = "unknown"

_ALLOWED_PUNCTUATION = ".-_"


def user_cache_root() -> Path:
    """Per-user cache root (VERKCLI_CACHE_DIR wins over the platform default)."""
    if settings.CACHE_DIR:
        return Path(settings.CACHE_DIR)
    if sys.platform == "win32":
        return Path(os.environ.get("LOCALAPPDATA") or Path.home() / "AppData" / "Local")
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Caches"
    return Path(os.environ.get("XDG_CACHE_HOME") or Path.home() / ".cache")


def user_config_root() -> Path:
    if sys.platform == "win32":
        return Path(os.environ.get("APPDATA") or Path.home() / "AppData" / "Roaming")
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    return Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")


def default_config_path() -> Path:
    """
    New installs use <config>/verkcli/config.json; an existing legacy
    <config>/verkada/config.json is still picked up.
    """
    root = user_config_root()
    new_path = root / APP_DIR_NAME / "config.json"
    legacy_path = root / "verkada" / "config.json"
    if new_path.exists():
        return new_path
    if legacy_path.exists():
        return legacy_path
    return new_path


def sanitize_path_component(value: str) -> str:
    """Lowercase, keep [a-z0-9._-], replace the rest with '_' and trim underscores."""
    value = (value or "").strip().lower()
    if not value:
        return PLACEHOLDER
    out = "".join(
        ch if ("a" <= ch <= "z" or "0" <= ch <= "9" or ch in _ALLOWED_PUNCTUATION) else "_"
        for ch in value
    )
    out = out.strip("_")
    return out or PLACEHOLDER


def base_url_host(base_url: str) -> str:
    if not (base_url or "").strip():
        return PLACEHOLDER
    try:
        host = urlparse(base_url.strip()).netloc
    except ValueError:
        return PLACEHOLDER
    return host.strip() or PLACEHOLDER


def cameras_index_path(base_url: str, org_id: str, profile: str,
                       cache_root: Optional[Path] = None) -> Path:
    """Deterministic index location for one (host, org, profile) triple."""
    root = Path(cache_root) if cache_root is not None else user_cache_root()
    host = sanitize_path_component(base_url_host(base_url))
    org = sanitize_path_component((org_id or "").strip() or "no-org")
    prof = sanitize_path_component((profile or "").strip() or "default")
    return root / APP_DIR_NAME / "index" / host / org / prof / INDEX_FILE_NAME
