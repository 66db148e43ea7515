# verkcli/schemas/config_file.py
"""
On-disk config file format. Supports named profiles.

Legacy configs may carry top-level base_url/auth/headers; those are
materialized as the "default" profile by services/profile_service.py.
"""

from pydantic import BaseModel, Field
from typing import Optional


class AuthConfig(BaseModel):
    api_key: str = ""
    token: str = ""                 # x-verkada-auth
    token_acquired_at: int = 0      # unix seconds


class LocalLabels(BaseModel):
    cameras: dict[str, str] = Field(default_factory=dict)


class ProfileConfig(BaseModel):
    base_url: str = ""
    org_id: str = ""
    auth: AuthConfig = Field(default_factory=AuthConfig)
    headers: dict[str, str] = Field(default_factory=dict)
    labels: LocalLabels = Field(default_factory=LocalLabels)


class ConfigFile(BaseModel):
    current_profile: str = ""
    profiles: dict[str, ProfileConfig] = Field(default_factory=dict)

    # Legacy (pre-profiles) fields
    base_url: Optional[str] = None
    auth: Optional[AuthConfig] = None
    headers: Optional[dict[str, str]] = None

    class Config:
        extra = "ignore"
