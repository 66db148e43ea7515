# verkcli/commands/common.py
"""
Helpers shared by every command module: global flags → overrides,
effective profile → API context / index path, and output writers.
"""

import json
import sys

from verkcli.schemas.config_file import ProfileConfig
from verkcli.services.camera_client import ApiContext
from verkcli.services.profile_service import (
    Overrides, effective_profile_config, resolve_config_path,
)
from verkcli.utils.paths import cameras_index_path


def overrides_from_args(args) -> Overrides:
    return Overrides(
        config_path=args.config,
        profile=args.profile,
        base_url=args.base_url,
        org_id=args.org_id,
        api_key=args.api_key,
        token=args.token,
        headers=list(args.header or []),
    )


def load_effective_profile(args) -> tuple[str, ProfileConfig]:
    return effective_profile_config(overrides_from_args(args))


def api_context(args, name: str, profile: ProfileConfig, timeout: float = None) -> ApiContext:
    ctx = ApiContext(
        profile=profile,
        profile_name=name,
        config_path=str(resolve_config_path(args.config)),
        headers=list(args.header or []),
    )
    if timeout is not None:
        ctx.timeout = timeout
    return ctx


def index_path_for(name: str, profile: ProfileConfig):
    return cameras_index_path(profile.base_url, profile.org_id, name)


def is_json_output(args) -> bool:
    return args.output == "json"


def print_json(data):
    sys.stdout.write(json.dumps(data, indent=2) + "\n")


def hint(message: str):
    """Human-facing notes go to stderr so stdout stays machine-readable."""
    sys.stderr.write(message + "\n")
