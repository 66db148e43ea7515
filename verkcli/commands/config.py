# verkcli/commands/config.py
"""
verkcli config init | view | use PROFILE | path | profiles [list | add PROFILE]
"""

from verkcli.commands.common import hint, is_json_output, overrides_from_args, print_json
from verkcli.config import settings
from verkcli.exceptions import ConfigError
from verkcli.schemas.config_file import AuthConfig, ProfileConfig
from verkcli.services.profile_service import (
    add_profile, effective_profile_config, first_non_empty, get_profile, init_config,
    load_config, load_config_or_empty, resolve_config_path, write_config,
)


def cmd_init(args) -> int:
    path = resolve_config_path(args.config)
    init_config(path, force=args.force)
    print(f"wrote {path}")
    return 0


def cmd_view(args) -> int:
    """Effective config (file + env + flags); env/flags only when no file exists."""
    path = resolve_config_path(args.config)
    if path.exists():
        name, profile = effective_profile_config(overrides_from_args(args))
    else:
        name = first_non_empty(args.profile, settings.PROFILE, "default")
        profile = ProfileConfig(
            base_url=first_non_empty(args.base_url, settings.BASE_URL),
            org_id=first_non_empty(args.org_id, settings.ORG_ID),
            auth=AuthConfig(
                api_key=first_non_empty(args.api_key, settings.API_KEY),
                token=first_non_empty(args.token, settings.TOKEN),
            ),
        )
    print_json({"profile": name, **profile.model_dump()})
    return 0


def cmd_use(args) -> int:
    path = resolve_config_path(args.config)
    name = args.name.strip()
    if not name:
        raise ConfigError("profile name is empty")
    cfg = load_config(path)
    get_profile(cfg, name, path)
    cfg.current_profile = name
    write_config(path, cfg)
    print(f"current profile: {name}")
    return 0


def cmd_profiles(args) -> int:
    cfg = load_config_or_empty(resolve_config_path(args.config))
    names = sorted(cfg.profiles)

    if is_json_output(args):
        print_json({
            "current_profile": cfg.current_profile,
            "profiles": [{"name": n, "current": n == cfg.current_profile} for n in names],
        })
        return 0

    for n in names:
        marker = "*" if n == cfg.current_profile else " "
        print(f"{marker} {n}")
    return 0


def cmd_profiles_add(args) -> int:
    path = resolve_config_path(args.config)
    add_profile(path, args.name, base_url=args.base_url, org_id=args.org_id,
                api_key=args.api_key, token=args.token)
    print(f"wrote {path}")
    return 0


def cmd_path(args) -> int:
    path = resolve_config_path(args.config)
    exists = path.exists()
    if is_json_output(args):
        print_json({"config_path": str(path), "exists": exists})
        return 0
    print(path)
    if not exists:
        hint("config file does not exist yet (run: verkcli config init)")
    return 0


def register(subparsers, parents):
    parser = subparsers.add_parser("config", parents=parents, help="Manage the config file and profiles")
    sub = parser.add_subparsers(dest="config_command", required=True)

    p = sub.add_parser("init", parents=parents, help="Create a default config file")
    p.add_argument("--force", action="store_true", help="Overwrite if config already exists")
    p.set_defaults(func=cmd_init)

    p = sub.add_parser("view", parents=parents, help="Print the effective config (file + env + flags)")
    p.set_defaults(func=cmd_view)

    p = sub.add_parser("use", parents=parents, help="Set the default profile in the config file")
    p.add_argument("name", metavar="PROFILE")
    p.set_defaults(func=cmd_use)

    p = sub.add_parser("path", parents=parents, help="Print the config file path")
    p.set_defaults(func=cmd_path)

    profiles = sub.add_parser("profiles", parents=parents, help="List or add profiles in the config file")
    profiles.set_defaults(func=cmd_profiles)
    profiles_sub = profiles.add_subparsers(dest="profiles_command")

    p = profiles_sub.add_parser("list", parents=parents, help="List profiles (default)")
    p.set_defaults(func=cmd_profiles)

    p = profiles_sub.add_parser("add", parents=parents,
                                help="Add or update a profile from --base-url/--org-id/--api-key and the environment")
    p.add_argument("name", metavar="PROFILE")
    p.set_defaults(func=cmd_profiles_add)
