# verkcli/commands/cameras.py
"""
verkcli cameras list | get | label ...
Index, search, thumbnail and footage subcommands are registered from
commands/index.py and commands/footage.py under the same group.
"""

from verkcli.commands import footage, index
from verkcli.commands.common import (
    api_context, index_path_for, is_json_output, load_effective_profile,
    overrides_from_args, print_json,
)
from verkcli.config import settings
from verkcli.exceptions import ConfigError, VerkcliError
from verkcli.services.camera_client import (
    fetch_all_cameras, fetch_cameras_page, filter_cameras, find_camera,
)
from verkcli.services.label_service import list_camera_labels, remove_camera_label, set_camera_label
from verkcli.services.profile_service import load_config, resolve_config_path, selected_profile_name
from verkcli.utils.formatting import format_camera_table
from verkcli.utils.logger import get_logger

logger = get_logger(__name__)


# ── list / get ───────────────────────────────────────────────────────────────

def cmd_list(args) -> int:
    name, profile = load_effective_profile(args)
    ctx = api_context(args, name, profile, timeout=args.timeout)
    labels = profile.labels.cameras
    needs_filter = bool(args.camera_id.strip() or args.q.strip())

    if not args.all and not needs_filter:
        cameras, next_token, _ = fetch_cameras_page(ctx, args.page_token, args.page_size)
        if is_json_output(args):
            print_json({"cameras": cameras, "next_page_token": next_token})
        else:
            print(format_camera_table(cameras, wide=args.wide, labels=labels), end="")
        return 0

    cameras = fetch_all_cameras(ctx, args.page_size, args.page_token)
    cameras = filter_cameras(cameras, args.camera_id, args.q, labels)
    if is_json_output(args):
        print_json({"cameras": cameras})
    else:
        print(format_camera_table(cameras, wide=args.wide, labels=labels), end="")
    return 0


def cmd_get(args) -> int:
    camera_id = args.camera_id.strip()
    if not camera_id:
        raise VerkcliError("camera_id is empty")

    name, profile = load_effective_profile(args)
    ctx = api_context(args, name, profile, timeout=args.timeout)
    camera = find_camera(ctx, camera_id, args.page_size)
    if camera is None:
        raise VerkcliError(f"camera {camera_id!r} not found")

    if is_json_output(args):
        print_json(camera)
    else:
        print(format_camera_table([camera], wide=True, labels=profile.labels.cameras), end="")
    return 0


# ── label ────────────────────────────────────────────────────────────────────

def _label_target(args):
    """(config_path, profile_name, index_path or None) for label commands."""
    config_path = resolve_config_path(args.config)
    try:
        cfg = load_config(config_path)
    except FileNotFoundError:
        raise ConfigError(f"config not found at {config_path} (run: verkcli config init)")
    profile_name = selected_profile_name(overrides_from_args(args), cfg)

    # Patching the index needs a usable base URL; labels themselves don't
    try:
        name, profile = load_effective_profile(args)
        index_path = index_path_for(name, profile)
    except ConfigError as e:
        logger.debug(f"No index patch for label change: {e}")
        index_path = None
    return config_path, profile_name, index_path


def cmd_label_set(args) -> int:
    config_path, profile_name, index_path = _label_target(args)
    label = set_camera_label(config_path, profile_name, args.camera_id, args.label, index_path)
    print(f"label[{args.camera_id.strip()}]={label}")
    return 0


def cmd_label_rm(args) -> int:
    config_path, profile_name, index_path = _label_target(args)
    remove_camera_label(config_path, profile_name, args.camera_id, index_path)
    return 0


def cmd_label_list(args) -> int:
    config_path, profile_name, _ = _label_target(args)
    items = list_camera_labels(config_path, profile_name)
    if is_json_output(args):
        print_json({"labels": dict(items)})
        return 0
    for camera_id, label in items:
        print(f"{camera_id}\t{label}")
    return 0


def register(subparsers, parents):
    parser = subparsers.add_parser("cameras", parents=parents, help="Camera inventory, labels, index and footage")
    sub = parser.add_subparsers(dest="cameras_command", required=True)

    p = sub.add_parser("list", parents=parents, help="List cameras in the org")
    p.add_argument("--all", action="store_true", help="Fetch all pages")
    p.add_argument("--page-size", type=int, default=100, help="Page size (default 100, max 200)")
    p.add_argument("--page-token", default="", help="Pagination token to start from")
    p.add_argument("--camera-id", default="", help="Filter by camera ID (exact match)")
    p.add_argument("--q", default="", help="Filter by substring match across id/name/site/label")
    p.add_argument("--wide", action="store_true", help="Include more columns in text output")
    p.add_argument("--timeout", type=float, default=settings.HTTP_TIMEOUT_SECONDS, help="HTTP timeout (seconds)")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("get", parents=parents, help="Get details for a single camera")
    p.add_argument("camera_id", metavar="CAMERA_ID")
    p.add_argument("--page-size", type=int, default=100, help="Page size (default 100, max 200)")
    p.add_argument("--timeout", type=float, default=settings.HTTP_TIMEOUT_SECONDS, help="HTTP timeout (seconds)")
    p.set_defaults(func=cmd_get)

    label = sub.add_parser("label", parents=parents, help="Manage local camera labels (stored in the config profile)")
    label_sub = label.add_subparsers(dest="label_command", required=True)

    p = label_sub.add_parser("set", parents=parents, help="Set a local label for a camera")
    p.add_argument("camera_id", metavar="CAMERA_ID")
    p.add_argument("label", metavar="LABEL")
    p.set_defaults(func=cmd_label_set)

    p = label_sub.add_parser("rm", parents=parents, help="Remove a local label for a camera")
    p.add_argument("camera_id", metavar="CAMERA_ID")
    p.set_defaults(func=cmd_label_rm)

    p = label_sub.add_parser("list", parents=parents, help="List local camera labels for the selected profile")
    p.set_defaults(func=cmd_label_list)

    index.register(sub, parents)
    footage.register(sub, parents)
