# verkcli/commands/index.py
"""
verkcli cameras index build | status
verkcli cameras search QUERY
"""

from datetime import datetime, timezone

from verkcli.commands.common import (
    api_context, hint, index_path_for, is_json_output, load_effective_profile, print_json,
)
from verkcli.config import settings
from verkcli.exceptions import IndexNotFoundError, VerkcliError
from verkcli.services.camera_client import MAX_PAGE_SIZE, fetch_all_cameras
from verkcli.services.index_service import read_cameras_index_status, rebuild_cameras_index
from verkcli.services.search_service import DEFAULT_LIMIT, search_cameras_index
from verkcli.utils.formatting import format_camera_table

BUILD_HINT = "run: verkcli cameras index build"


def _format_built_at(built_at: int) -> str:
    if built_at <= 0:
        return ""
    return datetime.fromtimestamp(built_at, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def cmd_build(args) -> int:
    name, profile = load_effective_profile(args)
    path = index_path_for(name, profile)
    ctx = api_context(args, name, profile, timeout=args.timeout)

    cameras = fetch_all_cameras(ctx, args.page_size)
    count = rebuild_cameras_index(
        path, cameras, dict(profile.labels.cameras),
        base_url=profile.base_url, org_id=profile.org_id, profile=name,
    )
    hint(f"indexed {count} cameras at {path}")
    return 0


def cmd_status(args) -> int:
    name, profile = load_effective_profile(args)
    path = index_path_for(name, profile)
    try:
        status = read_cameras_index_status(path)
    except IndexNotFoundError:
        if is_json_output(args):
            print_json({"exists": False, "path": str(path)})
            return 0
        raise VerkcliError(f"index not found at {path} ({BUILD_HINT})")

    if is_json_output(args):
        print_json(status.model_dump())
        return 0

    print(f"path: {status.path}")
    print(f"exists: {str(status.exists).lower()}")
    print(f"built_at: {_format_built_at(status.built_at)}")
    print(f"camera_count: {status.camera_count}")
    print(f"schema_version: {status.schema_version}")
    print(f"base_url: {status.base_url}")
    print(f"org_id: {status.org_id}")
    print(f"profile: {status.profile}")
    return 0


def cmd_search(args) -> int:
    query = args.query.strip()
    if not query:
        raise VerkcliError("query is empty")

    name, profile = load_effective_profile(args)
    path = index_path_for(name, profile)
    try:
        results = search_cameras_index(path, query, args.limit)
    except IndexNotFoundError:
        raise VerkcliError(f"index not found at {path} ({BUILD_HINT})")

    if is_json_output(args):
        print_json({
            "query": query,
            "index_path": str(path),
            "result_count": len(results),
            "results": [r.model_dump() for r in results],
        })
        return 0

    cameras = [r.camera for r in results]
    print(format_camera_table(cameras, wide=args.wide, labels=profile.labels.cameras), end="")
    return 0


def register(subparsers, parents):
    parser = subparsers.add_parser("index", parents=parents, help="Local camera search index")
    sub = parser.add_subparsers(dest="index_command", required=True)

    p = sub.add_parser("build", parents=parents, help="Build (or rebuild) the local camera index")
    p.add_argument("--page-size", type=int, default=MAX_PAGE_SIZE, help="Page size (default 200, max 200)")
    p.add_argument("--timeout", type=float, default=settings.INDEX_TIMEOUT_SECONDS, help="HTTP timeout (seconds)")
    p.set_defaults(func=cmd_build)

    p = sub.add_parser("status", parents=parents, help="Show index status for the selected profile/org")
    p.set_defaults(func=cmd_status)

    p = subparsers.add_parser("search", parents=parents, help="Search cameras using the local index")
    p.add_argument("query", metavar="QUERY")
    p.add_argument("-n", "--limit", type=int, default=DEFAULT_LIMIT, help="Max results to return")
    p.add_argument("--wide", action="store_true", help="Include more columns in text output")
    p.set_defaults(func=cmd_search)
