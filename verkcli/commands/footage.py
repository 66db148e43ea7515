# verkcli/commands/footage.py
"""
verkcli cameras thumbnail
verkcli cameras footage url
"""

import os
import sys

from verkcli.commands.common import api_context, hint, load_effective_profile
from verkcli.config import settings
from verkcli.services.camera_client import fetch_thumbnail
from verkcli.services.footage_service import footage_url, parse_timestamp


def cmd_thumbnail(args) -> int:
    name, profile = load_effective_profile(args)
    ctx = api_context(args, name, profile, timeout=args.timeout)
    timestamp = parse_timestamp(args.timestamp, args.tz)
    jpeg = fetch_thumbnail(ctx, args.camera_id, timestamp, args.resolution)

    if args.out:
        out_dir = os.path.dirname(args.out)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        with open(args.out, "wb") as f:
            f.write(jpeg)
        hint(f"wrote {args.out} ({len(jpeg)} bytes)")
    else:
        sys.stdout.buffer.write(jpeg)
        sys.stdout.flush()
    return 0


def cmd_footage_url(args) -> int:
    name, profile = load_effective_profile(args)
    ctx = api_context(args, name, profile, timeout=args.timeout)
    url = footage_url(
        ctx, args.camera_id,
        start=args.start, end=args.end, live=args.live, tz=args.tz,
        resolution=args.resolution, codec=args.codec,
    )
    print(url)
    return 0


def register(subparsers, parents):
    p = subparsers.add_parser("thumbnail", parents=parents, help="Fetch a JPEG thumbnail at or near a time")
    p.add_argument("--camera-id", required=True, help="Camera ID")
    p.add_argument("--timestamp", default="", help="Unix seconds, RFC3339 or 'YYYY-MM-DD HH:MM:SS' (default: now)")
    p.add_argument("--tz", default="local", help="Timezone for naive --timestamp values (IANA name or 'local')")
    p.add_argument("--resolution", choices=["low-res", "hi-res"], default="low-res", help="Thumbnail resolution")
    p.add_argument("-o", "--out", default="", help="Write JPEG to file instead of stdout")
    p.add_argument("--timeout", type=float, default=settings.HTTP_TIMEOUT_SECONDS, help="HTTP timeout (seconds)")
    p.set_defaults(func=cmd_thumbnail)

    parser = subparsers.add_parser("footage", parents=parents, help="Live and historical footage (HLS)")
    sub = parser.add_subparsers(dest="footage_command", required=True)

    p = sub.add_parser("url", parents=parents, help="Print an HLS (m3u8) URL for live or historical footage")
    p.add_argument("--camera-id", required=True, help="Camera ID")
    p.add_argument("--start", default="", help="Window start (unix, RFC3339, or naive in --tz)")
    p.add_argument("--end", default="", help="Window end; at most one hour after --start")
    p.add_argument("--live", action="store_true", help="Live stream (ignores --start/--end)")
    p.add_argument("--tz", default="local", help="Timezone for naive --start/--end values")
    p.add_argument("--resolution", default="low_res", help="Resolution: low_res|high_res")
    p.add_argument("--codec", default="hevc", help="Codec: hevc|h264")
    p.add_argument("--timeout", type=float, default=settings.HTTP_TIMEOUT_SECONDS, help="HTTP timeout (seconds)")
    p.set_defaults(func=cmd_footage_url)
