# verkcli/commands/request.py
"""
verkcli request --path /cameras/v1/devices [--query k=v] [--body @payload.json]

Raw HTTP call with the profile's headers and auth, including the
retry-once token refresh. Useful for endpoints without a typed command.
"""

import json

from verkcli.commands.common import api_context, is_json_output, load_effective_profile
from verkcli.config import settings
from verkcli.exceptions import ApiError
from verkcli.services.camera_client import api_request, build_request_url
from verkcli.utils.json_parser import is_json_body


def read_body_arg(value: str):
    """Literal body text, or file contents when prefixed with '@'. Empty means no body."""
    if not value:
        return None
    if len(value) > 1 and value.startswith("@"):
        with open(value[1:], "rb") as f:
            return f.read()
    return value.encode("utf-8")


def _pretty_json(body: bytes):
    try:
        return json.dumps(json.loads(body), indent=2)
    except ValueError:
        return None


def _write_body(text: str):
    print(text, end="" if text.endswith("\n") else "\n")


def cmd_request(args) -> int:
    name, profile = load_effective_profile(args)
    ctx = api_context(args, name, profile, timeout=args.timeout)
    url = build_request_url(profile.base_url, args.url, args.path, args.query)
    body = read_body_arg(args.body)

    resp = api_request(ctx, args.method.upper(), "", data=body, url=url)

    if args.show_headers:
        print(f"{resp.status_code} {resp.reason or ''}".rstrip())
        for key, value in resp.headers.items():
            print(f"{key}: {value}")
        print()

    content_type = resp.headers.get("Content-Type", "")
    pretty = None
    if is_json_output(args) or is_json_body(resp.content, content_type):
        pretty = _pretty_json(resp.content)
    _write_body(pretty if pretty is not None else resp.content.decode("utf-8", errors="replace"))

    if resp.status_code >= 400:
        raise ApiError(f"request failed with status {resp.status_code}", resp.status_code)
    return 0


def register(subparsers, parents):
    p = subparsers.add_parser("request", parents=parents, help="Make a raw HTTP request against the API")
    p.add_argument("--method", default="GET", help="HTTP method (default GET)")
    p.add_argument("--path", default="", help="Path joined with the base URL (ignored if --url is set)")
    p.add_argument("--url", default="", help="Full request URL (overrides base URL + path)")
    p.add_argument("--query", action="append", default=[], help="Query param k=v (repeatable)")
    p.add_argument("--body", default="", help="Request body; prefix with @ to read from a file")
    p.add_argument("--show-headers", action="store_true", help="Print response status line and headers")
    p.add_argument("--timeout", type=float, default=settings.HTTP_TIMEOUT_SECONDS, help="HTTP timeout (seconds)")
    p.set_defaults(func=cmd_request)
