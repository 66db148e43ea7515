# verkcli/services/footage_service.py
"""
Timestamp parsing and HLS footage URL building.

A footage URL is:
  <base>/stream/cameras/v1/footage/stream/stream.m3u8
      ?org_id&camera_id&jwt&type=stream&start_time&end_time&resolution&codec
where jwt comes from GET /cameras/v1/footage/token and start/end are 0 for live.
"""

import re
import time
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from verkcli.exceptions import ApiError, InvalidArgumentError
from verkcli.services.camera_client import ApiContext, HTML_HINT, api_request, api_error_message, build_url
from verkcli.utils.json_parser import is_html_body, safe_parse_json
from verkcli.utils.logger import get_logger

logger = get_logger(__name__)

FOOTAGE_TOKEN_PATH = "/cameras/v1/footage/token"
STREAM_PATH = "/stream/cameras/v1/footage/stream/stream.m3u8"

MAX_WINDOW_SECONDS = 3600
STREAM_RESOLUTIONS = ("low_res", "high_res")
DEFAULT_CODEC = "hevc"

_UNIX_RE = re.compile(r"^\d+$")


def parse_timezone(tz: str):
    """IANA zone name, or the system zone for ''/'local'."""
    tz = (tz or "").strip()
    if tz == "" or tz.lower() == "local":
        return None
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidArgumentError(f"invalid timezone {tz!r}") from e


def parse_timestamp(value: str, tz: str = "local") -> int:
    """
    Unix seconds from:
      - ''                         → now
      - '1736893300'               → as-is
      - '2025-02-15T14:30:00Z'     → explicit offset wins
      - '2025-02-15 14:30:00'      → interpreted in tz
    """
    value = (value or "").strip()
    if not value:
        return int(time.time())
    if _UNIX_RE.match(value):
        return int(value)

    zone = parse_timezone(tz)
    iso = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        dt = datetime.fromisoformat(iso)
    except ValueError as e:
        raise InvalidArgumentError(
            f"invalid timestamp {value!r} (use unix seconds, RFC3339, or 'YYYY-MM-DD HH:MM:SS')"
        ) from e

    if dt.tzinfo is None:
        # naive: astimezone() with no argument assumes the system zone
        dt = dt.replace(tzinfo=zone) if zone is not None else dt.astimezone()
    return int(dt.timestamp())


def resolve_stream_times(start: str = "", end: str = "", live: bool = False, tz: str = "local") -> tuple[int, int]:
    """(0, 0) for live; otherwise a validated historical window of at most one hour."""
    start, end = (start or "").strip(), (end or "").strip()
    if live or (not start and not end):
        return 0, 0
    if not start or not end:
        raise InvalidArgumentError("both --start and --end are required for historical footage")

    try:
        st = parse_timestamp(start, tz)
    except InvalidArgumentError as e:
        raise InvalidArgumentError(f"invalid --start: {e}") from e
    try:
        et = parse_timestamp(end, tz)
    except InvalidArgumentError as e:
        raise InvalidArgumentError(f"invalid --end: {e}") from e

    if st <= 0 or et <= 0:
        raise InvalidArgumentError("historical --start/--end must be positive unix timestamps")
    if et <= st:
        raise InvalidArgumentError("--end must be after --start")
    if et - st > MAX_WINDOW_SECONDS:
        raise InvalidArgumentError(
            f"historical window too large: end-start must be <= {MAX_WINDOW_SECONDS} seconds (1 hour)"
        )
    return st, et


def fetch_streaming_jwt(ctx: ApiContext) -> str:
    resp = api_request(ctx, "GET", FOOTAGE_TOKEN_PATH)
    if is_html_body(resp.content, resp.headers.get("Content-Type", "")):
        raise ApiError(f"received HTML from footage token endpoint ({HTML_HINT})", resp.status_code)
    if resp.status_code >= 400:
        detail = api_error_message(resp.content) or resp.text[:200]
        raise ApiError(f"footage token request failed with status {resp.status_code}: {detail}", resp.status_code)

    data = safe_parse_json(resp.content)
    jwt = data.get("jwt") if isinstance(data, dict) else None
    if not isinstance(jwt, str) or not jwt.strip():
        raise ApiError("footage token response missing jwt field", resp.status_code)
    return jwt


def build_footage_stream_url(base_url: str, org_id: str, camera_id: str, jwt: str,
                             start_time: int = 0, end_time: int = 0,
                             resolution: Optional[str] = None, codec: Optional[str] = None) -> str:
    resolution = (resolution or "").strip() or "low_res"
    if resolution not in STREAM_RESOLUTIONS:
        raise InvalidArgumentError(f"invalid --resolution {resolution!r} (expected low_res or high_res)")
    codec = (codec or "").strip() or DEFAULT_CODEC

    params = {
        "org_id": org_id.strip(),
        "camera_id": camera_id.strip(),
        "jwt": jwt.strip(),
        "type": "stream",
        "start_time": str(start_time),
        "end_time": str(end_time),
        "resolution": resolution,
        "codec": codec,
    }
    return f"{build_url(base_url, STREAM_PATH)}?{urlencode(params)}"


def footage_url(ctx: ApiContext, camera_id: str, start: str = "", end: str = "", live: bool = False,
                tz: str = "local", resolution: Optional[str] = None, codec: Optional[str] = None) -> str:
    """Validate inputs, fetch a streaming JWT and return the playlist URL."""
    if not camera_id.strip():
        raise InvalidArgumentError("--camera-id is required")
    if not ctx.profile.org_id.strip():
        raise InvalidArgumentError("org id is empty (set in config, VERKCLI_ORG_ID, or --org-id)")

    start_time, end_time = resolve_stream_times(start, end, live, tz)
    jwt = fetch_streaming_jwt(ctx)
    url = build_footage_stream_url(ctx.profile.base_url, ctx.profile.org_id, camera_id,
                                   jwt, start_time, end_time, resolution, codec)
    logger.debug(f"Footage URL for {camera_id}: window {start_time}..{end_time}")
    return url
