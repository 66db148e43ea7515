# verkcli/services/camera_client.py
"""
Synchronous HTTP client for the camera API.

Every call goes through api_request(), which applies headers/auth, logs timing at
debug level, rejects HTML (usually a web-app base URL instead of api.*), and
refreshes the short-lived API token once when the server asks for it.

Endpoints:
  GET  /cameras/v1/devices             (paged camera inventory)
  GET  /cameras/v1/footage/thumbnails  (JPEG bytes)
  GET  /cameras/v1/footage/token       (streaming JWT)
  POST /token                          (API token from API key)
  any                                  (raw `verkcli request`)
"""

import time
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

import requests
from requests.structures import CaseInsensitiveDict

from verkcli.config import settings
from verkcli.exceptions import ApiError, ConfigError, InvalidArgumentError
from verkcli.schemas.config_file import ProfileConfig
from verkcli.services.profile_service import persist_profile_token
from verkcli.utils.json_parser import (
    CAMERA_ID_KEYS, NAME_KEYS, SITE_KEYS, extract_cameras_and_next_token,
    is_html_body, is_json_body, pick_string, safe_parse_json,
)
from verkcli.utils.logger import get_logger

logger = get_logger(__name__)

DEVICES_PATH = "/cameras/v1/devices"
THUMBNAIL_PATH = "/cameras/v1/footage/thumbnails"
TOKEN_PATH = "/token"

MAX_PAGE_SIZE = 200
HTML_HINT = ("check --base-url is https://api(.eu|.au).verkada.com "
             "and auth headers x-api-key / x-verkada-auth")


@dataclass
class ApiContext:
    """Everything a request needs: effective profile plus per-invocation flags."""
    profile: ProfileConfig
    profile_name: str = "default"
    config_path: Optional[str] = None
    headers: list[str] = field(default_factory=list)     # raw -H 'Key: Value' flags
    timeout: float = settings.HTTP_TIMEOUT_SECONDS


def build_url(base_url: str, path: str) -> str:
    return urljoin(base_url, path)


def build_request_url(base_url: str, full_url: str = "", path: str = "", query: Optional[list[str]] = None) -> str:
    """
    Absolute URL for a raw request: `full_url` as given, else base URL + path,
    with `k=v` query pairs appended. The query string is re-encoded sorted by key.
    """
    if full_url:
        url = full_url
    elif path:
        url = build_url(base_url, path)
    else:
        raise InvalidArgumentError("either --url or --path is required")

    parts = urlsplit(url)
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    for kv in query or []:
        key, sep, value = kv.partition("=")
        if not sep or not key.strip():
            raise InvalidArgumentError(f"invalid --query {kv!r} (expected k=v)")
        pairs.append((key, value))
    pairs.sort(key=lambda kv: kv[0])
    return urlunsplit(parts._replace(query=urlencode(pairs)))


def parse_header_flags(headers: list[str]) -> dict[str, str]:
    out = {}
    for h in headers:
        key, sep, value = h.partition(":")
        if not sep:
            raise ApiError(f"invalid header {h!r} (expected 'Key: Value')")
        if not key.strip():
            raise ApiError(f"invalid header {h!r} (empty key)")
        out[key.strip()] = value.strip()
    return out


def build_headers(ctx: ApiContext, with_body: bool = False) -> dict[str, str]:
    """Profile headers, then -H flags, then best-effort auth for whatever is still missing."""
    headers = CaseInsensitiveDict()
    for k, v in ctx.profile.headers.items():
        if k.strip():
            headers[k] = v
    headers.update(parse_header_flags(ctx.headers))

    if with_body and "Content-Type" not in headers:
        headers["Content-Type"] = "application/json"

    auth = ctx.profile.auth
    if auth.api_key and "x-api-key" not in headers:
        headers["x-api-key"] = auth.api_key
    if auth.token and "x-verkada-auth" not in headers:
        headers["x-verkada-auth"] = auth.token
    return dict(headers)


def api_error_message(body: bytes) -> Optional[str]:
    data = safe_parse_json(body)
    if isinstance(data, dict) and isinstance(data.get("message"), str) and data["message"].strip():
        return data["message"]
    return None


def is_token_refresh_needed(status: int, body: bytes) -> bool:
    msg = (api_error_message(body) or "").lower()
    if status == 400:
        return "api token is required" in msg
    if status == 401:
        return "token expired" in msg
    return False


def _request(ctx: ApiContext, method: str, url: str, *, params=None, headers=None,
             data: Optional[bytes] = None) -> requests.Response:
    start = time.time()
    if headers is None:
        headers = build_headers(ctx, with_body=data is not None)
    resp = requests.request(method, url, params=params, data=data, headers=headers, timeout=ctx.timeout)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"HTTP {method} {resp.url} → {resp.status_code} ({duration}ms)")
    return resp


def fetch_api_token(ctx: ApiContext) -> str:
    """Exchange the API key for a short-lived API token."""
    if not ctx.profile.auth.api_key.strip():
        raise ApiError("cannot fetch API token: api key is empty")
    headers = build_headers(ctx)
    headers["x-api-key"] = ctx.profile.auth.api_key

    resp = _request(ctx, "POST", build_url(ctx.profile.base_url, TOKEN_PATH), headers=headers)
    if is_html_body(resp.content, resp.headers.get("Content-Type", "")):
        raise ApiError("received HTML from /token (base URL likely points to the web UI, not api.*.verkada.com)")
    if resp.status_code >= 400:
        raise ApiError(f"token request failed with status {resp.status_code}: {resp.text[:200]}", resp.status_code)

    data = safe_parse_json(resp.content)
    token = data.get("token") if isinstance(data, dict) else None
    if not isinstance(token, str) or not token.strip():
        raise ApiError("token response missing token field")
    return token


def maybe_refresh_token(ctx: ApiContext, resp: requests.Response) -> bool:
    """On 'token required/expired', fetch a new token into ctx. Returns True if refreshed."""
    if not is_token_refresh_needed(resp.status_code, resp.content):
        return False
    token = fetch_api_token(ctx)
    ctx.profile.auth.token = token
    ctx.profile.auth.token_acquired_at = int(time.time())
    logger.info(f"🔑 Refreshed API token for profile '{ctx.profile_name}'")

    if ctx.config_path:
        try:
            persist_profile_token(ctx.config_path, ctx.profile_name, token, ctx.profile.auth.token_acquired_at)
        except (ConfigError, OSError) as e:
            logger.debug(f"Could not persist refreshed token: {e}")
    return True


def api_request(ctx: ApiContext, method: str, path: str, params=None,
                data: Optional[bytes] = None, url: Optional[str] = None) -> requests.Response:
    """
    Send one request, refreshing the API token and retrying once if asked to.
    `url` (already absolute) takes precedence over base URL + `path`.
    """
    url = url or build_url(ctx.profile.base_url, path)
    resp = _request(ctx, method, url, params=params, data=data)
    if is_html_body(resp.content, resp.headers.get("Content-Type", "")):
        raise ApiError(f"received HTML response ({HTML_HINT})", resp.status_code)

    if maybe_refresh_token(ctx, resp):
        resp = _request(ctx, method, url, params=params, data=data)
        if is_html_body(resp.content, resp.headers.get("Content-Type", "")):
            raise ApiError(f"received HTML response ({HTML_HINT})", resp.status_code)
    return resp


# ── Camera inventory ─────────────────────────────────────────────────────────

def clamp_page_size(page_size: int) -> int:
    if page_size <= 0:
        return MAX_PAGE_SIZE
    return min(page_size, MAX_PAGE_SIZE)


def fetch_devices_page_raw(ctx: ApiContext, page_token: str = "", page_size: int = 100) -> requests.Response:
    params = {"page_size": clamp_page_size(page_size)}
    if page_token.strip():
        params["page_token"] = page_token
    return api_request(ctx, "GET", DEVICES_PATH, params=params)


def fetch_cameras_page(ctx: ApiContext, page_token: str = "", page_size: int = 100) -> tuple[list[dict], str, int]:
    """One page of cameras: (cameras, next_page_token, http_status)."""
    resp = fetch_devices_page_raw(ctx, page_token, page_size)
    if resp.status_code >= 400:
        raise ApiError(f"request failed with status {resp.status_code}: {resp.text[:200]}", resp.status_code)
    try:
        cameras, next_token = extract_cameras_and_next_token(resp.content)
    except ValueError as e:
        raise ApiError(f"unexpected camera page: {e}", resp.status_code) from e
    return cameras, next_token, resp.status_code


def fetch_all_cameras(ctx: ApiContext, page_size: int = MAX_PAGE_SIZE, page_token: str = "") -> list[dict]:
    """Every page aggregated, sorted by camera id so rebuilds are reproducible."""
    page_size = clamp_page_size(page_size)
    cameras: list[dict] = []
    next_token = page_token
    pages = 0
    while True:
        page, next_token, _ = fetch_cameras_page(ctx, next_token, page_size)
        cameras.extend(page)
        pages += 1
        if not next_token.strip():
            break

    logger.info(f"📡 Fetched {len(cameras)} cameras in {pages} page(s)")
    cameras.sort(key=lambda c: pick_string(c, *CAMERA_ID_KEYS))
    return cameras


def find_camera(ctx: ApiContext, camera_id: str, page_size: int = 100) -> Optional[dict]:
    """Page through the inventory until camera_id shows up."""
    next_token = ""
    while True:
        page, next_token, _ = fetch_cameras_page(ctx, next_token, page_size)
        for cam in page:
            if pick_string(cam, *CAMERA_ID_KEYS) == camera_id:
                return cam
        if not next_token.strip():
            return None


def filter_cameras(cameras: list[dict], camera_id: str = "", query: str = "",
                   labels: Optional[dict[str, str]] = None) -> list[dict]:
    """Exact camera_id match and/or case-insensitive substring over id/name/site/label."""
    camera_id = camera_id.strip()
    query = query.strip().lower()
    if not camera_id and not query:
        return cameras
    labels = labels or {}

    out = []
    for cam in cameras:
        cid = pick_string(cam, *CAMERA_ID_KEYS)
        if camera_id and cid != camera_id:
            continue
        if query:
            hay = " ".join([cid, pick_string(cam, *NAME_KEYS), pick_string(cam, *SITE_KEYS), labels.get(cid, "")])
            if query not in hay.lower():
                continue
        out.append(cam)
    return out


# ── Thumbnails ───────────────────────────────────────────────────────────────

THUMBNAIL_RESOLUTIONS = ("low-res", "hi-res")


def fetch_thumbnail(ctx: ApiContext, camera_id: str, timestamp: int, resolution: str = "low-res") -> bytes:
    """JPEG bytes for camera_id at/near timestamp (unix seconds)."""
    if not camera_id.strip():
        raise InvalidArgumentError("--camera-id is required")
    if resolution not in THUMBNAIL_RESOLUTIONS:
        raise InvalidArgumentError(f"invalid --resolution {resolution!r} (expected low-res or hi-res)")

    params = {"camera_id": camera_id, "timestamp": str(timestamp or int(time.time())), "resolution": resolution}
    resp = api_request(ctx, "GET", THUMBNAIL_PATH, params=params)

    if resp.status_code >= 400:
        raise ApiError(f"request failed with status {resp.status_code}: {resp.text[:200]}", resp.status_code)
    if is_json_body(resp.content, resp.headers.get("Content-Type", "")):
        raise ApiError(f"unexpected JSON response for thumbnail endpoint: {resp.text[:200]}", resp.status_code)
    if not resp.content:
        raise ApiError("empty thumbnail response", resp.status_code)
    return resp.content
