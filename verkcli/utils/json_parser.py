# verkcli/utils/json_parser.py
"""
Helpers for reading loosely-shaped camera API payloads.
The devices endpoint has used several spellings for the same field over time,
so every lookup goes through an ordered list of candidate keys.
"""

import json
from typing import Any, Optional

CAMERA_ID_KEYS = ("camera_id", "cameraId", "cameraID", "id")
NAME_KEYS = ("name", "device_name", "deviceName")
SITE_KEYS = ("site", "site_name", "siteName")
MODEL_KEYS = ("model", "device_model", "deviceModel")
SERIAL_KEYS = ("serial", "serial_number", "serialNumber")
STATUS_KEYS = ("status", "camera_status", "cameraStatus")
TIMEZONE_KEYS = ("timezone", "time_zone", "timeZone")
LOCAL_IP_KEYS = ("local_ip", "localIp")
MAC_KEYS = ("mac", "mac_address", "macAddress")
NEXT_TOKEN_KEYS = ("next_page_token", "nextPageToken", "next_page", "nextPage")

_ENVELOPE_KEYS = ("cameras", "devices", "data", "results")


def safe_parse_json(raw_body: bytes) -> Optional[Any]:
    """Parse JSON bytes safely. Returns None on error."""
    try:
        return json.loads(raw_body.decode("utf-8", errors="replace"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def _render(value: Any) -> str:
    # bool before int: True is an int in Python
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return ""


def pick_string(data: dict, *keys: str) -> str:
    """Return the first non-empty value among keys, rendered as a string."""
    for key in keys:
        if key not in data:
            continue
        rendered = _render(data[key])
        if rendered != "":
            return rendered
    return ""


def _only_dicts(items: list) -> list[dict]:
    return [item for item in items if isinstance(item, dict)]


def extract_device_array(raw_body: bytes) -> list[dict]:
    """
    Pull the camera list out of a response body.
    Accepts a bare array or a {cameras|devices|data|results: [...]} envelope,
    and finally any object holding exactly one array.
    """
    data = safe_parse_json(raw_body)
    if isinstance(data, list):
        return _only_dicts(data)
    if not isinstance(data, dict):
        raise ValueError("unexpected JSON shape")

    for key in _ENVELOPE_KEYS:
        if isinstance(data.get(key), list):
            return _only_dicts(data[key])

    arrays = [v for v in data.values() if isinstance(v, list)]
    if len(arrays) > 1:
        raise ValueError("ambiguous response: multiple arrays present")
    if arrays:
        return _only_dicts(arrays[0])
    raise ValueError("no device array found in response")


def extract_cameras_and_next_token(raw_body: bytes) -> tuple[list[dict], str]:
    """Parse one devices page into (cameras, next_page_token)."""
    data = safe_parse_json(raw_body)
    if not isinstance(data, dict):
        raise ValueError("camera page is not a JSON object")

    if isinstance(data.get("cameras"), list):
        cameras = _only_dicts(data["cameras"])
    elif isinstance(data.get("devices"), list):
        cameras = _only_dicts(data["devices"])
    else:
        cameras = extract_device_array(raw_body)
    return cameras, pick_string(data, *NEXT_TOKEN_KEYS)


def is_json_body(raw_body: bytes, content_type: str = "") -> bool:
    """Detect if the raw body is JSON (by content-type or by inspecting first byte)."""
    ct = content_type.lower()
    if "application/json" in ct or "+json" in ct:
        return True
    stripped = raw_body.lstrip()
    return stripped.startswith(b"{") or stripped.startswith(b"[")


def is_html_body(raw_body: bytes, content_type: str = "") -> bool:
    """Detect a web-app HTML page returned where API JSON was expected."""
    ct = content_type.lower()
    if "text/html" in ct or "application/xhtml" in ct:
        return True
    text = raw_body.strip().decode("utf-8", errors="replace").lower()
    if not text:
        return False
    return text.startswith("<!doctype html") or text.startswith("<html") or "<title>verkada</title>" in text
