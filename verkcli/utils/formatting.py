# verkcli/utils/formatting.py
"""
Fixed-width text tables for camera lists (cameras list/get/search).
"""

from typing import Optional

from verkcli.utils.json_parser import (
    CAMERA_ID_KEYS, NAME_KEYS, SITE_KEYS, MODEL_KEYS, SERIAL_KEYS,
    STATUS_KEYS, TIMEZONE_KEYS, LOCAL_IP_KEYS, MAC_KEYS, pick_string,
)

# (column, width, candidate keys); None keys = label from the local label map
NARROW_COLUMNS = (
    ("camera_id", 36, CAMERA_ID_KEYS),
    ("label", 20, None),
    ("name", 32, NAME_KEYS),
    ("site", 20, SITE_KEYS),
    ("model", 10, MODEL_KEYS),
    ("serial", 14, SERIAL_KEYS),
    ("status", 10, STATUS_KEYS),
)

WIDE_COLUMNS = (
    ("camera_id", 36, CAMERA_ID_KEYS),
    ("label", 20, None),
    ("name", 28, NAME_KEYS),
    ("site", 18, SITE_KEYS),
    ("model", 10, MODEL_KEYS),
    ("serial", 14, SERIAL_KEYS),
    ("local_ip", 15, LOCAL_IP_KEYS),
    ("mac", 17, MAC_KEYS),
    ("status", 10, STATUS_KEYS),
    ("timezone", 20, TIMEZONE_KEYS),
)

NO_CAMERAS = "no cameras\n"


def truncate(value: str, width: int) -> str:
    value = (value or "").strip()
    if width <= 0:
        return ""
    if len(value) <= width:
        return value
    if width <= 3:
        return value[:width]
    return value[:width - 3] + "..."


def _row(cells: list[str], columns) -> str:
    return "  ".join(f"{truncate(cell, width):<{width}}" for cell, (_, width, _) in zip(cells, columns)) + "\n"


def format_camera_table(cameras: list[dict], wide: bool = False,
                        labels: Optional[dict[str, str]] = None) -> str:
    if not cameras:
        return NO_CAMERAS
    labels = labels or {}
    columns = WIDE_COLUMNS if wide else NARROW_COLUMNS

    lines = [_row([name for name, _, _ in columns], columns)]
    for cam in cameras:
        camera_id = pick_string(cam, *CAMERA_ID_KEYS)
        cells = [labels.get(camera_id, "") if keys is None else pick_string(cam, *keys)
                 for _, _, keys in columns]
        lines.append(_row(cells, columns))
    return "".join(lines)
