# verkcli/services/index_service.py
"""
Camera index rebuild + status.

A rebuild is destructive-and-replace: within one transaction every row of
cameras, labels and cameras_fts is deleted and repopulated from a freshly
fetched camera list, and the meta provenance keys are overwritten. Any
failure rolls the whole thing back, so the previous index stays usable.
"""

import json
import os
import time
from pathlib import Path
from typing import Optional, Union

from sqlalchemy import delete, func, insert, text
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from verkcli.database import SCHEMA_VERSION, open_index, session_factory
from verkcli.exceptions import IndexNotFoundError
from verkcli.models.camera import Camera
from verkcli.models.label import Label
from verkcli.models.meta import Meta
from verkcli.schemas.index import IndexStatus
from verkcli.utils.json_parser import (
    CAMERA_ID_KEYS, NAME_KEYS, SITE_KEYS, MODEL_KEYS,
    SERIAL_KEYS, STATUS_KEYS, TIMEZONE_KEYS, pick_string,
)
from verkcli.utils.logger import get_logger

logger = get_logger(__name__)

FTS_DELETE_ALL = text("DELETE FROM cameras_fts")
FTS_INSERT = text(
    "INSERT INTO cameras_fts(camera_id, name, site, label, model, serial, status, timezone) "
    "VALUES (:camera_id, :name, :site, :label, :model, :serial, :status, :timezone)"
)


def _upsert_meta(db, values: dict):
    stmt = sqlite_insert(Meta.__table__)
    stmt = stmt.on_conflict_do_update(
        index_elements=[Meta.__table__.c.key],
        set_={"value": stmt.excluded.value},
    )
    db.execute(stmt, [{"key": k, "value": v} for k, v in values.items()])


def rebuild_cameras_index(path: Union[str, Path], cameras: list[dict],
                          labels: Optional[dict[str, str]],
                          base_url: str, org_id: str, profile: str) -> int:
    """
    Replace the index at `path` with `cameras` (+ `labels`).
    Returns the number of cameras written; records without an id are skipped.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    labels = labels or {}
    now = int(time.time())

    camera_rows, label_rows, fts_rows = [], [], []
    for cam in cameras:
        camera_id = pick_string(cam, *CAMERA_ID_KEYS)
        if not camera_id.strip():
            continue

        row = {
            "camera_id": camera_id,
            "name": pick_string(cam, *NAME_KEYS),
            "site": pick_string(cam, *SITE_KEYS),
            "model": pick_string(cam, *MODEL_KEYS),
            "serial": pick_string(cam, *SERIAL_KEYS),
            "status": pick_string(cam, *STATUS_KEYS),
            "timezone": pick_string(cam, *TIMEZONE_KEYS),
        }
        camera_rows.append({**row, "updated_at": now, "raw_json": json.dumps(cam, sort_keys=True)})

        label = (labels.get(camera_id) or "").strip()
        if label:
            label_rows.append({"camera_id": camera_id, "label": label, "updated_at": now})
        fts_rows.append({**row, "label": label})

    with open_index(path) as engine:
        SessionLocal = session_factory(engine)
        with SessionLocal() as db:
            with db.begin():
                db.execute(delete(Camera.__table__))
                db.execute(delete(Label.__table__))
                db.execute(FTS_DELETE_ALL)

                _upsert_meta(db, {
                    "schema_version": str(SCHEMA_VERSION),
                    "built_at": str(now),
                    "base_url": base_url or "",
                    "org_id": org_id or "",
                    "profile": profile or "",
                })

                # executemany with an empty list is not a no-op everywhere
                if camera_rows:
                    db.execute(insert(Camera.__table__), camera_rows)
                if label_rows:
                    db.execute(insert(Label.__table__), label_rows)
                if fts_rows:
                    db.execute(FTS_INSERT, fts_rows)

    logger.info(f"Rebuilt camera index at {path}: {len(camera_rows)} cameras, {len(label_rows)} labels")
    return len(camera_rows)


def _as_int(value: Optional[str]) -> int:
    try:
        return int(value or 0)
    except ValueError:
        return 0


def read_cameras_index_status(path: Union[str, Path]) -> IndexStatus:
    """Provenance and size of an existing index. Raises IndexNotFoundError."""
    if not os.path.exists(path):
        raise IndexNotFoundError(path)

    with open_index(path) as engine:
        SessionLocal = session_factory(engine)
        with SessionLocal() as db:
            meta = {m.key: m.value for m in db.query(Meta).all()}
            count = db.query(func.count(Camera.camera_id)).scalar() or 0

    return IndexStatus(
        exists=True,
        path=str(path),
        schema_version=_as_int(meta.get("schema_version")),
        built_at=_as_int(meta.get("built_at")),
        camera_count=count,
        base_url=meta.get("base_url", ""),
        org_id=meta.get("org_id", ""),
        profile=meta.get("profile", ""),
    )
