# verkcli/services/label_service.py
"""
Local camera labels.

Labels live in the selected profile of the config file. Whenever one is set
or removed, the search index (if it exists) is patched in place so the
camera's FTS row picks up the new text without a full rebuild.
"""

import os
import time
from pathlib import Path
from typing import Optional, Union

from sqlalchemy import delete, text
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from verkcli.database import open_index, session_factory
from verkcli.exceptions import ConfigError
from verkcli.models.label import Label
from verkcli.schemas.config_file import ProfileConfig
from verkcli.services.profile_service import get_profile, load_config, update_profile
from verkcli.utils.logger import get_logger

logger = get_logger(__name__)

FTS_DELETE_ONE = text("DELETE FROM cameras_fts WHERE camera_id = :camera_id")
FTS_REINSERT_ONE = text("""
    INSERT INTO cameras_fts(camera_id, name, site, label, model, serial, status, timezone)
    SELECT c.camera_id, c.name, c.site, COALESCE(l.label, ''), c.model, c.serial, c.status, c.timezone
    FROM cameras c
    LEFT JOIN labels l ON l.camera_id = c.camera_id
    WHERE c.camera_id = :camera_id
""")


def _patch(path: Union[str, Path], camera_id: str, label: str):
    now = int(time.time())
    with open_index(path) as engine:
        SessionLocal = session_factory(engine)
        with SessionLocal() as db:
            with db.begin():
                if label:
                    stmt = sqlite_insert(Label.__table__).values(camera_id=camera_id, label=label, updated_at=now)
                    stmt = stmt.on_conflict_do_update(
                        index_elements=[Label.__table__.c.camera_id],
                        set_={"label": stmt.excluded.label, "updated_at": stmt.excluded.updated_at},
                    )
                    db.execute(stmt)
                else:
                    db.execute(delete(Label.__table__).where(Label.__table__.c.camera_id == camera_id))

                # Regenerate the shadow row from cameras + labels; no-op if not indexed
                db.execute(FTS_DELETE_ONE, {"camera_id": camera_id})
                db.execute(FTS_REINSERT_ONE, {"camera_id": camera_id})


def try_update_index_label(path: Union[str, Path], camera_id: str, label: Optional[str]) -> None:
    """
    Best-effort index patch after a label add (label set) or remove (None/blank).
    Never raises: label management must keep working when no index exists.
    """
    camera_id = (camera_id or "").strip()
    if not camera_id or not os.path.exists(path):
        return
    try:
        _patch(path, camera_id, (label or "").strip())
    except (SQLAlchemyError, OSError) as e:
        logger.debug(f"Skipped index label patch for {camera_id} at {path}: {e}")


# ── Profile-level label management ───────────────────────────────────────────

def set_camera_label(config_path: Union[str, Path], profile_name: str, camera_id: str, label: str,
                     index_path: Optional[Union[str, Path]] = None) -> str:
    """Store a label in the profile, then patch the index if one is given."""
    camera_id, label = camera_id.strip(), label.strip()
    if not camera_id:
        raise ConfigError("camera_id is empty")
    if not label:
        raise ConfigError("label is empty")

    def _set(profile: ProfileConfig):
        profile.labels.cameras[camera_id] = label
    update_profile(config_path, profile_name, _set)

    if index_path is not None:
        try_update_index_label(index_path, camera_id, label)
    return label


def remove_camera_label(config_path: Union[str, Path], profile_name: str, camera_id: str,
                        index_path: Optional[Union[str, Path]] = None):
    camera_id = camera_id.strip()
    if not camera_id:
        raise ConfigError("camera_id is empty")

    def _remove(profile: ProfileConfig):
        profile.labels.cameras.pop(camera_id, None)
    update_profile(config_path, profile_name, _remove)

    if index_path is not None:
        try_update_index_label(index_path, camera_id, None)


def list_camera_labels(config_path: Union[str, Path], profile_name: str) -> list[tuple[str, str]]:
    """(camera_id, label) pairs sorted by camera_id."""
    cfg = load_config(config_path)
    profile = get_profile(cfg, profile_name, config_path)
    return sorted(profile.labels.cameras.items())
