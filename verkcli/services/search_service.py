# verkcli/services/search_service.py
"""
Free-text camera search over the local FTS5 index.

Query handling:
  1. lowercase, anything outside [a-z0-9] becomes a separator
  2. drop stopwords (falls back to the unfiltered tokens if nothing is left)
  3. every token becomes a prefix term, all terms AND-ed
  4. rank with bm25 (lower = better)
"""

import json
import os
import re
from pathlib import Path
from typing import Union

from sqlalchemy import text

from verkcli.database import SCHEMA_VERSION, open_index, session_factory
from verkcli.exceptions import EmptyQueryError, IndexNotFoundError
from verkcli.models.meta import Meta
from verkcli.schemas.index import SearchResult
from verkcli.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 500

STOPWORDS = frozenset({
    "a", "an", "and", "are", "at", "by", "for", "from",
    "in", "into", "is", "near", "of", "on", "or", "the", "to", "with",
    "camera", "cameras",
})

_NON_ALNUM = re.compile(r"[^a-z0-9]")

SEARCH_SQL = text("""
    SELECT c.raw_json AS raw_json, cameras_fts.camera_id AS camera_id, bm25(cameras_fts) AS score
    FROM cameras_fts
    JOIN cameras c ON c.camera_id = cameras_fts.camera_id
    WHERE cameras_fts MATCH :match
    ORDER BY score ASC
    LIMIT :limit
""")


def clamp_limit(limit: int) -> int:
    if limit <= 0:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


def tokenize_query(query: str) -> list[str]:
    """ASCII-only on purpose: punctuation, symbols and non-ASCII all split tokens."""
    return _NON_ALNUM.sub(" ", query.lower()).split()


def build_fts_query(query: str) -> str:
    """Turn user text into an FTS5 MATCH expression, e.g. 'north* AND door*'."""
    tokens = tokenize_query(query)
    keep = [t for t in tokens if t not in STOPWORDS]
    if not keep:
        # "the" alone should still search for "the"
        keep = tokens
    if not keep:
        raise EmptyQueryError()
    return " AND ".join(f"{t}*" for t in keep)


def _warn_on_schema_mismatch(db, path):
    stored = db.get(Meta, "schema_version")
    if stored is not None and stored.value != str(SCHEMA_VERSION):
        logger.warning(
            f"Index at {path} has schema_version={stored.value}, expected {SCHEMA_VERSION}; "
            f"rebuild it with: verkcli cameras index build"
        )


def search_cameras_index(path: Union[str, Path], query: str, limit: int = DEFAULT_LIMIT) -> list[SearchResult]:
    """Ranked matches with the full stored camera object for each hit."""
    if not os.path.exists(path):
        raise IndexNotFoundError(path)

    limit = clamp_limit(limit)
    match = build_fts_query(query)
    logger.debug(f"FTS query {match!r} limit={limit}")

    results = []
    with open_index(path) as engine:
        SessionLocal = session_factory(engine)
        with SessionLocal() as db:
            _warn_on_schema_mismatch(db, path)
            rows = db.execute(SEARCH_SQL, {"match": match, "limit": limit}).all()

    for row in rows:
        try:
            camera = json.loads(row.raw_json)
        except (TypeError, json.JSONDecodeError):
            # one corrupt row must not fail the whole search
            continue
        if not isinstance(camera, dict):
            continue
        results.append(SearchResult(camera_id=row.camera_id, rank=row.score, camera=camera))
    return results
