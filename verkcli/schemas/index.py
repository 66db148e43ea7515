# verkcli/schemas/index.py
from pydantic import BaseModel
from typing import Any


class IndexStatus(BaseModel):
    exists: bool
    path: str
    schema_version: int = 0
    built_at: int = 0
    camera_count: int = 0
    base_url: str = ""
    org_id: str = ""
    profile: str = ""


class SearchResult(BaseModel):
    camera_id: str
    rank: float                 # bm25: lower is better
    camera: dict[str, Any]      # full API object as stored at build time
