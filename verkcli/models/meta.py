# verkcli/models/meta.py
"""
Flat key/value provenance of the last rebuild:
schema_version, built_at, base_url, org_id, profile.
"""

from sqlalchemy import Column, Text
from verkcli.database import Base


class Meta(Base):
    __tablename__ = "meta"

    key = Column(Text, primary_key=True)
    value = Column(Text, nullable=False)

    def __repr__(self):
        return f"<Meta {self.key}={self.value!r}>"
