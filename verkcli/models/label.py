# verkcli/models/label.py
"""
Local camera labels, keyed 1:1 by camera_id.
No foreign key to cameras: labels are supplied by the user's profile and
may name cameras that are not (yet) indexed.
"""

from sqlalchemy import Column, Integer, Text
from verkcli.database import Base


class Label(Base):
    __tablename__ = "labels"

    camera_id = Column(Text, primary_key=True)
    label = Column(Text)
    updated_at = Column(Integer)

    def __repr__(self):
        return f"<Label {self.camera_id}={self.label!r}>"
