# verkcli/models/camera.py
"""
Indexed cameras table.
One row per camera from the last full rebuild: a few denormalized display
fields plus the complete API object in raw_json for callers that need more.
"""

from sqlalchemy import Column, Integer, Text
from verkcli.database import Base


class Camera(Base):
    __tablename__ = "cameras"

    camera_id = Column(Text, primary_key=True)
    name = Column(Text)
    site = Column(Text)
    model = Column(Text)
    serial = Column(Text)
    status = Column(Text)
    timezone = Column(Text)
    updated_at = Column(Integer)
    raw_json = Column(Text)

    def __repr__(self):
        return f"<Camera {self.camera_id} name={self.name} site={self.site}>"
