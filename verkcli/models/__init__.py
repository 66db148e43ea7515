# verkcli: index database models
# Import all models here for SQLAlchemy discovery

from verkcli.models.meta import Meta          # noqa
from verkcli.models.camera import Camera      # noqa
from verkcli.models.label import Label        # noqa
