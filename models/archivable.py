from datetime import datetime
from models.db import db


class ArchivableMixin:
    """
    Soft archival as a row state. Stores call `active()` so archived rows never
    leak into booking queries.
    """

    archived_at = db.Column(db.DateTime, nullable=True)

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def archive(self):
        if self.archived_at is None:
            self.archived_at = datetime.utcnow()

    @classmethod
    def active(cls, session):
        return session.query(cls).filter(cls.archived_at.is_(None))
