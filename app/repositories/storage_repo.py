from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.models.storage import StorageEntry


class StorageRepository:
    """
    Data access layer for storage_entries.

    - Pure DB operations, one commit per write.
    - No event dispatch; that lives in the storage service.
    """

    def get(self, session: Session, area: str, key: str) -> StorageEntry | None:
        return session.get(StorageEntry, (area, key))

    def upsert(self, session: Session, area: str, key: str, value: str) -> StorageEntry:
        entry = self.get(session, area, key)
        if entry is None:
            entry = StorageEntry(area=area, key=key, value=value)
            session.add(entry)
            try:
                session.commit()
            except IntegrityError:
                # Another writer inserted the row first; update it instead.
                session.rollback()
                entry = self.get(session, area, key)
                entry.value = value
                entry.updated_at = datetime.now(timezone.utc)
                session.add(entry)
                session.commit()
        else:
            entry.value = value
            entry.updated_at = datetime.now(timezone.utc)
            session.add(entry)
            session.commit()
        session.refresh(entry)
        return entry

    def delete(self, session: Session, area: str, key: str) -> bool:
        entry = self.get(session, area, key)
        if entry is None:
            return False
        session.delete(entry)
        session.commit()
        return True
