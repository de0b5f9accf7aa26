"""
Key-value access to the `records` table.

Every public method runs in its own transaction, so a reader only ever sees
a value that was completely written.
"""
from typing import Optional, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from notes_database.models import Record, utcnow


class StorageError(Exception):
    """Raised when the underlying database cannot be read or written."""


class RevisionConflict(StorageError):
    """Raised when a compare-and-set finds a revision other than the expected one."""

    def __init__(self, key: str, expected_revision: int):
        super().__init__(f"Record {key!r} is no longer at revision {expected_revision}.")
        self.key = key
        self.expected_revision = expected_revision


# PUBLIC_INTERFACE
class KeyValueStore:
    """Flat string-keyed durable store."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        """Returns the value stored under `key`, or None when absent."""
        return self.get_with_revision(key)[0]

    def get_with_revision(self, key: str) -> Tuple[Optional[str], int]:
        """
        Returns `(value, revision)` for `key`.
        An absent key reads as `(None, 0)`.
        """
        try:
            with self._session_factory() as session:
                row = session.execute(
                    select(Record.value, Record.revision).where(Record.key == key)
                ).first()
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not read {key!r}.") from exc
        if row is None:
            return None, 0
        return row.value, row.revision

    def set(self, key: str, value: str) -> int:
        """Unconditionally writes `value` under `key`. Returns the new revision."""
        try:
            with self._session_factory() as session, session.begin():
                record = session.get(Record, key)
                if record is None:
                    session.add(Record(key=key, value=value, revision=1, updated_at=utcnow()))
                    return 1
                record.value = value
                record.revision += 1
                return record.revision
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not write {key!r}.") from exc

    def compare_and_set(self, key: str, value: str, expected_revision: int) -> int:
        """
        Writes `value` only if `key` is still at `expected_revision`.

        An expected revision of 0 means the key must not exist yet.
        Returns the new revision; raises RevisionConflict otherwise.
        """
        try:
            with self._session_factory() as session, session.begin():
                if expected_revision == 0:
                    session.add(Record(key=key, value=value, revision=1, updated_at=utcnow()))
                    session.flush()
                    return 1
                result = session.execute(
                    update(Record)
                    .where(Record.key == key, Record.revision == expected_revision)
                    .values(value=value, revision=expected_revision + 1, updated_at=utcnow())
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise RevisionConflict(key, expected_revision)
                return expected_revision + 1
        except IntegrityError as exc:
            raise RevisionConflict(key, expected_revision) from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not write {key!r}.") from exc

    def remove(self, key: str) -> None:
        """Deletes `key`. Removing an absent key is not an error."""
        try:
            with self._session_factory() as session, session.begin():
                session.execute(
                    delete(Record).where(Record.key == key).execution_options(synchronize_session=False)
                )
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not remove {key!r}.") from exc
