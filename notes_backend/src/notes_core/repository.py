"""
Per-user note collection.

The whole collection is the unit of durability: a mutation copies the
in-memory snapshot, changes the copy, writes the full collection under
`notes:<username>` and only then replaces the snapshot. Writes are
compare-and-set on the record revision. If another writer got there
first, the collection is reloaded and the change re-applied.
"""
import logging
import threading
import time
import uuid
from typing import Callable, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from notes_core.errors import NoteNotFound, PersistenceFailure, ValidationError
from notes_core.schemas import DEFAULT_CATEGORY, MAX_TITLE_LENGTH, Note, dump_notes, load_notes
from notes_database.store import RevisionConflict, StorageError

logger = logging.getLogger(__name__)

_namespace_locks = {}
_namespace_locks_guard = threading.Lock()


def notes_key(username: str) -> str:
    return f"notes:{username}"


def namespace_lock(username: str) -> threading.RLock:
    """One writer at a time per user namespace within this process."""
    with _namespace_locks_guard:
        return _namespace_locks.setdefault(username, threading.RLock())


def now_ms() -> int:
    return int(time.time() * 1000)


def validate_title(title: str) -> None:
    if title is None or not title.strip():
        raise ValidationError("Title is required.")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters.")


# PUBLIC_INTERFACE
class NoteRepository:
    """CRUD over the active user's notes. Every call needs a signed-in session."""

    def __init__(self, session, store, clock: Callable[[], int] = now_ms, write_retries: int = 3):
        self._session = session
        self._store = store
        self._clock = clock
        self._write_retries = write_retries
        self._owner: Optional[str] = None
        self._generation: Optional[int] = None
        self._notes: List[Note] = []
        self._revision = 0

    def list(self) -> List[Note]:
        """Current snapshot, newest-created first."""
        self._ensure_loaded()
        return list(self._notes)

    def get(self, note_id: str) -> Note:
        self._ensure_loaded()
        for note in self._notes:
            if note.id == note_id:
                return note
        raise NoteNotFound(note_id)

    def refresh(self) -> List[Note]:
        """Drops the snapshot and reloads it from durable storage."""
        username = self._session.require_user()
        with namespace_lock(username):
            self._load(username)
            return list(self._notes)

    def add(self, title: str, body: str, image_uri: Optional[str] = None,
            category: Optional[str] = DEFAULT_CATEGORY) -> Note:
        validate_title(title)
        if category is None:
            category = DEFAULT_CATEGORY

        def apply(notes):
            now = self._clock()
            note = Note(
                id=self._new_id(notes),
                title=title,
                body=body or "",
                image_uri=image_uri,
                category=category,
                is_pinned=False,
                created_at=now,
                updated_at=now,
            )
            return [note] + notes, note

        return self._mutate(apply)

    def update(self, note_id: str, title: str, body: str, image_uri: Optional[str] = None,
               category: Optional[str] = None, is_pinned: Optional[bool] = None) -> Note:
        """
        Replaces the note's content and bumps `updatedAt`.

        `title`, `body` and `image_uri` are always overwritten, so passing no
        image clears a stored one. `category` and `is_pinned` keep their
        previous value when passed as None.
        """
        validate_title(title)

        def apply(notes):
            index = self._index_of(notes, note_id)
            current = notes[index]
            changes = {
                "title": title,
                "body": body or "",
                "image_uri": image_uri,
                "updated_at": max(self._clock(), current.updated_at + 1),
            }
            if category is not None:
                changes["category"] = category
            if is_pinned is not None:
                changes["is_pinned"] = is_pinned
            updated = current.model_copy(update=changes)
            notes[index] = updated
            return notes, updated

        return self._mutate(apply)

    def delete(self, note_id: str) -> None:
        def apply(notes):
            index = self._index_of(notes, note_id)
            del notes[index]
            return notes, None

        self._mutate(apply)

    def _ensure_loaded(self) -> str:
        username = self._session.require_user()
        if self._owner != username or self._generation != self._session.generation:
            with namespace_lock(username):
                self._load(username)
        return username

    def _load(self, username: str) -> None:
        try:
            raw, revision = self._store.get_with_revision(notes_key(username))
        except StorageError as exc:
            raise PersistenceFailure(str(exc)) from exc
        try:
            notes = load_notes(raw)
        except PydanticValidationError as exc:
            raise PersistenceFailure(f"Stored notes for {username!r} are unreadable.") from exc
        self._notes = notes
        self._revision = revision
        self._owner = username
        self._generation = self._session.generation
        logger.debug("Loaded %d notes for %r at revision %d", len(self._notes), username, revision)

    def _mutate(self, apply: Callable[[List[Note]], Tuple[List[Note], object]]):
        username = self._session.require_user()
        with namespace_lock(username):
            self._ensure_loaded()
            for attempt in range(self._write_retries + 1):
                notes, result = apply(list(self._notes))
                try:
                    revision = self._store.compare_and_set(
                        notes_key(username), dump_notes(notes), self._revision
                    )
                except RevisionConflict:
                    logger.warning(
                        "Notes for %r changed underneath us (attempt %d), reloading",
                        username, attempt + 1,
                    )
                    self._load(username)
                    continue
                except StorageError as exc:
                    raise PersistenceFailure(str(exc)) from exc
                self._notes = notes
                self._revision = revision
                return result
        raise PersistenceFailure(
            f"Gave up writing notes for {username!r} after {self._write_retries + 1} attempts."
        )

    @staticmethod
    def _index_of(notes: List[Note], note_id: str) -> int:
        for index, note in enumerate(notes):
            if note.id == note_id:
                return index
        raise NoteNotFound(note_id)

    def _new_id(self, notes: List[Note]) -> str:
        taken = {note.id for note in notes}
        while True:
            note_id = f"{self._session.require_user()}-{uuid.uuid4().hex}"
            if note_id not in taken:
                return note_id
