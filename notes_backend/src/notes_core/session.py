"""
Device session: at most one signed-in user, persisted under the `session` key.
"""
import logging
from typing import Optional

from notes_core.errors import InvalidCredentials, NoSession, PersistenceFailure
from notes_database.store import StorageError

logger = logging.getLogger(__name__)

SESSION_KEY = "session"


# PUBLIC_INTERFACE
class SessionManager:
    """
    Two states: signed out (`current_user is None`) and signed in.

    `is_loading` stays True until `restore()` has read the persisted
    session, so callers can hold off querying notes until then.
    `generation` changes on every sign-in and sign-out; the note
    repository uses it to notice that its snapshot belongs to an
    earlier session.
    """

    def __init__(self, credentials, store):
        self._credentials = credentials
        self._store = store
        self._current_user: Optional[str] = None
        self._loading = True
        self._generation = 0

    @property
    def current_user(self) -> Optional[str]:
        return self._current_user

    @property
    def is_signed_in(self) -> bool:
        return self._current_user is not None

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def generation(self) -> int:
        return self._generation

    def require_user(self) -> str:
        """Returns the active username or raises NoSession."""
        if self._current_user is None:
            raise NoSession()
        return self._current_user

    def restore(self) -> Optional[str]:
        """Reads the persisted session record at start-up."""
        self._loading = True
        try:
            username = self._read(SESSION_KEY)
            if username is not None and not self._credentials.exists(username):
                logger.warning("Discarding session for unknown user %r", username)
                self._remove(SESSION_KEY)
                username = None
            self._transition(username)
            if username is not None:
                logger.info("Restored session for %r", username)
            return username
        finally:
            self._loading = False

    def sign_up(self, username: str, password: str) -> None:
        """Registers the account, then signs straight in with it."""
        self._credentials.register(username, password)
        self.sign_in(username, password)

    def sign_in(self, username: str, password: str) -> None:
        if not self._credentials.verify(username, password):
            raise InvalidCredentials()
        try:
            self._store.set(SESSION_KEY, username)
        except StorageError as exc:
            raise PersistenceFailure(str(exc)) from exc
        self._transition(username)
        logger.info("Signed in as %r", username)

    def sign_out(self) -> None:
        """Clears the session. Safe to call when already signed out."""
        self._remove(SESSION_KEY)
        if self._current_user is not None:
            logger.info("Signed out %r", self._current_user)
        self._transition(None)

    def _transition(self, username: Optional[str]) -> None:
        self._current_user = username
        self._generation += 1

    def _read(self, key):
        try:
            return self._store.get(key)
        except StorageError as exc:
            raise PersistenceFailure(str(exc)) from exc

    def _remove(self, key):
        try:
            self._store.remove(key)
        except StorageError as exc:
            raise PersistenceFailure(str(exc)) from exc
