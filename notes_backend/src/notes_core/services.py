"""
Explicit wiring: the store goes into CredentialStore, CredentialStore into
SessionManager, SessionManager into NoteRepository.
"""
from notes_core.config import load_settings
from notes_core.credentials import CredentialStore
from notes_core.repository import NoteRepository
from notes_core.session import SessionManager
from notes_database.db import get_engine, make_session_factory
from notes_database.init_db import init_db
from notes_database.store import KeyValueStore


class Services:
    """The services of one device, built around a single key-value store."""

    def __init__(self, store, digest_scheme="sha256", write_retries=3, clock=None):
        self.store = store
        self.credentials = CredentialStore(store, scheme=digest_scheme)
        self.sessions = SessionManager(self.credentials, store)
        repository_options = {"write_retries": write_retries}
        if clock is not None:
            repository_options["clock"] = clock
        self.notes = NoteRepository(self.sessions, store, **repository_options)


# PUBLIC_INTERFACE
def build_services(settings=None, restore=True):
    """
    Builds the services from settings (environment by default), creating the
    tables if needed and restoring the persisted session.
    """
    settings = settings or load_settings()
    engine = get_engine(settings.database_url)
    init_db(engine)
    services = Services(
        KeyValueStore(make_session_factory(engine)),
        digest_scheme=settings.digest_scheme,
        write_retries=settings.write_retries,
    )
    if restore:
        services.sessions.restore()
    return services
