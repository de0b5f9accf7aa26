"""Errors raised by the core. All of them propagate to the immediate caller."""


class NotesError(Exception):
    """Base class for every error the core raises."""


class DuplicateUsername(NotesError):
    def __init__(self, username: str):
        super().__init__("Username already exists.")
        self.username = username


class UserNotFound(NotesError):
    def __init__(self, username: str):
        super().__init__("User not found.")
        self.username = username


class InvalidCredentials(NotesError):
    def __init__(self):
        super().__init__("Invalid credentials.")


class NoSession(NotesError):
    def __init__(self):
        super().__init__("No user is signed in.")


class ValidationError(NotesError):
    """Input rejected before anything was written, e.g. a blank title."""


class NoteNotFound(NotesError):
    def __init__(self, note_id: str):
        super().__init__(f"Note {note_id!r} not found.")
        self.note_id = note_id


class PersistenceFailure(NotesError):
    """The durable store could not be read or written."""
