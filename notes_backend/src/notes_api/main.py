from fastapi import FastAPI, Depends, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
import logging
import threading

from notes_core.errors import (
    DuplicateUsername,
    InvalidCredentials,
    NoSession,
    NoteNotFound,
    NotesError,
    PersistenceFailure,
    UserNotFound,
    ValidationError,
)
from notes_core.query import SortOption, project
from notes_core.schemas import DEFAULT_CATEGORY, KNOWN_CATEGORIES, MAX_TITLE_LENGTH, Note
from notes_core.services import build_services

logger = logging.getLogger(__name__)


# Pydantic models for serialization and validation

class UserCredentials(BaseModel):
    username: str = Field(..., min_length=1, description="Case-sensitive username")
    password: str = Field(..., min_length=1)

class SessionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user: Optional[str]
    is_loading: bool = Field(..., alias="isLoading")

class NoteCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., max_length=MAX_TITLE_LENGTH)
    body: str = ""
    image_uri: Optional[str] = Field(default=None, alias="imageUri")
    category: Optional[str] = DEFAULT_CATEGORY

class NoteUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., max_length=MAX_TITLE_LENGTH)
    body: str = ""
    image_uri: Optional[str] = Field(default=None, alias="imageUri")
    category: Optional[str] = None
    is_pinned: Optional[bool] = Field(default=None, alias="isPinned")

# FastAPI app config
app = FastAPI(
    title="Personal Notes API",
    description="Local API over the personal note store: device session and per-user notes.",
    version="1.0.0",
    openapi_tags=[
        {"name": "Authentication", "description": "Sign up, sign in, sign out, session state"},
        {"name": "Notes", "description": "Create, update, view, delete, search and sort notes"}
    ]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # adjust for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_services = None
_services_lock = threading.Lock()

# SERVICES Dependency
def get_services():
    global _services
    with _services_lock:
        if _services is None:
            _services = build_services()
    return _services

ERROR_STATUS = {
    DuplicateUsername: 409,
    UserNotFound: 404,
    InvalidCredentials: 401,
    NoSession: 401,
    ValidationError: 422,
    NoteNotFound: 404,
    PersistenceFailure: 503,
}

@app.exception_handler(NotesError)
def notes_error_handler(request: Request, exc: NotesError):
    if isinstance(exc, PersistenceFailure):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=ERROR_STATUS.get(type(exc), 400),
        content={"detail": str(exc)},
    )

def note_out(note: Note):
    return note.to_record()

# Root Health Check
@app.get("/", summary="Health Check", tags=["General"])
def health_check():
    """Simple health check endpoint."""
    return {"message": "Healthy"}


#####################
# AUTH ENDPOINTS
#####################

# PUBLIC_INTERFACE
@app.post("/auth/register", response_model=SessionOut, summary="Create an account and sign in", tags=["Authentication"])
def register(creds: UserCredentials, services=Depends(get_services)):
    """
    Register a new account; the device is signed in as it afterwards.
    """
    services.sessions.sign_up(creds.username, creds.password)
    return session_state(services)

# PUBLIC_INTERFACE
@app.post("/auth/login", response_model=SessionOut, summary="Sign in", tags=["Authentication"])
def login(creds: UserCredentials, services=Depends(get_services)):
    """
    Sign in. Unknown usernames get 404, wrong passwords 401.
    """
    services.sessions.sign_in(creds.username, creds.password)
    return session_state(services)

# PUBLIC_INTERFACE
@app.post("/auth/logout", response_model=SessionOut, summary="Sign out", tags=["Authentication"])
def logout(services=Depends(get_services)):
    services.sessions.sign_out()
    return session_state(services)

# PUBLIC_INTERFACE
@app.get("/auth/session", response_model=SessionOut, summary="Current session", tags=["Authentication"])
def get_session(services=Depends(get_services)):
    """
    Who is signed in on this device, and whether the session is still being restored.
    """
    return session_state(services)

def session_state(services):
    return SessionOut(user=services.sessions.current_user, is_loading=services.sessions.is_loading)


#####################
# NOTES ENDPOINTS
#####################

# PUBLIC_INTERFACE
@app.get("/notes/", response_model=List[dict], summary="List the user's notes", tags=["Notes"])
def list_notes(
    q: str = Query("", description="Case-insensitive search over title, body and category"),
    sort: SortOption = Query(SortOption.UPDATED_NEWEST, description="Ordering within pinned and unpinned groups"),
    services=Depends(get_services),
):
    """
    Notes of the signed-in user, filtered and sorted for display. Pinned notes come first.
    """
    return [note_out(n) for n in project(services.notes.list(), q, sort)]

# PUBLIC_INTERFACE
@app.post("/notes/refresh", response_model=List[dict], summary="Reload notes from storage", tags=["Notes"])
def refresh_notes(services=Depends(get_services)):
    return [note_out(n) for n in services.notes.refresh()]

# PUBLIC_INTERFACE
@app.get("/notes/categories", response_model=List[str], summary="Suggested categories", tags=["Notes"])
def list_categories():
    """
    Categories offered by the note editor. Any non-empty category is accepted.
    """
    return list(KNOWN_CATEGORIES)

# PUBLIC_INTERFACE
@app.get("/notes/{note_id}", response_model=dict, summary="Get a single note", tags=["Notes"])
def get_note(note_id: str, services=Depends(get_services)):
    return note_out(services.notes.get(note_id))

# PUBLIC_INTERFACE
@app.post("/notes/", response_model=dict, status_code=201, summary="Create a new note", tags=["Notes"])
def create_note(note: NoteCreate, services=Depends(get_services)):
    """
    Create a new note for the signed-in user. New notes are never pinned.
    """
    created = services.notes.add(note.title, note.body, note.image_uri, note.category)
    return note_out(created)

# PUBLIC_INTERFACE
@app.put("/notes/{note_id}", response_model=dict, summary="Update a note", tags=["Notes"])
def update_note(note_id: str, note_update: NoteUpdate, services=Depends(get_services)):
    """
    Overwrites title, body and imageUri (omitting imageUri clears it).
    category and isPinned keep their value when omitted.
    """
    updated = services.notes.update(
        note_id,
        note_update.title,
        note_update.body,
        note_update.image_uri,
        note_update.category,
        note_update.is_pinned,
    )
    return note_out(updated)

# PUBLIC_INTERFACE
@app.delete("/notes/{note_id}", status_code=204, summary="Delete a note", tags=["Notes"])
def delete_note(note_id: str, services=Depends(get_services)):
    services.notes.delete(note_id)
    return Response(status_code=204)
