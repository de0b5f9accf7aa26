"""
Note record and its serialized form.

A user's collection is stored as one JSON array under `notes:<username>`,
with the field names `id, title, body, imageUri, category, isPinned,
createdAt, updatedAt`. Timestamps are integer epoch milliseconds.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

MAX_TITLE_LENGTH = 100
DEFAULT_CATEGORY = "Personal"
KNOWN_CATEGORIES = ("Work", "Personal", "Ideas", "Todo")


# PUBLIC_INTERFACE
class Note(BaseModel):
    """
    A single note owned by one user.

    Instances are immutable; the repository produces changed copies.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    title: str
    body: str = ""
    image_uri: Optional[str] = Field(default=None, alias="imageUri")
    category: Optional[str] = None
    is_pinned: bool = Field(default=False, alias="isPinned")
    created_at: int = Field(..., alias="createdAt")
    updated_at: int = Field(..., alias="updatedAt")

    def to_record(self) -> dict:
        """Serialized form; optional fields that are absent stay absent."""
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)


_collection_adapter = TypeAdapter(List[Note])


def dump_notes(notes) -> str:
    return _collection_adapter.dump_json(
        list(notes), by_alias=True, exclude_unset=True, exclude_none=True
    ).decode("utf-8")


def load_notes(raw: Optional[str]) -> List[Note]:
    if not raw:
        return []
    return _collection_adapter.validate_json(raw)
