"""
Filtering and ordering of a note snapshot for display. Nothing here mutates
its input.
"""
import unicodedata
from enum import Enum
from typing import Iterable, List

from notes_core.errors import ValidationError
from notes_core.schemas import Note


class SortOption(str, Enum):
    UPDATED_NEWEST = "updated_newest"
    UPDATED_OLDEST = "updated_oldest"
    TITLE_AZ = "title_az"
    TITLE_ZA = "title_za"


def collation_key(text: str) -> str:
    """Case- and accent-insensitive ordering key for titles."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def matches(note: Note, query: str) -> bool:
    needle = query.casefold()
    return any(
        needle in (field or "").casefold()
        for field in (note.title, note.body, note.category)
    )


# PUBLIC_INTERFACE
def project(notes: Iterable[Note], search_query: str = "",
            sort_option=SortOption.UPDATED_NEWEST) -> List[Note]:
    """
    Returns the notes matching `search_query`, pinned ones first, each group
    ordered by `sort_option`. Ties keep their input order.
    """
    try:
        option = SortOption(sort_option)
    except ValueError:
        raise ValidationError(f"Unknown sort option: {sort_option}") from None

    view = list(notes)
    if search_query:
        view = [note for note in view if matches(note, search_query)]

    if option is SortOption.UPDATED_NEWEST:
        view.sort(key=lambda note: note.updated_at, reverse=True)
    elif option is SortOption.UPDATED_OLDEST:
        view.sort(key=lambda note: note.updated_at)
    elif option is SortOption.TITLE_AZ:
        view.sort(key=lambda note: collation_key(note.title))
    else:
        view.sort(key=lambda note: collation_key(note.title), reverse=True)

    # Stable, so the order chosen above survives inside each group.
    view.sort(key=lambda note: not note.is_pinned)
    return view
