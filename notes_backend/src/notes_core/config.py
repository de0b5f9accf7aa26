"""
Runtime settings, read from the environment (and a `.env` file if present).
"""
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from typing import Literal

DIGEST_SCHEMES = ("sha256", "pbkdf2_sha256")


class Settings(BaseModel):
    database_url: str = Field(..., min_length=1, description="SQLAlchemy URL of the durable store")
    digest_scheme: Literal["sha256", "pbkdf2_sha256"] = "sha256"
    write_retries: int = Field(3, ge=0, description="Reload-and-retry attempts after a revision conflict")

# PUBLIC_INTERFACE
def load_settings():
    """Builds Settings from DATABASE_URL, DIGEST_SCHEME and NOTES_WRITE_RETRIES."""
    load_dotenv()
    return Settings(
        database_url=os.getenv("DATABASE_URL", ""),
        digest_scheme=os.getenv("DIGEST_SCHEME", "sha256"),
        write_retries=os.getenv("NOTES_WRITE_RETRIES", "3"),
    )
