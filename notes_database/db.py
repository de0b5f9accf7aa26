import os
from functools import lru_cache
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from dotenv import load_dotenv

# PUBLIC_INTERFACE
def get_database_url():
    """
    Retrieves the database URL from the environment variable DATABASE_URL.
    """
    load_dotenv()
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        raise ValueError("DATABASE_URL environment variable not set.")
    return db_url

# PUBLIC_INTERFACE
def make_session_factory(engine):
    """Builds the session factory used by the key-value store."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

@lru_cache(maxsize=None)
def get_engine(db_url=None):
    return create_engine(db_url or get_database_url(), future=True, echo=False)

def get_session_factory():
    return make_session_factory(get_engine())
