from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import declarative_base
from datetime import datetime, timezone

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)

# PUBLIC_INTERFACE
class Record(Base):
    """
    One entry of the flat string-keyed store.

    Keys follow the `user:<username>`, `session` and `notes:<username>`
    conventions. `revision` starts at 1 and is bumped on every write so
    writers can detect that someone else wrote in between.
    """
    __tablename__ = "records"

    key = Column(String(320), primary_key=True)
    value = Column(Text, nullable=False)
    revision = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
