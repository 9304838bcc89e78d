from datetime import UTC, datetime

from sqlmodel import SQLModel


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored"""
    return datetime.now(UTC).replace(tzinfo=None)


class BaseModel(SQLModel):
    pass
