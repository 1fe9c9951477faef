"""Key-value persistence model: one row per stored setting or list."""
from datetime import datetime

from sqlmodel import Field, SQLModel


class StoredValue(SQLModel, table=True):
    """
    A JSON-encoded value under a string key.

    Keys in use: "goalKm" (bare number) and "history" (array of walk records).
    """

    key: str = Field(primary_key=True)
    value_json: str
    updated_at: datetime = Field(default_factory=datetime.utcnow)
