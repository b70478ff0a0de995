"""Pydantic schemas for users as they appear in responses.

The password hash never leaves the service layer: neither schema has it.
"""

import uuid
from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel
from pydantic.alias_generators import to_camel

CAMEL_CONFIG = {
    "from_attributes": True,
    "alias_generator": to_camel,
    "populate_by_name": True,
}


def _assume_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDateTime = Annotated[datetime, AfterValidator(_assume_utc)]


class UserRead(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    role: str
    created_at: UtcDateTime

    model_config = CAMEL_CONFIG


class UserSummary(BaseModel):
    """Assignee as embedded in a task: just enough to show who it is."""
    id: uuid.UUID
    name: str
    email: str

    model_config = CAMEL_CONFIG
