"""Pydantic schemas for tasks.

Separate schemas for create/update/read:
- TaskCreate: what you POST. Every field is declared optional so that a
  missing field reaches the service and comes back as a 400, the same
  error a blank one gets.
- TaskUpdate: what you PUT. Only fields the client actually sent are
  applied (model_dump(exclude_unset=True)).
- TaskRead: what the API returns, with the assignee expanded.

Wire names are camelCase (dueDate, assignedTo); snake_case is accepted
on input as well.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from taskdesk.db.models import STATUS_MAX_LENGTH, TITLE_MAX_LENGTH
from taskdesk.schemas.user import CAMEL_CONFIG, UserSummary, UtcDateTime


class TaskCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[str] = None
    assigned_to: Optional[uuid.UUID] = None

    model_config = CAMEL_CONFIG


class TaskUpdate(BaseModel):
    """Partial update — only fields present in the request body are applied."""
    title: Optional[str] = Field(None, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[str] = None
    status: Optional[str] = Field(None, max_length=STATUS_MAX_LENGTH)
    assigned_to: Optional[uuid.UUID] = None

    model_config = CAMEL_CONFIG


class TaskRead(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    due_date: UtcDateTime
    priority: str
    status: str
    assigned_to: UserSummary
    created_by_id: uuid.UUID = Field(alias="createdBy")
    created_at: UtcDateTime
    updated_at: Optional[UtcDateTime] = None

    model_config = CAMEL_CONFIG


class TaskDeleted(BaseModel):
    message: str = "Task deleted"
