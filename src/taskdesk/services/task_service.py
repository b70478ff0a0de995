"""Task service — ownership-scoped task CRUD.

Every operation takes the requester's CurrentIdentity explicitly. The
access rules are:

  view / update  → creator OR assignee
  delete         → creator only

Listing ANDs the access scope with the caller's filters. A search term
replaces the status/priority/due-date filters rather than combining with
them: search is a free-text lookup across everything the user can see.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from sqlalchemy import ColumnElement, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskdesk.auth.dependencies import CurrentIdentity
from taskdesk.db.models import DEFAULT_TASK_STATUS, TASK_PRIORITIES, Task, User
from taskdesk.errors import ForbiddenError, NotFoundError, ValidationError

logger = structlog.get_logger()

REQUIRED_CREATE_FIELDS = ("title", "description", "due_date", "priority", "assigned_to")

# Fields a partial update may touch. created_by is deliberately absent.
UPDATABLE_FIELDS = ("title", "description", "due_date", "priority", "status", "assigned_to")

# Text fields that may not be blank once present.
_NON_BLANK_FIELDS = ("title", "description", "priority", "status")


@dataclass(frozen=True)
class TaskFilters:
    """Optional list criteria. Blank values are treated as not given."""

    status: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[datetime] = None  # inclusive upper bound
    search: Optional[str] = None


# ═══════════════════════════════════════════════════════════
# Access rules
# ═══════════════════════════════════════════════════════════


def access_scope(user_id: uuid.UUID) -> ColumnElement[bool]:
    """SQL condition selecting the tasks a user created or is assigned."""
    return or_(Task.created_by_id == user_id, Task.assigned_to_id == user_id)


def can_view(task: Task, identity: CurrentIdentity) -> bool:
    return identity.user_id in (task.created_by_id, task.assigned_to_id)


# Update rights are the same as view rights.
can_update = can_view


def can_delete(task: Task, identity: CurrentIdentity) -> bool:
    return task.created_by_id == identity.user_id


def filter_conditions(filters: TaskFilters) -> list[ColumnElement[bool]]:
    """Translate list filters into SQL conditions (search overrides the rest)."""
    if filters.search:
        return [
            or_(
                Task.title.icontains(filters.search, autoescape=True),
                Task.description.icontains(filters.search, autoescape=True),
            )
        ]

    conditions = []
    if filters.status:
        conditions.append(Task.status == filters.status)
    if filters.priority:
        conditions.append(Task.priority == filters.priority)
    if filters.due_date:
        conditions.append(Task.due_date <= as_utc(filters.due_date))
    return conditions


def as_utc(value: datetime) -> datetime:
    """Store and compare every due date in UTC; naive input is taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_priority(priority: str) -> None:
    if priority not in TASK_PRIORITIES:
        raise ValidationError(
            f"Invalid priority '{priority}'. Allowed: {', '.join(TASK_PRIORITIES)}"
        )


# ═══════════════════════════════════════════════════════════
# Service
# ═══════════════════════════════════════════════════════════


class TaskService:
    """Business logic for task CRUD, scoped by the requesting identity."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Create ──────────────────────────────────────────

    async def create_task(
        self,
        identity: CurrentIdentity,
        title: Optional[str],
        description: Optional[str],
        due_date: Optional[datetime],
        priority: Optional[str],
        assigned_to: Optional[uuid.UUID],
    ) -> Task:
        """Create a task owned by the requester, in 'open' status.

        Raises:
            ValidationError: if any field is missing/blank or priority is unknown
            NotFoundError: if assigned_to is not an existing user
        """
        values = {
            "title": title,
            "description": description,
            "due_date": due_date,
            "priority": priority,
            "assigned_to": assigned_to,
        }
        missing = [f for f in REQUIRED_CREATE_FIELDS if _is_blank(values[f])]
        if missing:
            raise ValidationError(
                f"All fields are required. Missing: {', '.join(missing)}"
            )
        _check_priority(priority)
        await self._require_user(assigned_to)

        task = Task(
            title=title,
            description=description,
            due_date=as_utc(due_date),
            priority=priority,
            status=DEFAULT_TASK_STATUS,
            assigned_to_id=assigned_to,
            created_by_id=identity.user_id,
        )
        self.db.add(task)
        await self.db.commit()

        logger.info(
            "task.created",
            task_id=str(task.id),
            created_by=str(identity.user_id),
            assigned_to=str(assigned_to),
        )
        return await self._load(task.id)

    # ─── Read ────────────────────────────────────────────

    async def list_tasks(
        self,
        identity: CurrentIdentity,
        filters: Optional[TaskFilters] = None,
    ) -> list[Task]:
        """List tasks the requester created or is assigned, in creation order."""
        filters = filters or TaskFilters()
        query = (
            select(Task)
            .options(selectinload(Task.assigned_to))
            .where(access_scope(identity.user_id), *filter_conditions(filters))
            .order_by(Task.created_at, Task.id)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_task(self, identity: CurrentIdentity, task_id: uuid.UUID) -> Task:
        task = await self._load(task_id)
        if not task:
            raise NotFoundError("Task not found")
        if not can_view(task, identity):
            raise ForbiddenError("Not authorized")
        return task

    # ─── Update ──────────────────────────────────────────

    async def update_task(
        self,
        identity: CurrentIdentity,
        task_id: uuid.UUID,
        patch: dict[str, Any],
    ) -> Task:
        """Apply the allow-listed fields present in patch.

        Presence decides: a key in the patch is applied, a missing key is
        left alone. Present-but-null (or blank text) is rejected instead of
        being silently skipped. Unknown keys are ignored.

        Raises:
            NotFoundError: task missing, or new assignee does not exist
            ForbiddenError: requester is neither creator nor assignee
            ValidationError: a present field is null/blank or priority is unknown
        """
        task = await self._load(task_id)
        if not task:
            raise NotFoundError("Task not found")
        if not can_update(task, identity):
            raise ForbiddenError("Not authorized")

        changes = {k: v for k, v in patch.items() if k in UPDATABLE_FIELDS}
        for field, value in changes.items():
            if value is None or (field in _NON_BLANK_FIELDS and _is_blank(value)):
                raise ValidationError(f"Field '{field}' cannot be empty")
        if "priority" in changes:
            _check_priority(changes["priority"])
        if "assigned_to" in changes:
            await self._require_user(changes["assigned_to"])

        for field, value in changes.items():
            if field == "assigned_to":
                task.assigned_to_id = value
            elif field == "due_date":
                task.due_date = as_utc(value)
            else:
                setattr(task, field, value)

        if changes:
            await self.db.commit()
            logger.info(
                "task.updated",
                task_id=str(task_id),
                actor=str(identity.user_id),
                fields=sorted(changes),
            )
        return await self._load(task_id)

    # ─── Delete ──────────────────────────────────────────

    async def delete_task(self, identity: CurrentIdentity, task_id: uuid.UUID) -> None:
        """Delete a task. Only its creator may do this."""
        task = await self.db.get(Task, task_id)
        if not task:
            raise NotFoundError("Task not found")
        if not can_delete(task, identity):
            raise ForbiddenError("Only creator can delete")

        await self.db.delete(task)
        await self.db.commit()
        logger.info("task.deleted", task_id=str(task_id), actor=str(identity.user_id))

    # ─── Helpers ─────────────────────────────────────────

    async def _load(self, task_id: uuid.UUID) -> Optional[Task]:
        """Fetch a task with its assignee, refreshing any cached instance."""
        result = await self.db.execute(
            select(Task)
            .options(selectinload(Task.assigned_to))
            .where(Task.id == task_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def _require_user(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("Assigned user not found")
        return user
