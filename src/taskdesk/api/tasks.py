"""Task API routes.

Routes translate HTTP into TaskService calls. The authenticated identity
is resolved once per request by get_current_user and passed to the
service as an argument; access decisions live in the service.

- POST   /tasks        → create (201)
- GET    /tasks        → list with status/priority/dueDate/search filters
- GET    /tasks/{id}   → one task
- PUT    /tasks/{id}   → partial update of allow-listed fields
- DELETE /tasks/{id}   → creator-only delete
"""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.auth.dependencies import CurrentIdentity, get_current_user
from taskdesk.db.engine import get_db
from taskdesk.schemas.task import TaskCreate, TaskDeleted, TaskRead, TaskUpdate
from taskdesk.services.task_service import TaskFilters, TaskService

router = APIRouter(prefix="/tasks")


def _task_svc(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db)


@router.post("", response_model=TaskRead, status_code=201)
async def create_task(
    body: TaskCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Create a task owned by the caller, in 'open' status."""
    return await svc.create_task(
        identity,
        title=body.title,
        description=body.description,
        due_date=body.due_date,
        priority=body.priority,
        assigned_to=body.assigned_to,
    )


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    status: Optional[str] = Query(None, description="Filter by status"),
    priority: Optional[str] = Query(None, description="Filter by priority"),
    due_date: Optional[datetime] = Query(
        None, alias="dueDate", description="Only tasks due on or before this"
    ),
    search: Optional[str] = Query(
        None, description="Case-insensitive match on title or description; overrides other filters"
    ),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """List tasks the caller created or is assigned."""
    filters = TaskFilters(
        status=status or None,
        priority=priority or None,
        due_date=due_date,
        search=search or None,
    )
    return await svc.list_tasks(identity, filters)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Get a single task the caller created or is assigned."""
    return await svc.get_task(identity, task_id)


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: uuid.UUID,
    body: TaskUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Partially update a task. Only fields present in the body change."""
    return await svc.update_task(
        identity, task_id, body.model_dump(exclude_unset=True)
    )


@router.delete("/{task_id}", response_model=TaskDeleted)
async def delete_task(
    task_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Delete a task. Creator only."""
    await svc.delete_task(identity, task_id)
    return TaskDeleted()
