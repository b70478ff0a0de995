"""TaskDesk: task-management backend.

Users register and log in, then create, list, update and delete tasks
that they assign to each other. Who can see or change a task is decided
by ownership: the creator and the assignee.
"""

__version__ = "0.1.0"
