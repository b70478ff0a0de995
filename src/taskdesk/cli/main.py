"""TaskDesk CLI — run the server and talk to it.

Usage:
    taskdesk serve                                   # Run the API with uvicorn
    taskdesk init-db                                 # Create tables (dev)
    taskdesk register "Ada" ada@example.com secret   # Prints a token
    taskdesk login ada@example.com secret            # Prints a token
    taskdesk tasks --status open                     # Tasks you created or own
    taskdesk add "Title" "Description" 2026-11-01 high <assignee-id>
    taskdesk update <task-id> --status done
    taskdesk delete <task-id>

Task commands read the token from --token or TASKDESK_TOKEN.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("TASKDESK_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the TaskDesk backend."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when a loop is already running (e.g. CliRunner
    inside an async test).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _require_token(token: Optional[str]) -> str:
    tok = token or os.environ.get("TASKDESK_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set TASKDESK_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _check(r: httpx.Response) -> None:
    """Exit with the server's error message on a non-2xx response."""
    if r.is_success:
        return
    try:
        detail = r.json().get("detail", r.text)
    except ValueError:
        detail = r.text
    click.secho(f"Error {r.status_code}: {detail}", fg="red", err=True)
    sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _priority_color(priority: str) -> str:
    return {"low": "green", "medium": "yellow", "high": "red"}.get(priority, "white")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="taskdesk", prog_name="taskdesk")
def main():
    """TaskDesk — create, assign and track tasks."""


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind host (default from TASKDESK_HOST)")
@click.option("--port", type=int, default=None, help="Bind port (default from TASKDESK_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server with uvicorn."""
    import uvicorn

    from taskdesk.config import settings

    uvicorn.run(
        "taskdesk.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create all tables in TASKDESK_DATABASE_URL (use Alembic in production)."""
    from taskdesk.db.engine import create_tables, engine

    async def _impl():
        await create_tables()
        await engine.dispose()

    _run(_impl())
    click.secho("Tables created.", fg="green")


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


@main.command()
@click.argument("name")
@click.argument("email")
@click.argument("password")
def register(name: str, email: str, password: str):
    """Register a user and print the access token."""
    _run(_auth_impl("/api/auth/register", {"name": name, "email": email, "password": password}))


@main.command()
@click.argument("email")
@click.argument("password")
def login(email: str, password: str):
    """Log in and print the access token."""
    _run(_auth_impl("/api/auth/login", {"email": email, "password": password}))


async def _auth_impl(path: str, body: dict):
    async with _client() as c:
        r = await c.post(path, json=body)
        _check(r)
        data = r.json()
        user = data["user"]
        click.secho(f"{user['name']} <{user['email']}> ({user['id']})", fg="green", err=True)
        click.echo(data["token"])


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@main.command()
@click.option("--token", help="Bearer token (or set TASKDESK_TOKEN)")
@click.option("--status", "-s", "status_filter", help="Filter by status")
@click.option("--priority", "-p", help="Filter by priority")
@click.option("--due", help="Only tasks due on or before this date")
@click.option("--search", "-q", help="Search title/description (ignores other filters)")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def tasks(token: Optional[str], status_filter: Optional[str], priority: Optional[str],
          due: Optional[str], search: Optional[str], as_json: bool):
    """List tasks you created or are assigned."""
    _run(_tasks_impl(_require_token(token), status_filter, priority, due, search, as_json))


async def _tasks_impl(token: str, status_filter: Optional[str], priority: Optional[str],
                      due: Optional[str], search: Optional[str], as_json: bool):
    params: dict = {}
    if status_filter:
        params["status"] = status_filter
    if priority:
        params["priority"] = priority
    if due:
        params["dueDate"] = due
    if search:
        params["search"] = search

    async with _client(token) as c:
        r = await c.get("/api/tasks", params=params)
        _check(r)
        rows = r.json()

    if as_json:
        click.echo(_pretty_json(rows))
        return
    if not rows:
        click.echo("No tasks found.")
        return

    for row in rows:
        row["assignee"] = row["assignedTo"]["name"]
        row["due"] = row["dueDate"][:10]
    click.secho(f"Tasks ({len(rows)}):", bold=True)
    click.echo()
    _print_table(rows, [
        ("ID", "id", 36),
        ("Status", "status", 12),
        ("Priority", "priority", 8),
        ("Due", "due", 10),
        ("Assignee", "assignee", 16),
        ("Title", "title", 40),
    ])


@main.command()
@click.argument("title")
@click.argument("description")
@click.argument("due_date")
@click.argument("priority", type=click.Choice(["low", "medium", "high"]))
@click.argument("assigned_to")
@click.option("--token", help="Bearer token (or set TASKDESK_TOKEN)")
def add(title: str, description: str, due_date: str, priority: str,
        assigned_to: str, token: Optional[str]):
    """Create a task and assign it to a user id."""
    body = {
        "title": title,
        "description": description,
        "dueDate": due_date,
        "priority": priority,
        "assignedTo": assigned_to,
    }
    _run(_write_impl(_require_token(token), "POST", "/api/tasks", body))


@main.command()
@click.argument("task_id")
@click.option("--token", help="Bearer token (or set TASKDESK_TOKEN)")
@click.option("--title")
@click.option("--description")
@click.option("--due", "due_date")
@click.option("--priority", type=click.Choice(["low", "medium", "high"]))
@click.option("--status")
@click.option("--assign", "assigned_to", help="New assignee user id")
def update(task_id: str, token: Optional[str], title: Optional[str],
           description: Optional[str], due_date: Optional[str], priority: Optional[str],
           status: Optional[str], assigned_to: Optional[str]):
    """Change fields of a task. Only the options you pass are sent."""
    fields = {
        "title": title,
        "description": description,
        "dueDate": due_date,
        "priority": priority,
        "status": status,
        "assignedTo": assigned_to,
    }
    body = {k: v for k, v in fields.items() if v is not None}
    if not body:
        click.secho("Nothing to update.", fg="yellow", err=True)
        sys.exit(1)
    _run(_write_impl(_require_token(token), "PUT", f"/api/tasks/{task_id}", body))


@main.command()
@click.argument("task_id")
@click.option("--token", help="Bearer token (or set TASKDESK_TOKEN)")
def delete(task_id: str, token: Optional[str]):
    """Delete a task you created."""
    _run(_write_impl(_require_token(token), "DELETE", f"/api/tasks/{task_id}", None))


async def _write_impl(token: str, method: str, path: str, body: Optional[dict]):
    async with _client(token) as c:
        r = await c.request(method, path, json=body)
        _check(r)
        data = r.json()

    if "title" in data:
        priority = click.style(data["priority"], fg=_priority_color(data["priority"]))
        click.secho(f"Task {data['id']}", bold=True)
        click.echo(f"  Title:    {data['title']}")
        click.echo(f"  Status:   {data['status']}")
        click.echo(f"  Priority: {priority}")
        click.echo(f"  Due:      {data['dueDate']}")
        click.echo(f"  Assignee: {data['assignedTo']['name']} <{data['assignedTo']['email']}>")
    else:
        click.secho(data.get("message", "Done"), fg="green")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
