"""CLI entry point for codechat."""

import asyncio
import logging
import os
from pathlib import Path

import click
import uvicorn

from .backends import get_store
from .core import LocalFile
from .errors import NotFoundError, PersistenceError
from .sessions import submit


@click.group()
@click.option("--db", "db_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Session database (defaults to $CODECHAT_DB_PATH or the data dir).")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, db_path: Path | None, verbose: bool):
    """Chat-to-editor sessions seeded from prompts, files and GitHub repositories."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path


@main.command()
@click.option("--port", default=8080, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
@click.pass_context
def serve(ctx: click.Context, port: int, host: str):
    """Start the web API."""
    if ctx.obj["db_path"] is not None:
        os.environ["CODECHAT_DB_PATH"] = str(ctx.obj["db_path"])
    click.echo(f"Starting codechat on http://{host}:{port}")
    uvicorn.run("codechat.server:app", host=host, port=port, reload=False)


@main.command("init-db")
@click.pass_context
def init_db(ctx: click.Context):
    """Create the session database if it does not exist."""
    store = get_store(ctx.obj["db_path"])
    click.echo(f"Initialized {store.path}")


@main.command()
@click.argument("text", default="")
@click.option("--file", "files", multiple=True, type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Attach a local file (only the first is used as code).")
@click.option("--repo", default=None, help="GitHub repository URL to seed the session from.")
@click.pass_context
def new(ctx: click.Context, text: str, files: tuple[Path, ...], repo: str | None):
    """Create a session from TEXT, attached files and/or a repository."""
    local_files = [LocalFile(name=p.name, size=p.stat().st_size, data=p.read_bytes()) for p in files]
    store = get_store(ctx.obj["db_path"])
    try:
        session_id = asyncio.run(submit(store, text, local_files, repo))
        if session_id is None:
            raise click.UsageError("Nothing to submit: give TEXT, --file or --repo.")
        session = store.get_session(session_id)
    except PersistenceError as e:
        raise click.ClickException(str(e))

    click.echo(f"{session.id}\t{session.language}\t{session.title}")


@main.command("list")
@click.pass_context
def list_sessions(ctx: click.Context):
    """List sessions, most recently updated first."""
    for session in get_store(ctx.obj["db_path"]).list_sessions():
        updated = session.updated_at.strftime("%Y-%m-%d %H:%M")
        click.echo(f"{session.id}\t{updated}\t{session.language}\t{session.title or 'Untitled Session'}")


@main.command()
@click.argument("session_id")
@click.pass_context
def delete(ctx: click.Context, session_id: str):
    """Delete a session and its messages."""
    try:
        get_store(ctx.obj["db_path"]).delete_session(session_id)
    except NotFoundError:
        raise click.ClickException(f"Session not found: {session_id}")
    click.echo(f"Deleted {session_id}")
