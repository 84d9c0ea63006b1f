from __future__ import annotations

from pathlib import Path
from typing import Any, NoReturn, Optional, Sequence

import typer

from . import config
from .errors import ZiphubError
from .models import VerifiedAccountCreate
from .observability import setup_logging
from .services import content, identity, moderation, social
from .storage import CollectionStore

app = typer.Typer(help="ZIPHUB moderation console")


def _render_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    if not headers:
        return ""

    widths = [len(header) for header in headers]
    for row in rows:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(cell))

    def build_border() -> str:
        segments = ["-" * (width + 2) for width in widths]
        return "+".join([""] + segments + [""])

    def build_row(cells: Sequence[str]) -> str:
        content = "|".join(f" {cells[idx].ljust(widths[idx])} " for idx in range(len(headers)))
        return f"|{content}|"

    border = build_border()
    body = [build_row(row) for row in rows]
    return "\n".join([border, build_row(headers), border, *body, border])


def _stringify(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def _store(ctx: typer.Context) -> CollectionStore:
    return ctx.obj


def _fail(err: ZiphubError) -> NoReturn:
    typer.echo(f"{err.kind}: {err.message}", err=True)
    raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", help="Directory holding the collection files."),
) -> None:
    setup_logging(config.LOG_LEVEL, config.LOG_FORMAT)
    ctx.obj = CollectionStore(data_dir or config.DATA_DIR)


@app.command("bootstrap")
def bootstrap(ctx: typer.Context) -> None:
    """Create or repair the creator account."""

    creator = identity.bootstrap_creator(_store(ctx))
    typer.echo(f"Creator {creator.username} ({creator.id}) ready.")


@app.command("stats")
def show_stats(ctx: typer.Context) -> None:
    """Show record totals."""

    totals = moderation.stats(_store(ctx))
    rows = [[key, _stringify(value)] for key, value in totals.items()]
    typer.echo(_render_table(["Collection", "Count"], rows))


@app.command("reports")
def show_reports(ctx: typer.Context) -> None:
    """List abuse reports."""

    records = content.list_reports(_store(ctx))
    if not records:
        typer.echo("(none)")
        return
    rows = [[r.id, r.file_id, r.reporter_id, r.reason] for r in records]
    typer.echo(_render_table(["Report", "File", "Reporter", "Reason"], rows))


@app.command("developers")
def show_developers(ctx: typer.Context) -> None:
    """List developer profiles with follower counts."""

    store = _store(ctx)
    rows = [
        [
            profile.id,
            profile.username,
            _stringify(profile.approved),
            _stringify(profile.verified),
            _stringify(social.follower_count(store, profile.id)),
        ]
        for profile in social.list_developers(store)
    ]
    typer.echo(_render_table(["Id", "Username", "Approved", "Verified", "Followers"], rows))


@app.command("approve")
def approve(ctx: typer.Context, developer_id: str) -> None:
    """Approve a pending developer."""

    try:
        account = moderation.approve_developer(_store(ctx), developer_id)
    except ZiphubError as err:
        _fail(err)
    typer.echo(f"Approved {account.username}.")


@app.command("verify")
def verify(ctx: typer.Context, developer_id: str) -> None:
    """Grant a verification badge."""

    try:
        social.admin_verify(_store(ctx), developer_id)
    except ZiphubError as err:
        _fail(err)
    typer.echo(f"Verified {developer_id}.")


@app.command("create-verified")
def create_verified(
    ctx: typer.Context,
    username: str,
    password: str = typer.Option(..., prompt=True, hide_input=True),
    boost: int = typer.Option(config.DEFAULT_CREATED_FOLLOWER_BOOST, min=0, help="Followers added on top of real follows."),
) -> None:
    """Create an approved, verified developer account."""

    payload = VerifiedAccountCreate(username=username, password=password, followers_boost=boost)
    try:
        account = moderation.create_verified_account(_store(ctx), payload)
    except ZiphubError as err:
        _fail(err)
    typer.echo(f"Created {account.username} ({account.id}).")


@app.command("delete-file")
def delete_file(ctx: typer.Context, file_id: str) -> None:
    """Delete a file with its likes, comments and reports."""

    try:
        removed = content.delete_file(_store(ctx), file_id)
    except ZiphubError as err:
        _fail(err)
    rows = [[key, _stringify(value)] for key, value in removed.items()]
    typer.echo(_render_table(["Collection", "Removed"], rows))


@app.command("sweep")
def sweep(ctx: typer.Context) -> None:
    """Remove likes, comments and reports left behind by deleted files."""

    removed = content.sweep_orphans(_store(ctx))
    rows = [[key, _stringify(value)] for key, value in removed.items()]
    typer.echo(_render_table(["Collection", "Removed"], rows))


if __name__ == "__main__":
    app()
