"""CLI entry point for the script architect."""

import logging
import typer
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import config
from .errors import PersistenceError
from .models import GUEST_USER_ID, BatchProgress, Notification, NotificationLevel, ScriptAnalysis

app = typer.Typer(
    name="script-architect",
    help="Turn short videos into AI-written, scene-by-scene scripts",
    no_args_is_help=True
)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"script-architect version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """Script Architect - analyze videos into scene-by-scene scripts using AI."""
    pass


USER_OPTION = typer.Option(
    None,
    "--user",
    "-u",
    help="Signed-in user ID (defaults to SCRIPTARCH_USER_ID, guest if unset)"
)

VERBOSE_OPTION = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Enable verbose logging"
)


def _echo_notification(notification: Notification) -> None:
    icon = "❌" if notification.level == NotificationLevel.ERROR else "✅"
    typer.echo(f"   {icon} {notification.message}")


def _make_progress_printer(verbose: bool):
    """Return a progress listener that prints item changes and, if verbose, details."""
    last_index = {"value": 0}

    def _print(progress: BatchProgress) -> None:
        if progress.total and progress.current_index != last_index["value"]:
            last_index["value"] = progress.current_index
            typer.echo(f"\n🎬 [{progress.current_index}/{progress.total}] {progress.current_item}")
        elif verbose and progress.detail:
            typer.echo(f"   … {progress.detail}")

    return _print


def _orchestrator(user: Optional[str], verbose: bool = False):
    """Build an orchestrator for ``user`` with the library loaded."""
    from .orchestrator import ScriptOrchestrator

    try:
        orchestrator = ScriptOrchestrator(user_id=user or config.user_id or GUEST_USER_ID)
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    orchestrator.subscribe_notifications(_echo_notification)
    orchestrator.subscribe_progress(_make_progress_printer(verbose))
    orchestrator.load_library()
    return orchestrator


def _retry_unsynced(orchestrator) -> None:
    """Give scripts whose save failed one more attempt before exiting."""
    pending = orchestrator.unsynced_ids
    if not pending:
        return

    typer.echo(f"\n🔁 Retrying {len(pending)} unsynced script(s)...")
    synced = orchestrator.retry_unsynced()
    typer.echo(f"   Synced: {synced}/{len(pending)}")


def _require_script(orchestrator, script_id: str) -> ScriptAnalysis:
    script = orchestrator.select(script_id)
    if script is None:
        typer.echo(f"❌ No script with id {script_id} for {orchestrator.user_id}")
        raise typer.Exit(1)
    return script


def _format_created(created_at: int) -> str:
    return datetime.fromtimestamp(created_at / 1000).strftime("%Y-%m-%d %H:%M")


@app.command()
def analyze(
    files: List[Path] = typer.Argument(
        ...,
        help="Video files to analyze, in order",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    user: Optional[str] = USER_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Analyze one or more video files into scripts, one after another."""
    setup_logging(verbose)
    orchestrator = _orchestrator(user, verbose)

    typer.echo(f"📼 Analyzing {len(files)} file(s) as {orchestrator.user_id}")
    report = orchestrator.analyze_files(files)
    _retry_unsynced(orchestrator)

    typer.echo(f"\n📊 Summary:")
    typer.echo(f"   Total: {report.total}")
    typer.echo(f"   Succeeded: {report.succeeded}")
    typer.echo(f"   Failed: {len(report.failures)}")
    for script in report.scripts:
        marker = "" if orchestrator.is_synced(script.id) else "  (not synced)"
        typer.echo(f"   • {script.id}: {script.title}{marker}")

    if report.total == 0 or report.all_failed:
        raise typer.Exit(1)


@app.command("analyze-url")
def analyze_url(
    url: str = typer.Argument(
        ...,
        help="TikTok link or direct video URL"
    ),
    user: Optional[str] = USER_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Download a video from a URL and analyze it into a script."""
    setup_logging(verbose)
    orchestrator = _orchestrator(user, verbose)

    script = orchestrator.analyze_url(url)
    if script is None:
        raise typer.Exit(1)
    _retry_unsynced(orchestrator)

    typer.echo(f"\n✅ {script.id}: {script.title} ({len(script.scenes)} scenes)")


@app.command("list")
def list_scripts(
    user: Optional[str] = USER_OPTION,
) -> None:
    """List saved scripts, newest first."""
    orchestrator = _orchestrator(user)
    scripts = orchestrator.saved_scripts

    if not scripts:
        typer.echo(f"No scripts saved for {orchestrator.user_id}")
        return

    typer.echo(f"📚 {len(scripts)} script(s) for {orchestrator.user_id}:")
    for script in scripts:
        tags = f"  [{', '.join(script.tags)}]" if script.tags else ""
        typer.echo(
            f"   {_format_created(script.created_at)}  {script.id}  "
            f"{script.title} ({len(script.scenes)} scenes){tags}"
        )


@app.command()
def show(
    script_id: str = typer.Argument(..., help="Script ID"),
    user: Optional[str] = USER_OPTION,
) -> None:
    """Show a script scene by scene."""
    orchestrator = _orchestrator(user)
    script = _require_script(orchestrator, script_id)

    typer.echo(f"📝 {script.title}")
    typer.echo(f"   Video: {script.video_name}")
    typer.echo(f"   Created: {_format_created(script.created_at)}")
    if script.tags:
        typer.echo(f"   Tags: {', '.join(script.tags)}")

    for i, scene in enumerate(script.scenes, start=1):
        typer.echo(f"\n   [{i}] {scene.label}")
        typer.echo(f"       🎥 {scene.visual_description}")
        typer.echo(f"       🎙️  {scene.audio_script}")


@app.command()
def tag(
    script_id: str = typer.Argument(..., help="Script ID"),
    add: List[str] = typer.Option([], "--add", "-a", help="Tag to add (repeatable)"),
    remove: List[str] = typer.Option([], "--remove", "-r", help="Tag to remove (repeatable)"),
    user: Optional[str] = USER_OPTION,
) -> None:
    """Add or remove product tags on a script."""
    orchestrator = _orchestrator(user)
    _require_script(orchestrator, script_id)

    for value in add:
        orchestrator.add_tag(value)
    for value in remove:
        orchestrator.remove_tag(value)
    _retry_unsynced(orchestrator)

    script = orchestrator.current_script
    typer.echo(f"🏷️  {script.id}: {', '.join(script.tags) or '(no tags)'}")


@app.command()
def optimize(
    script_id: str = typer.Argument(..., help="Script ID"),
    user: Optional[str] = USER_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Rewrite a script's spoken lines with AI, keeping timing and visuals."""
    setup_logging(verbose)
    orchestrator = _orchestrator(user, verbose)
    _require_script(orchestrator, script_id)

    typer.echo(f"✨ Optimizing {script_id}...")
    updated = orchestrator.optimize_current()
    if updated is None:
        raise typer.Exit(1)
    _retry_unsynced(orchestrator)

    for i, scene in enumerate(updated.scenes, start=1):
        typer.echo(f"   [{i}] {scene.audio_script}")


@app.command()
def delete(
    script_id: str = typer.Argument(..., help="Script ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    user: Optional[str] = USER_OPTION,
) -> None:
    """Delete a script permanently."""
    orchestrator = _orchestrator(user)
    _require_script(orchestrator, script_id)

    if not yes and not typer.confirm(f"Delete {script_id} permanently?"):
        raise typer.Exit(0)

    try:
        orchestrator.delete_script(script_id)
    except PersistenceError as e:
        typer.echo(f"   {e.message}")
        raise typer.Exit(1)


@app.command()
def export(
    script_id: str = typer.Argument(..., help="Script ID"),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write TSV to this file instead of stdout"
    ),
    language: Optional[str] = typer.Option(
        None,
        "--language",
        "-l",
        help="Header language (en or vi)"
    ),
    user: Optional[str] = USER_OPTION,
) -> None:
    """Export a script as tab-separated rows for spreadsheets."""
    from .export import save_tsv, script_to_tsv

    orchestrator = _orchestrator(user)
    script = _require_script(orchestrator, script_id)

    if output is None:
        typer.echo(script_to_tsv(script, language))
        return

    save_tsv(script, output, language)
    typer.echo(f"✅ Exported: {output}")


@app.command()
def migrate(
    user_id: str = typer.Argument(..., help="Signed-in user ID to receive guest scripts"),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Move all guest scripts into a signed-in user's cloud library."""
    setup_logging(verbose)
    if user_id == GUEST_USER_ID:
        typer.echo("❌ Choose a real user ID")
        raise typer.Exit(1)

    orchestrator = _orchestrator(GUEST_USER_ID, verbose)
    typer.echo(f"☁️  Migrating {len(orchestrator.saved_scripts)} guest script(s) to {user_id}")
    try:
        migrated = orchestrator.sign_in(user_id)
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    typer.echo(f"   Migrated: {migrated}")
    typer.echo(f"   Library now holds {len(orchestrator.saved_scripts)} script(s)")


if __name__ == "__main__":
    app()
