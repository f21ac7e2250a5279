"""Backup command implementation.

Creates, inspects, restores and prunes file backups under ~/.merlin/backups.
"""

import glob
import logging
import os
from typing import Annotated

import typer

from merlin.backup.index import record_backup
from merlin.backup.store import BackupError, BackupManifest, BackupNotFoundError, BackupStore
from merlin.cli.types import is_dry_run, run_auto_commit
from merlin.core.declarations import ParseError
from merlin.core.model import load_model
from merlin.core.repo import DotfilesRepo, RepoError
from merlin.utils.formatting import (
    console,
    create_table,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from merlin.vcs.git import backup_commit_message

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Manage file backups.",
    no_args_is_help=True,
)

YesOption = Annotated[
    bool,
    typer.Option(
        "--yes",
        "-y",
        help="Skip confirmation prompt and proceed.",
    ),
]


def _format_size(size: int) -> str:
    """Format a byte count for display."""
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


def _expand_patterns(paths: list[str]) -> list[str]:
    """Expand ~ and glob patterns; a pattern matching nothing is kept as given."""
    expanded: list[str] = []
    for path in paths:
        matches = sorted(glob.glob(os.path.expanduser(path)))
        expanded.extend(matches or [path])
    return expanded


def _load_manifest(store: BackupStore, backup_id: str) -> BackupManifest:
    try:
        return store.get(backup_id)
    except BackupNotFoundError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def _record_in_repo(manifest: BackupManifest, no_auto_commit: bool) -> None:
    """Record a backup in the dotfiles repository index, if there is one."""
    try:
        repo = DotfilesRepo.discover()
        model = load_model(repo)
    except (RepoError, ParseError) as e:
        logger.debug("Backup %s not recorded in a repository: %s", manifest.id, e)
        return

    try:
        relative = record_backup(repo.root, manifest)
    except OSError as e:
        print_warning(f"Could not record backup in {repo.root}: {e}")
        return

    run_auto_commit(
        model,
        [relative],
        backup_commit_message(manifest.id, len(manifest.files)),
        no_auto_commit=no_auto_commit,
    )


@app.command()
def create(
    paths: Annotated[
        list[str],
        typer.Argument(help="Files to back up."),
    ],
    reason: Annotated[
        str,
        typer.Option(
            "--reason",
            "-r",
            help="Why the backup is taken.",
        ),
    ] = "Manual backup",
    no_auto_commit: Annotated[
        bool,
        typer.Option(
            "--no-auto-commit",
            help="Do not commit the backup index.",
        ),
    ] = False,
) -> None:
    """Back up files.

    Glob patterns are expanded (quote them to keep the shell from doing
    it). Missing paths and directories are skipped. When run inside a dotfiles
    repository the backup is also recorded in .merlin-meta/backups.json.

    Examples:
        merlin backup create ~/.zshrc ~/.gitconfig
        merlin backup create ~/.zshrc --reason "before experiment"
        merlin backup create "~/.config/*.toml"
    """
    store = BackupStore()
    try:
        manifest = store.create(_expand_patterns(paths), reason)
    except BackupError as e:
        print_error(f"Backup failed: {e}")
        raise typer.Exit(code=1) from e

    if not manifest.files:
        print_warning("None of the given paths exist; the backup is empty.")
    print_success(f"Created backup {manifest.id} ({len(manifest.files)} file(s))")
    _record_in_repo(manifest, no_auto_commit)


@app.command("list")
def list_backups() -> None:
    """List backups, newest first."""
    backups = BackupStore().list_backups()
    if not backups:
        print_info("No backups found.")
        return

    table = create_table("Backups", "ID", "Created", "Files", "Size", "Reason")
    for manifest in backups:
        table.add_row(
            manifest.id,
            manifest.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            str(len(manifest.files)),
            _format_size(manifest.total_size),
            f"[muted]{manifest.reason}[/muted]",
        )
    console.print(table)


@app.command()
def show(
    backup_id: Annotated[
        str,
        typer.Argument(help="Backup id."),
    ],
) -> None:
    """Show the files captured in a backup."""
    manifest = _load_manifest(BackupStore(), backup_id)

    console.print(f"[header]Backup {manifest.id}[/header]")
    console.print(f"Created: {manifest.timestamp.strftime('%Y-%m-%d %H:%M:%S')}")
    console.print(f"Reason:  {manifest.reason}")
    console.print(f"Size:    {_format_size(manifest.total_size)}")

    if not manifest.files:
        print_info("This backup contains no files.")
        return

    table = create_table("Files", "Original Path", "Size", "SHA-256")
    for entry in manifest.files:
        table.add_row(entry.original_path, _format_size(entry.size), entry.checksum[:12])
    console.print(table)


@app.command()
def restore(
    ctx: typer.Context,
    backup_id: Annotated[
        str,
        typer.Argument(help="Backup id."),
    ],
    files: Annotated[
        list[str] | None,
        typer.Option(
            "--file",
            "-f",
            help="Only restore this original path (repeatable).",
        ),
    ] = None,
) -> None:
    """Restore files from a backup.

    Every file is verified against its recorded size and checksum before
    anything is written; a corrupt backup restores nothing.

    Examples:
        merlin backup restore 20260101_120000
        merlin backup restore 20260101_120000 --file ~/.zshrc
    """
    store = BackupStore()
    manifest = _load_manifest(store, backup_id)

    if is_dry_run(ctx):
        wanted = {os.path.abspath(os.path.expanduser(f)) for f in files} if files else None
        for entry in manifest.files:
            if wanted is None or entry.original_path in wanted:
                console.print(f"  Would restore: {entry.original_path}")
        return

    try:
        restored = store.restore(backup_id, only=files)
    except BackupError as e:
        print_error(f"Restore failed: {e}")
        raise typer.Exit(code=1) from e

    if not restored:
        print_warning("No matching files to restore.")
        return
    for path in restored:
        console.print(f"  [success]✓[/success] {path}")
    print_success(f"Restored {len(restored)} file(s) from {backup_id}")


@app.command()
def delete(
    backup_id: Annotated[
        str,
        typer.Argument(help="Backup id."),
    ],
    yes: YesOption = False,
) -> None:
    """Delete a backup."""
    store = BackupStore()
    _load_manifest(store, backup_id)

    if not yes and not typer.confirm(f"Delete backup {backup_id}?", default=False):
        print_info("Aborted.")
        return

    try:
        store.delete(backup_id)
    except BackupError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Deleted backup {backup_id}")


@app.command()
def clean(
    ctx: typer.Context,
    keep: Annotated[
        int | None,
        typer.Option(
            "--keep",
            "-k",
            min=0,
            help="Keep this many newest backups.",
        ),
    ] = None,
    older_than: Annotated[
        int | None,
        typer.Option(
            "--older-than",
            min=0,
            help="Delete backups older than this many days.",
        ),
    ] = None,
    yes: YesOption = False,
) -> None:
    """Delete old backups.

    A backup is deleted if either rule selects it.

    Examples:
        merlin backup clean --keep 10
        merlin backup clean --older-than 30 --yes
    """
    if keep is None and older_than is None:
        print_error("Specify --keep and/or --older-than.")
        raise typer.Exit(code=1)

    store = BackupStore()
    candidates = store.select_for_clean(keep=keep, older_than_days=older_than)
    if not candidates:
        print_info("No backups to clean.")
        return

    for manifest in candidates:
        console.print(f"  {manifest.id}  [muted]{manifest.reason}[/muted]")

    if is_dry_run(ctx):
        print_info(f"Would delete {len(candidates)} backup(s).")
        return

    if not yes and not typer.confirm(f"Delete {len(candidates)} backup(s)?", default=False):
        print_info("Aborted.")
        return

    deleted = store.clean(keep=keep, older_than_days=older_than)
    print_success(f"Deleted {len(deleted)} backup(s).")
    if len(deleted) < len(candidates):
        raise typer.Exit(code=1)
