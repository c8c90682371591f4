"""Commit step: deal with uncommitted work before the version changes.

Declining to commit aborts the workflow. Publishing from a dirty tree
would tag a commit that doesn't match what went to the registry.
"""

from __future__ import annotations

import click

from .errors import UncommittedChangesRejected
from .models import PackageDescriptor, RepositoryStatus
from .shell import git, info, warn


def _validate_message(value: str) -> str:
    if not value.strip():
        raise click.BadParameter("Commit message cannot be empty.")
    return value.strip()


def handle_uncommitted(
    status: RepositoryStatus,
    *,
    message: str | None = None,
    assume_yes: bool = False,
) -> bool:
    """Offer to stage and commit everything when the tree is dirty.

    Args:
        status: Fresh status from check_status().
        message: Commit message to use (or pre-fill when prompting).
        assume_yes: Commit without asking; requires message.

    Returns:
        True if a commit was made, False if the tree was already clean.

    Raises:
        UncommittedChangesRejected: If the user declines, or if running
            unattended without a message.
    """
    if not status.has_uncommitted_changes:
        return False

    warn(f"Uncommitted changes detected on {status.current_branch}")

    if assume_yes:
        if not message or not message.strip():
            raise UncommittedChangesRejected("Pass --message to commit them unattended.")
        message = _validate_message(message)
    else:
        if not click.confirm("Do you want to commit the changes before publishing?", default=True):
            raise UncommittedChangesRejected()
        message = click.prompt(
            "Commit message",
            default=message or None,
            value_proc=_validate_message,
        )

    git("add", "-A")
    git("commit", "-m", message)
    info(f"Committed: {message}")
    return True


def commit_version_bump(descriptor: PackageDescriptor, version: str) -> None:
    """Stage the manifest and commit the version change."""
    git("add", str(descriptor.manifest_path))
    git("commit", "-m", f"chore: bump version to {version}")
    info(f"Committed version {version}")
