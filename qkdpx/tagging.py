"""Tag and push step.

create_and_push_tag() walks a small state machine:

    check remote → check local tag → create tag → push
                                                   │ remote tag collision
                                                   ▼
                                   delete remote tag → push (once more)

Nothing is mutated before the remote and local-tag checks pass, so a
missing remote or a declined overwrite leaves git untouched.
"""

from __future__ import annotations

import click

from .errors import CommandFailed, NoRemoteConfigured, PushFailed, RemoteTagExists, TagExists
from .repo import has_remote, tag_exists
from .shell import git, info, warn


def tag_name(version: str) -> str:
    return f"v{version}"


def _decide(question: str, overwrite: bool | None) -> bool:
    """Use the caller's decision if given, otherwise ask (default no)."""
    if overwrite is not None:
        return overwrite
    return click.confirm(question, default=False)


def _is_remote_tag_collision(output: str, tag: str) -> bool:
    text = output.lower()
    if "already exists" in text:
        return True
    return "[rejected]" in text and tag.lower() in text


def push(tag: str, remote: str = "origin") -> None:
    """Push the current branch and the tag.

    Raises:
        PushFailed: With git's output, on any push error.
    """
    try:
        git("push", remote, "HEAD")
        git("push", remote, f"refs/tags/{tag}")
    except CommandFailed as exc:
        raise PushFailed(exc.output or str(exc)) from exc


def create_and_push_tag(
    version: str,
    *,
    overwrite: bool | None = None,
    remote: str = "origin",
) -> str:
    """Create tag v<version> and push it with the current branch.

    Args:
        version: Version being released.
        overwrite: None asks on collisions, True replaces existing tags,
                   False refuses.
        remote: Remote to push to.

    Returns:
        The tag name.

    Raises:
        NoRemoteConfigured: If the remote doesn't exist.
        TagExists: If the tag exists locally and overwrite is declined.
        RemoteTagExists: If the tag exists on the remote and replacing
            it is declined.
        PushFailed: On any other push error, or if the retry fails.
    """
    tag = tag_name(version)

    if not has_remote(remote):
        raise NoRemoteConfigured(remote)

    if tag_exists(tag):
        warn(f"Tag {tag} already exists")
        if not _decide(f"Tag {tag} already exists. Overwrite it?", overwrite):
            raise TagExists(tag)
        info(f"Removing existing tag {tag}...")
        git("tag", "-d", tag)

    info(f"Creating tag {tag}...")
    git("tag", tag)

    try:
        push(tag, remote)
    except PushFailed as exc:
        if not _is_remote_tag_collision(exc.output, tag):
            raise
        warn(f"Tag {tag} already exists on {remote}")
        if not _decide(f"Delete {tag} on {remote} and push again?", overwrite):
            raise RemoteTagExists(tag, remote) from exc
        info(f"Removing {tag} from {remote}...")
        git("push", remote, f":refs/tags/{tag}")
        push(tag, remote)

    info(f"Pushed {tag} to {remote}")
    return tag
