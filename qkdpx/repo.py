"""Repository status probe and small git queries."""

from __future__ import annotations

from .errors import CommandFailed, NotARepository, StatusCheckFailed
from .models import RepositoryStatus
from .shell import git, git_ok


def is_git_repository() -> bool:
    return git_ok("rev-parse", "--git-dir")


def check_status() -> RepositoryStatus:
    """Report the current branch and whether the working tree is clean.

    Raises:
        NotARepository: If the working directory is not under git.
        StatusCheckFailed: If git cannot report branch or status.
    """
    if not is_git_repository():
        raise NotARepository()

    try:
        branch = git("rev-parse", "--abbrev-ref", "HEAD")
        porcelain = git("status", "--porcelain")
    except CommandFailed as exc:
        raise StatusCheckFailed(exc.output or str(exc.returncode)) from exc

    is_clean = porcelain == ""
    return RepositoryStatus(
        has_uncommitted_changes=not is_clean,
        current_branch=branch,
        is_clean=is_clean,
    )


def tag_exists(tag: str) -> bool:
    """Check whether a local tag with exactly this name exists."""
    return git("tag", "--list", tag, check=False) == tag


def has_remote(name: str = "origin") -> bool:
    return git_ok("remote", "get-url", name)
