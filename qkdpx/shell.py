"""Process runners and terminal output for the publish workflow.

git() captures what git prints so callers can inspect it; run() hands the
terminal to npm so build and publish output appear live. Either one turns
a non-zero exit into CommandFailed.
"""

from __future__ import annotations

import subprocess
from collections.abc import Iterable, Sequence
from pathlib import Path

import click

from .errors import CommandFailed

REDACTED = "***"


def _redact(args: Sequence[str], secrets: Iterable[str]) -> list[str]:
    shown = list(args)
    for secret in secrets:
        if secret:
            shown = [a.replace(secret, REDACTED) for a in shown]
    return shown


def git(*args: str, check: bool = True, cwd: Path | None = None) -> str:
    """Call git with captured output.

    Args:
        *args: git subcommand and flags, e.g. "tag", "--list", "v1.0.0".
        check: Raise CommandFailed when git exits non-zero. Pass False when
               an empty or failing answer is itself the result.
        cwd: Working tree to operate on; the current directory if omitted.

    Returns:
        git's stdout without surrounding whitespace.
    """
    cmd = ["git", *args]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, cwd=cwd)
    except FileNotFoundError as exc:
        raise CommandFailed(cmd, 127, "git: command not found") from exc
    if check and result.returncode != 0:
        raise CommandFailed(cmd, result.returncode, result.stderr or result.stdout)
    return result.stdout.strip()


def git_ok(*args: str, cwd: Path | None = None) -> bool:
    """Run a git command quietly and report whether it exited 0."""
    try:
        result = subprocess.run(["git", *args], capture_output=True, cwd=cwd)
    except FileNotFoundError:
        return False
    return result.returncode == 0


def run(
    *args: str,
    check: bool = True,
    cwd: Path | None = None,
    secrets: Iterable[str] = (),
) -> subprocess.CompletedProcess[bytes]:
    """Call an external tool (npm, usually) attached to the terminal.

    Nothing is captured, so npm's progress and prompts (npm login) reach
    the user directly.

    Args:
        *args: Program and its arguments, e.g. "npm", "publish".
        check: Turn a non-zero exit into CommandFailed.
        cwd: Package directory; the current directory if omitted.
        secrets: Values (auth tokens) replaced by *** in the command shown
                 on failure.

    Returns:
        The CompletedProcess; with check=False its returncode may be non-zero.
    """
    shown = _redact(args, list(secrets))
    try:
        result = subprocess.run(args, cwd=cwd)
    except FileNotFoundError as exc:
        raise CommandFailed(shown, 127, f"{args[0]}: command not found") from exc
    if check and result.returncode != 0:
        raise CommandFailed(shown, result.returncode)
    return result


def step(msg: str) -> None:
    """Announce the next workflow stage between two horizontal rules."""
    click.echo(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def info(msg: str) -> None:
    click.secho(f"  {msg}", fg="blue")


def success(msg: str) -> None:
    click.secho(f"✓ {msg}", fg="green")


def warn(msg: str) -> None:
    """Print a warning to stderr. Use for problems that don't halt the run."""
    click.secho(f"⚠ {msg}", fg="yellow", err=True)
