"""Error types for qkdpx.

Every failure the user should see derives from QkdpxError, which is a
click.ClickException: left unhandled it prints "Error: <message>" and
exits with code 1. Cancelled is separate because a user saying "no" at a
final confirmation is not a failure and exits with code 0.
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence

import click


class QkdpxError(click.ClickException):
    """Base class for all unrecovered qkdpx failures."""


class CommandFailed(QkdpxError):
    """An external command exited non-zero or could not be started.

    Attributes:
        command: The command as displayed (secrets already redacted).
        returncode: Process exit code (127 when the executable is missing).
        output: Captured stderr/stdout, empty when output was streamed.
    """

    def __init__(self, command: Sequence[str], returncode: int, output: str = "") -> None:
        self.command = list(command)
        self.returncode = returncode
        self.output = output.strip()
        detail = self.output or f"exit code {returncode}"
        super().__init__(f"`{shlex.join(self.command)}` failed: {detail}")


class NotARepository(QkdpxError):
    def __init__(self) -> None:
        super().__init__("Current directory is not a git repository.")


class StatusCheckFailed(QkdpxError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Git status check failed: {reason}")


class ManifestNotFound(QkdpxError):
    def __init__(self, path: object) -> None:
        super().__init__(f"package.json not found in {path}")


class ManifestInvalid(QkdpxError):
    pass


class UncommittedChangesRejected(QkdpxError):
    def __init__(self, hint: str = "") -> None:
        msg = "Uncommitted changes must be committed before publishing."
        super().__init__(f"{msg} {hint}".strip())


class VersionIncrementFailed(QkdpxError):
    def __init__(self, version: str, kind: str) -> None:
        super().__init__(f"Cannot apply a {kind} bump to version {version!r}.")


class BuildFailed(QkdpxError):
    def __init__(self, returncode: int) -> None:
        self.returncode = returncode
        super().__init__(f"Build script failed with exit code {returncode}.")


class PublishFailed(QkdpxError):
    def __init__(self, returncode: int, output: str = "") -> None:
        self.returncode = returncode
        self.output = output
        detail = f": {output}" if output else ""
        super().__init__(f"npm publish failed with exit code {returncode}{detail}")


class TagExists(QkdpxError):
    def __init__(self, tag: str) -> None:
        self.tag = tag
        super().__init__(f"Tag {tag} already exists.")


class RemoteTagExists(QkdpxError):
    def __init__(self, tag: str, remote: str = "origin") -> None:
        self.tag = tag
        super().__init__(f"Tag {tag} already exists on {remote}.")


class NoRemoteConfigured(QkdpxError):
    def __init__(self, remote: str = "origin") -> None:
        super().__init__(
            f"No '{remote}' remote configured. Add one first:\n"
            f"  git remote add {remote} <repository-url>"
        )


class PushFailed(QkdpxError):
    def __init__(self, output: str) -> None:
        self.output = output
        super().__init__(f"Push failed: {output}")


class ConfigLoadDegraded(Exception):
    """A persisted config document could not be used; defaults apply.

    Never surfaces to the user as a failure: ConfigStore catches it and
    prints a warning.
    """


class Cancelled(Exception):
    """The user declined to continue. Not an error (exit code 0)."""


class PublishCancelled(Cancelled):
    def __init__(self) -> None:
        super().__init__("Publishing cancelled by user.")
