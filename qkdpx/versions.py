"""Version parsing, bumping, and the version step of the workflow.

npm versions are full semver strings, so parsing is strict: "1.2" is a
malformed version here, not "1.2.0".
"""

from __future__ import annotations

import click
import semver

from .errors import VersionIncrementFailed
from .manifest import get_manifest_version, set_manifest_version
from .models import BumpKind, PackageDescriptor

BUMP_KINDS: tuple[BumpKind, ...] = ("none", "patch", "minor", "major")


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Raises:
        ValueError: If the string is not valid semver.
    """
    return semver.Version.parse(version_str)


def bump_version(version_str: str, kind: str) -> str:
    """Apply a bump and return the new version as a string.

    Examples:
        ("1.2.3", "patch") → "1.2.4"
        ("1.2.3", "minor") → "1.3.0"
        ("1.2.3", "major") → "2.0.0"
        ("1.2.3", "none")  → "1.2.3"

    Raises:
        VersionIncrementFailed: If the version is malformed or the kind
            is unknown.
    """
    if kind not in BUMP_KINDS:
        raise VersionIncrementFailed(version_str, kind)
    if kind == "none":
        return version_str
    try:
        current = parse_version(version_str)
    except (ValueError, TypeError) as exc:
        raise VersionIncrementFailed(version_str, kind) from exc
    return str(current.next_version(part=kind))


def bump_choices(version_str: str) -> list[tuple[BumpKind, str]]:
    """Label each bump kind with the version it would produce."""
    choices: list[tuple[BumpKind, str]] = [
        ("none", f"none (keep current version {version_str})")
    ]
    for kind in BUMP_KINDS[1:]:
        choices.append((kind, f"{kind} ({version_str} → {bump_version(version_str, kind)})"))
    return choices


def select_bump(version_str: str, requested: BumpKind | None = None) -> BumpKind:
    """Return the requested bump, or ask for one interactively."""
    if requested is not None:
        return requested

    # Raises VersionIncrementFailed for a malformed version, before any prompt.
    choices = bump_choices(version_str)
    click.echo("Select version bump type:")
    for _, label in choices:
        click.echo(f"  {label}")
    return click.prompt(
        "Bump",
        type=click.Choice([kind for kind, _ in choices]),
        default="patch",
    )


def resolve_and_apply(
    descriptor: PackageDescriptor, requested: BumpKind | None = None
) -> str:
    """Resolve the bump kind, write the new version, and return it.

    For "none" the current version is returned and the manifest is not
    touched.
    """
    kind = select_bump(descriptor.version, requested)
    new_version = bump_version(descriptor.version, kind)
    if new_version == descriptor.version:
        return new_version

    set_manifest_version(descriptor.manifest_path, new_version)
    return new_version


def revert(descriptor: PackageDescriptor, original_version: str) -> None:
    """Put the manifest version back to original_version.

    Safe to call when nothing was changed.
    """
    if get_manifest_version(descriptor.manifest_path) == original_version:
        return
    set_manifest_version(descriptor.manifest_path, original_version)
