"""Publish and release workflows: status → commit → bump → build → publish → tag.

run_publish() publishes from the local machine:
1. Check the repository and read package.json
2. Commit uncommitted changes (or abort)
3. Bump the version in package.json
4. Run the build script, if any
5. Publish to the registry
6. Commit the version bump, tag v<version>, push

run_release() stops after tagging and pushing, leaving the build and
publish to CI.

Both share one cleanup rule: once package.json has a new version, any
exit before the bump is safe (published, or committed for a release)
puts the old version back.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from .commit import commit_version_bump, handle_uncommitted
from .errors import QkdpxError
from .manifest import load_descriptor
from .models import Configuration, PackageDescriptor, PublishOptions, ReleaseOptions, VersionBump
from .publish import publish, run_build_if_present
from .repo import check_status
from .shell import info, step, success, warn
from .tagging import create_and_push_tag, tag_name
from .versions import bump_version, resolve_and_apply, revert, select_bump


class _Rollback:
    """Tracks whether the version bump has been made safe."""

    def __init__(self, descriptor: PackageDescriptor, bump: VersionBump) -> None:
        self.descriptor = descriptor
        self.bump = bump
        self.settled = not bump.changed

    def settle(self) -> None:
        self.settled = True


@contextmanager
def version_rollback(descriptor: PackageDescriptor, bump: VersionBump) -> Iterator[_Rollback]:
    """Revert package.json to bump.old unless the block calls settle().

    Runs on every exit path, including Ctrl-C. A failed revert is
    reported but never replaces the original error.
    """
    guard = _Rollback(descriptor, bump)
    try:
        yield guard
    finally:
        if not guard.settled:
            warn(f"Rolling back version {bump.new} → {bump.old}...")
            try:
                revert(descriptor, bump.old)
            except (OSError, QkdpxError) as exc:
                warn(f"Failed to roll back package.json: {exc}")
            else:
                info("Version rollback completed")


def _prepare(root: Path | None, message: str | None, assume_yes: bool, dry_run: bool = False) -> PackageDescriptor:
    step("Checking repository")
    status = check_status()
    descriptor = load_descriptor(root)
    info(f"{descriptor.name} {descriptor.version} on {status.current_branch}")

    if status.is_clean:
        info("Working directory is clean")
    elif dry_run:
        warn("Uncommitted changes detected (dry run: not committing)")
    else:
        step("Handling uncommitted changes")
        handle_uncommitted(status, message=message, assume_yes=assume_yes)
    return descriptor


def run_publish(
    options: PublishOptions,
    config: Configuration,
    *,
    root: Path | None = None,
) -> str:
    """Execute the full publish workflow.

    Args:
        options: Command-line choices (bump kind, confirmations, dry run).
        config: Effective registry/token configuration.
        root: Package directory; defaults to the current directory.

    Returns:
        The version that was published.
    """
    descriptor = _prepare(root, options.message, options.skip_confirm, options.dry_run)

    step("Resolving version")
    if options.dry_run:
        kind = select_bump(descriptor.version, options.bump)
        new_version = bump_version(descriptor.version, kind)
        bump = VersionBump(old=descriptor.version, new=new_version)
        info(f"Would publish {descriptor.name}@{new_version} (package.json unchanged)")
    else:
        new_version = resolve_and_apply(descriptor, options.bump)
        bump = VersionBump(old=descriptor.version, new=new_version)
        if bump.changed:
            success(f"Version bumped to {new_version}")
        else:
            info(f"Keeping version {new_version}")

    # A dry run never writes package.json, so there is nothing to roll back.
    on_disk = VersionBump(old=bump.old, new=bump.old) if options.dry_run else bump
    with version_rollback(descriptor, on_disk) as guard:
        step("Building project")
        run_build_if_present(descriptor)

        step("Publishing package")
        publish(
            descriptor,
            new_version,
            config,
            dry_run=options.dry_run,
            assume_yes=options.skip_confirm,
        )
        guard.settle()

    if options.dry_run:
        success(f"Dry run complete for {descriptor.name}@{new_version}")
        return new_version

    success(f"Published {descriptor.name}@{new_version}")

    if not bump.changed:
        info("No version change, skipping commit and tag")
        return new_version

    step("Tagging release")
    commit_version_bump(descriptor, new_version)
    tag = tag_name(new_version)
    if options.skip_confirm or click.confirm(f"Tag {tag} and push to origin?", default=True):
        create_and_push_tag(new_version, overwrite=False if options.skip_confirm else None)
    else:
        info(f"Skipped tagging. Later: git tag {tag} && git push origin --tags")

    return new_version


def run_release(options: ReleaseOptions, *, root: Path | None = None) -> str:
    """Bump, commit, tag, and push; CI takes it from the pushed tag.

    Returns:
        The version that was tagged.
    """
    descriptor = _prepare(root, options.message, options.skip_confirm)
    current = descriptor.version
    overwrite = True if options.force_tag else (False if options.skip_confirm else None)

    step("Resolving version")
    if options.bump is not None or (
        not options.skip_confirm
        and click.confirm(f"Current version is {current}. Bump the version?", default=True)
    ):
        new_version = resolve_and_apply(descriptor, options.bump)
    else:
        new_version = current
        info("Version unchanged, will tag the current version")

    bump = VersionBump(old=current, new=new_version)
    with version_rollback(descriptor, bump) as guard:
        if bump.changed:
            success(f"Version bumped to {new_version}")
            step("Committing version change")
            commit_version_bump(descriptor, new_version)
        guard.settle()

    step(f"Creating and pushing tag {tag_name(new_version)}")
    create_and_push_tag(new_version, overwrite=overwrite)

    success(f"Release {tag_name(new_version)} pushed. CI will build and publish it.")
    return new_version
