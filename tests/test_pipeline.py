"""Tests for qkdpx.pipeline."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from qkdpx.errors import (
    BuildFailed,
    CommandFailed,
    PublishCancelled,
    PublishFailed,
    TagExists,
    UncommittedChangesRejected,
)
from qkdpx.models import Configuration, PublishOptions, ReleaseOptions, RepositoryStatus
from qkdpx.pipeline import run_publish, run_release


def _manifest_version(root: Path) -> str:
    return json.loads((root / "package.json").read_text())["version"]


@pytest.fixture
def steps(clean_status: RepositoryStatus):
    """Patch every external side effect of the workflow."""
    with (
        patch("qkdpx.pipeline.check_status", return_value=clean_status) as check_status,
        patch("qkdpx.pipeline.run_build_if_present") as build,
        patch("qkdpx.pipeline.publish") as publish,
        patch("qkdpx.pipeline.commit_version_bump") as commit_bump,
        patch("qkdpx.pipeline.create_and_push_tag") as tag,
        patch("qkdpx.pipeline.click.confirm", return_value=True) as confirm,
    ):
        yield MagicMock(
            check_status=check_status,
            build=build,
            publish=publish,
            commit_bump=commit_bump,
            tag=tag,
            confirm=confirm,
        )


class TestRunPublish:
    def test_patch_release_end_to_end(self, steps: MagicMock, package_dir: Path) -> None:
        config = Configuration(auth_token="tok")

        version = run_publish(PublishOptions(bump="patch"), config, root=package_dir)

        assert version == "1.0.1"
        assert _manifest_version(package_dir) == "1.0.1"
        steps.build.assert_called_once()
        descriptor, published_version, used_config = steps.publish.call_args.args
        assert published_version == "1.0.1"
        assert used_config is config
        steps.commit_bump.assert_called_once_with(descriptor, "1.0.1")
        steps.tag.assert_called_once_with("1.0.1", overwrite=None)

    def test_publish_failure_restores_version(self, steps: MagicMock, write_manifest) -> None:
        """1.9.9 → 2.0.0, publish fails → package.json says 1.9.9 again."""
        root = write_manifest({"name": "pkg", "version": "1.9.9"})
        seen: list[str] = []

        def fail(descriptor, version, config, **kwargs):
            seen.append(_manifest_version(root))
            raise PublishFailed(1)

        steps.publish.side_effect = fail

        with pytest.raises(PublishFailed):
            run_publish(PublishOptions(bump="major"), Configuration(), root=root)

        assert seen == ["2.0.0"]
        assert _manifest_version(root) == "1.9.9"
        steps.commit_bump.assert_not_called()
        steps.tag.assert_not_called()

    def test_build_failure_restores_version(self, steps: MagicMock, package_dir: Path) -> None:
        before = (package_dir / "package.json").read_text()
        steps.build.side_effect = BuildFailed(2)

        with pytest.raises(BuildFailed):
            run_publish(PublishOptions(bump="minor"), Configuration(), root=package_dir)

        assert (package_dir / "package.json").read_text() == before
        steps.publish.assert_not_called()

    def test_cancel_restores_version(self, steps: MagicMock, package_dir: Path) -> None:
        steps.publish.side_effect = PublishCancelled()

        with pytest.raises(PublishCancelled):
            run_publish(PublishOptions(bump="patch"), Configuration(), root=package_dir)

        assert _manifest_version(package_dir) == "1.0.0"

    def test_interrupt_restores_version(self, steps: MagicMock, package_dir: Path) -> None:
        steps.build.side_effect = KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            run_publish(PublishOptions(bump="patch"), Configuration(), root=package_dir)

        assert _manifest_version(package_dir) == "1.0.0"

    @patch("qkdpx.commit.click.confirm", return_value=False)
    def test_declined_commit_aborts_before_version(
        self,
        mock_commit_confirm: MagicMock,
        steps: MagicMock,
        package_dir: Path,
        dirty_status: RepositoryStatus,
    ) -> None:
        steps.check_status.return_value = dirty_status
        before = (package_dir / "package.json").read_text()

        with pytest.raises(UncommittedChangesRejected) as excinfo:
            run_publish(PublishOptions(bump="patch"), Configuration(), root=package_dir)

        assert excinfo.value.exit_code == 1
        assert (package_dir / "package.json").read_text() == before
        steps.build.assert_not_called()
        steps.publish.assert_not_called()

    def test_none_skips_commit_and_tag(self, steps: MagicMock, package_dir: Path) -> None:
        assert run_publish(PublishOptions(bump="none"), Configuration(), root=package_dir) == "1.0.0"

        steps.publish.assert_called_once()
        steps.commit_bump.assert_not_called()
        steps.tag.assert_not_called()

    def test_dry_run_changes_nothing(
        self, steps: MagicMock, package_dir: Path, dirty_status: RepositoryStatus
    ) -> None:
        steps.check_status.return_value = dirty_status
        before = (package_dir / "package.json").read_text()

        version = run_publish(
            PublishOptions(bump="patch", dry_run=True), Configuration(), root=package_dir
        )

        assert version == "1.0.1"
        assert (package_dir / "package.json").read_text() == before
        assert steps.publish.call_args.kwargs["dry_run"] is True
        steps.commit_bump.assert_not_called()
        steps.tag.assert_not_called()

    def test_declined_tagging_keeps_published_version(
        self, steps: MagicMock, package_dir: Path
    ) -> None:
        steps.confirm.return_value = False

        run_publish(PublishOptions(bump="patch"), Configuration(), root=package_dir)

        assert _manifest_version(package_dir) == "1.0.1"
        steps.commit_bump.assert_called_once()
        steps.tag.assert_not_called()

    def test_skip_confirm_refuses_tag_overwrite(self, steps: MagicMock, package_dir: Path) -> None:
        run_publish(PublishOptions(bump="patch", skip_confirm=True), Configuration(), root=package_dir)

        steps.confirm.assert_not_called()
        steps.tag.assert_called_once_with("1.0.1", overwrite=False)

    def test_tag_failure_after_publish_keeps_version(
        self, steps: MagicMock, package_dir: Path
    ) -> None:
        steps.tag.side_effect = TagExists("v1.0.1")

        with pytest.raises(TagExists):
            run_publish(PublishOptions(bump="patch"), Configuration(), root=package_dir)

        assert _manifest_version(package_dir) == "1.0.1"


class TestRunRelease:
    def test_bump_commit_tag(self, steps: MagicMock, package_dir: Path) -> None:
        assert run_release(ReleaseOptions(bump="minor"), root=package_dir) == "1.1.0"

        steps.commit_bump.assert_called_once()
        steps.tag.assert_called_once_with("1.1.0", overwrite=None)
        steps.publish.assert_not_called()

    def test_declined_bump_tags_current_version(self, steps: MagicMock, package_dir: Path) -> None:
        steps.confirm.return_value = False

        assert run_release(ReleaseOptions(), root=package_dir) == "1.0.0"

        steps.commit_bump.assert_not_called()
        steps.tag.assert_called_once_with("1.0.0", overwrite=None)

    def test_force_tag_overwrites(self, steps: MagicMock, package_dir: Path) -> None:
        run_release(ReleaseOptions(bump="patch", skip_confirm=True, force_tag=True), root=package_dir)
        steps.tag.assert_called_once_with("1.0.1", overwrite=True)

    def test_commit_failure_restores_version(self, steps: MagicMock, package_dir: Path) -> None:
        steps.commit_bump.side_effect = CommandFailed(["git", "commit"], 1, "hook failed")

        with pytest.raises(CommandFailed):
            run_release(ReleaseOptions(bump="patch"), root=package_dir)

        assert _manifest_version(package_dir) == "1.0.0"
        steps.tag.assert_not_called()

    def test_tag_failure_after_commit_keeps_version(
        self, steps: MagicMock, package_dir: Path
    ) -> None:
        steps.tag.side_effect = TagExists("v1.0.1")

        with pytest.raises(TagExists):
            run_release(ReleaseOptions(bump="patch"), root=package_dir)

        assert _manifest_version(package_dir) == "1.0.1"
