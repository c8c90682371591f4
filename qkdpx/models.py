"""Data models for qkdpx.

These Pydantic models represent the core data structures passed between
the steps of the publish workflow.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_REGISTRY = "https://registry.npmjs.org/"

BumpKind = Literal["none", "patch", "minor", "major"]
ConfigSource = Literal["default", "global", "project"]


def validate_registry_url(value: str) -> str:
    """Accept only absolute http(s) URLs.

    Raises:
        ValueError: If the value is not a usable registry URL.
    """
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"not a valid registry URL: {value!r}")
    return value


class PackageDescriptor(BaseModel):
    """The parts of package.json the workflow needs.

    Loaded fresh for every run; the manifest on disk is the source of
    truth and may be rewritten by the version step.

    Attributes:
        name: Package name (non-empty).
        version: Version string as found in the manifest.
        manifest_path: Absolute path to package.json.
        has_build_script: Whether scripts.build is defined.
    """

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    manifest_path: Path
    has_build_script: bool = False

    @property
    def root(self) -> Path:
        return self.manifest_path.parent


class RepositoryStatus(BaseModel):
    """Working-tree state at the moment of the check.

    Stale as soon as anything is committed; callers re-check rather than
    reuse it after mutating the tree.
    """

    has_uncommitted_changes: bool
    current_branch: str
    is_clean: bool


class Configuration(BaseModel):
    """Effective publish configuration.

    auth_token here is always the recovered (plain) token. The obscured
    form only ever exists inside the config file.
    """

    registry: str = DEFAULT_REGISTRY
    auth_token: str | None = None

    @field_validator("registry")
    @classmethod
    def _check_registry(cls, value: str) -> str:
        return validate_registry_url(value)


class StoredConfig(BaseModel):
    """A persisted config document, as it appears on disk."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    registry: str | None = None
    auth_token: str | None = Field(default=None, alias="authToken")


class ConfigValue(BaseModel):
    value: str
    source: ConfigSource


class ConfigSummary(BaseModel):
    """Effective config values and where each came from, for display."""

    registry: ConfigValue
    auth_token: ConfigValue | None = None


class VersionBump(BaseModel):
    """Records a version change for the package.

    Attributes:
        old: The version before bumping.
        new: The version after bumping (equal to old for "none").
    """

    old: str
    new: str

    @property
    def changed(self) -> bool:
        return self.old != self.new


class PublishOptions(BaseModel):
    bump: BumpKind | None = None
    skip_confirm: bool = False
    dry_run: bool = False
    message: str | None = None


class ReleaseOptions(BaseModel):
    bump: BumpKind | None = None
    skip_confirm: bool = False
    message: str | None = None
    force_tag: bool = False
