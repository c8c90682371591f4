"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from qkdpx.manifest import load_descriptor
from qkdpx.models import PackageDescriptor, RepositoryStatus

MANIFEST_TEXT = """\
{
  "name": "pkg",
  "version": "1.0.0",
  "description": "Zürich test package",
  "scripts": {
    "build": "tsc",
    "test": "vitest"
  },
  "dependencies": {
    "left-pad": "^1.3.0"
  },
  "files": []
}
"""


@pytest.fixture
def package_dir(tmp_path: Path) -> Path:
    """A directory holding a package.json with a build script."""
    (tmp_path / "package.json").write_text(MANIFEST_TEXT, encoding="utf-8")
    return tmp_path


@pytest.fixture
def descriptor(package_dir: Path) -> PackageDescriptor:
    return load_descriptor(package_dir)


@pytest.fixture
def write_manifest(tmp_path: Path):
    """Write an arbitrary package.json and return its directory."""

    def _write(doc: dict, indent: int = 2) -> Path:
        (tmp_path / "package.json").write_text(json.dumps(doc, indent=indent) + "\n")
        return tmp_path

    return _write


@pytest.fixture
def clean_status() -> RepositoryStatus:
    return RepositoryStatus(has_uncommitted_changes=False, current_branch="main", is_clean=True)


@pytest.fixture
def dirty_status() -> RepositoryStatus:
    return RepositoryStatus(has_uncommitted_changes=True, current_branch="main", is_clean=False)
