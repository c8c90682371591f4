"""package.json reading and writing utilities.

set_manifest_version() edits the file as text: it finds the top-level
"version" string and replaces just that token. Line endings, indentation,
number spelling and escapes elsewhere in the file come back byte for byte.
"""

from __future__ import annotations

import json
import re
from json.decoder import scanstring
from pathlib import Path
from typing import Any

from .errors import ManifestInvalid, ManifestNotFound
from .models import PackageDescriptor

MANIFEST_NAME = "package.json"

_WHITESPACE = re.compile(r"[ \t\n\r]*")
_decoder = json.JSONDecoder()


def manifest_path(root: Path | None = None) -> Path:
    return (root or Path.cwd()).resolve() / MANIFEST_NAME


def load_manifest(path: Path) -> dict[str, Any]:
    """Load and parse a package.json file.

    Raises:
        ManifestNotFound: If the file does not exist.
        ManifestInvalid: If the file is not a JSON object.
    """
    if not path.is_file():
        raise ManifestNotFound(path.parent)
    try:
        doc = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ManifestInvalid(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(doc, dict):
        raise ManifestInvalid(f"{path} must contain a JSON object")
    return doc


def _skip(text: str, idx: int) -> int:
    return _WHITESPACE.match(text, idx).end()


def _version_span(text: str) -> tuple[int, int] | None:
    """Offsets of the top-level "version" string value, quotes included.

    Walks the keys of the outer object only; values are stepped over whole
    by the json scanner, so a "version" key nested in another object is
    never matched. The text must already be known to be a JSON object.
    """
    idx = _skip(text, text.index("{") + 1)
    span = None
    while text[idx] != "}":
        key, idx = scanstring(text, idx + 1)
        idx = _skip(text, _skip(text, idx) + 1)  # past ':'
        value, end = _decoder.raw_decode(text, idx)
        if key == "version" and isinstance(value, str):
            # Last duplicate wins, as in json.loads.
            span = (idx, end)
        idx = _skip(text, end)
        if text[idx] == ",":
            idx = _skip(text, idx + 1)
    return span


def set_manifest_version(path: Path, version: str) -> None:
    """Rewrite the top-level version, leaving every other byte as it was.

    Raises:
        ManifestNotFound: If the file does not exist.
        ManifestInvalid: If the file is not a JSON object or has no
            top-level "version" string.
    """
    load_manifest(path)
    with path.open(encoding="utf-8", newline="") as fh:
        text = fh.read()
    span = _version_span(text)
    if span is None:
        raise ManifestInvalid(f'{path} has no top-level "version" string')
    start, end = span
    text = text[:start] + json.dumps(version, ensure_ascii=False) + text[end:]
    with path.open("w", encoding="utf-8", newline="") as fh:
        fh.write(text)


def get_manifest_version(path: Path) -> str | None:
    return load_manifest(path).get("version")


def load_descriptor(root: Path | None = None) -> PackageDescriptor:
    """Read package.json from root (default: cwd) into a PackageDescriptor.

    Raises:
        ManifestNotFound: If there is no package.json.
        ManifestInvalid: If name or version is missing or not a string.
    """
    path = manifest_path(root)
    doc = load_manifest(path)

    for field in ("name", "version"):
        value = doc.get(field)
        if not isinstance(value, str) or not value.strip():
            raise ManifestInvalid(f'package.json must have a "{field}" field')

    scripts = doc.get("scripts")
    build = scripts.get("build") if isinstance(scripts, dict) else None

    return PackageDescriptor(
        name=doc["name"],
        version=doc["version"],
        manifest_path=path,
        has_build_script=isinstance(build, str) and bool(build.strip()),
    )
