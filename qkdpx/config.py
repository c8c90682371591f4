"""Configuration store.

Two JSON documents feed the effective Configuration:

- global:  ~/.qkdpx/config.json  {"registry": ..., "authToken": <obscured>}
- project: ./.qkdpxrc            {"registry": ...}

The project registry wins over the global one, which wins over the
default. The auth token is only ever read from, and written to, the
global document.

Token storage is obfuscation, not security: the token is XORed with a
keystream derived from a key baked into this module, so anyone holding
the source can recover it. It only keeps the token from sitting in the
file as plain text.
"""

from __future__ import annotations

import hashlib
import json
import secrets
from pathlib import Path

from pydantic import ValidationError

from .errors import ConfigLoadDegraded
from .models import (
    DEFAULT_REGISTRY,
    ConfigSummary,
    ConfigValue,
    Configuration,
    StoredConfig,
    validate_registry_url,
)
from .shell import warn

GLOBAL_CONFIG_PATH = Path.home() / ".qkdpx" / "config.json"
PROJECT_CONFIG_NAME = ".qkdpxrc"

_OBSCURE_KEY = hashlib.sha256(b"qkdpx-config").digest()
_NONCE_BYTES = 16


def _keystream(nonce: bytes, length: int) -> bytes:
    out = bytearray()
    counter = 0
    while len(out) < length:
        out += hashlib.sha256(_OBSCURE_KEY + nonce + counter.to_bytes(4, "big")).digest()
        counter += 1
    return bytes(out[:length])


def obscure_token(token: str) -> str:
    """Return the on-disk form of a token: "<nonce-hex>:<cipher-hex>"."""
    nonce = secrets.token_bytes(_NONCE_BYTES)
    data = token.encode("utf-8")
    cipher = bytes(a ^ b for a, b in zip(data, _keystream(nonce, len(data))))
    return f"{nonce.hex()}:{cipher.hex()}"


def recover_token(stored: str) -> str:
    """Invert obscure_token().

    Raises:
        ValueError: If the stored value is not in the expected form.
    """
    nonce_hex, sep, cipher_hex = stored.partition(":")
    if not sep:
        raise ValueError("missing nonce separator")
    nonce = bytes.fromhex(nonce_hex)
    if len(nonce) != _NONCE_BYTES:
        raise ValueError("bad nonce length")
    cipher = bytes.fromhex(cipher_hex)
    data = bytes(a ^ b for a, b in zip(cipher, _keystream(nonce, len(cipher))))
    return data.decode("utf-8")


def mask_token(token: str) -> str:
    """Shorten a token for display: "abcdef123456" → "abc***456"."""
    if len(token) <= 6:
        return token
    return f"{token[:3]}***{token[-3:]}"


def _read_document(path: Path) -> StoredConfig:
    """Read one persisted document; a missing file is an empty document.

    Raises:
        ConfigLoadDegraded: If the file exists but can't be used.
    """
    if not path.exists():
        return StoredConfig()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        doc = StoredConfig.model_validate(raw)
        if doc.registry is not None:
            validate_registry_url(doc.registry)
    except (OSError, ValueError, ValidationError) as exc:
        raise ConfigLoadDegraded(f"Failed to parse {path}, ignoring it ({exc})") from exc
    return doc


class ConfigStore:
    """Loads and saves qkdpx configuration.

    Paths are injectable so tests never touch the real home directory.
    """

    def __init__(
        self,
        *,
        global_path: Path | None = None,
        project_dir: Path | None = None,
    ) -> None:
        self.global_path = global_path or GLOBAL_CONFIG_PATH
        self.project_path = (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME

    def global_exists(self) -> bool:
        return self.global_path.exists()

    def load_global(self) -> StoredConfig:
        """Load the global document with its token recovered."""
        try:
            doc = _read_document(self.global_path)
        except ConfigLoadDegraded as exc:
            warn(str(exc))
            return StoredConfig()

        if doc.auth_token:
            try:
                doc.auth_token = recover_token(doc.auth_token)
            except ValueError:
                warn("Failed to decrypt auth token, ignoring it")
                doc.auth_token = None
        return doc

    def load_project(self) -> StoredConfig:
        """Load the project document. Tokens are never taken from it."""
        try:
            doc = _read_document(self.project_path)
        except ConfigLoadDegraded as exc:
            warn(str(exc))
            return StoredConfig()
        return StoredConfig(registry=doc.registry)

    def load(self) -> Configuration:
        project = self.load_project()
        global_ = self.load_global()
        return Configuration(
            registry=project.registry or global_.registry or DEFAULT_REGISTRY,
            auth_token=global_.auth_token,
        )

    def save(self, config: Configuration) -> Path:
        """Write registry and obscured token to the global document."""
        doc: dict[str, str] = {"registry": config.registry}
        if config.auth_token:
            doc["authToken"] = obscure_token(config.auth_token)
        self.global_path.parent.mkdir(parents=True, exist_ok=True)
        self.global_path.write_text(json.dumps(doc, indent=2) + "\n", encoding="utf-8")
        return self.global_path

    def save_project(self, registry: str) -> Path:
        """Write the registry (only) to the project document."""
        validate_registry_url(registry)
        self.project_path.write_text(
            json.dumps({"registry": registry}, indent=2) + "\n", encoding="utf-8"
        )
        return self.project_path

    def summarize(self) -> ConfigSummary:
        project = self.load_project()
        global_ = self.load_global()

        if project.registry:
            registry = ConfigValue(value=project.registry, source="project")
        elif global_.registry:
            registry = ConfigValue(value=global_.registry, source="global")
        else:
            registry = ConfigValue(value=DEFAULT_REGISTRY, source="default")

        token = None
        if global_.auth_token:
            token = ConfigValue(value=mask_token(global_.auth_token), source="global")

        return ConfigSummary(registry=registry, auth_token=token)
