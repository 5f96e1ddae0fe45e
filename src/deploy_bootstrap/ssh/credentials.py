"""SSH credential helpers."""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

import paramiko

from ..utils.logging import get_logger
from .container import ARMOR_HEADER, parse_armored
from .crt import derive_crt, material_to_pem
from .errors import ConversionFailedError, CredentialError, NoKeyMaterialError

logger = get_logger(__name__)


@dataclass(frozen=True)
class FilePath:
    """Key material stored in a file on the local machine."""

    path: str


@dataclass(frozen=True)
class InlineContent:
    """Key material passed around as text (config value, env var, API payload)."""

    text: str


KeySource = Union[FilePath, InlineContent]


@dataclass(frozen=True)
class CredentialSpec:
    """Normalized credential payload from CLI/config."""

    host: str
    user: str
    key_source: KeySource
    port: int = 22
    auto_convert: bool = False

    def validate(self) -> None:
        if not self.host:
            raise ValueError("No SSH host provided")
        if not self.user:
            raise ValueError("No SSH user provided")
        if isinstance(self.key_source, FilePath) and not self.key_source.path:
            raise ValueError("Key file selected but no path provided")


def load_private_key(data: bytes) -> paramiko.PKey:
    """Parse PEM bytes the way the transport will when authenticating."""
    return paramiko.RSAKey.from_private_key(io.StringIO(data.decode("ascii")))


def convert_openssh_to_pem(text: str) -> str:
    """Turn an armored OpenSSH-v1 RSA key into PKCS#1 PEM text."""
    try:
        material = parse_armored(text)
    except CredentialError as exc:
        raise ConversionFailedError(str(exc), stage="parse") from exc
    try:
        material = derive_crt(material)
    except ValueError as exc:
        raise ConversionFailedError(f"Cannot derive CRT parameters: {exc}", stage="derive") from exc
    try:
        return material_to_pem(material)
    except ValueError as exc:
        raise ConversionFailedError(f"Cannot encode PKCS#1 key: {exc}", stage="encode") from exc


class CredentialResolver:
    """Turns a :class:`CredentialSpec` into bytes the transport can authenticate with.

    Order of evaluation:

    1. read the source (inline text or key file);
    2. without ``auto_convert`` the bytes are returned untouched;
    3. with ``auto_convert`` an OpenSSH-v1 armored key is converted to PKCS#1;
    4. anything else must load as-is, with one fresh re-read of a key file
       before giving up.
    """

    def __init__(self, key_loader: Optional[Callable[[bytes], object]] = None) -> None:
        self._key_loader = key_loader or load_private_key

    def resolve(self, spec: CredentialSpec) -> bytes:
        source = spec.key_source
        raw = self._read_source(source)

        if not spec.auto_convert:
            logger.debug("Passing key material for %s@%s through unmodified", spec.user, spec.host)
            return raw

        text = raw.decode("ascii", errors="replace")
        if ARMOR_HEADER in text:
            logger.info("Converting OpenSSH private key to PEM for %s@%s", spec.user, spec.host)
            return (convert_openssh_to_pem(text) + "\n").encode("ascii")

        try:
            return self._checked(raw)
        except (paramiko.SSHException, ValueError) as exc:
            last_error = exc

        if isinstance(source, FilePath):
            logger.debug("Re-reading key file %s", source.path)
            try:
                return self._checked(self._read_source(source))
            except (paramiko.SSHException, ValueError) as exc:
                last_error = exc

        raise ConversionFailedError(
            f"Failed to load or convert private key material: {last_error}",
            stage="load",
        ) from last_error

    def _checked(self, data: bytes) -> bytes:
        self._key_loader(data)
        return data

    def _read_source(self, source: KeySource) -> bytes:
        if isinstance(source, InlineContent):
            if not source.text:
                raise NoKeyMaterialError("No inline key content supplied")
            return source.text.encode("utf-8")
        if not source.path or not Path(source.path).is_file():
            raise NoKeyMaterialError(f"No private key file found for authentication: {source.path!r}")
        return Path(source.path).read_bytes()
