"""Exception types for credential handling and remote sessions."""

from __future__ import annotations

from typing import Optional


class CredentialError(Exception):
    """Base class for key material failures."""


class NoKeyMaterialError(CredentialError):
    """Raised when neither a readable key file nor inline content exists."""


class InvalidContainerFormatError(CredentialError):
    """Raised when an OpenSSH private key container is malformed."""


class UnexpectedEndOfDataError(InvalidContainerFormatError):
    """Raised when a read runs past the end of the buffer."""

    def __init__(self, needed: int, available: int) -> None:
        self.needed = needed
        self.available = available
        super().__init__(f"Unexpected end of data: need {needed} bytes, have {available}")


class EncryptedKeyUnsupportedError(CredentialError):
    """Raised for containers protected by a cipher or KDF."""

    def __init__(self, cipher_name: str, kdf_name: str) -> None:
        self.cipher_name = cipher_name
        self.kdf_name = kdf_name
        super().__init__(
            f"Encrypted OpenSSH private keys are not supported "
            f"(cipher={cipher_name!r}, kdf={kdf_name!r})"
        )


class UnsupportedKeyTypeError(CredentialError):
    """Raised when the private section holds something other than ssh-rsa."""

    def __init__(self, key_type: str) -> None:
        self.key_type = key_type
        super().__init__(f"Key type {key_type!r} is not supported")


class ConversionFailedError(CredentialError):
    """Raised when key material cannot be turned into usable PEM bytes."""

    def __init__(self, message: str, *, stage: str) -> None:
        self.stage = stage
        super().__init__(f"[{stage}] {message}")


class RemoteSessionError(RuntimeError):
    """Failure talking to a remote host, with the connection context attached."""

    stage = "session"

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        cause: Optional[BaseException] = None,
        *,
        stage: Optional[str] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.cause = cause
        if stage is not None:
            self.stage = stage
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{self.stage} failed for {user}@{host}:{port}{detail}")


class RemoteConnectError(RemoteSessionError):
    """Raised when an SSH connection cannot be established."""

    stage = "connect"


class RemoteCommandError(RemoteSessionError):
    """Raised when the transport fails while running a command or transfer."""

    stage = "exec"
