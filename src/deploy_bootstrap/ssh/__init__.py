"""SSH credential material and remote sessions."""

from .bootstrapper import Bootstrapper
from .container import parse_armored, parse_container
from .credentials import (
    CredentialResolver,
    CredentialSpec,
    FilePath,
    InlineContent,
    load_private_key,
)
from .crt import RsaKeyMaterial, derive_crt, to_pkcs1_pem
from .errors import (
    ConversionFailedError,
    CredentialError,
    EncryptedKeyUnsupportedError,
    InvalidContainerFormatError,
    NoKeyMaterialError,
    RemoteCommandError,
    RemoteConnectError,
    RemoteSessionError,
    UnexpectedEndOfDataError,
    UnsupportedKeyTypeError,
)
from .keygen import KeyPair, generate_rsa_key_pair, write_key_pair_files
from .probe import RemoteHostFacts, RemoteProbe
from .session import AlgorithmPreferences, RemoteCommandResult, RemoteSession

__all__ = [
    "AlgorithmPreferences",
    "Bootstrapper",
    "ConversionFailedError",
    "CredentialError",
    "CredentialResolver",
    "CredentialSpec",
    "EncryptedKeyUnsupportedError",
    "FilePath",
    "InlineContent",
    "InvalidContainerFormatError",
    "KeyPair",
    "NoKeyMaterialError",
    "RemoteCommandError",
    "RemoteCommandResult",
    "RemoteConnectError",
    "RemoteHostFacts",
    "RemoteProbe",
    "RemoteSession",
    "RemoteSessionError",
    "RsaKeyMaterial",
    "UnexpectedEndOfDataError",
    "UnsupportedKeyTypeError",
    "derive_crt",
    "generate_rsa_key_pair",
    "load_private_key",
    "parse_armored",
    "parse_container",
    "to_pkcs1_pem",
    "write_key_pair_files",
]
