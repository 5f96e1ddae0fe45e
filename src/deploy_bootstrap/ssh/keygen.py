"""RSA key pair generation in SSH formats."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

from cryptography.hazmat.primitives.asymmetric import rsa

from .crt import RsaKeyMaterial, material_to_pem
from .wire import WireReader, write_mpint_int, write_string

DEFAULT_COMMENT = "generated-key"


@dataclass(frozen=True)
class KeyPair:
    private_pem: str
    public_line: str

    def __iter__(self):
        return iter((self.private_pem, self.public_line))


def public_key_blob(e: int, n: int) -> bytes:
    return write_string("ssh-rsa") + write_mpint_int(e) + write_mpint_int(n)


def format_public_line(e: int, n: int, comment: str = DEFAULT_COMMENT) -> str:
    encoded = base64.b64encode(public_key_blob(e, n)).decode("ascii")
    return f"ssh-rsa {encoded} {comment}\n"


def parse_public_line(line: str) -> Tuple[int, int]:
    """Return ``(e, n)`` from an ``ssh-rsa`` authorized_keys line."""
    parts = line.strip().split()
    if len(parts) < 2 or parts[0] != "ssh-rsa":
        raise ValueError("Not an ssh-rsa public key line")
    try:
        blob = base64.b64decode(parts[1], validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Invalid base64 in public key: {exc}") from exc
    reader = WireReader(blob)
    key_type = reader.read_string()
    if key_type != parts[0]:
        raise ValueError(f"Key type mismatch: {parts[0]} vs {key_type}")
    e = reader.read_mpint()
    n = reader.read_mpint()
    return e, n


def generate_rsa_material(bits: int = 2048) -> RsaKeyMaterial:
    numbers = rsa.generate_private_key(public_exponent=65537, key_size=bits).private_numbers()
    public = numbers.public_numbers
    return RsaKeyMaterial(
        n=public.n,
        e=public.e,
        d=numbers.d,
        p=numbers.p,
        q=numbers.q,
    )


def generate_rsa_key_pair(bits: int = 2048) -> KeyPair:
    """Generate an RSA pair as (PKCS#1 PEM, authorized_keys line)."""
    material = generate_rsa_material(bits)
    return KeyPair(
        private_pem=material_to_pem(material),
        public_line=format_public_line(material.e, material.n),
    )


def write_key_pair_files(
    prefix: Union[str, Path], private_pem: str, public_line: str
) -> Tuple[Path, Path]:
    private_path = Path(prefix)
    public_path = Path(f"{prefix}.pub")
    for path, content in ((private_path, private_pem), (public_path, public_line)):
        with path.open("w", encoding="ascii", newline="") as handle:
            handle.write(content)
    return private_path, public_path


def authorized_keys_install_script(public_line: str) -> str:
    """Shell snippet that installs ``public_line`` on a remote host."""
    key = public_line.rstrip("\r\n")
    return (
        "# Paste the following on the REMOTE HOST to add the public key to ~/.ssh/authorized_keys\n"
        "mkdir -p ~/.ssh\n"
        "chmod 700 ~/.ssh\n"
        "cat >> ~/.ssh/authorized_keys <<'AUTHORIZED_KEYS'\n"
        f"{key}\n"
        "AUTHORIZED_KEYS\n"
        "chmod 600 ~/.ssh/authorized_keys\n"
        "echo 'Public key installed'\n"
    )
