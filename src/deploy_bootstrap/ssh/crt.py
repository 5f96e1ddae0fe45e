"""RSA CRT parameter derivation and PKCS#1 PEM rendering."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


@dataclass(frozen=True)
class RsaKeyMaterial:
    """Raw RSA integers recovered from a key container.

    ``iqmp_stored`` is whatever the container carried; it is kept for
    inspection only; ``q_inv`` is always recomputed from ``p`` and ``q``.
    """

    n: int
    e: int
    d: int
    p: int
    q: int
    iqmp_stored: Optional[int] = None
    dp: Optional[int] = None
    dq: Optional[int] = None
    q_inv: Optional[int] = None

    @property
    def has_crt(self) -> bool:
        return None not in (self.dp, self.dq, self.q_inv)


def derive_crt(material: RsaKeyMaterial) -> RsaKeyMaterial:
    """Return a copy of ``material`` with dP, dQ and qInv filled in.

    Raises:
        ValueError: if a prime is below 2 or q has no inverse modulo p.
    """
    p, q, d = material.p, material.q, material.d
    if p < 2 or q < 2:
        raise ValueError(f"RSA primes must be at least 2 (p={p}, q={q})")
    return replace(
        material,
        dp=d % (p - 1),
        dq=d % (q - 1),
        q_inv=pow(q, -1, p),
    )


def to_pkcs1_pem(
    n: int,
    e: int,
    d: int,
    p: int,
    q: int,
    dp: int,
    dq: int,
    q_inv: int,
) -> str:
    """Encode the eight RSA values as a ``BEGIN RSA PRIVATE KEY`` block.

    The values are written as given; ``d`` is not checked against ``e``.
    """
    numbers = rsa.RSAPrivateNumbers(
        p=p,
        q=q,
        d=d,
        dmp1=dp,
        dmq1=dq,
        iqmp=q_inv,
        public_numbers=rsa.RSAPublicNumbers(e=e, n=n),
    )
    pem = numbers.private_key(unsafe_skip_rsa_key_validation=True).private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return pem.decode("ascii")


def material_to_pem(material: RsaKeyMaterial) -> str:
    if not material.has_crt:
        material = derive_crt(material)
    return to_pkcs1_pem(
        material.n,
        material.e,
        material.d,
        material.p,
        material.q,
        material.dp,
        material.dq,
        material.q_inv,
    )
