"""Symmetric key generation for CAS properties."""

import base64
import secrets

# Key name -> size in bits
KEY_SIZES: dict[str, int] = {
    "tgc.encryption.key": 256,
    "tgc.signing.key": 512,
    "webflow.encryption.key": 96,
    "webflow.signing.key": 512,
}


def generate_octet_key(bits: int) -> str:
    """Generate a random octet key rendered as a JWK 'k' value.

    The value is base64url encoded without padding.
    """
    if bits <= 0 or bits % 8:
        raise ValueError(f"Key size must be a positive multiple of 8, got {bits}")
    raw = secrets.token_bytes(bits // 8)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def generate_keys(sizes: dict[str, int] | None = None) -> dict[str, str]:
    """Generate one key per property name."""
    sizes = KEY_SIZES if sizes is None else sizes
    return {name: generate_octet_key(bits) for name, bits in sizes.items()}


def format_properties(keys: dict[str, str]) -> str:
    return "\n".join(f"{name}={value}" for name, value in keys.items())
