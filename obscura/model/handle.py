"""
Handle Model - 32-byte opaque ciphertext references

Layout (hex string "0x" + 64 hex chars):
    bytes [0:30]  SHA-256 over (scheme version, context, sequence, value type)
    byte  30      value type tag
    byte  31      scheme version
"""
import hashlib
import re

from obscura.errors import MalformedHandle

HANDLE_BYTES = 32

# Value type tags
EUINT8 = 2
EADDRESS = 7

VALUE_TYPES = {EUINT8: "euint8", EADDRESS: "eaddress"}

ZERO_HANDLE = "0x" + "00" * HANDLE_BYTES

_HANDLE_PATTERN = re.compile(r"^0x[0-9a-f]{64}$")


def derive_handle(context: str, sequence: int, value_type: int, version: int) -> str:
    """
    Derive a fresh handle. Distinct (context, sequence) pairs never collide
    in practice, so a handle is never reused.
    """
    if value_type not in VALUE_TYPES:
        raise ValueError(f"Unknown value type: {value_type}")

    preimage = f"{version}|{context.lower()}|{sequence}|{value_type}".encode("utf-8")
    digest = hashlib.sha256(preimage).digest()[:HANDLE_BYTES - 2]
    return "0x" + (digest + bytes([value_type, version])).hex()


def validate_handle(handle: str) -> str:
    """Normalize a handle string, raising MalformedHandle if it cannot be one"""
    if not isinstance(handle, str):
        raise MalformedHandle(f"Handle must be a hex string, got {type(handle).__name__}")

    normalized = handle.lower()
    if not _HANDLE_PATTERN.match(normalized):
        raise MalformedHandle(f"Not a 32-byte handle: {handle!r}")
    return normalized


def handle_type(handle: str) -> int:
    """Return the value type tag embedded in a handle"""
    raw = bytes.fromhex(validate_handle(handle)[2:])
    value_type = raw[HANDLE_BYTES - 2]
    if value_type not in VALUE_TYPES:
        raise MalformedHandle(f"Unknown value type {value_type} in {handle}")
    return value_type


def handle_version(handle: str) -> int:
    return bytes.fromhex(validate_handle(handle)[2:])[HANDLE_BYTES - 1]


def is_zero_handle(handle: str) -> bool:
    return handle == ZERO_HANDLE
