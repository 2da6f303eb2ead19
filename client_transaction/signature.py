import secrets
from base64 import b64decode, b64encode
from hashlib import sha256 as _sha256
from math import floor
from struct import pack
from time import time
from typing import Callable, Optional, Tuple

EPOCH_OFFSET_MS = 1682924400 * 1000
DEFAULT_KEYWORD = "obfiowerehiring"
ADDITIONAL_RANDOM_NUMBER = 3
DIGEST_LENGTH = 16


def default_sha256(data: bytes) -> bytes:
    return _sha256(data).digest()


def default_random_byte() -> int:
    return secrets.randbelow(256)


def current_time_now(now_ms: Optional[float] = None) -> int:
    """Seconds elapsed since the transaction id epoch."""
    if now_ms is None:
        now_ms = time() * 1000
    return int(floor((now_ms - EPOCH_OFFSET_MS) / 1000))


def build_message(method: str, path: str, time_now: int, animation_key: str) -> bytes:
    return f"{method}!{path}!{time_now}{DEFAULT_KEYWORD}{animation_key}".encode("utf-8")


def build_payload(key_bytes: bytes, time_now: int, digest: bytes) -> bytes:
    time_now_bytes = pack("<I", time_now & 0xFFFFFFFF)
    return bytes(key_bytes) + time_now_bytes + digest[:DIGEST_LENGTH] + bytes([ADDITIONAL_RANDOM_NUMBER])


def encode_transaction_id(payload: bytes, mask: int) -> str:
    if not 0 <= mask < 256:
        raise ValueError(f"Mask must be a byte value, got {mask}")
    out = bytes([mask]) + bytes(item ^ mask for item in payload)
    return b64encode(out).decode("ascii").replace("=", "")


def decode_transaction_id(transaction_id: str) -> Tuple[int, bytes]:
    """
    Undo the base64 and XOR layers of a transaction id.

    Returns:
        Tuple of (mask, payload)
    """
    padded = transaction_id + "=" * (-len(transaction_id) % 4)
    raw = b64decode(padded, validate=True)
    if not raw:
        raise ValueError("Empty transaction id")
    mask = raw[0]
    return mask, bytes(item ^ mask for item in raw[1:])


def generate_transaction_id(
    method: str,
    path: str,
    key_bytes: bytes,
    animation_key: str,
    time_now: int,
    sha256: Callable[[bytes], bytes] = default_sha256,
    random_byte: Callable[[], int] = default_random_byte
) -> str:
    """
    Build an x-client-transaction-id value.

    Args:
        method: HTTP method of the request the id is attached to
        path: Request path, without host
        key_bytes: Decoded verification key
        animation_key: Animation key for the verification key
        time_now: Seconds since the transaction id epoch
        sha256: Digest function
        random_byte: Source of the per-call XOR mask

    Returns:
        Unpadded base64 transaction id
    """
    digest = sha256(build_message(method, path, time_now, animation_key))
    payload = build_payload(key_bytes, time_now, digest)
    return encode_transaction_id(payload, random_byte())
