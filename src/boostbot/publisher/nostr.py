"""Nostr key handling and event signing (NIP-01, NIP-19)."""

import hashlib
import json
import os
import time
from typing import Any, Optional

import bech32
from coincurve import PrivateKey


def decode_bech32_key(value: str, expected_prefix: str) -> bytes:
    """
    Decode a NIP-19 ``npub``/``nsec`` string to its 32 raw bytes.

    Args:
        value: Bech32 encoded key
        expected_prefix: Human readable part, e.g. "npub"

    Returns:
        32 key bytes

    Raises:
        ValueError: If the string is not a valid key with that prefix
    """
    hrp, data = bech32.bech32_decode(value.strip())
    if hrp != expected_prefix or data is None:
        raise ValueError(f"Invalid {expected_prefix} format")
    decoded = bech32.convertbits(data, 5, 8, False)
    if decoded is None or len(decoded) != 32:
        raise ValueError(f"Invalid {expected_prefix} length")
    return bytes(decoded)


def npub_to_hex(npub: str) -> str:
    """Convert an npub to a 64 character hex public key."""
    return decode_bech32_key(npub, "npub").hex()


def encode_nevent(event_id: str, relays: list[str] = (), kind: Optional[int] = None) -> str:
    """
    Encode an event pointer as a NIP-19 ``nevent``.

    Args:
        event_id: 64 character hex event id
        relays: Relay hints
        kind: Event kind, omitted when None

    Returns:
        Bech32 ``nevent1...`` string
    """
    tlv = bytearray([0, 32])
    tlv += bytes.fromhex(event_id)
    for relay in relays:
        encoded = relay.encode("utf-8")
        if len(encoded) > 255:
            continue
        tlv += bytes([1, len(encoded)]) + encoded
    if kind is not None:
        tlv += bytes([3, 4]) + kind.to_bytes(4, "big")
    return bech32.bech32_encode("nevent", bech32.convertbits(tlv, 8, 5))


def compute_event_id(
    pubkey: str, created_at: int, kind: int, tags: list[list[str]], content: str
) -> str:
    """SHA-256 of the NIP-01 serialized event."""
    serialized = json.dumps(
        [0, pubkey, created_at, kind, tags, content],
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


class NostrSigner:
    """Signs Nostr events with a BIP-340 Schnorr key."""

    def __init__(self, secret_key: bytes):
        """
        Initialize signer.

        Args:
            secret_key: 32 byte secp256k1 secret key
        """
        self._key = PrivateKey(secret_key)
        self.public_key = self._key.public_key_xonly.format().hex()

    @classmethod
    def from_nsec(cls, nsec: str) -> "NostrSigner":
        """Create a signer from a bech32 ``nsec``."""
        return cls(decode_bech32_key(nsec, "nsec"))

    def sign_event(
        self,
        kind: int,
        content: str,
        tags: list[list[str]],
        created_at: Optional[int] = None,
    ) -> dict[str, Any]:
        """
        Build and sign an event.

        Returns:
            Event dict ready to be sent to relays
        """
        if created_at is None:
            created_at = int(time.time())
        event_id = compute_event_id(self.public_key, created_at, kind, tags, content)
        sig = self._key.sign_schnorr(bytes.fromhex(event_id), os.urandom(32))
        return {
            "id": event_id,
            "pubkey": self.public_key,
            "created_at": created_at,
            "kind": kind,
            "tags": tags,
            "content": content,
            "sig": sig.hex(),
        }
