"""Unit tests for Nostr keys and event signing."""

import hashlib
import json

import pytest
from coincurve import PublicKeyXOnly

from boostbot.publisher.nostr import (
    NostrSigner,
    compute_event_id,
    decode_bech32_key,
    encode_nevent,
    npub_to_hex,
)
from tests.conftest import make_nsec

SECRET_ONE = (1).to_bytes(32, "big")
GENERATOR_X = "79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"


class TestBech32Keys:
    """Test NIP-19 key decoding."""

    def test_npub_to_hex(self):
        """Test a published npub decodes to its hex key."""
        npub = "npub10elfcs4fr0l0r8af98jlmgdh9c8tcxjvz9qkw038js35mp4dma8qzvjptg"
        assert npub_to_hex(npub) == "7e7e9c42a91bfef19fa929e5fda1b72e0ebc1a4c1141673e2794234d86addf4e"

    def test_nsec_decodes(self):
        """Test a published nsec decodes to its secret bytes."""
        nsec = "nsec1vl029mgpspedva04g90vltkh6fvh240zqtv9k0t9af8935ke9laqsnlfe5"
        assert decode_bech32_key(nsec, "nsec").hex() == (
            "67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa"
        )

    def test_wrong_prefix(self):
        """Test an nsec is not accepted where an npub is expected."""
        with pytest.raises(ValueError, match="Invalid npub"):
            npub_to_hex(make_nsec("01" * 32))

    def test_garbage(self):
        """Test non-bech32 input is rejected."""
        with pytest.raises(ValueError):
            npub_to_hex("not-a-key")

    def test_wrong_length(self):
        """Test keys that are not 32 bytes are rejected."""
        import bech32

        short = bech32.bech32_encode("npub", bech32.convertbits(b"\x01" * 20, 8, 5))
        with pytest.raises(ValueError, match="length"):
            npub_to_hex(short)


class TestEventId:
    """Test NIP-01 event id computation."""

    def test_matches_serialization(self):
        """Test the id is the SHA-256 of the compact JSON array."""
        tags = [["t", "boost"]]
        expected = hashlib.sha256(
            json.dumps([0, "ab" * 32, 1700000000, 1, tags, "hi ⚡"], separators=(",", ":"), ensure_ascii=False)
            .encode("utf-8")
        ).hexdigest()

        assert compute_event_id("ab" * 32, 1700000000, 1, tags, "hi ⚡") == expected

    def test_unicode_not_escaped(self):
        """Test non-ASCII content changes the id as raw UTF-8."""
        escaped = hashlib.sha256(
            json.dumps([0, "ab" * 32, 1, 1, [], "⚡"], separators=(",", ":")).encode()
        ).hexdigest()

        assert compute_event_id("ab" * 32, 1, 1, [], "⚡") != escaped


class TestNostrSigner:
    """Test event signing."""

    def test_public_key(self):
        """Test the x-only public key of secret 1 is the generator."""
        assert NostrSigner(SECRET_ONE).public_key == GENERATOR_X

    def test_from_nsec(self):
        """Test signers can be built from an nsec."""
        signer = NostrSigner.from_nsec(make_nsec(SECRET_ONE.hex()))
        assert signer.public_key == GENERATOR_X

    def test_sign_event(self):
        """Test a signed event carries a valid Schnorr signature over its id."""
        signer = NostrSigner(SECRET_ONE)
        event = signer.sign_event(1, "⚡ 5000 sats", [["t", "boost"]], created_at=1700000000)

        assert event["pubkey"] == GENERATOR_X
        assert event["created_at"] == 1700000000
        assert event["kind"] == 1
        assert event["id"] == compute_event_id(GENERATOR_X, 1700000000, 1, [["t", "boost"]], "⚡ 5000 sats")
        assert len(event["sig"]) == 128

        public_key = PublicKeyXOnly(bytes.fromhex(event["pubkey"]))
        assert public_key.verify(bytes.fromhex(event["sig"]), bytes.fromhex(event["id"])) is True

    def test_created_at_defaults_to_now(self):
        """Test events are timestamped when no time is given."""
        event = NostrSigner(SECRET_ONE).sign_event(1, "hi", [])
        assert event["created_at"] > 1700000000


class TestNevent:
    """Test NIP-19 event pointers."""

    def test_layout(self):
        """Test the TLV holds id, relay hints and kind in order."""
        import bech32

        event_id = "cd" * 32
        tlv = (
            bytes([0, 32])
            + bytes.fromhex(event_id)
            + bytes([1, 15])
            + b"wss://relay.one"
            + bytes([3, 4])
            + (9735).to_bytes(4, "big")
        )
        expected = bech32.bech32_encode("nevent", bech32.convertbits(tlv, 8, 5))

        assert encode_nevent(event_id, ["wss://relay.one"], 9735) == expected

    def test_id_only(self):
        """Test a pointer without hints or kind."""
        import bech32

        event_id = "01" * 32
        data = bech32.convertbits(bytes([0, 32]) + bytes.fromhex(event_id), 8, 5)

        assert encode_nevent(event_id) == bech32.bech32_encode("nevent", data)
        assert encode_nevent(event_id).startswith("nevent1")
