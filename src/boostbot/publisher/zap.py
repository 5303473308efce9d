"""Zap request and receipt events (NIP-57) describing a boost payment."""

import json
from typing import Any

from .interface import ZapDetails
from .nostr import NostrSigner

ZAP_REQUEST_KIND = 9734
ZAP_RECEIPT_KIND = 9735

# Relay hints carried in zap tags and nevent pointers
RELAY_HINT_COUNT = 3

METADATA_TAG_NAMES = frozenset({"k", "i", "image"})


def split_post_tags(tags: list[list[str]]) -> tuple[list[list[str]], list[list[str]]]:
    """
    Separate a post's tags into pubkey mentions and podcast metadata.

    Hashtags belong to the note only and are dropped.

    Returns:
        Tuple of (mention tags, metadata tags)
    """
    mentions = [tag for tag in tags if tag and tag[0] == "p"]
    metadata = [tag for tag in tags if tag and tag[0] in METADATA_TAG_NAMES]
    return mentions, metadata


def build_zap_request(
    signer: NostrSigner,
    zap: ZapDetails,
    relays: list[str],
    metadata_tags: list[list[str]],
) -> tuple[dict[str, Any], str]:
    """
    Sign a zap request for a boost.

    The bot is both sender and recipient since the payment itself happened
    outside Nostr.

    Returns:
        Tuple of (signed event, description JSON of the unsigned request)
    """
    tags = [
        ["relays", *relays[:RELAY_HINT_COUNT]],
        ["amount", str(zap.amount_msat)],
        *metadata_tags,
        ["p", signer.public_key],
    ]
    event = signer.sign_event(ZAP_REQUEST_KIND, zap.message, tags, created_at=zap.created_at)
    description = json.dumps(
        {
            "kind": ZAP_REQUEST_KIND,
            "pubkey": event["pubkey"],
            "created_at": event["created_at"],
            "tags": tags,
            "content": zap.message,
        },
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return event, description


def zap_receipt_tags(
    signer: NostrSigner,
    zap: ZapDetails,
    relays: list[str],
    post_tags: list[list[str]],
    request_id: str,
    description: str,
) -> list[list[str]]:
    """Tags of the zap receipt that wraps a signed zap request."""
    mentions, metadata = split_post_tags(post_tags)
    tags = [
        *mentions,
        *metadata,
        ["p", signer.public_key],
        ["P", signer.public_key],
        ["amount", str(zap.amount_msat)],
        ["description", description],
        ["e", request_id],
    ]
    if zap.payment_hash:
        tags.append(["payment_hash", zap.payment_hash])
    tags.append(["relays", *relays[:RELAY_HINT_COUNT]])
    return tags
