"""BoostBot - relays Helipad boost webhooks to Nostr relays."""

__version__ = "1.0.0"
