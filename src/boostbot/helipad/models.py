"""Helipad wire payloads and the canonical payment split event."""

from dataclasses import asdict, dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel, Field


class PaymentInfo(BaseModel):
    """Lightning payment details attached to a Helipad event."""

    payment_hash: Optional[str] = None
    pubkey: Optional[str] = None
    custom_key: Optional[int] = None
    custom_value: Optional[str] = None
    fee_msat: Optional[int] = Field(None, description="Routing fee paid, only set on sent payments")
    reply_to_idx: Optional[int] = None


class HelipadWebhookPayload(BaseModel):
    """Webhook body as posted by Helipad, one per payment split."""

    index: Optional[int] = None
    time: int = Field(..., description="Event time in seconds since epoch")
    value_msat: int = Field(..., description="Amount of this split in millisats")
    value_msat_total: int = Field(..., description="Total amount of the boost in millisats")
    action: int = Field(..., description="Action code (2 = boost)")
    sender: Optional[str] = ""
    app: Optional[str] = ""
    message: Optional[str] = ""
    podcast: Optional[str] = ""
    episode: Optional[str] = ""
    tlv: Optional[Union[str, dict[str, Any]]] = None
    remote_podcast: Optional[str] = None
    remote_episode: Optional[str] = None
    reply_sent: Optional[bool] = None
    payment_info: Optional[PaymentInfo] = None


@dataclass(frozen=True)
class PaymentSplitEvent:
    """One split of a logical boost, normalized from a webhook delivery."""

    timestamp_seconds: int
    amount_msat: int
    total_amount_msat: int
    sender_label: str
    show_name: str
    episode_name: str
    action: int = 2
    message: Optional[str] = None
    app: Optional[str] = None
    fee_msat: Optional[int] = None
    payment_hash: Optional[str] = None
    remote_podcast: Optional[str] = None
    remote_episode: Optional[str] = None
    index: Optional[int] = None
    raw_metadata: Optional[dict[str, Any]] = None

    @property
    def sats(self) -> int:
        """Logical boost total in whole sats."""
        return self.total_amount_msat // 1000

    @property
    def split_sats(self) -> int:
        """This split's amount in whole sats."""
        return self.amount_msat // 1000

    @property
    def has_fee(self) -> bool:
        """True for the outbound split that paid routing fees."""
        return bool(self.fee_msat and self.fee_msat > 0)

    @property
    def is_music(self) -> bool:
        """True when the boost names a remote track (value-time-split music)."""
        return bool(
            self.remote_podcast
            and self.remote_podcast.strip()
            and self.remote_episode
            and self.remote_episode.strip()
        )

    @property
    def metadata(self) -> dict[str, Any]:
        return self.raw_metadata or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PaymentSplitEvent":
        """Rebuild an event from :meth:`to_dict` output, ignoring unknown keys."""
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        return cls(**known)
