"""
Builds the post text and Nostr tags for a finalized boost session.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..constants import LNBEATS_ALBUM_URL, PODCAST_INDEX_SHOW_URL, SOCIAL_HASHTAGS
from ..helipad.models import PaymentSplitEvent
from ..podcastindex import PodcastIndexClient
from ..publisher.interface import ZapDetails
from ..publisher.nostr import npub_to_hex

logger = logging.getLogger(__name__)

PLATFORM_SUFFIX = re.compile(r"\s+(via|on)\s+\w+$", re.IGNORECASE)
PLATFORM_MARKER = re.compile(r"\s+via\s+\w+", re.IGNORECASE)


@dataclass
class RenderedBoost:
    """Post text plus structured tags handed to the publisher."""

    content: str
    tags: list[list[str]]
    artist: Optional[str] = None
    zap: Optional[ZapDetails] = None


@dataclass
class MentionDirectory:
    """Show hosts and display names that map to Nostr npubs."""

    show_npubs: dict[str, list[str]] = field(default_factory=dict)
    name_npubs: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: Optional[str]) -> "MentionDirectory":
        """
        Load mentions from a JSON file.

        The file holds ``{"shows": {show: [npub, ...]}, "names": {name: npub}}``.
        A missing or unreadable file yields an empty directory.
        """
        if not path:
            return cls()

        try:
            with open(Path(path), "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning(f"Mentions file not found: {path}")
            return cls()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load mentions file {path}: {e}")
            return cls()

        if not isinstance(data, dict):
            logger.error(f"Failed to load mentions file {path}: expected a JSON object")
            return cls()

        shows = data.get("shows") or {}
        names = data.get("names") or {}
        if not isinstance(shows, dict) or not isinstance(names, dict):
            logger.error(f"Failed to load mentions file {path}: shows and names must be objects")
            return cls()

        directory = cls(
            show_npubs={str(k): [v] if isinstance(v, str) else list(v) for k, v in shows.items()},
            name_npubs={str(k).lower(): str(v) for k, v in names.items()},
        )
        logger.info(
            f"Loaded mentions: {len(directory.show_npubs)} shows, {len(directory.name_npubs)} names"
        )
        return directory

    def npubs_for_show(self, show_name: str) -> list[str]:
        """Host npubs of a show, matched exactly then case-insensitively."""
        if not show_name:
            return []
        npubs = self.show_npubs.get(show_name)
        if npubs is not None:
            return npubs

        wanted = show_name.strip().lower()
        for mapped, npubs in self.show_npubs.items():
            if mapped.strip().lower() == wanted:
                return npubs
        return []


def strip_platform_suffix(name: str) -> str:
    """Drop a trailing "via X" / "on X" from a value recipient name."""
    return PLATFORM_SUFFIX.sub("", name).strip()


class BoostContentRenderer:
    """Renders a session's winning split into post content and tags."""

    def __init__(
        self,
        mentions: Optional[MentionDirectory] = None,
        podcast_index: Optional[PodcastIndexClient] = None,
    ):
        """
        Initialize renderer.

        Args:
            mentions: Host and name mentions; empty when None
            podcast_index: Client used to resolve show GUIDs without a feed id
        """
        self.mentions = mentions or MentionDirectory()
        self.podcast_index = podcast_index

    async def render(
        self, winner: PaymentSplitEvent, all_splits: list[PaymentSplitEvent]
    ) -> RenderedBoost:
        """
        Build post content and tags.

        Args:
            winner: Representative split of the session
            all_splits: Every split seen for the session

        Returns:
            Rendered post
        """
        splits = all_splits or [winner]
        tags: list[list[str]] = []
        seen_pubkeys: set[str] = set()

        message = (winner.message or "").strip()
        if message:
            message = self._apply_name_mentions(message, tags, seen_pubkeys)

        host_npubs = self.mentions.npubs_for_show(winner.show_name)
        self._add_pubkey_tags(host_npubs, tags, seen_pubkeys)

        content = f"⚡ {winner.sats} sats"
        app_name = winner.metadata.get("app_name")
        if isinstance(app_name, str) and app_name.strip():
            content += f"\n📱 via {app_name.strip()}"
        if message:
            content = f"{message}\n\n{content}"

        artist, music_feed_guid = self._find_artist(winner, splits)
        if winner.is_music and music_feed_guid:
            link = f"{LNBEATS_ALBUM_URL}/{music_feed_guid}"
        else:
            link = await self._show_link(winner)
        if link:
            content += f"\n\n{link}"

        if host_npubs:
            content += "\n\n" + " ".join(f"nostr:{npub}" for npub in host_npubs)

        tags.extend(self._metadata_tags(splits))
        tags.extend(["t", tag] for tag in SOCIAL_HASHTAGS)

        zap = ZapDetails(
            amount_msat=winner.total_amount_msat,
            message=winner.message or "",
            created_at=winner.timestamp_seconds,
            payment_hash=winner.payment_hash,
        )
        return RenderedBoost(content=content, tags=tags, artist=artist, zap=zap)

    def _apply_name_mentions(
        self, message: str, tags: list[list[str]], seen_pubkeys: set[str]
    ) -> str:
        """Replace known names with ``nostr:`` mentions; ``name++`` stays visible."""
        for name, npub in self.mentions.name_npubs.items():
            pattern = re.compile(rf"(?<!\w){re.escape(name)}(\+\+)?(?!\w)", re.IGNORECASE)
            if not pattern.search(message):
                continue

            message = pattern.sub(
                lambda m: m.group(0) if m.group(1) else f"nostr:{npub}", message
            )
            self._add_pubkey_tags([npub], tags, seen_pubkeys)
        return message

    @staticmethod
    def _add_pubkey_tags(npubs: list[str], tags: list[list[str]], seen_pubkeys: set[str]) -> None:
        for npub in npubs:
            try:
                pubkey = npub_to_hex(npub)
            except ValueError as e:
                logger.error(f"Failed to decode npub {npub}: {e}")
                continue
            if pubkey not in seen_pubkeys:
                tags.append(["p", pubkey, "", "mention"])
                seen_pubkeys.add(pubkey)

    async def _show_link(self, winner: PaymentSplitEvent) -> Optional[str]:
        metadata = winner.metadata
        feed_id = metadata.get("feedID")
        if feed_id:
            return f"{PODCAST_INDEX_SHOW_URL}/{feed_id}"

        show_guid = metadata.get("guid")
        if not show_guid or self.podcast_index is None:
            return None

        logger.info(f"No feedID found, looking up show by GUID: {show_guid}")
        feed_id = await self.podcast_index.lookup_feed_id_by_guid(str(show_guid))
        if feed_id:
            return f"{PODCAST_INDEX_SHOW_URL}/{feed_id}"

        logger.warning(f"Could not find feedID for GUID {show_guid}, no show link will be included")
        return None

    @staticmethod
    def _find_artist(
        winner: PaymentSplitEvent, splits: list[PaymentSplitEvent]
    ) -> tuple[Optional[str], Optional[str]]:
        """
        Find the artist and music feed GUID of a music boost.

        The artist's split names its recipient like "Artist via Wavlake".
        Without one, the winner's own recipient name is used.
        """
        if not winner.is_music:
            return None, None

        for split in splits:
            name = split.metadata.get("name")
            if isinstance(name, str) and PLATFORM_MARKER.search(name):
                artist = strip_platform_suffix(name)
                logger.info(f"Found artist from split: {artist} (from {name!r})")
                return artist, split.metadata.get("remote_feed_guid")

        name = winner.metadata.get("name")
        artist = strip_platform_suffix(name) if isinstance(name, str) else winner.remote_podcast
        return artist, winner.metadata.get("remote_feed_guid")

    @staticmethod
    def _metadata_tags(splits: list[PaymentSplitEvent]) -> list[list[str]]:
        """Podcast GUID and image tags merged across every split."""
        tags: list[list[str]] = []
        seen: set[str] = set()
        has_image = False

        def add(kind: str, guid_key: str, value: Any, url: str) -> None:
            if guid_key in seen:
                return
            seen.add(guid_key)
            tags.append(["k", kind])
            tags.append(["i", f"{kind}:{value}", url])

        for split in splits:
            meta = split.metadata
            if not meta:
                continue
            url = meta.get("url") or meta.get("boost_link") or ""

            item_guid = meta.get("itemID") or meta.get("episode_guid") or meta.get("guid")
            if item_guid:
                add("podcast:item:guid", f"item:{item_guid}", item_guid, url)

            feed_guid = meta.get("feedID") or meta.get("podcast_guid") or meta.get("feed_guid")
            if feed_guid:
                add("podcast:guid", f"feed:{feed_guid}", feed_guid, url)

            if meta.get("publisher_guid"):
                publisher_guid = meta["publisher_guid"]
                add("podcast:publisher:guid", f"publisher:{publisher_guid}", publisher_guid, meta.get("url") or "")

            if meta.get("image") and not has_image:
                tags.append(["image", meta["image"]])
                has_image = True

            if meta.get("remote_feed_guid"):
                remote_feed = meta["remote_feed_guid"]
                add("podcast:guid", f"remote_feed:{remote_feed}", remote_feed, meta.get("url") or "")

            if meta.get("remote_item_guid"):
                remote_item = meta["remote_item_guid"]
                add("podcast:item:guid", f"remote_item:{remote_item}", remote_item, meta.get("url") or "")

        return tags
