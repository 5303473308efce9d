"""Podcast Index API client used to resolve show GUIDs to feed ids."""

import hashlib
import logging
import time
from typing import Optional

import httpx

from . import __version__
from .constants import PODCAST_INDEX_API_URL

logger = logging.getLogger(__name__)


class PodcastIndexClient:
    """Minimal async client for the Podcast Index API."""

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        base_url: str = PODCAST_INDEX_API_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize client.

        Args:
            api_key: Podcast Index API key
            api_secret: Podcast Index API secret
            base_url: API root URL
            timeout: HTTP request timeout in seconds
            client: Pre-built HTTP client (tests inject a mock transport)
        """
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)

    def _auth_headers(self) -> dict[str, str]:
        api_time = str(int(time.time()))
        digest = hashlib.sha1(
            (self.api_key + self.api_secret + api_time).encode("utf-8")
        ).hexdigest()
        return {
            "User-Agent": f"BoostBot/{__version__}",
            "X-Auth-Date": api_time,
            "X-Auth-Key": self.api_key,
            "Authorization": digest,
        }

    async def lookup_feed_id_by_guid(self, guid: str) -> Optional[int]:
        """
        Look up a podcast feed id by its podcast GUID.

        Returns:
            Feed id, or None when not found or on any API error
        """
        url = f"{self.base_url}/podcasts/byguid"
        logger.info(f"Looking up feedID for GUID: {guid}")

        try:
            response = await self.client.get(url, params={"guid": guid}, headers=self._auth_headers())
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Podcast Index API error: {e.response.status_code} for GUID {guid}")
            return None
        except httpx.TimeoutException:
            logger.warning(f"Podcast Index API timeout for GUID {guid}")
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error looking up feedID by GUID {guid}: {type(e).__name__}: {e}")
            return None

        if not isinstance(data, dict):
            data = {}
        feed = data.get("feed")
        if str(data.get("status")).lower() == "true" and isinstance(feed, dict) and feed.get("id"):
            logger.info(f"Found feedID {feed['id']} for GUID {guid}")
            return feed["id"]

        logger.warning(f"No podcast found for GUID: {guid}")
        return None

    async def close(self) -> None:
        """Close HTTP client connection pool."""
        await self.client.aclose()
