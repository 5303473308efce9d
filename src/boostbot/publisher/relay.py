"""Publisher fanning signed Nostr events out to relays over websockets."""

import asyncio
import json
import logging
from typing import Any, Optional

import aiohttp

from ..constants import (
    DEFAULT_PUBLISH_TIMEOUT_SECONDS,
    PUBLISH_ATTEMPTS,
    PUBLISH_RETRY_DELAY_SECONDS,
)
from .interface import PublishReport, PublisherInterface, RelayResult, ZapDetails
from .nostr import NostrSigner, encode_nevent
from .zap import (
    RELAY_HINT_COUNT,
    ZAP_RECEIPT_KIND,
    build_zap_request,
    split_post_tags,
    zap_receipt_tags,
)

logger = logging.getLogger(__name__)

NOTE_KIND = 1


class RelayRejectedError(Exception):
    """Raised when a relay answers an EVENT with a negative OK."""

    pass


class RelayPublisher(PublisherInterface):
    """Publishes kind-1 notes, with optional zap events, to a list of Nostr relays."""

    def __init__(
        self,
        signer: NostrSigner,
        relays: list[str],
        timeout: float = DEFAULT_PUBLISH_TIMEOUT_SECONDS,
        attempts: int = PUBLISH_ATTEMPTS,
        retry_delay: float = PUBLISH_RETRY_DELAY_SECONDS,
    ):
        """
        Initialize relay publisher.

        Args:
            signer: Signer holding the bot's key
            relays: Relay websocket URLs
            timeout: Per-attempt timeout in seconds
            attempts: Delivery attempts per relay
            retry_delay: Pause between attempts in seconds
        """
        self.signer = signer
        self.relays = relays
        self.timeout = timeout
        self.attempts = max(1, attempts)
        self.retry_delay = retry_delay
        self._session: Optional[aiohttp.ClientSession] = None

        logger.info(
            f"RelayPublisher initialized: {len(relays)} relays, "
            f"pubkey={signer.public_key[:8]}..., timeout={timeout}s"
        )

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def publish(
        self, content: str, tags: list[list[str]], zap: Optional[ZapDetails] = None
    ) -> PublishReport:
        """
        Sign a note and deliver it to every relay concurrently.

        With zap details a zap request and a zap receipt are published first
        and the note links the receipt with a ``nostr:nevent`` reference.
        The report covers the note's delivery.
        """
        request_id = receipt_id = None
        if zap is not None:
            request_id, receipt_id = await self._publish_zap(content, tags, zap)
            nevent = encode_nevent(receipt_id, self.relays[:RELAY_HINT_COUNT], ZAP_RECEIPT_KIND)
            content = f"{content}\n\nnostr:{nevent}"

        event = self.signer.sign_event(NOTE_KIND, content, tags)
        logger.info(f"Attempting to publish to {len(self.relays)} relays", extra={"event_id": event["id"]})

        results = await self._broadcast(event)
        report = PublishReport(
            event_id=event["id"],
            results=results,
            zap_request_id=request_id,
            zap_receipt_id=receipt_id,
        )

        logger.info(
            f"Publish results: {report.successful} successful, {report.failed} failed "
            f"out of {len(self.relays)} relays"
        )
        return report

    async def _publish_zap(
        self, content: str, tags: list[list[str]], zap: ZapDetails
    ) -> tuple[str, str]:
        """
        Publish the zap request, then the receipt wrapping it.

        Returns:
            Tuple of (zap request id, zap receipt id)
        """
        _, metadata_tags = split_post_tags(tags)
        request, description = build_zap_request(self.signer, zap, self.relays, metadata_tags)
        request_report = PublishReport(event_id=request["id"], results=await self._broadcast(request))
        if not request_report.success:
            logger.warning("No relay accepted the zap request", extra=request_report.to_dict())

        receipt = self.signer.sign_event(
            ZAP_RECEIPT_KIND,
            content,
            zap_receipt_tags(self.signer, zap, self.relays, tags, request["id"], description),
        )
        receipt_report = PublishReport(event_id=receipt["id"], results=await self._broadcast(receipt))
        if not receipt_report.success:
            logger.warning("No relay accepted the zap receipt", extra=receipt_report.to_dict())

        logger.info(
            f"Published zap receipt for {zap.amount_msat // 1000} sats",
            extra={"zap_request_id": request["id"], "zap_receipt_id": receipt["id"]},
        )
        return request["id"], receipt["id"]

    async def _broadcast(self, event: dict[str, Any]) -> list[RelayResult]:
        results = await asyncio.gather(*(self._publish_to_relay(url, event) for url in self.relays))
        return list(results)

    async def _publish_to_relay(self, url: str, event: dict[str, Any]) -> RelayResult:
        """
        Deliver an event to one relay with retry.

        Args:
            url: Relay websocket URL
            event: Signed event

        Returns:
            Result for this relay (never raises)
        """
        last_error = "no attempt made"

        for attempt in range(self.attempts):
            try:
                message = await asyncio.wait_for(self._send_event(url, event), timeout=self.timeout)
                logger.info(f"Successfully published to {url}")
                return RelayResult(relay=url, success=True, message=message)

            except RelayRejectedError as e:
                # A rejection is final, retrying the same event would be rejected again
                logger.warning(f"Relay {url} rejected event: {e}")
                return RelayResult(relay=url, success=False, message=str(e))
            except asyncio.TimeoutError:
                last_error = "connection timed out"
                logger.warning(f"Relay timeout (attempt {attempt + 1}/{self.attempts}): {url}")
            except Exception as e:
                last_error = f"{type(e).__name__}: {e}"
                logger.warning(f"Relay error (attempt {attempt + 1}/{self.attempts}): {url} - {last_error}")

            if attempt < self.attempts - 1:
                await asyncio.sleep(self.retry_delay)

        logger.error(f"Failed to publish to {url} after {self.attempts} attempts: {last_error}")
        return RelayResult(relay=url, success=False, message=last_error)

    async def _send_event(self, url: str, event: dict[str, Any]) -> str:
        """Send an EVENT frame and wait for the relay's OK."""
        session = self._get_session()
        async with session.ws_connect(url) as ws:
            await ws.send_str(json.dumps(["EVENT", event]))

            async for msg in ws:
                if msg.type != aiohttp.WSMsgType.TEXT:
                    break
                try:
                    frame = json.loads(msg.data)
                except ValueError:
                    continue
                if not isinstance(frame, list) or len(frame) < 3:
                    continue
                if frame[0] == "OK" and frame[1] == event["id"]:
                    reason = frame[3] if len(frame) > 3 else ""
                    if frame[2]:
                        return reason
                    raise RelayRejectedError(reason or "rejected")

        raise ConnectionError("relay closed connection before acknowledging event")

    async def close(self) -> None:
        """Close websocket client session."""
        if self._session and not self._session.closed:
            await self._session.close()
        logger.debug("RelayPublisher closed")
