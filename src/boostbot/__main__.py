"""Main application entry point."""

import asyncio
import logging
from typing import Optional

import uvicorn

from .api.app import create_app
from .api.dependencies import set_aggregator_instance, set_config_instance
from .boost import (
    BoostAggregator,
    BoostContentRenderer,
    MentionDirectory,
    SessionStore,
    SimilarityChecker,
)
from .config import Config
from .helipad import BoostFilter
from .metrics import get_metrics
from .podcastindex import PodcastIndexClient
from .publisher import LoggingPublisher, NostrSigner, PublisherInterface, RelayPublisher

logger = logging.getLogger(__name__)


class Application:
    """Main application controller."""

    def __init__(self, config: Config):
        """
        Initialize application.

        Args:
            config: Application configuration
        """
        self.config = config
        self.publisher: Optional[PublisherInterface] = None
        self.podcast_index: Optional[PodcastIndexClient] = None
        self.aggregator: Optional[BoostAggregator] = None
        self.api_server_task: Optional[asyncio.Task] = None
        self.running = False
        self._stopped = False

    def _create_publisher(self) -> PublisherInterface:
        """Relay publisher when a key is configured, logging publisher otherwise."""
        if self.config.test_mode:
            logger.info("Test mode enabled - boosts will be logged, not posted")
            return LoggingPublisher(relays=self.config.relays)

        if not self.config.nostr_nsec:
            logger.warning("No Nostr key configured - falling back to test mode")
            return LoggingPublisher(relays=self.config.relays)

        signer = NostrSigner.from_nsec(self.config.nostr_nsec)
        return RelayPublisher(
            signer=signer,
            relays=self.config.relays,
            timeout=self.config.publish_timeout_seconds,
        )

    def build_aggregator(self) -> BoostAggregator:
        """Wire the aggregator and its collaborators from configuration."""
        self.publisher = self._create_publisher()

        if self.config.podcast_index_enabled:
            self.podcast_index = PodcastIndexClient(
                api_key=self.config.podcast_index_api_key,
                api_secret=self.config.podcast_index_api_secret,
            )
        else:
            logger.info("Podcast Index credentials not configured - GUID lookups disabled")

        if not self.config.allowed_senders:
            logger.warning("No allowed senders configured - boosts from every sender will be posted")

        store = SessionStore(
            sessions_file=self.config.sessions_file,
            bucket_seconds=self.config.bucket_seconds,
            grace_seconds=self.config.grace_seconds,
            finalized_retention_seconds=self.config.finalized_retention_seconds,
        )
        similarity = SimilarityChecker(
            window_seconds=self.config.duplicate_window_seconds,
            compare_count=self.config.duplicate_compare_count,
            max_posts=self.config.recent_post_cap,
            threshold=self.config.similarity_threshold,
        )
        renderer = BoostContentRenderer(
            mentions=MentionDirectory.from_file(self.config.mentions_file),
            podcast_index=self.podcast_index,
        )

        return BoostAggregator(
            publisher=self.publisher,
            renderer=renderer,
            store=store,
            similarity=similarity,
            boost_filter=BoostFilter(self.config.allowed_senders),
            grace_seconds=self.config.grace_seconds,
            metrics=get_metrics(),
        )

    async def start(self) -> None:
        """Start the application."""
        logger.info("Starting BoostBot")
        logger.info(f"\n{self.config.display()}")

        self.aggregator = self.build_aggregator()

        logger.info("Restoring boost sessions...")
        restored = await self.aggregator.start()
        logger.info(f"Restored {restored} boost sessions")

        # Make aggregator and config available to API routes
        set_aggregator_instance(self.aggregator)
        set_config_instance(self.config)

        logger.info(f"Starting API server on {self.config.api_host}:{self.config.api_port}")
        self.api_server_task = asyncio.create_task(self._run_api_server())

        self.running = True
        logger.info("Application started successfully")

    async def stop(self) -> None:
        """Stop the application."""
        if self._stopped:
            return
        self._stopped = True

        logger.info("Stopping BoostBot...")
        self.running = False

        if self.api_server_task:
            self.api_server_task.cancel()
            try:
                await self.api_server_task
            except asyncio.CancelledError:
                pass

        if self.aggregator:
            logger.info("Saving in-flight boost sessions...")
            await self.aggregator.stop()

        if self.publisher:
            await self.publisher.close()

        if self.podcast_index:
            await self.podcast_index.close()

        logger.info("Application stopped")

    async def _run_api_server(self) -> None:
        """Run the FastAPI server."""
        try:
            app = create_app(
                title=self.config.api_title,
                version=self.config.api_version,
                enable_metrics=self.config.metrics_enabled,
                bearer_token=self.config.api_bearer_token,
            )

            config = uvicorn.Config(
                app,
                host=self.config.api_host,
                port=self.config.api_port,
                log_level="info",
                access_log=True,
            )

            server = uvicorn.Server(config)
            await server.serve()

        except asyncio.CancelledError:
            logger.info("API server shutting down...")
            raise
        except Exception as e:
            logger.error(f"API server error: {e}", exc_info=True)
            get_metrics().record_error("api_server", "server_failed")

    async def run(self) -> None:
        """Run the application until interrupted."""
        try:
            await self.start()

            while self.running:
                await asyncio.sleep(1)

        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        except Exception as e:
            logger.error(f"Application error: {e}", exc_info=True)
        finally:
            await self.stop()


def main() -> None:
    """Main entry point - delegates to CLI."""
    from .cli import cli
    cli()


if __name__ == "__main__":
    main()
