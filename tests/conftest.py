"""Shared pytest fixtures for BoostBot tests."""

import asyncio
from pathlib import Path
from typing import Callable, Optional
from unittest.mock import AsyncMock

import bech32
import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from boostbot.api.app import create_app
from boostbot.api.dependencies import set_aggregator_instance, set_config_instance
from boostbot.boost import BoostAggregator, SessionStore, SimilarityChecker
from boostbot.config import Config
from boostbot.helipad.models import PaymentSplitEvent
from boostbot.metrics import MetricsCollector
from boostbot.publisher import LoggingPublisher, PublisherInterface, PublishReport, RelayResult


class FakeClock:
    """Settable epoch-seconds clock."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_npub(pubkey_hex: str) -> str:
    """Encode a hex public key as an npub."""
    return bech32.bech32_encode("npub", bech32.convertbits(bytes.fromhex(pubkey_hex), 8, 5))


def make_nsec(secret_hex: str) -> str:
    """Encode a hex secret key as an nsec."""
    return bech32.bech32_encode("nsec", bech32.convertbits(bytes.fromhex(secret_hex), 8, 5))


@pytest.fixture(scope="session")
def event_loop_policy():
    """Set event loop policy for async tests."""
    return asyncio.get_event_loop_policy()


@pytest.fixture
def clock() -> FakeClock:
    """Deterministic clock for stores and similarity checks."""
    return FakeClock()


@pytest.fixture
def make_split() -> Callable[..., PaymentSplitEvent]:
    """Factory for payment splits with sensible boost defaults."""

    def _make_split(
        timestamp: int = 1000,
        amount_msat: int = 100_000,
        total_msat: Optional[int] = None,
        fee_msat: Optional[int] = None,
        sender: str = "ChadF",
        show: str = "Test Show",
        episode: str = "Episode 1",
        message: Optional[str] = "Great show!",
        action: int = 2,
        **kwargs,
    ) -> PaymentSplitEvent:
        return PaymentSplitEvent(
            timestamp_seconds=timestamp,
            amount_msat=amount_msat,
            total_amount_msat=total_msat if total_msat is not None else 5_000_000,
            sender_label=sender,
            show_name=show,
            episode_name=episode,
            message=message,
            fee_msat=fee_msat,
            action=action,
            **kwargs,
        )

    return _make_split


@pytest.fixture
def metrics() -> MetricsCollector:
    """Metrics collector on an isolated registry."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def sessions_file(tmp_path: Path) -> Path:
    """Path for a temporary sessions snapshot."""
    return tmp_path / "boost-sessions.json"


@pytest.fixture
def mock_publisher() -> AsyncMock:
    """Publisher mock that reports success on one relay."""
    publisher = AsyncMock(spec=PublisherInterface)
    publisher.publish.return_value = PublishReport(
        event_id="e" * 64,
        results=[RelayResult(relay="wss://relay.test", success=True, message="")],
    )
    return publisher


@pytest.fixture
def aggregator_factory(metrics: MetricsCollector, mock_publisher: AsyncMock, sessions_file: Path):
    """Build aggregators with short grace windows sharing one snapshot file."""

    def _factory(grace_seconds: float = 0.2, publisher=None, **kwargs) -> BoostAggregator:
        store = kwargs.pop(
            "store",
            SessionStore(sessions_file=str(sessions_file), grace_seconds=grace_seconds),
        )
        return BoostAggregator(
            publisher=publisher or mock_publisher,
            store=store,
            grace_seconds=grace_seconds,
            metrics=metrics,
            **kwargs,
        )

    return _factory


@pytest.fixture(scope="function")
def test_config(sessions_file: Path) -> Config:
    """Create a test configuration."""
    return Config(
        api_host="127.0.0.1",
        api_port=4444,
        api_bearer_token=None,
        log_level="WARNING",
        log_format="text",
        test_mode=True,
        sessions_file=str(sessions_file),
        metrics_enabled=False,
    )


@pytest.fixture(scope="function")
def test_aggregator(metrics: MetricsCollector, sessions_file: Path) -> BoostAggregator:
    """Aggregator wired to a logging publisher, as in test mode."""
    return BoostAggregator(
        publisher=LoggingPublisher(),
        store=SessionStore(sessions_file=str(sessions_file)),
        similarity=SimilarityChecker(),
        metrics=metrics,
    )


@pytest.fixture(scope="function")
def test_app(test_aggregator: BoostAggregator, test_config: Config):
    """FastAPI test client with the aggregator registered."""
    set_aggregator_instance(test_aggregator)
    set_config_instance(test_config)
    with TestClient(create_app(enable_metrics=False)) as client:
        yield client
    set_aggregator_instance(None)
    set_config_instance(None)


@pytest.fixture(scope="function")
def test_app_with_auth(test_aggregator: BoostAggregator, test_config: Config):
    """FastAPI test client with bearer authentication."""
    set_aggregator_instance(test_aggregator)
    set_config_instance(test_config)
    with TestClient(create_app(enable_metrics=False, bearer_token="test-token-12345")) as client:
        yield client
    set_aggregator_instance(None)
    set_config_instance(None)


@pytest.fixture
def sample_helipad_payload() -> dict:
    """Helipad webhook body for a fee-bearing boost split."""
    return {
        "index": 1234,
        "time": 1_700_000_000,
        "value_msat": 4_000_000,
        "value_msat_total": 5_000_000,
        "action": 2,
        "sender": "ChadF",
        "app": "Fountain",
        "message": "Great episode!",
        "podcast": "Test Show",
        "episode": "Episode 1",
        "tlv": '{"feedID": 920666, "app_name": "Fountain", "itemID": "ep-guid-1"}',
        "remote_podcast": None,
        "remote_episode": None,
        "reply_sent": False,
        "payment_info": {
            "payment_hash": "ab" * 32,
            "pubkey": "02" + "cd" * 32,
            "custom_key": 7629169,
            "custom_value": "",
            "fee_msat": 12,
            "reply_to_idx": None,
        },
    }
