"""FastAPI dependency injection for the boost aggregator and config."""

from typing import Optional

from ..boost.aggregator import BoostAggregator
from ..config import Config

# Global BoostAggregator instance (set during app startup)
_aggregator_instance: Optional[BoostAggregator] = None

# Global Config instance (set during app startup)
_config_instance: Optional[Config] = None


def set_aggregator_instance(aggregator: Optional[BoostAggregator]) -> None:
    """
    Set the global BoostAggregator instance.

    This is called during application startup to make the aggregator
    available to all API routes.

    Args:
        aggregator: The BoostAggregator instance
    """
    global _aggregator_instance
    _aggregator_instance = aggregator


def set_config_instance(config: Optional[Config]) -> None:
    """
    Set the global Config instance.

    Args:
        config: The Config instance
    """
    global _config_instance
    _config_instance = config


def get_aggregator() -> BoostAggregator:
    """
    Dependency to get the BoostAggregator instance.

    Returns:
        BoostAggregator instance

    Raises:
        RuntimeError: If the aggregator has not been set

    Example:
        ```python
        @router.post("/helipad-webhook")
        async def webhook(aggregator: BoostAggregator = Depends(get_aggregator)):
            await aggregator.handle_event(event)
        ```
    """
    if _aggregator_instance is None:
        raise RuntimeError("BoostAggregator instance not initialized")
    return _aggregator_instance


def get_config() -> Config:
    """Dependency to get the Config instance (defaults when unset)."""
    if _config_instance is None:
        return Config()
    return _config_instance
