r"""Configuration dataclass and defaults for the retry controller.

The retry settings travel inside the request options, next to the
transport fields. ``RetryConfig.from_options`` picks them out and merges
them over the defaults.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_RETRY_DELAY",
    "RETRY_OPTION_KEYS",
    "RetryConfig",
    "split_options",
]

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from aretry.strategies import http_or_network_error
from aretry.validation import validate_retry_params

if TYPE_CHECKING:
    from collections.abc import Mapping

    from aretry.strategies import RetryStrategyFunc

logger: logging.Logger = logging.getLogger(__name__)

# Number of retries after the initial attempt
DEFAULT_MAX_ATTEMPTS = 5

# Delay between two attempts, in milliseconds
DEFAULT_RETRY_DELAY = 5000

# Option keys consumed by the retry controller and never sent to the
# transport
RETRY_OPTION_KEYS = ("max_attempts", "retry_delay", "retry_strategy")


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for the retry controller.

    Args:
        max_attempts: Number of retries allowed after the initial attempt.
            Must be >= 0.
        retry_delay: Fixed delay in milliseconds between two attempts.
            Must be >= 0.
        retry_strategy: Function deciding whether an attempt's outcome
            should be retried.

    Example:
        ```pycon
        >>> from aretry.config import RetryConfig
        >>> config = RetryConfig()
        >>> config.max_attempts, config.retry_delay
        (5, 5000)
        >>> config.merge(max_attempts=2, retry_delay=None).max_attempts
        2

        ```
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY
    retry_strategy: RetryStrategyFunc = http_or_network_error

    def __post_init__(self) -> None:
        validate_retry_params(max_attempts=self.max_attempts, retry_delay=self.retry_delay)

    @property
    def retry_delay_seconds(self) -> float:
        r"""The retry delay converted to seconds."""
        return self.retry_delay / 1000

    def merge(self, **overrides: Any) -> RetryConfig:
        """Create a new config with specified parameters overridden.

        Only non-None override values are applied. A non-callable
        ``retry_strategy`` is ignored and the current strategy is kept.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new ``RetryConfig`` instance with overrides applied.
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        strategy = filtered_overrides.get("retry_strategy")
        if strategy is not None and not callable(strategy):
            logger.debug(f"Ignoring non-callable retry_strategy {strategy!r}")
            del filtered_overrides["retry_strategy"]
        return replace(self, **filtered_overrides)

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None) -> RetryConfig:
        """Build a config from request options, using defaults for the
        missing retry keys.

        Args:
            options: The request options. Keys other than the retry keys
                are ignored.

        Returns:
            The merged configuration.

        Example:
            ```pycon
            >>> from aretry.config import RetryConfig
            >>> config = RetryConfig.from_options({"url": "https://x.org", "retry_delay": 10})
            >>> config.max_attempts, config.retry_delay
            (5, 10)

            ```
        """
        options = options or {}
        return cls().merge(**{key: options.get(key) for key in RETRY_OPTION_KEYS})


def split_options(options: Mapping[str, Any] | None) -> tuple[dict[str, Any], RetryConfig]:
    """Split request options into transport options and retry config.

    Args:
        options: The request options.

    Returns:
        A tuple with the options to send to the transport and the retry
        configuration.

    Example:
        ```pycon
        >>> from aretry.config import split_options
        >>> transport_options, config = split_options(
        ...     {"url": "https://x.org", "max_attempts": 1}
        ... )
        >>> transport_options
        {'url': 'https://x.org'}
        >>> config.max_attempts
        1

        ```
    """
    options = dict(options or {})
    config = RetryConfig.from_options(options)
    transport_options = {k: v for k, v in options.items() if k not in RETRY_OPTION_KEYS}
    return transport_options, config
