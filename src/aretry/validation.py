r"""Parameter validation utilities for the retry controller.

This module provides validation functions for retry parameters to ensure
they meet the required constraints before a request is started.
"""

from __future__ import annotations

__all__ = ["validate_retry_params"]


def validate_retry_params(max_attempts: int, retry_delay: float) -> None:
    """Validate retry parameters.

    Args:
        max_attempts: Maximum number of retries after the initial attempt.
            Must be an integer >= 0. A value of 0 means only the initial
            attempt is made.
        retry_delay: Delay in milliseconds between two attempts.
            Must be >= 0.

    Raises:
        TypeError: If max_attempts is not an integer or retry_delay is
            not a number.
        ValueError: If max_attempts or retry_delay are negative.

    Example:
        ```pycon
        >>> from aretry.validation import validate_retry_params
        >>> validate_retry_params(max_attempts=5, retry_delay=5000)
        >>> validate_retry_params(max_attempts=-1, retry_delay=0)  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        ValueError: max_attempts must be >= 0, got -1

        ```
    """
    if isinstance(max_attempts, bool) or not isinstance(max_attempts, int):
        msg = f"max_attempts must be an int, got {type(max_attempts).__name__}"
        raise TypeError(msg)
    if isinstance(retry_delay, bool) or not isinstance(retry_delay, (int, float)):
        msg = f"retry_delay must be a number, got {type(retry_delay).__name__}"
        raise TypeError(msg)
    if max_attempts < 0:
        msg = f"max_attempts must be >= 0, got {max_attempts}"
        raise ValueError(msg)
    if retry_delay < 0:
        msg = f"retry_delay must be >= 0, got {retry_delay}"
        raise ValueError(msg)
