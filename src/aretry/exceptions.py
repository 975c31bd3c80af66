r"""Define the exceptions raised or delivered by the retry controller."""

from __future__ import annotations

__all__ = ["AbortedError", "HandleUnavailableError"]


class AbortedError(RuntimeError):
    """Error delivered to the terminal callback when a request is
    aborted.

    Args:
        message: A descriptive error message.

    Example:
        ```pycon
        >>> from aretry.exceptions import AbortedError
        >>> raise AbortedError()
        Traceback (most recent call last):
            ...
        aretry.exceptions.AbortedError: Aborted

        ```
    """

    def __init__(self, message: str = "Aborted") -> None:
        super().__init__(message)
        self.message = message


class HandleUnavailableError(RuntimeError):
    """Exception raised when a handle operation is called while no
    transport attempt is in flight.

    This happens during the delay between two attempts, and after the
    request has been resolved.

    Args:
        operation: The name of the operation that was called.

    Example:
        ```pycon
        >>> from aretry.exceptions import HandleUnavailableError
        >>> raise HandleUnavailableError("write")
        Traceback (most recent call last):
            ...
        aretry.exceptions.HandleUnavailableError: Cannot call 'write': no transport attempt is in flight

        ```
    """

    def __init__(self, operation: str) -> None:
        super().__init__(f"Cannot call '{operation}': no transport attempt is in flight")
        self.operation = operation
