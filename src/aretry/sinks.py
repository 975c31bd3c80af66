r"""Diagnostic sinks receiving the retry controller's progress messages.

A sink is any object with a ``log(*args)`` method. The controller never
looks at what it returns.
"""

from __future__ import annotations

__all__ = ["DiagnosticSink", "LoggingSink", "NullSink"]

import logging
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DiagnosticSink(Protocol):
    """Protocol for objects receiving diagnostic messages."""

    def log(self, *args: Any) -> None: ...


class LoggingSink:
    """Forward diagnostic messages to a standard library logger.

    The arguments are converted to strings and joined with spaces.

    Args:
        logger: The logger to write to. Defaults to the
            ``aretry.diagnostics`` logger.
        level: The logging level of the messages.

    Example:
        ```pycon
        >>> import logging
        >>> from aretry.sinks import LoggingSink
        >>> sink = LoggingSink(level=logging.DEBUG)
        >>> sink.log("[aretry]", "Retrying...")

        ```
    """

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self.logger = logger if logger is not None else logging.getLogger("aretry.diagnostics")
        self.level = level

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(logger={self.logger.name!r}, level={self.level})"

    def log(self, *args: Any) -> None:
        self.logger.log(self.level, " ".join(str(arg) for arg in args))


class NullSink:
    """Discard all diagnostic messages."""

    def log(self, *args: Any) -> None:
        pass
