r"""Forward stream and event operations to the active transport
handle."""

from __future__ import annotations

__all__ = ["HandleFacade"]

from typing import TYPE_CHECKING, Any

from aretry.exceptions import HandleUnavailableError

if TYPE_CHECKING:
    from collections.abc import Callable

    from aretry.transport import TransportHandle


class HandleFacade:
    """Mixin exposing the operations of the current transport handle.

    Subclasses store the in-flight handle in ``active_handle``. Since a
    new handle is created for every attempt, listeners registered through
    the facade only apply to the attempt in flight when they are
    registered. Calling an operation while no attempt is in flight raises
    ``HandleUnavailableError``.
    """

    active_handle: TransportHandle | None = None

    def _require_handle(self, operation: str) -> TransportHandle:
        if self.active_handle is None:
            raise HandleUnavailableError(operation)
        return self.active_handle

    def on(self, event: str, listener: Callable[..., Any]) -> Any:
        return self._require_handle("on").on(event, listener)

    def once(self, event: str, listener: Callable[..., Any]) -> Any:
        return self._require_handle("once").once(event, listener)

    def remove_listener(self, event: str, listener: Callable[..., Any]) -> Any:
        return self._require_handle("remove_listener").remove_listener(event, listener)

    def emit(self, event: str, *args: Any) -> bool:
        return self._require_handle("emit").emit(event, *args)

    def set_max_listeners(self, n: int) -> Any:
        return self._require_handle("set_max_listeners").set_max_listeners(n)

    def start(self) -> None:
        self._require_handle("start").start()

    def write(self, data: bytes | str) -> bool:
        return self._require_handle("write").write(data)

    def end(self, data: bytes | str | None = None) -> None:
        self._require_handle("end").end(data)

    def pipe(self, destination: Any) -> Any:
        return self._require_handle("pipe").pipe(destination)
