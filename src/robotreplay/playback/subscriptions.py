"""One-shot subscriptions.

A handler registered on a :class:`OneShotEvent` runs at most once: the next
:meth:`OneShotEvent.fire` invokes and disposes it. Used for waits such as
"when this robot's model has finished loading, wire up its controls".
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class SubscriptionHandle:
    """Handle returned by :meth:`OneShotEvent.register`.

    Attributes
    ----------
    fired : bool
        True once the callback has been invoked.
    disposed : bool
        True once the subscription can no longer fire (after firing or
        :meth:`dispose`).
    """

    __slots__ = ("_event", "callback", "fired", "disposed")

    def __init__(self, event: OneShotEvent, callback: Callable[..., Any]) -> None:
        self._event = event
        self.callback = callback
        self.fired = False
        self.disposed = False

    def dispose(self) -> None:
        """Cancel the subscription; a no-op if it already fired."""
        if self.disposed:
            return
        self.disposed = True
        self._event._discard(self)

    def __repr__(self) -> str:
        state = "fired" if self.fired else ("disposed" if self.disposed else "pending")
        return f"SubscriptionHandle({self._event.name!r}, {state})"


class OneShotEvent:
    """Event whose subscribers are invoked once and then dropped.

    Parameters
    ----------
    name : str
        Label used in logs and reprs.

    Examples
    --------
    >>> loaded = OneShotEvent("model-loaded")
    >>> calls = []
    >>> handle = loaded.register(calls.append)
    >>> loaded.fire(3)
    1
    >>> loaded.fire(4)
    0
    >>> calls, handle.fired
    ([3], True)
    """

    def __init__(self, name: str = "event") -> None:
        self.name = name
        self._pending: list[SubscriptionHandle] = []

    def register(self, callback: Callable[..., Any]) -> SubscriptionHandle:
        handle = SubscriptionHandle(self, callback)
        self._pending.append(handle)
        return handle

    @property
    def n_pending(self) -> int:
        return len(self._pending)

    def fire(self, *args: Any, **kwargs: Any) -> int:
        """Invoke and dispose every pending callback.

        Callbacks registered while firing wait for the next :meth:`fire`.
        If a callback raises, the remaining callbacks still run and the first
        exception is re-raised afterwards.

        Returns
        -------
        int
            Number of callbacks invoked.
        """
        batch, self._pending = self._pending, []
        first_error: BaseException | None = None
        for handle in batch:
            if handle.disposed:
                continue
            handle.fired = True
            handle.disposed = True
            try:
                handle.callback(*args, **kwargs)
            except Exception as e:
                logger.exception("One-shot handler on %r failed", self.name)
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error
        return sum(1 for h in batch if h.fired)

    def _discard(self, handle: SubscriptionHandle) -> None:
        try:
            self._pending.remove(handle)
        except ValueError:
            pass


__all__ = ["OneShotEvent", "SubscriptionHandle"]
