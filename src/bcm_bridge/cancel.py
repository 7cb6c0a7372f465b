import asyncio
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from bcm_bridge.errors import AbortedError, RequestTimeout

Listener = Callable[[BaseException], None]


# ========== Signals ==========
class CancelSignal:
    """One-shot cancellation flag.

    The state is explicit (armed or fired), so subscribing to a signal that
    already fired runs the listener right away instead of waiting for an
    event that will never come again.
    """

    def __init__(self):
        self._fired = False
        self._reason: Optional[BaseException] = None
        self._listeners: List[Listener] = []

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def reason(self) -> Optional[BaseException]:
        return self._reason

    def add_listener(self, callback: Listener):
        if self._fired:
            callback(self._reason)
            return
        self._listeners.append(callback)

    def remove_listener(self, callback: Listener):
        try:
            self._listeners.remove(callback)
        except ValueError:
            pass

    def raise_if_fired(self):
        if self._fired:
            raise self._reason

    def _fire(self, reason: BaseException):
        if self._fired:
            return
        self._fired = True
        self._reason = reason
        listeners, self._listeners = self._listeners, []
        for callback in listeners:
            callback(reason)


class CancelController:
    def __init__(self):
        self.signal = CancelSignal()

    def abort(self, reason: Optional[BaseException] = None):
        self.signal._fire(reason if reason is not None else AbortedError("Aborted"))


# ========== Timeout composition ==========
@dataclass
class TimeoutHandle:
    signal: CancelSignal
    controller: CancelController
    linked: Optional[CancelController] = None
    _release: Callable[[], None] = field(default=lambda: None, repr=False)

    def release(self):
        self._release()


def compose_timeout(ms: int, signal: Optional[CancelSignal] = None) -> TimeoutHandle:
    """Build a signal that fires after ``ms`` milliseconds or when ``signal`` fires.

    Must be called from inside a running event loop. The caller owns the
    returned handle and has to ``release()`` it once the guarded call is done.
    """
    loop = asyncio.get_running_loop()
    deadline = CancelController()
    timer = loop.call_later(max(ms, 0) / 1000, deadline.abort, RequestTimeout("Timeout"))

    if signal is None:
        return TimeoutHandle(signal=deadline.signal, controller=deadline, _release=timer.cancel)

    linked = CancelController()

    def on_external(reason):
        linked.abort(reason if reason is not None else AbortedError("Aborted"))

    deadline.signal.add_listener(linked.abort)
    signal.add_listener(on_external)

    def release():
        timer.cancel()
        signal.remove_listener(on_external)

    return TimeoutHandle(signal=linked.signal, controller=deadline, linked=linked, _release=release)
