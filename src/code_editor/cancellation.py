"""Cancellation token and bounded waits for blocking external calls."""

import queue
import threading
import time
from typing import Callable, TypeVar

from .errors import OperationCancelled, TransportError

T = TypeVar("T")


class CancellationToken:
    """Explicit cancellation signal passed into every blocking call.

    The signal handler in main.py cancels the token; long-running loops
    check it between steps instead of polling global state.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("operation cancelled")


def call_with_timeout(
    fn: Callable[[], T],
    timeout: float,
    token: CancellationToken | None = None,
    what: str = "operation",
) -> T:
    """Run fn on a daemon worker thread and wait at most timeout seconds.

    The worker is abandoned on timeout or cancellation; the caller regains
    control immediately and an abandoned worker never blocks interpreter exit.

    Args:
        fn: Zero-argument callable performing the blocking call
        timeout: Seconds to wait for a result
        token: Optional cancellation token, checked before and while waiting
        what: Human-readable name for error messages

    Returns:
        Whatever fn returns

    Raises:
        TransportError: If fn does not finish within timeout
        OperationCancelled: If the token is cancelled while waiting
        Exception: Any exception raised by fn is re-raised unchanged
    """
    if token is not None:
        token.raise_if_cancelled()

    results: queue.Queue = queue.Queue(maxsize=1)

    def run() -> None:
        try:
            results.put((True, fn()))
        except BaseException as e:
            results.put((False, e))

    worker = threading.Thread(target=run, name=f"bounded-call-{what}", daemon=True)
    worker.start()

    # Poll so that a cancelled token wins over a slow call
    deadline = time.monotonic() + timeout
    step = 0.1 if token is not None else timeout
    while True:
        remaining = deadline - time.monotonic()
        try:
            ok, value = results.get(timeout=max(0.0, min(step, remaining)))
        except queue.Empty:
            if token is not None:
                token.raise_if_cancelled()
            if deadline - time.monotonic() <= 0:
                raise TransportError(f"{what} timed out after {timeout:.1f}s") from None
            continue
        if ok:
            return value
        raise value
