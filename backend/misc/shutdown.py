"""Signal hooks that kill outstanding CPU workers before the server exits."""

import signal
import threading
from typing import Callable, Dict

import structlog

from misc.active_tasks import ActiveTaskRegistry

logger = structlog.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def install_drain_handlers(registry: ActiveTaskRegistry) -> Callable[[], None]:
    """
    Chain a registry drain in front of the current SIGTERM/SIGINT handlers.

    The previous handler (normally the server's own graceful-exit handler)
    still runs after the drain. Only possible from the main thread; elsewhere
    this is a no-op.

    Returns:
        A callable restoring the previous handlers
    """
    if threading.current_thread() is not threading.main_thread():
        logger.debug("Not on main thread, skipping signal handler install")
        return lambda: None

    previous: Dict[int, object] = {}

    def _handler(signum, frame):
        drained = registry.drain_and_terminate_all()
        logger.info(
            f"Received {signal.Signals(signum).name}, terminated {drained} active tasks"
        )
        prev = previous.get(signum)
        if callable(prev):
            prev(signum, frame)
        elif prev == signal.SIG_DFL:
            raise SystemExit(0)

    for sig in SHUTDOWN_SIGNALS:
        previous[sig] = signal.getsignal(sig)
        signal.signal(sig, _handler)

    def restore() -> None:
        for sig, handler in previous.items():
            if handler is not None:
                signal.signal(sig, handler)

    return restore
