"""Synchronous-callback adapter for hosts without an asyncio event loop.

``CallbackRunner`` runs a private event loop on a daemon thread. Build the
client on that loop (``runner.run(create_client())``) and submit every later
coroutine through the same runner; the SDK's lock and HTTP client are
bound to the loop they were first used on.

    runner = CallbackRunner()
    client = runner.run(make_client(config))
    runner.submit(client.track("custom.purchase"), lambda result: print(result.is_ok))
    runner.run(client.shutdown())
    runner.close()
"""

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Coroutine, Optional, TypeVar

from linkpulse.domain.errors import Result

logger = logging.getLogger(__name__)

T = TypeVar("T")
ResultCallback = Callable[[Result[Any]], None]


class CallbackRunner:
    """Owns a background event loop and bridges coroutines to callbacks."""

    def __init__(self, name: str = "linkpulse-loop"):
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run_loop, name=name, daemon=True)
        self._thread.start()
        self._closed = False

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def submit(
        self,
        coro: Coroutine[Any, Any, Result[T]],
        callback: Optional[ResultCallback] = None,
    ) -> "Future[Result[T]]":
        """Schedules ``coro`` on the runner's loop.

        ``callback`` receives the coroutine's Result on the loop thread. An
        unexpected exception is logged and left on the returned future.
        """
        if self._closed:
            raise RuntimeError("CallbackRunner is closed")
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)

        if callback is not None:
            def _done(done: "Future[Result[T]]") -> None:
                if done.cancelled():
                    return
                error = done.exception()
                if error is not None:
                    logger.error(f"Callback operation raised: {error}", exc_info=error)
                    return
                callback(done.result())

            future.add_done_callback(_done)
        return future

    def run(self, coro: Coroutine[Any, Any, T], timeout: Optional[float] = None) -> T:
        """Runs ``coro`` on the loop and blocks the calling thread for its result."""
        if self._closed:
            raise RuntimeError("CallbackRunner is closed")
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result(timeout)

    def close(self, timeout: float = 5.0) -> None:
        """Stops the loop and joins its thread."""
        if self._closed:
            return
        self._closed = True
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)
        self._loop.close()
