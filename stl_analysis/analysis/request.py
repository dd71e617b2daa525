"""
One-shot background computations with a pollable result.

An `AnalysisRequest` starts its work as soon as it is submitted and exposes
the outcome through `poll()`, which never blocks: it returns None until the
worker has finished and the same value on every call after that. The result
is written exactly once, by the worker. Requests cannot be cancelled or
restarted.

Usage:
    request = AnalysisRequest.submit(lambda: calculate_volume(soup), name="volume")
    ...
    volume = request.poll()   # None while the worker is still running
"""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import Callable, Generic, Optional, TypeVar

from stl_analysis import config
from stl_analysis.logging_config import log_timing

logger = logging.getLogger(__name__)

T = TypeVar('T')

_executor_lock = threading.Lock()
_shared_executor: Optional[ThreadPoolExecutor] = None


def shared_executor() -> Executor:
    """Thread pool used by requests submitted without an explicit executor."""
    global _shared_executor
    with _executor_lock:
        if _shared_executor is None:
            _shared_executor = ThreadPoolExecutor(
                max_workers=config.DEFAULT_MAX_WORKERS,
                thread_name_prefix=config.THREAD_NAME_PREFIX,
            )
        return _shared_executor


def _run(work: Callable[[], T], name: str) -> T:
    with log_timing(logger, name):
        return work()


class AnalysisRequest(Generic[T]):
    """Handle to a computation running in the background.

    Create with `AnalysisRequest.submit`. Handles may be shared freely
    between threads; every reader sees None followed by the single result.
    """

    def __init__(self, future: 'Future[T]', name: str):
        self._future = future
        self.name = name

    @classmethod
    def submit(
        cls,
        work: Callable[[], T],
        name: Optional[str] = None,
        executor: Optional[Executor] = None,
    ) -> 'AnalysisRequest[T]':
        """Start `work` in the background and return its handle.

        Args:
            work: Zero-argument callable producing the result
            name: Label used in log records (defaults to the callable's name)
            executor: Where to run; the package thread pool if None

        Returns:
            AnalysisRequest whose poll() yields work()'s return value
        """
        if not name:
            name = getattr(work, "__name__", "")
            # lambdas and partials carry no useful name
            if not name or name.startswith("<"):
                name = "analysis"
        future = (executor or shared_executor()).submit(_run, work, name)
        return cls(future, name)

    def done(self) -> bool:
        """True once the worker has finished."""
        return self._future.done()

    def poll(self) -> Optional[T]:
        """Return the result, or None if the worker is still running.

        Raises:
            Exception: whatever the work raised, on every call once finished
        """
        if not self._future.done():
            return None
        return self._future.result()

    def wait(self, timeout: Optional[float] = None) -> Optional[T]:
        """Block up to `timeout` seconds for the worker, then `poll()`."""
        wait_futures([self._future], timeout=timeout)
        return self.poll()

    def __repr__(self) -> str:
        state = "done" if self.done() else "pending"
        return f"<AnalysisRequest {self.name!r} {state}>"
