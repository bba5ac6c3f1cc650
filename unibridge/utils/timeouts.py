"""
Timeout helper for provider calls.

Calls run on a worker pool owned by the service; when the deadline passes
we stop waiting and raise immediately. A late worker is abandoned, not
joined, so a hung provider can never hold the request open. Once every
worker is busy, new calls queue and still time out on their own budget.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Callable

from unibridge.core.errors import ProviderTimeoutError

logger = logging.getLogger(__name__)


class ProviderCallRunner:
    """One thread pool per service, reused for every provider call."""

    def __init__(self, max_workers: int = 8):
        self.max_workers = max_workers
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="provider-call")

    def call(self, fn: Callable[..., Any], timeout_seconds: float, *args, **kwargs) -> Any:
        """Run fn(*args, **kwargs) and return its result, or raise ProviderTimeoutError."""
        future = self.executor.submit(fn, *args, **kwargs)
        try:
            return future.result(timeout=timeout_seconds)
        except FutureTimeout as exc:
            future.cancel()
            raise ProviderTimeoutError(f"provider call exceeded {timeout_seconds:.2f}s") from exc

    def shutdown(self) -> None:
        logger.info("Stopping provider call pool")
        self.executor.shutdown(wait=False, cancel_futures=True)
