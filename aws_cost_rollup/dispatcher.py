"""
Concurrent per-account fetch dispatch with a completion barrier
"""

import logging
import queue
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, wait

from .models import AccountCostSeries

logger = logging.getLogger(__name__)

# Upper bound on how long the barrier sleeps between timeout checks
POLL_INTERVAL = 0.5
THREAD_NAME_PREFIX = "cost-fetch"


class FetchTask:
    """One account's fetch, recording when a worker picked it up"""

    def __init__(self, account, fetch):
        self.account = account
        self.fetch = fetch
        self.started_at = None
        self.cancelled = threading.Event()

    def __call__(self):
        self.started_at = time.monotonic()
        return self.fetch(self.account, self.cancelled)

    def cancel(self):
        self.cancelled.set()

    def elapsed(self, now):
        return None if self.started_at is None else now - self.started_at


class DaemonWorkerPool:
    """Fixed set of daemon worker threads completing concurrent.futures Futures

    Daemon workers never hold up interpreter exit, so a stalled AWS call left
    behind by a timeout or an interrupt can't keep the process alive.
    """

    def __init__(self, workers, thread_name_prefix=THREAD_NAME_PREFIX):
        self._queue = queue.SimpleQueue()
        self._threads = []
        for number in range(workers):
            thread = threading.Thread(
                target=self._work, name=f"{thread_name_prefix}_{number}", daemon=True
            )
            thread.start()
            self._threads.append(thread)

    def submit(self, fn):
        future = Future()
        self._queue.put((future, fn))
        return future

    def _work(self):
        while True:
            item = self._queue.get()
            if item is None:
                return
            future, fn = item
            # Cancelled while still queued
            if not future.set_running_or_notify_cancel():
                continue
            try:
                result = fn()
            except BaseException as e:
                future.set_exception(e)
            else:
                future.set_result(result)

    def shutdown(self):
        """Let workers exit once the queue drains; never waits on them"""
        for _ in self._threads:
            self._queue.put(None)


class FetchDispatcher:
    """Runs one fetch task per account on a bounded worker pool

    fetch_all returns only once every account has reached a terminal state.
    A task running past the configured timeout is recorded as failed, told to
    stop and left behind on its daemon thread.
    """

    def __init__(self, config, fetcher):
        self.config = config
        self.fetcher = fetcher

    def fetch_all(self, accounts, date_range, granularity, tag_filter=None):
        """
        Fetch every account concurrently

        Args:
            accounts: Accounts to query
            date_range: DateRange shared by all queries
            granularity: Granularity shared by all queries
            tag_filter: Optional TagFilter shared by all queries

        Returns:
            list of AccountCostSeries in the same order as accounts

        Raises:
            KeyboardInterrupt: queued tasks are cancelled and running ones are
                told to stop before it propagates
        """
        if not accounts:
            return []

        def fetch_one(account, cancelled):
            return self.fetcher.fetch(
                account, date_range, granularity, tag_filter, cancelled=cancelled
            )

        timeout = self.config.fetch_timeout
        workers = max(1, min(self.config.max_workers, len(accounts)))
        results = {}
        pending = {}

        pool = DaemonWorkerPool(workers)
        try:
            for index, account in enumerate(accounts):
                task = FetchTask(account, fetch_one)
                pending[pool.submit(task)] = (index, task)

            while pending:
                done, _ = wait(
                    pending, timeout=min(POLL_INTERVAL, timeout), return_when=FIRST_COMPLETED
                )
                for future in done:
                    index, task = pending.pop(future)
                    results[index] = self._collect(future, task.account)

                now = time.monotonic()
                for future, (index, task) in list(pending.items()):
                    elapsed = task.elapsed(now)
                    if elapsed is not None and elapsed > timeout:
                        task.cancel()
                        del pending[future]
                        logger.error(
                            "✗ Cost query for %s timed out after %gs", task.account, timeout
                        )
                        results[index] = AccountCostSeries.failed(
                            task.account, f"Timeout: no response within {timeout:g}s"
                        )
        except KeyboardInterrupt:
            logger.warning(
                "⚠ Interrupted, cancelling %d outstanding cost queries", len(pending)
            )
            raise
        finally:
            for future, (_index, task) in pending.items():
                future.cancel()
                task.cancel()
            pool.shutdown()

        ok = sum(1 for series in results.values() if series.is_ok)
        logger.info("✓ %d of %d accounts fetched successfully", ok, len(accounts))
        return [results[index] for index in range(len(accounts))]

    def _collect(self, future, account):
        try:
            return future.result()
        except Exception as e:
            logger.error("✗ Fetch task for %s crashed: %s", account, e)
            return AccountCostSeries.failed(account, f"{type(e).__name__}: {e}")
