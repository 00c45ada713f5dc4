"""Tests for SyncJob and the in-process JobRunner."""

import threading
import time

import pytest

from news_spine.cache import InMemoryCache
from news_spine.errors import JobTimeoutError, TransientError
from news_spine.models import SaveStats, SyncState
from news_spine.sync.job import JobRunner, SyncJob
from news_spine.sync.status import SyncStatusStore


class StubPersistence:
    """save_batch that fails ``failures`` times, then succeeds.

    The first ``slow_calls`` calls sleep ``delay`` seconds first; with
    ``release`` set, every call blocks until the event fires.
    """

    def __init__(
        self,
        failures: int = 0,
        delay: float = 0.0,
        slow_calls: int | None = None,
        release: threading.Event | None = None,
    ):
        self.failures = failures
        self.delay = delay
        self.slow_calls = slow_calls
        self.release = release
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def save_batch(self, items):
        with self._lock:
            self.calls += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            call = self.calls
        try:
            if self.release is not None:
                self.release.wait(5)
            if self.delay and (self.slow_calls is None or call <= self.slow_calls):
                time.sleep(self.delay)
            if call <= self.failures:
                raise TransientError(f"attempt {call} failed")
            return SaveStats(created=len(items))
        finally:
            with self._lock:
                self.active -= 1


class BrokenCache(InMemoryCache):
    def set(self, key, value, *, ttl_seconds=None):
        raise ConnectionError("redis unavailable")


@pytest.fixture
def job(make_item):
    return SyncJob("guardian", 1, "session-1", [make_item("https://e.com/1")])


class TestSyncJob:
    def test_handle_records_completed(self, job, status_store):
        stats = job.handle(StubPersistence(), status_store)

        assert stats.created == 1
        record = status_store.get("session-1", "guardian", 1)
        assert record["status"] == "completed"
        assert record["data"] == {"created": 1, "updated": 0, "skipped": 0, "errors": 0}

    def test_handle_records_failed_and_reraises(self, job, status_store):
        with pytest.raises(TransientError):
            job.handle(StubPersistence(failures=1), status_store)

        record = status_store.get("session-1", "guardian", 1)
        assert record["status"] == "failed"
        assert record["data"] == {"error": "attempt 1 failed"}

    def test_payload_round_trip(self, job):
        assert SyncJob.from_payload(job.to_payload()) == job

    def test_label(self, job):
        assert job.label == "sync_job:guardian:1"


class TestJobRunner:
    def test_completes_first_attempt(self, job, status_store):
        outcome = JobRunner(StubPersistence(), status_store, backoff_seconds=0).run(job)

        assert outcome.succeeded
        assert outcome.attempts == 1
        assert outcome.stats.created == 1

    def test_retries_with_fixed_backoff(self, job, status_store):
        sleeps = []
        persistence = StubPersistence(failures=2)
        runner = JobRunner(persistence, status_store, backoff_seconds=30, sleep=sleeps.append)

        outcome = runner.run(job)

        assert outcome.state is SyncState.COMPLETED
        assert outcome.attempts == 3
        assert sleeps == [30, 30]
        assert status_store.get("session-1", "guardian", 1)["status"] == "completed"

    def test_fails_permanently_after_budget(self, job, status_store):
        """Three failures end in failed_permanently with the last error."""
        persistence = StubPersistence(failures=10)
        runner = JobRunner(persistence, status_store, max_attempts=3, backoff_seconds=0)

        outcome = runner.run(job)

        assert outcome.state is SyncState.FAILED_PERMANENTLY
        assert persistence.calls == 3
        record = status_store.get("session-1", "guardian", 1)
        assert record["status"] == "failed_permanently"
        assert record["data"] == {"error": "attempt 3 failed", "attempts": 3}

    def test_late_success_after_timeout_completes(self, job, status_store):
        """An overrun attempt that still saves its batch is not retried."""
        persistence = StubPersistence(delay=0.3)
        runner = JobRunner(
            persistence, status_store, max_attempts=3, backoff_seconds=0, timeout_seconds=0.2
        )

        started = time.monotonic()
        outcome = runner.run(job)
        elapsed = time.monotonic() - started

        assert outcome.state is SyncState.COMPLETED
        assert outcome.attempts == 1
        assert outcome.stats.created == 1
        assert persistence.calls == 1
        assert elapsed < 0.6
        record = status_store.get("session-1", "guardian", 1)
        assert record["status"] == "completed"
        assert record["data"]["created"] == 1

    def test_hung_attempt_fails_permanently_without_overlap(self, job, status_store):
        """A hung attempt bounds the run to two timeouts and is never overlapped."""
        release = threading.Event()
        persistence = StubPersistence(release=release)
        runner = JobRunner(
            persistence, status_store, max_attempts=3, backoff_seconds=0, timeout_seconds=0.05
        )

        try:
            started = time.monotonic()
            outcome = runner.run(job)
            elapsed = time.monotonic() - started

            assert outcome.state is SyncState.FAILED_PERMANENTLY
            assert outcome.attempts == 1
            assert "timed out" in outcome.error
            assert persistence.calls == 1
            assert elapsed < 1.0
            record = status_store.get("session-1", "guardian", 1)
            assert record["status"] == "failed_permanently"
            assert record["data"]["attempts"] == 1
        finally:
            release.set()

    def test_timed_out_attempt_that_fails_is_retried(self, job, status_store):
        persistence = StubPersistence(failures=1, delay=0.3, slow_calls=1)
        runner = JobRunner(
            persistence, status_store, max_attempts=3, backoff_seconds=0, timeout_seconds=0.2
        )

        outcome = runner.run(job)

        assert outcome.state is SyncState.COMPLETED
        assert outcome.attempts == 2
        assert persistence.calls == 2
        assert persistence.max_active == 1

    def test_status_outage_does_not_fail_job(self, job):
        store = SyncStatusStore(BrokenCache())
        outcome = JobRunner(StubPersistence(), store, backoff_seconds=0).run(job)
        assert outcome.succeeded

    def test_rejects_empty_budget(self, status_store):
        with pytest.raises(ValueError):
            JobRunner(StubPersistence(), status_store, max_attempts=0)

    def test_from_settings(self, settings, status_store):
        runner = JobRunner.from_settings(settings, StubPersistence(), status_store)
        assert runner._max_attempts == settings.job_max_attempts
        assert runner._timeout == settings.job_timeout_seconds


def test_timeout_error_exposes_pending_future():
    from news_spine.timeout import run_with_timeout

    with pytest.raises(JobTimeoutError) as info:
        run_with_timeout(time.sleep, 0.01, args=(0.1,))
    info.value.pending.result(timeout=1)
    assert info.value.pending.done()
