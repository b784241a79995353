"""
Tests for automodsync.poller module.

The sleep and clock functions are injected so the tests run instantly.
"""

from __future__ import annotations

import threading

import pytest

from automodsync.automation.base import ImportJob, ProvisioningState
from automodsync.exceptions import ImportCancelledError, ImportTimeoutError
from automodsync.poller import DEFAULT_POLL_INTERVAL, await_completion

PENDING = ProvisioningState.PENDING
SUCCEEDED = ProvisioningState.SUCCEEDED
FAILED = ProvisioningState.FAILED


class FakeClock:
    """Clock that advances only when sleep() is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def job(fake_service):
    account = fake_service.add_account("aa-prod-01")
    return ImportJob(module_name="Az.Accounts", account=account, content_uri="https://x/")


@pytest.fixture
def clock():
    return FakeClock()


def test_default_interval_is_five_seconds():
    assert DEFAULT_POLL_INTERVAL == 5.0


def test_returns_succeeded_after_pending(fake_service, job, clock):
    """Test that pending states are polled until a terminal state."""
    fake_service.job_states = [PENDING, PENDING, SUCCEEDED]

    state = await_completion(job, fake_service, sleep=clock.sleep, clock=clock)

    assert state is SUCCEEDED
    assert clock.sleeps == [5.0, 5.0]
    assert len(fake_service.names("get_job_status")) == 3


def test_returns_failed_state(fake_service, job, clock):
    """Test that Failed is returned, not raised."""
    fake_service.job_states = [PENDING, FAILED]

    state = await_completion(job, fake_service, sleep=clock.sleep, clock=clock)

    assert state is FAILED


def test_terminal_on_first_check_does_not_sleep(fake_service, job, clock):
    fake_service.job_states = [SUCCEEDED]

    await_completion(job, fake_service, sleep=clock.sleep, clock=clock)

    assert clock.sleeps == []


def test_custom_interval(fake_service, job, clock):
    fake_service.job_states = [PENDING, SUCCEEDED]

    await_completion(job, fake_service, interval=0.5, sleep=clock.sleep, clock=clock)

    assert clock.sleeps == [0.5]


def test_timeout_raises(fake_service, job, clock):
    """Test that a bounded wait gives up once the timeout would be exceeded."""
    fake_service.job_states = [PENDING] * 100

    with pytest.raises(ImportTimeoutError, match="still pending"):
        await_completion(
            job, fake_service, interval=5, timeout=10, sleep=clock.sleep, clock=clock
        )

    assert len(fake_service.names("get_job_status")) == 3
    assert clock.now == 10


def test_cancel_before_first_check(fake_service, job, clock):
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(ImportCancelledError):
        await_completion(job, fake_service, cancel=cancel, sleep=clock.sleep, clock=clock)

    assert fake_service.names("get_job_status") == []


def test_cancel_during_wait(fake_service, job, clock):
    """Test that setting the event between checks stops the wait."""
    fake_service.job_states = [PENDING] * 100
    cancel = threading.Event()

    def sleep_then_cancel(seconds: float) -> None:
        clock.sleep(seconds)
        cancel.set()

    with pytest.raises(ImportCancelledError):
        await_completion(
            job, fake_service, cancel=cancel, sleep=sleep_then_cancel, clock=clock
        )

    assert len(fake_service.names("get_job_status")) == 1
