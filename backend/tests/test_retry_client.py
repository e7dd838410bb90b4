import asyncio
from typing import List

import pytest

from app.clients.retry import RetryClient, RetryPolicy
from app.core.config import Settings
from app.schemas.case import FieldEditRequest, UserRole
from app.services.case_generator import EXAMPLE_CASE_ID
from app.services.errors import (
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    TransientError,
    UnavailableError,
)
from app.services.fault_injector import FaultInjector
from app.services.review_service import CaseReviewService


class FailUntil:
    """Raises TransientError until the given attempt number (1-based) is reached."""

    def __init__(self, succeed_on: int) -> None:
        self.succeed_on = succeed_on
        self.received: List[tuple] = []

    async def __call__(self, *args, **kwargs):
        self.received.append((args, kwargs))
        if len(self.received) < self.succeed_on:
            raise TransientError("Failed to fetch cases: Server error")
        return "done"


class FailFirstCalls(FaultInjector):
    def __init__(self, failures: int) -> None:
        self.remaining = failures

    def delay(self) -> float:
        return 0.0

    def should_fail(self) -> bool:
        if self.remaining > 0:
            self.remaining -= 1
            return True
        return False


def test_backoff_schedule():
    policy = RetryPolicy(max_attempts=4, base_delay=0.5)
    assert [policy.backoff(n) for n in range(3)] == [0.5, 1.0, 2.0]
    assert policy.schedule() == [0.5, 1.0, 2.0]
    assert RetryPolicy().schedule() == [1.0, 2.0]


@pytest.mark.parametrize("kwargs", [{"max_attempts": 0}, {"base_delay": -1.0}])
def test_policy_rejects_bad_values(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_policy_from_settings(monkeypatch):
    monkeypatch.delenv("RETRY_ATTEMPTS", raising=False)
    monkeypatch.delenv("RETRY_BASE_DELAY_MS", raising=False)
    assert RetryPolicy.from_settings(Settings()) == RetryPolicy()

    monkeypatch.setenv("RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("RETRY_BASE_DELAY_MS", "250")
    policy = RetryPolicy.from_settings(Settings())
    assert policy.max_attempts == 5
    assert policy.base_delay == 0.25
    assert policy.schedule() == [0.25, 0.5, 1.0, 2.0]


def test_retryable_is_decided_by_kind():
    assert RetryPolicy.is_retryable(TransientError("boom"))
    assert not RetryPolicy.is_retryable(UnavailableError("Server error"))
    assert not RetryPolicy.is_retryable(RuntimeError("Server error"))


def test_waits_double_until_success(sleep):
    operation = FailUntil(succeed_on=4)
    client = RetryClient(RetryPolicy(max_attempts=5, base_delay=1.0), sleep=sleep)

    assert asyncio.run(client.call(operation)) == "done"
    assert sleep.calls == [1.0, 2.0, 4.0]
    assert len(operation.received) == 4


def test_final_transient_failure_propagates_unchanged(sleep):
    error = TransientError("still failing")

    async def always_fails():
        raise error

    client = RetryClient(RetryPolicy(max_attempts=3, base_delay=0.25), sleep=sleep)
    with pytest.raises(TransientError) as exc_info:
        asyncio.run(client.call(always_fails))

    assert exc_info.value is error
    assert sleep.calls == [0.25, 0.5]


@pytest.mark.parametrize(
    "error",
    [
        UnavailableError("offline"),
        ForbiddenError("viewer"),
        InvalidRequestError("missing reason"),
        ConflictError(EXAMPLE_CASE_ID, "ef", "25%", "20%"),
    ],
)
def test_permanent_failures_are_not_retried(error, sleep):
    calls = []

    async def operation():
        calls.append(1)
        raise error

    client = RetryClient(RetryPolicy(max_attempts=3, base_delay=1.0), sleep=sleep)
    with pytest.raises(type(error)):
        asyncio.run(client.call(operation))

    assert len(calls) == 1
    assert sleep.calls == []


def test_same_arguments_are_sent_on_every_attempt(timestamp, sleep):
    operation = FailUntil(succeed_on=3)
    request = FieldEditRequest(old_value="25%", new_value="20%", reason="repeat echo", timestamp=timestamp, user="u")
    client = RetryClient(RetryPolicy(max_attempts=3, base_delay=0.0), sleep=sleep)

    asyncio.run(client.call(operation, EXAMPLE_CASE_ID, "ef", request, role="reviewer"))

    assert len(operation.received) == 3
    for args, kwargs in operation.received:
        assert args[2] is request
        assert kwargs == {"role": "reviewer"}


def test_retried_edit_is_applied_once(store, timestamp, sleep):
    service = CaseReviewService(store, FailFirstCalls(2), sleep=sleep)
    client = RetryClient(RetryPolicy(max_attempts=3, base_delay=0.0), sleep=sleep)
    request = FieldEditRequest(old_value="25%", new_value="20%", reason="repeat echo", timestamp=timestamp, user="u")

    case = asyncio.run(client.call(service.edit_extraction, EXAMPLE_CASE_ID, "ef", request, UserRole.REVIEWER))

    assert case.get_extraction("ef").value == "20%"
    assert len(store.audit_trail(EXAMPLE_CASE_ID)) == 1


def test_offline_call_is_not_retried(store, sleep):
    service = CaseReviewService(store, FailFirstCalls(0), sleep=sleep)
    client = RetryClient(RetryPolicy(), sleep=sleep)

    with pytest.raises(UnavailableError):
        asyncio.run(client.call(service.list_cases, offline=True))
    assert sleep.calls == []
