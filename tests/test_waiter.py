from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from botocore.exceptions import WaiterError

from lambda_deploy_kit import waiter
from lambda_deploy_kit.aws_clients import PlatformClients
from lambda_deploy_kit.errors import ConvergenceError, ConvergenceTimeout, TransportError


class _FakeWaiter:
    def __init__(self, default_delay: int = 1, error: Optional[WaiterError] = None) -> None:
        self.config = SimpleNamespace(delay=default_delay, max_attempts=300)
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def wait(self, **kwargs: Any) -> None:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error


class _FakeLambda:
    def __init__(self, fake_waiter: _FakeWaiter) -> None:
        self.fake_waiter = fake_waiter
        self.waiter_names: List[str] = []

    def get_waiter(self, name: str) -> _FakeWaiter:
        self.waiter_names.append(name)
        return self.fake_waiter


def _clients(fake_waiter: _FakeWaiter) -> PlatformClients:
    return PlatformClients(lambda_=_FakeLambda(fake_waiter), s3=None, logs=None)


def _waiter_error(reason: str, last_response: Dict[str, Any]) -> WaiterError:
    return WaiterError(name="FunctionUpdatedV2", reason=reason, last_response=last_response)


def test_uses_function_updated_v2_with_model_delay() -> None:
    fake = _FakeWaiter(default_delay=1)
    clients = _clients(fake)

    waiter.wait_for_function_updated(clients, "orders-stag")

    assert clients.lambda_.waiter_names == ["function_updated_v2"]
    assert fake.calls == [
        {"FunctionName": "orders-stag", "WaiterConfig": {"Delay": 1, "MaxAttempts": 300}},
    ]


def test_attempts_are_bounded_by_timeout() -> None:
    fake = _FakeWaiter()

    waiter.wait_for_function_updated(_clients(fake), "orders-stag", timeout=5.0, delay=2.0)

    assert fake.calls[0]["WaiterConfig"] == {"Delay": 2.0, "MaxAttempts": 3}


def test_max_attempts_exceeded_raises_timeout() -> None:
    error = _waiter_error(
        "Max attempts exceeded",
        {"Configuration": {"LastUpdateStatus": "InProgress"}},
    )

    with pytest.raises(ConvergenceTimeout) as excinfo:
        waiter.wait_for_function_updated(_clients(_FakeWaiter(error=error)), "orders-stag", timeout=5.0)

    assert "InProgress" in str(excinfo.value)


def test_failed_update_raises_convergence_error_with_reason() -> None:
    error = _waiter_error(
        "Waiter encountered a terminal failure state",
        {"Configuration": {"LastUpdateStatus": "Failed", "LastUpdateStatusReason": "bad handler"}},
    )

    with pytest.raises(ConvergenceError) as excinfo:
        waiter.wait_for_function_updated(_clients(_FakeWaiter(error=error)), "orders-stag")

    assert not isinstance(excinfo.value, ConvergenceTimeout)
    assert "bad handler" in str(excinfo.value)


def test_api_error_during_wait_is_transport_error() -> None:
    error = _waiter_error(
        "Unexpected error encountered",
        {"Error": {"Code": "ResourceNotFoundException", "Message": "Function not found"}},
    )

    with pytest.raises(TransportError) as excinfo:
        waiter.wait_for_function_updated(_clients(_FakeWaiter(error=error)), "orders-stag")

    assert "Function not found" in str(excinfo.value)
