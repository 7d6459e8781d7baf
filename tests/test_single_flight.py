import pytest
from fastapi import HTTPException

from solardesk.core.single_flight import SingleFlightGuard


def test_hold_releases_on_exit():
    guard = SingleFlightGuard()
    with guard.hold(1, "payment"):
        assert guard.is_in_flight(1, "payment")
    assert not guard.is_in_flight(1, "payment")


def test_duplicate_hold_conflicts():
    guard = SingleFlightGuard()
    with guard.hold(1, "payment"):
        with pytest.raises(HTTPException) as exc_info:
            with guard.hold(1, "payment"):
                pass
        assert exc_info.value.status_code == 409
        assert "already in progress" in exc_info.value.detail


def test_keys_are_independent():
    guard = SingleFlightGuard()
    with guard.hold(1, "payment"):
        with guard.hold(1, "stage"):
            with guard.hold(2, "payment"):
                assert guard.is_in_flight(2, "payment")


def test_released_after_error():
    guard = SingleFlightGuard()
    with pytest.raises(RuntimeError):
        with guard.hold(7, "stage"):
            raise RuntimeError("boom")
    assert guard.try_acquire(7, "stage")
