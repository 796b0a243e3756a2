"""Tests for in-flight guards."""

import pytest

from scansave.guards import InFlightGuard, OperationInProgressError


class TestInFlightGuard:
    """Tests for InFlightGuard."""

    def test_second_acquire_rejected(self):
        guard = InFlightGuard()
        with guard.acquire("upload"):
            assert guard.is_held("upload")
            with pytest.raises(OperationInProgressError) as exc_info:
                with guard.acquire("upload"):
                    pass
            assert exc_info.value.resource == "upload"
        assert not guard.is_held("upload")

    def test_released_on_failure(self):
        guard = InFlightGuard()
        with pytest.raises(RuntimeError):
            with guard.acquire("upload"):
                raise RuntimeError("boom")
        assert guard.try_acquire("upload") is True

    def test_resources_are_independent(self):
        guard = InFlightGuard()
        assert guard.try_acquire("a") is True
        assert guard.try_acquire("b") is True
        assert guard.try_acquire("a") is False
