"""Tests for the Result pattern."""

from __future__ import annotations

import pytest

from core.result import Failure, Success, failure, success
from services.providers.errors import NetworkError
from services.search.errors import SearchEngineError


class TestSuccess:
    """Tests for Success."""

    def test_predicates(self) -> None:
        """Success reports success and not failure."""
        result = Success(("coords",))

        assert result.is_success() is True
        assert result.is_failure() is False

    def test_unwrap_and_unwrap_or(self) -> None:
        """Both unwrap variants return the value."""
        result = Success(3)

        assert result.unwrap() == 3
        assert result.unwrap_or(0) == 3

    def test_map_transforms_value(self) -> None:
        """map() applies the function to the value."""
        result = Success(["a", "b"]).map(len)

        assert result == Success(2)

    def test_and_then_chains_a_fallible_step(self) -> None:
        """and_then() returns whatever the next step returns."""
        ok = Success({"results": []}).and_then(lambda data: success(len(data["results"])))
        bad = Success([]).and_then(lambda _: failure("expected an object"))

        assert ok == Success(0)
        assert bad == Failure("expected an object")

    def test_map_error_is_identity(self) -> None:
        """map_error() leaves a Success untouched."""
        result: Success[int] = Success(1)

        assert result.map_error(lambda e: SearchEngineError(str(e))) is result


class TestFailure:
    """Tests for Failure."""

    def test_predicates(self) -> None:
        """Failure reports failure and not success."""
        result = Failure(NetworkError(provider_id="nominatim"))

        assert result.is_success() is False
        assert result.is_failure() is True

    def test_unwrap_raises(self) -> None:
        """unwrap() raises ValueError naming the error."""
        result = Failure(NetworkError(provider_id="nominatim"))

        with pytest.raises(ValueError, match=r"\[nominatim\] network"):
            result.unwrap()

    def test_unwrap_or_returns_default(self) -> None:
        """unwrap_or() returns the default."""
        assert Failure("boom").unwrap_or(()) == ()

    def test_map_is_identity(self) -> None:
        """map() leaves a Failure untouched."""
        result = Failure("boom")

        assert result.map(lambda v: v * 2) is result

    def test_and_then_short_circuits(self) -> None:
        """and_then() skips the next step on a Failure."""
        result = Failure(NetworkError(provider_id="geoadmin"))

        assert result.and_then(lambda _: pytest.fail("step must not run")) is result

    def test_map_error_lifts_provider_error(self) -> None:
        """map_error() converts the error value."""
        error = NetworkError(provider_id="glarus", message="Request timeout")

        lifted = Failure(error).map_error(
            lambda e: SearchEngineError("Geometry resolution failed", details=str(e))
        )

        assert isinstance(lifted, Failure)
        assert lifted.error.message == "Geometry resolution failed"
        assert lifted.error.details == "[glarus] network: Request timeout"


class TestHelpers:
    """Tests for the success/failure constructors."""

    def test_success_helper(self) -> None:
        """success() wraps the value."""
        assert success(()) == Success(())

    def test_failure_helper(self) -> None:
        """failure() wraps the error."""
        assert failure("x") == Failure("x")

    def test_pattern_matching(self) -> None:
        """Results can be matched structurally."""
        match success(5):
            case Success(value):
                assert value == 5
            case Failure():
                pytest.fail("expected a Success")
