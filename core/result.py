"""
Success/Failure values for operations that fail routinely.

Provider calls cross a network boundary; they return a ``Result`` instead of
raising, so the dispatcher can turn a failed provider into an empty
contribution and the geometry resolver can hand the failure to its caller.

Example:
    >>> def parse_limit(raw: str) -> Result[int, str]:
    ...     if not raw.isdigit():
    ...         return failure(f"not a number: {raw}")
    ...     return success(int(raw))
    ...
    >>> parse_limit("20").and_then(lambda n: success(min(n, 9))).unwrap()
    9
    >>> parse_limit("many").unwrap_or(10)
    10
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Never

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True, slots=True)
class Success[T]:
    """Outcome carrying ``value``."""

    value: T

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the value."""
        return self.value

    def unwrap_or(self, _default: T) -> T:
        """Return the value; the default is not needed."""
        return self.value

    def map[U](self, func: Callable[[T], U]) -> Success[U]:
        """Wrap ``func(value)``."""
        return Success(func(self.value))

    def and_then[U, E](self, func: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """
        Chain a step that can fail itself.

        Used to parse a decoded response body, where the parser decides
        between a value and a parse error.
        """
        return func(self.value)

    def map_error[E, U](self, _func: Callable[[E], U]) -> Success[T]:
        return self


@dataclass(frozen=True, slots=True)
class Failure[E]:
    """Outcome carrying ``error``."""

    error: E

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True

    def unwrap(self) -> Never:
        """
        Fail loudly; there is no value.

        Raises:
            ValueError: Always, naming the error.
        """
        raise ValueError(f"Cannot unwrap Failure: {self.error}")

    def unwrap_or[T](self, default: T) -> T:
        """Return ``default``."""
        return default

    def map[T, U](self, _func: Callable[[T], U]) -> Failure[E]:
        return self

    def and_then[T, U](self, _func: Callable[[T], Result[U, E]]) -> Failure[E]:
        return self

    def map_error[U](self, func: Callable[[E], U]) -> Failure[U]:
        """Convert the error, e.g. a ``ProviderError`` into a ``SearchEngineError``."""
        return Failure(func(self.error))


type Result[T, E] = Success[T] | Failure[E]


def success[T](value: T) -> Success[T]:
    """Create a Success result."""
    return Success(value)


def failure[E](error: E) -> Failure[E]:
    """Create a Failure result."""
    return Failure(error)
