"""
Two-variant result values for fallible parsing steps.
"""
from typing import Any, Callable, Generic, Iterable, List, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound=BaseException)
U = TypeVar("U")


class Result(Generic[T, E]):
    """Either a parsed value (ok) or an error (err), never both."""

    __slots__ = ("_value", "_error", "_is_ok")

    def __init__(self, is_ok: bool, value: Any = None, error: Any = None):
        self._is_ok = is_ok
        self._value = value
        self._error = error

    @classmethod
    def ok(cls, value: T) -> "Result[T, E]":
        return cls(True, value=value)

    @classmethod
    def err(cls, error: E) -> "Result[T, E]":
        return cls(False, error=error)

    @classmethod
    def all(cls, results: Iterable["Result[Any, E]"]) -> "Result[List[Any], E]":
        """
        Collect the values of several results, or the first error among them.

        Args:
            results: Results to combine

        Returns:
            Ok with the list of values, or the first err encountered
        """
        values = []
        for result in results:
            if result.is_err:
                return cls.err(result.error)
            values.append(result.value)
        return cls.ok(values)

    @property
    def is_ok(self) -> bool:
        return self._is_ok

    @property
    def is_err(self) -> bool:
        return not self._is_ok

    @property
    def value(self) -> T:
        if not self._is_ok:
            raise ValueError(f"Result is an error: {self._error}")
        return self._value

    @property
    def error(self) -> E:
        if self._is_ok:
            raise ValueError("Result is not an error")
        return self._error

    def unwrap(self) -> T:
        """Return the value, raising the stored error if there is one."""
        if not self._is_ok:
            raise self._error
        return self._value

    def map(self, fn: Callable[[T], U]) -> "Result[U, E]":
        if self._is_ok:
            return Result.ok(fn(self._value))
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return (self._is_ok, self._value, self._error) == (other._is_ok, other._value, other._error)

    def __repr__(self):
        if self._is_ok:
            return f"Result.ok({self._value!r})"
        return f"Result.err({self._error!r})"
