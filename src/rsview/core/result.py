"""
Result Type Implementation.

Transport calls and DOT repair report their outcome as values instead of
raising: an ``Ok`` carries the payload, an ``Err`` carries the classified
failure. Callers branch on ``is_ok()`` and decide whether to raise.
"""

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """The call produced ``value``."""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def unwrap_err(self):
        raise ValueError(f"Called unwrap_err on Ok: {self.value!r}")


@dataclass(frozen=True)
class Err(Generic[E]):
    """
    The call failed with ``error``.

    ``unwrap`` re-raises the contained error when it is an exception, so a
    caller that wants exception semantics can simply unwrap.
    """
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self):
        if isinstance(self.error, BaseException):
            raise self.error
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default):
        return default

    def unwrap_err(self) -> E:
        return self.error


Result = Union[Ok[T], Err[E]]


def map_ok(result: Result[T, E], func: Callable[[T], U]) -> Result[U, E]:
    """Transform the value of an Ok; an Err passes through untouched."""
    if isinstance(result, Ok):
        return Ok(func(result.value))
    return result  # type: ignore
