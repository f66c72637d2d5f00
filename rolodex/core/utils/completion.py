"""Single-shot completion helpers.

Repository operations are coroutines: awaiting one resumes the caller exactly once, either with a result or with a
raised exception. Some callers prefer to receive that outcome as a value, or through a ``done(error, result)``
callback. This module bridges the two shapes without changing the exactly-once guarantee.

Example:
    .. code-block:: python

        from rolodex.core.utils import complete, settle

        outcome = await settle(repository.find_by_name("jimmy"))
        if outcome.ok:
            print(outcome.value)

        def done(error, people):
            if error is not None:
                return
            print(people)

        await complete(repository.find_by_name("jimmy"), done)
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")

DoneCallback = Callable[[Optional[Exception], Optional[T]], None]


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a finished operation: either a value or an error, never both."""

    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, re-raising the stored error if the operation failed."""
        if self.error is not None:
            raise self.error
        return self.value

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "Outcome[T]":
        return cls(error=error)


async def settle(awaitable: Awaitable[T]) -> Outcome[T]:
    """Await the given operation and capture its result or error as an Outcome."""
    try:
        value = await awaitable
    except Exception as e:
        return Outcome.failure(e)
    return Outcome.success(value)


async def complete(awaitable: Awaitable[T], done: DoneCallback) -> Outcome[T]:
    """Await the given operation and invoke ``done`` exactly once.

    On failure ``done`` receives ``(error, None)``; on success it receives ``(None, result)``. Exceptions raised by
    ``done`` itself propagate to the caller and never cause a second invocation.

    Returns:
        The Outcome that was delivered to ``done``.
    """
    outcome = await settle(awaitable)
    if outcome.ok:
        done(None, outcome.value)
    else:
        done(outcome.error, None)
    return outcome
