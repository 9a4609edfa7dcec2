"""Retry combinator shared by server fallback and the survey attempt loop."""

from typing import Awaitable, Callable, Iterable, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class NoServersError(Exception):
    """A retry loop was given nothing to try."""


def rotate(items: list[T], attempt: int) -> list[T]:
    """Rotate so attempt N (1-based) starts at item (N-1) mod len(items)."""
    if not items:
        return []
    shift = (attempt - 1) % len(items)
    return items[shift:] + items[:shift]


def attempt_schedule(servers: list[str], attempts: int) -> list[tuple[int, list[str]]]:
    """(attempt number, rotated server list) for each attempt."""
    return [(attempt, rotate(servers, attempt)) for attempt in range(1, attempts + 1)]


async def first_success(
    operation: Callable[[T], Awaitable[R]],
    candidates: Iterable[T],
    *,
    on_failure: Callable[[T, Exception], None] | None = None,
    propagate: tuple[type[BaseException], ...] = (),
    empty_message: str = "Nothing to try",
) -> R:
    """Await operation(candidate) in order and return the first result.

    Exceptions listed in `propagate` escape immediately. Any other failure
    is reported to `on_failure` and the next candidate is tried. When all
    candidates fail the last failure is re-raised.
    """
    last_error: Exception | None = None
    for candidate in candidates:
        try:
            return await operation(candidate)
        except propagate:
            raise
        except Exception as e:
            last_error = e
            if on_failure is not None:
                on_failure(candidate, e)
    if last_error is not None:
        raise last_error
    raise NoServersError(empty_message)
