"""Explicit success/failure values for non-committal previews.

Preview APIs (quotes, swap checks) collapse failures into None/False at the
boundary; the Ok/Err pair keeps the underlying AppError inspectable below it.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from src.pm_common.errors import AppError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: AppError

    @property
    def is_ok(self) -> bool:
        return False


def capture(fn: Callable[[], T]) -> Ok[T] | Err:
    """Run fn, turning a raised AppError into Err. Other exceptions propagate."""
    try:
        return Ok(fn())
    except AppError as exc:
        return Err(exc)
