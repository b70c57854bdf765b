"""Tagged result type returned by resource and pricing operations."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from .errors import MintologyError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value (``value``) or an error (``error``), never both.

    Callers branch on :attr:`is_ok` instead of sniffing payloads for
    ``error``/``message`` keys.
    """

    value: Optional[T] = None
    error: Optional[MintologyError] = None

    def __post_init__(self) -> None:
        if self.error is not None and self.value is not None:
            raise ValueError("Result cannot carry both a value and an error")

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def err(cls, error: MintologyError) -> "Result[Any]":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    @property
    def is_err(self) -> bool:
        return self.error is not None

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def unwrap_or(self, default: T) -> T:
        return default if self.error is not None else self.value  # type: ignore[return-value]

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        if self.error is not None:
            return Result(error=self.error)
        return Result(value=fn(self.value))  # type: ignore[arg-type]
