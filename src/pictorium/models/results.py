"""
Typed result values for the cache-fill pipeline.

Every capability in the pipeline (blob store, origin, resizer) reports
failure by returning an ``Err`` rather than raising, so callers have to
handle each outcome explicitly:

>>> result = await store.get(key)
>>> if isinstance(result, Err):
...     if result.kind is FailureKind.NOT_FOUND:
...         ...  # cache miss
>>> else:
...     data = result.value
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class FailureKind(str, Enum):
    """Failure taxonomy shared by all pipeline components."""

    UNKNOWN_VARIANT = "unknown_variant"
    INVALID_FILENAME = "invalid_filename"
    NOT_FOUND = "not_found"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    IO_FAILURE = "io_failure"
    DECODE_ERROR = "decode_error"
    ENCODE_ERROR = "encode_error"
    STORE_WRITE_FAILED = "store_write_failed"
    STORE_VERIFICATION_FAILED = "store_verification_failed"

    @property
    def is_client_error(self) -> bool:
        """True for failures caused by the request rather than infrastructure."""
        return self in (FailureKind.UNKNOWN_VARIANT, FailureKind.INVALID_FILENAME)


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T


@dataclass(frozen=True)
class Err:
    """Failed outcome.

    Attributes
    ----------
    kind : FailureKind
        Machine-readable failure category.
    message : str
        Human-readable explanation.
    cause : BaseException | None
        Underlying exception, if the failure came from one.
    """

    kind: FailureKind
    message: str
    cause: BaseException | None = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


Result = Union[Ok[T], Err]
