"""Failure taxonomy shared by every layer of the SDK.

Network operations never raise for expected failures. They return a
``Result`` that either carries a value or a ``ClassifiedFailure``, and the
failure's ``kind`` tells the retry coordinator (and the caller) what went
wrong:

- ``VALIDATION``: the caller passed an empty or blank required value. No
  network call was made and retrying cannot help.
- ``NETWORK``: the exchange never completed (connection refused, DNS,
  timeout). Always retryable.
- ``HTTP``: the server answered with a non-2xx status. Retryable only for
  429 and 5xx.

``DeliveryError`` is the boundary exception for callers that prefer raising,
obtained through ``Result.unwrap()``.
"""

import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class FailureKind(enum.Enum):
    """Category of a classified failure."""
    VALIDATION = "validation"
    NETWORK = "network"
    HTTP = "http"


@dataclass(frozen=True)
class ClassifiedFailure:
    """A typed failure outcome carrying enough metadata to decide retryability."""
    kind: FailureKind
    message: str
    status_code: Optional[int] = None
    retry_after_ms: Optional[int] = None  # Only set for 429 with a numeric Retry-After
    code: Optional[str] = None  # Machine-readable code from the error body
    cause: Optional[BaseException] = None

    @classmethod
    def validation(cls, message: str) -> "ClassifiedFailure":
        return cls(kind=FailureKind.VALIDATION, message=message)

    @classmethod
    def network(cls, message: str, cause: Optional[BaseException] = None) -> "ClassifiedFailure":
        return cls(kind=FailureKind.NETWORK, message=message, cause=cause)

    @classmethod
    def http(
        cls,
        status_code: int,
        message: str,
        retry_after_ms: Optional[int] = None,
        code: Optional[str] = None,
    ) -> "ClassifiedFailure":
        return cls(
            kind=FailureKind.HTTP,
            message=message,
            status_code=status_code,
            retry_after_ms=retry_after_ms,
            code=code,
        )

    @property
    def is_retryable(self) -> bool:
        """True for network errors, HTTP 429 and HTTP 5xx."""
        if self.kind is FailureKind.NETWORK:
            return True
        if self.kind is FailureKind.HTTP and self.status_code is not None:
            return self.status_code == 429 or 500 <= self.status_code <= 599
        return False

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.kind.value} error (status {self.status_code}): {self.message}"
        return f"{self.kind.value} error: {self.message}"


class DeliveryError(Exception):
    """Raised by ``Result.unwrap()`` when the result holds a failure."""

    def __init__(self, failure: ClassifiedFailure):
        self.failure = failure
        super().__init__(str(failure))

    @property
    def kind(self) -> FailureKind:
        return self.failure.kind

    @property
    def status_code(self) -> Optional[int]:
        return self.failure.status_code

    @property
    def retry_after_ms(self) -> Optional[int]:
        return self.failure.retry_after_ms

    @property
    def code(self) -> Optional[str]:
        return self.failure.code


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a classified failure, never both."""
    value: Optional[T] = None
    failure: Optional[ClassifiedFailure] = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, failure: ClassifiedFailure) -> "Result[T]":
        return cls(failure=failure)

    @property
    def is_ok(self) -> bool:
        return self.failure is None

    def unwrap(self) -> T:
        """Returns the value or raises ``DeliveryError`` with the failure."""
        if self.failure is not None:
            raise DeliveryError(self.failure)
        return self.value  # type: ignore[return-value]


def require_not_blank(value: Optional[str], name: str) -> Optional[ClassifiedFailure]:
    """Returns a validation failure when ``value`` is None, empty or whitespace."""
    if value is None or not str(value).strip():
        return ClassifiedFailure.validation(f"{name} must not be blank")
    return None
