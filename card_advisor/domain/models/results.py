"""
Collaborator call results.

Every market-data and portfolio call made by the pipeline returns either
Ok(value) or Unavailable(source, reason). Consumers branch on the variant
instead of relying on falsy values.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Unavailable:
    source: str
    reason: str

    @property
    def is_ok(self) -> bool:
        return False


FetchResult = Union[Ok[T], Unavailable]


def value_or(result: "FetchResult[T]", default: T) -> T:
    """Unwrap an Ok value, or fall back to default when unavailable"""
    if isinstance(result, Ok):
        return result.value
    return default
