"""Tagged results for calls to third-party services.

Upstream clients decode every response at the boundary into either
``Success`` or ``Failure``. Nothing deeper in the pipeline inspects raw
response shapes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class FailureKind(str, Enum):
    UNREACHABLE = "unreachable"  # transport error, timeout, 5xx
    MALFORMED = "malformed"  # unexpected JSON shape
    NOT_FOUND = "not_found"  # upstream answered, nothing matched
    REJECTED = "rejected"  # upstream answered with an error status


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    detail: str = ""


UpstreamResult = Union[Success[T], Failure]
