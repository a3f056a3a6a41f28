"""Explicit success / failure values for operations that touch storage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from backend.content.errors import ContentError

T = TypeVar("T")
E = TypeVar("E", bound=ContentError)


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok = True


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E
    ok = False


Result = Union[Ok[T], Err[E]]
