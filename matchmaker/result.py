"""Call results.

Every zome call answers with exactly one of ``Ok(value)`` or ``Err(value)``.
On the wire the same thing is the externally tagged object ``{"Ok": value}``
or ``{"Err": value}``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


class UnwrapError(Exception):
    def __init__(self, err: Any):
        super().__init__(f"called unwrap() on Err: {err!r}")
        self.err = err


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> T:
        return self.value

    @property
    def err(self) -> None:
        return None

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err(Generic[E]):
    value: E

    @property
    def ok(self) -> None:
        return None

    @property
    def err(self) -> E:
        return self.value

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self):
        raise UnwrapError(self.value)


CallResult = Union[Ok[Any], Err[Any]]


def error_payload(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"code": code, "message": message}
    if details:
        payload["details"] = details
    return payload


def err(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Err[Dict[str, Any]]:
    return Err(error_payload(code, message, details))


def to_wire(result: CallResult) -> Dict[str, Any]:
    if isinstance(result, Ok):
        return {"Ok": result.value}
    if isinstance(result, Err):
        return {"Err": result.value}
    raise TypeError(f"not a call result: {result!r}")


def from_wire(obj: Any) -> CallResult:
    if not isinstance(obj, dict):
        raise ValueError("call result must be an object")
    has_ok = "Ok" in obj
    has_err = "Err" in obj
    if has_ok == has_err or len(obj) != 1:
        raise ValueError("call result must carry exactly one of Ok or Err")
    if has_ok:
        return Ok(obj["Ok"])
    return Err(obj["Err"])
