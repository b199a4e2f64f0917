from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

UNREACHABLE: Literal["unreachable"] = "unreachable"

STATUS_MISMATCH_TEXT = "Status code does not match expected code"


@dataclass(frozen=True)
class Success:
    duration_ms: int

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    actual_status: Union[int, Literal["unreachable"]]
    error: str = ""

    @property
    def ok(self) -> bool:
        return False

    @property
    def unreachable(self) -> bool:
        return self.actual_status == UNREACHABLE

    def describe_error(self) -> str:
        return self.error or STATUS_MISMATCH_TEXT


CheckOutcome = Union[Success, Failure]
