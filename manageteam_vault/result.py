"""
Result variants returned by VaultClient.try_request
"""

from dataclasses import dataclass
from typing import Any, Union

from .exceptions import VaultError


@dataclass(frozen=True)
class Success:
    value: Any

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> Any:
        return self.value


@dataclass(frozen=True)
class Failure:
    error: VaultError

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise self.error


Result = Union[Success, Failure]
