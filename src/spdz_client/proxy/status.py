"""Per-proxy outcome classification."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Iterable, Mapping, Optional, Union


class ProxyStatus(IntEnum):
    DISCONNECTED = 0
    FAILURE = 1
    CONNECTED = 2


@dataclass(frozen=True)
class ProxyOutcome:
    """Result of one fan-out operation for the proxy at ``position`` in the input list."""

    position: int
    status: ProxyStatus
    payload: Optional[Any] = None
    detail: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self.status is ProxyStatus.CONNECTED


def _status_of(outcome: Union[ProxyOutcome, Mapping[str, Any]]) -> Any:
    if isinstance(outcome, Mapping):
        return outcome.get("status")
    return outcome.status


def all_connected(outcomes: Iterable[Union[ProxyOutcome, Mapping[str, Any]]]) -> bool:
    """True if there is at least one outcome and every one is CONNECTED."""
    outcomes = list(outcomes)
    if not outcomes:
        return False
    return all(_status_of(o) == ProxyStatus.CONNECTED for o in outcomes)
