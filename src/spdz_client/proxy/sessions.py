"""Session ids handed out by each proxy, keyed by proxy url."""

from typing import Dict, Iterator


class SessionStore:
    """
    Maps proxy url -> session id for one logical client.

    Not locked: within a fan-out round each task only touches its own url.
    Lifetime spans the owning aggregator; ``reset`` starts a new connect round.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, str] = {}

    def reset(self) -> None:
        self._sessions.clear()

    def store(self, url: str, session_id: str) -> None:
        self._sessions[url] = session_id

    def exists(self, url: str) -> bool:
        return url in self._sessions

    def get(self, url: str) -> str:
        """Session id for ``url``. Callers must check ``exists`` first; raises KeyError otherwise."""
        return self._sessions[url]

    def remove(self, url: str) -> None:
        self._sessions.pop(url, None)

    def __contains__(self, url: object) -> bool:
        return url in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._sessions))
