"""Static resolver for eyeballs testing and offline runs."""

import threading

from eyeballs.errors import ResolutionFailure
from eyeballs.models import Address


class StaticResolver:
    """Serves canned answers, rotating through them on each lookup.

    Each hostname maps to a list of answers; lookup N for a hostname returns
    answer N modulo the number of answers, which mimics DNS servers that
    rotate their records between queries. Unknown hostnames fail.
    """

    def __init__(self, answers: dict[str, list[list[Address]]] | None = None):
        self._answers = {host: [list(a) for a in rotation] for host, rotation in (answers or {}).items()}
        self._queries: dict[str, int] = {}
        self._lock = threading.Lock()

    def add_answer(self, hostname: str, addresses: list[Address]) -> None:
        """Append one more answer to the rotation for hostname."""
        with self._lock:
            self._answers.setdefault(hostname, []).append(list(addresses))

    def query_count(self, hostname: str) -> int:
        with self._lock:
            return self._queries.get(hostname, 0)

    def lookup(self, hostname: str) -> list[Address]:
        with self._lock:
            count = self._queries.get(hostname, 0)
            self._queries[hostname] = count + 1
            rotation = self._answers.get(hostname)
            if not rotation:
                raise ResolutionFailure(f"{hostname}: unknown host")
            answer = rotation[count % len(rotation)]

        if not answer:
            raise ResolutionFailure(f"{hostname}: no addresses")
        return list(answer)
