"""Data models for eyeballs hosts, addresses and samples."""

import enum
import ipaddress
import logging
import socket
import threading
from dataclasses import dataclass
from datetime import datetime

from eyeballs.errors import NotConnectedYet

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class Address:
    """A resolved socket address, ordered by IP value then port."""

    ip: ipaddress.IPv4Address | ipaddress.IPv6Address
    port: int

    @classmethod
    def parse(cls, ip: str, port: int) -> "Address":
        """Build an Address from a textual IP and a port number."""
        return cls(ipaddress.ip_address(ip), int(port))

    @property
    def family(self) -> int:
        return socket.AF_INET if self.ip.version == 4 else socket.AF_INET6

    @property
    def sockaddr(self) -> tuple[str, int]:
        """Address in the form accepted by socket.create_connection()."""
        return (str(self.ip), self.port)

    def __str__(self) -> str:
        if self.ip.version == 6:
            return f"[{self.ip}]:{self.port}"
        return f"{self.ip}:{self.port}"


@dataclass
class ConnectSample:
    """A single TCP connect latency sample."""

    ts: datetime
    address: Address
    latency_ns: int | None  # None indicates a failed connect
    failed: bool

    def __post_init__(self):
        """Ensure consistency between latency_ns and failed fields."""
        if self.failed:
            self.latency_ns = None
        elif self.latency_ns is None:
            self.failed = True


class HostState(enum.IntEnum):
    """Forward-only lifecycle of a host: each phase moves it one step."""

    EMPTY = 0
    RESOLVED = 1
    TIMED = 2
    RACED = 3


class AtomicFlag:
    """A one-shot flag with an indivisible test-and-set.

    Backed by a lock that is acquired without blocking and never released,
    so exactly one caller of test_and_set() ever observes the transition.
    """

    def __init__(self):
        self._lock = threading.Lock()

    def test_and_set(self) -> bool:
        """Set the flag; return True only for the caller that set it."""
        return self._lock.acquire(blocking=False)

    def is_set(self) -> bool:
        return self._lock.locked()


class Host:
    """Mutable per-host record shared between phase workers.

    Every mutable field is read and written under ``self._lock``. The race
    winner is decided by a separate AtomicFlag so concurrently completing
    attempts agree on a single winner before touching the record.

    Phases are expected to run in order (resolve, time, race) but nothing
    here enforces it: racing an unresolved host simply finds no addresses.
    """

    def __init__(self, url: str):
        self._url = url
        self._lock = threading.Lock()
        self._v4: list[Address] = []
        self._v6: list[Address] = []
        self._connect_time_v4: int | None = None
        self._connect_time_v6: int | None = None
        self._winner = AtomicFlag()
        self._winning_connection = None
        self._state = HostState.EMPTY

    def __repr__(self) -> str:
        return f"Host({self._url!r})"

    @property
    def url(self) -> str:
        return self._url

    @property
    def v4(self) -> list[Address]:
        with self._lock:
            return list(self._v4)

    @property
    def v6(self) -> list[Address]:
        with self._lock:
            return list(self._v6)

    @property
    def connect_time_v4(self) -> int | None:
        """Average IPv4 connect time in nanoseconds, None before timing."""
        with self._lock:
            return self._connect_time_v4

    @property
    def connect_time_v6(self) -> int | None:
        """Average IPv6 connect time in nanoseconds, None before timing."""
        with self._lock:
            return self._connect_time_v6

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._winning_connection is not None

    @property
    def race_decided(self) -> bool:
        """True once some attempt has claimed the win, even if not yet stored."""
        return self._winner.is_set()

    @property
    def winning_connection(self):
        """The socket of the first successful race attempt.

        Raises:
            NotConnectedYet: if no race has produced a winner for this host
        """
        with self._lock:
            if self._winning_connection is None:
                raise NotConnectedYet(f"{self._url} is not connected yet")
            return self._winning_connection

    @property
    def state(self) -> HostState:
        with self._lock:
            return self._state

    def add_addresses(self, addresses) -> None:
        """Append resolved addresses to the per-family lists, keeping duplicates."""
        with self._lock:
            for address in addresses:
                if address.ip.version == 4:
                    self._v4.append(address)
                else:
                    self._v6.append(address)

    def canonicalize(self) -> None:
        """Sort and deduplicate both address lists and mark the host resolved."""
        with self._lock:
            self._v4 = sorted(set(self._v4))
            self._v6 = sorted(set(self._v6))
            self._advance(HostState.RESOLVED)

    def set_connect_times(self, v4_ns: int, v6_ns: int) -> None:
        with self._lock:
            self._connect_time_v4 = v4_ns
            self._connect_time_v6 = v6_ns
            self._advance(HostState.TIMED)

    def claim_winner(self, connection) -> bool:
        """Store ``connection`` as the winner if no other attempt got there first.

        Returns:
            True if this connection won; the caller owns it otherwise and
            must close it.
        """
        if not self._winner.test_and_set():
            return False
        with self._lock:
            self._winning_connection = connection
        return True

    def mark_raced(self) -> None:
        with self._lock:
            self._advance(HostState.RACED)

    def close(self) -> None:
        """Close the winning connection, if any. The host stays connected."""
        with self._lock:
            connection = self._winning_connection
        if connection is not None:
            try:
                connection.close()
            except OSError as e:
                logger.debug("Closing winner failed: host=%s, error=%s", self._url, e)

    def _advance(self, state: HostState) -> None:
        # Caller holds self._lock
        if state > self._state:
            self._state = state
