"""Shared fixtures and fakes for eyeballs tests."""

import socket
import threading
import time

import pytest

from eyeballs.errors import ConnectFailure
from eyeballs.models import Address


class FakeConnection:
    """Stand-in for a connected socket that records close() calls."""

    def __init__(self, address):
        self.address = address
        self.closed = False

    def close(self):
        self.closed = True


class ScriptedConnector:
    """Connector with a fixed outcome per address.

    ``outcomes`` maps an Address to a latency in nanoseconds (success) or
    None (failure). Successful connects advance ``clock`` by the latency and
    optionally sleep ``delay`` seconds first.
    """

    def __init__(self, outcomes, clock=None, delays=None):
        self.outcomes = dict(outcomes)
        self.clock = clock
        self.delays = dict(delays or {})
        self.connections = []
        self.attempted = []
        self._lock = threading.Lock()

    def connect(self, address):
        with self._lock:
            self.attempted.append(address)
        delay = self.delays.get(address)
        if delay:
            time.sleep(delay)
        latency = self.outcomes.get(address)
        if latency is None:
            raise ConnectFailure(address, "connection refused")
        if self.clock is not None:
            self.clock.advance(latency)
        connection = FakeConnection(address)
        with self._lock:
            self.connections.append(connection)
        return connection


class BarrierConnector:
    """Connector whose attempts all complete together once ``parties`` arrived."""

    def __init__(self, parties):
        self.barrier = threading.Barrier(parties, timeout=10)
        self.connections = []
        self._lock = threading.Lock()

    def connect(self, address):
        self.barrier.wait()
        connection = FakeConnection(address)
        with self._lock:
            self.connections.append(connection)
        return connection


class RaisingConnector:
    """Connector that fails with an unexpected error type."""

    def connect(self, address):
        raise RuntimeError("connector exploded")


class FakeClock:
    """Replacement for the time module that only moves when told to."""

    def __init__(self):
        self.now_ns = 0

    def advance(self, ns):
        self.now_ns += ns

    def perf_counter_ns(self):
        return self.now_ns


def ipv4(last_octet, port=80):
    return Address.parse(f"192.0.2.{last_octet}", port)


def ipv6(last_group, port=80):
    return Address.parse(f"2001:db8::{last_group:x}", port)


@pytest.fixture
def clock(monkeypatch):
    """Fake clock patched into eyeballs.timer."""
    import eyeballs.timer

    fake = FakeClock()
    monkeypatch.setattr(eyeballs.timer, "time", fake)
    return fake


@pytest.fixture
def listener():
    """Listening loopback TCP socket; connects succeed via the backlog."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(64)
    yield server
    server.close()


@pytest.fixture
def closed_port():
    """A loopback port with nothing listening on it."""
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    return port
