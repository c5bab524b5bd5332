"""Batch controller running resolve, time and race phases across many hosts."""

import logging
import threading
import time

from PySide6.QtCore import QObject, QThreadPool, Qt, Signal

from eyeballs.connector import Connector, TcpConnector
from eyeballs.errors import WorkerFailure
from eyeballs.models import Host
from eyeballs.racer import DEFAULT_RACE_CONCURRENCY, race
from eyeballs.resolver import Resolver, SystemResolver, resolve
from eyeballs.timer import time_host
from eyeballs.workers import HostWorker

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT = 32


class BatchController(QObject):
    """Drives the measurement phases for an ordered batch of hosts.

    Key features:
    - One worker per host per phase on a bounded thread pool
    - Each phase returns only after every worker finished (full barrier)
    - A failing worker is logged and recorded; other hosts carry on

    Phases are meant to run in order: resolve_all(), time_all(), race_all().
    The controller does not enforce this.

    Thread usage: up to ``max_concurrent`` host workers run at once, and
    during race_all() each of them owns a race pool of up to
    ``race_concurrency`` attempt threads, so the race phase may run
    ``max_concurrent * race_concurrency`` connect attempts simultaneously
    (512 with the defaults).
    """

    # Signals
    phase_finished = Signal(str)  # phase name
    host_failed = Signal(str, str, str)  # (host, phase, error_msg)

    def __init__(
        self,
        hostnames=(),
        resolver: Resolver | None = None,
        connector: Connector | None = None,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        race_concurrency: int = DEFAULT_RACE_CONCURRENCY,
        parent=None,
    ):
        """Initialize batch controller.

        Args:
            hostnames: Hostnames to measure, in report order
            resolver: Resolver for the resolve phase (default: SystemResolver)
            connector: Connector for the time and race phases (default: TcpConnector)
            max_concurrent: Maximum number of host workers running at once
            race_concurrency: Maximum simultaneous attempts within one host's race
            parent: Qt parent object
        """
        super().__init__(parent)

        if max_concurrent < 1:
            raise ValueError("max_concurrent must be positive")
        if race_concurrency < 1:
            raise ValueError("race_concurrency must be positive")

        self.resolver = resolver if resolver is not None else SystemResolver()
        self.connector = connector if connector is not None else TcpConnector()
        self.max_concurrent = max_concurrent
        self.race_concurrency = race_concurrency

        self._hosts: list[Host] = []

        # Written from pool threads
        self._lock = threading.Lock()
        self._failures: list[WorkerFailure] = []
        self._in_flight = 0

        self.thread_pool = QThreadPool(self)
        self.thread_pool.setMaxThreadCount(max_concurrent)

        for hostname in hostnames:
            self.add_host(hostname)

    def add_host(self, url: str) -> Host | None:
        """Add a host to the batch.

        Args:
            url: Hostname to add; blank names are ignored, repeats get their own Host

        Returns:
            The new Host, or None if nothing was added
        """
        url = url.strip()
        if not url:
            return None

        host = Host(url)
        self._hosts.append(host)
        logger.debug("Host added: %s (total: %d)", url, len(self._hosts))
        return host

    def get_hosts(self) -> list[Host]:
        """Get all hosts in batch order."""
        return list(self._hosts)

    def get_failures(self) -> list[WorkerFailure]:
        """Get the worker failures recorded so far."""
        with self._lock:
            return list(self._failures)

    def resolve_all(self, attempts: int) -> None:
        """Resolve every host ``attempts`` times, then canonicalize its addresses.

        Args:
            attempts: Lookups per host; repeated lookups catch DNS rotation
        """
        if attempts < 1:
            raise ValueError("attempts must be positive")

        def task(host: Host):
            for _ in range(attempts):
                resolve(host, self.resolver)

        self._run_phase("resolve", task)

        for host in self._hosts:
            host.canonicalize()

    def time_all(self) -> None:
        """Sample connect latency for every host and address family."""
        self._run_phase("time", lambda host: time_host(host, self.connector))

    def race_all(self) -> None:
        """Race connection attempts to each host's IPv4 addresses."""
        self._run_phase(
            "race", lambda host: race(host, self.connector, self.race_concurrency)
        )

    def close(self) -> None:
        """Close every winning connection held by the batch.

        Hosts keep their race outcome: ``connected`` stays True and
        ``winning_connection`` returns the now closed socket. Call this only
        once results have been read, as the CLI does after saving the report.
        """
        for host in self._hosts:
            host.close()

    def get_stats(self):
        """Get controller statistics.

        Returns:
            Dict with controller state info
        """
        with self._lock:
            in_flight = self._in_flight
            failures = len(self._failures)
        return {
            "hosts": len(self._hosts),
            "in_flight": in_flight,
            "max_concurrent": self.max_concurrent,
            "race_concurrency": self.race_concurrency,
            "max_attempts": self.max_concurrent * self.race_concurrency,
            "failures": failures,
            "connected": sum(1 for host in self._hosts if host.connected),
        }

    def _run_phase(self, phase: str, task) -> None:
        """Start one worker per host and block until all of them finished."""
        started = time.perf_counter()

        for host in self._hosts:
            worker = HostWorker(host, phase, task)
            # Slots run in the pool thread; no event loop is needed
            worker.signals.failed.connect(self._on_worker_failed, type=Qt.ConnectionType.DirectConnection)
            worker.signals.finished.connect(self._on_worker_finished, type=Qt.ConnectionType.DirectConnection)
            with self._lock:
                self._in_flight += 1
            self.thread_pool.start(worker)

        self.thread_pool.waitForDone()

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("Phase %s finished: %d hosts in %.0fms", phase, len(self._hosts), elapsed_ms)
        self.phase_finished.emit(phase)

    def _on_worker_failed(self, host: str, phase: str, error_msg: str):
        """Record a worker failure. Runs in the failing worker's thread."""
        with self._lock:
            self._failures.append(WorkerFailure(host, phase, error_msg))
        logger.error("Worker failed: host=%s, phase=%s, error=%s", host, phase, error_msg)
        self.host_failed.emit(host, phase, error_msg)

    def _on_worker_finished(self, host: str, phase: str):
        with self._lock:
            self._in_flight = max(0, self._in_flight - 1)
