"""Worker classes for per-host and per-address background tasks."""

import logging
from typing import Callable

from PySide6.QtCore import QObject, QRunnable, Signal

from eyeballs.connector import Connector
from eyeballs.errors import ConnectFailure
from eyeballs.models import Address, Host

logger = logging.getLogger(__name__)


class WorkerSignals(QObject):
    """Signals for reporting per-host worker outcomes."""

    failed = Signal(str, str, str)  # Emits (host, phase, error message)
    finished = Signal(str, str)  # Emits (host, phase) when worker completes


class HostWorker(QRunnable):
    """Worker that runs one phase task for one host in a pool thread."""

    def __init__(self, host: Host, phase: str, task: Callable[[Host], object]):
        super().__init__()
        self.host = host
        self.phase = phase
        self.task = task
        self.signals = WorkerSignals()

    def run(self):
        """Execute the phase task, reporting any exception instead of raising."""
        try:
            logger.debug("Worker starting: host=%s, phase=%s", self.host.url, self.phase)
            self.task(self.host)
            logger.debug("Worker completed: host=%s, phase=%s", self.host.url, self.phase)

        except Exception as e:
            logger.exception(
                "Worker exception: host=%s, phase=%s, error=%s",
                self.host.url,
                self.phase,
                str(e),
            )
            self.signals.failed.emit(self.host.url, self.phase, str(e))

        finally:
            self.signals.finished.emit(self.host.url, self.phase)


class AttemptWorker(QRunnable):
    """Worker that makes one race attempt against a single address.

    On success the connection is offered to the host; if another attempt
    already claimed the win, this attempt closes its own connection.
    """

    def __init__(self, host: Host, address: Address, connector: Connector):
        super().__init__()
        self.host = host
        self.address = address
        self.connector = connector

    def run(self):
        try:
            connection = self.connector.connect(self.address)
        except ConnectFailure as e:
            logger.debug("Race attempt failed: host=%s, address=%s, error=%s",
                         self.host.url, self.address, e.reason)
            return
        except Exception as e:
            logger.exception("Race attempt exception: host=%s, address=%s, error=%s",
                             self.host.url, self.address, str(e))
            return

        if self.host.claim_winner(connection):
            logger.debug("Race won: host=%s, address=%s", self.host.url, self.address)
            return

        logger.debug("Race lost, closing: host=%s, address=%s", self.host.url, self.address)
        try:
            connection.close()
        except OSError as e:
            logger.debug("Close failed: address=%s, error=%s", self.address, e)
