"""TCP connect abstraction for eyeballs."""

import logging
import socket
from typing import Protocol

from eyeballs.errors import ConnectFailure
from eyeballs.models import Address

logger = logging.getLogger(__name__)


class Connector(Protocol):
    """Protocol defining the interface for establishing TCP connections."""

    def connect(self, address: Address):
        """Open a connection to address and return it, or raise ConnectFailure."""
        ...


class TcpConnector:
    """Connector that opens plain TCP sockets.

    No timeout is applied unless one is given, so a connect attempt runs
    until the operating system gives up on it.
    """

    def __init__(self, timeout: float | None = None):
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = timeout

    def connect(self, address: Address) -> socket.socket:
        """Connect to address.

        Raises:
            ConnectFailure: if the handshake does not complete
        """
        try:
            return socket.create_connection(address.sockaddr, timeout=self.timeout)
        except OSError as e:
            raise ConnectFailure(address, str(e)) from e
