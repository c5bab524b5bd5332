"""Hostname resolution for eyeballs."""

import logging
import socket
from typing import Protocol

from eyeballs.errors import ResolutionFailure
from eyeballs.models import Address, Host

logger = logging.getLogger(__name__)

SERVICE_PORT = 80


class Resolver(Protocol):
    """Protocol defining the interface for address resolvers."""

    def lookup(self, hostname: str) -> list[Address]:
        """Return every address for hostname, or raise ResolutionFailure."""
        ...


class SystemResolver:
    """Resolver backed by the operating system's getaddrinfo()."""

    def __init__(self, port: int = SERVICE_PORT):
        """Initialize resolver with the service port to look up.

        Args:
            port: TCP port attached to every resolved address. Default is 80.
        """
        if not 0 < port < 65536:
            raise ValueError("port must be between 1 and 65535")
        self.port = port

    def lookup(self, hostname: str) -> list[Address]:
        """Resolve hostname to TCP stream addresses in the order returned.

        Raises:
            ResolutionFailure: if the lookup fails or yields nothing usable
        """
        if not hostname or not hostname.strip():
            raise ResolutionFailure("hostname is empty")

        try:
            infos = socket.getaddrinfo(hostname, self.port, type=socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as e:
            raise ResolutionFailure(f"{hostname}: {e}") from e

        addresses = []
        for family, _type, _proto, _canon, sockaddr in infos:
            if family not in (socket.AF_INET, socket.AF_INET6):
                continue
            addresses.append(Address.parse(sockaddr[0], sockaddr[1]))

        if not addresses:
            raise ResolutionFailure(f"{hostname}: no addresses")
        return addresses


def resolve(host: Host, resolver: Resolver) -> int:
    """Run one lookup for host and append the answers to its address lists.

    Failures are not errors here: a failed lookup contributes nothing.
    Duplicates are kept; canonicalization happens once after all attempts.

    Returns:
        Number of addresses appended by this attempt
    """
    try:
        addresses = resolver.lookup(host.url)
    except ResolutionFailure as e:
        logger.debug("Resolution failed: host=%s, error=%s", host.url, e)
        return 0

    host.add_addresses(addresses)
    logger.debug("Resolved: host=%s, addresses=%d", host.url, len(addresses))
    return len(addresses)
