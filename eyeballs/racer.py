"""Connection race across a host's IPv4 addresses."""

import logging

from PySide6.QtCore import QThreadPool

from eyeballs.connector import Connector
from eyeballs.models import Host
from eyeballs.workers import AttemptWorker

logger = logging.getLogger(__name__)

DEFAULT_RACE_CONCURRENCY = 16


def race(host: Host, connector: Connector, max_workers: int = DEFAULT_RACE_CONCURRENCY) -> bool:
    """Race connection attempts to every IPv4 address of host.

    Attempts are launched in address order without waiting for earlier ones.
    The first attempt to complete its handshake becomes the host's winning
    connection; any other successful attempt closes its own connection.
    Once a winner is claimed no further attempts are launched, but every
    attempt already launched is waited for before returning.

    Args:
        host: Host to race; an unresolved host has nothing to race
        connector: Connector used for every attempt
        max_workers: Ceiling on simultaneous attempts for this host

    Returns:
        True if the host ended the race connected
    """
    if max_workers < 1:
        raise ValueError("max_workers must be positive")

    addresses = host.v4
    if not addresses:
        logger.debug("Nothing to race: host=%s", host.url)
        host.mark_raced()
        return False

    pool = QThreadPool()
    pool.setMaxThreadCount(min(max_workers, len(addresses)))

    launched = 0
    for address in addresses:
        if host.race_decided:
            break
        pool.start(AttemptWorker(host, address, connector))
        launched += 1

    pool.waitForDone()
    host.mark_raced()

    connected = host.connected
    logger.debug(
        "Race finished: host=%s, launched=%d/%d, connected=%s",
        host.url,
        launched,
        len(addresses),
        connected,
    )
    return connected
