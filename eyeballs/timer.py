"""Connect latency sampling for eyeballs."""

import logging
import time
from datetime import datetime

from eyeballs.connector import Connector
from eyeballs.errors import ConnectFailure
from eyeballs.models import Address, ConnectSample, Host

logger = logging.getLogger(__name__)


def take_time(address: Address, connector: Connector) -> ConnectSample:
    """Measure one TCP handshake to address.

    The connection is closed as soon as it is established. A failed connect
    yields a sample with failed=True instead of raising.
    """
    timestamp = datetime.now()
    start = time.perf_counter_ns()
    try:
        connection = connector.connect(address)
    except ConnectFailure as e:
        logger.debug("Connect failed: address=%s, error=%s", address, e.reason)
        return ConnectSample(ts=timestamp, address=address, latency_ns=None, failed=True)
    elapsed = time.perf_counter_ns() - start

    try:
        connection.close()
    except OSError as e:
        logger.debug("Close failed: address=%s, error=%s", address, e)

    return ConnectSample(ts=timestamp, address=address, latency_ns=elapsed, failed=False)


def time_family(addresses: list[Address], connector: Connector) -> int:
    """Average connect time in nanoseconds over the reachable addresses.

    Addresses are tried one after another. Failed attempts count neither
    towards the sum nor the divisor; if nothing connects the result is 0.
    """
    total = 0
    count = 0
    for address in addresses:
        sample = take_time(address, connector)
        if sample.failed:
            continue
        total += sample.latency_ns
        count += 1

    if count == 0:
        return 0
    return total // count


def time_host(host: Host, connector: Connector) -> tuple[int, int]:
    """Time both address families of host and store the averages on it.

    Returns:
        (v4 average, v6 average) in nanoseconds
    """
    v4_ns = time_family(host.v4, connector)
    v6_ns = time_family(host.v6, connector)
    host.set_connect_times(v4_ns, v6_ns)
    logger.debug("Timed: host=%s, v4=%dns, v6=%dns", host.url, v4_ns, v6_ns)
    return v4_ns, v6_ns
