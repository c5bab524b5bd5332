"""CSV report output for eyeballs."""

import logging

from eyeballs.models import Host

logger = logging.getLogger(__name__)

SEPARATOR = ";"


def format_addresses(addresses) -> str:
    return "[" + ", ".join(str(address) for address in addresses) + "]"


def format_row(host: Host) -> str:
    """Render one report line for host (without the trailing newline).

    Columns: url, v4 list, v4 count, v4 average ns, v6 list, v6 count,
    v6 average ns. A family that was never timed reports 0.
    """
    v4 = host.v4
    v6 = host.v6
    fields = [
        f'"{host.url}"',
        format_addresses(v4),
        str(len(v4)),
        str(host.connect_time_v4 or 0),
        format_addresses(v6),
        str(len(v6)),
        str(host.connect_time_v6 or 0),
    ]
    return SEPARATOR.join(fields)


def save_results(hosts, filename) -> int:
    """Write one line per host to filename, replacing any existing file.

    Returns:
        Number of lines written
    """
    logger.info("Saving results to %s", filename)
    count = 0
    with open(filename, "w", encoding="utf-8", newline="\n") as f:
        for host in hosts:
            f.write(format_row(host) + "\n")
            count += 1
    return count
