"""Entry point for the eyeballs measurement run."""

import logging
import os
import sys
import time

from eyeballs.batch import BatchController
from eyeballs.config import DEFAULT_BATCH_FILE, RunConfig, load_batch
from eyeballs.errors import ConfigurationError
from eyeballs.logging_config import configure_logging
from eyeballs.report import save_results

logger = logging.getLogger(__name__)

BATCH_FILE_ENV = "EYEBALLS_BATCH_FILE"


def main(argv=None) -> int:
    """Resolve, time and race a batch of hosts, then write the report."""
    configure_logging()

    if argv is None:
        argv = sys.argv[1:]

    # Configuration errors are the only ones that stop the run
    try:
        config = RunConfig.from_args(
            argv, default_batch_file=os.environ.get(BATCH_FILE_ENV, DEFAULT_BATCH_FILE)
        )
        records = load_batch(config.batch_file, config.sites)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 1

    started = time.perf_counter()
    controller = BatchController(
        (record.hostname for record in records),
        max_concurrent=config.max_concurrent,
        race_concurrency=config.race_concurrency,
    )

    try:
        controller.resolve_all(config.attempts)
        controller.time_all()
        if not config.skip_race:
            controller.race_all()
        save_results(controller.get_hosts(), config.output)
    except OSError as e:
        logger.error("Could not write results to %s: %s", config.output, e)
        return 1
    finally:
        # Hosts stay connected in stats; only the sockets are released
        controller.close()

    stats = controller.get_stats()
    logger.info(
        "Execution done: hosts=%d, connected=%d, failures=%d, time=%.0fms",
        stats["hosts"],
        stats["connected"],
        stats["failures"],
        (time.perf_counter() - started) * 1000,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
