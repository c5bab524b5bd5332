"""Run configuration and batch file loading for eyeballs."""

import argparse
import csv
import logging
import time
from dataclasses import dataclass
from pathlib import Path

from eyeballs.batch import DEFAULT_MAX_CONCURRENT
from eyeballs.errors import ConfigurationError
from eyeballs.racer import DEFAULT_RACE_CONCURRENCY

logger = logging.getLogger(__name__)

DEFAULT_BATCH_FILE = "alexa.csv"


@dataclass(frozen=True)
class BatchRecord:
    """One line of the batch file."""

    rank: str
    hostname: str


def load_batch(path, sites: int) -> list[BatchRecord]:
    """Read the first ``sites`` records of a ``rank,hostname`` batch file.

    Args:
        path: Batch file location
        sites: Number of records to take from the top of the file

    Raises:
        ConfigurationError: if the file cannot be read or a record is malformed
    """
    if sites < 1:
        raise ConfigurationError("number of sites must be positive")

    records = []
    try:
        with open(path, newline="", encoding="utf-8") as f:
            for line_no, row in enumerate(csv.reader(f), start=1):
                if len(records) >= sites:
                    break
                if not row:
                    continue
                if len(row) < 2 or not row[1].strip():
                    raise ConfigurationError(f"{path}:{line_no}: expected 'rank,hostname'")
                records.append(BatchRecord(rank=row[0].strip(), hostname=row[1].strip()))
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise ConfigurationError(f"cannot read batch file {path}: {e}") from e

    if len(records) < sites:
        logger.warning("Batch file %s has only %d of %d requested sites", path, len(records), sites)
    logger.info("Loaded %d hosts from %s", len(records), path)
    return records


@dataclass
class RunConfig:
    """Parameters of one measurement run."""

    attempts: int
    sites: int
    batch_file: Path
    output: Path
    max_concurrent: int = DEFAULT_MAX_CONCURRENT
    race_concurrency: int = DEFAULT_RACE_CONCURRENCY
    skip_race: bool = False

    @classmethod
    def from_args(cls, argv, default_batch_file: str | None = None) -> "RunConfig":
        """Build a config from command line arguments (without the program name).

        Args:
            argv: Argument list
            default_batch_file: Batch file used when --batch-file is absent

        Raises:
            ConfigurationError: if arguments are missing or invalid
        """
        parser = _build_parser(default_batch_file or DEFAULT_BATCH_FILE)
        try:
            args = parser.parse_args(argv)
        except SystemExit as e:
            # argparse already printed usage; keep --help a clean exit
            if e.code == 0:
                raise
            raise ConfigurationError("invalid arguments") from e

        if args.attempts < 1:
            raise ConfigurationError("attempts must be positive")
        if args.sites < 1:
            raise ConfigurationError("sites must be positive")
        if args.max_concurrent < 1 or args.race_concurrency < 1:
            raise ConfigurationError("concurrency limits must be positive")

        output = args.output or Path(f"results_{int(time.time() * 1000)}.csv")
        return cls(
            attempts=args.attempts,
            sites=args.sites,
            batch_file=args.batch_file,
            output=output,
            max_concurrent=args.max_concurrent,
            race_concurrency=args.race_concurrency,
            skip_race=args.skip_race,
        )


def _build_parser(default_batch_file: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eyeballs",
        description="Measure TCP connect times and race resolved addresses for a batch of hosts.",
    )
    parser.add_argument("attempts", type=int, help="DNS lookups per host")
    parser.add_argument("sites", type=int, help="number of hosts to take from the batch file")
    parser.add_argument(
        "--batch-file",
        type=Path,
        default=Path(default_batch_file),
        help="rank,hostname CSV file (default: %(default)s)",
    )
    parser.add_argument("--output", type=Path, default=None, help="report file (default: results_<ms>.csv)")
    parser.add_argument(
        "--max-concurrent",
        type=int,
        default=DEFAULT_MAX_CONCURRENT,
        help="hosts processed in parallel (default: %(default)s)",
    )
    parser.add_argument(
        "--race-concurrency",
        type=int,
        default=DEFAULT_RACE_CONCURRENCY,
        help="simultaneous attempts per host race (default: %(default)s)",
    )
    parser.add_argument("--skip-race", action="store_true", help="only resolve and time")
    return parser
