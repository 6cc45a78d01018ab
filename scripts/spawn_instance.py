"""CLI entry point for running a throwaway database by hand.

Usage:
    python -m scripts.spawn_instance --engine postgres [--database test] [--attempts 3000]

Run from the repository root; scripts/ is not an installed package.
"""

import argparse
import logging
import signal

import tempdb
from tempdb import InstanceConfig

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Start a throwaway database until interrupted")
    parser.add_argument("--engine", default="postgres", help="postgres or mysql")
    parser.add_argument("--database", default="test", help="Name of the test database")
    parser.add_argument("--attempts", type=int, default=1000, help="Readiness retry attempts")
    parser.add_argument(
        "--interval", type=float, default=0.01, help="Seconds between readiness attempts"
    )
    parser.add_argument("--verbose", action="store_true", help="Log individual commands")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger("tempdb").setLevel(logging.DEBUG)

    config = InstanceConfig(
        database=args.database,
        retry_attempts=args.attempts,
        retry_interval=args.interval,
    )
    instance = tempdb.start(args.engine, config)
    try:
        logger.info("Connection URL: %s", instance.url)
        logger.info("Press Ctrl-C to stop.")
        signal.pause()
    except KeyboardInterrupt:
        pass
    finally:
        instance.stop()
        logger.info("Done.")


if __name__ == "__main__":
    main()
