"""CLI entry point: python main.py [--once] [--log-format console]"""

import argparse
import json
import sys

from src.digest_scheduler import build_scheduler, close_collaborators, load_settings, run_service
from src.logging_config import LogFormat, LoggingConfig, LogLevel, configure_logging
from src.weather_alerts import ConfigurationError


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Weather alerts - threshold alerts and scheduled digests"
    )
    parser.add_argument(
        "--once", action="store_true",
        help="Run a single tick, print its report, and exit"
    )
    parser.add_argument(
        "--log-format", choices=[f.value for f in LogFormat], default=LogFormat.JSON.value,
        help="Log output format (default: json)"
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Enable debug logging"
    )
    args = parser.parse_args(argv)

    logging_config = LoggingConfig(
        level=LogLevel.DEBUG if args.verbose else LogLevel.INFO,
        format=LogFormat(args.log_format),
    )

    if not args.once:
        return run_service(logging_config=logging_config)

    configure_logging(logging_config)
    try:
        scheduler = build_scheduler(load_settings())
    except ConfigurationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    try:
        report = scheduler.run_tick()
    finally:
        scheduler.stop()
        close_collaborators(scheduler)
    print(json.dumps(report.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
