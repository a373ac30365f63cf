"""Command line entry point for the FlashArray collector."""

import argparse
import logging
import sys
import time
from typing import Optional

from .config import Settings
from .core.collector import PureFACollector
from .core.errors import ConfigError, PureFAError
from .core.logging_config import LoggingConfigurator
from .core.writer_config import WriterConfig
from .writer.base import Accumulator
from .writer.factory import WriterFactory


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""

    parser = argparse.ArgumentParser(
        description='Pure Storage FlashArray capacity and performance collector',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Poll one array every minute, expose metrics to Prometheus
  purefa-collector --array purefa1.example.com --api-token $TOKEN --output prometheus

  # Settings from a file, write to InfluxDB, stop after one poll
  purefa-collector --config purefa.yaml --output influxdb --influxdb-url https://db.example.com:8181 \\
                   --influxdb-token mytoken --influxdb-database purefa --max-iterations 1
        """
    )

    array_group = parser.add_argument_group('Array')
    array_group.add_argument('--config', type=str, default=None,
                             help='YAML or JSON settings file (array, api_token, http_timeout, ignore_veeamsnap)')
    array_group.add_argument('--array', type=str, default=None,
                             help='FlashArray management hostname or IP address')
    array_group.add_argument('--api-token', type=str, default=None,
                             help='FlashArray API token (or PUREFA_API_TOKEN)')
    array_group.add_argument('--url', type=str, default=None,
                             help='Override the API base URL (default: https://<array>/api/1.15)')
    array_group.add_argument('--http-timeout', type=str, default=None,
                             help='Total time allowed per request, e.g. 4s or 500ms (default: 4s)')
    array_group.add_argument('--ignore-veeamsnap', action='store_true', default=None,
                             help='Skip volumes created by Veeam from array snapshots')
    array_group.add_argument('--tls-validation', choices=['strict', 'none'], default=None,
                             help='TLS validation for the array API (default: strict)')
    array_group.add_argument('--tls-ca', type=str, default=None,
                             help='CA bundle used to verify the array certificate')

    output_group = parser.add_argument_group('Output Configuration')
    output_group.add_argument('--output', choices=['influxdb', 'prometheus', 'both'],
                              default='prometheus', help='Output format (default: prometheus)')
    output_group.add_argument('--influxdb-url', type=str, default=None, help='InfluxDB server URL')
    output_group.add_argument('--influxdb-database', type=str, default=None, help='InfluxDB database name')
    output_group.add_argument('--influxdb-token', type=str, default=None, help='InfluxDB authentication token')
    output_group.add_argument('--influxdb-tls-ca', type=str, default=None, help='CA bundle for InfluxDB')
    output_group.add_argument('--prometheus-port', type=int, default=8000,
                              help='Prometheus metrics server port (default: 8000)')

    behavior_group = parser.add_argument_group('Collection Behavior')
    behavior_group.add_argument('--interval-time', type=int, default=60,
                                help='Seconds between polls (default: 60)')
    behavior_group.add_argument('--max-iterations', type=int, default=0,
                                help='Maximum polls (0=unlimited, >0=exit after N polls)')

    debug_group = parser.add_argument_group('Debugging')
    debug_group.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                             default='INFO', help='Set logging level (default: INFO)')
    debug_group.add_argument('--logfile', type=str, default=None,
                             help='Path to log file (default: stdout only)')

    return parser


def load_settings(args) -> Settings:
    """Settings file, then environment, then command line flags."""
    settings = Settings(config_file=args.config)
    overrides = {
        'array': args.array,
        'api_token': args.api_token,
        'url': args.url,
        'http_timeout': args.http_timeout,
        'ignore_veeamsnap': args.ignore_veeamsnap,
        'tls_validation': args.tls_validation,
        'tls_ca': args.tls_ca,
    }
    settings.update({k: v for k, v in overrides.items() if v is not None})
    return settings


def run_continuous(collector: PureFACollector, writer: Accumulator,
                   interval_time: int, max_iterations: int = 0) -> int:
    """Poll until interrupted or max_iterations is reached.

    A failed poll is logged and the loop goes on; the next poll is the retry.

    Returns:
        Number of polls that raised an error
    """
    logger = logging.getLogger(__name__)
    iteration_count = 0
    failed = 0

    while max_iterations == 0 or iteration_count < max_iterations:
        iteration_count += 1
        logger.info(f"Starting collection iteration {iteration_count} of "
                    f"{max_iterations if max_iterations > 0 else 'unlimited'}")
        try:
            collector.gather(writer)
        except PureFAError as e:
            failed += 1
            logger.error(f"Collection iteration {iteration_count} failed: {e}")
        finally:
            writer.flush()

        if max_iterations == 0 or iteration_count < max_iterations:
            logger.info(f"Waiting {interval_time} seconds until next collection...")
            time.sleep(interval_time)

    logger.info(f"Completed {iteration_count} iterations, {failed} failed")
    return failed


def main(argv: Optional[list] = None) -> None:
    """Main entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    LoggingConfigurator.setup_logging(log_level=args.log_level, log_file=args.logfile)

    try:
        config = load_settings(args).to_config()
        writer_config = WriterConfig.from_args(args)
    except ConfigError as e:
        logging.error(f"Configuration error: {e}")
        sys.exit(1)

    logging.info("=== FlashArray Collector Startup ===")
    for key, value in config.to_dict().items():
        logging.info(f"{key}: {value}")
    logging.info(f"Output Mode: {writer_config.output_format}")
    logging.info(f"Collection Interval: {args.interval_time}s")

    collector = PureFACollector(config)
    writer = WriterFactory.create_writer_from_config(writer_config)
    try:
        run_continuous(collector, writer, args.interval_time, args.max_iterations)
    except KeyboardInterrupt:
        logging.info("Received interrupt, shutting down...")
    finally:
        writer.close()
        collector.close()


if __name__ == '__main__':
    main()
