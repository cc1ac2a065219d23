"""
Command Line Interface for Trawler.

Each process role runs as its own subcommand. Run as many fetch, hosts and
scrape processes as needed against one database.

Usage Examples:
--------------

# Add seed URLs
trawler seed https://www.example.co.nz/

# Refresh robots.txt of hosts due an update
trawler hosts

# Fetch pages (after a crash, reset in-flight records first)
trawler fetch --recover

# Scrape fetched pages for links and microdata
trawler scrape

# Conservative first run
trawler --init fetch

# Status tables
trawler report

# Administrative host status change
trawler host-status www.example.co.nz excluded

# Create default configuration
trawler config --create-default -o config/default.yaml

# Validate configuration
trawler config --validate config/my_config.yaml
"""

import argparse
import logging
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Iterable, Optional, Tuple

from .config import ConfigLoader, ConfigurationError, TrawlerConfig, apply_init_mode, validate_config
from .core.frontier import UrlFrontier
from .core.host_registry import HostRegistry
from .core.link_filter import LinkFilter
from .core.models import HostStatus, UrlStatus
from .core.robots import RobotsPolicy
from .scrapers import LinkScraper, StructuredDataScraper
from .storage import (
    Database,
    SQLiteHostStore,
    SQLitePageStore,
    SQLiteStructuredDataStore,
    StoreError,
)
from .workers import HostFetcher, HttpClient, PageFetcher, PollingWorker, ScraperRunner


def setup_logging(verbose: bool = False):
    """
    Setup logging configuration.

    Args:
        verbose: Enable debug-level logging if True
    """
    level = logging.DEBUG if verbose else logging.INFO

    log_dir = Path('logs')
    log_dir.mkdir(exist_ok=True)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_dir / 'trawler.log')
        ]
    )

    # Set third-party loggers to WARNING to reduce noise
    if not verbose:
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('requests').setLevel(logging.WARNING)


def load_config(args) -> TrawlerConfig:
    """Load, adjust and validate the configuration named on the command line."""
    logger = logging.getLogger(__name__)

    if args.config:
        logger.info(f"Loading configuration from {args.config}")
        config = ConfigLoader.load_from_yaml(args.config)
    else:
        logger.info("Using default configuration")
        config = ConfigLoader.create_default_config()

    if args.init:
        apply_init_mode(config)

    validate_config(config)
    return config


def install_stop_handlers(stop_event: threading.Event):
    """Set the stop event on SIGINT and SIGTERM."""
    logger = logging.getLogger(__name__)

    def handle(signum, frame):
        logger.info(f"Received signal {signum}, stopping after the current item")
        stop_event.set()

    signal.signal(signal.SIGINT, handle)
    signal.signal(signal.SIGTERM, handle)


def build_frontier(config: TrawlerConfig, database: Database, role: str,
                   stop_event: Optional[threading.Event] = None) -> UrlFrontier:
    role_config = config.fetcher if role == 'fetcher' else config.scraper
    registry = HostRegistry(SQLiteHostStore(database), role_config.hosts)
    robots = RobotsPolicy(user_agent=role_config.pages.user_agent)
    sleep = stop_event.wait if stop_event is not None else time.sleep
    return UrlFrontier(SQLitePageStore(database), registry, role_config.pages, robots, sleep=sleep)


def run_worker(worker: PollingWorker):
    """Run a worker loop; a store failure ends the process with exit code 1."""
    logger = logging.getLogger(__name__)
    try:
        worker.run()
    except StoreError as e:
        logger.error(f"Store failure, stopping: {e}", exc_info=True)
        sys.exit(1)
    logger.info(f"Stopped cleanly: {worker.get_stats()}")


def _with_config(command):
    """Load configuration and the database, exiting 1 on failure."""
    def wrapper(args):
        logger = logging.getLogger(__name__)
        try:
            config = load_config(args)
            database = Database(config.storage)
        except ConfigurationError as e:
            logger.error(f"Configuration error: {e}")
            sys.exit(1)
        except StoreError as e:
            logger.error(f"Cannot open database: {e}")
            sys.exit(1)
        try:
            command(args, config, database)
        except StoreError as e:
            logger.error(f"Store failure: {e}", exc_info=True)
            sys.exit(1)
        finally:
            database.close()
    wrapper.__doc__ = command.__doc__
    return wrapper


@_with_config
def fetch_command(args, config: TrawlerConfig, database: Database):
    """Run the page fetcher loop."""
    stop_event = threading.Event()
    install_stop_handlers(stop_event)

    frontier = build_frontier(config, database, 'fetcher', stop_event)
    if args.recover:
        frontier.recover()

    fetcher = PageFetcher(frontier, HttpClient(config.http), config.fetch, stop_event=stop_event)
    run_worker(fetcher)


@_with_config
def hosts_command(args, config: TrawlerConfig, database: Database):
    """Run the host refresher loop."""
    stop_event = threading.Event()
    install_stop_handlers(stop_event)

    if args.recover:
        build_frontier(config, database, 'fetcher').recover()

    registry = HostRegistry(SQLiteHostStore(database), config.fetcher.hosts)
    robots = RobotsPolicy(user_agent=config.fetcher.pages.user_agent)
    refresher = HostFetcher(registry, HttpClient(config.http), robots, config.host_fetch,
                            stop_event=stop_event)
    run_worker(refresher)


@_with_config
def scrape_command(args, config: TrawlerConfig, database: Database):
    """Run the scraper loop."""
    stop_event = threading.Event()
    install_stop_handlers(stop_event)

    frontier = build_frontier(config, database, 'scraper', stop_event)
    if args.recover:
        frontier.recover()

    runner = ScraperRunner(frontier, stop_event=stop_event)
    runner.add_scraper(LinkScraper(frontier, LinkFilter(config.link_filter)))
    runner.add_scraper(StructuredDataScraper(SQLiteStructuredDataStore(database)))
    run_worker(runner)


@_with_config
def seed_command(args, config: TrawlerConfig, database: Database):
    """Add seed URLs to the frontier."""
    frontier = build_frontier(config, database, 'scraper')
    added = frontier.add_urls(args.urls)
    frontier.drain()
    print(f"Seeded {added} new URL(s) of {len(args.urls)}")


@_with_config
def recover_command(args, config: TrawlerConfig, database: Database):
    """Reset records left in flight by stopped processes."""
    fetching, scraping = build_frontier(config, database, 'fetcher').recover()
    print(f"Reset {fetching} fetching URL(s) to new and {scraping} scraping page(s) to fetched")


@_with_config
def host_status_command(args, config: TrawlerConfig, database: Database):
    """Change the status of one host."""
    registry = HostRegistry(SQLiteHostStore(database), config.fetcher.hosts)
    if not registry.set_status(args.hostname.lower(), HostStatus(args.status)):
        print(f"Unknown host: {args.hostname}")
        sys.exit(1)
    print(f"{args.hostname}: {args.status}")


def print_counts(heading: str, total_label: str, counts: Iterable[Tuple[Optional[str], int]],
                 none_label: str = 'new'):
    print(f"{heading:<16}{'COUNT':>12}")
    print("-" * 28)
    total = 0
    for label, count in counts:
        total += count
        print(f"{(label or none_label):<16}{count:>12d}")
    print(f"{total_label:<16}{total:>12d}")
    print()


@_with_config
def report_command(args, config: TrawlerConfig, database: Database):
    """Print URL, host and structured data counts."""
    print_counts("STATUS", "Total URLs", SQLitePageStore(database).status_counts(),
                 none_label=UrlStatus.NEW.value)
    print_counts("HOST STATUS", "Total hosts", SQLiteHostStore(database).status_counts(),
                 none_label='unset')
    print_counts("ITEM TYPE", "Total items", SQLiteStructuredDataStore(database).item_type_counts())


def config_command(args):
    """
    Execute the config command.

    Args:
        args: Parsed command-line arguments
    """
    logger = logging.getLogger(__name__)

    try:
        if args.create_default:
            config = ConfigLoader.create_default_config()
            output_path = args.output or 'config/default.yaml'
            ConfigLoader.save_to_yaml(config, output_path)
            print(f"Default configuration created at: {output_path}")

        elif args.validate:
            print(f"Validating configuration: {args.validate}")
            config = ConfigLoader.load_from_yaml(args.validate)
            validate_config(config)
            print(f"Configuration is valid: {args.validate}")

        else:
            print("Error: Please specify --create-default or --validate")
            sys.exit(1)

    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        logger.error(f"Configuration error: {e}")
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='trawler',
        description='Trawler - distributed crawl frontier and politeness scheduler',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s seed https://www.example.co.nz/
  %(prog)s --init fetch
  %(prog)s scrape --recover
  %(prog)s report
  %(prog)s config --create-default -o config/default.yaml
        """
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose (debug) logging'
    )

    parser.add_argument(
        '-c', '--config',
        metavar='FILE',
        help='Path to YAML configuration file (default: use built-in defaults)'
    )

    parser.add_argument(
        '--init',
        action='store_true',
        help='Cold start: batch sizes of 1 and no known-URL preloading'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========================================================================
    # PROCESS ROLES
    # ========================================================================
    for name, func, help_text in (
        ('fetch', fetch_command, 'Fetch pages from the frontier'),
        ('hosts', hosts_command, 'Refresh robots.txt of hosts due an update'),
        ('scrape', scrape_command, 'Scrape fetched pages for links and microdata'),
    ):
        role_parser = subparsers.add_parser(name, help=help_text, description=help_text)
        role_parser.add_argument(
            '--recover',
            action='store_true',
            help='Reset fetching and scraping records left by stopped processes before starting'
        )
        role_parser.set_defaults(func=func)

    # ========================================================================
    # MAINTENANCE
    # ========================================================================
    seed_parser = subparsers.add_parser('seed', help='Add seed URLs')
    seed_parser.add_argument('urls', nargs='+', metavar='URL', help='URL(s) to add')
    seed_parser.set_defaults(func=seed_command)

    report_parser = subparsers.add_parser('report', help='Print status counts')
    report_parser.set_defaults(func=report_command)

    recover_parser = subparsers.add_parser('recover', help='Reset in-flight records')
    recover_parser.set_defaults(func=recover_command)

    host_status_parser = subparsers.add_parser(
        'host-status',
        help='Set the status of a host',
        description='Set the status of a host. Only "excluded" survives the next robots.txt '
                    'refresh; any other status is recomputed by the host refresher.'
    )
    host_status_parser.add_argument('hostname', help='Host name, as stored (host[:port])')
    host_status_parser.add_argument('status', choices=[s.value for s in HostStatus])
    host_status_parser.set_defaults(func=host_status_command)

    # ========================================================================
    # CONFIG COMMAND
    # ========================================================================
    config_parser = subparsers.add_parser(
        'config',
        help='Configuration management',
        description='Create or validate configuration files'
    )

    config_parser.add_argument(
        '--create-default',
        action='store_true',
        help='Create a default configuration file'
    )

    config_parser.add_argument(
        '--validate',
        metavar='FILE',
        help='Validate a configuration file'
    )

    config_parser.add_argument(
        '-o', '--output',
        metavar='FILE',
        help='Output path for created configuration (default: config/default.yaml)'
    )

    config_parser.set_defaults(func=config_command)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if hasattr(args, 'func'):
        args.func(args)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == '__main__':
    main()
