#!/usr/bin/env python3
"""
Birthday Feed
Main entry point with argument parsing
"""

import os
import sys
import logging
import argparse
from datetime import datetime

from bdayfeed import __version__
from bdayfeed.cache import RamCache
from bdayfeed.cardav_client import CardDAVClient
from bdayfeed.config import (
    get_cache_config,
    get_reminder_config,
    get_server_config,
    get_source_config,
    setup_logging,
    validate_environment,
)
from bdayfeed.errors import BirthdayFeedError
from bdayfeed.feed import FeedService
from bdayfeed.scheduler import SchedulerService
from bdayfeed.translator import Translator
from bdayfeed.vcard_parser import VCardParser
from bdayfeed.web import create_app

BANNER = """
==============================================================
                 Birthday Feed
     vCard / CardDAV contacts to iCalendar birthdays
==============================================================
"""


def print_banner():
    """Print the startup banner"""
    print(BANNER)
    print(f"Version: {__version__}")
    print(f"Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("-" * 62)
    print()


def build_service(source_config):
    """Wire the fetcher, cache and translator into a FeedService"""
    translator = Translator(source_config['locales_dir'], source_config['language'])
    fetcher = CardDAVClient(translator.get, timeout=source_config['fetch_timeout'])
    return FeedService(fetcher, RamCache(), translator)


def diagnose_source():
    """Fetch and parse the configured source, printing every birthday found"""
    source_config = get_source_config()
    service = build_service(source_config)

    print("Testing contact source:")
    print(f"Mode: {source_config['mode']}")
    print(f"Source: {source_config['source']}")
    print(f"Username: {source_config['username'] or '(none)'}")
    print("-" * 60)

    try:
        raw = service.fetcher.fetch(
            source_config['source'],
            source_config['username'],
            source_config['password'],
            source_config['use_carddav_query'],
        )
    except BirthdayFeedError as e:
        print(f"✗ Error: {e}")
        return False

    print(f"✓ Fetched {len(raw)} characters")
    records = VCardParser(service.translator.get).parse(raw)
    print(f"✓ Total contacts with birthdays: {len(records)}")
    for record in records:
        birthday = record.birth_date.isoformat() if record.has_known_year else record.birth_date.strftime('--%m-%d')
        print(f"  - {record.display_name} ({birthday})")
    return True


def run_once(output=None):
    """Build the feed once and write it to a file or stdout"""
    logger = logging.getLogger(__name__)
    source_config = get_source_config()
    service = build_service(source_config)

    try:
        result = service.produce_feed(
            source_config['source'],
            source_config['username'],
            source_config['password'],
            source_config['language'],
            get_reminder_config(),
            0,
            use_carddav_query=source_config['use_carddav_query'],
        )
    except BirthdayFeedError as e:
        logger.error(str(e))
        return False

    if output:
        with open(output, 'wb') as fh:
            fh.write(result.content)
        logger.info(f"Wrote birthday calendar to {output}")
    else:
        sys.stdout.buffer.write(result.content)
        sys.stdout.flush()
    return True


def serve():
    """Run the HTTP server, warming the cache on schedule if configured"""
    logger = logging.getLogger(__name__)
    source_config = get_source_config()
    reminder = get_reminder_config()
    cache_ttl = get_cache_config()['ttl_seconds']
    server_config = get_server_config()

    service = build_service(source_config)
    app = create_app(service, source_config, reminder, cache_ttl)

    def warm():
        service.produce_feed(
            source_config['source'],
            source_config['username'],
            source_config['password'],
            source_config['language'],
            reminder,
            cache_ttl,
            use_carddav_query=source_config['use_carddav_query'],
            force_refresh=True,
        )

    scheduler = SchedulerService(warm)
    scheduler.start()

    logger.info(f"Serving birthday feed on http://{server_config['host']}:{server_config['port']}/feed.ics")
    try:
        app.run(host=server_config['host'], port=server_config['port'], threaded=True)
    finally:
        scheduler.stop()


def main():
    """Main function with argument parsing"""
    parser = argparse.ArgumentParser(description='Birthday calendar feed service')
    parser.add_argument('--diagnose', action='store_true', help='Fetch and parse the source, then exit')
    parser.add_argument('--health-check', action='store_true', help='Validate the environment and exit')
    parser.add_argument('--once', action='store_true', help='Generate the calendar once and exit')
    parser.add_argument('--output', help='File written by --once (default: stdout)')
    parser.add_argument('--no-banner', action='store_true', help='Skip startup banner')

    args = parser.parse_args()

    setup_logging()
    logger = logging.getLogger(__name__)

    if not args.no_banner and not (args.once and not args.output):
        print_banner()

    if not validate_environment():
        sys.exit(1)

    if args.health_check:
        logger.info("Health check passed")
        sys.exit(0)

    if args.diagnose:
        sys.exit(0 if diagnose_source() else 1)

    run_mode = os.getenv('RUN_MODE', 'server').lower()

    if args.once or run_mode == 'once':
        logger.info("Generating birthday calendar once...")
        sys.exit(0 if run_once(args.output) else 1)

    try:
        serve()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    sys.exit(0)


if __name__ == "__main__":
    main()
