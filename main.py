#!/usr/bin/env python3
"""
Main entry point for the name discovery crawler.
"""

import asyncio
import argparse
import dataclasses
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

import yaml

from namecrawler import __version__
from namecrawler.utils.config import load_config, validate_config, Config
from namecrawler.utils.logger import setup_logging, log_system_info
from namecrawler.utils.monitoring import initialize_monitoring
from namecrawler.crawler.scheduler import NameCrawler
from namecrawler.crawler.fetcher import SuggestionFetcher
from namecrawler.crawler.prober import EndpointProber
from namecrawler.storage.summary_store import SummaryStore, StorageError
from namecrawler.storage.report import render_markdown


class CrawlerApp:
    """Main application class for the name discovery crawler."""

    def __init__(self):
        self.crawler: Optional[NameCrawler] = None
        self.store = SummaryStore()
        self.logger = logging.getLogger(__name__)

    def setup_signal_handlers(self):
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, initiating shutdown...")
            if self.crawler:
                self.crawler.stop()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    async def run(self, config: Config, probe: bool = False,
                  report: Optional[str] = None, dry_run: bool = False) -> int:
        """Run the requested mode. Returns the process exit code."""
        try:
            self.logger.info("=== NAME CRAWLER STARTING ===")
            self.logger.info(f"Endpoint: {config.crawler.base_url}")
            self.logger.info(f"Query parameter: {config.crawler.query_param}")
            self.logger.info(f"Delay: {config.crawler.delay}s")
            self.logger.info(f"Queue ceiling: {config.crawler.max_queue_size}")
            self.logger.info(f"Max retries: {config.crawler.max_retries}")

            if report:
                self._write_markdown(self.store.load(report), config.output.markdown_file
                                     or str(Path(report).with_suffix('.md')))
            elif probe:
                await self._probe(config)
            elif dry_run:
                self.logger.info("DRY RUN MODE: issuing a single test query")
                await self._dry_run(config)
            else:
                await self._crawl(config)

        except StorageError as e:
            self.logger.error(f"Fatal error: {e}")
            return 1

        finally:
            self.logger.info("=== NAME CRAWLER FINISHED ===")

        return 0

    async def _crawl(self, config: Config):
        monitor = initialize_monitoring(
            enable_prometheus=config.monitoring.metrics_enabled,
            prometheus_port=config.monitoring.prometheus_port
        )
        self.crawler = NameCrawler(config.crawler, monitor=monitor)
        self.setup_signal_handlers()

        summary = await self.crawler.run()
        self.store.save(config.output.file, summary)

        if config.output.markdown_file:
            self._write_markdown(summary.to_dict(), config.output.markdown_file)

    async def _probe(self, config: Config):
        base_url = config.crawler.base_url
        # Probe from the server root when base_url already names an endpoint
        for version in config.probe.versions:
            marker = f"/{version}/"
            if marker in base_url:
                base_url = base_url.split(marker)[0]
                break

        prober = EndpointProber(
            base_url=base_url,
            versions=config.probe.versions,
            endpoints=config.probe.endpoints,
            query_param=config.crawler.query_param,
            sample_query=config.probe.sample_query,
            delay=config.crawler.delay,
            request_timeout=config.crawler.request_timeout,
            user_agent=config.crawler.user_agent,
        )
        report = await prober.probe()
        self.store.save(config.probe.output_file, report)

    async def _dry_run(self, config: Config):
        """Issue one query to check the endpoint and configuration."""
        async with SuggestionFetcher(
            base_url=config.crawler.base_url,
            query_param=config.crawler.query_param,
            extra_params=config.crawler.extra_params,
            user_agent=config.crawler.user_agent,
            request_timeout=config.crawler.request_timeout,
        ) as fetcher:
            result = await fetcher.fetch(config.crawler.seed_queries[0])
            if result.ok:
                self.logger.info(f"✓ Test query successful: {result.status} "
                                 f"({len(result.results)} suggestions, {result.elapsed_ms:.2f} ms)")
            else:
                self.logger.warning(f"Test query failed: {result.status} {result.error}")
        self.logger.info("Dry run completed")

    def _write_markdown(self, summary: dict, path: str):
        markdown = render_markdown(summary)
        try:
            Path(path).write_text(markdown, encoding='utf-8', errors='backslashreplace')
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
        self.logger.info(f"Markdown report saved to {path}")


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Apply command line overrides on top of the loaded configuration."""
    crawler_overrides = {
        'base_url': args.base_url,
        'delay': args.delay,
        'max_queue_size': args.max_queue_size,
        'max_retries': args.max_retries,
    }
    crawler_overrides = {k: v for k, v in crawler_overrides.items() if v is not None}

    output_overrides = {'file': args.output, 'markdown_file': args.markdown}
    output_overrides = {k: v for k, v in output_overrides.items() if v is not None}

    config = dataclasses.replace(
        config,
        crawler=dataclasses.replace(config.crawler, **crawler_overrides),
        output=dataclasses.replace(config.output, **output_overrides),
    )
    validate_config(config)
    return config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Name Discovery Crawler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                               # Crawl with default config.yaml
  python main.py --config v2.yaml              # Crawl with custom config
  python main.py --max-queue-size 500          # Lower the queue ceiling
  python main.py --probe                       # Probe for autocomplete endpoints
  python main.py --report names.json          # Render a saved run as Markdown
  python main.py --dry-run                     # Issue a single test query
        """
    )

    parser.add_argument('--config', default='config.yaml',
                        help='Path to configuration file (default: config.yaml)')
    parser.add_argument('--base-url', help='Autocomplete endpoint URL')
    parser.add_argument('--output', help='Path of the JSON summary to write')
    parser.add_argument('--markdown', help='Also write a Markdown report to this path')
    parser.add_argument('--delay', type=float, help='Seconds to wait after every query')
    parser.add_argument('--max-queue-size', type=int, help='Queue admission ceiling')
    parser.add_argument('--max-retries', type=int, help='Retries per failed query')

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--probe', action='store_true',
                      help='Probe version/endpoint combinations instead of crawling')
    mode.add_argument('--report', metavar='SUMMARY_JSON',
                      help='Render a saved summary as Markdown instead of crawling')
    mode.add_argument('--dry-run', action='store_true',
                      help='Issue a single test query without crawling')

    parser.add_argument('--json-logs', action='store_true', help='Emit JSON formatted logs')
    parser.add_argument('--version', action='version',
                        version=f'Name Discovery Crawler {__version__}')
    return parser


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if not Path(args.config).exists():
        print(f"Error: Configuration file '{args.config}' not found.")
        print("Please create a config.yaml file or specify a different path with --config")
        return 1

    try:
        config = apply_overrides(load_config(args.config), args)
    except (ValueError, TypeError, yaml.YAMLError) as e:
        print(f"Error: Invalid configuration: {e}")
        return 1

    setup_logging(dataclasses.asdict(config.logging), enable_json=args.json_logs or config.logging.json)
    log_system_info()

    app = CrawlerApp()
    try:
        return asyncio.run(app.run(
            config,
            probe=args.probe,
            report=args.report,
            dry_run=args.dry_run
        ))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1


if __name__ == '__main__':
    sys.exit(main())
