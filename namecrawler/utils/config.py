"""
Configuration management for the name discovery crawler.
"""

import string
import yaml
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field


DEFAULT_SEED_QUERIES = list(string.ascii_lowercase)


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    base_url: str
    query_param: str = "query"
    extra_params: Dict[str, str] = field(default_factory=dict)
    seed_queries: List[str] = field(default_factory=lambda: list(DEFAULT_SEED_QUERIES))
    delay: float = 0.5
    max_queue_size: int = 1000
    request_timeout: float = 10.0
    max_retries: int = 0
    retry_backoff: float = 1.0
    user_agent: str = "NameDiscoveryCrawler/1.0"


@dataclass
class OutputConfig:
    """Configuration for run output files."""
    file: str = "names.json"
    markdown_file: Optional[str] = None


@dataclass
class ProbeConfig:
    """Configuration for endpoint probing."""
    versions: List[str] = field(default_factory=lambda: ["v1", "v2", "v3", "api"])
    endpoints: List[str] = field(default_factory=lambda: [
        "autocomplete", "complete", "suggest", "search", "query", "names"
    ])
    sample_query: str = "a"
    output_file: str = "endpoints.json"


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: str = "logs/crawler.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    prometheus_port: int = 8000
    metrics_enabled: bool = False


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig
    output: OutputConfig
    probe: ProbeConfig
    logging: LoggingConfig
    monitoring: MonitoringConfig


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r') as file:
            config_data = yaml.safe_load(file) or {}

        self._config = build_config(config_data)
        self._validate_config()
        return self._config

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise ValueError("Configuration not loaded")
        validate_config(self._config)

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


def build_config(config_data: Dict[str, Any]) -> Config:
    """Build a Config from a parsed mapping, filling absent sections with defaults."""
    if 'crawler' not in config_data:
        raise ValueError("Configuration must contain a 'crawler' section")

    return Config(
        crawler=CrawlerConfig(**config_data['crawler']),
        output=OutputConfig(**(config_data.get('output') or {})),
        probe=ProbeConfig(**(config_data.get('probe') or {})),
        logging=LoggingConfig(**(config_data.get('logging') or {})),
        monitoring=MonitoringConfig(**(config_data.get('monitoring') or {})),
    )


def validate_config(config: Config):
    """Validate configuration values, raising ValueError on the first problem."""
    crawler = config.crawler

    if not crawler.base_url:
        raise ValueError("base_url must be provided")

    if not crawler.query_param:
        raise ValueError("query_param must be provided")

    if not crawler.seed_queries:
        raise ValueError("At least one seed query must be provided")

    # Validate numeric values
    if crawler.delay < 0:
        raise ValueError("delay must be non-negative")

    if crawler.max_queue_size < 1:
        raise ValueError("max_queue_size must be at least 1")

    if crawler.request_timeout <= 0:
        raise ValueError("request_timeout must be positive")

    if crawler.max_retries < 0:
        raise ValueError("max_retries must be non-negative")

    if crawler.retry_backoff < 0:
        raise ValueError("retry_backoff must be non-negative")

    if not config.output.file:
        raise ValueError("output file must be provided")

    logging.info("Configuration validation passed")


def load_config(config_path: str = "config.yaml") -> Config:
    """Load configuration from file."""
    return ConfigManager(config_path).load_config()
