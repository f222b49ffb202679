"""
Monitoring and metrics collection for the name discovery crawler.
"""

import time
import logging
from typing import Dict, Optional, Any, List
from dataclasses import dataclass, field

from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry
from prometheus_client import start_http_server


@dataclass
class MetricPoint:
    """Individual metric data point."""
    timestamp: float
    value: float
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class Metric:
    """Metric container with history."""
    name: str
    description: str
    metric_type: str  # counter, gauge, histogram
    points: List[MetricPoint] = field(default_factory=list)
    current_value: float = 0.0


class MetricsCollector:
    """Collects and manages crawler metrics."""

    max_points = 1000

    def __init__(self, enable_prometheus: bool = False, prometheus_port: int = 8000):
        self.logger = logging.getLogger(__name__)
        self.metrics: Dict[str, Metric] = {}
        self.enable_prometheus = enable_prometheus
        self.prometheus_port = prometheus_port

        self.prometheus_registry: Optional[CollectorRegistry] = None
        self.prometheus_metrics = {}

        if self.enable_prometheus:
            self._setup_prometheus()

    def _setup_prometheus(self):
        """Setup Prometheus metrics."""
        self.prometheus_registry = CollectorRegistry()

        self.prometheus_metrics = {
            'queries_total': Counter(
                'namecrawler_queries_total',
                'Total number of autocomplete queries issued',
                registry=self.prometheus_registry
            ),
            'failed_queries_total': Counter(
                'namecrawler_failed_queries_total',
                'Total number of failed autocomplete queries',
                ['status'],
                registry=self.prometheus_registry
            ),
            'names_found_total': Counter(
                'namecrawler_names_found_total',
                'Total number of distinct names discovered',
                registry=self.prometheus_registry
            ),
            'names_dropped_total': Counter(
                'namecrawler_names_dropped_total',
                'Names discovered but not queued because the queue was full',
                registry=self.prometheus_registry
            ),
            'response_time_seconds': Histogram(
                'namecrawler_response_time_seconds',
                'Response time for autocomplete requests',
                registry=self.prometheus_registry
            ),
            'queue_size': Gauge(
                'namecrawler_queue_size',
                'Number of queries waiting in the queue',
                registry=self.prometheus_registry
            ),
        }

        self.logger.info("Prometheus metrics initialized")

    def start_prometheus_server(self):
        """Start Prometheus metrics HTTP server."""
        if not self.enable_prometheus:
            return

        try:
            start_http_server(self.prometheus_port, registry=self.prometheus_registry)
            self.logger.info(f"Prometheus metrics server started on port {self.prometheus_port}")
        except OSError as e:
            self.logger.error(f"Failed to start Prometheus server: {e}")

    def record_metric(self, name: str, value: float, labels: Optional[Dict[str, str]] = None,
                      description: str = "", metric_type: str = "gauge", delta: float = 0.0):
        """Record a metric value."""
        labels = labels or {}

        if name not in self.metrics:
            self.metrics[name] = Metric(
                name=name,
                description=description,
                metric_type=metric_type
            )

        metric = self.metrics[name]
        metric.points.append(MetricPoint(timestamp=time.time(), value=value, labels=labels))
        metric.current_value = value

        if len(metric.points) > self.max_points:
            metric.points = metric.points[-self.max_points:]

        if self.enable_prometheus and name in self.prometheus_metrics:
            prom_metric = self.prometheus_metrics[name]

            if metric_type == "counter":
                if labels:
                    prom_metric.labels(**labels).inc(delta)
                else:
                    prom_metric.inc(delta)
            elif metric_type == "histogram":
                prom_metric.observe(value)
            else:
                prom_metric.set(value)

    def increment_counter(self, name: str, labels: Optional[Dict[str, str]] = None,
                          description: str = "", amount: float = 1):
        """Increment a counter metric."""
        current_value = 0
        if name in self.metrics:
            current_value = self.metrics[name].current_value

        self.record_metric(name, current_value + amount, labels, description, "counter", amount)

    def set_gauge(self, name: str, value: float, labels: Optional[Dict[str, str]] = None,
                  description: str = ""):
        """Set a gauge metric value."""
        self.record_metric(name, value, labels, description, "gauge")

    def observe_histogram(self, name: str, value: float, labels: Optional[Dict[str, str]] = None,
                          description: str = ""):
        """Record a histogram observation."""
        self.record_metric(name, value, labels, description, "histogram")

    def get_current_values(self) -> Dict[str, float]:
        """Get current values of all metrics."""
        return {name: metric.current_value for name, metric in self.metrics.items()}


class CrawlerMonitor:
    """High-level monitoring interface for the crawler."""

    def __init__(self, metrics_collector: MetricsCollector):
        self.metrics = metrics_collector
        self.logger = logging.getLogger(__name__)
        self.start_time = time.time()

    def record_query(self, query: str, response_time: float):
        """Record a successful query; response_time is in seconds."""
        self.metrics.increment_counter('queries_total', description='Queries issued')
        self.metrics.observe_histogram('response_time_seconds', response_time,
                                       description='Autocomplete response time')

    def record_failure(self, query: str, status: Any):
        """Record a failed query."""
        self.metrics.increment_counter('queries_total', description='Queries issued')
        self.metrics.increment_counter('failed_queries_total', {'status': str(status)},
                                       'Failed queries')

    def record_name_found(self, name: str):
        self.metrics.increment_counter('names_found_total', description='Names discovered')

    def record_name_dropped(self, name: str):
        self.metrics.increment_counter('names_dropped_total',
                                       description='Names dropped at the queue ceiling')

    def update_queue_size(self, size: int):
        """Update the queue size metric."""
        self.metrics.set_gauge('queue_size', size, description='Queries in queue')

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        current_values = self.metrics.get_current_values()
        runtime = time.time() - self.start_time

        return {
            'runtime_seconds': runtime,
            'metrics': current_values,
            'rates': {
                'queries_per_second': current_values.get('queries_total', 0) / runtime if runtime > 0 else 0,
            }
        }


def initialize_monitoring(enable_prometheus: bool = False, prometheus_port: int = 8000) -> CrawlerMonitor:
    """Create a monitor, starting the Prometheus endpoint when enabled."""
    metrics_collector = MetricsCollector(enable_prometheus, prometheus_port)
    metrics_collector.start_prometheus_server()
    return CrawlerMonitor(metrics_collector)
