"""
Metric-type registry

Maps metricType tags to plugin instances. Registration is explicit; the
set of known metric types is fixed once the registry is built.
"""
from typing import Dict, List, Mapping, Optional
import logging

from ..errors import UnknownMetricTypeError
from .base import MetricTypePlugin
from .http_latency import HttpLatencyPlugin
from .http_requests import HttpErrorRatioPlugin
from .sqs_message_age import SqsMessageAgePlugin
from .up import UpPlugin


logger = logging.getLogger(__name__)


class MetricTypeRegistry:
    """Lookup table from metricType tag to plugin."""

    def __init__(self, plugins: Optional[Mapping[str, MetricTypePlugin]] = None):
        self._plugins: Dict[str, MetricTypePlugin] = {}
        for metric_type, plugin in (plugins or {}).items():
            self.register(metric_type, plugin)

    def register(self, metric_type: str, plugin: MetricTypePlugin) -> None:
        """
        Register a plugin under a metricType tag.

        Raises:
            ValueError: If the tag is already registered or the plugin does
                not implement the plugin contract
        """
        if metric_type in self._plugins:
            raise ValueError(f"metricType '{metric_type}' is already registered")
        if not isinstance(plugin, MetricTypePlugin):
            raise ValueError(f"Plugin for '{metric_type}' must be a MetricTypePlugin")
        self._plugins[metric_type] = plugin

    def get(self, metric_type: str) -> MetricTypePlugin:
        """
        Resolve a metricType tag.

        Raises:
            UnknownMetricTypeError: If no plugin is registered for the tag
        """
        try:
            return self._plugins[metric_type]
        except KeyError:
            raise UnknownMetricTypeError(
                f"Unknown metricType '{metric_type}' "
                f"(registered: {', '.join(self.metric_types)})"
            ) from None

    @property
    def metric_types(self) -> List[str]:
        return sorted(self._plugins)

    def __contains__(self, metric_type: str) -> bool:
        return metric_type in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)


def default_registry() -> MetricTypeRegistry:
    """Registry with every plugin shipped in this package."""
    return MetricTypeRegistry({
        "up": UpPlugin(),
        "http_requests_total": HttpErrorRatioPlugin("http_requests_total"),
        "prometheus_http_requests_total": HttpErrorRatioPlugin("prometheus_http_requests_total"),
        "grafana_http_requests": HttpErrorRatioPlugin(
            "grafana_http_request_duration_seconds_count", status_label="status_code"
        ),
        "http_request_duration_seconds": HttpLatencyPlugin("http_request_duration_seconds"),
        "prometheus_http_request_duration_seconds": HttpLatencyPlugin(
            "prometheus_http_request_duration_seconds"
        ),
        "grafana_http_request_duration_seconds": HttpLatencyPlugin(
            "grafana_http_request_duration_seconds"
        ),
        "aws_sqs_message_age": SqsMessageAgePlugin(),
    })
