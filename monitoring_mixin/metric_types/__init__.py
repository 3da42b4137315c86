"""
Metric-type plugins

One plugin per metricType. See base.MetricTypePlugin for the contract.
"""
from .base import MetricConfig, MetricTypePlugin, SliMetadata, or_zero, safe_ratio
from .http_latency import HttpLatencyPlugin
from .http_requests import HttpErrorRatioPlugin
from .registry import MetricTypeRegistry, default_registry
from .sqs_message_age import SqsMessageAgePlugin
from .up import UpPlugin

__all__ = [
    "MetricConfig",
    "MetricTypePlugin",
    "SliMetadata",
    "or_zero",
    "safe_ratio",
    "HttpLatencyPlugin",
    "HttpErrorRatioPlugin",
    "MetricTypeRegistry",
    "default_registry",
    "SqsMessageAgePlugin",
    "UpPlugin",
]
