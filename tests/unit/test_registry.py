"""
Unit tests for the metric-type registry
"""
import pytest

from monitoring_mixin.errors import ErrorCode, UnknownMetricTypeError
from monitoring_mixin.metric_types import (
    HttpErrorRatioPlugin,
    HttpLatencyPlugin,
    MetricTypeRegistry,
    SqsMessageAgePlugin,
    UpPlugin,
    default_registry,
)


class TestMetricTypeRegistry:
    """Test plugin registration and lookup"""

    def test_register_and_get(self):
        registry = MetricTypeRegistry()
        plugin = UpPlugin()
        registry.register("up", plugin)

        assert registry.get("up") is plugin
        assert "up" in registry
        assert len(registry) == 1

    def test_construct_from_mapping(self):
        registry = MetricTypeRegistry({"b": UpPlugin(), "a": SqsMessageAgePlugin()})
        assert registry.metric_types == ["a", "b"]

    def test_duplicate_registration_rejected(self):
        registry = MetricTypeRegistry({"up": UpPlugin()})
        with pytest.raises(ValueError):
            registry.register("up", UpPlugin())

    def test_non_plugin_rejected(self):
        with pytest.raises(ValueError):
            MetricTypeRegistry().register("up", object())

    def test_unknown_metric_type(self):
        registry = MetricTypeRegistry({"up": UpPlugin()})

        with pytest.raises(UnknownMetricTypeError) as exc_info:
            registry.get("does-not-exist")

        assert exc_info.value.error_code == ErrorCode.UNKNOWN_METRIC_TYPE
        assert "does-not-exist" in str(exc_info.value)
        assert "up" in str(exc_info.value)


class TestDefaultRegistry:

    @pytest.mark.parametrize("metric_type,plugin_class", [
        ("up", UpPlugin),
        ("http_requests_total", HttpErrorRatioPlugin),
        ("prometheus_http_requests_total", HttpErrorRatioPlugin),
        ("grafana_http_requests", HttpErrorRatioPlugin),
        ("http_request_duration_seconds", HttpLatencyPlugin),
        ("prometheus_http_request_duration_seconds", HttpLatencyPlugin),
        ("grafana_http_request_duration_seconds", HttpLatencyPlugin),
        ("aws_sqs_message_age", SqsMessageAgePlugin),
    ])
    def test_shipped_plugins(self, metric_type, plugin_class):
        assert isinstance(default_registry().get(metric_type), plugin_class)

    def test_grafana_requests_use_status_code_label(self):
        plugin = default_registry().get("grafana_http_requests")
        assert plugin.metric == "grafana_http_request_duration_seconds_count"
        assert plugin.status_label == "status_code"

    def test_registries_are_independent(self):
        first = default_registry()
        first.register("custom", UpPlugin())
        assert "custom" not in default_registry()
