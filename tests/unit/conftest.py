"""
Shared fixtures for unit tests

Provides a mixin configuration and SLI specs for every shipped metric type
"""
import pytest
from typing import Any, Dict

from monitoring_mixin.config import MixinConfig, SliSpec


@pytest.fixture
def config_data() -> Dict[str, Any]:
    """Raw mixin configuration as found in a mixin definition file"""
    return {
        "product": "monitoring",
        "displayName": "Monitoring Platform",
        "alertRoutingTarget": "monitoring-team",
        "maxAlertSeverity": "warning",
        "grafanaUrl": "https://grafana.example.com/",
        "alertmanagerUrl": "https://alertmanager.example.com",
    }


@pytest.fixture
def mixin_config(config_data) -> MixinConfig:
    return MixinConfig.model_validate(config_data)


@pytest.fixture
def prod_config(config_data) -> MixinConfig:
    """Configuration with an environment label for rule selectors"""
    return MixinConfig.model_validate({**config_data, "environment": "prod"})


@pytest.fixture
def up_spec_data() -> Dict[str, Any]:
    return {
        "title": "Prometheus scrape targets up",
        "sliDescription": "All scrape targets report up",
        "metricType": "up",
        "selectors": {},
        "metricTarget": 1,
        "comparison": "==",
        "evalInterval": "1m",
        "period": "30d",
        "sloTarget": 99.5,
        "sliType": "availability",
    }


@pytest.fixture
def latency_spec_data() -> Dict[str, Any]:
    return {
        "title": "Thanos query latency",
        "sliDescription": "80th percentile of query latency",
        "metricType": "http_request_duration_seconds",
        "selectors": {"job": "thanos-query", "handler": "query|query_range"},
        "metricTarget": 15,
        "latencyPercentile": 0.8,
        "evalInterval": "1m",
        "period": "7d",
        "sloTarget": 95,
        "sliType": "latency",
    }


@pytest.fixture
def error_ratio_spec_data() -> Dict[str, Any]:
    return {
        "title": "Prometheus API errors",
        "sliDescription": "Ratio of 5xx responses",
        "metricType": "prometheus_http_requests_total",
        "selectors": {"handler": "/api/v1/query"},
        "metricTarget": 0.01,
        "evalInterval": "5m",
        "period": "30d",
        "sloTarget": 99.9,
        "sliType": "availability",
    }


@pytest.fixture
def sqs_spec_data() -> Dict[str, Any]:
    return {
        "title": "Upload queue latency",
        "sliDescription": "Oldest message age on upload queues",
        "metricType": "aws_sqs_message_age",
        "selectors": {"queue_name": "uploads-.*", "region": "eu-west-1"},
        "metricTarget": 300,
        "evalInterval": "1m",
        "period": "7d",
        "sloTarget": 99,
        "sliType": "latency",
    }


@pytest.fixture
def up_spec(up_spec_data) -> SliSpec:
    return SliSpec.model_validate(up_spec_data)


@pytest.fixture
def latency_spec(latency_spec_data) -> SliSpec:
    return SliSpec.model_validate(latency_spec_data)


@pytest.fixture
def error_ratio_spec(error_ratio_spec_data) -> SliSpec:
    return SliSpec.model_validate(error_ratio_spec_data)


@pytest.fixture
def sqs_spec(sqs_spec_data) -> SliSpec:
    return SliSpec.model_validate(sqs_spec_data)


@pytest.fixture
def sli_specs_by_product(
    up_spec_data,
    latency_spec_data,
    error_ratio_spec_data,
    sqs_spec_data
) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """Raw product -> SLI id -> spec map; SLI01 is used by two products"""
    return {
        "prometheus": {
            "SLI01": up_spec_data,
            "SLI02": error_ratio_spec_data,
        },
        "thanos": {
            "SLI01": latency_spec_data,
            "SLI02": sqs_spec_data,
        },
    }
