"""
Request latency percentile from a Prometheus histogram.

The SLI value is histogram_quantile(latencyPercentile) of the request
duration over the evaluation interval, in seconds.
"""
from typing import Any, Dict, List

from ..config import DEFAULT_DATASOURCE, MixinConfig, SliSpec
from ..generators.grafana_panels import (
    SeriesColor,
    color_property,
    override_by_legend,
    right_axis_property,
    target,
    threshold_overrides,
    timeseries_panel,
)
from ..generators.recording_rule_generator import RecordingRule
from ..selectors import TargetMetric, format_number
from .base import MetricConfig, MetricTypePlugin, SliMetadata, or_zero


class HttpLatencyPlugin(MetricTypePlugin):
    """
    Args:
        metric_prefix: Histogram name without the _bucket/_count suffix
    """

    default_comparison = "<"
    required_fields = ("latency_percentile",)

    def __init__(self, metric_prefix: str):
        self.metric_prefix = metric_prefix

    def _metric_config(self, sli_spec: SliSpec) -> MetricConfig:
        return MetricConfig(
            metrics={
                "bucket": f"{self.metric_prefix}_bucket",
                "count": f"{self.metric_prefix}_count",
            },
            selector_labels={"bucketBoundary": "le"}
        )

    def get_target_metrics(self, metric_config: MetricConfig, sli_spec: SliSpec) -> Dict[str, TargetMetric]:
        return {
            "bucket": TargetMetric(metric_config.metric("bucket")),
            "count": TargetMetric(metric_config.metric("count")),
        }

    def _percentile(self, metric_config: MetricConfig, sli_spec: SliSpec, bucket_series: str) -> str:
        le = metric_config.selector_labels["bucketBoundary"]
        return (
            f"histogram_quantile({format_number(sli_spec.latency_percentile)}, "
            f"sum by ({le}) (rate({bucket_series}[{sli_spec.eval_interval}])))"
        )

    def _request_rate(self, count_series: str, window: str) -> str:
        return f"sum(rate({count_series}[{window}]))"

    def _percentile_legend(self, sli_spec: SliSpec) -> str:
        return f"P{format_number(round(sli_spec.latency_percentile * 100, 4))} latency"

    def create_graph_panel(self, sli_spec: SliSpec, datasource: str = DEFAULT_DATASOURCE) -> Dict[str, Any]:
        metric_config = self.get_metric_config(sli_spec)
        selectors = self.create_dashboard_selectors(metric_config, sli_spec)
        targets = self.get_target_metrics(metric_config, sli_spec)

        queries = [
            target(
                self._percentile(metric_config, sli_spec, targets["bucket"].series(selectors)),
                self._percentile_legend(sli_spec),
                datasource
            ),
            target(
                self._request_rate(targets["count"].series(selectors), sli_spec.eval_interval),
                "Requests per second",
                datasource
            ),
            self.target_threshold(sli_spec, datasource),
        ]
        overrides = [
            override_by_legend("latency", [color_property(SeriesColor.PURPLE)]),
            override_by_legend(
                "Requests per second",
                right_axis_property("reqps") + [color_property(SeriesColor.BLUE)]
            ),
            threshold_overrides(),
        ]
        return timeseries_panel(
            title=sli_spec.title,
            description=self.panel_description(metric_config, sli_spec),
            datasource=datasource,
            targets=queries,
            overrides=overrides,
            unit="s",
            min_value=0
        )

    def create_custom_recording_rules(
        self,
        sli_spec: SliSpec,
        sli_metadata: SliMetadata,
        product_config: MixinConfig
    ) -> List[RecordingRule]:
        metric_config = self.get_metric_config(sli_spec)
        selectors = self.create_rule_selectors(metric_config, sli_spec, product_config)
        targets = self.get_target_metrics(metric_config, sli_spec)

        percentile = self._percentile(metric_config, sli_spec, targets["bucket"].series(selectors))
        traffic = self._request_rate(targets["count"].series(selectors), sli_spec.eval_interval)
        # Zero-rate buckets yield NaN; without traffic the value falls back to 0
        value = or_zero(f"{percentile} and on() ({traffic} > 0)")
        return [self.sli_value_rule(value, sli_spec, sli_metadata)]
