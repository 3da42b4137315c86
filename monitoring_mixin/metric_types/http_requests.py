"""
Request error ratio from an HTTP request counter.

errors / total over the evaluation interval, where errors are the
requests whose status label matches the error pattern (5xx by default).
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
from ..selectors import REGEX_MATCH, SelectorClause, TargetMetric
from .base import MetricConfig, MetricTypePlugin, SliMetadata, or_zero, safe_ratio


class HttpErrorRatioPlugin(MetricTypePlugin):
    """
    Args:
        metric: Request counter name
        status_label: Label carrying the response status code
        error_pattern: Regex of status codes counted as errors
    """

    default_comparison = "<"

    def __init__(self, metric: str, status_label: str = "code", error_pattern: str = "5.."):
        self.metric = metric
        self.status_label = status_label
        self.error_pattern = error_pattern

    def _metric_config(self, sli_spec: SliSpec) -> MetricConfig:
        return MetricConfig(
            metrics={"requests": self.metric},
            selector_labels={"statusCode": self.status_label},
            custom_selectors={"errorStatus": self.error_pattern}
        )

    def get_target_metrics(self, metric_config: MetricConfig, sli_spec: SliSpec) -> Dict[str, TargetMetric]:
        requests = metric_config.metric("requests")
        error_clause = SelectorClause(
            metric_config.selector_labels["statusCode"],
            REGEX_MATCH,
            metric_config.custom_selectors["errorStatus"]
        )
        return {
            "total": TargetMetric(requests),
            "errors": TargetMetric(requests, (error_clause,)),
        }

    def _rate(self, series: str, window: str) -> str:
        return f"sum(rate({series}[{window}]))"

    def _error_ratio(self, targets: Dict[str, TargetMetric], selectors, window: str) -> str:
        errors = or_zero(self._rate(targets["errors"].series(selectors), window))
        total = self._rate(targets["total"].series(selectors), window)
        return safe_ratio(errors, total)

    def create_graph_panel(self, sli_spec: SliSpec, datasource: str = DEFAULT_DATASOURCE) -> Dict[str, Any]:
        metric_config = self.get_metric_config(sli_spec)
        selectors = self.create_dashboard_selectors(metric_config, sli_spec)
        targets = self.get_target_metrics(metric_config, sli_spec)
        window = sli_spec.eval_interval

        queries = [
            target(self._error_ratio(targets, selectors, window), "Error ratio", datasource),
            target(
                self._rate(targets["total"].series(selectors), window),
                "Requests per second",
                datasource
            ),
            self.target_threshold(sli_spec, datasource),
        ]
        overrides = [
            override_by_legend("Error ratio", [color_property(SeriesColor.ORANGE)]),
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
            unit="percentunit",
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

        ratio = self._error_ratio(targets, selectors, sli_spec.eval_interval)
        return [self.sli_value_rule(ratio, sli_spec, sli_metadata)]
