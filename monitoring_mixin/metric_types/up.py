"""
Scrape availability from the `up` series.

The SLI holds while the average of `up` over the evaluation interval
matches metricTarget (1 by convention, compared with ==).
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
from ..selectors import TargetMetric
from .base import MetricConfig, MetricTypePlugin, SliMetadata, or_zero


class UpPlugin(MetricTypePlugin):

    default_comparison = "=="

    def _metric_config(self, sli_spec: SliSpec) -> MetricConfig:
        return MetricConfig(metrics={"up": "up"})

    def get_target_metrics(self, metric_config: MetricConfig, sli_spec: SliSpec) -> Dict[str, TargetMetric]:
        return {"up": TargetMetric(metric_config.metric("up"))}

    def _average_up(self, series: str, window: str) -> str:
        return f"avg(avg_over_time({series}[{window}]))"

    def create_graph_panel(self, sli_spec: SliSpec, datasource: str = DEFAULT_DATASOURCE) -> Dict[str, Any]:
        metric_config = self.get_metric_config(sli_spec)
        selectors = self.create_dashboard_selectors(metric_config, sli_spec)
        up = self.get_target_metrics(metric_config, sli_spec)["up"].series(selectors)

        targets = [
            target(self._average_up(up, sli_spec.eval_interval), "Average up", datasource),
            target(f"sum({up})", "Instances up", datasource),
            self.target_threshold(sli_spec, datasource),
        ]
        overrides = [
            override_by_legend("Average", [color_property(SeriesColor.GREEN)]),
            override_by_legend(
                "Instances",
                right_axis_property("none") + [color_property(SeriesColor.BLUE)]
            ),
            threshold_overrides(),
        ]
        return timeseries_panel(
            title=sli_spec.title,
            description=self.panel_description(metric_config, sli_spec),
            datasource=datasource,
            targets=targets,
            overrides=overrides,
            unit="none",
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
        up = self.get_target_metrics(metric_config, sli_spec)["up"].series(selectors)

        value = or_zero(self._average_up(up, sli_spec.eval_interval))
        return [self.sli_value_rule(value, sli_spec, sli_metadata)]
