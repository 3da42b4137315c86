"""
SQS queue latency from the CloudWatch exporter.

A queue breaches when the age of its oldest message fails the comparison
against metricTarget (seconds). Dead-letter queues are excluded. The SLI
holds while no queue breaches; it is computed in steps:

    <product>:<sli>_sqs_queues_breaching:count
    <product>:<sli>_sqs_queues:count
    <product>:<sli>_sqs_queues_breaching:ratio   (0 when there are no queues)
    sli_value                                      ratio == 0
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
from ..generators.recording_rule_generator import SLI_VALUE_RECORD, RecordingRule
from ..selectors import REGEX_NO_MATCH, SelectorClause, TargetMetric, format_number, negate_comparison
from .base import MetricConfig, MetricTypePlugin, SliMetadata, or_zero, safe_ratio


AGE_METRIC = "aws_sqs_approximate_age_of_oldest_message_maximum"
VISIBLE_METRIC = "aws_sqs_approximate_number_of_messages_visible_average"
QUEUE_LABEL = "queue_name"
DEADLETTER_PATTERN = ".*(deadletter|dlq).*"


class SqsMessageAgePlugin(MetricTypePlugin):

    default_comparison = "<"

    def _metric_config(self, sli_spec: SliSpec) -> MetricConfig:
        return MetricConfig(
            metrics={
                "oldestMessageAge": AGE_METRIC,
                "messagesVisible": VISIBLE_METRIC,
            },
            selector_labels={"queueType": QUEUE_LABEL},
            custom_selectors={"deadletterQueue": DEADLETTER_PATTERN},
            derived_metrics={
                "queuesBreaching": "sqs_queues_breaching:count",
                "queuesTotal": "sqs_queues:count",
                "breachingRatio": "sqs_queues_breaching:ratio",
            }
        )

    def get_target_metrics(self, metric_config: MetricConfig, sli_spec: SliSpec) -> Dict[str, TargetMetric]:
        exclude_deadletter = SelectorClause(
            metric_config.selector_labels["queueType"],
            REGEX_NO_MATCH,
            metric_config.custom_selectors["deadletterQueue"]
        )
        return {
            "oldestMessageAge": TargetMetric(
                metric_config.metric("oldestMessageAge"), (exclude_deadletter,)
            ),
            "messagesVisible": TargetMetric(
                metric_config.metric("messagesVisible"), (exclude_deadletter,)
            ),
        }

    def create_graph_panel(self, sli_spec: SliSpec, datasource: str = DEFAULT_DATASOURCE) -> Dict[str, Any]:
        metric_config = self.get_metric_config(sli_spec)
        selectors = self.create_dashboard_selectors(metric_config, sli_spec)
        targets = self.get_target_metrics(metric_config, sli_spec)
        queue = metric_config.selector_labels["queueType"]

        queries = [
            target(
                f"max by ({queue}) ({targets['oldestMessageAge'].series(selectors)})",
                f"{{{{{queue}}}}} oldest message age",
                datasource
            ),
            target(
                f"sum by ({queue}) ({targets['messagesVisible'].series(selectors)})",
                f"{{{{{queue}}}}} messages visible",
                datasource
            ),
            self.target_threshold(sli_spec, datasource),
        ]
        overrides = [
            override_by_legend(
                "messages visible",
                right_axis_property("none") + [color_property(SeriesColor.BLUE)]
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
        age = self.get_target_metrics(metric_config, sli_spec)["oldestMessageAge"].series(selectors)
        labels = sli_metadata.labels()

        breaching = metric_config.derived_metric("queuesBreaching", sli_metadata)
        total = metric_config.derived_metric("queuesTotal", sli_metadata)
        ratio = metric_config.derived_metric("breachingRatio", sli_metadata)

        breach_operator = negate_comparison(self.comparison(sli_spec))
        threshold = format_number(sli_spec.metric_target)

        # Derived records carry the SLI labels; sum() drops them so the
        # vector(0) fallbacks match the operands
        return [
            RecordingRule(
                record=breaching,
                expr=or_zero(f"count({age} {breach_operator} {threshold})"),
                labels=labels
            ),
            RecordingRule(
                record=total,
                expr=or_zero(f"count({age})"),
                labels=labels
            ),
            RecordingRule(
                record=ratio,
                expr=safe_ratio(f"sum({breaching})", f"sum({total})"),
                labels=labels
            ),
            RecordingRule(
                record=SLI_VALUE_RECORD,
                expr=f"{or_zero(f'sum({ratio})')} == bool 0",
                labels=labels
            ),
        ]
