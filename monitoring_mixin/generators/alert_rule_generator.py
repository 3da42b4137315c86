"""
Alert Rule Generator

Derives the SLO recording rules and the SLO alert for each SLI from its
canonical sli_value series.

sli_value is 1 for every evaluation interval in which the SLI held and 0
otherwise. Averaged over the SLO period it gives the compliance
percentage, which is compared against sloTarget:

    sli_compliance_percent = avg_over_time(sli_value[period]) * 100
    slo_error_budget_remaining_percent =
        (sli_compliance_percent - sloTarget) / (100 - sloTarget) * 100
    alert: sli_compliance_percent < sloTarget  for: period
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List
from urllib.parse import quote
import logging

from ..config import MixinConfig, SliSpec
from ..selectors import SelectorClause, format_number, merge_labels, render_series, sanitize_metric_name
from .grafana_generator import dashboard_uid
from .recording_rule_generator import SLI_VALUE_RECORD, RecordingRule


logger = logging.getLogger(__name__)

COMPLIANCE_RECORD = "sli_compliance_percent"
ERROR_BUDGET_RECORD = "slo_error_budget_remaining_percent"


@dataclass
class AlertingRule:
    """A Prometheus alerting rule."""

    alert: str
    expr: str
    for_: str
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alert": self.alert,
            "expr": self.expr,
            "for": self.for_,
            "labels": dict(self.labels),
            "annotations": dict(self.annotations)
        }


def sli_series(record: str, labels: Dict[str, str]) -> str:
    """Select one SLI's copy of a shared record name by its identifying labels."""
    clauses = [SelectorClause(label, "=", value) for label, value in labels.items()]
    return render_series(record, clauses)


class AlertRuleGenerator:
    """
    Generates SLO recording rules and alerts from SLI specs.

    Alerts are grouped per product in `<product>_slo_alerts`.
    """

    def __init__(self, config: MixinConfig):
        self.config = config
        self._groups: Dict[str, List[AlertingRule]] = {}

    def generate_slo_recording_rules(
        self,
        sli_spec: SliSpec,
        sli_labels: Dict[str, str]
    ) -> List[RecordingRule]:
        """
        Generate the compliance and error budget rules for one SLI.

        Args:
            sli_spec: SLI spec supplying period and sloTarget
            sli_labels: Identifying labels (product, sliId, sliType)

        Returns:
            Rules in dependency order
        """
        identity = self._identity(sli_labels)
        target = format_number(sli_spec.slo_target)
        budget = format_number(round(100 - sli_spec.slo_target, 6))

        compliance = RecordingRule(
            record=COMPLIANCE_RECORD,
            expr=(
                f"avg_over_time({sli_series(SLI_VALUE_RECORD, identity)}[{sli_spec.period}]) * 100"
            ),
            labels=dict(sli_labels)
        )
        error_budget = RecordingRule(
            record=ERROR_BUDGET_RECORD,
            expr=f"({sli_series(COMPLIANCE_RECORD, identity)} - {target}) / {budget} * 100",
            labels=dict(sli_labels)
        )
        return [compliance, error_budget]

    def generate(self, sli_spec: SliSpec, sli_labels: Dict[str, str]) -> AlertingRule:
        """
        Generate the SLO alert for one SLI and add it to its product group.

        Args:
            sli_spec: SLI spec
            sli_labels: Identifying labels (product, sliId, sliType)

        Returns:
            The generated alerting rule
        """
        product = sli_labels["product"]
        sli_id = sli_labels["sliId"]
        severity = self.config.max_alert_severity.value

        alert_labels = merge_labels(
            sli_labels,
            {
                "severity": severity,
                "routing_target": self.config.alert_routing_target,
            },
            {"environment": self.config.environment} if self.config.environment else None
        )

        rule = AlertingRule(
            alert=self._generate_alert_name(product, sli_id),
            expr=self._build_alert_expression(sli_spec, sli_labels),
            for_=sli_spec.period,
            labels=alert_labels,
            annotations=self._build_annotations(sli_spec, product, sli_id)
        )
        self._groups.setdefault(product, []).append(rule)
        return rule

    @property
    def rules(self) -> List[AlertingRule]:
        return [rule for group in self._groups.values() for rule in group]

    def document(self) -> Dict[str, Any]:
        return {
            "groups": [
                {
                    "name": f"{sanitize_metric_name(product)}_slo_alerts",
                    "rules": [rule.to_dict() for rule in rules]
                }
                for product, rules in self._groups.items()
            ]
        }

    def _identity(self, sli_labels: Dict[str, str]) -> Dict[str, str]:
        return {"product": sli_labels["product"], "sliId": sli_labels["sliId"]}

    def _generate_alert_name(self, product: str, sli_id: str) -> str:
        """
        Generate alert name from product and SLI id.

        Format: ProductSliIdSloBreach
        Example: PrometheusSli01SloBreach
        """
        product_parts = [p.capitalize() for p in product.replace('_', '-').split('-')]
        sli_parts = [p.capitalize() for p in sli_id.replace('_', '-').split('-')]
        return f"{''.join(product_parts)}{''.join(sli_parts)}SloBreach"

    def _build_alert_expression(self, sli_spec: SliSpec, sli_labels: Dict[str, str]) -> str:
        series = sli_series(COMPLIANCE_RECORD, self._identity(sli_labels))
        return f"{series} < {format_number(sli_spec.slo_target)}"

    def _build_annotations(self, sli_spec: SliSpec, product: str, sli_id: str) -> Dict[str, str]:
        """
        Build alert annotations.

        Required annotations: summary, description, dashboard, silence_url
        """
        summary = f"SLO breach: {sli_spec.title} ({product} {sli_id})"
        description = (
            f"{self.config.display_name}: SLI '{sli_spec.title}' held for less than "
            f"{format_number(sli_spec.slo_target)}% of the last {sli_spec.period}. "
            f"{sli_spec.sli_description}"
        ).strip()

        silence_filter = quote(f'{{product="{product}", sliId="{sli_id}"}}', safe="")
        annotations = {
            "summary": summary,
            "description": description,
            "dashboard": f"{self.config.grafana_url}/d/{dashboard_uid(self.config.product, product)}",
            "silence_url": f"{self.config.alertmanager_url}/#/silences/new?filter={silence_filter}",
        }

        if self.config.runbook_url:
            safe_product = product.replace('_', '-')
            annotations["runbook_url"] = f"{self.config.runbook_url}/{safe_product}/{sli_id}"

        return annotations
