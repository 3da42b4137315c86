"""
Recording Rule Generator

Assembles plugin recording rules into Prometheus rule groups and emits
them as YAML. Derived record names follow the job:metric:operation
naming convention, with the product in the job position.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple
import logging

import yaml

from ..selectors import merge_labels, metric_name, sanitize_metric_name


logger = logging.getLogger(__name__)

SLI_VALUE_RECORD = "sli_value"


@dataclass
class RecordingRule:
    """A Prometheus recording rule."""

    record: str
    expr: str
    labels: Dict[str, str] = field(default_factory=dict)

    def with_labels(self, labels: Dict[str, str]) -> "RecordingRule":
        """Return a copy carrying extra labels; existing keys are overridden."""
        return RecordingRule(
            record=self.record,
            expr=self.expr,
            labels=merge_labels(self.labels, labels)
        )

    def to_dict(self) -> Dict[str, Any]:
        rule: Dict[str, Any] = {"record": self.record, "expr": self.expr}
        if self.labels:
            rule["labels"] = dict(self.labels)
        return rule


def generate_record_name(product: str, sli_id: str, operation: str) -> str:
    """
    Generate a namespaced record name following job:metric:operation.

    Args:
        product: Product name (job component)
        sli_id: SLI id
        operation: Metric and operation, e.g. "sqs_queues_breaching:count"

    Returns:
        Record name in format "product:sli_id_operation"

    Example:
        >>> generate_record_name("thanos", "SLI02", "sqs_queues:count")
        'thanos:SLI02_sqs_queues:count'
    """
    return metric_name("{product}:{sli_id}_" + operation, product=product, sli_id=sli_id)


class RecordingRuleGenerator:
    """
    Accumulates recording rules into groups.

    Rules are grouped per product and evaluation interval so that every
    rule is evaluated at the cadence its expressions were written for.
    Within a group, rules keep the order in which they were appended;
    groups keep the order in which they were first used.
    """

    def __init__(self):
        self._groups: Dict[Tuple[str, str], List[RecordingRule]] = {}

    def add_rules(self, product: str, eval_interval: str, rules: List[RecordingRule]) -> None:
        """Append rules to the group for product/eval_interval."""
        group = self._groups.setdefault((product, eval_interval), [])
        group.extend(rules)
        logger.debug(
            f"Added {len(rules)} recording rules to group "
            f"{self._generate_group_name(product, eval_interval)}"
        )

    @property
    def rules(self) -> List[RecordingRule]:
        return [rule for group in self._groups.values() for rule in group]

    def document(self) -> Dict[str, Any]:
        """Build the rule file structure."""
        groups = []
        for (product, eval_interval), rules in self._groups.items():
            groups.append({
                "name": self._generate_group_name(product, eval_interval),
                "interval": eval_interval,
                "rules": [rule.to_dict() for rule in rules]
            })
        return {"groups": groups}

    def _generate_group_name(self, product: str, eval_interval: str) -> str:
        return f"{sanitize_metric_name(product)}_{eval_interval}_sli_recording_rules"


def dump_rules_yaml(document: Dict[str, Any]) -> str:
    """Serialize a rule document to YAML, keeping insertion order."""
    return yaml.dump(document, default_flow_style=False, sort_keys=False)
