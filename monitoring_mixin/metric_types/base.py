"""
Metric-type plugin contract

Every metric type implements the same set of pure functions. The builder
only ever talks to plugins through this interface.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple
import logging

from ..config import DEFAULT_DATASOURCE, MixinConfig, SliSpec, SliType
from ..errors import MissingSpecFieldError, TargetMetricResolutionError
from ..generators.grafana_panels import target
from ..generators.recording_rule_generator import SLI_VALUE_RECORD, RecordingRule, generate_record_name
from ..selectors import (
    SelectorClause,
    TargetMetric,
    clauses_from_selectors,
    describe_clause,
    format_number,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SliMetadata:
    """Where an SLI comes from; attached to every rule it produces."""

    product: str
    sli_id: str
    sli_type: SliType

    def labels(self) -> Dict[str, str]:
        return {
            "product": self.product,
            "sliId": self.sli_id,
            "sliType": self.sli_type.value,
        }


@dataclass
class MetricConfig:
    """
    Normalized names for one SLI.

    Attributes:
        metrics: Role -> underlying metric name
        selector_labels: Role -> label name used by custom selectors
        custom_selectors: Role -> label value pattern
        derived_metrics: Role -> record operation, namespaced per SLI by
            generate_record_name
    """

    metrics: Dict[str, str]
    selector_labels: Dict[str, str] = field(default_factory=dict)
    custom_selectors: Dict[str, str] = field(default_factory=dict)
    derived_metrics: Dict[str, str] = field(default_factory=dict)

    def metric(self, role: str) -> str:
        name = self.metrics.get(role)
        if not name:
            raise TargetMetricResolutionError(f"No metric configured for role '{role}'")
        return name

    def derived_metric(self, role: str, metadata: SliMetadata) -> str:
        operation = self.derived_metrics.get(role)
        if not operation:
            raise TargetMetricResolutionError(f"No derived metric configured for role '{role}'")
        return generate_record_name(metadata.product, metadata.sli_id, operation)


def or_zero(expr: str) -> str:
    """Default an aggregate to 0 when it has no samples."""
    return f"({expr} or vector(0))"


def safe_ratio(numerator: str, denominator: str) -> str:
    """
    Divide two label-free aggregates.

    A zero or absent denominator resolves the ratio to 0 rather than NaN or
    no data.
    """
    return f"({numerator} / ({denominator} > 0) or vector(0))"


class MetricTypePlugin(ABC):
    """
    Base class for metric-type plugins.

    Subclasses provide the metric configuration, target metrics, panel and
    recording rules. Selector assembly is shared: dashboard selectors are
    the SLI selectors in insertion order plus any custom clauses; rule
    selectors add product metadata.
    """

    # Operator naming the good condition when the SLI gives none
    default_comparison = "<"
    # SliSpec attributes this plugin cannot work without
    required_fields: Tuple[str, ...] = ()

    def get_metric_config(self, sli_spec: SliSpec) -> MetricConfig:
        """Derive normalized names from the static spec fields."""
        for field_name in self.required_fields:
            if getattr(sli_spec, field_name, None) is None:
                raise MissingSpecFieldError(
                    f"metricType '{sli_spec.metric_type}' requires '{field_name}'"
                )
        return self._metric_config(sli_spec)

    @abstractmethod
    def _metric_config(self, sli_spec: SliSpec) -> MetricConfig:
        ...

    def custom_dashboard_clauses(
        self,
        metric_config: MetricConfig,
        sli_spec: SliSpec
    ) -> List[SelectorClause]:
        """Plugin clauses appended after the SLI selectors."""
        return []

    def create_dashboard_selectors(
        self,
        metric_config: MetricConfig,
        sli_spec: SliSpec
    ) -> List[SelectorClause]:
        clauses = clauses_from_selectors(sli_spec.selectors)
        clauses.extend(self.custom_dashboard_clauses(metric_config, sli_spec))
        return clauses

    def create_rule_selectors(
        self,
        metric_config: MetricConfig,
        sli_spec: SliSpec,
        product_config: MixinConfig
    ) -> List[SelectorClause]:
        clauses = self.create_dashboard_selectors(metric_config, sli_spec)
        labels = {clause.label for clause in clauses}
        if product_config.environment and "environment" not in labels:
            clauses.append(SelectorClause("environment", "=", product_config.environment))
        return clauses

    @abstractmethod
    def get_target_metrics(
        self,
        metric_config: MetricConfig,
        sli_spec: SliSpec
    ) -> Dict[str, TargetMetric]:
        ...

    def get_selectors(self, metric_config: MetricConfig, sli_spec: SliSpec) -> List[str]:
        """Readable selector summary for panel descriptions."""
        return [
            describe_clause(clause)
            for clause in self.create_dashboard_selectors(metric_config, sli_spec)
        ]

    @abstractmethod
    def create_graph_panel(self, sli_spec: SliSpec, datasource: str = DEFAULT_DATASOURCE) -> Dict[str, Any]:
        ...

    @abstractmethod
    def create_custom_recording_rules(
        self,
        sli_spec: SliSpec,
        sli_metadata: SliMetadata,
        product_config: MixinConfig
    ) -> List[RecordingRule]:
        ...

    def comparison(self, sli_spec: SliSpec) -> str:
        if sli_spec.comparison is not None:
            return sli_spec.comparison.value
        return self.default_comparison

    def sli_value_rule(
        self,
        value_expr: str,
        sli_spec: SliSpec,
        sli_metadata: SliMetadata
    ) -> RecordingRule:
        """The canonical rule: 1 while the SLI holds, 0 otherwise."""
        return RecordingRule(
            record=SLI_VALUE_RECORD,
            expr=(
                f"{value_expr} {self.comparison(sli_spec)} bool "
                f"{format_number(sli_spec.metric_target)}"
            ),
            labels=sli_metadata.labels()
        )

    def target_threshold(self, sli_spec: SliSpec, datasource: str) -> Dict[str, Any]:
        """Constant series showing metricTarget on the panel."""
        return target(
            f"vector({format_number(sli_spec.metric_target)})",
            "Target",
            datasource
        )

    def panel_description(self, metric_config: MetricConfig, sli_spec: SliSpec) -> str:
        selectors = self.get_selectors(metric_config, sli_spec)
        lines = [sli_spec.sli_description] if sli_spec.sli_description else []
        lines.append(
            f"Target: value {self.comparison(sli_spec)} "
            f"{format_number(sli_spec.metric_target)} for "
            f"{format_number(sli_spec.slo_target)}% of {sli_spec.period}"
        )
        if selectors:
            lines.append("Selectors: " + ", ".join(selectors))
        return "\n\n".join(lines)
