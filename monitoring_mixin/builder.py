"""
Mixin builder

Compiles a product configuration and a product -> SLI id -> spec map into
recording rules, alerting rules and dashboards. Either every artifact is
produced or the build raises; nothing partial is returned.
"""
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union
import logging

from .config import MixinConfig, SliSpec, parse_mixin_config, parse_sli_specs
from .errors import MixinConfigurationError, MixinError
from .generators.alert_rule_generator import AlertRuleGenerator
from .generators.grafana_generator import GrafanaDashboardGenerator
from .generators.recording_rule_generator import RecordingRuleGenerator
from .metric_types.base import SliMetadata
from .metric_types.registry import MetricTypeRegistry, default_registry
from .validators.dashboard_validator import check_dashboard
from .validators.rule_validator import check_recording_rules, check_rule_documents


logger = logging.getLogger(__name__)


@dataclass
class MixinArtifacts:
    """The compiled output of one build."""

    recording_rules: Dict[str, Any]
    alerting_rules: Dict[str, Any]
    dashboards: Dict[str, Dict[str, Any]]
    summary_dashboard: Dict[str, Any]


class MixinBuilder:
    """
    Folds per-SLI plugin output into the global artifacts.

    Each SLI is compiled independently: the plugin produces a panel and an
    ordered list of recording rules, the builder labels the rules, appends
    the SLO rules and alert, and places the panel in the product row.
    """

    def __init__(self, config: MixinConfig, registry: Optional[MetricTypeRegistry] = None):
        self.config = config
        self.registry = registry if registry is not None else default_registry()

    def build(self, sli_specs_by_product: Mapping[str, Mapping[str, SliSpec]]) -> MixinArtifacts:
        recording = RecordingRuleGenerator()
        alerting = AlertRuleGenerator(self.config)
        dashboards = GrafanaDashboardGenerator(self.config)

        for product, slis in sli_specs_by_product.items():
            for sli_id, sli_spec in slis.items():
                try:
                    self._compile_sli(product, sli_id, sli_spec, recording, alerting, dashboards)
                except MixinError as e:
                    e.with_location(product, sli_id)
                    raise
                except ValueError as e:
                    raise MixinConfigurationError(str(e), product=product, sli_id=sli_id) from e

            logger.debug(f"Compiled {len(slis)} SLIs for product '{product}'")

        check_rule_documents(recording.rules, alerting.rules)

        product_dashboards = dashboards.dashboards()
        for product, dashboard in product_dashboards.items():
            check_dashboard(dashboard, product=product)
        summary = dashboards.summary_dashboard()
        check_dashboard(summary)

        logger.info(
            f"Built mixin '{self.config.product}': {len(recording.rules)} recording rules, "
            f"{len(alerting.rules)} alerts, {len(product_dashboards)} dashboards"
        )

        return MixinArtifacts(
            recording_rules=recording.document(),
            alerting_rules=alerting.document(),
            dashboards=product_dashboards,
            summary_dashboard=summary
        )

    def _compile_sli(
        self,
        product: str,
        sli_id: str,
        sli_spec: SliSpec,
        recording: RecordingRuleGenerator,
        alerting: AlertRuleGenerator,
        dashboards: GrafanaDashboardGenerator
    ) -> None:
        plugin = self.registry.get(sli_spec.metric_type)
        metadata = SliMetadata(product=product, sli_id=sli_id, sli_type=sli_spec.sli_type)
        sli_labels = metadata.labels()

        panel = plugin.create_graph_panel(sli_spec, datasource=self.config.datasource)
        rules = [
            rule.with_labels(sli_labels)
            for rule in plugin.create_custom_recording_rules(sli_spec, metadata, self.config)
        ]
        rules.extend(alerting.generate_slo_recording_rules(sli_spec, sli_labels))
        check_recording_rules(rules, product=product, sli_id=sli_id)

        recording.add_rules(product, sli_spec.eval_interval, rules)
        alerting.generate(sli_spec, sli_labels)
        dashboards.add_panel(product, panel)


def build_mixin(
    product_config: Union[MixinConfig, Mapping[str, Any]],
    sli_specs_by_product: Mapping[str, Mapping[str, Any]],
    registry: Optional[MetricTypeRegistry] = None
) -> MixinArtifacts:
    """
    Compile a mixin.

    Args:
        product_config: Mixin configuration (model or raw mapping)
        sli_specs_by_product: product -> SLI id -> SLI spec (models or raw mappings)
        registry: Metric-type registry (default: every shipped plugin)

    Returns:
        MixinArtifacts with recording rules, alerting rules and dashboards

    Raises:
        MixinError: On any configuration, plugin or validation error
    """
    config = parse_mixin_config(product_config)
    specs = parse_sli_specs(sli_specs_by_product)
    return MixinBuilder(config, registry=registry).build(specs)
