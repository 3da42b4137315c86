"""
Generators package

Contains generators for Prometheus rules and Grafana dashboards.
"""
from .recording_rule_generator import (
    RecordingRule,
    RecordingRuleGenerator,
    SLI_VALUE_RECORD,
    dump_rules_yaml,
    generate_record_name
)
from .alert_rule_generator import (
    AlertingRule,
    AlertRuleGenerator,
    COMPLIANCE_RECORD,
    ERROR_BUDGET_RECORD
)
from .grafana_generator import (
    GrafanaDashboardGenerator,
    dashboard_uid,
    dump_dashboard_json
)

__all__ = [
    # Recording Rule Generator
    "RecordingRule",
    "RecordingRuleGenerator",
    "SLI_VALUE_RECORD",
    "dump_rules_yaml",
    "generate_record_name",
    # Alert Rule Generator
    "AlertingRule",
    "AlertRuleGenerator",
    "COMPLIANCE_RECORD",
    "ERROR_BUDGET_RECORD",
    # Grafana Dashboard Generator
    "GrafanaDashboardGenerator",
    "dashboard_uid",
    "dump_dashboard_json",
]
