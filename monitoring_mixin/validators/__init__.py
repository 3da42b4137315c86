"""
Validators package

Contains validators for generated Prometheus rules and Grafana dashboards.
"""
from .rule_validator import (
    RuleValidator,
    check_recording_rules,
    check_rule_documents,
    referenced_names
)
from .dashboard_validator import (
    DashboardValidator,
    check_dashboard
)

__all__ = [
    # Rule Validator
    "RuleValidator",
    "check_recording_rules",
    "check_rule_documents",
    "referenced_names",
    # Dashboard Validator
    "DashboardValidator",
    "check_dashboard",
]
