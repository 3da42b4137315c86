"""
Dashboard Validator

Validates generated dashboard documents against the parts of the Grafana
JSON model that provisioning depends on.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..errors import DashboardValidationError


@dataclass
class ValidationError:
    """Validation error details"""
    path: str
    message: str
    severity: str = "error"


class DashboardValidator:
    """
    Validates Grafana dashboard documents.

    Checks required fields, panel id uniqueness, panel types and query
    targets. Works on the in-memory document, before serialization.
    """

    MIN_SCHEMA_VERSION = 16

    REQUIRED_DASHBOARD_FIELDS = [
        "uid",
        "title",
        "panels",
        "schemaVersion"
    ]

    REQUIRED_PANEL_FIELDS = [
        "id",
        "title",
        "type",
        "gridPos"
    ]

    VALID_PANEL_TYPES = [
        "timeseries",
        "graph",
        "stat",
        "gauge",
        "table",
        "row",
        "text"
    ]

    def validate(self, dashboard: Any) -> List[ValidationError]:
        """
        Validate a dashboard document.

        Args:
            dashboard: Dashboard dict

        Returns:
            List of validation errors (empty if valid)
        """
        if not isinstance(dashboard, dict):
            return [ValidationError("dashboard", "Dashboard must be a JSON object")]

        errors: List[ValidationError] = []
        for field in self.REQUIRED_DASHBOARD_FIELDS:
            if field not in dashboard:
                errors.append(ValidationError(f"dashboard.{field}", f"Missing required field: {field}"))

        schema_version = dashboard.get("schemaVersion")
        if isinstance(schema_version, int) and schema_version < self.MIN_SCHEMA_VERSION:
            errors.append(ValidationError(
                "dashboard.schemaVersion",
                f"schemaVersion {schema_version} is too old (minimum: {self.MIN_SCHEMA_VERSION})"
            ))

        if "panels" in dashboard:
            errors.extend(self._validate_panels(dashboard["panels"]))

        return errors

    def _validate_panels(self, panels: Any) -> List[ValidationError]:
        if not isinstance(panels, list):
            return [ValidationError("dashboard.panels", "panels must be an array")]

        errors: List[ValidationError] = []
        panel_ids = set()

        for i, panel in enumerate(panels):
            path = f"dashboard.panels[{i}]"
            if not isinstance(panel, dict):
                errors.append(ValidationError(path, "Panel must be an object"))
                continue

            for field in self.REQUIRED_PANEL_FIELDS:
                if field not in panel:
                    errors.append(ValidationError(f"{path}.{field}", f"Missing required panel field: {field}"))

            panel_id = panel.get("id")
            if panel_id is not None:
                if panel_id in panel_ids:
                    errors.append(ValidationError(f"{path}.id", f"Duplicate panel ID: {panel_id}"))
                panel_ids.add(panel_id)

            panel_type = panel.get("type")
            if panel_type is not None and panel_type not in self.VALID_PANEL_TYPES:
                errors.append(ValidationError(f"{path}.type", f"Invalid panel type: {panel_type}"))

            if panel_type != "row":
                errors.extend(self._validate_targets(path, panel.get("targets")))

        return errors

    def _validate_targets(self, path: str, targets: Any) -> List[ValidationError]:
        if not isinstance(targets, list) or not targets:
            return [ValidationError(f"{path}.targets", "Panel must have at least one target")]

        errors: List[ValidationError] = []
        ref_ids = set()
        for j, query in enumerate(targets):
            target_path = f"{path}.targets[{j}]"
            if not isinstance(query, dict) or not query.get("expr"):
                errors.append(ValidationError(target_path, "Target must have an expr"))
                continue
            ref_id = query.get("refId")
            if ref_id in ref_ids:
                errors.append(ValidationError(f"{target_path}.refId", f"Duplicate refId: {ref_id}"))
            ref_ids.add(ref_id)
        return errors


def check_dashboard(dashboard: Dict[str, Any], product: Optional[str] = None) -> None:
    """Raise DashboardValidationError if the dashboard is invalid."""
    errors = DashboardValidator().validate(dashboard)
    if errors:
        message = "; ".join(f"{error.path}: {error.message}" for error in errors)
        raise DashboardValidationError(message, product=product)
