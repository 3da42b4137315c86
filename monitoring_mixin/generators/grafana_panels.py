"""
Panel Builder Primitives

Construction helpers for Grafana panels, query targets and field
overrides. Metric-type plugins assemble their panels from these so every
panel shares the same layout defaults. Placement (id, gridPos) is left to
the dashboard generator.
"""
from typing import Any, Dict, List, Optional
from enum import Enum
import re


class SeriesColor(str, Enum):
    """Fixed series colors used by overrides"""
    GREEN = "green"
    RED = "red"
    YELLOW = "yellow"
    ORANGE = "orange"
    BLUE = "blue"
    PURPLE = "purple"


def target(expr: str, legend_format: str, datasource: str) -> Dict[str, Any]:
    """
    Create a query target.

    refId is assigned by timeseries_panel from the target position.

    Args:
        expr: PromQL expression
        legend_format: Legend text; overrides match against it
        datasource: Datasource UID

    Returns:
        Target definition dict
    """
    return {
        "expr": expr,
        "legendFormat": legend_format,
        "datasource": {"uid": datasource}
    }


def override_by_legend(legend_substring: str, properties: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Create a field override matching every series whose name contains
    `legend_substring`.
    """
    return {
        "matcher": {
            "id": "byRegexp",
            "options": f".*{re.escape(legend_substring)}.*"
        },
        "properties": properties
    }


def color_property(color: SeriesColor) -> Dict[str, Any]:
    return {"id": "color", "value": {"mode": "fixed", "fixedColor": color.value}}


def right_axis_property(unit: Optional[str] = None) -> List[Dict[str, Any]]:
    """Move matched series to the right axis, optionally with their own unit."""
    properties = [{"id": "custom.axisPlacement", "value": "right"}]
    if unit:
        properties.append({"id": "unit", "value": unit})
    return properties


def dashed_line_property() -> Dict[str, Any]:
    return {"id": "custom.lineStyle", "value": {"fill": "dash", "dash": [10, 10]}}


def threshold_overrides(legend_substring: str = "Target") -> Dict[str, Any]:
    """Red dashed line for the SLI target series."""
    return override_by_legend(
        legend_substring,
        [dashed_line_property(), color_property(SeriesColor.RED)]
    )


def timeseries_panel(
    title: str,
    description: str,
    datasource: str,
    targets: List[Dict[str, Any]],
    overrides: Optional[List[Dict[str, Any]]] = None,
    unit: str = "short",
    min_value: Optional[float] = None,
    max_value: Optional[float] = None
) -> Dict[str, Any]:
    """
    Create a timeseries panel.

    Args:
        title: Panel title
        description: Panel description (markdown)
        datasource: Datasource UID
        targets: Query targets built with target()
        overrides: Field overrides built with override_by_legend()
        unit: Unit of the left axis
        min_value: Optional axis minimum
        max_value: Optional axis maximum

    Returns:
        Panel definition dict
    """
    ref_targets = []
    for i, query in enumerate(targets):
        ref_targets.append({**query, "refId": _ref_id(i)})

    defaults: Dict[str, Any] = {
        "unit": unit,
        "custom": {
            "axisPlacement": "auto",
            "drawStyle": "line",
            "lineInterpolation": "smooth",
            "lineWidth": 2,
            "fillOpacity": 10,
            "showPoints": "never"
        }
    }
    if min_value is not None:
        defaults["min"] = min_value
    if max_value is not None:
        defaults["max"] = max_value

    return {
        "title": title,
        "description": description,
        "type": "timeseries",
        "datasource": {"uid": datasource},
        "targets": ref_targets,
        "options": {
            "tooltip": {"mode": "multi", "sort": "none"},
            "legend": {
                "displayMode": "table",
                "placement": "bottom",
                "calcs": ["mean", "max", "last"]
            }
        },
        "fieldConfig": {
            "defaults": defaults,
            "overrides": list(overrides or [])
        }
    }


def row_panel(title: str, collapsed: bool = False) -> Dict[str, Any]:
    return {
        "title": title,
        "type": "row",
        "collapsed": collapsed,
        "panels": []
    }


def _ref_id(index: int) -> str:
    """A, B, ..., Z, AA, AB, ..."""
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters
