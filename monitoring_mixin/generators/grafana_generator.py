"""
Grafana Dashboard Generator

Places plugin panels into dashboards: one dashboard per product with a
row holding one panel per SLI, and a summary dashboard with one row per
product. Panels are never modified; placement fields are added to a deep
copy, so no two dashboards share panel structures.
"""
from typing import Any, Dict, List, Optional
import copy
import json
import logging
import re

from ..config import MixinConfig
from .grafana_panels import row_panel


logger = logging.getLogger(__name__)

PANEL_WIDTH = 12
PANEL_HEIGHT = 8
ROW_HEIGHT = 1
GRID_WIDTH = 24
MAX_UID_LENGTH = 40


def dashboard_uid(mixin: str, product: str) -> str:
    """Deterministic dashboard UID, within Grafana's 40 character limit."""
    uid = re.sub(r"[^a-zA-Z0-9_-]", "-", f"{mixin}-{product}-slis").lower()
    return uid[:MAX_UID_LENGTH]


class GrafanaDashboardGenerator:
    """
    Generates Grafana dashboard documents from plugin panels.

    Panel ids are assigned per dashboard, in placement order, so the same
    input always yields the same ids.
    """

    def __init__(self, config: MixinConfig):
        """
        Initialize dashboard generator.

        Args:
            config: Mixin configuration (titles, links, datasource)
        """
        self.config = config
        self._panels: Dict[str, List[Dict[str, Any]]] = {}

    def add_panel(self, product: str, panel: Dict[str, Any]) -> None:
        self._panels.setdefault(product, []).append(panel)

    @property
    def products(self) -> List[str]:
        return list(self._panels)

    def product_dashboard(self, product: str) -> Dict[str, Any]:
        """Build the dashboard for one product."""
        panels = self._layout([(product, self._panels.get(product, []))])
        return self._dashboard(
            uid=dashboard_uid(self.config.product, product),
            title=f"{self.config.display_name} / {product} SLIs",
            tags=["slo", "sli", self.config.product, product],
            panels=panels
        )

    def summary_dashboard(self) -> Dict[str, Any]:
        """Build the summary dashboard with one row per product."""
        panels = self._layout(list(self._panels.items()))
        return self._dashboard(
            uid=dashboard_uid(self.config.product, "summary"),
            title=f"{self.config.display_name} SLI Summary",
            tags=["slo", "sli", self.config.product, "summary"],
            panels=panels
        )

    def dashboards(self) -> Dict[str, Dict[str, Any]]:
        return {product: self.product_dashboard(product) for product in self._panels}

    def _layout(self, rows: List[Any]) -> List[Dict[str, Any]]:
        """Place rows of panels top to bottom, two panels per line."""
        placed: List[Dict[str, Any]] = []
        panel_id = 1
        y_position = 0

        for product, panels in rows:
            row = row_panel(product)
            row.update({
                "id": panel_id,
                "gridPos": {"x": 0, "y": y_position, "w": GRID_WIDTH, "h": ROW_HEIGHT}
            })
            placed.append(row)
            panel_id += 1
            y_position += ROW_HEIGHT

            for i, panel in enumerate(panels):
                x_position = (i % 2) * PANEL_WIDTH
                placed_panel = copy.deepcopy(panel)
                placed_panel.update({
                    "id": panel_id,
                    "gridPos": {
                        "x": x_position,
                        "y": y_position + (i // 2) * PANEL_HEIGHT,
                        "w": PANEL_WIDTH,
                        "h": PANEL_HEIGHT
                    }
                })
                placed.append(placed_panel)
                panel_id += 1

            y_position += ((len(panels) + 1) // 2) * PANEL_HEIGHT

        return placed

    def _dashboard(
        self,
        uid: str,
        title: str,
        tags: List[str],
        panels: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        return {
            "uid": uid,
            "title": title,
            "description": f"SLI dashboard for {self.config.display_name}",
            "tags": tags,
            "timezone": "browser",
            "editable": False,
            "graphTooltip": 1,  # Shared crosshair
            "time": {
                "from": "now-6h",
                "to": "now"
            },
            "timepicker": {
                "refresh_intervals": ["30s", "1m", "5m", "15m", "30m", "1h"]
            },
            "links": self._create_links(),
            "panels": panels,
            "annotations": {"list": []},
            "schemaVersion": 38,
            "version": 1,
            "refresh": "1m"
        }

    def _create_links(self) -> List[Dict[str, Any]]:
        return [
            {
                "title": "Alertmanager",
                "type": "link",
                "url": self.config.alertmanager_url,
                "targetBlank": True
            }
        ]


def dump_dashboard_json(dashboard: Dict[str, Any], indent: Optional[int] = 2) -> str:
    """Serialize a dashboard for provisioning."""
    return json.dumps(dashboard, indent=indent)
