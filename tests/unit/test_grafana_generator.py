"""
Unit tests for dashboard assembly and panel primitives
"""
import json

import pytest

from monitoring_mixin.generators.grafana_generator import (
    GrafanaDashboardGenerator,
    dashboard_uid,
    dump_dashboard_json,
)
from monitoring_mixin.generators.grafana_panels import (
    SeriesColor,
    color_property,
    override_by_legend,
    right_axis_property,
    row_panel,
    target,
    threshold_overrides,
    timeseries_panel,
)


def make_panel(title: str):
    return timeseries_panel(
        title=title,
        description="",
        datasource="prom",
        targets=[target("vector(1)", "Value", "prom")]
    )


@pytest.fixture
def generator(mixin_config):
    generator = GrafanaDashboardGenerator(mixin_config)
    generator.add_panel("prometheus", make_panel("P1"))
    generator.add_panel("prometheus", make_panel("P2"))
    generator.add_panel("prometheus", make_panel("P3"))
    generator.add_panel("thanos", make_panel("T1"))
    return generator


class TestDashboardUid:

    def test_uid(self):
        assert dashboard_uid("monitoring", "prometheus") == "monitoring-prometheus-slis"

    def test_uid_sanitized_and_capped(self):
        uid = dashboard_uid("My Mixin", "a" * 60)
        assert uid.startswith("my-mixin-")
        assert len(uid) == 40


class TestProductDashboard:
    """Test per-product dashboards"""

    def test_metadata(self, generator):
        dashboard = generator.product_dashboard("prometheus")

        assert dashboard["uid"] == "monitoring-prometheus-slis"
        assert dashboard["title"] == "Monitoring Platform / prometheus SLIs"
        assert "prometheus" in dashboard["tags"]
        assert dashboard["links"][0]["url"] == "https://alertmanager.example.com"

    def test_layout(self, generator):
        panels = generator.product_dashboard("prometheus")["panels"]

        assert [p["type"] for p in panels] == ["row", "timeseries", "timeseries", "timeseries"]
        assert [p["id"] for p in panels] == [1, 2, 3, 4]
        assert [p["gridPos"] for p in panels] == [
            {"x": 0, "y": 0, "w": 24, "h": 1},
            {"x": 0, "y": 1, "w": 12, "h": 8},
            {"x": 12, "y": 1, "w": 12, "h": 8},
            {"x": 0, "y": 9, "w": 12, "h": 8},
        ]

    def test_panels_in_insertion_order(self, generator):
        panels = generator.product_dashboard("prometheus")["panels"]
        assert [p["title"] for p in panels[1:]] == ["P1", "P2", "P3"]

    def test_plugin_panels_not_modified(self, mixin_config):
        panel = make_panel("P1")
        generator = GrafanaDashboardGenerator(mixin_config)
        generator.add_panel("prometheus", panel)
        generator.product_dashboard("prometheus")
        assert "id" not in panel
        assert "gridPos" not in panel

    def test_dashboards_keyed_by_product(self, generator):
        assert list(generator.dashboards()) == ["prometheus", "thanos"]
        assert generator.products == ["prometheus", "thanos"]


class TestSummaryDashboard:

    def test_one_row_per_product(self, generator):
        panels = generator.summary_dashboard()["panels"]
        rows = [p for p in panels if p["type"] == "row"]

        assert [r["title"] for r in rows] == ["prometheus", "thanos"]
        assert rows[1]["gridPos"]["y"] == 1 + 2 * 8

    def test_ids_unique(self, generator):
        ids = [p["id"] for p in generator.summary_dashboard()["panels"]]
        assert ids == list(range(1, 7))

    def test_uid(self, generator):
        assert generator.summary_dashboard()["uid"] == "monitoring-summary-slis"

    def test_panels_independent_of_product_dashboard(self, generator):
        """Test editing one dashboard leaves the other and the source panel alone"""
        product = generator.product_dashboard("thanos")
        summary = generator.summary_dashboard()

        product["panels"][1]["targets"][0]["expr"] = "changed"
        product["panels"][1]["fieldConfig"]["defaults"]["unit"] = "changed"

        summary_panel = [p for p in summary["panels"] if p["title"] == "T1"][0]
        assert summary_panel["targets"][0]["expr"] == "vector(1)"
        assert summary_panel["fieldConfig"]["defaults"]["unit"] == "short"
        assert generator.product_dashboard("thanos")["panels"][1]["targets"][0]["expr"] == "vector(1)"


class TestPanelPrimitives:
    """Test panel builder helpers"""

    def test_ref_ids_assigned(self):
        panel = timeseries_panel(
            title="t",
            description="",
            datasource="prom",
            targets=[target(f"vector({i})", str(i), "prom") for i in range(28)]
        )
        ref_ids = [t["refId"] for t in panel["targets"]]
        assert ref_ids[:3] == ["A", "B", "C"]
        assert ref_ids[25:] == ["Z", "AA", "AB"]

    def test_axis_limits(self):
        panel = timeseries_panel("t", "", "prom", [target("up", "up", "prom")], min_value=0, max_value=1)
        defaults = panel["fieldConfig"]["defaults"]
        assert defaults["min"] == 0
        assert defaults["max"] == 1

    def test_override_matches_legend_substring(self):
        override = override_by_legend("P80 latency", [color_property(SeriesColor.PURPLE)])
        assert override["matcher"] == {"id": "byRegexp", "options": r".*P80\ latency.*"}

    def test_right_axis_with_unit(self):
        assert right_axis_property("reqps") == [
            {"id": "custom.axisPlacement", "value": "right"},
            {"id": "unit", "value": "reqps"},
        ]

    def test_threshold_overrides(self):
        override = threshold_overrides()
        assert override["matcher"]["options"] == ".*Target.*"
        assert override["properties"][1]["value"]["fixedColor"] == "red"

    def test_row_panel(self):
        assert row_panel("thanos")["type"] == "row"


class TestDumpDashboardJson:

    def test_round_trip(self, generator):
        dashboard = generator.product_dashboard("thanos")
        assert json.loads(dump_dashboard_json(dashboard)) == dashboard

