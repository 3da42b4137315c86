"""
Unit tests for the deployment driver
"""
import json

import pytest
import yaml

from monitoring_mixin.cli import main


@pytest.fixture
def input_dir(tmp_path, config_data, sli_specs_by_product):
    defs = tmp_path / "config" / "mixin-defs"
    defs.mkdir(parents=True)
    (defs / "monitoring.yaml").write_text(
        yaml.safe_dump({"config": config_data, "slis": sli_specs_by_product}, sort_keys=False)
    )
    return tmp_path / "config"


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "out"


def run(input_dir, output_dir, *flags):
    return main(["-m", "monitoring", "-i", str(input_dir), "-o", str(output_dir), *flags])


class TestMain:
    """Test building and writing artifacts"""

    def test_writes_all_artifacts(self, input_dir, output_dir):
        assert run(input_dir, output_dir) == 0

        mixin_dir = output_dir / "monitoring"
        assert sorted(p.relative_to(mixin_dir).as_posix() for p in mixin_dir.rglob("*.*")) == [
            "grafana-dashboards/monitoring-summary.json",
            "grafana-dashboards/prometheus.json",
            "grafana-dashboards/thanos.json",
            "prometheus-rules/monitoring-alerting-rules.yaml",
            "prometheus-rules/monitoring-recording-rules.yaml",
        ]

    def test_written_files_parse(self, input_dir, output_dir):
        run(input_dir, output_dir)
        mixin_dir = output_dir / "monitoring"

        rules = yaml.safe_load((mixin_dir / "prometheus-rules" / "monitoring-recording-rules.yaml").read_text())
        dashboard = json.loads((mixin_dir / "grafana-dashboards" / "thanos.json").read_text())

        assert rules["groups"][0]["name"] == "prometheus_1m_sli_recording_rules"
        assert dashboard["uid"] == "monitoring-thanos-slis"

    def test_rules_only(self, input_dir, output_dir):
        assert run(input_dir, output_dir, "-r") == 0
        assert (output_dir / "monitoring" / "prometheus-rules").is_dir()
        assert not (output_dir / "monitoring" / "grafana-dashboards").exists()

    def test_dashboards_only(self, input_dir, output_dir):
        assert run(input_dir, output_dir, "-d") == 0
        assert not (output_dir / "monitoring" / "prometheus-rules").exists()
        assert (output_dir / "monitoring" / "grafana-dashboards").is_dir()

    def test_previous_output_replaced(self, input_dir, output_dir):
        stale = output_dir / "monitoring" / "grafana-dashboards" / "removed.json"
        stale.parent.mkdir(parents=True)
        stale.write_text("{}")

        assert run(input_dir, output_dir) == 0
        assert not stale.exists()

    def test_default_output_dir(self, input_dir):
        assert main(["-m", "monitoring", "-i", str(input_dir)]) == 0
        assert (input_dir / "output" / "monitoring" / "prometheus-rules").is_dir()


class TestMainErrors:
    """Test failures leave previous output untouched"""

    def test_failed_build_keeps_previous_output(self, input_dir, output_dir, config_data, sli_specs_by_product):
        assert run(input_dir, output_dir) == 0
        previous = (output_dir / "monitoring" / "prometheus-rules" / "monitoring-recording-rules.yaml").read_text()

        sli_specs_by_product["thanos"]["SLI02"]["metricType"] = "does-not-exist"
        (input_dir / "mixin-defs" / "monitoring.yaml").write_text(
            yaml.safe_dump({"config": config_data, "slis": sli_specs_by_product})
        )

        assert run(input_dir, output_dir) == 1
        current = (output_dir / "monitoring" / "prometheus-rules" / "monitoring-recording-rules.yaml").read_text()
        assert current == previous

    def test_missing_definition(self, input_dir, output_dir):
        assert main(["-m", "unknown", "-i", str(input_dir), "-o", str(output_dir)]) == 1
        assert not output_dir.exists()

    def test_mixin_required(self):
        with pytest.raises(SystemExit):
            main([])
