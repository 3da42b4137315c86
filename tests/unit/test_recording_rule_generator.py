"""
Unit tests for recording rule grouping and serialization
"""
import yaml

from monitoring_mixin.generators.recording_rule_generator import (
    RecordingRule,
    RecordingRuleGenerator,
    dump_rules_yaml,
    generate_record_name,
)


class TestRecordingRule:

    def test_with_labels_returns_copy(self):
        rule = RecordingRule("sli_value", "vector(1)", {"a": "1"})
        labeled = rule.with_labels({"product": "thanos"})

        assert labeled.labels == {"a": "1", "product": "thanos"}
        assert rule.labels == {"a": "1"}

    def test_with_labels_overrides(self):
        rule = RecordingRule("sli_value", "vector(1)", {"product": "old"})
        assert rule.with_labels({"product": "new"}).labels == {"product": "new"}

    def test_to_dict_omits_empty_labels(self):
        assert RecordingRule("r", "vector(1)").to_dict() == {"record": "r", "expr": "vector(1)"}


class TestGenerateRecordName:
    """Test record naming"""

    def test_namespaced_name(self):
        assert generate_record_name("thanos", "SLI02", "sqs_queues:count") == "thanos:SLI02_sqs_queues:count"

    def test_unsafe_product_sanitized(self):
        assert generate_record_name("my-app", "SLI01", "x:ratio") == "my_app:SLI01_x:ratio"


class TestRecordingRuleGenerator:
    """Test rule grouping"""

    def test_groups_by_product_and_interval(self):
        generator = RecordingRuleGenerator()
        generator.add_rules("prometheus", "1m", [RecordingRule("a", "vector(1)")])
        generator.add_rules("prometheus", "5m", [RecordingRule("b", "vector(1)")])
        generator.add_rules("thanos", "1m", [RecordingRule("c", "vector(1)")])
        generator.add_rules("prometheus", "1m", [RecordingRule("d", "vector(1)")])

        groups = generator.document()["groups"]

        assert [g["name"] for g in groups] == [
            "prometheus_1m_sli_recording_rules",
            "prometheus_5m_sli_recording_rules",
            "thanos_1m_sli_recording_rules",
        ]
        assert [g["interval"] for g in groups] == ["1m", "5m", "1m"]
        assert [r["record"] for r in groups[0]["rules"]] == ["a", "d"]

    def test_rules_flattened_in_group_order(self):
        generator = RecordingRuleGenerator()
        generator.add_rules("p", "1m", [RecordingRule("a", "vector(1)")])
        generator.add_rules("q", "1m", [RecordingRule("b", "vector(1)")])
        generator.add_rules("p", "1m", [RecordingRule("c", "vector(1)")])
        assert [r.record for r in generator.rules] == ["a", "c", "b"]

    def test_empty_document(self):
        assert RecordingRuleGenerator().document() == {"groups": []}


class TestDumpRulesYaml:

    def test_preserves_key_order(self):
        document = {"groups": [{
            "name": "g",
            "interval": "1m",
            "rules": [{"record": "r", "expr": "vector(1)", "labels": {"sliId": "SLI01"}}]
        }]}
        text = dump_rules_yaml(document)

        assert text.index("name:") < text.index("interval:") < text.index("rules:")
        assert text.index("record:") < text.index("expr:")
        assert yaml.safe_load(text) == document
