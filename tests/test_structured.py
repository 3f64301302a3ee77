"""
Tests for Grepsight JSON and YAML processors.
"""

from grepsight.tools.units import unit_from_text

from conftest import insights_for

USERS_JSON = """{
  "users": [
    {"name": "Ruby", "email": "ruby@example.com"},
    {"name": "Crystal", "tags": ["admin", "ops"]}
  ],
  "count": 2
}
"""

CONFIG_YAML = """database:
  host: localhost
  port: 5432
servers:
  - alpha
  - beta
debug: true
name: demo
"""


class TestJsonProcessor:
    """Tests for JSON paths."""

    def test_path_to_string_value(self):
        insights = insights_for(unit_from_text(USERS_JSON, "json"), r'"name": "(Ruby)"')
        assert insights == {"json_path": 'data["users"][0]["name"]'}

    def test_path_into_nested_array(self):
        insights = insights_for(unit_from_text(USERS_JSON, "json"), r"(ops)")
        assert insights["json_path"] == 'data["users"][1]["tags"][1]'

    def test_top_level_array(self):
        insights = insights_for(unit_from_text('["a", ["b", "target"]]', "json"), r"(target)")
        assert insights["json_path"] == "data[1][1]"

    def test_number_values_not_matched(self):
        insights = insights_for(unit_from_text(USERS_JSON, "json"), r'"count": (2)')
        assert insights == {"json_path": None}

    def test_invalid_json(self):
        insights = insights_for(unit_from_text('{"a": "x",', "json"), r'"(x)"')
        assert insights == {"error": "Invalid JSON"}

    def test_pattern_without_groups_uses_whole_match(self):
        insights = insights_for(unit_from_text(USERS_JSON, "json"), r"Crystal")
        assert insights["json_path"] == 'data["users"][1]["name"]'


class TestYamlProcessor:
    """Tests for YAML paths."""

    def test_nested_mapping(self):
        insights = insights_for(unit_from_text(CONFIG_YAML, "yaml"), r"(localhost)")
        assert insights == {
            "yaml_path": "database.host",
            "parent_structure": {"host": "localhost", "port": 5432},
        }

    def test_numeric_scalar(self):
        insights = insights_for(unit_from_text(CONFIG_YAML, "yaml"), r"(5432)")
        assert insights["yaml_path"] == "database.port"

    def test_list_item(self):
        insights = insights_for(unit_from_text(CONFIG_YAML, "yml"), r"(beta)")
        assert insights == {"yaml_path": "servers.1", "parent_structure": ["alpha", "beta"]}

    def test_boolean_scalar(self):
        insights = insights_for(unit_from_text(CONFIG_YAML, "yaml"), r"debug: (true)")
        assert insights["yaml_path"] == "debug"

    def test_top_level_key_has_empty_parent(self):
        insights = insights_for(unit_from_text(CONFIG_YAML, "yaml"), r"(demo)")
        assert insights == {"yaml_path": "name", "parent_structure": {}}

    def test_flow_sequence(self):
        insights = insights_for(unit_from_text("app:\n  tags: [alpha, beta]\n", "yaml"), r"(beta)")
        assert insights == {"yaml_path": "app.tags.1", "parent_structure": ["alpha", "beta"]}

    def test_flow_mapping(self):
        source = "app: {owner: ops-team, tier: gold}\n"
        insights = insights_for(unit_from_text(source, "yaml"), r"(ops)")
        assert insights == {"yaml_path": "app.owner", "parent_structure": {"owner": "ops-team", "tier": "gold"}}

    def test_key_line_without_scalar(self):
        insights = insights_for(unit_from_text(CONFIG_YAML, "yaml"), r"^(database):")
        assert insights == {"yaml_path": None, "parent_structure": {}}

    def test_broken_yaml(self):
        insights = insights_for(unit_from_text("key: [unclosed\n", "yaml"), r"(key)")
        assert insights == {"yaml_path": None, "parent_structure": {}}
