"""
Tests for the Grepsight CSS processor.
"""

from grepsight.tools.processors.css import rule_table
from grepsight.tools.units import split_lines, unit_from_text

from conftest import insights_for

STYLESHEET = """@import url("base.css");
/* theme */
.button {
  color: red;
}
@media (max-width: 600px) {
  .button {
    padding: 4px;
  }
}
"""


class TestCssProcessor:
    """Tests for CSS insights."""

    def test_declaration(self):
        insights = insights_for(unit_from_text(STYLESHEET, "css"), r"(red)")
        assert insights == {
            "selector": ".button",
            "property": "color",
            "declaration_value": "red",
            "rule_index": 0,
            "comment": False,
            "css_path": "stylesheet.rule[0].declaration[color]",
        }

    def test_media_query(self):
        insights = insights_for(unit_from_text(STYLESHEET, "css"), r"(4px)")
        assert insights["media_query"] == "@media (max-width: 600px)"
        assert insights["rule_index"] == 1
        assert insights["property"] == "padding"
        assert insights["css_path"] == "stylesheet.rule[1].declaration[padding]"

    def test_selector_line(self):
        insights = insights_for(unit_from_text(STYLESHEET, "css"), r"^(\.button) \{")
        assert insights["selector"] == ".button"
        assert insights["css_path"] == "stylesheet.rule[0]"
        assert "property" not in insights

    def test_import(self):
        insights = insights_for(unit_from_text(STYLESHEET, "css"), r"(base\.css)")
        assert insights == {"comment": False, "import_source": "base.css"}

    def test_comment(self):
        assert insights_for(unit_from_text(STYLESHEET, "css"), r"(theme)")["comment"] is True


class TestRuleTable:
    """Tests for rule_table()."""

    def test_one_line_rules(self):
        table = rule_table(split_lines("a { color: red; }\nb { margin: 0; }\n"))
        assert [r.index for r in table] == [0, 1]
        assert [r.selector for r in table] == ["a", "b"]

    def test_lines_outside_rules(self):
        table = rule_table(split_lines("a {\n  x: 1;\n}\n\n"))
        assert table[1].selector == "a"
        assert table[3] is None
