"""
Grepsight CSS Processor - rule, declaration and media context.
"""

import re
from dataclasses import dataclass
from typing import Optional

from ..units import split_lines
from .base import InsightProcessor, source_text
from .code import block_comment_table

IMPORT_RE = re.compile(r"""@import\s+(?:url\(\s*["']?([^"')]+)["']?\s*\)|["']([^"']+)["'])""", re.IGNORECASE)
DECLARATION_RE = re.compile(r"^\s*([a-zA-Z-]+)\s*:\s*(.+?)\s*;?\s*$")


@dataclass(frozen=True)
class Rule:
    index: int
    selector: str
    media_query: Optional[str] = None


def rule_table(lines) -> list[Optional[Rule]]:
    """Rule owning each line (None outside rules), rules numbered in order."""
    table = []
    stack = []  # open blocks: Rule or a media query string
    media = []
    count = 0

    for line in lines:
        stripped = line.strip()
        owner = next((b for b in reversed(stack) if isinstance(b, Rule)), None)

        if stripped.startswith("@media") and "{" in stripped:
            query = stripped.split("{", 1)[0].strip()
            media.append(query)
            stack.append(query)
            table.append(owner)
            continue

        if "{" in stripped and not stripped.startswith("@"):
            selector, _, rest = stripped.partition("{")
            rule = Rule(count, selector.strip(), media[-1] if media else None)
            count += 1
            table.append(rule)
            if "}" not in rest:
                stack.append(rule)
            continue

        table.append(owner)
        for _ in range(stripped.count("}")):
            if not stack:
                break
            closed = stack.pop()
            if not isinstance(closed, Rule):
                media.pop()

    return table


class CssProcessor(InsightProcessor):
    label = "CSS"

    def extract_insights(self, unit, match):
        lines = unit.memo("css.lines", lambda: split_lines(source_text(unit)))
        rules = unit.memo("css.rules", lambda: rule_table(lines))
        comments = unit.memo("css.comments", lambda: block_comment_table(lines))

        index = match.line_number - 1
        line = lines[index] if 0 <= index < len(lines) else match.line
        rule = rules[index] if 0 <= index < len(rules) else None

        prop = value = None
        if "{" not in line:
            declaration = DECLARATION_RE.match(line)
            if declaration:
                prop, value = declaration.group(1), declaration.group(2)

        imported = IMPORT_RE.search(line)
        path = None
        if rule is not None:
            path = f"stylesheet.rule[{rule.index}]"
            if prop:
                path += f".declaration[{prop}]"

        insights = {
            "selector": rule.selector if rule else None,
            "property": prop,
            "declaration_value": value,
            "rule_index": rule.index if rule else None,
            "media_query": rule.media_query if rule else None,
            "comment": 0 <= index < len(comments) and comments[index],
            "import_source": (imported.group(1) or imported.group(2)) if imported else None,
            "css_path": path,
        }
        return {k: v for k, v in insights.items() if v is not None}
