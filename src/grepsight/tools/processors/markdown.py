"""
Grepsight Markdown Processor - where a line sits in the document outline.

A per-line structure table is built once per unit: line type, block type,
the heading path the line falls under, and code-fence language or list
depth where relevant.
"""

import re

from ..units import split_lines
from .base import InsightProcessor, source_text

FENCE_RE = re.compile(r"^\s*```(.*)$")
HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
LIST_RE = re.compile(r"^(\s*)(?:[-*+]|\d+\.)\s+")
RULE_RE = re.compile(r"^\s*([-*_])(?:\s*\1){2,}\s*$")
QUOTE_RE = re.compile(r"^\s*>")

# Checked in order after fences and headings; rules win over list items
BLOCK_TEMPLATES = (
    (RULE_RE, "horizontal_rule", "horizontal_rule"),
    (LIST_RE, "list_item", "list"),
    (QUOTE_RE, "blockquote", "blockquote"),
)


def analyze_structure(lines: list[str]) -> list[dict]:
    """
    Structure entry for every line.

    Returns:
        List aligned with lines; each entry has line_type, block_type,
        current_heading, heading_level and heading_path, plus code_language
        inside code blocks and list_level on list items
    """
    table = []
    headings = []  # (level, text) from outermost to innermost
    in_code = False
    language = None

    def entry(line_type, block_type, **extra):
        return {
            "line_type": line_type,
            "block_type": block_type,
            "current_heading": headings[-1][1] if headings else None,
            "heading_level": headings[-1][0] if headings else None,
            "heading_path": [text for _, text in headings],
            **extra,
        }

    for line in lines:
        fence = FENCE_RE.match(line)
        if fence:
            if in_code:
                in_code, language = False, None
            else:
                in_code, language = True, fence.group(1).strip() or None
            table.append(entry("code_fence", "code_block", code_language=language))
            continue

        if in_code:
            table.append(entry("code", "code_block", code_language=language))
            continue

        heading = HEADING_RE.match(line.strip())
        if heading:
            level = len(heading.group(1))
            headings = [h for h in headings if h[0] < level]
            headings.append((level, heading.group(2)))
            table.append(entry("heading", "heading"))
            continue

        for regex, line_type, block_type in BLOCK_TEMPLATES:
            found = regex.match(line)
            if found:
                if line_type == "list_item":
                    table.append(entry(line_type, block_type, list_level=len(found.group(1).expandtabs(4)) // 2))
                else:
                    table.append(entry(line_type, block_type))
                break
        else:
            table.append(entry("blank" if not line.strip() else "text", "paragraph"))

    return table


class MarkdownProcessor(InsightProcessor):
    label = "Markdown"

    def extract_insights(self, unit, match):
        table = unit.memo("markdown.structure", lambda: analyze_structure(split_lines(source_text(unit))))
        index = match.line_number - 1
        if 0 <= index < len(table):
            return dict(table[index])
        return {
            "line_type": "text",
            "block_type": "paragraph",
            "current_heading": None,
            "heading_level": None,
            "heading_path": [],
        }
