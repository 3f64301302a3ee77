"""
Grepsight Code Processors - enclosing declaration for matches in source code.

Each language is described by an ordered list of (regex, container_type)
templates. Scanning upward from the line above the match, the first line that fits
any template (tried in list order) is the container. Comment and doc-block
state is computed once per unit as a per-line table.

Insights per match:
    container, container_type   nearest declaration ("module" when none)
    line_number, column         1-based position of the first capture
    code_context                the two lines before, the line, one after
    in_comment                  comment line or inside a block comment
    in_docstring / in_jsx       language specific
    import_context etc.         nearby import / require lines
    complexity_hint             low / medium / high from declaration size
    <lang>_path                 module.name() or module.Name
"""

import re
from dataclasses import dataclass
from typing import Optional

from ..context_window import surrounding
from ..units import split_lines
from .base import InsightProcessor, source_text

# Declaration sizes (in lines) for complexity_hint
LOW_COMPLEXITY = 10
MEDIUM_COMPLEXITY = 40


@dataclass(frozen=True)
class Container:
    type: str
    name: str
    line: Optional[int] = None  # 1-based, None for the module level


MODULE = Container("module", "module")


def complexity_hint(size: int) -> str:
    if size <= LOW_COMPLEXITY:
        return "low"
    if size <= MEDIUM_COMPLEXITY:
        return "medium"
    return "high"


class CodeProcessor(InsightProcessor):
    """
    Shared scanning logic. Subclasses set the class attributes below.

    Attributes:
        templates: Ordered (regex, container_type) pairs; group "name"
            holds the declared name
        comment_prefixes: Line prefixes that mark a whole-line comment
        declaration_re: Declaration lines; one at the container's
            indentation or less ends it
        block_end_re: Closing line ending the container at its own
            indentation (Ruby "end"), counted in its size
        context_key: Insight key for nearby import lines
        context_re: Lines collected into context_key
        context_span: How many lines above the match to look for imports
        path_key: Insight key of the symbolic path
        callable_types: Container types rendered as module.name()
    """

    templates: tuple = ()
    comment_prefixes: tuple = ("#",)
    declaration_re = re.compile(r"$^")
    block_end_re = None
    context_key = "import_context"
    context_re = re.compile(r"$^")
    context_span = 5
    path_key = "code_path"
    callable_types = ("function", "method")

    def extract_insights(self, unit, match):
        lines = unit.memo("code.lines", lambda: split_lines(source_text(unit)))
        index = match.line_number - 1
        line = lines[index] if 0 <= index < len(lines) else match.line

        container = self.find_container(lines, match.line_number)
        container = self.adjust_container(unit, lines, index, container)

        insights = {
            "container": container.name,
            "container_type": container.type,
            "line_number": match.line_number,
            "column": column_of(line, match.first_capture()),
            "code_context": code_context(lines, index),
            "in_comment": self.in_comment(unit, lines, index, line),
            self.context_key: self.nearby_context(lines, index),
            "complexity_hint": self.complexity(lines, container),
            self.path_key: self.symbolic_path(container),
        }
        insights.update(self.language_insights(unit, lines, index, line))
        return {k: v for k, v in insights.items() if v is not None}

    # -- container -------------------------------------------------------------

    def is_comment(self, stripped: str) -> bool:
        return stripped.startswith(self.comment_prefixes)

    def match_template(self, stripped: str, templates=None) -> Optional[Container]:
        for regex, container_type in templates or self.templates:
            found = regex.match(stripped)
            if found:
                return Container(container_type, found.group("name"))
        return None

    def find_container(self, lines, line_number, templates=None) -> Container:
        """Nearest declaration above line_number (the line itself excluded)."""
        for number in range(min(line_number - 1, len(lines)), 0, -1):
            stripped = lines[number - 1].strip()
            if not stripped or self.is_comment(stripped):
                continue
            found = self.match_template(stripped, templates)
            if found:
                return Container(found.type, found.name, number)
        return MODULE

    def adjust_container(self, unit, lines, index, container) -> Container:
        return container

    def complexity(self, lines, container) -> Optional[str]:
        """
        Size of the container from its declaration to the next declaration
        of equal or higher scope (same or smaller indentation).
        """
        if container.line is None:
            return None
        scope = indentation(lines[container.line - 1])
        size = 1
        for line in lines[container.line:]:
            stripped = line.strip()
            if stripped and not self.is_comment(stripped) and indentation(line) <= scope:
                if self.declaration_re.match(stripped):
                    break
                if self.block_end_re and self.block_end_re.match(stripped):
                    size += 1
                    break
            size += 1
        return complexity_hint(size)

    def symbolic_path(self, container) -> str:
        if container.line is None:
            return "module"
        if container.type in self.callable_types:
            return f"module.{container.name}()"
        return f"module.{container.name}"

    # -- line state ------------------------------------------------------------

    def in_comment(self, unit, lines, index, line) -> bool:
        return self.is_comment(line.strip())

    def nearby_context(self, lines, index) -> list:
        if not 0 <= index < len(lines):
            return []
        before, _ = surrounding(lines, index, self.context_span)
        return [l for l in before if self.context_re.match(l.strip())]

    def language_insights(self, unit, lines, index, line) -> dict:
        return {}


def indentation(line: str) -> int:
    return len(line) - len(line.lstrip())


def column_of(line: str, token: Optional[str]) -> int:
    """1-based column of token in line, else of the first non-space character."""
    if token:
        position = line.find(token)
        return position + 1 if position >= 0 else 1
    stripped = line.lstrip()
    return len(line) - len(stripped) + 1 if stripped else 1


def code_context(lines, index) -> str:
    """The two lines before, the matched line and the line after."""
    if not 0 <= index < len(lines):
        return ""
    before, after = surrounding(lines, index, 2)
    return "\n".join(before + [lines[index]] + after[:1])


def parity_table(lines, opens, closes=None) -> list[bool]:
    """
    Per-line "inside a block" flags from open/close markers.

    With closes=None, opens is a toggling marker (like triple quotes) and a
    line is inside when the cumulative count up to and including it is odd.
    Otherwise the state opens on a line starting with opens and closes on a
    line starting with closes.
    """
    table = []
    if closes is None:
        count = 0
        for line in lines:
            count += len(opens.findall(line))
            table.append(count % 2 == 1)
        return table

    inside = False
    for line in lines:
        stripped = line.strip()
        if stripped.startswith(opens):
            inside = True
        if stripped.startswith(closes):
            inside = False
        table.append(inside)
    return table


# =============================================================================
# Ruby
# =============================================================================

class RubyProcessor(CodeProcessor):
    label = "Ruby"
    templates = (
        (re.compile(r"^def\s+(?:self\.)?(?P<name>[a-zA-Z_][\w!?=]*)(?=[\s(;]|$)"), "method"),
        (re.compile(r"^class\s+(?P<name>[A-Z][\w:]*)"), "class"),
        (re.compile(r"^module\s+(?P<name>[A-Z][\w:]*)"), "module"),
    )
    declaration_re = re.compile(r"^(def|class|module)\b")
    block_end_re = re.compile(r"^end\b")
    context_key = "require_context"
    context_re = re.compile(r"^(require|require_relative|load)\s+")
    context_span = 6
    path_key = "ruby_path"

    def language_insights(self, unit, lines, index, line):
        table = unit.memo("ruby.docblock", lambda: parity_table(lines, "=begin", "=end"))
        return {"in_docstring": table[index] if 0 <= index < len(table) else False}


# =============================================================================
# Python
# =============================================================================

TRIPLE_QUOTE_RE = re.compile(r'"""|\'\'\'')
ONE_LINE_DOCSTRING_RE = re.compile(r'""".*"""|\'\'\'.*\'\'\'')


class PythonProcessor(CodeProcessor):
    label = "Python"
    templates = (
        (re.compile(r"^(?:async\s+)?def\s+(?P<name>[a-zA-Z_]\w*)\s*\("), "function"),
        (re.compile(r"^class\s+(?P<name>[a-zA-Z_]\w*)\s*[(:]"), "class"),
    )
    declaration_re = re.compile(r"^(async\s+def|def|class)\s+")
    context_re = re.compile(r"^(import|from)\s+")
    path_key = "python_path"

    def language_insights(self, unit, lines, index, line):
        table = unit.memo("python.docstring", lambda: parity_table(lines, TRIPLE_QUOTE_RE))
        inside = 0 <= index < len(table) and table[index]
        return {"in_docstring": bool(ONE_LINE_DOCSTRING_RE.search(line)) or inside}


# =============================================================================
# JavaScript / TypeScript
# =============================================================================

COMPONENT_RE = re.compile(r"^(?:export\s+)?(?:default\s+)?(?:const|function)\s+(?P<name>[A-Z][\w$]*)(?:\s*:\s*[^=]+)?\s*[=(]")
JS_CLASS_RE = re.compile(r"^(?:export\s+)?(?:default\s+)?class\s+(?P<name>[A-Z][\w$]*)")
JS_FUNCTION_RE = re.compile(r"^(?:export\s+)?(?:default\s+)?(?:async\s+)?(?:function|const|let|var)\s+(?P<name>[a-zA-Z_$][\w$]*)\s*[=(]")
JS_ARROW_RE = re.compile(r"^(?:export\s+)?(?P<name>[a-zA-Z_$][\w$]*)\s*=\s*(?:async\s*)?\([^)]*\)\s*=>")

JSX_TAG_RE = re.compile(r"</?[A-Za-z][\w$.]*[^<]*>|<[A-Z][\w$]*")
TYPE_ANNOTATION_RE = re.compile(r":\s*[A-Z][\w$]*(\[\])?|\b(interface|type|enum)\s+[A-Z]")
GENERIC_TYPE_RE = re.compile(r"<[a-zA-Z][\w$]*>")
TYPE_IMPORT_RE = re.compile(r"import\s+type\b.*from|import\s*\{[^}]*\btype\b[^}]*\}")
BLOCK_COMMENT_OPEN_RE = re.compile(r"/\*")
BLOCK_COMMENT_CLOSE_RE = re.compile(r"\*/")


def block_comment_table(lines) -> list[bool]:
    """Per-line flag: line is inside (or opens or closes) a /* */ comment."""
    table = []
    inside = False
    for line in lines:
        touched = inside
        position = 0
        while True:
            regex = BLOCK_COMMENT_CLOSE_RE if inside else BLOCK_COMMENT_OPEN_RE
            found = regex.search(line, position)
            if not found:
                break
            inside = not inside
            touched = True
            position = found.end()
        table.append(touched)
    return table


class JavaScriptProcessor(CodeProcessor):
    """
    JavaScript, TypeScript and JSX.

    Components (PascalCase const/function) take precedence over classes,
    classes over functions, functions over arrow assignments. A match in JSX
    inside a plain function is attributed to the nearest component.
    """

    label = "JavaScript"
    templates = (
        (COMPONENT_RE, "component"),
        (JS_CLASS_RE, "class"),
        (JS_FUNCTION_RE, "function"),
        (JS_ARROW_RE, "function"),
    )
    component_templates = templates[:2]
    comment_prefixes = ("//", "/*")
    declaration_re = re.compile(r"^(?:export\s+)?(?:default\s+)?(?:async\s+)?(function|class|const|let|var)\s+[a-zA-Z_$]")
    context_key = "import_export_context"
    context_re = re.compile(r"^(import|export)\s+")
    context_span = 10
    path_key = "js_path"
    callable_types = ("function",)

    def adjust_container(self, unit, lines, index, container):
        if container.type == "function" and self.in_jsx(lines, index):
            component = self.find_container(lines, index + 1, self.component_templates)
            if component is not MODULE:
                return component
        return container

    def in_comment(self, unit, lines, index, line):
        stripped = line.strip()
        if stripped.startswith(("//", "/*")) or stripped.endswith("*/"):
            return True
        table = unit.memo("javascript.block_comments", lambda: block_comment_table(lines))
        return 0 <= index < len(table) and table[index]

    @staticmethod
    def in_jsx(lines, index) -> bool:
        """JSX-looking markup within two lines above or below."""
        start, end = max(index - 2, 0), min(index + 3, len(lines))
        return any(JSX_TAG_RE.search(line) for line in lines[start:end])

    @staticmethod
    def type_hint(lines, index, line) -> Optional[str]:
        if TYPE_ANNOTATION_RE.search(line):
            return "type_annotation"
        if GENERIC_TYPE_RE.search(line):
            return "generic_type"
        start, end = max(index - 2, 0), min(index + 2, len(lines))
        if any(TYPE_IMPORT_RE.search(l) for l in lines[start:end]):
            return "type_import"
        return None

    def language_insights(self, unit, lines, index, line):
        return {
            "in_jsx": self.in_jsx(lines, index),
            "type_hint": self.type_hint(lines, index, line),
        }
