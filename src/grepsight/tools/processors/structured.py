"""
Grepsight Structured Processors - JSON and YAML paths.

JSON: the first string value (pre-order) containing the first capture,
reported as data["users"][0]["name"].
YAML: the first scalar equal to the value side of the matched line, else
the first scalar containing the first capture, reported as a dotted path
(database.host) with its enclosing structure.
"""

import json

import yaml

from ..logging import PROCESSOR, get_logger
from .base import InsightProcessor, ProcessorOutcome, require_keyword, source_text

logger = get_logger(__name__)

_INVALID = object()


class JsonProcessor(InsightProcessor):
    label = "JSON"

    def extract_insights(self, unit, match):
        keyword = require_keyword(match)
        data = unit.memo("json.data", lambda: self._parse(source_text(unit)))
        if data is _INVALID:
            return ProcessorOutcome.failed("Invalid JSON")
        return {"json_path": find_json_path(data, keyword)}

    @staticmethod
    def _parse(text):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return _INVALID


def find_json_path(node, keyword: str, path: str = "data"):
    """
    Path of the first string value containing keyword, or None.

    Object members are visited in document order, arrays by index.
    """
    if isinstance(node, dict):
        children = ((f'{path}["{key}"]', value) for key, value in node.items())
    elif isinstance(node, list):
        children = ((f"{path}[{i}]", value) for i, value in enumerate(node))
    else:
        return None

    for child_path, value in children:
        if isinstance(value, str) and keyword in value:
            return child_path
        found = find_json_path(value, keyword, child_path)
        if found:
            return found
    return None


# =============================================================================
# YAML
# =============================================================================

def _scalar_text(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def flatten_yaml(node, prefix: tuple = ()) -> dict:
    """Dotted path -> scalar for every leaf, in document order."""
    flat = {}
    if isinstance(node, dict):
        items = ((str(k), v) for k, v in node.items())
    elif isinstance(node, list):
        items = ((str(i), v) for i, v in enumerate(node))
    else:
        return flat

    for key, value in items:
        path = prefix + (key,)
        if isinstance(value, (dict, list)):
            flat.update(flatten_yaml(value, path))
        else:
            flat[".".join(path)] = value
    return flat


def _value_side(line: str) -> str:
    text = line.strip()
    if text.startswith("- "):
        text = text[2:]
    elif text == "-":
        text = ""
    if ":" in text:
        text = text.split(":", 1)[1].strip()
    return text.strip("'\"")


class YamlProcessor(InsightProcessor):
    label = "YAML"

    def extract_insights(self, unit, match):
        document = unit.memo("yaml.data", lambda: self._parse(unit))
        flat = unit.memo("yaml.flat", lambda: flatten_yaml(document))

        lines = unit.lines()
        index = match.line_number - 1
        raw_line = lines[index] if 0 <= index < len(lines) else match.line
        wanted = _value_side(raw_line)

        path = None
        if wanted:
            path = next((p for p, v in flat.items() if _scalar_text(v) == wanted), None)
        keyword = match.first_capture()
        if path is None and keyword:
            # flow collections and multi-value lines
            path = next((p for p, v in flat.items() if keyword in _scalar_text(v)), None)

        return {
            "yaml_path": path,
            "parent_structure": _parent_of(document, path),
        }

    @staticmethod
    def _parse(unit):
        try:
            return yaml.safe_load(source_text(unit))
        except yaml.YAMLError as e:
            logger.warning(f"{PROCESSOR} YAML parse error in {unit.identifier}: {e}")
            return {}


def _parent_of(document, path):
    if not path or "." not in path:
        return {}
    current = document
    for key in path.split(".")[:-1]:
        if isinstance(current, dict):
            current = next((v for k, v in current.items() if str(k) == key), None)
        elif isinstance(current, list) and key.isdigit():
            current = current[int(key)]
        else:
            return {}
    return current if isinstance(current, (dict, list)) else {}
