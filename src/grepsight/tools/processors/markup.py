"""
Grepsight Markup Processors - XML and HTML element locations.

The matched element is the first element (document order) whose own text
contains the first capture. Insights give its tag, an XPath, its text and
attributes, and the same for its parent. HTML additionally gets a short CSS
path that stops at the first element with an id.
"""

import io
import xml.etree.ElementTree as ET

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

from .base import InsightProcessor, ProcessorOutcome, require_keyword, source_text

# CSS paths are cut after this many selectors
MAX_CSS_DEPTH = 5


# =============================================================================
# XML
# =============================================================================

class _XmlTree:
    """Parsed XML with parent links and prefix lookup, built once per unit."""

    def __init__(self, text: str):
        self.namespaces = {}
        for _, (prefix, uri) in ET.iterparse(io.StringIO(text), events=("start-ns",)):
            key = f"xmlns:{prefix}" if prefix else "xmlns"
            self.namespaces.setdefault(key, uri)
        self.prefixes = {uri: key.partition(":")[2] for key, uri in self.namespaces.items()}

        self.root = ET.fromstring(text)
        self.parents = {child: parent for parent in self.root.iter() for child in parent}

    def name(self, tag: str) -> str:
        if tag.startswith("{"):
            uri, _, local = tag[1:].partition("}")
            prefix = self.prefixes.get(uri)
            return f"{prefix}:{local}" if prefix else local
        return tag

    def attributes(self, element) -> dict:
        return {self.name(k): v for k, v in element.attrib.items()}

    def own_text(self, element) -> str:
        return (element.text or "") + "".join(child.tail or "" for child in element)

    def xpath(self, element) -> str:
        steps = []
        current = element
        while current is not None:
            parent = self.parents.get(current)
            siblings = list(parent) if parent is not None else [current]
            same = [s for s in siblings if s.tag == current.tag]
            step = self.name(current.tag)
            if len(same) > 1:
                step = f"{step}[{same.index(current) + 1}]"
            steps.append(step)
            current = parent
        return "/" + "/".join(reversed(steps))


class XmlProcessor(InsightProcessor):
    label = "XML"

    def extract_insights(self, unit, match):
        keyword = require_keyword(match)
        try:
            tree = unit.memo("xml.tree", lambda: _XmlTree(source_text(unit)))
        except ET.ParseError as e:
            return ProcessorOutcome.failed(f"Malformed XML: {e}")

        element = next((el for el in tree.root.iter() if keyword in tree.own_text(el)), None)
        if element is None:
            return {"element_tag": None, "xpath": None, "element_text": None}

        parent = tree.parents.get(element)
        return {
            "element_tag": tree.name(element.tag),
            "xpath": tree.xpath(element),
            "element_text": "".join(element.itertext()).strip(),
            "element_attributes": tree.attributes(element),
            "parent_tag": tree.name(parent.tag) if parent is not None else None,
            "parent_attributes": tree.attributes(parent) if parent is not None else {},
            "namespaces": dict(tree.namespaces),
        }


# =============================================================================
# HTML
# =============================================================================

NON_TEXT = (Comment, Declaration, Doctype, ProcessingInstruction)


def _html_attributes(element) -> dict:
    return {k: " ".join(v) if isinstance(v, list) else v for k, v in element.attrs.items()}


def _is_element(node) -> bool:
    return node is not None and not isinstance(node, BeautifulSoup)


def html_xpath(element) -> str:
    steps = []
    current = element
    while _is_element(current):
        siblings = current.parent.find_all(current.name, recursive=False)
        step = current.name
        if len(siblings) > 1:
            step = f"{step}[{siblings.index(current) + 1}]"
        steps.append(step)
        current = current.parent
    return "/" + "/".join(reversed(steps))


def css_path(element) -> str:
    """
    Selector path like "div#main > ul.nav.top > li".

    Stops at the first ancestor with an id and keeps at most five levels.
    """
    parts = []
    current = element
    while _is_element(current):
        selector = current.name
        if current.get("id"):
            parts.insert(0, f"{selector}#{current['id']}")
            break
        classes = current.get("class") or []
        if classes:
            selector += "." + ".".join(classes)
        parts.insert(0, selector)
        current = current.parent
        if len(parts) >= MAX_CSS_DEPTH:
            break
    return " > ".join(parts)


class HtmlProcessor(InsightProcessor):
    label = "HTML"

    def extract_insights(self, unit, match):
        keyword = require_keyword(match)
        soup = unit.memo("html.soup", lambda: BeautifulSoup(source_text(unit), "html.parser"))

        texts = soup.find_all(string=lambda s: keyword in s and not isinstance(s, NON_TEXT))
        element = next((t.parent for t in texts if _is_element(t.parent)), None)
        if element is None:
            return {"element_tag": None, "css_path": None, "xpath": None}

        parent = element.parent
        has_parent = _is_element(parent)
        return {
            "element_tag": element.name,
            "css_path": css_path(element),
            "xpath": html_xpath(element),
            "element_text": element.get_text().strip(),
            "element_attributes": _html_attributes(element),
            "parent_tag": parent.name if has_parent else None,
            "parent_attributes": _html_attributes(parent) if has_parent else {},
        }
