"""
Grepsight Processor Registry - maps declared types to insight processors.

The registry is a plain object handed to the scanner, never a module global,
so tests and callers can override a single type for one invocation:

    registry = default_registry().copy()
    registry.register("json", MyJsonProcessor())
    search(units, pattern, registry=registry)
"""

from typing import Iterable, Optional

from .errors import InputError
from .extractors import DocumentExtractors
from .processors.base import NullProcessor
from .processors.code import JavaScriptProcessor, PythonProcessor, RubyProcessor
from .processors.css import CssProcessor
from .processors.documents import MsgProcessor, PdfProcessor, RtfProcessor, WordProcessor
from .processors.markdown import MarkdownProcessor
from .processors.markup import HtmlProcessor, XmlProcessor
from .processors.structured import JsonProcessor, YamlProcessor
from .processors.tabular import CsvProcessor, SpreadsheetProcessor


class ProcessorRegistry:
    """Declared type -> processor lookup with an identity fallback."""

    def __init__(self, processors: Optional[dict] = None, fallback=None):
        self._processors = {}
        self._fallback = fallback or NullProcessor()
        for declared_type, processor in (processors or {}).items():
            self.register(declared_type, processor)

    def register(self, declared_type: str, processor) -> None:
        if not callable(getattr(processor, "analyze", None)):
            raise InputError(f"Processor for {declared_type!r} has no analyze(unit, match) method")
        self._processors[declared_type.lower()] = processor

    def register_many(self, declared_types: Iterable[str], processor) -> None:
        for declared_type in declared_types:
            self.register(declared_type, processor)

    def unregister(self, declared_type: str) -> None:
        self._processors.pop(declared_type.lower(), None)

    def get(self, declared_type: Optional[str]):
        if not declared_type:
            return self._fallback
        return self._processors.get(declared_type.lower(), self._fallback)

    def types(self) -> list[str]:
        return sorted(self._processors)

    def copy(self) -> "ProcessorRegistry":
        return ProcessorRegistry(dict(self._processors), fallback=self._fallback)

    def __contains__(self, declared_type: str) -> bool:
        return declared_type.lower() in self._processors

    def __len__(self) -> int:
        return len(self._processors)


def default_registry(extractors=None) -> ProcessorRegistry:
    """
    Registry with every built-in processor.

    Args:
        extractors: Optional DocumentExtractors used by the document
            processors (defaults to the real pypdf/python-docx/... backed set)

    Returns:
        A new ProcessorRegistry
    """
    extractors = extractors or DocumentExtractors()

    registry = ProcessorRegistry()
    registry.register("txt", NullProcessor())
    registry.register("json", JsonProcessor())
    registry.register_many(("yaml", "yml"), YamlProcessor())
    registry.register("csv", CsvProcessor())
    registry.register("xml", XmlProcessor())
    registry.register_many(("html", "htm"), HtmlProcessor())
    registry.register_many(("xlsx", "xlsm", "spreadsheet"), SpreadsheetProcessor(extractors.spreadsheet))
    registry.register_many(("md", "markdown"), MarkdownProcessor())
    registry.register_many(("rb", "ruby"), RubyProcessor())
    registry.register_many(("py", "python"), PythonProcessor())
    registry.register_many(
        ("js", "jsx", "ts", "tsx", "javascript", "typescript"), JavaScriptProcessor()
    )
    registry.register("css", CssProcessor())
    registry.register("pdf", PdfProcessor(extractors.pdf))
    registry.register_many(("docx", "word"), WordProcessor(extractors.word))
    registry.register("rtf", RtfProcessor(extractors.rtf))
    registry.register("msg", MsgProcessor(extractors.msg))
    return registry
