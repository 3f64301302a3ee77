"""
Grepsight Insight Processors - base interface.

Every content type gets one processor. A processor looks at a unit and a
match and returns a ProcessorOutcome; it never mutates the match itself.
Failures are a value (ProcessorOutcome.failed) rather than an exception, so
the pipeline can apply them like any other outcome.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from ..errors import ExtractionError, ProcessorError
from ..extractors import ExtractionFailure, run_extractor
from ..logging import PROCESSOR, get_logger
from ..result import Match
from ..units import SourceUnit

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProcessorOutcome:
    """
    What a processor produced for one match.

    Attributes:
        insights: Insight dict to store on the match
        tags: Extra tags to append (never removes existing tags)
        error: Failure message, None on success
    """

    insights: dict = field(default_factory=dict)
    tags: tuple = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, insights: dict, tags: tuple = ()) -> "ProcessorOutcome":
        return cls(insights=dict(insights), tags=tuple(tags))

    @classmethod
    def failed(cls, message: str, **details) -> "ProcessorOutcome":
        return cls(insights={"error": message, **details}, error=message)

    def apply(self, match: Match) -> Match:
        match.insights = dict(self.insights)
        for tag in self.tags:
            match.add_tag(tag)
        return match


class InsightProcessor(ABC):
    """
    Base class for content-type processors.

    Subclasses implement extract_insights() and may raise freely:
    analyze() turns ExtractionError into the structured
    {encrypted, decryptable, error, reason} insight and anything else into
    "<label> processing error: <detail>".
    """

    label = "Generic"

    def analyze(self, unit: SourceUnit, match: Match) -> ProcessorOutcome:
        try:
            result = self.extract_insights(unit, match)
        except ExtractionError as e:
            logger.warning(f"{PROCESSOR} {self.label} extraction failed for {unit.identifier}: {e}")
            return extraction_failure(e)
        except Exception as e:
            logger.warning(f"{PROCESSOR} {self.label} failed for {unit.identifier}: {e}")
            return ProcessorOutcome.failed(f"{self.label} processing error: {e}")

        if isinstance(result, ProcessorOutcome):
            return result
        return ProcessorOutcome.success(result)

    @abstractmethod
    def extract_insights(self, unit: SourceUnit, match: Match):
        """
        Compute insights for one match.

        Returns:
            Insight dict, or a ProcessorOutcome for outcomes carrying tags
            or a format-specific error message
        """


class NullProcessor(InsightProcessor):
    """Identity fallback for plain text and unregistered types."""

    label = "Text"

    def extract_insights(self, unit, match):
        return {}


def extraction_failure(error: ExtractionError) -> ProcessorOutcome:
    """Structured insight for a document that could not be extracted."""
    return ProcessorOutcome.failed(
        str(error),
        encrypted=error.encrypted,
        decryptable=False,
        reason=error.reason,
    )


def source_text(unit: SourceUnit) -> str:
    """
    Unit content as text, reading extra["path"] when no content was given.
    """
    if unit.content is not None:
        return unit.text()
    if unit.path:
        def read():
            with open(unit.path, encoding="utf-8", errors="replace") as f:
                return f.read()
        return unit.memo("source_text", read)
    raise ProcessorError("unit has neither content nor path")


def require_keyword(match: Match) -> str:
    keyword = match.first_capture()
    if keyword is None:
        raise ProcessorError("match has no captures")
    return keyword


def load_document(unit: SourceUnit, extractor):
    """
    Extracted document for a unit, extracted at most once per unit.

    Uses extra["document"] when the loader already extracted the file,
    otherwise runs the extractor on extra["path"] or the unit's raw bytes.

    Raises:
        ExtractionError: The document could not be extracted
    """
    document = unit.extra.get("document")
    if document is None:
        source = unit.path or (unit.content if isinstance(unit.content, bytes) else None)
        if source is None:
            raise ExtractionError("unreadable", "no document path or bytes")
        document = unit.memo(
            "document", lambda: run_extractor(extractor, source, unit.extra.get("password"))
        )
    if isinstance(document, ExtractionFailure):
        raise document.to_error()
    return document
