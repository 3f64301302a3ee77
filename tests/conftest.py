"""
Grepsight Test Fixtures and Configuration.

Provides:
- A default processor registry
- Unit factories for in-memory sources
- Fake document extractors for PDF / MSG / encrypted documents
- Helpers to pull single results out of grouped search output
"""

import pytest

from grepsight.tools.extractors import DocumentExtractors, ExtractedDocument, ExtractionFailure
from grepsight.tools.registry import default_registry
from grepsight.tools.scanner import search
from grepsight.tools.units import SourceUnit


@pytest.fixture
def registry():
    """Registry with every built-in processor."""
    return default_registry()


@pytest.fixture
def make_unit():
    """Factory for SourceUnits built from text."""
    def _make(text, declared_type="txt", identifier=None, **extra):
        return SourceUnit(content=text, identifier=identifier, declared_type=declared_type, extra=extra)
    return _make


@pytest.fixture
def pdf_document():
    """Two-page extracted PDF with document info."""
    pages = (
        "INTRODUCTION\nGrepsight scans files line by line.\nIt reports context.",
        "2 RESULTS\nThe scanner found matches.",
    )
    return ExtractedDocument(
        text="\n".join(pages),
        pages=pages,
        metadata={
            "title": "Scan Report",
            "author": "QA",
            "creator": None,
            "producer": "pypdf",
            "creation_date": "D:20240501100000",
            "page_count": 2,
        },
    )


@pytest.fixture
def locked_pdf():
    """Extractor that reports every PDF as encrypted."""
    calls = []

    def _extract(source, password=None):
        calls.append((source, password))
        return ExtractionFailure("encrypted", "password required", encrypted=True)

    _extract.calls = calls
    return _extract


@pytest.fixture
def fake_extractors(pdf_document):
    """DocumentExtractors whose PDF backend returns the pdf_document fixture."""
    return DocumentExtractors(pdf=lambda source, password=None: pdf_document)


# =============================================================================
# Helper functions
# =============================================================================

def only_match(groups):
    """The single Result of a one-unit, one-match search."""
    assert len(groups) == 1, f"expected one unit, got {len(groups)}"
    assert len(groups[0].matches) == 1, f"expected one match, got {len(groups[0].matches)}"
    return groups[0].matches[0]


def insights_for(unit, pattern, registry=None):
    """Plain insights dict of the first match of pattern in unit."""
    groups = search([unit], pattern, registry=registry or default_registry())
    assert groups[0].matches, f"no match for {pattern!r}"
    return groups[0].matches[0].to_dict()["match"]["insights"]
