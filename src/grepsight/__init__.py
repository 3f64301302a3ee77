"""
Grepsight - regex and fuzzy search with format-aware match insights.

    from grepsight import search, unit_from_text

    results = search([unit_from_text('{"users": [{"name": "Ruby"}]}', "json")], r"(Ruby)")
    results[0].matches[0].insights["json_path"]   # 'data["users"][0]["name"]'
"""

from grepsight.tools.config import CancelToken, SearchOptions
from grepsight.tools.detector import detect
from grepsight.tools.errors import (
    ExtractionError,
    GrepsightError,
    InputError,
    PatternError,
    ProcessorError,
    SearchCancelled,
)
from grepsight.tools.fileutil import load_units
from grepsight.tools.filters import FilterCriteria, filter_results
from grepsight.tools.fuzzy import FuzzyMatcher, levenshtein, search_fuzzy
from grepsight.tools.registry import ProcessorRegistry, default_registry
from grepsight.tools.result import Match, Result, UnitResults
from grepsight.tools.scanner import search
from grepsight.tools.units import SourceUnit, unit_from_text

__version__ = "1.0.0"

__all__ = [
    "CancelToken",
    "ExtractionError",
    "FilterCriteria",
    "FuzzyMatcher",
    "GrepsightError",
    "InputError",
    "Match",
    "PatternError",
    "ProcessorError",
    "ProcessorRegistry",
    "Result",
    "SearchCancelled",
    "SearchOptions",
    "SourceUnit",
    "UnitResults",
    "default_registry",
    "detect",
    "filter_results",
    "levenshtein",
    "load_units",
    "search",
    "search_fuzzy",
    "unit_from_text",
]
