"""
Grepsight Result Filter - narrow down search results after the fact.

    filter_results(results, keyword="TODO", tags=["contains_url"])

A match is kept when every given criterion holds. Units left without
matches are dropped; otherwise grouping and order are unchanged.
"""

import re
from dataclasses import dataclass, fields, replace
from typing import Iterable, Optional

from .errors import InputError, PatternError
from .logging import FILTER, get_logger
from .result import Result, UnitResults

logger = get_logger(__name__)


@dataclass(frozen=True)
class FilterCriteria:
    """
    Attributes:
        keyword: Substring required in the line or a context line
        tags: Tags that must all be present
        min_context_density: Minimum enrichment["context_density"]
        exclude_patterns: Regexes (strings or compiled); a match on the
            line or a context line drops the result
        allowed_types: Declared types whose units are kept
    """

    keyword: Optional[str] = None
    tags: Optional[tuple] = None
    min_context_density: Optional[int] = None
    exclude_patterns: Optional[tuple] = None
    allowed_types: Optional[tuple] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


def _compile_excludes(patterns) -> list[re.Pattern]:
    compiled = []
    for pattern in patterns or ():
        if isinstance(pattern, re.Pattern):
            compiled.append(pattern)
            continue
        try:
            compiled.append(re.compile(pattern))
        except (re.error, TypeError) as e:
            raise PatternError(pattern, str(e)) from e
    return compiled


def _texts(result: Result):
    return [t for t in (result.line, result.context_before, result.context_after) if t is not None]


def keep(result: Result, criteria: FilterCriteria, excludes: list[re.Pattern]) -> bool:
    texts = _texts(result)
    if criteria.keyword is not None and not any(criteria.keyword in t for t in texts):
        return False
    if criteria.tags is not None and not all(tag in result.tags for tag in criteria.tags):
        return False
    if criteria.min_context_density is not None:
        if result.enrichment.get("context_density", 0) < criteria.min_context_density:
            return False
    if any(p.search(t) for p in excludes for t in texts):
        return False
    return True


def filter_results(
    results: Iterable[UnitResults],
    criteria: Optional[FilterCriteria] = None,
    **kwargs,
) -> list[UnitResults]:
    """
    Filter grouped results.

    Args:
        results: Output of search() or search_fuzzy()
        criteria: FilterCriteria; keyword arguments with the same names
            override its fields

    Returns:
        Filtered UnitResults, units without surviving matches removed

    Raises:
        PatternError: An exclude pattern does not compile
        InputError: Unknown criteria names
    """
    criteria = criteria or FilterCriteria()
    if kwargs:
        known = {f.name for f in fields(FilterCriteria)}
        unknown = set(kwargs) - known
        if unknown:
            raise InputError(f"Unknown filter criteria: {sorted(unknown)}")
        values = {k: tuple(v) if isinstance(v, list) else v for k, v in kwargs.items()}
        criteria = replace(criteria, **values)

    results = list(results)
    if criteria.is_empty():
        return results

    excludes = _compile_excludes(criteria.exclude_patterns)
    allowed = {t.lower() for t in criteria.allowed_types} if criteria.allowed_types is not None else None

    filtered = []
    for group in results:
        if allowed is not None and group.unit.declared_type not in allowed:
            continue
        matches = tuple(r for r in group.matches if keep(r, criteria, excludes))
        if matches:
            filtered.append(UnitResults(group.unit, matches))

    kept = sum(len(g.matches) for g in filtered)
    logger.debug(f"{FILTER} kept {kept} matches in {len(filtered)} of {len(results)} units")
    return filtered
