"""
Grepsight Insight Pipeline - four fixed stages applied to every raw match.

    1. normalize  strip whitespace from the line and every capture
    2. annotate   generic tags (contains_number, contains_url, contains_email)
    3. dispatch   format-specific insights from the unit's processor
    4. enrich     capture_count and context_density

Only dispatch may do I/O or fail; a failure there becomes an
{"error": ...} insight and the match continues through enrich.
"""

import re

from .logging import PIPELINE, get_logger
from .processors.base import ProcessorOutcome
from .result import Match, Result
from .units import SourceUnit

logger = get_logger(__name__)

DIGIT_RE = re.compile(r"\d")
URL_RE = re.compile(r"https?://")
EMAIL_RE = re.compile(r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b", re.IGNORECASE)
WORD_RE = re.compile(r"\w")

# (tag, predicate) in the order tags are appended
GENERIC_TAGS = (
    ("contains_number", DIGIT_RE),
    ("contains_url", URL_RE),
    ("contains_email", EMAIL_RE),
)


def normalize(match: Match) -> Match:
    match.line = match.line.strip()
    match.captures = [[value.strip() for value in group] for group in match.captures]
    return match


def annotate(match: Match) -> Match:
    for tag, regex in GENERIC_TAGS:
        if regex.search(match.line):
            match.add_tag(tag)
    return match


def dispatch(unit: SourceUnit, match: Match, registry) -> Match:
    processor = registry.get(unit.declared_type)
    try:
        outcome = processor.analyze(unit, match)
        if not isinstance(outcome, ProcessorOutcome):
            raise TypeError(f"{type(processor).__name__}.analyze returned {type(outcome).__name__}")
    except Exception as e:
        label = getattr(processor, "label", type(processor).__name__)
        logger.warning(f"{PIPELINE} processor {label} raised on line {match.line_number}: {e}")
        outcome = ProcessorOutcome.failed(f"{label} processing error: {e}")
    return outcome.apply(match)


def enrich(match: Match) -> Match:
    context = [c for c in (match.context_before, match.context_after) if c is not None]
    match.enrichment = {
        "capture_count": sum(len(group) for group in match.captures),
        "context_density": sum(1 for c in context if WORD_RE.search(c)),
    }
    return match


def run(unit: SourceUnit, match: Match, registry) -> Result:
    """
    Run all four stages on a raw match and freeze it into a Result.

    Args:
        unit: Unit the match came from
        match: Raw match (consumed, do not reuse)
        registry: ProcessorRegistry used by the dispatch stage

    Returns:
        Immutable Result
    """
    match = normalize(match)
    match = annotate(match)
    logger.debug(f"{PIPELINE} line {match.line_number} tags {match.tags}")
    match = dispatch(unit, match, registry)
    match = enrich(match)
    logger.debug(f"{PIPELINE} line {match.line_number} enrichment {match.enrichment}")
    return Result.for_unit(match, unit)
