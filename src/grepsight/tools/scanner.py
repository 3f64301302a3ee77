"""
Grepsight Scanner - regex search over source units.

Every line of every unit is tested against the pattern; each matching line
becomes a Match with its nearest context lines and all capture groups, is
run through the insight pipeline and comes back as an immutable Result.

    from grepsight.tools.scanner import search
    results = search([unit_from_text("hello world\\nruby is awesome\\n")], r"ruby")
    results[0].matches[0].line_number   # 2

Output has one UnitResults per input unit, in input order; matches keep
line order. A pattern is compiled once, before any unit is touched.
"""

import re
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional, Union

from . import pipeline
from .config import CancelToken, SearchOptions
from .context_window import extract
from .errors import InputError, PatternError
from .logging import SCAN, get_logger
from .registry import ProcessorRegistry, default_registry
from .result import Match, Result, UnitResults
from .units import SourceUnit

logger = get_logger(__name__)

Pattern = Union[str, re.Pattern]


def compile_pattern(pattern: Pattern, ignore_case: bool = False) -> re.Pattern:
    """
    Compile a search expression.

    Raises:
        InputError: pattern is neither a string nor a compiled regex
        PatternError: pattern does not compile
    """
    if isinstance(pattern, re.Pattern):
        return pattern
    if not isinstance(pattern, str):
        raise InputError(f"Pattern must be a string or compiled regex, got {type(pattern).__name__}")
    try:
        return re.compile(pattern, re.IGNORECASE if ignore_case else 0)
    except re.error as e:
        raise PatternError(pattern, str(e)) from e


def captures_for(regex: re.Pattern, line: str) -> list[list[str]]:
    """
    All occurrences of regex in line.

    One entry per occurrence: its groups (unmatched groups as "") when the
    pattern has groups, otherwise the whole match.
    """
    if regex.groups:
        return [[g if g is not None else "" for g in m.groups()] for m in regex.finditer(line)]
    return [[m.group(0)] for m in regex.finditer(line)]


def scan_unit(
    unit: SourceUnit,
    regex: re.Pattern,
    options: SearchOptions,
    registry: ProcessorRegistry,
    token: Optional[CancelToken] = None,
) -> UnitResults:
    """
    Search one unit.

    Args:
        unit: Unit to scan
        regex: Compiled pattern
        options: Search options (context_lines, stop_at_first_match)
        registry: Processor registry for the dispatch stage
        token: Cancellation token checked between lines

    Returns:
        UnitResults for the unit
    """
    lines = unit.lines()
    results: list[Result] = []

    for index, line in enumerate(lines):
        if token is not None:
            token.raise_if_cancelled()
        if not regex.search(line):
            continue

        before, after = extract(lines, index, options.context_lines)
        match = Match(
            line_number=index + 1,
            line=line.rstrip("\r\n"),
            context_before=before,
            context_after=after,
            captures=captures_for(regex, line),
        )
        results.append(pipeline.run(unit, match, registry))

        if options.stop_at_first_match:
            break

    logger.debug(f"{SCAN} {unit.identifier or '<text>'}: {len(results)} matches in {len(lines)} lines")
    return UnitResults(unit=unit, matches=tuple(results))


def _check_units(units) -> list[SourceUnit]:
    if isinstance(units, SourceUnit):
        return [units]
    if isinstance(units, (str, bytes)) or not isinstance(units, Iterable):
        raise InputError("units must be a SourceUnit or an iterable of SourceUnit")
    units = list(units)
    for position, unit in enumerate(units):
        if not isinstance(unit, SourceUnit):
            raise InputError(f"units[{position}] is {type(unit).__name__}, expected SourceUnit")
    return units


def search(
    units,
    pattern: Pattern,
    options: Optional[SearchOptions] = None,
    registry: Optional[ProcessorRegistry] = None,
    token: Optional[CancelToken] = None,
) -> list[UnitResults]:
    """
    Regex search with insights across source units.

    Args:
        units: SourceUnit or iterable of SourceUnit
        pattern: Regex string or compiled pattern
        options: SearchOptions (defaults when None)
        registry: Processor registry (default_registry() when None)
        token: Cancellation token (one is created from options.deadline
            when None)

    Returns:
        One UnitResults per unit, in input order

    Raises:
        InputError: Malformed units or pattern type
        PatternError: Pattern does not compile
        SearchCancelled: Token cancelled or deadline passed
    """
    options = options or SearchOptions()
    regex = compile_pattern(pattern, options.ignore_case)
    units = _check_units(units)
    registry = registry if registry is not None else default_registry()
    token = token or CancelToken(options.deadline)

    logger.debug(f"{SCAN} pattern {regex.pattern!r} over {len(units)} units, workers={options.workers}")

    def run(unit: SourceUnit) -> UnitResults:
        token.raise_if_cancelled()
        return scan_unit(unit, regex, options, registry, token)

    if options.workers == 1 or len(units) < 2:
        return [run(unit) for unit in units]

    with ThreadPoolExecutor(max_workers=options.workers) as executor:
        futures = [executor.submit(run, unit) for unit in units]
        try:
            return [future.result() for future in futures]
        except BaseException:
            token.cancel()
            raise
