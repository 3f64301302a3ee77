"""
Grepsight Fuzzy Search - approximate word matching with edit distance.

Each line is split into words; words shorter than three characters are
ignored. A word equal to or containing the pattern scores distance 0,
anything else is scored with the Levenshtein distance. A word is accepted
when its distance is within max_edit_distance, within half the length of
the shorter of word and pattern, and the lengths differ by at most
max_edit_distance. Only the best word per line (lowest distance, then
leftmost) becomes a result.

Results carry tags ["fuzzy_match"], captures [[word]], no insights, and
enrichment {edit_distance, match_position, similarity}. similarity is
thefuzz's ratio (0-100) between the lowercased word and pattern.
"""

import re
from dataclasses import dataclass
from typing import Optional

from thefuzz import fuzz

from .config import CancelToken
from .context_window import ContextWindow
from .errors import InputError
from .logging import FUZZY, get_logger
from .result import Match, Result, UnitResults
from .units import SourceUnit, split_lines

logger = get_logger(__name__)

WORD_RE = re.compile(r"\w+")
MIN_WORD_LENGTH = 3


def levenshtein(a: str, b: str) -> int:
    """Edit distance with unit cost insertions, deletions and substitutions."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,              # deletion
                current[j - 1] + 1,           # insertion
                previous[j - 1] + (ca != cb), # substitution
            ))
        previous = current
    return previous[-1]


@dataclass(frozen=True)
class FuzzyCandidate:
    word: str
    distance: int
    position: int


class FuzzyMatcher:
    """
    Fuzzy matcher for one pattern.

    Args:
        pattern: Word to look for (compared lowercased)
        max_edit_distance: Largest accepted edit distance
    """

    def __init__(self, pattern: str, max_edit_distance: int = 2):
        if not isinstance(pattern, str) or not pattern.strip():
            raise InputError("Fuzzy pattern must be a non-empty string")
        if isinstance(max_edit_distance, bool) or not isinstance(max_edit_distance, int) or max_edit_distance < 0:
            raise InputError("max_edit_distance must be a non-negative integer")
        self.pattern = pattern.strip().lower()
        self.max_edit_distance = max_edit_distance

    def score(self, word: str) -> Optional[int]:
        """Distance of word to the pattern, or None when the word is rejected."""
        lowered = word.lower()
        if self.pattern in lowered:
            return 0
        if abs(len(word) - len(self.pattern)) > self.max_edit_distance:
            return None
        distance = levenshtein(lowered, self.pattern)
        if distance > self.max_edit_distance:
            return None
        if distance > min(len(word), len(self.pattern)) // 2:
            return None
        return distance

    def best_candidate(self, line: str) -> Optional[FuzzyCandidate]:
        best = None
        for found in WORD_RE.finditer(line):
            word = found.group(0)
            if len(word) < MIN_WORD_LENGTH:
                continue
            distance = self.score(word)
            if distance is None:
                continue
            if best is None or distance < best.distance:
                best = FuzzyCandidate(word, distance, found.start())
        return best

    def search_text(self, text: str, context_lines: int = 1, unit: Optional[SourceUnit] = None) -> list[Result]:
        """
        Fuzzy-search every line of text.

        Args:
            text: Text to search
            context_lines: Context window size (see context_window.extract)
            unit: Unit the text belongs to, used for the result's source

        Returns:
            One Result per line that has an accepted word
        """
        if not isinstance(text, str):
            raise InputError(f"Input must be a string, got {type(text).__name__}")
        lines = split_lines(text)
        window = ContextWindow(lines, context_lines)
        results = []

        for index, line in enumerate(lines):
            candidate = self.best_candidate(line)
            if candidate is None:
                continue
            window.move_to(index)
            match = Match(
                line_number=index + 1,
                line=line,
                context_before=window.before,
                context_after=window.after,
                captures=[[candidate.word]],
                tags=["fuzzy_match"],
                insights={},
                enrichment={
                    "edit_distance": candidate.distance,
                    "match_position": candidate.position,
                    "similarity": fuzz.ratio(candidate.word.lower(), self.pattern),
                },
            )
            if unit is not None:
                results.append(Result.for_unit(match, unit))
            else:
                results.append(Result(match))

        logger.debug(f"{FUZZY} {self.pattern!r}: {len(results)} lines matched")
        return results


def search_fuzzy(
    units,
    pattern: str,
    max_edit_distance: int = 2,
    context_lines: int = 1,
    token: Optional[CancelToken] = None,
) -> list[UnitResults]:
    """
    Fuzzy search across source units.

    Returns:
        One UnitResults per unit, in input order

    Raises:
        InputError: Empty pattern, bad distance or malformed units
        SearchCancelled: Token cancelled or deadline passed
    """
    matcher = FuzzyMatcher(pattern, max_edit_distance)
    if isinstance(units, SourceUnit):
        units = [units]
    grouped = []
    for position, unit in enumerate(units):
        if not isinstance(unit, SourceUnit):
            raise InputError(f"units[{position}] is {type(unit).__name__}, expected SourceUnit")
        if token is not None:
            token.raise_if_cancelled()
        grouped.append(UnitResults(unit, tuple(matcher.search_text(unit.text(), context_lines, unit))))
    return grouped
