"""
Grepsight Context Window - surrounding lines for a matched line.

extract() is the contract results are built with: the single nearest line
before and after the match, or None at either end of the sequence. The
window size is validated but does not widen that pair. surrounding() gives
real N-line windows for callers that want a snippet (code processors).
"""

from typing import Optional, Sequence

from .errors import InputError


def _check(lines: Sequence[str], index: int, window_size: int) -> None:
    if isinstance(window_size, bool) or not isinstance(window_size, int) or window_size < 0:
        raise InputError(f"window_size must be a non-negative integer, got {window_size!r}")
    if not 0 <= index < len(lines):
        raise InputError(f"index {index} outside of {len(lines)} lines")


def extract(lines: Sequence[str], index: int, window_size: int = 1) -> tuple[Optional[str], Optional[str]]:
    """
    Nearest context line on each side of lines[index].

    Args:
        lines: Line sequence (not modified)
        index: 0-based index of the matched line
        window_size: Requested window, validated only

    Returns:
        (before, after), each None at a sequence boundary
    """
    _check(lines, index, window_size)
    before = lines[index - 1] if index > 0 else None
    after = lines[index + 1] if index + 1 < len(lines) else None
    return before, after


def surrounding(lines: Sequence[str], index: int, window_size: int = 1) -> tuple[list[str], list[str]]:
    """
    Up to window_size lines on each side of lines[index], in document order.

    Returns:
        (lines_before, lines_after)
    """
    _check(lines, index, window_size)
    start = max(0, index - window_size)
    return list(lines[start:index]), list(lines[index + 1:index + 1 + window_size])


class ContextWindow:
    """
    Cursor over a line sequence exposing before/after for the current line.

    Used by the fuzzy matcher, which walks every line of a text.
    """

    def __init__(self, lines: Sequence[str], window_size: int = 1):
        self._lines = lines
        self._window_size = window_size
        self.before: Optional[str] = None
        self.after: Optional[str] = None

    def move_to(self, index: int) -> None:
        self.before, self.after = extract(self._lines, index, self._window_size)
