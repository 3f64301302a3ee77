"""
Grepsight Errors - Exception taxonomy for search invocations.

Only InputError, PatternError and SearchCancelled abort an invocation.
ExtractionError and ProcessorError are raised inside insight processors and
always end up as structured insights on the affected match.
"""


class GrepsightError(Exception):
    """Base class for every error raised by grepsight."""


class InputError(GrepsightError, ValueError):
    """Malformed or missing input (wrong unit shape, bad option values)."""


class PatternError(GrepsightError, ValueError):
    """Invalid search expression."""

    def __init__(self, pattern, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")


class ExtractionError(GrepsightError):
    """A document extractor could not produce content."""

    def __init__(self, reason: str, detail: str = "", encrypted: bool = False):
        self.reason = reason
        self.detail = detail
        self.encrypted = encrypted
        super().__init__(f"{reason}: {detail}" if detail else reason)


class ProcessorError(GrepsightError):
    """An insight processor failed internally."""


class SearchCancelled(GrepsightError):
    """The invocation was cancelled or ran past its deadline."""
