"""
Grepsight Configuration - search options and cancellation.

SearchOptions is immutable per invocation. Defaults can be overridden from
the environment (GREPSIGHT_* variables) and explicit keyword arguments win
over both.
"""

import os
import threading
import time
from dataclasses import dataclass, fields
from typing import Optional

from .errors import InputError, SearchCancelled

ENV_PREFIX = "GREPSIGHT_"

# Upper bound for a single source read by the unit loader
MAX_SOURCE_SIZE = 50 * 1024 * 1024  # 50 MB


@dataclass(frozen=True)
class SearchOptions:
    """
    Options for one search invocation.

    Attributes:
        context_lines: Requested context window (>= 0). Context lines on
            results are always the single nearest line, see ContextWindow.
        stop_at_first_match: Stop each unit after its first match
        max_edit_distance: Largest edit distance accepted by fuzzy search
        workers: Number of units scanned concurrently (1 = sequential)
        deadline: Seconds allowed for the whole invocation (None = no limit)
        ignore_case: Compile string patterns with re.IGNORECASE
    """

    context_lines: int = 1
    stop_at_first_match: bool = False
    max_edit_distance: int = 2
    workers: int = 1
    deadline: Optional[float] = None
    ignore_case: bool = False

    def __post_init__(self):
        for name in ("context_lines", "max_edit_distance", "workers"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InputError(f"{name} must be an integer, got {type(value).__name__}")
        if self.context_lines < 0:
            raise InputError("context_lines must be >= 0")
        if self.max_edit_distance < 0:
            raise InputError("max_edit_distance must be >= 0")
        if self.workers < 1:
            raise InputError("workers must be >= 1")
        if self.deadline is not None and self.deadline <= 0:
            raise InputError("deadline must be a positive number of seconds")

    @classmethod
    def from_env(cls, **overrides) -> "SearchOptions":
        """
        Build options from GREPSIGHT_* environment variables.

        Recognized: GREPSIGHT_CONTEXT_LINES, GREPSIGHT_STOP_AT_FIRST,
        GREPSIGHT_MAX_EDIT_DISTANCE, GREPSIGHT_WORKERS, GREPSIGHT_DEADLINE,
        GREPSIGHT_IGNORE_CASE.

        Args:
            **overrides: Explicit values, applied after the environment

        Returns:
            Validated SearchOptions
        """
        values = {}

        if raw := os.getenv(f"{ENV_PREFIX}CONTEXT_LINES"):
            values["context_lines"] = _parse_int("CONTEXT_LINES", raw)
        if raw := os.getenv(f"{ENV_PREFIX}STOP_AT_FIRST"):
            values["stop_at_first_match"] = _parse_bool(raw)
        if raw := os.getenv(f"{ENV_PREFIX}MAX_EDIT_DISTANCE"):
            values["max_edit_distance"] = _parse_int("MAX_EDIT_DISTANCE", raw)
        if raw := os.getenv(f"{ENV_PREFIX}WORKERS"):
            values["workers"] = _parse_int("WORKERS", raw)
        if raw := os.getenv(f"{ENV_PREFIX}DEADLINE"):
            try:
                values["deadline"] = float(raw)
            except ValueError:
                raise InputError(f"{ENV_PREFIX}DEADLINE must be a number, got {raw!r}") from None
        if raw := os.getenv(f"{ENV_PREFIX}IGNORE_CASE"):
            values["ignore_case"] = _parse_bool(raw)

        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise InputError(f"Unknown search options: {sorted(unknown)}")

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise InputError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class CancelToken:
    """
    Cooperative cancellation shared by the units of one invocation.

    The scanner calls raise_if_cancelled() between units and between lines.
    A token fires either when cancel() is called or once its deadline passes.
    """

    def __init__(self, deadline: Optional[float] = None):
        self._event = threading.Event()
        self._expires_at = time.monotonic() + deadline if deadline else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._expires_at is not None and time.monotonic() >= self._expires_at:
            self._event.set()
            return True
        return False

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise SearchCancelled("Search cancelled or deadline exceeded")
