"""
Grepsight Source Units - what a search runs over.

A SourceUnit is one file or string submitted for scanning, carrying its
content and the declared type picked by the type detector. Units are frozen;
the only mutable part is the private memo table, which holds values derived
from the (immutable) content so processors can build per-unit tables once.
"""

import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Union

from .errors import InputError

DEFAULT_TYPE = "txt"


def split_lines(text: str) -> list[str]:
    """
    Split text into lines the way the scanner numbers them.

    Splits on "\\n" only, drops a trailing "\\r" from each line and does not
    produce an empty last line for text ending in a newline.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


@dataclass(frozen=True, eq=False)
class SourceUnit:
    """
    One file or string to scan.

    Attributes:
        content: Text or raw bytes (bytes are decoded as UTF-8 with replacement)
        identifier: Path or label for reporting (None for anonymous strings)
        declared_type: Content-type tag selecting the insight processor
        extra: Extra metadata, e.g. "path" and "password" for documents
    """

    content: Union[str, bytes, None]
    identifier: Optional[str] = None
    declared_type: str = DEFAULT_TYPE
    extra: Mapping[str, Any] = field(default_factory=dict)
    _memo: dict = field(default_factory=dict, init=False, repr=False, compare=False)
    _memo_lock: Any = field(default_factory=threading.RLock, init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.content is not None and not isinstance(self.content, (str, bytes)):
            raise InputError(f"content must be str or bytes, got {type(self.content).__name__}")
        if not isinstance(self.declared_type, str) or not self.declared_type:
            raise InputError("declared_type must be a non-empty string")
        object.__setattr__(self, "declared_type", self.declared_type.lower())
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra or {})))

    @property
    def path(self) -> Optional[str]:
        """Filesystem path of the original document, if known."""
        return self.extra.get("path")

    def text(self) -> str:
        """Content as text."""
        if self.content is None:
            return ""
        if isinstance(self.content, bytes):
            return self.memo("text", lambda: self.content.decode("utf-8", errors="replace"))
        return self.content

    def lines(self) -> list[str]:
        """Content split into lines (see split_lines). Do not mutate."""
        return self.memo("lines", lambda: split_lines(self.text()))

    def memo(self, key: str, factory: Callable[[], Any]) -> Any:
        """
        Return a per-unit cached value, building it on first use.

        Used for tables that depend only on the unit's content (comment
        state per line, parsed documents, extractor output) so they are
        computed once per unit instead of once per match.

        Args:
            key: Cache key, namespaced by the caller (e.g. "python.docstring")
            factory: Zero-argument callable producing the value

        Returns:
            The cached value
        """
        with self._memo_lock:
            if key not in self._memo:
                self._memo[key] = factory()
            return self._memo[key]


def unit_from_text(text: str, declared_type: str = DEFAULT_TYPE, identifier: Optional[str] = None) -> SourceUnit:
    """Wrap an in-memory string as a SourceUnit."""
    if not isinstance(text, str):
        raise InputError(f"Input must be a string, got {type(text).__name__}")
    return SourceUnit(content=text, identifier=identifier, declared_type=declared_type)
