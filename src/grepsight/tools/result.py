"""
Grepsight Results - match records and the immutable Result wrapper.

A Match is the working record the insight pipeline mutates. Once the
pipeline is done it is frozen into a Result, which copies every container so
the Result cannot change afterwards. to_dict() gives the stable,
consumer-facing shape:

    {
        "source_identifier": "config.json",
        "declared_type": "json",
        "match": {
            "line_number": 3, "line": "...",
            "context_before": "...", "context_after": None,
            "captures": [["..."]], "tags": ["contains_url"],
            "enrichment": {"capture_count": 1, "context_density": 1},
            "insights": {"json_path": 'data["url"]'}
        }
    }
"""

import copy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .errors import InputError
from .units import SourceUnit


@dataclass
class Match:
    """Mutable match record, owned by a single pipeline run."""

    line_number: int
    line: str
    context_before: Optional[str] = None
    context_after: Optional[str] = None
    captures: list[list[str]] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    insights: dict = field(default_factory=dict)
    enrichment: dict = field(default_factory=dict)

    def add_tag(self, tag: str) -> None:
        if tag not in self.tags:
            self.tags.append(tag)

    def first_capture(self) -> Optional[str]:
        """First captured string across all occurrences, or None."""
        for group in self.captures:
            for value in group:
                return value
        return None


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


class Result:
    """
    Immutable search result: a finalized match plus its source.

    Containers are exposed read-only (tuples and mapping proxies); to_dict()
    returns plain, freshly built lists and dicts.
    """

    __slots__ = (
        "_line_number", "_line", "_context_before", "_context_after",
        "_captures", "_tags", "_insights", "_enrichment",
        "_source_identifier", "_declared_type",
    )

    def __init__(self, match: Match, source_identifier: Optional[str] = None, declared_type: str = "txt"):
        set_ = object.__setattr__
        set_(self, "_line_number", match.line_number)
        set_(self, "_line", match.line)
        set_(self, "_context_before", match.context_before)
        set_(self, "_context_after", match.context_after)
        set_(self, "_captures", _freeze(copy.deepcopy(match.captures)))
        set_(self, "_tags", tuple(match.tags))
        set_(self, "_insights", _freeze(copy.deepcopy(match.insights)))
        set_(self, "_enrichment", _freeze(copy.deepcopy(match.enrichment)))
        set_(self, "_source_identifier", source_identifier)
        set_(self, "_declared_type", declared_type)

    def __setattr__(self, name, value):
        raise AttributeError("Result is immutable")

    @classmethod
    def for_unit(cls, match: Match, unit: SourceUnit) -> "Result":
        return cls(match, source_identifier=unit.identifier, declared_type=unit.declared_type)

    line_number = property(lambda self: self._line_number)
    line = property(lambda self: self._line)
    context_before = property(lambda self: self._context_before)
    context_after = property(lambda self: self._context_after)
    captures = property(lambda self: self._captures)
    tags = property(lambda self: self._tags)
    insights = property(lambda self: self._insights)
    enrichment = property(lambda self: self._enrichment)
    source_identifier = property(lambda self: self._source_identifier)
    declared_type = property(lambda self: self._declared_type)

    def to_dict(self) -> dict:
        """Serialize to a plain nested dict (see module docstring)."""
        return {
            "source_identifier": self._source_identifier,
            "declared_type": self._declared_type,
            "match": {
                "line_number": self._line_number,
                "line": self._line,
                "context_before": self._context_before,
                "context_after": self._context_after,
                "captures": _thaw(self._captures),
                "tags": list(self._tags),
                "enrichment": _thaw(self._enrichment),
                "insights": _thaw(self._insights),
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "Result":
        """Rebuild a Result from to_dict() output."""
        try:
            m = data["match"]
            match = Match(
                line_number=m["line_number"],
                line=m["line"],
                context_before=m.get("context_before"),
                context_after=m.get("context_after"),
                captures=[list(group) for group in m.get("captures", [])],
                tags=list(m.get("tags", [])),
                insights=dict(m.get("insights") or {}),
                enrichment=dict(m.get("enrichment") or {}),
            )
        except (KeyError, TypeError) as e:
            raise InputError(f"Not a serialized result: {e}") from e
        return cls(match, source_identifier=data.get("source_identifier"), declared_type=data.get("declared_type", "txt"))

    def __eq__(self, other):
        if not isinstance(other, Result):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    def __repr__(self):
        return f"Result({self._source_identifier!r}, line {self._line_number}: {self._line!r})"


@dataclass(frozen=True)
class UnitResults:
    """Matches for one source unit, in line order."""

    unit: SourceUnit
    matches: tuple = ()

    def to_dict(self) -> dict:
        return {
            "source_identifier": self.unit.identifier,
            "declared_type": self.unit.declared_type,
            "matches": [m.to_dict() for m in self.matches],
        }
