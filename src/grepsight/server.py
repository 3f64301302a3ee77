#!/usr/bin/env python3
"""
Grepsight MCP Server - grep with context and understanding

A Model Context Protocol server exposing regex and fuzzy search over files.
Every match comes back with its surrounding lines and format-aware
insights: the JSON path of a value, the CSV column of a cell, the function
enclosing a line of code, the PDF page of a sentence.

Tools:
- grepsight_search: regex search with insights and filters
- grepsight_fuzzy: typo-tolerant word search
- grepsight_search_text: regex search over a pasted string
- grepsight_types: supported declared types

Usage:
    python -m grepsight.server            # Run with stdio (for Claude Code)
    python -m grepsight.server --http     # Run with HTTP (for testing)

Environment:
    GREPSIGHT_ROOT       Only paths under this directory may be searched
    GREPSIGHT_LOG_LEVEL  Log level (default WARNING, logs go to stderr)
    GREPSIGHT_*          Search defaults, see SearchOptions.from_env()
"""

import json
import os
import sys

from mcp.server.fastmcp import FastMCP

from grepsight.tools.config import SearchOptions
from grepsight.tools.errors import GrepsightError
from grepsight.tools.fileutil import load_units
from grepsight.tools.filters import filter_results
from grepsight.tools.fuzzy import search_fuzzy
from grepsight.tools.logging import SERVER, configure_logging, get_logger
from grepsight.tools.registry import default_registry
from grepsight.tools.scanner import search
from grepsight.tools.units import unit_from_text

logger = get_logger(__name__)

# Initialize the MCP server
mcp = FastMCP("Grepsight Server")

REGISTRY = default_registry()


def _split(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()] if value else []


def _root():
    return os.getenv("GREPSIGHT_ROOT") or None


def format_results(groups, pattern: str, limit: int) -> str:
    """Render grouped results as text, at most limit matches."""
    groups = [g for g in groups if g.matches]
    total = sum(len(g.matches) for g in groups)
    if total == 0:
        return f"No matches for '{pattern}'."

    shown = 0
    output = [f"Found {total} matches in {len(groups)} sources for '{pattern}':"]
    for group in groups:
        if shown >= limit:
            break
        source = group.unit.identifier or "<text>"
        output.append(f"\n== {source} ({group.unit.declared_type})")
        for result in group.matches:
            if shown >= limit:
                break
            shown += 1
            tags_str = f" [{', '.join(result.tags)}]" if result.tags else ""
            output.append(f"{result.line_number}:{tags_str} {result.line}")
            data = result.to_dict()["match"]
            if data["insights"]:
                output.append(f"   insights: {json.dumps(data['insights'], default=str, ensure_ascii=False)}")
            output.append(f"   enrichment: {json.dumps(data['enrichment'], default=str)}")

    if shown < total:
        output.append(f"\n... {total - shown} more matches not shown (raise limit)")
    return "\n".join(output)


# =============================================================================
# SEARCH TOOLS
# =============================================================================

@mcp.tool()
def grepsight_search(
    pattern: str,
    paths: str,
    context_lines: int = 1,
    stop_at_first_match: bool = False,
    keyword: str = "",
    tags: str = "",
    exclude: str = "",
    types: str = "",
    limit: int = 50
) -> str:
    """
    Search files with a regular expression and explain each match.

    Each match includes its line number, the nearest line before and after,
    generic tags (contains_number, contains_url, contains_email) and
    insights for the file's format (JSON path, CSV column, XML xpath,
    enclosing function, PDF page, Word paragraph, ...).

    Args:
        pattern: Regular expression (Python syntax)
        paths: Comma-separated files or directories
        context_lines: Context window size
        stop_at_first_match: Report only the first match per file
        keyword: Keep only matches whose line or context contains this text
        tags: Comma-separated tags every kept match must have
        exclude: Comma-separated regexes; matches hitting any are dropped
        types: Comma-separated declared types to keep (e.g. "py,json")
        limit: Maximum number of matches to show (default: 50)

    Returns:
        Matches grouped by file
    """
    try:
        units = load_units(_split(paths), base_dir=_root())
        options = SearchOptions.from_env(context_lines=context_lines, stop_at_first_match=stop_at_first_match)
        groups = search(units, pattern, options, registry=REGISTRY)
        groups = filter_results(
            groups,
            keyword=keyword or None,
            tags=_split(tags) or None,
            exclude_patterns=_split(exclude) or None,
            allowed_types=_split(types) or None,
        )
    except GrepsightError as e:
        logger.info(f"{SERVER} grepsight_search failed: {e}")
        return f"Error: {e}"
    return format_results(groups, pattern, limit)


@mcp.tool()
def grepsight_fuzzy(
    pattern: str,
    paths: str,
    max_edit_distance: int = 2,
    context_lines: int = 1,
    limit: int = 50
) -> str:
    """
    Find words close to a pattern, tolerating typos.

    Words of three or more characters are compared to the pattern; a word
    containing the pattern counts as an exact hit. At most one match per
    line, the closest word wins.

    Args:
        pattern: Word to look for
        paths: Comma-separated files or directories
        max_edit_distance: Largest accepted Levenshtein distance (default: 2)
        context_lines: Context window size
        limit: Maximum number of matches to show (default: 50)

    Returns:
        Matches with edit distance and similarity score
    """
    try:
        units = load_units(_split(paths), base_dir=_root())
        groups = search_fuzzy(units, pattern, max_edit_distance, context_lines)
    except GrepsightError as e:
        logger.info(f"{SERVER} grepsight_fuzzy failed: {e}")
        return f"Error: {e}"
    return format_results(groups, pattern, limit)


@mcp.tool()
def grepsight_search_text(
    pattern: str,
    text: str,
    declared_type: str = "txt"
) -> str:
    """
    Search a pasted string instead of files.

    Args:
        pattern: Regular expression
        text: Content to search
        declared_type: Format of the text, e.g. "json", "csv", "py" (default: txt)

    Returns:
        Matches with insights
    """
    try:
        unit = unit_from_text(text, declared_type or "txt")
        groups = search([unit], pattern, SearchOptions.from_env(), registry=REGISTRY)
    except GrepsightError as e:
        return f"Error: {e}"
    return format_results(groups, pattern, limit=100)


@mcp.tool()
def grepsight_types() -> str:
    """
    List the declared types that get format-specific insights.

    Returns:
        Declared types and the processor handling each
    """
    lines = [f"Supported types ({len(REGISTRY)}):"]
    for declared_type in REGISTRY.types():
        lines.append(f"  {declared_type:<12} {REGISTRY.get(declared_type).label}")
    lines.append("\nOther types are searched as plain text.")
    return "\n".join(lines)


# =============================================================================
# MAIN
# =============================================================================

def main():
    configure_logging()
    if "--http" in sys.argv:
        # HTTP mode for testing
        logger.info(f"{SERVER} starting (streamable-http)")
        mcp.run(transport="streamable-http")
    else:
        # Default: stdio for Claude Code
        mcp.run()


if __name__ == "__main__":
    main()
