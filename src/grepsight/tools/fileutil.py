"""
Grepsight File Utilities - safe reads and the unit loader.

Provides:
- Path validation against traversal outside an allowed root
- Size-capped reads
- load_units(): files and directories to SourceUnits, with document
  extraction for PDF, Word, spreadsheet, RTF and MSG files
"""

from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

from .config import MAX_SOURCE_SIZE
from .detector import detect
from .errors import InputError
from .extractors import DocumentExtractors, ExtractionFailure, run_extractor
from .logging import EXTRACT, get_logger
from .units import SourceUnit

logger = get_logger(__name__)

PathLike = Union[str, Path]

# Bytes read for content sniffing
SNIFF_SIZE = 4096


def safe_path(path: PathLike, base_dir: Optional[PathLike] = None) -> Path:
    """
    Resolve a path, keeping it under base_dir when one is given.

    Raises:
        InputError: Path escapes base_dir or does not exist
    """
    resolved = Path(path).expanduser().resolve()
    if base_dir is not None:
        try:
            resolved.relative_to(Path(base_dir).expanduser().resolve())
        except ValueError:
            raise InputError(f"Path outside of allowed root: {path}") from None
    if not resolved.exists():
        raise InputError(f"No such file or directory: {path}")
    return resolved


def read_source(path: Path, max_size: int = MAX_SOURCE_SIZE) -> bytes:
    """
    Read a file, refusing files over max_size.

    Raises:
        InputError: File too large or unreadable
    """
    try:
        size = path.stat().st_size
        if size > max_size:
            raise InputError(f"{path} is {size} bytes, limit is {max_size}")
        return path.read_bytes()
    except OSError as e:
        raise InputError(f"Failed to read {path}: {e}") from e


def iter_files(paths: Iterable[PathLike], base_dir: Optional[PathLike] = None) -> list[Path]:
    """Expand directories (recursively, skipping hidden entries) into files."""
    files = []
    for path in paths:
        resolved = safe_path(path, base_dir)
        if resolved.is_dir():
            files.extend(
                p for p in sorted(resolved.rglob("*"))
                if p.is_file() and not any(part.startswith(".") for part in p.relative_to(resolved).parts)
            )
        else:
            files.append(resolved)
    return files


def _password_for(passwords, path: Path) -> Optional[str]:
    if passwords is None or isinstance(passwords, str):
        return passwords
    return passwords.get(str(path)) or passwords.get(path.name)


def load_unit(
    path: Path,
    password: Optional[str] = None,
    extractors: Optional[DocumentExtractors] = None,
) -> SourceUnit:
    """
    Build a SourceUnit for one file.

    Documents are extracted and their text becomes the unit's content; the
    extracted document travels in extra["document"] for the processors. If
    extraction fails the raw bytes are kept as content and the failure is
    stored instead, so every match reports it.
    """
    extractors = extractors or DocumentExtractors()
    raw = read_source(path)
    declared_type = detect(path, raw[:SNIFF_SIZE])
    extra = {"path": str(path)}
    if password is not None:
        extra["password"] = password

    extractor = extractors.for_type(declared_type)
    if extractor is None:
        return SourceUnit(raw.decode("utf-8", errors="replace"), str(path), declared_type, extra)

    document = run_extractor(extractor, raw, password)
    extra["document"] = document
    if isinstance(document, ExtractionFailure):
        logger.warning(f"{EXTRACT} {path}: {document.reason} {document.detail}".rstrip())
        return SourceUnit(raw, str(path), declared_type, extra)
    return SourceUnit(document.text, str(path), declared_type, extra)


def load_units(
    paths: Union[PathLike, Iterable[PathLike]],
    passwords: Union[str, Mapping[str, str], None] = None,
    extractors: Optional[DocumentExtractors] = None,
    base_dir: Optional[PathLike] = None,
) -> list[SourceUnit]:
    """
    Turn files and directories into SourceUnits.

    Args:
        paths: File or directory paths
        passwords: One password for all documents, or a mapping from path
            (or file name) to password
        extractors: Extractor set (default backends when None)
        base_dir: Reject paths outside this directory

    Returns:
        One SourceUnit per file, directories expanded in sorted order

    Raises:
        InputError: Missing, oversized or disallowed paths
    """
    if isinstance(paths, (str, Path)):
        paths = [paths]
    extractors = extractors or DocumentExtractors()
    return [
        load_unit(path, _password_for(passwords, path), extractors)
        for path in iter_files(paths, base_dir)
    ]
