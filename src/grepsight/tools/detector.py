"""
Grepsight Type Detector - pick a declared type for a file or string.

Order of evidence: the file extension, the MIME type guessed by
mimetypes, magic bytes of binary content, then a look at the first
characters of text content. Anything unrecognized is "txt".
"""

import io
import mimetypes
import zipfile
from pathlib import Path
from typing import Optional, Union

from .units import DEFAULT_TYPE

EXTENSION_TYPES = {
    ".txt": "txt", ".log": "txt", ".text": "txt",
    ".json": "json",
    ".yaml": "yaml", ".yml": "yml",
    ".csv": "csv",
    ".xml": "xml", ".xsd": "xml", ".svg": "xml",
    ".html": "html", ".htm": "htm", ".xhtml": "html",
    ".xlsx": "xlsx", ".xlsm": "xlsm",
    ".md": "md", ".markdown": "markdown",
    ".rb": "rb", ".rake": "rb", ".gemspec": "rb",
    ".py": "py", ".pyi": "py",
    ".js": "js", ".mjs": "js", ".cjs": "js", ".jsx": "jsx", ".ts": "ts", ".tsx": "tsx",
    ".css": "css",
    ".pdf": "pdf",
    ".docx": "docx",
    ".rtf": "rtf",
    ".msg": "msg",
}

MIME_TYPES = {
    "application/json": "json",
    "text/plain": "txt",
    "application/x-yaml": "yaml",
    "application/yaml": "yaml",
    "text/yaml": "yaml",
    "application/xml": "xml",
    "text/xml": "xml",
    "text/html": "html",
    "application/xhtml+xml": "html",
    "application/rtf": "rtf",
    "text/rtf": "rtf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/vnd.ms-excel.sheet.macroenabled.12": "xlsm",
    "application/vnd.ms-outlook": "msg",
    "application/pdf": "pdf",
    "text/csv": "csv",
    "text/markdown": "md",
    "text/css": "css",
    "text/javascript": "js",
    "application/javascript": "js",
    "text/x-python": "py",
    "application/x-ruby": "rb",
}

OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


def _sniff_zip(content: bytes) -> Optional[str]:
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as archive:
            names = set(archive.namelist())
    except zipfile.BadZipFile:
        return None
    if "word/document.xml" in names:
        return "docx"
    if "xl/workbook.xml" in names:
        return "xlsx"
    return None


def detect_from_content(content: Union[str, bytes, None]) -> str:
    """Declared type from the leading bytes or characters of content."""
    if not content:
        return DEFAULT_TYPE
    if isinstance(content, bytes):
        if content.startswith(b"%PDF"):
            return "pdf"
        if content.startswith(b"PK\x03\x04"):
            return _sniff_zip(content) or DEFAULT_TYPE
        if content.startswith(OLE_MAGIC):
            return "msg"
        if content.lstrip().startswith(b"{\\rtf"):
            return "rtf"
        content = content[:4096].decode("utf-8", errors="replace")

    head = content.lstrip()[:256].lower()
    if head.startswith(("{", "[")):
        return "json"
    if head.startswith("---"):
        return "yaml"
    if head.startswith(("<!doctype html", "<html")):
        return "html"
    if head.startswith("<?xml"):
        return "xml"
    if head.startswith("{\\rtf"):
        return "rtf"
    return DEFAULT_TYPE


def detect(identifier: Optional[Union[str, Path]], content: Union[str, bytes, None] = None) -> str:
    """
    Declared type for a file name / path and optional content.

    Args:
        identifier: File name or path (may be None for anonymous strings)
        content: Content to sniff when the name is not conclusive

    Returns:
        Declared type tag, "txt" when nothing matches
    """
    if identifier:
        suffix = Path(str(identifier)).suffix.lower()
        if suffix in EXTENSION_TYPES:
            return EXTENSION_TYPES[suffix]
        mime, _ = mimetypes.guess_type(str(identifier), strict=False)
        if mime and mime.lower() in MIME_TYPES:
            return MIME_TYPES[mime.lower()]
    return detect_from_content(content)
