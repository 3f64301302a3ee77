"""
Grepsight Document Extractors - text and structure out of binary documents.

Each extractor takes a path or raw bytes (and an optional password) and
returns either an ExtractedDocument or an ExtractionFailure. Readers are
opened in with-blocks and closed before the extractor returns, also when
extraction fails.

    doc = extract_pdf("report.pdf")
    if isinstance(doc, ExtractionFailure):
        print(doc.reason, doc.encrypted)
    else:
        print(doc.pages[0])

Backends: pypdf (PDF), python-docx (Word), openpyxl (xlsx/xlsm),
extract-msg (Outlook .msg). RTF is plain text with control words and is
stripped with regular expressions.
"""

import io
import re
import zipfile
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

import docx
import extract_msg
import openpyxl
from bs4 import BeautifulSoup
from docx.opc.exceptions import PackageNotFoundError
from openpyxl.utils.exceptions import InvalidFileException
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from .errors import ExtractionError
from .logging import EXTRACT, get_logger

logger = get_logger(__name__)

Source = Union[str, bytes]

# Encrypted OOXML files are stored in an OLE compound file, not a zip
OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


@dataclass(frozen=True)
class Paragraph:
    """One non-empty paragraph of a Word or RTF document."""

    index: int
    text: str
    style: str = "Normal"
    section: Optional[str] = None
    section_index: int = 0


@dataclass(frozen=True)
class ExtractedDocument:
    """
    Extracted content of a document.

    Attributes:
        text: Plain text, one line per paragraph / row / page line
        pages: PDF page texts
        paragraphs: Word / RTF paragraphs
        sheets: Spreadsheet rows by sheet name
        metadata: Format metadata (PDF info, MSG headers)
        parts: MSG parts: subject, body_plain, body_html, attachments
        encrypted: True when the source was encrypted and got decrypted
    """

    text: str = ""
    pages: tuple = ()
    paragraphs: tuple = ()
    sheets: dict = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)
    parts: dict = field(default_factory=dict)
    encrypted: bool = False


@dataclass(frozen=True)
class ExtractionFailure:
    """Why a document could not be extracted."""

    reason: str
    detail: str = ""
    encrypted: bool = False
    decryptable: bool = False

    def to_error(self) -> ExtractionError:
        return ExtractionError(self.reason, self.detail, encrypted=self.encrypted)


Extracted = Union[ExtractedDocument, ExtractionFailure]


def _open_source(source: Source):
    if isinstance(source, bytes):
        return io.BytesIO(source)
    return open(source, "rb")


def _head(source: Source, size: int = 8) -> bytes:
    if isinstance(source, bytes):
        return source[:size]
    with open(source, "rb") as f:
        return f.read(size)


# =============================================================================
# PDF
# =============================================================================

def extract_pdf(source: Source, password: Optional[str] = None) -> Extracted:
    """
    Extract page texts and document info from a PDF.

    Encrypted PDFs are decrypted with the given password (pypdf also tries
    the empty user password). A PDF that stays locked is reported as
    ExtractionFailure(reason="encrypted", encrypted=True).
    """
    try:
        with _open_source(source) as stream:
            reader = PdfReader(stream)
            encrypted = reader.is_encrypted
            if encrypted and not reader.decrypt(password or ""):
                return ExtractionFailure(
                    "encrypted",
                    "password required" if password is None else "wrong password",
                    encrypted=True,
                )

            pages = tuple((page.extract_text() or "") for page in reader.pages)
            info = reader.metadata or {}
            metadata = {
                "title": info.get("/Title"),
                "author": info.get("/Author"),
                "creator": info.get("/Creator"),
                "producer": info.get("/Producer"),
                "creation_date": info.get("/CreationDate"),
                "page_count": len(pages),
            }
    except (OSError, PdfReadError, ValueError) as e:
        logger.warning(f"{EXTRACT} PDF extraction failed: {e}")
        return ExtractionFailure("unreadable", str(e))

    metadata = {k: (str(v) if v is not None and k != "page_count" else v) for k, v in metadata.items()}
    return ExtractedDocument(
        text="\n".join(pages),
        pages=pages,
        metadata=metadata,
        encrypted=encrypted,
    )


# =============================================================================
# Word
# =============================================================================

def extract_word(source: Source, password: Optional[str] = None) -> Extracted:
    """
    Extract non-empty paragraphs with their style and heading section.

    A paragraph whose style name contains "heading" opens a new section;
    following paragraphs carry that heading as their section.
    """
    try:
        if _head(source) == OLE_MAGIC:
            return ExtractionFailure("encrypted", "Word document is password protected", encrypted=True)
        with _open_source(source) as stream:
            document = docx.Document(stream)
            raw = [(p.text.strip(), p.style.name if p.style is not None else None) for p in document.paragraphs]
    except (OSError, zipfile.BadZipFile, PackageNotFoundError, KeyError, ValueError) as e:
        logger.warning(f"{EXTRACT} Word extraction failed: {e}")
        return ExtractionFailure("unreadable", str(e))

    paragraphs = []
    section, section_index = None, 0
    for text, style in raw:
        if not text:
            continue
        if style and "heading" in style.lower():
            section = text
            section_index += 1
        paragraphs.append(Paragraph(len(paragraphs), text, style or "Normal", section, section_index))

    return ExtractedDocument(
        text="\n".join(p.text for p in paragraphs),
        paragraphs=tuple(paragraphs),
    )


# =============================================================================
# Spreadsheets
# =============================================================================

def _cell_value(value: Any) -> Any:
    return "" if value is None else value


def extract_spreadsheet(source: Source, password: Optional[str] = None) -> Extracted:
    """
    Extract every sheet as a tuple of row tuples (cached values, not formulas).

    The text form has one line per row, cells joined with tabs, sheets in
    workbook order.
    """
    try:
        if _head(source) == OLE_MAGIC:
            return ExtractionFailure("encrypted", "Workbook is password protected", encrypted=True)
        with _open_source(source) as stream:
            workbook = openpyxl.load_workbook(stream, read_only=True, data_only=True)
            try:
                sheets = {
                    ws.title: tuple(
                        tuple(_cell_value(v) for v in row) for row in ws.iter_rows(values_only=True)
                    )
                    for ws in workbook.worksheets
                }
            finally:
                workbook.close()
    except (OSError, zipfile.BadZipFile, InvalidFileException, KeyError, ValueError) as e:
        logger.warning(f"{EXTRACT} spreadsheet extraction failed: {e}")
        return ExtractionFailure("unreadable", str(e))

    lines = [
        "\t".join(str(v) for v in row)
        for rows in sheets.values()
        for row in rows
    ]
    return ExtractedDocument(text="\n".join(lines), sheets=sheets)


# =============================================================================
# Outlook MSG
# =============================================================================

def _strip_nul(value):
    return value.replace("\x00", "") if isinstance(value, str) else value


def _recipients(value) -> list[str]:
    if not value:
        return []
    return [r.strip() for r in _strip_nul(value).split(";") if r.strip()]


def _html_text(html) -> Optional[str]:
    if not html:
        return None
    if isinstance(html, bytes):
        html = html.decode("utf-8", errors="replace")
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return " ".join(soup.get_text(" ").split())


def extract_msg_file(source: Source, password: Optional[str] = None) -> Extracted:
    """
    Extract headers, bodies and attachment names from an Outlook .msg file.

    HTML bodies are reduced to their visible text.
    """
    try:
        with extract_msg.openMsg(source) as message:
            date = message.date
            parts = {
                "subject": _strip_nul(message.subject) or "",
                "body_plain": _strip_nul(message.body) or None,
                "body_html": _html_text(message.htmlBody),
                "attachments": [
                    getattr(a, "longFilename", None) or getattr(a, "shortFilename", None) or ""
                    for a in message.attachments
                ],
            }
            metadata = {
                "from": _strip_nul(message.sender),
                "to": _recipients(message.to),
                "cc": _recipients(message.cc),
                "subject": parts["subject"],
                "date": date.strftime("%Y-%m-%d %H:%M:%S") if hasattr(date, "strftime") else date,
            }
    except Exception as e:
        logger.warning(f"{EXTRACT} MSG extraction failed: {e}")
        return ExtractionFailure("unreadable", str(e))

    lines = [f"Subject: {parts['subject']}"]
    lines.extend((parts["body_plain"] or parts["body_html"] or "").splitlines())
    lines.extend(f"Attachment: {name}" for name in parts["attachments"] if name)
    return ExtractedDocument(text="\n".join(lines), metadata=metadata, parts=parts)


# =============================================================================
# RTF
# =============================================================================

RTF_TABLE_RE = re.compile(r"\{\\(?:fonttbl|colortbl|stylesheet|info)[^{}]*(?:\{[^{}]*\}[^{}]*)*\}")
RTF_HEX_RE = re.compile(r"\\'([0-9a-fA-F]{2})")
RTF_CONTROL_RE = re.compile(r"\\[a-z]+(-?\d+)? ?")
RTF_SYMBOL_RE = re.compile(r"\\[^a-z\s]")
RTF_STYLE_RE = re.compile(r"\\s(\d+)")

# Paragraphs shorter than this count as section titles
RTF_TITLE_LENGTH = 50


def rtf_to_text(rtf: str) -> str:
    """Strip RTF control words and groups, one line per \\par."""
    text = re.sub(r"\\par\b ?", "\n", rtf)
    text = RTF_TABLE_RE.sub("", text)
    text = RTF_HEX_RE.sub(lambda m: bytes([int(m.group(1), 16)]).decode("cp1252", errors="replace"), text)
    text = RTF_CONTROL_RE.sub(" ", text)
    text = RTF_SYMBOL_RE.sub("", text)
    text = re.sub(r"[{}]", "", text)
    text = re.sub(r"[ \t]+", " ", text)
    return text.strip()


def _rtf_style(rtf: str, text: str) -> str:
    """Best-effort formatting label from the control words preceding text."""
    position = rtf.find(text[:11])
    if position < 0:
        return "Normal"
    formatting = []
    preceding = rtf[max(0, position - 50):position]
    if "\\b" in preceding and "\\b0" not in preceding:
        formatting.append("bold")
    if "\\i" in preceding and "\\i0" not in preceding:
        formatting.append("italic")
    if style := RTF_STYLE_RE.search(rtf[max(0, position - 100):position]):
        formatting.append(f"Heading {style.group(1)}")
    return ", ".join(formatting) or "Normal"


def extract_rtf(source: Source, password: Optional[str] = None) -> Extracted:
    """
    Extract RTF paragraphs.

    The section index counts the short (title-like) paragraphs before a
    paragraph, starting at 1.
    """
    try:
        if isinstance(source, bytes):
            raw = source.decode("latin-1")
        else:
            with open(source, encoding="latin-1") as f:
                raw = f.read()
    except OSError as e:
        return ExtractionFailure("unreadable", str(e))

    if not raw.lstrip().startswith("{\\rtf"):
        return ExtractionFailure("unreadable", "not an RTF document")

    texts = [line.strip() for line in rtf_to_text(raw).split("\n") if line.strip()]
    paragraphs = []
    titles = 0
    for index, text in enumerate(texts):
        paragraphs.append(Paragraph(index, text, _rtf_style(raw, text), None, max(titles, 1)))
        if len(text) < RTF_TITLE_LENGTH:
            titles += 1

    return ExtractedDocument(text="\n".join(texts), paragraphs=tuple(paragraphs))


# =============================================================================
# Registry of extractors
# =============================================================================

Extractor = Callable[..., Extracted]


def run_extractor(extractor: Extractor, source: Source, password: Optional[str] = None) -> Extracted:
    """
    Call an extractor, turning anything it raises into an ExtractionFailure.

    Backends raise parser errors of their own (lxml XMLSyntaxError from
    python-docx and openpyxl, pypdf DependencyError for AES without
    cryptography); none of them may abort a search.
    """
    try:
        return extractor(source, password=password)
    except Exception as e:
        logger.warning(f"{EXTRACT} {getattr(extractor, '__name__', 'extractor')} failed: {e}")
        return ExtractionFailure("unreadable", str(e) or type(e).__name__)


@dataclass
class DocumentExtractors:
    """
    The extractor used for each document family.

    Pass a customized instance to default_registry() or load_units() to
    swap one backend (tests inject fakes this way).
    """

    pdf: Extractor = extract_pdf
    word: Extractor = extract_word
    spreadsheet: Extractor = extract_spreadsheet
    msg: Extractor = extract_msg_file
    rtf: Extractor = extract_rtf

    def for_type(self, declared_type: str) -> Optional[Extractor]:
        family = DOCUMENT_FAMILIES.get(declared_type)
        return getattr(self, family) if family else None


# declared type -> DocumentExtractors attribute
DOCUMENT_FAMILIES = {
    "pdf": "pdf",
    "docx": "word",
    "word": "word",
    "xlsx": "spreadsheet",
    "xlsm": "spreadsheet",
    "spreadsheet": "spreadsheet",
    "msg": "msg",
    "rtf": "rtf",
}
