"""
Grepsight Document Processors - PDF, Word, RTF and Outlook MSG.

These processors delegate to a document extractor (see extractors.py) and
place the match inside the extracted structure: the PDF page and nearest
heading, the Word/RTF paragraph and its section, or the part of an email.
The extractor is injected, so tests can hand in fakes.

A document that cannot be extracted (encrypted, corrupt) yields
{"error", "reason", "encrypted", "decryptable": False} for every match.
"""

import re

from .base import InsightProcessor, ProcessorOutcome, load_document, require_keyword

PDF_HEADING_RE = re.compile(r"^[A-Z\d\s]{4,}|^\d+(\.\d+)*\s|^[IVXLCDM]+\.\s")


class DocumentProcessor(InsightProcessor):
    """Base for processors backed by an extractor callable."""

    def __init__(self, extractor):
        self.extractor = extractor

    def document(self, unit):
        return load_document(unit, self.extractor)


# =============================================================================
# PDF
# =============================================================================

def page_position(index: int, total: int) -> str:
    ratio = index / total if total else 0.0
    if ratio <= 0.33:
        return "top"
    if ratio <= 0.66:
        return "middle"
    return "bottom"


def nearest_heading(lines):
    for line in reversed(lines):
        if line and PDF_HEADING_RE.match(line):
            return line
    return None


class PdfProcessor(DocumentProcessor):
    label = "PDF"

    def extract_insights(self, unit, match):
        document = self.document(unit)
        target = match.line.strip()

        page_lines = unit.memo(
            "pdf.page_lines",
            lambda: [[l.strip() for l in page.split("\n")] for page in document.pages],
        )

        page_number = None
        for number, (page, lines) in enumerate(zip(document.pages, page_lines), start=1):
            if target in page or any(target in l for l in lines):
                page_number = number
                break

        insights = {
            "pdf_page": page_number,
            "pdf_metadata": dict(document.metadata),
            "encrypted": document.encrypted,
            "decryptable": True,
        }
        if page_number is None:
            return insights

        lines = page_lines[page_number - 1]
        section = {}
        if target in lines:
            position = lines.index(target)
            section = {
                "nearest_heading": nearest_heading(lines[:position + 1]),
                "page_position": page_position(position, len(lines)),
            }
        insights["section_context"] = section
        return ProcessorOutcome.success(insights, tags=("pdf_content",))


# =============================================================================
# Word and RTF
# =============================================================================

def find_paragraph(paragraphs, keyword, line):
    return next((p for p in paragraphs if keyword in p.text or p.text == line), None)


class WordProcessor(DocumentProcessor):
    label = "Word"

    def extract_insights(self, unit, match):
        keyword = require_keyword(match)
        paragraph = find_paragraph(self.document(unit).paragraphs, keyword, match.line)
        if paragraph is None:
            return {"word_section": None, "word_paragraph": None, "word_style": None, "word_path": None}

        if paragraph.section is not None:
            path = f"Section[{paragraph.section_index}].Paragraph[{paragraph.index}]"
        else:
            path = f"Paragraph[{paragraph.index}]"
        return {
            "word_section": paragraph.section,
            "word_paragraph": paragraph.index,
            "word_style": paragraph.style,
            "word_path": path,
            "paragraph_text": paragraph.text,
        }


class RtfProcessor(DocumentProcessor):
    label = "RTF"

    def extract_insights(self, unit, match):
        keyword = require_keyword(match)
        paragraph = find_paragraph(self.document(unit).paragraphs, keyword, match.line)
        if paragraph is None:
            return {"rtf_section": None, "rtf_paragraph": None, "rtf_style": None, "rtf_path": None}

        return {
            "rtf_section": paragraph.section_index,
            "rtf_paragraph": paragraph.index,
            "rtf_style": paragraph.style,
            "rtf_path": f"section[{paragraph.section_index}].paragraph[{paragraph.index}]",
            "paragraph_text": paragraph.text,
        }


# =============================================================================
# Outlook MSG
# =============================================================================

def msg_location(parts, keyword, line):
    """(part, body_type) of the message part holding keyword."""
    subject = parts.get("subject") or ""
    if keyword in subject or subject == line:
        return "subject", None
    if keyword in (parts.get("body_plain") or ""):
        return "body", "plain"
    if keyword in (parts.get("body_html") or ""):
        return "body", "html"
    if any(keyword in name for name in parts.get("attachments") or ()):
        return "attachment", None
    return "unknown", None


class MsgProcessor(DocumentProcessor):
    label = "MSG"

    def extract_insights(self, unit, match):
        keyword = require_keyword(match)
        document = self.document(unit)
        location, body_type = msg_location(document.parts, keyword, match.line)
        headers = document.metadata
        return {
            "msg_from": headers.get("from"),
            "msg_to": list(headers.get("to") or []),
            "msg_cc": list(headers.get("cc") or []),
            "msg_subject": headers.get("subject"),
            "msg_date": headers.get("date"),
            "msg_location": location,
            "msg_body_type": body_type,
        }
