"""Plain-text extraction from uploaded documents (TXT, PDF, DOCX)."""

import io
import logging
import zipfile

import docx
from docx.opc.exceptions import PackageNotFoundError
from pypdf import PdfReader
from pypdf.errors import PdfReadError

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = ("txt", "pdf", "docx")


class UnsupportedDocumentType(ValueError):
    pass


class DocumentExtractionError(ValueError):
    """The file claims a supported type but its content cannot be read."""


def file_type_from_name(file_name: str | None) -> str:
    """Lower-cased extension without the dot; "" when there is none."""
    if not file_name or "." not in file_name:
        return ""
    return file_name.rsplit(".", 1)[-1].lower()


def load_text_from_txt(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def load_text_from_pdf(data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
    except PdfReadError as exc:
        raise DocumentExtractionError(f"Unreadable PDF: {exc}") from exc

    pages = []
    for number, page in enumerate(reader.pages, start=1):
        try:
            pages.append(page.extract_text() or "")
        except (PdfReadError, KeyError, ValueError) as exc:
            logger.warning("PDF page %d skipped: %s", number, exc)
            pages.append("")
    return "\n".join(pages)


def load_text_from_docx(data: bytes) -> str:
    try:
        document = docx.Document(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as exc:
        raise DocumentExtractionError(f"Unreadable DOCX: {exc}") from exc
    return "\n".join(p.text for p in document.paragraphs)


_LOADERS = {
    "txt": load_text_from_txt,
    "pdf": load_text_from_pdf,
    "docx": load_text_from_docx,
}


def extract_text(file_name: str, data: bytes) -> str:
    """Extract the document's text, dispatching on the file extension.

    Raises:
        UnsupportedDocumentType: extension is not txt, pdf or docx.
        DocumentExtractionError: the content cannot be parsed as that type.
    """
    file_type = file_type_from_name(file_name)
    loader = _LOADERS.get(file_type)
    if loader is None:
        raise UnsupportedDocumentType(
            f"Unsupported file type '{file_type or file_name}'; supported: {', '.join(SUPPORTED_TYPES)}"
        )
    text = loader(data)
    logger.debug("Extracted %d chars from %s (%s)", len(text), file_name, file_type)
    return text.strip()
