"""Best-effort plain-text extraction from uploaded document bytes.

Supported formats, keyed by file extension (or inferred from media type):

- **txt / md / csv** -- decoded as UTF-8 and passed through.
- **json** -- parsed and re-serialized with indentation so the structure
  survives as readable text.
- **pdf** -- the text layer of each page is read with PyMuPDF.  When that
  yields too little text (scans, malformed files PyMuPDF refuses to open),
  the raw bytes are scanned for long runs of printable characters instead.
- **docx** -- paragraphs are read with python-docx, one line each.
- **xlsx** -- shared strings, inline strings and numeric cell values are
  collected from every worksheet, then deduplicated.
- **xls** -- legacy binary workbooks are scanned for printable ASCII runs,
  keeping only runs that look like words.

Extraction never raises for a recognized format: it returns whatever text
it could recover, possibly ``""``.  Deciding whether that is enough is the
caller's job (see :class:`IngestionService`).
"""

from __future__ import annotations

import io
import json
import re
import xml.etree.ElementTree as ET
import zipfile
import zlib

import docx
import fitz  # PyMuPDF
import structlog

logger = structlog.get_logger(logger_name=__name__)

SUPPORTED_EXTENSIONS = frozenset({"txt", "md", "csv", "json", "pdf", "docx", "xlsx", "xls"})

_MEDIA_TYPE_EXTENSIONS: dict[str, str] = {
    "text/plain": "txt",
    "text/markdown": "md",
    "text/csv": "csv",
    "application/json": "json",
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/vnd.ms-excel": "xls",
}

# -- PDF -------------------------------------------------------------------
_PDF_READABLE_RUN = re.compile(r"[A-Za-z][A-Za-z0-9\s.,;:!?'\"-]{19,}")

# -- XLSX ------------------------------------------------------------------
_S_NS = "{http://schemas.openxmlformats.org/spreadsheetml/2006/main}"
_SHEET_PART = re.compile(r"^xl/worksheets/sheet(\d+)\.xml$")
# Truncated or corrupted archive members surface as any of these.
_ARCHIVE_ERRORS = (
    zipfile.BadZipFile,
    KeyError,
    zlib.error,
    NotImplementedError,
    RuntimeError,
    EOFError,
)

# -- XLS -------------------------------------------------------------------
_PRINTABLE_RUN = re.compile(rb"[\x20-\x7e]{4,}")
_HAS_WORD = re.compile(r"[A-Za-z]{2,}")

_WHITESPACE = re.compile(r"\s+")
_HORIZONTAL_SPACE = re.compile(r"[ \t\f\v]+")


def infer_extension(file_name: str | None, media_type: str | None = None) -> str:
    """Return the lower-cased format extension for a file.

    The file name wins; the media type is consulted only when the name has
    no extension.  Returns ``""`` when neither gives a hint.
    """
    if file_name and "." in file_name.rsplit("/", 1)[-1]:
        return file_name.rsplit(".", 1)[-1].lower()
    if media_type:
        return _MEDIA_TYPE_EXTENSIONS.get(media_type.split(";", 1)[0].strip().lower(), "")
    return ""


class TextExtractor:
    """Converts raw document bytes into a single plain-text string.

    Parameters
    ----------
    pdf_fallback_threshold:
        When the PDF text layer holds fewer characters than this, the
        printable-run heuristic is tried as well.
    """

    def __init__(self, pdf_fallback_threshold: int = 100) -> None:
        self._pdf_fallback_threshold = pdf_fallback_threshold

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(
        self,
        data: bytes,
        file_name: str | None = None,
        media_type: str | None = None,
    ) -> str:
        """Extract plain text from *data*.

        Parameters
        ----------
        data:
            Raw bytes of the document.
        file_name:
            Original file name or storage path; its extension selects the
            decoder.
        media_type:
            Declared media type, used when the name has no extension.

        Returns
        -------
        str
            The recovered text, or ``""`` when nothing could be recovered.
            Unknown formats are decoded as UTF-8 text.
        """
        extension = infer_extension(file_name, media_type)

        if extension == "pdf":
            text = self.extract_pdf(data)
        elif extension == "docx":
            text = self.extract_docx(data)
        elif extension == "xlsx":
            text = self.extract_xlsx(data)
        elif extension == "xls":
            text = self.extract_xls(data)
        elif extension == "json":
            text = self.extract_json(data)
        else:
            text = _decode_text(data)

        logger.info(
            "text_extracted",
            file_name=file_name,
            file_type=extension or "unknown",
            byte_length=len(data),
            text_length=len(text),
        )
        return text

    # ------------------------------------------------------------------
    # Structured text
    # ------------------------------------------------------------------

    @staticmethod
    def extract_json(data: bytes) -> str:
        """Re-serialize a JSON document with indentation."""
        raw = _decode_text(data)
        try:
            return json.dumps(json.loads(raw), indent=2, ensure_ascii=False)
        except json.JSONDecodeError:
            logger.warning("json_parse_failed", msg="Passing JSON through as plain text.")
            return raw

    # ------------------------------------------------------------------
    # PDF
    # ------------------------------------------------------------------

    def extract_pdf(self, data: bytes) -> str:
        """Join the text layer of every page, falling back to printable runs."""
        pages: list[str] = []
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                for page in doc:
                    page_text = page.get_text("text").strip()
                    if page_text:
                        pages.append(page_text)
        except Exception as exc:  # noqa: BLE001
            logger.warning("pdf_open_failed", error=str(exc), byte_length=len(data))

        text = "\n\n".join(pages)

        if len(text) < self._pdf_fallback_threshold:
            # latin-1 maps every byte to exactly one code point.
            fallback = " ".join(_PDF_READABLE_RUN.findall(data.decode("latin-1")))
            fallback = _WHITESPACE.sub(" ", fallback).strip()
            if len(fallback) > len(text):
                logger.info(
                    "pdf_fallback_used",
                    text_layer_chars=len(text),
                    fallback_chars=len(fallback),
                )
                text = fallback

        return text

    # ------------------------------------------------------------------
    # Office Open XML
    # ------------------------------------------------------------------

    @staticmethod
    def extract_docx(data: bytes) -> str:
        """Return the non-empty paragraphs of a .docx file, one per line."""
        try:
            paragraphs = docx.Document(io.BytesIO(data)).paragraphs
            lines = [_HORIZONTAL_SPACE.sub(" ", p.text).strip() for p in paragraphs]
        except Exception as exc:  # noqa: BLE001
            logger.warning("docx_extraction_failed", error=str(exc))
            return ""
        return "\n".join(line for line in lines if line)

    @staticmethod
    def extract_xlsx(data: bytes) -> str:
        """Return the distinct cell values of every worksheet in a .xlsx file."""
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                names = archive.namelist()
                shared_xml = (
                    archive.read("xl/sharedStrings.xml")
                    if "xl/sharedStrings.xml" in names
                    else None
                )
                sheet_names = sorted(
                    (n for n in names if _SHEET_PART.match(n)),
                    key=lambda n: int(_SHEET_PART.match(n).group(1)),  # type: ignore[union-attr]
                )
                sheets = [archive.read(n) for n in sheet_names]
        except _ARCHIVE_ERRORS as exc:
            logger.warning("xlsx_extraction_failed", error=str(exc))
            return ""

        shared: list[str] = []
        if shared_xml is not None:
            try:
                for item in ET.fromstring(shared_xml).iter(f"{_S_NS}si"):
                    shared.append("".join(t.text or "" for t in item.iter(f"{_S_NS}t")))
            except ET.ParseError as exc:
                logger.warning("xlsx_shared_strings_unreadable", error=str(exc))

        values: list[str] = []
        for sheet_xml in sheets:
            try:
                root = ET.fromstring(sheet_xml)
            except ET.ParseError as exc:
                logger.warning("xlsx_sheet_unreadable", error=str(exc))
                continue
            for cell in root.iter(f"{_S_NS}c"):
                value = _cell_value(cell, shared)
                if value:
                    values.append(value)

        values.extend(s for s in shared if s.strip())
        distinct = list(dict.fromkeys(v.strip() for v in values if v.strip()))
        return _WHITESPACE.sub(" ", " ".join(distinct)).strip()

    # ------------------------------------------------------------------
    # Legacy binary spreadsheets
    # ------------------------------------------------------------------

    @staticmethod
    def extract_xls(data: bytes) -> str:
        """Keep printable ASCII runs that look like words from a .xls file."""
        kept: list[str] = []
        for match in _PRINTABLE_RUN.finditer(data):
            run = match.group(0).decode("ascii")
            if len(run) < 5 or run.isdigit():
                continue
            if not _HAS_WORD.search(run):
                continue
            kept.append(run)
        return _WHITESPACE.sub(" ", " ".join(kept)).strip()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _decode_text(data: bytes) -> str:
    return data.decode("utf-8-sig", errors="replace")


def _cell_value(cell: ET.Element, shared: list[str]) -> str:
    cell_type = cell.get("t")
    if cell_type == "inlineStr":
        return "".join(t.text or "" for t in cell.iter(f"{_S_NS}t"))

    value_node = cell.find(f"{_S_NS}v")
    raw = (value_node.text or "").strip() if value_node is not None else ""
    if not raw:
        return ""

    if cell_type == "s":
        try:
            return shared[int(raw)]
        except (ValueError, IndexError):
            return ""
    if cell_type == "str":
        return raw
    try:
        float(raw)
    except ValueError:
        return ""
    return raw
