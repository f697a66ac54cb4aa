"""Unit tests for TextExtractor: plain-text recovery from uploaded bytes."""

from __future__ import annotations

import io
import json
import zipfile

import fitz
import pytest
from conftest import corrupt_zip_member, docx_bytes

from venturelens.services.ingestion.text_extractor import TextExtractor, infer_extension

_S = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _zip(parts: dict[str, str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in parts.items():
            archive.writestr(name, content)
    return buf.getvalue()


def _pdf(*pages: str) -> bytes:
    doc = fitz.open()
    for text in pages:
        doc.new_page().insert_text((72, 72), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


def _xlsx() -> bytes:
    shared = (
        f'<sst xmlns="{_S}">'
        "<si><t>Startup</t></si><si><t>Amount</t></si><si><t>Acme Robotics</t></si>"
        "</sst>"
    )
    sheet1 = (
        f'<worksheet xmlns="{_S}"><sheetData>'
        '<row><c t="s"><v>0</v></c><c t="s"><v>1</v></c></row>'
        '<row><c t="s"><v>2</v></c><c><v>5000000</v></c></row>'
        "</sheetData></worksheet>"
    )
    sheet2 = (
        f'<worksheet xmlns="{_S}"><sheetData>'
        '<row><c t="inlineStr"><is><t>PayWise</t></is></c><c t="str"><v>Series B</v></c></row>'
        '<row><c t="s"><v>2</v></c></row>'
        "</sheetData></worksheet>"
    )
    return _zip(
        {
            "xl/sharedStrings.xml": shared,
            "xl/worksheets/sheet2.xml": sheet2,
            "xl/worksheets/sheet1.xml": sheet1,
        }
    )


@pytest.fixture
def extractor() -> TextExtractor:
    return TextExtractor(pdf_fallback_threshold=100)


# ---------------------------------------------------------------------------
# Format detection
# ---------------------------------------------------------------------------


class TestInferExtension:
    @pytest.mark.parametrize(
        ("file_name", "media_type", "expected"),
        [
            ("report.PDF", None, "pdf"),
            ("documents/abc/deck.docx", "application/pdf", "docx"),
            ("upload", "application/json; charset=utf-8", "json"),
            ("upload", "application/vnd.ms-excel", "xls"),
            ("upload", None, ""),
            (None, "image/png", ""),
        ],
    )
    def test_name_wins_then_media_type(
        self, file_name: str | None, media_type: str | None, expected: str
    ) -> None:
        assert infer_extension(file_name, media_type) == expected


# ---------------------------------------------------------------------------
# Plain and structured text
# ---------------------------------------------------------------------------


class TestPlainText:
    def test_text_passes_through(self, extractor: TextExtractor) -> None:
        data = "Acme raised ₹40 crore\nfrom Blume.".encode()
        assert extractor.extract(data, "notes.txt") == "Acme raised ₹40 crore\nfrom Blume."

    def test_utf8_bom_is_stripped(self, extractor: TextExtractor) -> None:
        assert extractor.extract(b"\xef\xbb\xbfstartup,amount", "deals.csv") == "startup,amount"

    def test_json_is_reindented(self, extractor: TextExtractor) -> None:
        data = json.dumps({"startup": "Acme", "rounds": [{"stage": "seed"}]}).encode()
        text = extractor.extract(data, "deals.json")

        assert text == json.dumps(json.loads(data), indent=2)
        assert "\n" in text

    def test_invalid_json_falls_back_to_raw_text(self, extractor: TextExtractor) -> None:
        assert extractor.extract(b'{"startup": ', "broken.json") == '{"startup": '

    def test_unknown_format_is_decoded_as_text(self, extractor: TextExtractor) -> None:
        assert extractor.extract(b"plain words", "notes.rtf") == "plain words"


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------


class TestPdf:
    _PAGE_ONE = "Acme Robotics raised $5 million in a Series A.\nExampleVC led the round."
    _PAGE_TWO = "PayWise closed a Rs 50 crore Series B.\nBlume and Accel joined."

    def test_text_layer_is_read_page_by_page(self, extractor: TextExtractor) -> None:
        text = extractor.extract(_pdf(self._PAGE_ONE, self._PAGE_TWO), "deck.pdf")

        assert "Acme Robotics raised $5 million in a Series A." in text
        assert "PayWise closed a Rs 50 crore Series B." in text
        assert text.index("Acme Robotics") < text.index("PayWise")

    def test_blank_pages_are_skipped(self) -> None:
        doc = fitz.open()
        doc.new_page()
        doc.new_page().insert_text((72, 72), self._PAGE_ONE, fontsize=11)
        data = doc.tobytes()
        doc.close()

        text = TextExtractor(pdf_fallback_threshold=10).extract_pdf(data)

        assert text.startswith("Acme Robotics")

    def test_falls_back_to_printable_runs(self, extractor: TextExtractor) -> None:
        pdf = (
            b"%PDF-1.4\n\x00\x01\x02This quarterly report covers startup funding\xff\xfe"
            b"\x03Investors committed capital across many sectors\x00"
        )
        text = extractor.extract_pdf(pdf)

        assert "This quarterly report covers startup funding" in text
        assert "Investors committed capital across many sectors" in text

    def test_unreadable_pdf_yields_empty_text(self, extractor: TextExtractor) -> None:
        assert extractor.extract_pdf(b"\x00\x01\x02\x03") == ""


# ---------------------------------------------------------------------------
# Office formats
# ---------------------------------------------------------------------------


class TestOffice:
    def test_docx_paragraphs_become_lines(self, extractor: TextExtractor) -> None:
        data = docx_bytes(["Funding ", "report"], ["Acme raised $5 million."], [])

        assert extractor.extract(data, "report.docx") == "Funding report\nAcme raised $5 million."

    def test_corrupt_docx_yields_empty_text(self, extractor: TextExtractor) -> None:
        assert extractor.extract(b"not a zip", "report.docx") == ""

    def test_docx_without_body_part_yields_empty_text(self, extractor: TextExtractor) -> None:
        assert extractor.extract_docx(_zip({"other.xml": "<x/>"})) == ""

    def test_docx_with_damaged_body_yields_empty_text(self, extractor: TextExtractor) -> None:
        data = corrupt_zip_member(docx_bytes(["Acme raised $5 million."]), "word/document.xml")

        assert extractor.extract(data, "report.docx") == ""

    def test_xlsx_resolves_cells_across_sheets_and_deduplicates(
        self, extractor: TextExtractor
    ) -> None:
        text = extractor.extract(_xlsx(), "deals.xlsx")

        assert text == "Startup Amount Acme Robotics 5000000 PayWise Series B"

    def test_xlsx_with_damaged_sheet_yields_empty_text(self, extractor: TextExtractor) -> None:
        data = corrupt_zip_member(_xlsx(), "xl/worksheets/sheet1.xml")

        assert extractor.extract(data, "deals.xlsx") == ""

    def test_xls_keeps_word_like_runs(self, extractor: TextExtractor) -> None:
        data = (
            b"\xd0\xcf\x11\xe0Workbook\x00\x0012345678\x00abc\x00"
            b"Acme Robotics\x01\x02Series A\x00\x00----!!\x00"
        )
        text = extractor.extract(data, "legacy.xls")

        assert text == "Workbook Acme Robotics Series A"
