"""
Tests for Word to PDF conversion
"""

import io
import zipfile
from datetime import datetime, timezone

import pytest
from pypdf import PdfReader

from api.exceptions import InvalidFileError
from core.constants import ConversionConstants
from core.enums import ConversionMethod, PageOrientation, PageSize
from schemas import BatchError, ConversionResult, ConversionSettings
from services.convert_service import (
    LEGACY_DOC_NOTICE,
    BatchOutcome,
    ConvertService,
    build_report,
    build_zip,
    parse_settings,
    unique_name,
    validate_document,
    zip_filename,
)
from tests.helpers import make_docx

OLE_DOC = ConversionConstants.OLE_SIGNATURE + b"\x00" * 200
CORRUPT = b"this is not really a word document " * 10


def fake_result(filename):
    return ConversionResult(
        pdf=b"%PDF-1.4 fake",
        filename=filename,
        method=ConversionMethod.FALLBACK,
        original_size=100,
        converted_size=13,
    )


def pdf_text(pdf):
    return "\n".join(page.extract_text() for page in PdfReader(io.BytesIO(pdf)).pages)


class TestValidateDocument:
    """Test Word document signature checks"""

    def test_valid_docx(self, docx_bytes):
        """Test a real .docx passes"""
        validate_document(docx_bytes, "report.docx")

    def test_valid_doc(self):
        """Test an OLE compound file passes as .doc"""
        validate_document(OLE_DOC, "legacy.doc")

    @pytest.mark.parametrize(
        "buffer,message",
        [
            (b"", "empty"),
            (b"PK\x03\x04short", "too small"),
            (CORRUPT, "valid Word document"),
        ],
    )
    def test_invalid(self, buffer, message):
        """Test empty, tiny and unrecognized buffers"""
        with pytest.raises(InvalidFileError) as exc_info:
            validate_document(buffer, "report.docx")

        assert message in exc_info.value.message
        assert exc_info.value.code == "INVALID_FILE"

    def test_signature_must_match_extension(self, docx_bytes):
        """Test .doc needs OLE and .docx needs a ZIP container"""
        with pytest.raises(InvalidFileError):
            validate_document(OLE_DOC, "report.docx")
        with pytest.raises(InvalidFileError):
            validate_document(docx_bytes, "legacy.doc")

    def test_zip_without_word_part(self):
        """Test a ZIP that is not a Word document"""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("readme.txt", "hello " * 50)

        with pytest.raises(InvalidFileError):
            validate_document(buffer.getvalue(), "report.docx")


class TestBatchHelpers:
    """Test ZIP naming, report and settings helpers"""

    def test_unique_name(self):
        """Test duplicates get numeric suffixes"""
        used = set()

        names = [unique_name(n, used) for n in ["a.pdf", "a.pdf", "b.pdf", "a.pdf"]]

        assert names == ["a.pdf", "a_1.pdf", "b.pdf", "a_2.pdf"]

    def test_build_report(self):
        """Test report layout"""
        outcome = BatchOutcome(
            total=3,
            results=[fake_result("a.pdf"), fake_result("c.pdf")],
            errors=[BatchError(filename="b.docx", error="File appears to be too small or corrupted", index=1)],
        )
        generated = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

        report = build_report(outcome, generated)

        assert report == "\n".join(
            [
                "Conversion Report",
                "=================",
                "",
                "Total files: 3",
                "Successfully converted: 2",
                "Failed conversions: 1",
                "",
                "Failed Files:",
                "-------------",
                "1. b.docx",
                "   Error: File appears to be too small or corrupted",
                "",
                "",
                "Generated: 2024-05-01T12:00:00+00:00",
            ]
        )

    def test_build_zip_with_errors(self):
        """Test report is included only when something failed"""
        outcome = BatchOutcome(
            total=3,
            results=[fake_result("a.pdf"), fake_result("a.pdf")],
            errors=[BatchError(filename="b.docx", error="bad", index=1)],
        )

        with zipfile.ZipFile(io.BytesIO(build_zip(outcome))) as archive:
            assert sorted(archive.namelist()) == ["a.pdf", "a_1.pdf", "conversion_report.txt"]
            assert archive.getinfo("a.pdf").compress_type == zipfile.ZIP_DEFLATED

    def test_build_zip_without_errors(self):
        """Test no report for a clean batch"""
        outcome = BatchOutcome(total=1, results=[fake_result("a.pdf")])

        with zipfile.ZipFile(io.BytesIO(build_zip(outcome))) as archive:
            assert archive.namelist() == ["a.pdf"]

    def test_zip_filename(self):
        """Test timestamped ZIP name"""
        now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        assert zip_filename(now) == "converted_pdfs_2024-01-02T03-04-05.zip"

    def test_parse_settings(self):
        """Test camelCase settings"""
        settings = parse_settings('{"pageSize": "Letter", "pageOrientation": "landscape", "unknown": 1}')

        assert settings.page_size == PageSize.LETTER
        assert settings.page_orientation == PageOrientation.LANDSCAPE

    @pytest.mark.parametrize(
        "raw",
        [None, "", "{broken", '{"pageSize": "B5"}', '{"passwordProtect": true}', '{"watermark": true}'],
    )
    def test_parse_settings_defaults(self, raw):
        """Test missing or invalid settings fall back to defaults"""
        assert parse_settings(raw) == ConversionSettings()


class TestConvertService:
    """Test ConvertService with the text renderer"""

    def test_libreoffice_disabled(self, convert_service):
        """Test status when LibreOffice is disabled"""
        assert convert_service.find_libreoffice() is None
        assert convert_service.libreoffice_status().installed is False

    def test_missing_binary(self):
        """Test an explicit binary that does not exist"""
        service = ConvertService(libreoffice_binary="/nonexistent/soffice")

        assert service.find_libreoffice() is None

    def test_convert_docx(self, convert_service, docx_bytes):
        """Test text rendering of a .docx"""
        result = convert_service.convert(docx_bytes, "Quarterly report.docx")

        assert result.method == ConversionMethod.FALLBACK
        assert result.filename == "Quarterly_report.pdf"
        assert result.pdf.startswith(b"%PDF")
        assert result.original_size == len(docx_bytes)
        assert result.converted_size == len(result.pdf)
        assert "Quarterly Report" in pdf_text(result.pdf)

    def test_convert_legacy_doc(self, convert_service):
        """Test .doc files get a notice page without LibreOffice"""
        result = convert_service.convert(OLE_DOC, "legacy.doc")

        text = pdf_text(result.pdf)
        assert "legacy.doc" in text
        assert "97-2003" in text
        assert LEGACY_DOC_NOTICE.startswith("This document")

    def test_long_document_paginates(self, convert_service):
        """Test text flows onto more pages"""
        buffer = make_docx(*[f"Paragraph number {i}" for i in range(120)])

        result = convert_service.convert(buffer, "long.docx")

        assert len(PdfReader(io.BytesIO(result.pdf)).pages) >= 2

    @pytest.mark.parametrize(
        "size,orientation,expected",
        [
            ("A4", "portrait", (595, 842)),
            ("Letter", "landscape", (792, 612)),
            ("A5", "portrait", (420, 595)),
        ],
    )
    def test_page_size(self, convert_service, docx_bytes, size, orientation, expected):
        """Test page size and orientation settings"""
        settings = ConversionSettings(pageSize=size, pageOrientation=orientation)

        result = convert_service.convert(docx_bytes, "report.docx", settings)

        box = PdfReader(io.BytesIO(result.pdf)).pages[0].mediabox
        assert (round(float(box.width)), round(float(box.height))) == expected

    def test_password(self, convert_service, docx_bytes):
        """Test password protection"""
        settings = ConversionSettings(passwordProtect=True, password="s3cret")

        result = convert_service.convert(docx_bytes, "report.docx", settings)

        reader = PdfReader(io.BytesIO(result.pdf))
        assert reader.is_encrypted
        assert reader.decrypt("s3cret")
        assert "Quarterly Report" in reader.pages[0].extract_text()

    def test_watermark(self, convert_service, docx_bytes):
        """Test watermark keeps the page count and changes the content"""
        plain = convert_service.convert(docx_bytes, "report.docx")
        settings = ConversionSettings(watermark=True, watermarkText="CONFIDENTIAL")

        marked = convert_service.convert(docx_bytes, "report.docx", settings)

        assert marked.pdf != plain.pdf
        assert len(PdfReader(io.BytesIO(marked.pdf)).pages) == len(
            PdfReader(io.BytesIO(plain.pdf)).pages
        )

    def test_strip_metadata(self, convert_service, docx_bytes):
        """Test renderer metadata is dropped"""
        settings = ConversionSettings(stripMetadata=True)

        result = convert_service.convert(docx_bytes, "report.docx", settings)

        metadata = PdfReader(io.BytesIO(result.pdf)).metadata
        assert metadata is None or "ReportLab" not in str(metadata.get("/Producer", ""))

    def test_post_process_failure_returns_input(self, convert_service):
        """Test broken PDFs are passed through unchanged"""
        settings = ConversionSettings(stripMetadata=True)

        assert convert_service.post_process(b"%PDF-garbage", settings) == b"%PDF-garbage"

    def test_post_process_skipped_for_defaults(self, convert_service):
        """Test default settings need no post-processing"""
        assert convert_service.post_process(b"anything", ConversionSettings()) == b"anything"

    def test_convert_invalid(self, convert_service):
        """Test validation runs before conversion"""
        with pytest.raises(InvalidFileError):
            convert_service.convert(CORRUPT, "broken.docx")

    def test_convert_batch(self, convert_service, docx_bytes):
        """Test per-file errors are collected with their index"""
        files = [("a.docx", docx_bytes), ("b.docx", CORRUPT), ("c.docx", docx_bytes)]

        outcome = convert_service.convert_batch(files)

        assert outcome.total == 3
        assert [r.filename for r in outcome.results] == ["a.pdf", "c.pdf"]
        assert len(outcome.errors) == 1
        assert outcome.errors[0].index == 1
        assert outcome.errors[0].filename == "b.docx"
        assert outcome.errors[0].error == "File does not appear to be a valid Word document"
