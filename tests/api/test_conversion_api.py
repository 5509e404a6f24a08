"""
API Integration Tests for Word to PDF Endpoints
"""

import io
import json
import zipfile

from pypdf import PdfReader

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
CORRUPT = b"this is not really a word document " * 10


class TestWordToPdfAPI:
    """Integration tests for /api/convert/word-to-pdf"""

    def test_convert_docx(self, client, docx_bytes):
        """Test converting a document with the text renderer"""
        response = client.post(
            "/api/convert/word-to-pdf",
            files={"file": ("report.docx", docx_bytes, DOCX_MIME)},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")
        assert response.headers["X-Conversion-Method"] == "fallback"
        assert response.headers["X-Original-Size"] == str(len(docx_bytes))
        assert response.headers["X-Converted-Size"] == str(len(response.content))
        assert int(response.headers["X-Conversion-Time"]) >= 1
        assert 'filename="report.pdf"' in response.headers["Content-Disposition"]

        reader = PdfReader(io.BytesIO(response.content))
        assert len(reader.pages) >= 1
        assert "Quarterly Report" in reader.pages[0].extract_text()

    def test_convert_with_password(self, client, docx_bytes):
        """Test password protection setting"""
        settings = {"passwordProtect": True, "password": "s3cret"}
        response = client.post(
            "/api/convert/word-to-pdf",
            files={"file": ("report.docx", docx_bytes, DOCX_MIME)},
            data={"settings": json.dumps(settings)},
        )

        assert response.status_code == 200
        reader = PdfReader(io.BytesIO(response.content))
        assert reader.is_encrypted

    def test_convert_invalid_settings_use_defaults(self, client, docx_bytes):
        """Test malformed settings fall back to defaults"""
        response = client.post(
            "/api/convert/word-to-pdf",
            files={"file": ("report.docx", docx_bytes, DOCX_MIME)},
            data={"settings": "{oops"},
        )

        assert response.status_code == 200
        assert not PdfReader(io.BytesIO(response.content)).is_encrypted

    def test_convert_without_file(self, client):
        """Test request without a document"""
        response = client.post("/api/convert/word-to-pdf", data={"settings": "{}"})

        assert response.status_code == 400
        assert response.json()["code"] == "NO_FILE"

    def test_convert_wrong_type(self, client):
        """Test non-Word upload"""
        response = client.post(
            "/api/convert/word-to-pdf",
            files={"file": ("notes.txt", b"plain text " * 20, "text/plain")},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FILE_TYPE"

    def test_convert_corrupt_document(self, client):
        """Test Word name with non-Word content"""
        response = client.post(
            "/api/convert/word-to-pdf",
            files={"file": ("broken.docx", CORRUPT, DOCX_MIME)},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "INVALID_FILE"
        assert data["error"] == "File does not appear to be a valid Word document"

    def test_convert_too_small(self, client):
        """Test tiny upload"""
        response = client.post(
            "/api/convert/word-to-pdf",
            files={"file": ("tiny.docx", b"PK\x03\x04tiny", DOCX_MIME)},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FILE"


class TestBatchWordToPdfAPI:
    """Integration tests for /api/convert/batch/word-to-pdf"""

    def test_batch_with_failure(self, client, docx_bytes):
        """Test a batch where one of three files is corrupt"""
        files = [
            ("files", ("first.docx", docx_bytes, DOCX_MIME)),
            ("files", ("broken.docx", CORRUPT, DOCX_MIME)),
            ("files", ("third.docx", docx_bytes, DOCX_MIME)),
        ]
        response = client.post("/api/convert/batch/word-to-pdf", files=files)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert response.headers["X-Total-Files"] == "3"
        assert response.headers["X-Successful-Conversions"] == "2"
        assert response.headers["X-Failed-Conversions"] == "1"
        assert "converted_pdfs_" in response.headers["Content-Disposition"]

        with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
            names = sorted(archive.namelist())
            assert names == ["conversion_report.txt", "first.pdf", "third.pdf"]
            assert archive.read("first.pdf").startswith(b"%PDF")
            report = archive.read("conversion_report.txt").decode("utf-8")

        assert "Total files: 3" in report
        assert "Successfully converted: 2" in report
        assert "Failed conversions: 1" in report
        assert "1. broken.docx" in report

    def test_batch_all_succeeded(self, client, docx_bytes):
        """Test no report is added when nothing failed"""
        files = [
            ("files", ("same.docx", docx_bytes, DOCX_MIME)),
            ("files", ("same.docx", docx_bytes, DOCX_MIME)),
        ]
        response = client.post("/api/convert/batch/word-to-pdf", files=files)

        assert response.status_code == 200
        assert response.headers["X-Failed-Conversions"] == "0"
        with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
            assert sorted(archive.namelist()) == ["same.pdf", "same_1.pdf"]

    def test_batch_all_failed(self, client):
        """Test JSON summary when every file fails"""
        files = [
            ("files", ("a.docx", CORRUPT, DOCX_MIME)),
            ("files", ("b.docx", CORRUPT, DOCX_MIME)),
        ]
        response = client.post("/api/convert/batch/word-to-pdf", files=files)

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["totalFiles"] == 2
        assert data["successfulConversions"] == 0
        assert [e["index"] for e in data["errors"]] == [0, 1]
        assert data["errors"][0]["filename"] == "a.docx"

    def test_batch_rejects_wrong_type(self, client, docx_bytes):
        """Test any non-Word upload rejects the whole batch"""
        files = [
            ("files", ("ok.docx", docx_bytes, DOCX_MIME)),
            ("files", ("image.png", b"\x89PNG" + b"0" * 200, "image/png")),
        ]
        response = client.post("/api/convert/batch/word-to-pdf", files=files)

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FILE_TYPE"

    def test_batch_too_many_files(self, client, docx_bytes):
        """Test batch size limit"""
        files = [("files", (f"{i}.docx", docx_bytes, DOCX_MIME)) for i in range(11)]
        response = client.post("/api/convert/batch/word-to-pdf", files=files)

        assert response.status_code == 400
        assert response.json()["code"] == "TOO_MANY_FILES"

    def test_batch_without_files(self, client):
        """Test request without documents"""
        response = client.post("/api/convert/batch/word-to-pdf", data={"settings": "{}"})

        assert response.status_code == 400
        assert response.json()["code"] == "NO_FILES"
