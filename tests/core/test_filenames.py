"""
Tests for filename checks and sanitization
"""

import pytest

from api.dependencies import content_disposition, header_value
from core.utils.filenames import check_filename, output_filename, sanitize_filename


class TestCheckFilename:
    """Test unsafe filename detection"""

    @pytest.mark.parametrize(
        "name", ["photo.png", "report..final.docx", "my file (1).docx", "été.jpg"]
    )
    def test_accepted(self, name):
        """Test ordinary names pass, including inner double dots"""
        assert check_filename(name) is None

    @pytest.mark.parametrize(
        "name,message",
        [
            ("a\x00b.png", "null bytes"),
            ("../etc/passwd", "path traversal"),
            ("..\\windows\\system.ini", "path traversal"),
            ("/absolute.png", "path traversal"),
            ("C:/photo.png", "path traversal"),
            ("bell\x07.docx", "control characters"),
        ],
    )
    def test_rejected(self, name, message):
        """Test null bytes, traversal and control characters"""
        assert message in check_filename(name)


class TestSanitizeFilename:
    """Test download name sanitization"""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ('my  "photo".png', "my_photo_.png"),
            ("a<b>c.docx", "a_b_c.docx"),
            (None, "document"),
            ("", "document"),
            ("___", "document"),
        ],
    )
    def test_sanitize(self, raw, expected):
        """Test unsafe characters and whitespace are replaced"""
        assert sanitize_filename(raw) == expected

    def test_length_limit(self):
        """Test long names are truncated"""
        assert len(sanitize_filename("x" * 500 + ".png")) == 200

    @pytest.mark.parametrize(
        "original,extension,prefix,expected",
        [
            ("photo.jpeg", "png", "", "photo.png"),
            ("old photo.jpg", "jpg", "colorized_", "colorized_old_photo.jpg"),
            ("report.docx", "pdf", "", "report.pdf"),
            (None, "pdf", "", "document.pdf"),
            ("noext", "webp", "", "noext.webp"),
        ],
    )
    def test_output_filename(self, original, extension, prefix, expected):
        """Test extension replacement with optional prefix"""
        assert output_filename(original, extension, prefix) == expected


class TestContentDisposition:
    """Test attachment header values"""

    def test_latin1_name(self):
        """Test plain names are quoted"""
        assert content_disposition("photo.png") == 'attachment; filename="photo.png"'

    def test_unicode_name(self):
        """Test non latin-1 names get an RFC 5987 parameter"""
        value = content_disposition("报告.pdf")

        assert 'filename="__.pdf"' in value
        assert "filename*=UTF-8''%E6%8A%A5%E5%91%8A.pdf" in value


class TestHeaderValue:
    """Test label rendering for response headers"""

    def test_degrees(self):
        """Test the degree sign is spelled out"""
        assert header_value("Rotated 90°, Hue -15°") == "Rotated 90 deg, Hue -15 deg"

    def test_plain_text_unchanged(self):
        """Test ASCII labels pass through"""
        assert header_value("Sharpen 40, Gaussian blur 20") == "Sharpen 40, Gaussian blur 20"

    def test_other_characters_replaced(self):
        """Test remaining non-ASCII characters become question marks"""
        assert header_value("Café ±5") == "Caf? ?5"
