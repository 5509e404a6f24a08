"""
Convert Service - Word (.doc/.docx) to PDF.

Conversion tiers:
1. LibreOffice headless (``soffice --headless --convert-to pdf``)
2. Text renderer: python-docx paragraphs drawn on a reportlab canvas

The resulting PDF is then post-processed with pypdf according to the
client settings (watermark, image/link removal, compression, metadata,
password). Post-processing failures are logged and the unprocessed PDF
is returned.
"""

import io
import logging
import os
import shutil
import subprocess
import tempfile
import zipfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from docx import Document
from pypdf import PdfReader, PdfWriter
from reportlab.lib import pagesizes
from reportlab.pdfgen import canvas

from api.exceptions import InvalidFileError, ProcessingError
from core.constants import ConversionConstants, ErrorMessages
from core.enums import (
    ConversionMethod,
    DocumentQuality,
    PageOrientation,
    PageSize,
)
from core.utils.decorators import timer
from core.utils.filenames import output_filename
from schemas.conversion import BatchError, ConversionResult, ConversionSettings, LibreOfficeStatus

logger = logging.getLogger(__name__)

_PAGE_SIZES = {
    PageSize.A4: pagesizes.A4,
    PageSize.LETTER: pagesizes.letter,
    PageSize.LEGAL: pagesizes.legal,
    PageSize.A3: pagesizes.A3,
    PageSize.A5: pagesizes.A5,
}

LEGACY_DOC_NOTICE = (
    "This document uses the legacy Word 97-2003 (.doc) format. "
    "Its contents could not be rendered without LibreOffice."
)


@dataclass
class BatchOutcome:
    """Results and per-file errors of a batch conversion."""

    total: int
    results: List[ConversionResult] = field(default_factory=list)
    errors: List[BatchError] = field(default_factory=list)


def validate_document(buffer: bytes, filename: str) -> None:
    """
    Check that a buffer looks like a Word document.

    ``.docx`` files must be ZIP containers with a ``word/`` part, ``.doc``
    files must carry the OLE compound file signature.

    Raises:
        InvalidFileError: With code ``INVALID_FILE``
    """
    if not buffer:
        raise InvalidFileError(ErrorMessages.DOCUMENT_EMPTY, code="INVALID_FILE")
    if len(buffer) < ConversionConstants.MIN_DOCUMENT_BYTES:
        raise InvalidFileError(ErrorMessages.DOCUMENT_TOO_SMALL, code="INVALID_FILE")

    extension = os.path.splitext(filename or "")[1].lower()
    is_zip = buffer.startswith(ConversionConstants.ZIP_SIGNATURES)
    is_ole = buffer.startswith(ConversionConstants.OLE_SIGNATURE)

    if extension == ".docx":
        valid = is_zip and any(m in buffer for m in ConversionConstants.DOCX_MARKERS)
    elif extension == ".doc":
        valid = is_ole
    else:
        valid = is_ole or (is_zip and any(m in buffer for m in ConversionConstants.DOCX_MARKERS))

    if not valid:
        raise InvalidFileError(ErrorMessages.DOCUMENT_INVALID, code="INVALID_FILE")


def unique_name(name: str, used: set) -> str:
    """Append ``_1``, ``_2``... before the extension until ``name`` is unused."""
    if name not in used:
        used.add(name)
        return name
    stem, extension = os.path.splitext(name)
    counter = 1
    while f"{stem}_{counter}{extension}" in used:
        counter += 1
    candidate = f"{stem}_{counter}{extension}"
    used.add(candidate)
    return candidate


def build_report(outcome: BatchOutcome, generated: Optional[datetime] = None) -> str:
    """Plain text report listing failed files."""
    generated = generated or datetime.now(timezone.utc)
    lines = [
        "Conversion Report",
        "=================",
        "",
        f"Total files: {outcome.total}",
        f"Successfully converted: {len(outcome.results)}",
        f"Failed conversions: {len(outcome.errors)}",
        "",
        "Failed Files:",
        "-------------",
    ]
    for position, error in enumerate(outcome.errors, start=1):
        lines.append(f"{position}. {error.filename}")
        lines.append(f"   Error: {error.error}")
        lines.append("")
    lines.append("")
    lines.append(f"Generated: {generated.isoformat()}")
    return "\n".join(lines)


def build_zip(outcome: BatchOutcome) -> bytes:
    """ZIP of all converted PDFs plus ``conversion_report.txt`` when anything failed."""
    buffer = io.BytesIO()
    used: set = set()
    with zipfile.ZipFile(
        buffer,
        "w",
        compression=zipfile.ZIP_DEFLATED,
        compresslevel=ConversionConstants.ZIP_COMPRESSION_LEVEL,
    ) as archive:
        for result in outcome.results:
            name = unique_name(result.filename, used)
            archive.writestr(name, result.pdf)
            logger.info(f"Added to ZIP: {name}")
        if outcome.errors:
            archive.writestr(ConversionConstants.REPORT_FILENAME, build_report(outcome))
    return buffer.getvalue()


def parse_settings(raw: Optional[str]) -> ConversionSettings:
    """
    Parse the JSON ``settings`` form field.

    Missing, malformed or invalid settings fall back to defaults.
    """
    if not raw:
        return ConversionSettings()
    try:
        return ConversionSettings.model_validate_json(raw)
    except ValueError as e:
        logger.warning(f"Invalid conversion settings, using defaults: {e}")
        return ConversionSettings()


def zip_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"converted_pdfs_{now.strftime('%Y-%m-%dT%H-%M-%S')}.zip"


class ConvertService:
    """Word to PDF conversion with a LibreOffice tier and a text renderer tier."""

    def __init__(
        self,
        timeout_seconds: int = ConversionConstants.LIBREOFFICE_TIMEOUT_SECONDS,
        libreoffice_binary: Optional[str] = None,
        enable_libreoffice: bool = True,
    ):
        """
        Initialize the service.

        Args:
            timeout_seconds: LibreOffice subprocess timeout
            libreoffice_binary: Explicit binary path, searched on PATH if omitted
            enable_libreoffice: Set False to always use the text renderer
        """
        self.timeout_seconds = timeout_seconds
        self.libreoffice_binary = libreoffice_binary
        self.enable_libreoffice = enable_libreoffice

    # LibreOffice

    def find_libreoffice(self) -> Optional[str]:
        """Resolve the LibreOffice executable, or None if unavailable."""
        if not self.enable_libreoffice:
            return None
        if self.libreoffice_binary:
            return shutil.which(self.libreoffice_binary) or (
                self.libreoffice_binary if os.path.isfile(self.libreoffice_binary) else None
            )
        for name in ConversionConstants.LIBREOFFICE_BINARIES:
            path = shutil.which(name)
            if path:
                return path
        return None

    def libreoffice_status(self) -> LibreOfficeStatus:
        """Report whether LibreOffice is installed and its version."""
        path = self.find_libreoffice()
        if path is None:
            return LibreOfficeStatus(installed=False)
        try:
            completed = subprocess.run(
                [path, "--version"], capture_output=True, text=True, timeout=15
            )
        except (subprocess.SubprocessError, OSError) as e:
            logger.warning(f"LibreOffice version check failed: {e}")
            return LibreOfficeStatus(installed=False, path=path)
        if completed.returncode != 0:
            return LibreOfficeStatus(installed=False, path=path)
        return LibreOfficeStatus(installed=True, version=completed.stdout.strip(), path=path)

    def _convert_with_libreoffice(self, binary: str, buffer: bytes, filename: str) -> bytes:
        extension = os.path.splitext(filename)[1].lower() or ".docx"
        with tempfile.TemporaryDirectory(prefix="doclair_") as workdir:
            input_path = os.path.join(workdir, f"input{extension}")
            with open(input_path, "wb") as f:
                f.write(buffer)

            env = os.environ.copy()
            env.setdefault("HOME", workdir)
            cmd = [
                binary,
                "--headless",
                "--nologo",
                "--nofirststartwizard",
                "--convert-to",
                "pdf",
                "--outdir",
                workdir,
                input_path,
            ]
            try:
                completed = subprocess.run(
                    cmd, capture_output=True, text=True, timeout=self.timeout_seconds, env=env
                )
            except subprocess.TimeoutExpired:
                raise ProcessingError(
                    f"LibreOffice conversion timed out after {self.timeout_seconds} seconds",
                    code="CONVERSION_ERROR",
                )
            if completed.returncode != 0:
                logger.warning(f"LibreOffice stderr: {completed.stderr.strip()}")
                raise ProcessingError(
                    f"LibreOffice conversion failed with return code {completed.returncode}",
                    code="CONVERSION_ERROR",
                )

            output_path = os.path.join(workdir, "input.pdf")
            if not os.path.exists(output_path) or os.path.getsize(output_path) == 0:
                raise ProcessingError(
                    "LibreOffice conversion failed - output PDF not produced",
                    code="CONVERSION_ERROR",
                )
            with open(output_path, "rb") as f:
                return f.read()

    # Text renderer

    @staticmethod
    def page_size(settings: ConversionSettings) -> Tuple[float, float]:
        size = _PAGE_SIZES.get(settings.page_size, pagesizes.A4)
        if settings.page_orientation == PageOrientation.LANDSCAPE:
            return pagesizes.landscape(size)
        return pagesizes.portrait(size)

    @staticmethod
    def _paragraphs(buffer: bytes, filename: str) -> List[str]:
        if filename.lower().endswith(".doc") or buffer.startswith(ConversionConstants.OLE_SIGNATURE):
            return [os.path.basename(filename), "", LEGACY_DOC_NOTICE]
        try:
            document = Document(io.BytesIO(buffer))
        except Exception as e:
            raise ProcessingError(
                f"Could not read Word document: {e}", code="CONVERSION_ERROR"
            )
        paragraphs = [p.text or "" for p in document.paragraphs]
        for table in document.tables:
            for row in table.rows:
                paragraphs.append(" | ".join(cell.text.strip() for cell in row.cells))
        return paragraphs

    def _render_fallback(self, buffer: bytes, filename: str, settings: ConversionSettings) -> bytes:
        """Draw document paragraphs as wrapped Helvetica text."""
        paragraphs = self._paragraphs(buffer, filename)
        page_w, page_h = self.page_size(settings)
        margin = ConversionConstants.MARGINS_PT.get(settings.margins.value, 72)
        font_name = ConversionConstants.FONT_NAME
        font_size = ConversionConstants.FONT_SIZE
        line_h = ConversionConstants.LINE_HEIGHT

        output = io.BytesIO()
        c = canvas.Canvas(output, pagesize=(page_w, page_h))
        c.setFont(font_name, font_size)
        max_width = page_w - 2 * margin
        y = page_h - margin

        def wrap_text(text: str) -> List[str]:
            words = text.split()
            if not words:
                return [""]
            lines: List[str] = []
            current: List[str] = []
            for word in words:
                trial = " ".join(current + [word])
                if c.stringWidth(trial, font_name, font_size) <= max_width:
                    current.append(word)
                else:
                    if current:
                        lines.append(" ".join(current))
                    current = [word]
            if current:
                lines.append(" ".join(current))
            return lines

        for paragraph in paragraphs:
            for line in wrap_text(paragraph.strip()):
                if line:
                    c.drawString(margin, y, line)
                y -= line_h
                if y < margin:
                    c.showPage()
                    c.setFont(font_name, font_size)
                    y = page_h - margin

        c.save()
        return output.getvalue()

    # Post-processing

    @staticmethod
    def _needs_post_processing(settings: ConversionSettings) -> bool:
        return (
            settings.watermark
            or settings.password_protect
            or settings.strip_metadata
            or not settings.include_images
            or not settings.include_hyperlinks
            or settings.quality != DocumentQuality.HIGH
        )

    @staticmethod
    def _watermark_overlay(text: str, width: float, height: float):
        buffer = io.BytesIO()
        c = canvas.Canvas(buffer, pagesize=(width, height))
        c.setFillAlpha(0.15)
        c.saveState()
        c.translate(width / 2.0, height / 2.0)
        c.rotate(45)
        font_size = max(18, min(72, int(min(width, height) / 10)))
        c.setFont("Helvetica", font_size)
        c.setFillColorRGB(0.5, 0.5, 0.5)
        c.drawCentredString(0, 0, text)
        c.restoreState()
        c.showPage()
        c.save()
        buffer.seek(0)
        return PdfReader(buffer).pages[0]

    def post_process(self, pdf: bytes, settings: ConversionSettings) -> bytes:
        """
        Apply watermark, content removal, compression, metadata and password settings.

        Returns:
            Processed PDF, or the input unchanged if processing fails
        """
        if not self._needs_post_processing(settings):
            return pdf

        try:
            reader = PdfReader(io.BytesIO(pdf))
            writer = PdfWriter()
            for page in reader.pages:
                if settings.watermark:
                    overlay = self._watermark_overlay(
                        settings.watermark_text, float(page.mediabox.width), float(page.mediabox.height)
                    )
                    page.merge_page(overlay)
                writer.add_page(page)

            if not settings.include_images:
                writer.remove_images()
            if not settings.include_hyperlinks:
                writer.remove_links()
            if settings.quality != DocumentQuality.HIGH:
                for page in writer.pages:
                    page.compress_content_streams()

            # A fresh writer carries no document info unless copied over
            if not settings.strip_metadata and reader.metadata:
                writer.add_metadata(reader.metadata)

            if settings.password_protect:
                writer.encrypt(settings.password)

            output = io.BytesIO()
            writer.write(output)
            return output.getvalue()
        except Exception as e:
            logger.error(f"PDF post-processing failed, returning unprocessed PDF: {e}", exc_info=True)
            return pdf

    # Public API

    def convert(
        self, buffer: bytes, filename: str, settings: Optional[ConversionSettings] = None
    ) -> ConversionResult:
        """
        Convert one Word document to PDF.

        Args:
            buffer: Document bytes
            filename: Original filename (extension selects the validator)
            settings: Conversion settings, defaults if omitted

        Returns:
            ConversionResult

        Raises:
            InvalidFileError: If the document fails validation
            ProcessingError: If no tier can produce a PDF
        """
        settings = settings or ConversionSettings()
        logger.info(f"Starting conversion: {filename} ({len(buffer)} bytes)")
        validate_document(buffer, filename)

        with timer() as t:
            method = ConversionMethod.FALLBACK
            pdf = None
            binary = self.find_libreoffice()
            if binary:
                try:
                    pdf = self._convert_with_libreoffice(binary, buffer, filename)
                    method = ConversionMethod.LIBREOFFICE
                except ProcessingError as e:
                    logger.warning(f"LibreOffice failed for {filename}, using text renderer: {e}")
            else:
                logger.warning("LibreOffice not available, using text renderer")

            if pdf is None:
                pdf = self._render_fallback(buffer, filename, settings)
            pdf = self.post_process(pdf, settings)

        logger.info(f"Conversion completed: {filename} via {method.value} in {t['ms']}ms")
        return ConversionResult(
            pdf=pdf,
            filename=output_filename(filename, "pdf"),
            method=method,
            original_size=len(buffer),
            converted_size=len(pdf),
            conversion_time_ms=t["ms"],
        )

    def convert_batch(
        self, files: Sequence[Tuple[str, bytes]], settings: Optional[ConversionSettings] = None
    ) -> BatchOutcome:
        """
        Convert files one after another, collecting per-file errors.

        Args:
            files: (filename, bytes) pairs
            settings: Shared conversion settings

        Returns:
            BatchOutcome
        """
        outcome = BatchOutcome(total=len(files))
        logger.info(f"Batch conversion started: {len(files)} files")

        for index, (filename, buffer) in enumerate(files):
            try:
                outcome.results.append(self.convert(buffer, filename, settings))
            except Exception as e:
                logger.error(f"Error converting file {filename}: {e}")
                outcome.errors.append(BatchError(filename=filename, error=str(e), index=index))

        logger.info(
            f"Batch conversion completed: {len(outcome.results)}/{len(files)} successful"
        )
        return outcome
