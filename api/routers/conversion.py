"""
Conversion API Router - Word to PDF, single and batch
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse, Response

from api.dependencies import (
    check_document_upload,
    check_file_count,
    content_disposition,
    get_convert_service,
    read_document_upload,
)
from api.exceptions import AppError, MissingFileError, ProcessingError, safe_endpoint
from config import get_settings
from core.constants import ConversionConstants, ErrorMessages
from schemas import BatchFailureResponse
from services.convert_service import ConvertService, build_zip, parse_settings, zip_filename

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/word-to-pdf")
@safe_endpoint
async def word_to_pdf(
    file: Optional[UploadFile] = File(None),
    settings: Optional[str] = Form(None),
    service: ConvertService = Depends(get_convert_service),
) -> Response:
    """
    Convert one Word document to PDF.

    Args:
        file: .doc or .docx upload
        settings: Optional JSON conversion settings

    Returns:
        application/pdf response with conversion metadata headers
    """
    if file is None:
        raise MissingFileError(ErrorMessages.NO_FILE)

    buffer = await read_document_upload(file, get_settings().limits.max_file_size_bytes)
    conversion_settings = parse_settings(settings)

    try:
        result = await asyncio.to_thread(service.convert, buffer, file.filename, conversion_settings)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Conversion failed for {file.filename}: {e}", exc_info=True)
        raise ProcessingError(f"Conversion failed: {e}", code="CONVERSION_ERROR")

    headers = {
        "Content-Disposition": content_disposition(result.filename),
        "X-Conversion-Time": str(result.conversion_time_ms),
        "X-Conversion-Method": result.method.value,
        "X-Original-Size": str(result.original_size),
        "X-Converted-Size": str(result.converted_size),
    }
    return Response(content=result.pdf, media_type=ConversionConstants.PDF_MIME, headers=headers)


@router.post("/batch/word-to-pdf")
@safe_endpoint
async def batch_word_to_pdf(
    files: Optional[List[UploadFile]] = File(None),
    settings: Optional[str] = Form(None),
    service: ConvertService = Depends(get_convert_service),
) -> Response:
    """
    Convert several Word documents and return them as one ZIP.

    Files are converted one after another. A failed file is reported in
    ``conversion_report.txt`` inside the ZIP; if every file fails the
    response is a 400 JSON summary instead.
    """
    limits = get_settings().limits
    uploads = check_file_count(files, limits.max_files, ErrorMessages.NO_FILES)
    for upload in uploads:
        check_document_upload(upload)

    pairs = [
        (upload.filename or "", await read_document_upload(upload, limits.max_file_size_bytes))
        for upload in uploads
    ]
    conversion_settings = parse_settings(settings)

    outcome = await asyncio.to_thread(service.convert_batch, pairs, conversion_settings)

    if not outcome.results:
        body = BatchFailureResponse(total_files=outcome.total, errors=outcome.errors)
        return JSONResponse(status_code=400, content=body.model_dump(by_alias=True))

    archive = await asyncio.to_thread(build_zip, outcome)
    name = zip_filename()
    logger.info(f"ZIP created: {name} ({len(archive)} bytes)")

    headers = {
        "Content-Disposition": content_disposition(name),
        "X-Total-Files": str(outcome.total),
        "X-Successful-Conversions": str(len(outcome.results)),
        "X-Failed-Conversions": str(len(outcome.errors)),
    }
    return Response(content=archive, media_type=ConversionConstants.ZIP_MIME, headers=headers)
