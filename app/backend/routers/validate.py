"""
Router for document validation endpoints.

Handles:
- PDF upload with a list of rules, validated one rule at a time
"""

import logging
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

# Handle both package imports and standalone imports
try:
    from ..config import Settings, get_settings
    from ..models import RULES_ADAPTER, ErrorResponse, ValidateResponse
    from ..services.ai import AIService, ConfigurationError, get_ai_service
    from ..services.pdf_service import PDFExtractionError, PDFService, get_pdf_service
    from ..services.uploads import is_pdf_upload, saved_upload
except ImportError:
    from config import Settings, get_settings
    from models import RULES_ADAPTER, ErrorResponse, ValidateResponse
    from services.ai import AIService, ConfigurationError, get_ai_service
    from services.pdf_service import PDFExtractionError, PDFService, get_pdf_service
    from services.uploads import is_pdf_upload, saved_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["validation"])


def _parse_rules(raw_rules: str | None) -> list[str]:
    """Decode the multipart rules field into a non-empty list of strings."""
    if not raw_rules:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No validation rules provided",
        )

    try:
        rules = RULES_ADAPTER.validate_json(raw_rules)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid rules: expected a JSON array of strings",
        )

    if not rules:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No validation rules provided",
        )
    return rules


def _extract_upload(
    pdf_service: PDFService, data: bytes, filename: str, upload_dir: Path
) -> str:
    """Store the upload, extract its text, and remove it again."""
    with saved_upload(data, filename, upload_dir) as path:
        return pdf_service.extract_text(path)


@router.post(
    "/validate",
    response_model=ValidateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def validate_document(
    pdf: Annotated[UploadFile | None, File(description="PDF document to validate")] = None,
    rules: Annotated[str | None, Form(description="JSON array of rule strings")] = None,
    ai_service: AIService = Depends(get_ai_service),
    pdf_service: PDFService = Depends(get_pdf_service),
    settings: Settings = Depends(get_settings),
) -> ValidateResponse:
    """
    Validate an uploaded PDF against a list of rules.

    Extracts the document text once, then checks each rule with the LLM.
    Rules that fail individually come back as "error" verdicts; the
    response always contains one verdict per rule, in submission order.
    """
    logger.info("Received validation request")

    try:
        if pdf is None or not pdf.filename:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No PDF uploaded",
            )

        if not is_pdf_upload(pdf.filename, pdf.content_type):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only PDF files allowed",
            )

        parsed_rules = _parse_rules(rules)
        logger.info("Rules to validate: %d", len(parsed_rules))

        if not ai_service.api_key_configured:
            raise ConfigurationError("Groq API key not configured in .env file")

        file_bytes = await pdf.read()
        logger.info("File: %s (%d bytes)", pdf.filename, len(file_bytes))

        # Disk IO and pdfplumber are blocking; keep them off the event loop
        document_text = await run_in_threadpool(
            _extract_upload, pdf_service, file_bytes, pdf.filename, settings.upload_dir
        )

        results = await ai_service.validate_rules(document_text, parsed_rules)
        return ValidateResponse(results=results)

    except HTTPException:
        raise
    except PDFExtractionError as e:
        logger.error("PDF extraction failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )
    except ConfigurationError as e:
        logger.error("Validation not configured: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )
    except Exception as e:
        logger.exception("Unexpected error during validation")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e) or "Internal error",
        )
    finally:
        if pdf is not None:
            await pdf.close()
