"""
Services package for the rule validation application.

Contains:
- pdf_service: PDF text extraction
- uploads: Transient storage of uploaded documents
- ai: Prompting, completion and response normalization
"""

from .ai import AIService
from .pdf_service import PDFService

__all__ = ["PDFService", "AIService"]
