"""
Extraction Module

Schedule text -> typed extraction results via the LLM client
"""

from .policy_extractor import FieldExtractionError, extract_document, extract_policy_fields
from .schemas import (
    ExtractionMetadata,
    ExtractionResult,
    PlainTextExtraction,
    PolicyFields,
    StructuredExtraction,
)

__all__ = [
    # Schemas
    "ExtractionMetadata",
    "ExtractionResult",
    "StructuredExtraction",
    "PlainTextExtraction",
    "PolicyFields",
    # Functions
    "extract_document",
    "extract_policy_fields",
    "FieldExtractionError",
]
