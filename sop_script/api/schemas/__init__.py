"""
Pydantic schemas for API request/response validation.

SOP request bodies use the domain models in sop_script.domain.models
directly; this package holds the response shapes and request wrappers.
"""

# Re-export schemas for convenient imports.
from .script import CompileResponse as CompileResponse
from .script import HighlightedLine as HighlightedLine
from .script import HighlightRequest as HighlightRequest
from .script import HighlightResponse as HighlightResponse
from .script import TokenSchema as TokenSchema
from .script import ValidationResponse as ValidationResponse
