"""
S1 script endpoints.

The rule editor posts the current SOP snapshot on every edit. These endpoints
compile it, validate it, tokenize script lines for highlighting, and export
the script as a downloadable ``.s1`` file. All of them are stateless.
"""

from __future__ import annotations

import logging
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse

from sop_script.api.schemas.script import (
    CompileResponse,
    HighlightedLine,
    HighlightRequest,
    HighlightResponse,
    TokenSchema,
    ValidationResponse,
)
from sop_script.compiler.compiler import (
    S1_MEDIA_TYPE,
    compile_lines,
    compile_sop,
    export_filename,
)
from sop_script.compiler.highlighter import Highlighter, get_grammar
from sop_script.compiler.validator import validate_sop
from sop_script.core.config import settings
from sop_script.core.errors import CompilationError
from sop_script.domain.models import SOP

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scripts", tags=["scripts"])

StrictQuery = Annotated[
    bool | None,
    Query(
        description="Report unknown condition operators as errors. "
        "Defaults to S1_STRICT_OPERATORS."
    ),
]


def _strict(strict: bool | None) -> bool:
    return settings.s1_strict_operators if strict is None else strict


@router.post("/compile", response_model=CompileResponse)
def post_compile(sop: SOP, strict: StrictQuery = None) -> CompileResponse:
    """
    Compile an SOP to S1 and return the script with its diagnostics.

    The script is returned even when there are validation errors so the
    editor can keep previewing; check `is_valid` before saving.
    """
    result = compile_sop(sop, strict_operators=_strict(strict))
    return CompileResponse.from_result(result, filename=export_filename(sop.name))


@router.post("/validate", response_model=ValidationResponse)
def post_validate(sop: SOP, strict: StrictQuery = None) -> ValidationResponse:
    """Run the pre-flight checks only."""
    report = validate_sop(sop, strict_operators=_strict(strict))
    return ValidationResponse.from_report(report)


@router.post("/highlight", response_model=HighlightResponse)
def post_highlight(payload: HighlightRequest) -> HighlightResponse:
    """
    Tokenize S1 for display.

    Accepts raw script `text` (split on newlines) or an `sop` that is
    compiled first.
    """
    grammar_name = payload.grammar or settings.s1_grammar
    highlighter = Highlighter(get_grammar(grammar_name))

    if payload.sop is not None:
        lines = compile_lines(payload.sop)
    else:
        lines = payload.text.split("\n")

    return HighlightResponse(
        grammar=grammar_name,
        lines=[
            HighlightedLine(
                number=number,
                text=line,
                tokens=[TokenSchema.from_token(token) for token in highlighter.highlight(line)],
            )
            for number, line in enumerate(lines, start=1)
        ],
    )


@router.post("/export", response_class=PlainTextResponse)
def post_export(
    sop: SOP,
    strict: StrictQuery = None,
    allow_invalid: Annotated[
        bool, Query(description="Export even when validation reports errors")
    ] = False,
) -> PlainTextResponse:
    """
    Export the compiled script as a `.s1` attachment.

    Raises:
        CompilationError: If the SOP has validation errors and
                          `allow_invalid` is not set (HTTP 422)
    """
    result = compile_sop(sop, strict_operators=_strict(strict))

    if not result.is_valid and not allow_invalid:
        raise CompilationError(
            "Cannot export an SOP with validation errors",
            details={"errors": result.errors, "warnings": result.warnings},
        )

    filename = export_filename(sop.name)
    logger.info("Exporting SOP %r as %s", sop.name, filename)

    return PlainTextResponse(
        content=result.text,
        media_type=S1_MEDIA_TYPE,
        headers={"Content-Disposition": _content_disposition(filename)},
    )


def _content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback and an RFC 5987 UTF-8 name."""
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "'")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
