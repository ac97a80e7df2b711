from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from sop_script.compiler.compiler import CompilationResult
from sop_script.compiler.highlighter import Token
from sop_script.compiler.validator import ValidationReport
from sop_script.domain.enums import GrammarName, TokenClass
from sop_script.domain.models import SOP


class CompileResponse(BaseModel):
    text: str = Field(description="Compiled S1 script, lines joined with \\n")
    lines: list[str]
    errors: list[str] = Field(description="Blocking diagnostics; export refused when non-empty")
    warnings: list[str] = Field(description="Advisory diagnostics")
    is_valid: bool
    rule_count: int
    enabled_rule_count: int
    filename: str = Field(description="Suggested export file name")

    @classmethod
    def from_result(cls, result: CompilationResult, filename: str) -> CompileResponse:
        return cls(
            text=result.text,
            lines=result.lines,
            errors=result.errors,
            warnings=result.warnings,
            is_valid=result.is_valid,
            rule_count=result.rule_count,
            enabled_rule_count=result.enabled_rule_count,
            filename=filename,
        )


class ValidationResponse(BaseModel):
    errors: list[str]
    warnings: list[str]
    is_valid: bool

    @classmethod
    def from_report(cls, report: ValidationReport) -> ValidationResponse:
        return cls(errors=report.errors, warnings=report.warnings, is_valid=report.is_valid)


class HighlightRequest(BaseModel):
    """Highlight raw script text, or an SOP compiled on the fly."""

    text: str | None = None
    sop: SOP | None = None
    grammar: GrammarName | None = Field(
        default=None,
        description="Token grammar. Defaults to the S1_GRAMMAR setting.",
    )

    @model_validator(mode="after")
    def validate_source(self) -> HighlightRequest:
        """Exactly one of text or sop must be given."""
        if (self.text is None) == (self.sop is None):
            raise ValueError("Provide exactly one of 'text' or 'sop'")
        return self


class TokenSchema(BaseModel):
    text: str
    token_class: TokenClass

    @classmethod
    def from_token(cls, token: Token) -> TokenSchema:
        return cls(text=token.text, token_class=token.token_class)


class HighlightedLine(BaseModel):
    number: int = Field(description="1-based line number")
    text: str
    tokens: list[TokenSchema]


class HighlightResponse(BaseModel):
    grammar: GrammarName
    lines: list[HighlightedLine]
