"""
S1 Compiler for SOP rule sets.

This package turns structured SOP rules into S1 script text, validates rule
sets before they are saved, and tokenizes script lines for highlighting.

Key Components:
- compiler: Condition, action, rule and document compilation
- validator: Blocking errors and advisory warnings for an SOP
- highlighter: Grammar-driven tokenizer for display
- values: Operand quoting and JSON encoding of action config

Design Principles:
- Determinism: Same input produces byte-for-byte identical output
- Totality: Compilation and highlighting never fail on well-typed input
- Statelessness: Pure functions, no shared mutable state
"""

from sop_script.compiler.compiler import (
    CompilationResult,
    compile_action,
    compile_condition,
    compile_document,
    compile_lines,
    compile_rule,
    compile_sop,
    export_filename,
)
from sop_script.compiler.highlighter import (
    BASIC_GRAMMAR,
    EXTENDED_GRAMMAR,
    Grammar,
    Highlighter,
    Token,
    highlight,
)
from sop_script.compiler.validator import ValidationReport, validate_sop

__all__ = [
    "BASIC_GRAMMAR",
    "EXTENDED_GRAMMAR",
    "CompilationResult",
    "Grammar",
    "Highlighter",
    "Token",
    "ValidationReport",
    "compile_action",
    "compile_condition",
    "compile_document",
    "compile_lines",
    "compile_rule",
    "compile_sop",
    "export_filename",
    "highlight",
    "validate_sop",
]
