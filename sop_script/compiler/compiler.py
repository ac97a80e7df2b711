"""
S1 Compiler for SOP rule sets.

Translates structured SOP rules into S1, the line-oriented script the
Cognate runtime executes:

    # Rule: Greet new users

    TRIGGER message
    WHEN
      message.isFirst == true
      AND user.tier == "gold"
    THEN
        respond(template: "welcome_gold")
    END

Properties:
- Determinism: same SOP (and timestamp) produces byte-for-byte identical text
- Totality: every well-typed SOP compiles; problems are reported by the
  validator, never raised here (unless strict operator mode is requested)
- Statelessness: pure functions over an immutable snapshot, safe to call on
  every editor keystroke
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime

from opentelemetry import trace

from sop_script.compiler.validator import validate_sop
from sop_script.compiler.values import format_operand, to_json_string
from sop_script.core.errors import CompilationError
from sop_script.domain.enums import ConditionOperator
from sop_script.domain.models import SOP, Action, Condition, Rule

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


CONDITION_OPERATOR_SYMBOLS = {
    ConditionOperator.EQUALS.value: "==",
    ConditionOperator.NOT_EQUALS.value: "!=",
    ConditionOperator.CONTAINS.value: "~=",
    ConditionOperator.NOT_CONTAINS.value: "!~=",
    ConditionOperator.GREATER_THAN.value: ">",
    ConditionOperator.LESS_THAN.value: "<",
    ConditionOperator.MATCHES.value: "~=",
    ConditionOperator.EXISTS.value: "??",
    ConditionOperator.NOT_EXISTS.value: "!??",
}

# Symbol used for operators missing from the table.
DEFAULT_OPERATOR_SYMBOL = "=="

# Operators that take no operand.
UNARY_OPERATORS = frozenset({ConditionOperator.EXISTS.value, ConditionOperator.NOT_EXISTS.value})

CONDITION_INDENT = "  "
CONJUNCTION_PREFIX = "  AND "
ACTION_INDENT = "    "
EMPTY_THEN_PLACEHOLDER = f"{ACTION_INDENT}# No actions defined"

S1_FILE_EXTENSION = ".s1"
S1_MEDIA_TYPE = "text/plain"
DEFAULT_EXPORT_STEM = "sop"


@dataclass
class CompilationResult:
    """Compiled script plus the validator's diagnostics for the same SOP."""

    text: str
    lines: list[str]
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    rule_count: int = 0
    enabled_rule_count: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.errors


def compile_condition(condition: Condition, strict: bool = False) -> str:
    """
    Compile one condition into an S1 expression.

    Args:
        condition: The condition to compile
        strict: If True, raise instead of falling back to ``==`` for an
                operator that is not in the operator table

    Returns:
        ``<field> <symbol>`` for exists/not_exists, otherwise
        ``<field> <symbol> <value>``

    Raises:
        CompilationError: Only in strict mode, for an unknown operator

    Example:
        >>> compile_condition(Condition(field="age", operator="greater_than", value=18))
        'age > 18'
        >>> compile_condition(Condition(field="name", operator="equals", value="Ann"))
        'name == "Ann"'
    """
    symbol = CONDITION_OPERATOR_SYMBOLS.get(condition.operator)

    if symbol is None:
        if strict:
            raise CompilationError(
                f"Unknown condition operator: {condition.operator}",
                details={"field": condition.field, "operator": condition.operator},
            )
        symbol = DEFAULT_OPERATOR_SYMBOL

    if condition.operator in UNARY_OPERATORS:
        return f"{condition.field} {symbol}"

    return f"{condition.field} {symbol} {format_operand(condition.value)}"


def compile_action(action: Action) -> str:
    """
    Compile one action into an indented S1 call statement.

    Config values are JSON-encoded in the config's own key order.

    Example:
        >>> compile_action(Action(type="escalate", config={"to": "tier2", "urgent": True}))
        '    escalate(to: "tier2", urgent: true)'
        >>> compile_action(Action(type="log"))
        '    log()'
    """
    arguments = ", ".join(f"{key}: {to_json_string(value)}" for key, value in action.config.items())
    return f"{ACTION_INDENT}{action.type}({arguments})"


def compile_rule(rule: Rule, strict: bool = False) -> list[str]:
    """
    Compile one rule into a labeled S1 block.

    The block is, in order: rule comment header, TRIGGER, optional WHEN with
    one condition per line (joined by AND), THEN (or a placeholder comment
    when there are no actions), optional ELSE, END and a blank separator.

    The enabled flag is not consulted here; callers skip disabled rules.

    Args:
        rule: Rule to compile
        strict: Forwarded to compile_condition

    Returns:
        List of script lines
    """
    lines = [f"# Rule: {rule.name}"]
    if rule.description:
        lines.append(f"# {rule.description}")
    lines.append("")

    lines.append(f"TRIGGER {rule.trigger.type}")

    if rule.conditions:
        lines.append("WHEN")
        for index, condition in enumerate(rule.conditions):
            prefix = CONDITION_INDENT if index == 0 else CONJUNCTION_PREFIX
            lines.append(f"{prefix}{compile_condition(condition, strict=strict)}")

    lines.append("THEN")
    if rule.then_actions:
        lines.extend(compile_action(action) for action in rule.then_actions)
    else:
        lines.append(EMPTY_THEN_PLACEHOLDER)

    if rule.else_actions:
        lines.append("ELSE")
        lines.extend(compile_action(action) for action in rule.else_actions)

    lines.append("END")
    lines.append("")

    return lines


def compile_lines(
    sop: SOP, generated_at: datetime | None = None, strict: bool = False
) -> list[str]:
    """
    Compile an SOP into script lines.

    The header (SOP name, version, generation time) is only emitted when the
    SOP has a name or a version. Enabled rules follow in their given order;
    the ``order`` field is not used for sorting.

    Args:
        sop: SOP snapshot
        generated_at: Timestamp for the ``# Generated:`` header. Defaults to
                      the current time; pass a fixed value for reproducible
                      output.
        strict: Forwarded to compile_condition

    Returns:
        List of script lines
    """
    lines: list[str] = []

    if sop.name:
        lines.append(f"# SOP: {sop.name}")
    if sop.version:
        lines.append(f"# Version: {sop.version}")
    if sop.name or sop.version:
        lines.append(f"# Generated: {format_timestamp(generated_at)}")
        lines.append("")

    for rule in sop.enabled_rules:
        lines.extend(compile_rule(rule, strict=strict))

    return lines


def compile_document(
    sop: SOP, generated_at: datetime | None = None, strict: bool = False
) -> str:
    """
    Compile an SOP into the full S1 document text.

    No semantic validation is performed: invalid or inert rules still compile.
    Run validate_sop first to decide whether the output is save-ready.

    Example:
        >>> text = compile_document(SOP(rules=[Rule(name="R1")]))
        >>> text.splitlines()[:4]
        ['# Rule: R1', '', 'TRIGGER message', 'THEN']
    """
    return "\n".join(compile_lines(sop, generated_at=generated_at, strict=strict))


def compile_sop(
    sop: SOP,
    strict_operators: bool | None = None,
    generated_at: datetime | None = None,
) -> CompilationResult:
    """
    Validate and compile an SOP in one pass.

    This is the entry point used by the HTTP API and the CLI. The script is
    always produced, even when validation reports errors, so the editor can
    keep previewing while the user fixes them.

    Args:
        sop: SOP snapshot
        strict_operators: Report unknown operators as errors. Defaults to the
                          S1_STRICT_OPERATORS setting.
        generated_at: Optional fixed generation timestamp

    Returns:
        CompilationResult with text, lines and diagnostics
    """
    if strict_operators is None:
        from sop_script.core.config import settings

        strict_operators = settings.s1_strict_operators

    start_time = time.time()

    with tracer.start_as_current_span("s1.compile") as span:
        span.set_attribute("s1.sop_name", sop.name)
        span.set_attribute("s1.rule_count", len(sop.rules))

        report = validate_sop(sop, strict_operators=strict_operators)
        lines = compile_lines(sop, generated_at=generated_at)
        text = "\n".join(lines)

        span.set_attribute("s1.error_count", len(report.errors))
        span.set_attribute("s1.warning_count", len(report.warnings))

    duration = time.time() - start_time
    enabled_count = len(sop.enabled_rules)
    script_bytes = len(text.encode("utf-8"))

    logger.info(
        "Compiled SOP %r: %d/%d rules enabled, errors=%d, warnings=%d, duration=%.4fs, size=%d bytes",
        sop.name,
        enabled_count,
        len(sop.rules),
        len(report.errors),
        len(report.warnings),
        duration,
        script_bytes,
    )

    _record_compiler_metrics(
        "valid" if report.is_valid else "invalid",
        duration,
        enabled_count,
        script_bytes,
        len(report.errors),
        len(report.warnings),
    )

    return CompilationResult(
        text=text,
        lines=lines,
        errors=report.errors,
        warnings=report.warnings,
        rule_count=len(sop.rules),
        enabled_rule_count=enabled_count,
    )


def export_filename(sop_name: str | None) -> str:
    """
    Suggested download name for an exported script.

    Example:
        >>> export_filename("Support Triage"), export_filename("")
        ('Support Triage.s1', 'sop.s1')
    """
    return f"{sop_name or DEFAULT_EXPORT_STEM}{S1_FILE_EXTENSION}"


def format_timestamp(moment: datetime | None = None) -> str:
    """
    Format a timestamp as UTC ISO-8601 with millisecond precision and ``Z``.

    Naive datetimes are taken to be UTC.

    Example:
        >>> format_timestamp(datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC))
        '2026-01-02T03:04:05.000Z'
    """
    if moment is None:
        moment = datetime.now(UTC)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)

    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _record_compiler_metrics(
    status: str,
    duration: float,
    rule_count: int,
    script_bytes: int,
    error_count: int,
    warning_count: int,
) -> None:
    """
    Record compiler metrics to Prometheus.

    Metrics failures are logged at debug level and never break compilation.

    Args:
        status: "valid" or "invalid"
        duration: Compilation duration in seconds
        rule_count: Number of enabled rules compiled
        script_bytes: Size of the script in bytes
        error_count: Number of validation errors
        warning_count: Number of validation warnings
    """
    try:
        from sop_script.core.observability import metrics

        metrics.compiler_compilations_total.labels(status=status).inc()
        metrics.compiler_duration_seconds.observe(duration)
        metrics.compiler_rules_count.observe(rule_count)
        metrics.compiler_script_bytes.observe(script_bytes)
        metrics.compiler_diagnostics_total.labels(severity="error").inc(error_count)
        metrics.compiler_diagnostics_total.labels(severity="warning").inc(warning_count)
    except Exception:
        logger.debug("Failed to record compiler metrics", exc_info=True)
