"""
Pre-flight validation for SOP rule sets.

Checks that an SOP is complete enough to be treated as save-ready:
- The SOP has a name and at least one rule
- Every rule has a name
- Every rule does something (warning only when it has no THEN actions)
- Optionally, every condition uses a known operator (strict operator mode)

Diagnostics are returned as data, never raised. Errors block saving and
export; warnings are advisory. Compilation itself never depends on the
outcome, so an editor can still preview a script with errors present.
"""

import logging
from dataclasses import dataclass, field

from sop_script.domain.enums import ConditionOperator
from sop_script.domain.models import SOP, Rule

logger = logging.getLogger(__name__)

KNOWN_OPERATORS = frozenset(op.value for op in ConditionOperator)


@dataclass
class ValidationReport:
    """Errors and warnings for one SOP, in rule order."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """True when nothing blocks treating compiled output as final."""
        return not self.errors


def validate_sop(sop: SOP, strict_operators: bool = False) -> ValidationReport:
    """
    Validate an SOP before compilation.

    Args:
        sop: The SOP snapshot to inspect
        strict_operators: If True, report conditions whose operator is not one
                          of the known operators as errors. When False they
                          are accepted silently and compile to ``==``.

    Returns:
        ValidationReport with errors and warnings in rule order

    Example:
        >>> report = validate_sop(SOP(name="", rules=[]))
        >>> report.errors
        ['SOP name is required', 'At least one rule is required']
        >>> report.is_valid
        False
    """
    report = ValidationReport()

    if not sop.name.strip():
        report.errors.append("SOP name is required")

    if not sop.rules:
        report.errors.append("At least one rule is required")

    for index, rule in enumerate(sop.rules, start=1):
        _validate_rule(rule, index, report, strict_operators)

    if report.errors:
        logger.debug(
            "SOP %r failed validation with %d error(s)",
            sop.name,
            len(report.errors),
        )

    return report


def _validate_rule(
    rule: Rule, index: int, report: ValidationReport, strict_operators: bool
) -> None:
    """
    Append the diagnostics for one rule.

    Args:
        rule: Rule being checked
        index: 1-based position of the rule in the SOP
        report: Report to append to
        strict_operators: Whether unknown operators are errors
    """
    if not rule.name.strip():
        report.errors.append(f"Rule {index}: Name is required")

    if strict_operators:
        for position, condition in enumerate(rule.conditions, start=1):
            if condition.operator not in KNOWN_OPERATORS:
                report.errors.append(
                    f'Rule {index}: Unknown operator "{condition.operator}" '
                    f"in condition {position}"
                )

    if not rule.then_actions:
        report.warnings.append(f'Rule "{rule.name}": No THEN actions defined')
