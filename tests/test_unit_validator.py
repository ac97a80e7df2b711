"""
Tests for SOP pre-flight validation.

These tests verify:
- Save-gating errors (SOP name, rule presence, rule names)
- Advisory warnings for rules without THEN actions
- Strict operator mode
- Diagnostic ordering
"""

import pytest

from sop_script.compiler.validator import KNOWN_OPERATORS, ValidationReport, validate_sop
from sop_script.domain.models import SOP
from tests.factories import make_condition, make_rule, make_sop


class TestValidateSop:
    @pytest.mark.anyio
    async def test_valid_sop(self, support_sop):
        report = validate_sop(support_sop)

        assert report.is_valid
        assert report.errors == []
        assert report.warnings == []

    @pytest.mark.anyio
    async def test_empty_sop(self):
        report = validate_sop(SOP(name="", rules=[]))

        assert report.errors == ["SOP name is required", "At least one rule is required"]
        assert not report.is_valid

    @pytest.mark.anyio
    async def test_whitespace_name_is_missing(self):
        report = validate_sop(make_sop(make_rule(), name="   "))
        assert report.errors == ["SOP name is required"]

    @pytest.mark.anyio
    async def test_unnamed_rule(self):
        sop = make_sop(make_rule("", order=1))
        report = validate_sop(sop)

        assert report.errors == ["Rule 1: Name is required"]

    @pytest.mark.anyio
    async def test_rule_index_is_one_based_position(self):
        sop = make_sop(make_rule("First", order=5), make_rule(" ", order=9))
        assert validate_sop(sop).errors == ["Rule 2: Name is required"]

    @pytest.mark.anyio
    async def test_no_then_actions_is_warning_only(self):
        sop = make_sop(make_rule("Quiet", then_actions=[]))
        report = validate_sop(sop)

        assert report.is_valid
        assert report.warnings == ['Rule "Quiet": No THEN actions defined']

    @pytest.mark.anyio
    async def test_disabled_rules_still_validated(self):
        sop = make_sop(make_rule("", enabled=False))
        assert validate_sop(sop).errors == ["Rule 1: Name is required"]

    @pytest.mark.anyio
    async def test_unnamed_rule_without_actions(self):
        sop = make_sop(make_rule("", then_actions=[]))
        report = validate_sop(sop)

        assert report.errors == ["Rule 1: Name is required"]
        assert report.warnings == ['Rule "": No THEN actions defined']

    @pytest.mark.anyio
    async def test_diagnostics_in_rule_order(self):
        sop = make_sop(
            make_rule("", then_actions=[], order=1),
            make_rule("Second", then_actions=[], order=2),
            make_rule("", order=3),
            name="",
        )
        report = validate_sop(sop)

        assert report.errors == [
            "SOP name is required",
            "Rule 1: Name is required",
            "Rule 3: Name is required",
        ]
        assert report.warnings == [
            'Rule "": No THEN actions defined',
            'Rule "Second": No THEN actions defined',
        ]


class TestStrictOperators:
    @pytest.mark.anyio
    async def test_unknown_operator_accepted_by_default(self):
        sop = make_sop(make_rule(conditions=[make_condition("x", "between", 1)]))
        assert validate_sop(sop).is_valid

    @pytest.mark.anyio
    async def test_unknown_operator_reported_in_strict_mode(self):
        sop = make_sop(
            make_rule(
                conditions=[
                    make_condition("x", "equals", 1),
                    make_condition("y", "between", 2),
                ]
            )
        )
        report = validate_sop(sop, strict_operators=True)

        assert report.errors == ['Rule 1: Unknown operator "between" in condition 2']

    @pytest.mark.anyio
    async def test_known_operators_pass_strict_mode(self):
        conditions = [make_condition("x", op, 1) for op in sorted(KNOWN_OPERATORS)]
        sop = make_sop(make_rule(conditions=conditions))

        assert validate_sop(sop, strict_operators=True).is_valid


class TestValidationReport:
    @pytest.mark.anyio
    async def test_warnings_do_not_block(self):
        assert ValidationReport(warnings=["w"]).is_valid
        assert not ValidationReport(errors=["e"]).is_valid
