"""
SOP rule model.

An SOP is a named, versioned, ordered list of rules. Each rule pairs one
trigger with conjunctive conditions and then/else action lists. The models
are immutable snapshots: the editor builds a new SOP on every change and the
compiler reads it without mutating anything.

Both snake_case and the editor's camelCase keys are accepted, e.g.
``then_actions`` and ``thenActions``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, JsonValue
from pydantic.alias_generators import to_camel

from sop_script.domain.enums import SOPPriority, SOPStatus, TriggerType

# Scalar operand of a condition. Numbers and numeric strings compile unquoted.
ConditionValue = str | int | float | bool | None


class _RuleModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


class Trigger(_RuleModel):
    """Trigger type tag plus an opaque configuration map."""

    type: str = TriggerType.MESSAGE.value
    config: dict[str, JsonValue] = Field(default_factory=dict)


class Condition(_RuleModel):
    """
    One predicate of a rule.

    ``operator`` is deliberately a plain string: unknown operators must reach
    the compiler so it can apply the ``==`` fallback (or strict mode can
    report them).
    """

    id: str = ""
    field: str
    operator: str = "equals"
    value: ConditionValue = None
    namespace: str | None = None


class Action(_RuleModel):
    """A function-like action: type tag plus ordered key/value config."""

    id: str = ""
    type: str
    config: dict[str, JsonValue] = Field(default_factory=dict)
    label: str | None = None


class Rule(_RuleModel):
    id: str = ""
    name: str = ""
    description: str | None = None
    trigger: Trigger = Field(default_factory=Trigger)
    conditions: list[Condition] = Field(default_factory=list)
    then_actions: list[Action] = Field(default_factory=list)
    else_actions: list[Action] | None = None
    enabled: bool = True
    order: int = 0


class SOP(_RuleModel):
    """
    A named, versioned rule set.

    Only ``name``, ``version`` and ``rules`` affect compilation; the remaining
    fields are editor metadata passed through unchanged.
    """

    id: str = ""
    name: str = ""
    version: str | None = None
    description: str | None = None
    status: SOPStatus = SOPStatus.DRAFT
    priority: SOPPriority = SOPPriority.MEDIUM
    tags: list[str] = Field(default_factory=list)
    rules: list[Rule] = Field(default_factory=list)

    @property
    def enabled_rules(self) -> list[Rule]:
        """Enabled rules in their given order."""
        return [rule for rule in self.rules if rule.enabled]
