"""
Domain enums for SOP rules and the S1 script they compile to.

These enums name the values the rule editor offers. The compiler accepts
plain strings for trigger, operator and action tags, so an enum member is
never required at the model boundary; the enums exist for lookups and
type-safe comparisons.
"""

from enum import Enum


class TriggerType(str, Enum):
    """What starts a rule evaluation."""

    MESSAGE = "message"
    EVENT = "event"
    SCHEDULE = "schedule"
    CONDITION = "condition"
    MANUAL = "manual"


class ConditionOperator(str, Enum):
    """
    Supported condition operators.
    Keys of the operator-to-symbol table in the compiler.
    """

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    MATCHES = "matches"
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"


class ActionType(str, Enum):
    """Built-in action names offered by the rule editor."""

    RESPOND = "respond"
    ESCALATE = "escalate"
    LOG = "log"
    NOTIFY = "notify"
    EXECUTE = "execute"
    WAIT = "wait"
    BRANCH = "branch"


class SOPStatus(str, Enum):
    """Lifecycle status of an SOP. Carried through, never compiled."""

    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class SOPPriority(str, Enum):
    """Editor priority of an SOP. Carried through, never compiled."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TokenClass(str, Enum):
    """
    Display class of a highlighted S1 token.
    The renderer maps each class to a color.
    """

    KEYWORD = "keyword"
    OPERATOR = "operator"
    FUNCTION = "function"
    NAMESPACE = "namespace"
    PUNCTUATION = "punctuation"
    FIELD = "field"
    STRING = "string"
    NUMBER = "number"
    COMMENT = "comment"
    TEXT = "text"


class GrammarName(str, Enum):
    """Named token grammars for the highlighter."""

    BASIC = "basic"
    EXTENDED = "extended"
