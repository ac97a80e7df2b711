"""
S1 tokenizer for syntax highlighting.

Re-scans script lines into (text, class) tokens for display. This is purely
cosmetic: it never rejects input, every string tokenizes, and the token
texts always concatenate back to the original line.

The token tables live in an immutable Grammar passed to the Highlighter, so
a renderer (or a test) can use a smaller or larger vocabulary without
touching this module.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import NamedTuple

from sop_script.compiler.values import is_numeric_text
from sop_script.domain.enums import GrammarName, TokenClass

# Operator and punctuation delimiters; whitespace runs split as well.
BASE_DELIMITERS = ("==", "!=", ">=", "<=", ">", "<", "~=", "??", "&&", "||", "(", ")", ",", ":")


def _delimiter_pattern(operators: Iterable[str] = ()) -> re.Pattern[str]:
    """
    Build the split pattern for a grammar.

    Symbolic grammar operators (e.g. ``!~=``) are added to the base delimiters.
    Longer symbols come first so ``>=`` is not split into ``>`` and ``=``.
    """
    symbols = set(BASE_DELIMITERS)
    symbols.update(op for op in operators if op and not re.search(r"\w", op))
    ordered = sorted(symbols, key=lambda s: (-len(s), s))
    return re.compile(r"(\s+|" + "|".join(re.escape(s) for s in ordered) + ")")


class Token(NamedTuple):
    text: str
    token_class: TokenClass


@dataclass(frozen=True)
class Grammar:
    """Token vocabulary used for classification."""

    keywords: frozenset[str]
    operators: frozenset[str]
    functions: frozenset[str]
    namespaces: frozenset[str]

    @classmethod
    def from_lists(
        cls,
        keywords: Iterable[str] = (),
        operators: Iterable[str] = (),
        functions: Iterable[str] = (),
        namespaces: Iterable[str] = (),
    ) -> "Grammar":
        return cls(
            keywords=frozenset(keywords),
            operators=frozenset(operators),
            functions=frozenset(functions),
            namespaces=frozenset(namespaces),
        )


BASIC_GRAMMAR = Grammar.from_lists(
    keywords=["TRIGGER", "WHEN", "THEN", "ELSE", "END", "AND", "OR", "NOT", "IF", "ELIF"],
    operators=["==", "!=", ">", "<", ">=", "<=", "~=", "??", "&&", "||"],
    functions=["respond", "escalate", "log", "notify", "execute", "wait", "branch"],
    namespaces=["message", "context", "user", "session", "system"],
)

# Vocabulary of the Cognate rule viewer: extra keywords and literals, the
# negated operators, and the wider function and namespace sets.
EXTENDED_GRAMMAR = Grammar.from_lists(
    keywords=[
        *BASIC_GRAMMAR.keywords,
        "RULE",
        "PRIORITY",
        "IN",
        "true",
        "false",
        "null",
    ],
    operators=[*BASIC_GRAMMAR.operators, "!~=", "!??", ":"],
    functions=[
        *BASIC_GRAMMAR.functions,
        "set",
        "get",
        "send",
        "create",
        "update",
        "delete",
        "flag",
        "block",
        "allow",
        "schedule",
        "check",
        "apply",
        "include",
        "add",
        "remove",
    ],
    namespaces=[
        *BASIC_GRAMMAR.namespaces,
        "tone",
        "escalation",
        "response",
        "notification",
        "data",
        "alert",
        "customer",
        "sentiment",
        "issue",
        "action",
        "security",
        "compliance",
        "content",
        "api",
        "refund",
        "email",
        "calendar",
    ],
)

GRAMMARS = {
    GrammarName.BASIC: BASIC_GRAMMAR,
    GrammarName.EXTENDED: EXTENDED_GRAMMAR,
}


def get_grammar(name: GrammarName | str) -> Grammar:
    """
    Look up a named grammar.

    Raises:
        ValueError: If the name is not a known grammar
    """
    return GRAMMARS[GrammarName(name)]


class Highlighter:
    """
    Classifies S1 lines against a grammar.

    Example:
        >>> [t.token_class.value for t in Highlighter(BASIC_GRAMMAR).highlight("END")]
        ['keyword']
    """

    def __init__(self, grammar: Grammar = BASIC_GRAMMAR) -> None:
        self.grammar = grammar
        self._delimiters = _delimiter_pattern(grammar.operators)

    def highlight(self, line: str) -> list[Token]:
        """
        Tokenize one line.

        A line whose stripped text starts with ``#`` is a single comment token.
        Otherwise the line is split on whitespace and operator delimiters
        (kept as tokens) and each piece is classified.
        """
        if line.strip().startswith("#"):
            return [Token(line, TokenClass.COMMENT)]

        tokens: list[Token] = []
        for piece in self._delimiters.split(line):
            if piece:
                tokens.extend(self._classify(piece))
        return tokens

    def highlight_lines(self, lines: Iterable[str]) -> list[list[Token]]:
        return [self.highlight(line) for line in lines]

    def highlight_document(self, text: str) -> list[list[Token]]:
        """Tokenize every line of a script (split on ``\\n`` only)."""
        return self.highlight_lines(text.split("\n"))

    def _classify(self, piece: str) -> list[Token]:
        grammar = self.grammar

        if piece in grammar.keywords:
            return [Token(piece, TokenClass.KEYWORD)]
        if piece in grammar.operators:
            return [Token(piece, TokenClass.OPERATOR)]
        if piece in grammar.functions:
            return [Token(piece, TokenClass.FUNCTION)]

        namespace, dot, rest = piece.partition(".")
        if dot and namespace in grammar.namespaces:
            tokens = [Token(namespace, TokenClass.NAMESPACE), Token(dot, TokenClass.PUNCTUATION)]
            if rest:
                tokens.append(Token(rest, TokenClass.FIELD))
            return tokens

        if len(piece) >= 2 and piece.startswith('"') and piece.endswith('"'):
            return [Token(piece, TokenClass.STRING)]
        if is_numeric_text(piece):
            return [Token(piece, TokenClass.NUMBER)]

        return [Token(piece, TokenClass.TEXT)]


_default_highlighter = Highlighter(BASIC_GRAMMAR)


def highlight(line: str, grammar: Grammar | None = None) -> list[Token]:
    """
    Tokenize one line with the given grammar (basic grammar by default).

    Example:
        >>> [t.text for t in highlight('  AND user.tier == "gold"')]
        ['  ', 'AND', ' ', 'user', '.', 'tier', ' ', '==', ' ', '"gold"']
    """
    if grammar is None:
        return _default_highlighter.highlight(line)
    return Highlighter(grammar).highlight(line)
