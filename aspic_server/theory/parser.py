"""
Knowledge Base Parser — textual grammar for the six input fields

Each request carries six free-form text blocks. This module turns them
into a validated KnowledgeBase.

Grammar (whitespace-insensitive, `#` starts a comment line):

    identifier  ::= [A-Za-z][A-Za-z0-9_]*
    term        ::= identifier | number | identifier '(' term (',' term)* ')'
    formula     ::= ('-' | '~' | '¬')* identifier ( '(' term (',' term)* ')' )?
    formula_set ::= formula ( (',' | ';' | newline) formula )*
    rule        ::= ( '[' identifier ']' )? formula (',' formula)* ('->' | '=>') formula
    contrary    ::= formula '^' formula       left is a contrary of right
                  | formula '~' formula       left and right contradict each other
    preference  ::= item (op item)+           op ::= '<' | '<=' | '>' | '>=' | '='

Rules are separated by ';' or newlines. `->` is strict, `=>` defeasible.
Unnamed rules get `_s1`, `_d1`, ...; those names are not valid
identifiers, so unnamed rules cannot be undercut.

Each field is parsed on its own so that a caller learns about every
broken field at once.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Callable, Optional

from aspic_server.errors import MalformedKnowledgeBase
from aspic_server.theory.models import (
    Formula,
    KnowledgeBase,
    PreferenceOrder,
    Rule,
    RuleKind,
    duplicate_rule_errors,
)

logger = logging.getLogger("aspic.theory.parser")

IDENTIFIER = re.compile(r"[A-Za-z][A-Za-z0-9_]*")
NUMBER = re.compile(r"[0-9]+")
RULE_NAME = re.compile(r"^\[\s*([A-Za-z][A-Za-z0-9_]*)\s*\]")
PREFERENCE_OP = re.compile(r"(<=|>=|<|>|=)")
NEGATIONS = "-~¬"


# ── Lexical helpers ──────────────────────────────────────────────

def _strip_comments(text: str) -> str:
    return "\n".join(
        line for line in text.splitlines() if not line.strip().startswith("#")
    )


def _split_top(text: str, separators: str) -> list[str]:
    """Split on separator characters that are not nested in parentheses."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for c in text:
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
            if depth < 0:
                raise ValueError(f"Unbalanced ')' in {text.strip()!r}")
        if depth == 0 and c in separators:
            parts.append("".join(current))
            current = []
        else:
            current.append(c)
    if depth != 0:
        raise ValueError(f"Unbalanced '(' in {text.strip()!r}")
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def _items(text: str, separators: str) -> list[str]:
    return _split_top(_strip_comments(text), separators)


# ── Formulas ─────────────────────────────────────────────────────

def _parse_term(s: str) -> str:
    s = s.strip()
    if NUMBER.fullmatch(s):
        return s
    m = IDENTIFIER.match(s)
    if not m:
        raise ValueError(f"Invalid term {s!r}")
    rest = s[m.end():].strip()
    if not rest:
        return m.group(0)
    if not (rest.startswith("(") and rest.endswith(")")):
        raise ValueError(f"Invalid term {s!r}")
    inner = _split_top(rest[1:-1], ",")
    if not inner:
        raise ValueError(f"Empty argument list in {s!r}")
    return f"{m.group(0)}({', '.join(_parse_term(t) for t in inner)})"


def parse_formula(text: str) -> Formula:
    """
    Parse a single literal.

    Examples:
        >>> parse_formula("-flies(tweety)")
        Formula(-flies(tweety))
    """
    s = text.strip()
    if not s:
        raise ValueError("Empty formula")

    negations = 0
    while s and s[0] in NEGATIONS:
        negations += 1
        s = s[1:].lstrip()

    m = IDENTIFIER.match(s)
    if not m:
        raise ValueError(f"Invalid formula {text.strip()!r}")
    predicate = m.group(0)
    rest = s[m.end():].strip()

    args: tuple[str, ...] = ()
    if rest:
        if not (rest.startswith("(") and rest.endswith(")")):
            raise ValueError(f"Unexpected {rest!r} in formula {text.strip()!r}")
        inner = _split_top(rest[1:-1], ",")
        if not inner:
            raise ValueError(f"Empty argument list in {text.strip()!r}")
        args = tuple(_parse_term(t) for t in inner)

    return Formula(predicate, args, negations % 2 == 1)


def parse_formula_set(text: str) -> tuple[Formula, ...]:
    """Parse axioms or premises. Duplicates are dropped, order is kept."""
    return tuple(dict.fromkeys(parse_formula(item) for item in _items(text, ",;\n")))


# ── Rules ────────────────────────────────────────────────────────

def _parse_rule(text: str) -> tuple[Optional[str], RuleKind, tuple[Formula, ...], Formula]:
    s = text.strip()
    name = None
    m = RULE_NAME.match(s)
    if m:
        name = m.group(1)
        s = s[m.end():].strip()

    strict_at = s.find("->")
    defeasible_at = s.find("=>")
    if strict_at < 0 and defeasible_at < 0:
        raise ValueError(f"Rule {text.strip()!r} has no '->' or '=>'")
    if strict_at >= 0 and defeasible_at >= 0:
        raise ValueError(f"Rule {text.strip()!r} mixes '->' and '=>'")

    at = strict_at if strict_at >= 0 else defeasible_at
    kind = RuleKind.STRICT if strict_at >= 0 else RuleKind.DEFEASIBLE
    body, head = s[:at], s[at + 2:]
    if not head.strip():
        raise ValueError(f"Rule {text.strip()!r} has no conclusion")

    antecedents = tuple(parse_formula(a) for a in _split_top(body, ","))
    return name, kind, antecedents, parse_formula(head)


def parse_inference_rules(text: str) -> tuple[tuple[Rule, ...], tuple[Rule, ...]]:
    """Parse rules; returns (strict_rules, defeasible_rules) in input order."""
    strict: list[Rule] = []
    defeasible: list[Rule] = []
    for item in _items(text, ";\n"):
        name, kind, antecedents, consequent = _parse_rule(item)
        bucket = strict if kind == RuleKind.STRICT else defeasible
        if name is None:
            name = f"_{'s' if kind == RuleKind.STRICT else 'd'}{len(bucket) + 1}"
        bucket.append(Rule(name, antecedents, consequent, kind))
    return tuple(strict), tuple(defeasible)


# ── Contraries ───────────────────────────────────────────────────

def _split_contrary(item: str) -> tuple[str, str, bool]:
    depth = 0
    for i, c in enumerate(item):
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
        elif depth == 0 and c == "^":
            return item[:i], item[i + 1:], False
    depth = 0
    for i, c in enumerate(item):
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
        elif depth == 0 and c == "~" and item[:i].strip().lstrip(NEGATIONS).strip():
            return item[:i], item[i + 1:], True
    raise ValueError(f"Contrary {item!r} needs '^' or '~' between two formulas")


def parse_contraries(text: str) -> dict[Formula, frozenset[Formula]]:
    """Parse contrary pairs into a target -> attackers map."""
    attackers: dict[Formula, set[Formula]] = defaultdict(set)
    for item in _items(text, ",;\n"):
        left, right, symmetric = _split_contrary(item)
        a, b = parse_formula(left), parse_formula(right)
        if a == b:
            raise ValueError(f"A formula cannot be contrary to itself: {item!r}")
        attackers[b].add(a)
        if symmetric:
            attackers[a].add(b)
    return {target: frozenset(found) for target, found in attackers.items()}


# ── Preferences ──────────────────────────────────────────────────

def _parse_preferences(text: str, element: Callable[[str], str]) -> PreferenceOrder:
    pairs: list[tuple[str, str, bool]] = []
    for item in _items(text, ",;\n"):
        tokens = PREFERENCE_OP.split(item)
        if len(tokens) < 3:
            raise ValueError(f"Preference {item!r} needs one of <, <=, >, >=, =")
        names = [element(t) for t in tokens[0::2]]
        for left, op, right in zip(names, tokens[1::2], names[1:]):
            if op == "<":
                pairs.append((left, right, True))
            elif op == "<=":
                pairs.append((left, right, False))
            elif op == ">":
                pairs.append((right, left, True))
            elif op == ">=":
                pairs.append((right, left, False))
            else:
                pairs.append((left, right, False))
                pairs.append((right, left, False))
    return PreferenceOrder(pairs)


def _rule_name(text: str) -> str:
    s = text.strip()
    if not IDENTIFIER.fullmatch(s):
        raise ValueError(f"Invalid rule name {s!r}")
    return s


def parse_rule_preferences(text: str) -> PreferenceOrder:
    return _parse_preferences(text, _rule_name)


def parse_knowledge_preferences(text: str) -> PreferenceOrder:
    return _parse_preferences(text, lambda t: str(parse_formula(t)))


FIELD_PARSERS: dict[str, Callable] = {
    "axioms": parse_formula_set,
    "premises": parse_formula_set,
    "inference_rules": parse_inference_rules,
    "contraries": parse_contraries,
    "rule_preferences": parse_rule_preferences,
    "knowledge_preferences": parse_knowledge_preferences,
}


FIELD_CHECKS: dict[str, Callable] = {
    "inference_rules": lambda rules: duplicate_rule_errors(rules[0] + rules[1]),
    "rule_preferences": lambda order: order.cycle_errors("rule"),
    "knowledge_preferences": lambda order: order.cycle_errors("knowledge"),
}


# ── Entry points ─────────────────────────────────────────────────

def validate_fields(**fields: Optional[str]) -> dict[str, str]:
    """
    Parse every supplied field independently and run the structural
    checks that need no other field (duplicate rule names, preference
    cycles).

    Fields passed as None are skipped. Returns a map from field name to
    error message; an empty map means every supplied field is valid.
    """
    errors: dict[str, str] = {}
    for name, text in fields.items():
        if name not in FIELD_PARSERS:
            raise TypeError(f"Unknown field {name!r}")
        if text is None:
            continue
        try:
            parsed = FIELD_PARSERS[name](text)
        except ValueError as e:
            errors[name] = str(e)
            continue
        problems = FIELD_CHECKS[name](parsed) if name in FIELD_CHECKS else []
        if problems:
            errors[name] = "; ".join(problems)
    return errors


def parse_knowledge_base(
    axioms: str = "",
    premises: str = "",
    knowledge_preferences: str = "",
    inference_rules: str = "",
    rule_preferences: str = "",
    contraries: str = "",
) -> KnowledgeBase:
    """
    Parse and validate the six text fields into a KnowledgeBase.

    Raises MalformedKnowledgeBase naming every invalid field. Checks that
    relate several fields (antecedents, axiom/premise overlap, preference
    elements) only run once every field is valid on its own.
    """
    errors = validate_fields(
        axioms=axioms,
        premises=premises,
        inference_rules=inference_rules,
        contraries=contraries,
        rule_preferences=rule_preferences,
        knowledge_preferences=knowledge_preferences,
    )
    if errors:
        logger.info(f"Parse failed for fields: {sorted(errors)}")
        raise MalformedKnowledgeBase(errors)

    strict, defeasible = parse_inference_rules(inference_rules)
    kb = KnowledgeBase(
        axioms=parse_formula_set(axioms),
        premises=parse_formula_set(premises),
        strict_rules=strict,
        defeasible_rules=defeasible,
        contraries=parse_contraries(contraries),
        rule_preferences=parse_rule_preferences(rule_preferences),
        premise_preferences=parse_knowledge_preferences(knowledge_preferences),
    )
    logger.debug(
        f"Parsed theory: {len(kb.axioms)} axioms, {len(kb.premises)} premises, "
        f"{len(strict)} strict / {len(defeasible)} defeasible rules"
    )
    return kb.validate()
