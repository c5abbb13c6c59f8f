"""
Knowledge Base Models — the ASPIC+ theory

Implements the knowledge side of an argumentation system as described in:
- Modgil & Prakken (2013): A general account of argumentation with preferences
- Prakken (2010): An abstract framework for argumentation with structured arguments

A knowledge base holds axioms (firm, unattackable), ordinary premises
(attackable by undermining), strict and defeasible rules, a contrariness
relation and two preorders: one over defeasible rules and one over
ordinary premises.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from aspic_server.errors import MalformedKnowledgeBase

logger = logging.getLogger("aspic.theory")


@dataclass(frozen=True)
class Formula:
    """
    A literal of the logical language, optionally with term arguments.

    Negation is syntactic: `-p` is Formula("p", negated=True) and
    negating it again yields `p`.
    """
    predicate: str
    args: tuple[str, ...] = ()
    negated: bool = False

    def negate(self) -> Formula:
        return Formula(self.predicate, self.args, not self.negated)

    def __str__(self) -> str:
        sign = "-" if self.negated else ""
        if self.args:
            return f"{sign}{self.predicate}({', '.join(self.args)})"
        return f"{sign}{self.predicate}"

    def __repr__(self) -> str:
        return f"Formula({self})"


class RuleKind(str, Enum):
    STRICT = "strict"
    DEFEASIBLE = "defeasible"


@dataclass(frozen=True)
class Rule:
    """An inference rule `antecedents -> consequent` (strict) or `=>` (defeasible)."""
    name: str
    antecedents: tuple[Formula, ...]
    consequent: Formula
    kind: RuleKind = RuleKind.DEFEASIBLE

    @property
    def is_defeasible(self) -> bool:
        return self.kind == RuleKind.DEFEASIBLE

    @property
    def name_formula(self) -> Formula:
        """The atom naming this rule; undercutters conclude its contrary."""
        return Formula(self.name)

    def __str__(self) -> str:
        arrow = "=>" if self.is_defeasible else "->"
        body = ", ".join(str(a) for a in self.antecedents)
        head = f"{body} {arrow}" if body else arrow
        return f"[{self.name}] {head} {self.consequent}"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "antecedents": [str(a) for a in self.antecedents],
            "consequent": str(self.consequent),
        }


class PreferenceOrder:
    """
    A preorder over named elements (rule names or rendered premises).

    Declared as (lower, higher, strict) triples: `x < y` is (x, y, True),
    `x <= y` is (x, y, False) and `x = y` declares both directions.
    The relation used for comparison is the reflexive-transitive closure
    of all declared `<=` edges.
    """

    def __init__(self, pairs: Iterable[tuple[str, str, bool]] = ()):
        self.declared: tuple[tuple[str, str, bool], ...] = tuple(pairs)
        edges: dict[str, set[str]] = defaultdict(set)
        for lower, higher, _ in self.declared:
            edges[lower].add(higher)
            edges.setdefault(higher, set())
        self._above = {x: self._reachable(edges, x) for x in edges}

    @staticmethod
    def _reachable(edges: dict[str, set[str]], start: str) -> frozenset[str]:
        seen = {start}
        stack = [start]
        while stack:
            for nxt in edges.get(stack.pop(), ()):
                if nxt not in seen:
                    seen.add(nxt)
                    stack.append(nxt)
        return frozenset(seen)

    @property
    def elements(self) -> frozenset[str]:
        return frozenset(self._above)

    def at_most(self, x: str, y: str) -> bool:
        """True if y is at least as preferred as x."""
        return x == y or y in self._above.get(x, ())

    def strictly_less(self, x: str, y: str) -> bool:
        """True if y is strictly preferred to x."""
        return self.at_most(x, y) and not self.at_most(y, x)

    def cycles(self) -> list[tuple[str, str]]:
        """Declared strict pairs that the closure also reverses."""
        return [
            (lower, higher)
            for lower, higher, strict in self.declared
            if strict and self.at_most(higher, lower)
        ]

    def cycle_errors(self, kind: str) -> list[str]:
        return [
            f"'{lower} < {higher}' contradicts the other {kind} preferences"
            for lower, higher in self.cycles()
        ]

    def to_list(self) -> list[dict]:
        return [
            {"lower": lower, "higher": higher, "strict": strict}
            for lower, higher, strict in self.declared
        ]

    def __bool__(self) -> bool:
        return bool(self.declared)

    def __repr__(self) -> str:
        return f"PreferenceOrder({len(self.declared)} pairs)"


def duplicate_rule_errors(rules: Iterable[Rule]) -> list[str]:
    """One message per repeated rule name, strict and defeasible alike."""
    errors: list[str] = []
    seen: set[str] = set()
    for r in rules:
        if r.name in seen:
            errors.append(f"duplicate rule name '{r.name}'")
        seen.add(r.name)
    return errors


@dataclass
class KnowledgeBase:
    """
    An argumentation theory: knowledge, rules, contrariness and preferences.

    `contraries[y]` is the set of formulas that attack y. Classical
    negation is built in and symmetric; it need not be listed.
    """
    axioms: tuple[Formula, ...] = ()
    premises: tuple[Formula, ...] = ()
    strict_rules: tuple[Rule, ...] = ()
    defeasible_rules: tuple[Rule, ...] = ()
    contraries: dict[Formula, frozenset[Formula]] = field(default_factory=dict)
    rule_preferences: PreferenceOrder = field(default_factory=PreferenceOrder)
    premise_preferences: PreferenceOrder = field(default_factory=PreferenceOrder)

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self.strict_rules + self.defeasible_rules

    def rule(self, name: str) -> Optional[Rule]:
        for r in self.rules:
            if r.name == name:
                return r
        return None

    def is_contrary(self, attacker: Formula, target: Formula) -> bool:
        """True if `attacker` is a contrary or contradictory of `target`."""
        if attacker == target.negate():
            return True
        return attacker in self.contraries.get(target, ())

    # ── Validation ──────────────────────────────────────────────

    def validate(self) -> KnowledgeBase:
        """
        Check structural well-formedness. Every problem found is reported,
        grouped by the input field it comes from.

        Raises MalformedKnowledgeBase if anything is wrong.
        """
        problems: dict[str, list[str]] = defaultdict(list)

        overlap = set(self.axioms) & set(self.premises)
        if overlap:
            listed = ", ".join(sorted(str(f) for f in overlap))
            problems["premises"].append(f"formulas are both axioms and premises: {listed}")

        problems["inference_rules"].extend(duplicate_rule_errors(self.rules))

        producible = set(self.axioms) | set(self.premises)
        producible.update(r.consequent for r in self.rules)
        for r in self.rules:
            for antecedent in r.antecedents:
                if antecedent not in producible:
                    problems["inference_rules"].append(
                        f"rule '{r.name}' uses '{antecedent}' which no axiom, "
                        f"premise or rule can produce"
                    )

        defeasible_names = {r.name for r in self.defeasible_rules}
        for name in sorted(self.rule_preferences.elements - defeasible_names):
            problems["rule_preferences"].append(f"unknown defeasible rule '{name}'")
        problems["rule_preferences"].extend(self.rule_preferences.cycle_errors("rule"))

        premise_names = {str(p) for p in self.premises}
        for name in sorted(self.premise_preferences.elements - premise_names):
            problems["knowledge_preferences"].append(f"unknown ordinary premise '{name}'")
        problems["knowledge_preferences"].extend(
            self.premise_preferences.cycle_errors("knowledge")
        )

        problems = {k: v for k, v in problems.items() if v}
        if problems:
            logger.info(f"Knowledge base rejected: {sorted(problems)}")
            raise MalformedKnowledgeBase(
                {k: "; ".join(v) for k, v in problems.items()}
            )
        return self

    # ── Serialization ───────────────────────────────────────────

    def contrary_pairs(self) -> list[tuple[Formula, Formula]]:
        """(attacker, target) pairs in a stable order."""
        pairs = [
            (attacker, target)
            for target, attackers in self.contraries.items()
            for attacker in attackers
        ]
        return sorted(pairs, key=lambda p: (str(p[1]), str(p[0])))

    def to_dict(self) -> dict:
        return {
            "axioms": [str(f) for f in self.axioms],
            "premises": [str(f) for f in self.premises],
            "strict_rules": [r.to_dict() for r in self.strict_rules],
            "defeasible_rules": [r.to_dict() for r in self.defeasible_rules],
            "contraries": [
                {"contrary": str(a), "of": str(t)} for a, t in self.contrary_pairs()
            ],
            "rule_preferences": self.rule_preferences.to_list(),
            "knowledge_preferences": self.premise_preferences.to_list(),
        }
