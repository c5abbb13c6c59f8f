"""
Attack Calculator — rebut, undermine, undercut and preference-based defeat

For attacker A and every sub-argument S of target B:
- undermine: S is an ordinary premise and A concludes a contrary of it
- rebut:     S ends in a defeasible rule and A concludes a contrary of
             S's conclusion
- undercut:  S ends in a defeasible rule r and A concludes a contrary
             of r's name

Undercuts always succeed as defeats. Rebuts and undermines succeed
unless S is strictly preferred to A (Modgil & Prakken 2013, Def. 3.12),
so ties and incomparable arguments favour the attacker.

Argument strength lifts the rule and premise preorders to sets
(elitist or democratic) and then to arguments (weakest or last link).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from aspic_server.theory.models import KnowledgeBase, PreferenceOrder

from .models import Argument, Attack, AttackType

logger = logging.getLogger("aspic.argumentation.attacks")


class LinkPrinciple(str, Enum):
    """Which rules and premises of an argument determine its strength."""
    WEAKEST = "weakest"
    LAST = "last"


class SetOrdering(str, Enum):
    """How a preorder over elements is lifted to sets of elements."""
    ELITIST = "elitist"
    DEMOCRATIC = "democratic"


@dataclass(frozen=True)
class PreferenceConfig:
    link: LinkPrinciple = LinkPrinciple.WEAKEST
    ordering: SetOrdering = SetOrdering.ELITIST


class ArgumentOrdering:
    """Strict argument ordering ≺ induced by the knowledge base preferences."""

    def __init__(self, kb: KnowledgeBase, config: Optional[PreferenceConfig] = None):
        self.kb = kb
        self.config = config or PreferenceConfig()

    def set_less(
        self,
        gamma: frozenset[str],
        delta: frozenset[str],
        order: PreferenceOrder,
    ) -> bool:
        """
        Γ ◁ Δ: the set Γ is strictly worse than Δ.

        The empty set is never worse than anything, and any non-empty set
        is worse than the empty set.
        """
        if not gamma:
            return False
        if not delta:
            return True
        if self.config.ordering == SetOrdering.ELITIST:
            return any(
                all(order.strictly_less(x, y) for y in delta) for x in gamma
            )
        return all(
            any(order.strictly_less(x, y) for y in delta) for x in gamma
        )

    def _premises_less(self, a: Argument, b: Argument) -> bool:
        return self.set_less(
            frozenset(str(p) for p in a.premises),
            frozenset(str(p) for p in b.premises),
            self.kb.premise_preferences,
        )

    def _rules_less(self, a: frozenset[str], b: frozenset[str]) -> bool:
        return self.set_less(a, b, self.kb.rule_preferences)

    def strictly_weaker(self, a: Argument, b: Argument) -> bool:
        """True if a ≺ b."""
        if self.config.link == LinkPrinciple.LAST:
            if not a.last_defeasible_rules and not b.last_defeasible_rules:
                return self._premises_less(a, b)
            return self._rules_less(a.last_defeasible_rules, b.last_defeasible_rules)

        if a.is_strict and b.is_strict:
            return self._premises_less(a, b)
        if a.is_firm and b.is_firm:
            return self._rules_less(a.defeasible_rules, b.defeasible_rules)
        return (
            self._premises_less(a, b)
            and self._rules_less(a.defeasible_rules, b.defeasible_rules)
        )


class AttackCalculator:
    """Computes attacks and defeats over one argument arena."""

    def __init__(
        self,
        kb: KnowledgeBase,
        arguments: Sequence[Argument],
        config: Optional[PreferenceConfig] = None,
    ):
        self.kb = kb
        self.arguments = tuple(arguments)
        self.ordering = ArgumentOrdering(kb, config)

    def direct_attacks(self, attacker: Argument, sub: Argument) -> list[AttackType]:
        """Attack kinds `attacker` has on `sub` considered as the attacked part."""
        kinds: list[AttackType] = []
        conclusion = attacker.conclusion
        if sub.is_premise and self.kb.is_contrary(conclusion, sub.conclusion):
            kinds.append(AttackType.UNDERMINE)
        rule = sub.top_rule
        if rule is not None and rule.is_defeasible:
            if self.kb.is_contrary(conclusion, sub.conclusion):
                kinds.append(AttackType.REBUT)
            if self.kb.is_contrary(conclusion, rule.name_formula):
                kinds.append(AttackType.UNDERCUT)
        return kinds

    def attacks(self) -> list[Attack]:
        found: list[Attack] = []
        for attacker in self.arguments:
            direct = {}
            for sub in self.arguments:
                kinds = self.direct_attacks(attacker, sub)
                if kinds:
                    direct[sub.id] = kinds
            if not direct:
                continue
            for target in self.arguments:
                for sub_id in sorted(direct.keys() & target.subargument_ids):
                    for kind in direct[sub_id]:
                        found.append(Attack(attacker.id, target.id, kind, sub_id))
        return found

    def is_defeat(self, attack: Attack) -> bool:
        if attack.attack_type == AttackType.UNDERCUT:
            return True
        attacker = self.arguments[attack.attacker]
        sub = self.arguments[attack.sub_argument]
        return not self.ordering.strictly_weaker(attacker, sub)

    def defeats(self) -> list[Attack]:
        attacks = self.attacks()
        defeats = [a for a in attacks if self.is_defeat(a)]
        logger.info(
            f"{len(attacks)} attacks, {len(defeats)} defeats over "
            f"{len(self.arguments)} arguments"
        )
        return defeats


def compute_attacks(arguments: Sequence[Argument], kb: KnowledgeBase) -> list[Attack]:
    """Every attack, successful or not."""
    return AttackCalculator(kb, arguments).attacks()


def compute_defeats(
    arguments: Sequence[Argument],
    kb: KnowledgeBase,
    config: Optional[PreferenceConfig] = None,
) -> list[Attack]:
    """Attacks that succeed under the given preference configuration."""
    return AttackCalculator(kb, arguments, config).defeats()
