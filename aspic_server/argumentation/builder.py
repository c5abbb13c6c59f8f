"""
Argument Builder — closure of structured arguments over a knowledge base

Algorithm (semi-naive fixed point):
    1. Every axiom and every ordinary premise becomes a base argument.
    2. Each round, every rule is applied to every tuple of existing
       arguments whose conclusions match its antecedents, skipping tuples
       made only of arguments that an earlier round already combined.
    3. A candidate is kept when its structural key (top rule + sub-argument
       ids) is new and it is not circular, i.e. its conclusion does not
       already appear below it.
    4. Stop when a round adds nothing.

Because every branch of an argument carries distinct conclusions, the
closure is finite. The limits still guard against combinatorial
explosion on adversarial theories.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import product
from typing import Optional

from aspic_server.errors import ConstructionOverflow
from aspic_server.theory.models import Formula, KnowledgeBase, Rule

from .models import Argument

logger = logging.getLogger("aspic.argumentation.builder")


@dataclass(frozen=True)
class ConstructionLimits:
    """Safety budget for argument construction."""
    max_arguments: int = 10_000
    max_depth: int = 50


class ArgumentBuilder:
    """
    Builds the argument arena for one knowledge base.

    The identity table and conclusion index are local to one build and
    discarded afterwards.
    """

    def __init__(self, kb: KnowledgeBase, limits: Optional[ConstructionLimits] = None):
        self.kb = kb
        self.limits = limits or ConstructionLimits()
        self._arena: list[Argument] = []
        self._index: dict[tuple, int] = {}
        self._by_conclusion: dict[Formula, list[int]] = {}
        self._below: list[frozenset[Formula]] = []

    def build(self) -> tuple[Argument, ...]:
        for formula in self.kb.axioms:
            self._add_base(formula, is_axiom=True)
        for formula in self.kb.premises:
            self._add_base(formula, is_axiom=False)

        rounds = 0
        fresh_from = 0
        while True:
            rounds += 1
            boundary = len(self._arena)
            added = 0
            for rule in self.kb.rules:
                added += self._apply(rule, fresh_from)
            fresh_from = boundary
            if not added:
                break

        logger.info(
            f"Built {len(self._arena)} arguments in {rounds} rounds "
            f"({len(self.kb.axioms)} axioms, {len(self.kb.premises)} premises, "
            f"{len(self.kb.rules)} rules)"
        )
        return tuple(self._arena)

    # ── Internals ───────────────────────────────────────────────

    def _apply(self, rule: Rule, fresh_from: int) -> int:
        candidates = [list(self._by_conclusion.get(a, ())) for a in rule.antecedents]
        added = 0
        for combo in product(*candidates):
            if combo and max(combo) < fresh_from:
                continue
            if not combo and fresh_from > 0:
                continue
            if ("rule", rule.name, combo) in self._index:
                continue
            if any(rule.consequent in self._below[i] for i in combo):
                continue
            self._add_derived(rule, combo)
            added += 1
        return added

    def _check_budget(self, depth: int) -> None:
        if len(self._arena) >= self.limits.max_arguments:
            raise ConstructionOverflow(
                f"More than {self.limits.max_arguments} arguments; "
                f"raise the construction budget or simplify the theory",
                built=len(self._arena),
            )
        if depth > self.limits.max_depth:
            raise ConstructionOverflow(
                f"Argument depth {depth} exceeds the limit of {self.limits.max_depth}",
                built=len(self._arena),
            )

    def _store(self, arg: Argument) -> Argument:
        self._arena.append(arg)
        self._index[arg.key] = arg.id
        self._by_conclusion.setdefault(arg.conclusion, []).append(arg.id)
        below = {arg.conclusion}
        for i in arg.sub_arguments:
            below |= self._below[i]
        self._below.append(frozenset(below))
        return arg

    def _add_base(self, formula: Formula, is_axiom: bool) -> None:
        self._check_budget(0)
        arg_id = len(self._arena)
        self._store(Argument(
            id=arg_id,
            conclusion=formula,
            is_axiom=is_axiom,
            premises=frozenset() if is_axiom else frozenset({formula}),
            subargument_ids=frozenset({arg_id}),
        ))

    def _add_derived(self, rule: Rule, combo: tuple[int, ...]) -> None:
        subs = [self._arena[i] for i in combo]
        depth = 1 + max((s.depth for s in subs), default=0)
        self._check_budget(depth)

        arg_id = len(self._arena)
        premises: set[Formula] = set()
        defeasible: set[str] = set()
        last: set[str] = set()
        ids = {arg_id}
        for s in subs:
            premises |= s.premises
            defeasible |= s.defeasible_rules
            last |= s.last_defeasible_rules
            ids |= s.subargument_ids
        if rule.is_defeasible:
            defeasible.add(rule.name)
            last = {rule.name}

        arg = self._store(Argument(
            id=arg_id,
            conclusion=rule.consequent,
            sub_arguments=combo,
            top_rule=rule,
            premises=frozenset(premises),
            defeasible_rules=frozenset(defeasible),
            last_defeasible_rules=frozenset(last),
            subargument_ids=frozenset(ids),
            depth=depth,
        ))
        logger.debug(f"New argument {arg.describe()}")


def build_arguments(
    kb: KnowledgeBase,
    limits: Optional[ConstructionLimits] = None,
) -> tuple[Argument, ...]:
    """Construct every argument derivable from a validated knowledge base."""
    return ArgumentBuilder(kb, limits).build()
