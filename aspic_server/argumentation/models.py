"""
Argumentation Framework Models — structured and abstract

Implements the formal structures from:
- Dung (1995): On the acceptability of arguments
- Modgil & Prakken (2013): ASPIC+ structured arguments and attacks

Structured arguments live in an arena indexed by their construction
order. Sub-arguments are referenced by id, so arguments share
sub-structure without owning it. The abstract framework only sees those
ids plus the defeat edges between them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Sequence

from aspic_server.errors import UnsatisfiableFramework
from aspic_server.theory.models import Formula, Rule


class Semantics(str, Enum):
    """Argumentation semantics for extension computation."""
    GROUNDED = "grounded"
    ADMISSIBLE = "admissible"
    COMPLETE = "complete"
    PREFERRED = "preferred"
    STABLE = "stable"


class AttackType(str, Enum):
    """Classification of attack relations between arguments."""
    REBUT = "rebut"          # Contrary conclusion of a defeasible inference
    UNDERCUT = "undercut"    # Denies applicability of a defeasible rule
    UNDERMINE = "undermine"  # Contrary of an ordinary premise


@dataclass(frozen=True)
class Argument:
    """
    A structured argument.

    Base arguments (axioms and ordinary premises) have no top rule and no
    sub-arguments. Rule arguments apply `top_rule` to the sub-arguments,
    one per antecedent, in antecedent order. The remaining fields are
    derived once by the builder and never change.
    """
    id: int
    conclusion: Formula
    sub_arguments: tuple[int, ...] = ()
    top_rule: Optional[Rule] = None
    is_axiom: bool = False
    premises: frozenset[Formula] = frozenset()
    defeasible_rules: frozenset[str] = frozenset()
    last_defeasible_rules: frozenset[str] = frozenset()
    subargument_ids: frozenset[int] = frozenset()
    depth: int = 0

    @property
    def label(self) -> str:
        return f"A{self.id + 1}"

    @property
    def key(self) -> tuple:
        """Structural identity used for deduplication."""
        if self.top_rule is None:
            return ("axiom" if self.is_axiom else "premise", self.conclusion)
        return ("rule", self.top_rule.name, self.sub_arguments)

    @property
    def is_premise(self) -> bool:
        """True for a bare ordinary-premise argument."""
        return self.top_rule is None and not self.is_axiom

    @property
    def is_strict(self) -> bool:
        return not self.defeasible_rules

    @property
    def is_firm(self) -> bool:
        return not self.premises

    def describe(self) -> str:
        if self.top_rule is None:
            return f"{self.label}: {self.conclusion}"
        subs = ", ".join(f"A{i + 1}" for i in self.sub_arguments)
        arrow = "=>" if self.top_rule.is_defeasible else "->"
        head = f"{subs} {arrow}" if subs else arrow
        return f"{self.label}: {head} {self.conclusion}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "conclusion": str(self.conclusion),
            "top_rule": self.top_rule.name if self.top_rule else None,
            "sub_arguments": [f"A{i + 1}" for i in self.sub_arguments],
            "premises": sorted(str(p) for p in self.premises),
            "defeasible_rules": sorted(self.defeasible_rules),
            "is_axiom": self.is_axiom,
            "description": self.describe(),
        }

    def __repr__(self):
        return f"Arg({self.describe()})"


@dataclass(frozen=True)
class Attack:
    """
    An attack from `attacker` on `target`.

    `sub_argument` is the part of the target actually hit; for abstract
    frameworks read from ICCMA files it is the target itself and the
    attack type is unknown.
    """
    attacker: int
    target: int
    attack_type: Optional[AttackType] = None
    sub_argument: Optional[int] = None

    @property
    def edge(self) -> tuple[int, int]:
        return (self.attacker, self.target)

    def to_dict(self) -> dict:
        sub = self.target if self.sub_argument is None else self.sub_argument
        return {
            "attacker": f"A{self.attacker + 1}",
            "target": f"A{self.target + 1}",
            "type": self.attack_type.value if self.attack_type else None,
            "sub_argument": f"A{sub + 1}",
        }


@dataclass
class ArgumentationFramework:
    """
    Dung's Abstract Argumentation Framework (AAF).

    AF = (Args, Defeats) where Args = {0, ..., size-1} and the defeat
    relation comes from `attacks`. Several attack records may share the
    same (attacker, target) edge; adjacency maps hold each edge once.
    `arguments`, when present, describes each node for rendering.
    """
    size: int = 0
    attacks: tuple[Attack, ...] = ()
    arguments: tuple[Argument, ...] = ()
    _attackers: dict[int, frozenset[int]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _targets: dict[int, frozenset[int]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self):
        self.attacks = tuple(self.attacks)
        self.arguments = tuple(self.arguments)
        if self.arguments and len(self.arguments) != self.size:
            raise UnsatisfiableFramework(
                f"{len(self.arguments)} arguments described for {self.size} nodes"
            )
        for i, arg in enumerate(self.arguments):
            if arg.id != i:
                raise UnsatisfiableFramework(f"Argument {arg.label} stored at position {i}")

        attackers: dict[int, set[int]] = {i: set() for i in range(self.size)}
        targets: dict[int, set[int]] = {i: set() for i in range(self.size)}
        for attack in self.attacks:
            if not (0 <= attack.attacker < self.size and 0 <= attack.target < self.size):
                raise UnsatisfiableFramework(
                    f"Attack {attack.edge} refers to a node outside 0..{self.size - 1}"
                )
            attackers[attack.target].add(attack.attacker)
            targets[attack.attacker].add(attack.target)
        self._attackers = {k: frozenset(v) for k, v in attackers.items()}
        self._targets = {k: frozenset(v) for k, v in targets.items()}

    @classmethod
    def from_edges(cls, size: int, edges: Iterable[tuple[int, int]]) -> ArgumentationFramework:
        """Build a purely abstract framework from 0-based edges."""
        return cls(size=size, attacks=tuple(Attack(a, b) for a, b in edges))

    @property
    def edges(self) -> list[tuple[int, int]]:
        """Distinct edges in order of first appearance."""
        return list(dict.fromkeys(a.edge for a in self.attacks))

    def get_attackers(self, arg_id: int) -> frozenset[int]:
        """Get all arguments that attack the given argument."""
        return self._attackers[arg_id]

    def get_attacked(self, arg_id: int) -> frozenset[int]:
        """Get all arguments attacked by the given argument."""
        return self._targets[arg_id]

    def is_attacked_by(self, arg_id: int, candidate: set[int] | frozenset[int]) -> bool:
        """Check if arg_id is attacked by any member of candidate set."""
        return not self._attackers[arg_id].isdisjoint(candidate)

    def is_defended_by(self, arg_id: int, candidate: set[int] | frozenset[int]) -> bool:
        """
        Check if candidate defends arg_id.
        arg_id is defended by S if for every attacker of arg_id,
        there exists a member of S that attacks the attacker.
        """
        return all(
            self.is_attacked_by(attacker, candidate)
            for attacker in self._attackers[arg_id]
        )

    def label(self, arg_id: int) -> str:
        return f"A{arg_id + 1}"

    def to_dict(self) -> dict:
        return {
            "arguments": [a.to_dict() for a in self.arguments]
            if self.arguments
            else [{"id": i, "label": self.label(i)} for i in range(self.size)],
            "attacks": [a.to_dict() for a in self.attacks],
            "stats": {
                "num_arguments": self.size,
                "num_attacks": len(self.attacks),
                "num_edges": len(self.edges),
            },
        }


@dataclass(frozen=True)
class Extension:
    """
    A set of arguments that are collectively acceptable under
    a given semantics.

    The grounded extension is unique and represents the most
    cautious/skeptical position. Preferred extensions are the maximal
    admissible sets. Stable extensions attack every non-member.
    """
    arguments: frozenset[int] = frozenset()
    semantics: Semantics = Semantics.GROUNDED

    @property
    def size(self) -> int:
        return len(self.arguments)

    @property
    def is_empty(self) -> bool:
        return not self.arguments

    @property
    def labels(self) -> list[str]:
        return [f"A{i + 1}" for i in sorted(self.arguments)]


def to_abstract_framework(
    arguments: Sequence[Argument],
    defeats: Iterable[Attack],
) -> ArgumentationFramework:
    """Package an argument arena and its defeats as an abstract framework."""
    return ArgumentationFramework(
        size=len(arguments),
        attacks=tuple(defeats),
        arguments=tuple(arguments),
    )


@dataclass
class ResolutionResult:
    """Extensions of a framework plus the acceptance status they imply."""
    semantics: Semantics
    extensions: list[Extension]
    skeptical: frozenset[int] = frozenset()   # in every extension
    credulous: frozenset[int] = frozenset()   # in at least one extension
    resolution_time_ms: float = 0.0

    def to_dict(self) -> dict:
        return {
            "semantics": self.semantics.value,
            "extensions": [e.labels for e in self.extensions],
            "skeptically_accepted": [f"A{i + 1}" for i in sorted(self.skeptical)],
            "credulously_accepted": [f"A{i + 1}" for i in sorted(self.credulous)],
            "resolution_time_ms": self.resolution_time_ms,
        }
