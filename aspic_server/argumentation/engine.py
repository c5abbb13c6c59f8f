"""
Argumentation Engine — Dung's Extension Computation

Implements the core algorithms from Dung (1995) for computing:
- Grounded extension (unique, most skeptical)
- Admissible sets (conflict-free and self-defending)
- Complete extensions (admissible, containing all they defend)
- Preferred extensions (maximal admissible)
- Stable extensions (conflict-free, attacking every outsider)

Computational complexity:
- Grounded: O(|Args|³) — polynomial fixpoint
- Everything else: exponential in the worst case

Admissible sets are enumerated by an explicit stack search over
in/out/undecided labellings. Arguments are decided in construction
order; a branch is cut as soon as the IN set is conflicting or some
attacker of an IN argument can no longer be counter-attacked. Every
leaf that survives is admissible. Complete, preferred and stable
extensions all contain the grounded extension, so their search starts
with it labelled IN and its victims labelled OUT.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from aspic_server.errors import SearchOverflow, UnsatisfiableFramework

from .models import (
    ArgumentationFramework,
    Extension,
    ResolutionResult,
    Semantics,
)

logger = logging.getLogger("aspic.argumentation")


class ArgumentationEngine:
    """
    Core engine for computing argumentation extensions.

    Follows Dung's characteristic function F:
        F(S) = { a ∈ Args | S defends a }

    The grounded extension is the least fixpoint of F.
    """

    def __init__(self, max_states: int = 100_000):
        self.max_states = max_states

    # ── Grounded Extension ──────────────────────────────────────

    def grounded_extension(self, af: ArgumentationFramework) -> Extension:
        """
        Compute the grounded extension via iterative fixpoint.

        Algorithm:
            S₀ = ∅
            Sₙ₊₁ = F(Sₙ) = { a | Sₙ defends a }
            Stop when Sₙ₊₁ = Sₙ
        """
        current: frozenset[int] = frozenset()
        while True:
            next_set = frozenset(
                a for a in range(af.size) if af.is_defended_by(a, current)
            )
            if next_set == current:
                break
            current = next_set
        return Extension(arguments=current, semantics=Semantics.GROUNDED)

    # ── Set Properties ──────────────────────────────────────────

    def is_conflict_free(self, af: ArgumentationFramework,
                         candidate: set[int] | frozenset[int]) -> bool:
        """Check if no argument in candidate attacks another in candidate."""
        return all(af.get_attacked(a).isdisjoint(candidate) for a in candidate)

    def defends(self, af: ArgumentationFramework,
                candidate: set[int] | frozenset[int]) -> frozenset[int]:
        """F(S): every argument the candidate defends."""
        return frozenset(a for a in range(af.size) if af.is_defended_by(a, candidate))

    def is_admissible(self, af: ArgumentationFramework,
                      candidate: set[int] | frozenset[int]) -> bool:
        """
        S is admissible iff:
        1. S is conflict-free
        2. S defends all its members
        """
        if not self.is_conflict_free(af, candidate):
            return False
        return all(af.is_defended_by(a, candidate) for a in candidate)

    def is_complete(self, af: ArgumentationFramework,
                    candidate: set[int] | frozenset[int]) -> bool:
        """
        S is complete iff S is admissible and contains every
        argument it defends.
        """
        return (
            self.is_admissible(af, candidate)
            and self.defends(af, candidate) <= frozenset(candidate)
        )

    def is_stable(self, af: ArgumentationFramework,
                  candidate: set[int] | frozenset[int]) -> bool:
        """S is stable iff conflict-free and attacking every argument outside S."""
        if not self.is_conflict_free(af, candidate):
            return False
        return all(
            af.is_attacked_by(a, candidate)
            for a in range(af.size) if a not in candidate
        )

    # ── Admissible Search ───────────────────────────────────────

    def admissible_sets(
        self,
        af: ArgumentationFramework,
        forced_in: frozenset[int] = frozenset(),
    ) -> list[frozenset[int]]:
        """
        Enumerate every admissible set that includes `forced_in`.

        `forced_in` must itself be admissible (the grounded extension is).
        Raises SearchOverflow when more than `max_states` search states
        are visited.
        """
        excluded = {a for a in range(af.size) if a in af.get_attackers(a)}
        for a in forced_in:
            excluded |= af.get_attacked(a) | af.get_attackers(a)
        if not excluded.isdisjoint(forced_in):
            raise UnsatisfiableFramework("Forced arguments are not conflict-free")

        order = [a for a in range(af.size) if a not in forced_in and a not in excluded]
        position = {a: i for i, a in enumerate(order)}

        found: list[frozenset[int]] = []
        visited = 0
        stack: list[tuple[int, frozenset[int]]] = [(0, frozenset(forced_in))]
        while stack:
            depth, chosen = stack.pop()
            visited += 1
            if visited > self.max_states:
                raise SearchOverflow(
                    f"Extension search exceeded {self.max_states} states "
                    f"on a framework of {af.size} arguments",
                    visited=visited,
                )
            if not self._defensible(af, chosen, order, position, depth):
                continue
            if depth == len(order):
                found.append(chosen)
                continue

            candidate = order[depth]
            # Pushed last so the IN branch is explored first
            stack.append((depth + 1, chosen))
            if (af.get_attacked(candidate).isdisjoint(chosen)
                    and af.get_attackers(candidate).isdisjoint(chosen)):
                stack.append((depth + 1, chosen | {candidate}))

        logger.debug(f"Admissible search: {len(found)} sets, {visited} states")
        return found

    @staticmethod
    def _defensible(
        af: ArgumentationFramework,
        chosen: frozenset[int],
        order: list[int],
        position: dict[int, int],
        depth: int,
    ) -> bool:
        """
        Every attacker of a chosen argument is already attacked by the
        chosen set, or can still be attacked by an undecided argument
        that does not conflict with it.
        """
        for a in chosen:
            for attacker in af.get_attackers(a):
                if af.is_attacked_by(attacker, chosen):
                    continue
                if not any(
                    position.get(c, -1) >= depth
                    and af.get_attacked(c).isdisjoint(chosen)
                    and af.get_attackers(c).isdisjoint(chosen)
                    for c in af.get_attackers(attacker)
                ):
                    return False
        return True

    # ── Extensions ──────────────────────────────────────────────

    def _grounded_supersets(self, af: ArgumentationFramework) -> list[frozenset[int]]:
        grounded = self.grounded_extension(af).arguments
        return self.admissible_sets(af, forced_in=grounded)

    def complete_extensions(self, af: ArgumentationFramework) -> list[Extension]:
        return self._wrap(
            [s for s in self._grounded_supersets(af) if self.defends(af, s) <= s],
            Semantics.COMPLETE,
        )

    def preferred_extensions(self, af: ArgumentationFramework) -> list[Extension]:
        """Compute all preferred (maximal admissible) extensions."""
        candidates = sorted(self._grounded_supersets(af), key=len, reverse=True)
        maximal: list[frozenset[int]] = []
        for s in candidates:
            if not any(s < m for m in maximal):
                maximal.append(s)
        if not maximal:
            raise UnsatisfiableFramework("No preferred extension found")
        return self._wrap(maximal, Semantics.PREFERRED)

    def stable_extensions(self, af: ArgumentationFramework) -> list[Extension]:
        """
        Compute all stable extensions.

        S is stable iff S is conflict-free and S attacks every
        argument not in S. There may be none.
        """
        return self._wrap(
            [s for s in self._grounded_supersets(af) if self.is_stable(af, s)],
            Semantics.STABLE,
        )

    @staticmethod
    def _wrap(sets: list[frozenset[int]], semantics: Semantics) -> list[Extension]:
        ordered = sorted(set(sets), key=lambda s: sorted(s))
        return [Extension(arguments=s, semantics=semantics) for s in ordered]

    # ── Dispatch ────────────────────────────────────────────────

    def solve(
        self,
        af: ArgumentationFramework,
        semantics: Semantics = Semantics.PREFERRED,
    ) -> list[Extension]:
        """All extensions of `af` under `semantics`."""
        semantics = Semantics(semantics)
        if semantics == Semantics.GROUNDED:
            return [self.grounded_extension(af)]
        if semantics == Semantics.ADMISSIBLE:
            return self._wrap(self.admissible_sets(af), Semantics.ADMISSIBLE)
        if semantics == Semantics.COMPLETE:
            return self.complete_extensions(af)
        if semantics == Semantics.STABLE:
            return self.stable_extensions(af)
        return self.preferred_extensions(af)

    def resolve(
        self,
        af: ArgumentationFramework,
        semantics: Semantics = Semantics.PREFERRED,
    ) -> ResolutionResult:
        """
        Solve and summarise: which arguments are accepted in every
        extension (skeptically) and in at least one (credulously).
        """
        start = time.perf_counter()
        extensions = self.solve(af, semantics)
        elapsed = (time.perf_counter() - start) * 1000

        sets = [e.arguments for e in extensions]
        skeptical = frozenset.intersection(*sets) if sets else frozenset()
        credulous = frozenset().union(*sets)

        logger.info(
            f"Solved {Semantics(semantics).value} over {af.size} arguments: "
            f"{len(extensions)} extension(s) in {elapsed:.3f}ms"
        )
        return ResolutionResult(
            semantics=Semantics(semantics),
            extensions=extensions,
            skeptical=skeptical,
            credulous=credulous,
            resolution_time_ms=round(elapsed, 3),
        )


def solve(
    af: ArgumentationFramework,
    semantics: Semantics = Semantics.PREFERRED,
    max_states: Optional[int] = None,
) -> list[Extension]:
    """Extensions of `af` under `semantics` with a fresh engine."""
    engine = ArgumentationEngine() if max_states is None else ArgumentationEngine(max_states)
    return engine.solve(af, semantics)
