"""
Argumentation tests

Tests covering:
- Argument construction (closure, sharing, cycles, budgets)
- Attacks and preference-based defeats
- Dung semantics (grounded, admissible, complete, preferred, stable)
- ICCMA encoding
"""
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))


def _pipeline(config=None, **fields):
    from aspic_server.argumentation import (
        build_arguments, compute_defeats, to_abstract_framework,
    )
    from aspic_server.theory import parse_knowledge_base
    kb = parse_knowledge_base(**fields)
    args = build_arguments(kb)
    defeats = compute_defeats(args, kb, config)
    return kb, args, to_abstract_framework(args, defeats)


def _extensions(af, semantics):
    from aspic_server.argumentation import ArgumentationEngine
    return [set(e.arguments) for e in ArgumentationEngine().solve(af, semantics)]


# ── Argument Construction ──────────────────────────────────────

class TestArgumentBuilder:
    def test_axiom_and_strict_rule(self):
        from aspic_server.argumentation import Semantics
        _, args, af = _pipeline(axioms="p", inference_rules="p -> q")
        assert [str(a.conclusion) for a in args] == ["p", "q"]
        assert args[0].is_axiom and args[0].is_firm
        assert args[1].sub_arguments == (0,)
        assert args[1].is_strict and args[1].is_firm
        assert args[1].describe() == "A2: A1 -> q"
        assert af.attacks == ()
        assert _extensions(af, Semantics.GROUNDED) == [{0, 1}]
        assert _extensions(af, Semantics.PREFERRED) == [{0, 1}]

    def test_base_arguments_first(self):
        _, args, _ = _pipeline(
            axioms="p", premises="a; b", inference_rules="[r1] a => c",
        )
        assert [a.label for a in args] == ["A1", "A2", "A3", "A4"]
        assert [str(a.conclusion) for a in args] == ["p", "a", "b", "c"]
        assert args[1].is_premise and not args[0].is_premise

    def test_derived_sets(self):
        _, args, _ = _pipeline(
            premises="a; n",
            inference_rules="[r1] a => c\n[r2] c => d\n[s] d -> e",
        )
        e = args[-1]
        assert str(e.conclusion) == "e"
        assert {str(p) for p in e.premises} == {"a"}
        assert e.defeasible_rules == frozenset({"r1", "r2"})
        assert e.last_defeasible_rules == frozenset({"r2"})
        assert e.depth == 3
        assert e.subargument_ids == frozenset({0, 2, 3, 4})

    def test_multiple_derivations_are_distinct(self):
        _, args, _ = _pipeline(
            premises="a; b",
            inference_rules="[r1] a => c\n[r2] b => c\n[r3] c => d",
        )
        assert len(args) == 6
        d_args = [a for a in args if str(a.conclusion) == "d"]
        assert [a.sub_arguments for a in d_args] == [(2,), (3,)]

    def test_build_is_idempotent(self):
        from aspic_server.argumentation import build_arguments
        from aspic_server.theory import parse_knowledge_base
        kb = parse_knowledge_base(
            premises="a; b",
            inference_rules="[r1] a, b => c\n[r2] c => d\nd -> e",
        )
        assert build_arguments(kb) == build_arguments(kb)

    def test_cyclic_rules_terminate(self):
        _, args, _ = _pipeline(
            premises="a", inference_rules="[r1] a => b\n[r2] b => a",
        )
        assert [str(a.conclusion) for a in args] == ["a", "b"]

    def test_self_supporting_rule_ignored(self):
        _, args, _ = _pipeline(premises="a", inference_rules="a -> a")
        assert len(args) == 1

    def test_argument_budget(self):
        from aspic_server.argumentation import ConstructionLimits, build_arguments
        from aspic_server.errors import ConstructionOverflow
        from aspic_server.theory import parse_knowledge_base
        kb = parse_knowledge_base(premises="a; b")
        with pytest.raises(ConstructionOverflow) as exc:
            build_arguments(kb, ConstructionLimits(max_arguments=1))
        assert exc.value.built == 1

    def test_depth_budget(self):
        from aspic_server.argumentation import ConstructionLimits, build_arguments
        from aspic_server.errors import ConstructionOverflow
        from aspic_server.theory import parse_knowledge_base
        kb = parse_knowledge_base(premises="a", inference_rules="a => b; b => c; c => d")
        with pytest.raises(ConstructionOverflow):
            build_arguments(kb, ConstructionLimits(max_depth=2))


# ── Attacks & Defeats ──────────────────────────────────────────

class TestAttacks:
    def test_mutual_undermining(self):
        from aspic_server.argumentation import AttackType, Semantics
        _, _, af = _pipeline(premises="a; b", contraries="a ~ b")
        assert af.edges == [(0, 1), (1, 0)]
        assert all(a.attack_type == AttackType.UNDERMINE for a in af.attacks)
        assert _extensions(af, Semantics.GROUNDED) == [set()]
        assert _extensions(af, Semantics.PREFERRED) == [{0}, {1}]

    def test_contrary_is_one_directional(self):
        _, _, af = _pipeline(premises="a; b", contraries="a ^ b")
        assert af.edges == [(0, 1)]

    def test_axioms_are_never_attacked(self):
        from aspic_server.argumentation import Semantics, compute_attacks
        kb, args, af = _pipeline(axioms="p", premises="q", contraries="q ~ p")
        assert [a.edge for a in compute_attacks(args, kb)] == [(0, 1)]
        assert af.edges == [(0, 1)]
        assert _extensions(af, Semantics.GROUNDED) == [{0}]

    def test_strict_conclusions_cannot_be_rebutted(self):
        from aspic_server.argumentation import Attack, AttackType
        _, _, af = _pipeline(
            axioms="a", premises="b",
            inference_rules="a -> c\n[r1] b => -c",
        )
        assert af.attacks == (Attack(2, 3, AttackType.REBUT, 3),)

    def test_attack_on_sub_argument(self):
        from aspic_server.argumentation import AttackType, Semantics
        _, _, af = _pipeline(
            premises="a; n",
            inference_rules="[r1] a => c\n[r2] c => d",
            contraries="n ^ a",
        )
        assert [a.target for a in af.attacks] == [0, 2, 3]
        assert all(a.sub_argument == 0 for a in af.attacks)
        assert all(a.attack_type == AttackType.UNDERMINE for a in af.attacks)
        assert _extensions(af, Semantics.GROUNDED) == [{1}]

    def test_rebut_and_undercut_share_an_edge(self):
        from aspic_server.argumentation import AttackType
        _, _, af = _pipeline(
            premises="a; x",
            inference_rules="[r1] a => b",
            contraries="x ^ b; x ^ r1",
        )
        assert [a.attack_type for a in af.attacks] == [AttackType.REBUT, AttackType.UNDERCUT]
        assert af.edges == [(1, 2)]
        assert af.to_dict()["stats"] == {"num_arguments": 3, "num_attacks": 2, "num_edges": 1}


class TestDefeats:
    def test_preferred_premise_resists_undermining(self):
        from aspic_server.argumentation import Semantics
        _, _, af = _pipeline(premises="a; b", contraries="a ~ b", knowledge_preferences="a < b")
        assert af.edges == [(1, 0)]
        assert _extensions(af, Semantics.PREFERRED) == [{1}]

    @pytest.mark.parametrize("prefs", ["", "a = b", "a <= b; b <= a"])
    def test_ties_favour_the_attacker(self, prefs):
        _, _, af = _pipeline(premises="a; b", contraries="a ~ b", knowledge_preferences=prefs)
        assert af.edges == [(0, 1), (1, 0)]

    def test_rule_preference_on_firm_arguments(self):
        from aspic_server.argumentation import Semantics
        _, _, af = _pipeline(
            axioms="a; b",
            inference_rules="[r1] a => c\n[r2] b => -c",
            rule_preferences="r1 < r2",
        )
        assert af.edges == [(3, 2)]
        assert _extensions(af, Semantics.GROUNDED) == [{0, 1, 3}]

    def test_undercut_ignores_preferences(self):
        from aspic_server.argumentation import (
            ArgumentOrdering, AttackType, build_arguments, compute_defeats,
        )
        from aspic_server.theory import parse_knowledge_base
        kb = parse_knowledge_base(
            premises="a; u",
            inference_rules="[r1] a => b\n[r2] u => -r1",
            rule_preferences="r2 < r1",
            knowledge_preferences="u < a",
        )
        args = build_arguments(kb)
        assert ArgumentOrdering(kb).strictly_weaker(args[3], args[2])
        defeats = compute_defeats(args, kb)
        assert [(d.edge, d.attack_type) for d in defeats] == [((3, 2), AttackType.UNDERCUT)]

    def test_weaker_rebut_fails(self):
        from aspic_server.argumentation import AttackType
        _, _, af = _pipeline(
            premises="a; u",
            inference_rules="[r1] a => b\n[r2] u => -b",
            rule_preferences="r2 < r1",
            knowledge_preferences="u < a",
        )
        assert [(d.edge, d.attack_type) for d in af.attacks] == [((2, 3), AttackType.REBUT)]

    def test_unnamed_rules_cannot_be_undercut(self):
        _, args, af = _pipeline(premises="a; x", inference_rules="a => b", contraries="x ^ r1")
        assert args[2].top_rule.name == "_d1"
        assert af.attacks == ()


class TestPreferenceLifting:
    THEORY = dict(
        axioms="a",
        inference_rules="[r1] a => b\n[r2] b => c\n[r3] a => -c",
        rule_preferences="r1 < r3; r3 < r2",
    )

    def _edges(self, link, ordering):
        from aspic_server.argumentation import PreferenceConfig
        _, args, af = _pipeline(config=PreferenceConfig(link, ordering), **self.THEORY)
        assert [str(a.conclusion) for a in args] == ["a", "b", "c", "-c"]
        return af.edges

    def test_weakest_link_elitist(self):
        from aspic_server.argumentation import LinkPrinciple, SetOrdering
        assert self._edges(LinkPrinciple.WEAKEST, SetOrdering.ELITIST) == [(3, 2)]

    def test_last_link_elitist(self):
        from aspic_server.argumentation import LinkPrinciple, SetOrdering
        assert self._edges(LinkPrinciple.LAST, SetOrdering.ELITIST) == [(2, 3)]

    def test_weakest_link_democratic(self):
        from aspic_server.argumentation import LinkPrinciple, SetOrdering
        assert self._edges(LinkPrinciple.WEAKEST, SetOrdering.DEMOCRATIC) == [(2, 3)]

    def test_empty_set_edge_cases(self):
        from aspic_server.argumentation import ArgumentOrdering
        from aspic_server.theory import PreferenceOrder, parse_knowledge_base
        ordering = ArgumentOrdering(parse_knowledge_base())
        order = PreferenceOrder()
        assert not ordering.set_less(frozenset(), frozenset({"x"}), order)
        assert not ordering.set_less(frozenset(), frozenset(), order)
        assert ordering.set_less(frozenset({"x"}), frozenset(), order)


# ── Dung Semantics ─────────────────────────────────────────────

class TestArgumentationEngine:
    def _af(self, size, edges):
        from aspic_server.argumentation import ArgumentationFramework
        return ArgumentationFramework.from_edges(size, edges)

    def test_empty_framework(self):
        from aspic_server.argumentation import Semantics
        from aspic_server.argumentation import ArgumentationEngine
        af = self._af(0, [])
        ext = ArgumentationEngine().grounded_extension(af)
        assert ext.is_empty
        assert ext.size == 0
        assert _extensions(af, Semantics.PREFERRED) == [set()]

    def test_unattacked_arguments_accepted(self):
        from aspic_server.argumentation import Semantics
        assert _extensions(self._af(2, []), Semantics.GROUNDED) == [{0, 1}]

    def test_simple_attack(self):
        from aspic_server.argumentation import Semantics
        af = self._af(2, [(0, 1)])
        assert _extensions(af, Semantics.GROUNDED) == [{0}]
        assert _extensions(af, Semantics.STABLE) == [{0}]

    def test_reinstatement(self):
        from aspic_server.argumentation import Semantics
        af = self._af(3, [(0, 1), (1, 2)])
        assert _extensions(af, Semantics.GROUNDED) == [{0, 2}]
        assert _extensions(af, Semantics.PREFERRED) == [{0, 2}]

    def test_mutual_attack(self):
        from aspic_server.argumentation import Semantics
        af = self._af(2, [(0, 1), (1, 0)])
        assert _extensions(af, Semantics.GROUNDED) == [set()]
        assert _extensions(af, Semantics.ADMISSIBLE) == [set(), {0}, {1}]
        assert _extensions(af, Semantics.COMPLETE) == [set(), {0}, {1}]
        assert _extensions(af, Semantics.PREFERRED) == [{0}, {1}]
        assert _extensions(af, Semantics.STABLE) == [{0}, {1}]

    def test_odd_cycle(self):
        from aspic_server.argumentation import Semantics
        af = self._af(3, [(0, 1), (1, 2), (2, 0)])
        assert _extensions(af, Semantics.GROUNDED) == [set()]
        assert _extensions(af, Semantics.PREFERRED) == [set()]
        assert _extensions(af, Semantics.STABLE) == []

    def test_self_attack(self):
        from aspic_server.argumentation import Semantics
        af = self._af(3, [(0, 0), (0, 1), (2, 0)])
        assert _extensions(af, Semantics.GROUNDED) == [{1, 2}]
        assert _extensions(af, Semantics.PREFERRED) == [{1, 2}]
        assert _extensions(self._af(2, [(0, 0), (0, 1)]), Semantics.PREFERRED) == [set()]

    def test_set_properties(self):
        from aspic_server.argumentation import ArgumentationEngine
        engine = ArgumentationEngine()
        af = self._af(3, [(0, 1), (1, 2)])
        assert engine.is_conflict_free(af, {0, 2})
        assert not engine.is_conflict_free(af, {0, 1})
        assert engine.is_admissible(af, {0, 2})
        assert not engine.is_admissible(af, {2})
        assert engine.is_complete(af, {0, 2})
        assert not engine.is_complete(af, {0})
        assert engine.is_stable(af, {0, 2})

    @pytest.mark.parametrize("size,edges", [
        (2, [(0, 1), (1, 0)]),
        (4, [(0, 1), (1, 0), (1, 2), (2, 3)]),
        (5, [(0, 1), (1, 2), (2, 0), (3, 4), (4, 3), (2, 3)]),
        (4, [(0, 1), (1, 2), (2, 3), (3, 2)]),
    ])
    def test_extension_properties(self, size, edges):
        from aspic_server.argumentation import ArgumentationEngine, Semantics
        engine = ArgumentationEngine()
        af = self._af(size, edges)
        grounded = engine.grounded_extension(af).arguments

        complete = engine.solve(af, Semantics.COMPLETE)
        assert complete
        for ext in complete:
            assert grounded <= ext.arguments
            assert engine.is_complete(af, ext.arguments)

        preferred = engine.solve(af, Semantics.PREFERRED)
        for ext in preferred:
            assert engine.is_admissible(af, ext.arguments)
            assert not any(ext.arguments < other.arguments for other in preferred)

        for ext in engine.solve(af, Semantics.STABLE):
            assert engine.is_stable(af, ext.arguments)

    def test_resolve_acceptance(self):
        from aspic_server.argumentation import ArgumentationEngine, Semantics
        af = self._af(3, [(0, 1), (1, 0), (1, 2)])
        result = ArgumentationEngine().resolve(af, Semantics.PREFERRED)
        assert result.skeptical == frozenset()
        assert result.credulous == frozenset({0, 1, 2})
        data = result.to_dict()
        assert data["extensions"] == [["A1", "A3"], ["A2"]]
        assert data["semantics"] == "preferred"

    def test_module_level_solve(self):
        from aspic_server.argumentation import Semantics, solve
        extensions = solve(self._af(2, [(0, 1)]), Semantics.GROUNDED)
        assert extensions[0].labels == ["A1"]

    def test_search_budget(self):
        from aspic_server.argumentation import ArgumentationEngine, Semantics
        from aspic_server.errors import SearchOverflow
        af = self._af(6, [(0, 1), (1, 0), (2, 3), (3, 2), (4, 5), (5, 4)])
        with pytest.raises(SearchOverflow):
            ArgumentationEngine(max_states=5).solve(af, Semantics.ADMISSIBLE)

    def test_edge_outside_framework(self):
        from aspic_server.errors import UnsatisfiableFramework
        with pytest.raises(UnsatisfiableFramework):
            self._af(2, [(0, 5)])


# ── ICCMA ──────────────────────────────────────────────────────

class TestIccma:
    def test_serialize(self):
        from aspic_server.argumentation import serialize_iccma
        _, _, af = _pipeline(premises="a; b", contraries="a ~ b")
        assert serialize_iccma(af) == "p af 2\n1 2\n2 1\n"

    def test_serialize_without_attacks(self):
        from aspic_server.argumentation import serialize_iccma
        _, _, af = _pipeline(axioms="p", inference_rules="p -> q")
        assert serialize_iccma(af) == "p af 2\n"

    def test_duplicate_edges_written_once(self):
        from aspic_server.argumentation import parse_iccma, serialize_iccma
        _, _, af = _pipeline(
            premises="a; x",
            inference_rules="[r1] a => b",
            contraries="x ^ b; x ^ r1",
        )
        assert parse_iccma(serialize_iccma(af)) == (3, [(2, 3)])

    def test_parse(self):
        from aspic_server.argumentation import parse_iccma
        text = "# generated\np af 3\n1 2\n\n2 3\n"
        assert parse_iccma(text) == (3, [(1, 2), (2, 3)])

    @pytest.mark.parametrize("text", ["", "1 2\n", "p af x\n", "p af 2\n1 3\n", "p af 2\n1\n"])
    def test_parse_errors(self, text):
        from aspic_server.argumentation import parse_iccma
        with pytest.raises(ValueError):
            parse_iccma(text)

    def test_framework_from_iccma(self):
        from aspic_server.argumentation import Semantics, framework_from_iccma
        af = framework_from_iccma("p af 3\n1 2\n2 3\n")
        assert af.size == 3
        assert _extensions(af, Semantics.GROUNDED) == [{0, 2}]
