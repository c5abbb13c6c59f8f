"""Argumentation engine — ASPIC+ arguments, defeats and Dung extensions."""
from .attacks import (
    ArgumentOrdering,
    AttackCalculator,
    LinkPrinciple,
    PreferenceConfig,
    SetOrdering,
    compute_attacks,
    compute_defeats,
)
from .builder import ArgumentBuilder, ConstructionLimits, build_arguments
from .engine import ArgumentationEngine, solve
from .iccma import framework_from_iccma, parse_iccma, serialize_iccma
from .models import (
    Argument,
    ArgumentationFramework,
    Attack,
    AttackType,
    Extension,
    ResolutionResult,
    Semantics,
    to_abstract_framework,
)

__all__ = [
    "ArgumentationEngine",
    "ArgumentBuilder",
    "ArgumentOrdering",
    "AttackCalculator",
    "Argument",
    "Attack",
    "AttackType",
    "ArgumentationFramework",
    "ConstructionLimits",
    "Extension",
    "LinkPrinciple",
    "PreferenceConfig",
    "ResolutionResult",
    "Semantics",
    "SetOrdering",
    "build_arguments",
    "compute_attacks",
    "compute_defeats",
    "framework_from_iccma",
    "parse_iccma",
    "serialize_iccma",
    "solve",
    "to_abstract_framework",
]
