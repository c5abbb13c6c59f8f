"""ASPIC+ theory — knowledge base model and textual parser."""
from .models import Formula, KnowledgeBase, PreferenceOrder, Rule, RuleKind
from .parser import (
    parse_contraries,
    parse_formula,
    parse_formula_set,
    parse_inference_rules,
    parse_knowledge_base,
    parse_knowledge_preferences,
    parse_rule_preferences,
    validate_fields,
)

__all__ = [
    "Formula",
    "KnowledgeBase",
    "PreferenceOrder",
    "Rule",
    "RuleKind",
    "parse_contraries",
    "parse_formula",
    "parse_formula_set",
    "parse_inference_rules",
    "parse_knowledge_base",
    "parse_knowledge_preferences",
    "parse_rule_preferences",
    "validate_fields",
]
