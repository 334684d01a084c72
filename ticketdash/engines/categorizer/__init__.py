"""Categorizer engine — rule-based ticket classification."""

from ticketdash.engines.categorizer.categorizer import categorize, evaluate_condition
from ticketdash.engines.categorizer.rules import (
    EMPTY_RULES_PAYLOAD,
    CategoryRule,
    RuleCondition,
    parse_rules,
)

__all__ = [
    "EMPTY_RULES_PAYLOAD",
    "CategoryRule",
    "RuleCondition",
    "categorize",
    "evaluate_condition",
    "parse_rules",
]
