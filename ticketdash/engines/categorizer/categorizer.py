"""First-match rule evaluation — pure, no I/O."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from typing import Protocol

from ticketdash.engines.categorizer.rules import CategoryRule, RuleCondition


class Categorizable(Protocol):
    summary: str
    issue_type: str
    project_key: str
    labels: str


def _contains(field_value: str, cond: RuleCondition) -> bool:
    if cond.case_sensitive:
        return cond.value in field_value
    return cond.value.lower() in field_value.lower()


def _equals(field_value: str, cond: RuleCondition) -> bool:
    if cond.case_sensitive:
        return field_value == cond.value
    return field_value.lower() == cond.value.lower()


def _regex(field_value: str, cond: RuleCondition) -> bool:
    try:
        pattern = re.compile(cond.value)
    except re.error:
        return False
    return pattern.search(field_value) is not None


_OPERATORS: dict[str, Callable[[str, RuleCondition], bool]] = {
    "contains": _contains,
    "equals": _equals,
    "regex": _regex,
}

_FIELDS: dict[str, Callable[[Categorizable], str]] = {
    "summary": lambda t: t.summary,
    "issue_type": lambda t: t.issue_type,
    "project_key": lambda t: t.project_key,
    "labels": lambda t: t.labels,
}


def evaluate_condition(ticket: Categorizable, cond: RuleCondition) -> bool:
    """Return whether *cond* holds for *ticket*.

    Unknown fields, unknown operators and invalid regex patterns all
    evaluate to ``False``.
    """
    get_field = _FIELDS.get(cond.field)
    op = _OPERATORS.get(cond.operator)
    if get_field is None or op is None:
        return False
    return op(get_field(ticket), cond)


def rule_matches(ticket: Categorizable, rule: CategoryRule) -> bool:
    if rule.match_mode == "all":
        return all(evaluate_condition(ticket, c) for c in rule.conditions)
    return any(evaluate_condition(ticket, c) for c in rule.conditions)


def categorize(ticket: Categorizable, rules: Sequence[CategoryRule]) -> str | None:
    """Return the name of the first rule matching *ticket*, or None."""
    for rule in rules:
        if rule_matches(ticket, rule):
            return rule.name
    return None
