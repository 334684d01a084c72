"""Category rule models and the JSON payload parser."""

from __future__ import annotations

from typing import Literal

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from ticketdash.services import ConfigurationError

MatchMode = Literal["all", "any"]


class RuleCondition(BaseModel):
    """One predicate of a rule.

    ``field`` (summary, issue_type, project_key, labels) and ``operator``
    (contains, equals, regex) are kept as free strings: any other value
    parses fine and simply never matches.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    field: str
    operator: str
    value: str
    case_sensitive: bool = Field(alias="caseSensitive")


class CategoryRule(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: str
    color: str
    conditions: list[RuleCondition] = Field(default_factory=list)
    match_mode: MatchMode = Field(alias="matchMode")


class CategoryRulesPayload(BaseModel):
    """Envelope the settings layer serializes: ``{"categoryRules": [...]}``."""

    model_config = ConfigDict(populate_by_name=True)

    category_rules: list[CategoryRule] = Field(alias="categoryRules")


EMPTY_RULES_PAYLOAD = '{"categoryRules": []}'


def parse_rules(payload: str) -> list[CategoryRule]:
    """Deserialize the ordered rule list.

    Raises :class:`ConfigurationError` on malformed JSON or a payload that
    does not fit the rule model.
    """
    try:
        parsed = CategoryRulesPayload.model_validate_json(payload)
    except pydantic.ValidationError as exc:
        raise ConfigurationError(f"failed to parse category rules: {exc}") from exc
    return parsed.category_rules
