#!/usr/bin/env python3
"""
Skill Rules Validation - Rule Types

Data model shared by the rule parser, the rule validators and the
orchestrating CLI:
- Rule / CodeExample: one parsed rule markdown file
- ValidationError: one rule validation failure
- RuleValidator: the contract every skill validator satisfies
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Protocol, Sequence, runtime_checkable

# =============================================================================
# Impact Levels
# =============================================================================

ImpactLevel = Literal["CRITICAL", "HIGH", "MEDIUM-HIGH", "MEDIUM", "LOW-MEDIUM", "LOW"]

# Ordered from most to least severe; error messages list them in this order
VALID_IMPACTS: tuple[ImpactLevel, ...] = (
    "CRITICAL",
    "HIGH",
    "MEDIUM-HIGH",
    "MEDIUM",
    "LOW-MEDIUM",
    "LOW",
)


# =============================================================================
# Rule Model
# =============================================================================


@dataclass(frozen=True)
class CodeExample:
    """A labeled snippet attached to a rule.

    Attributes:
        label: Free text such as "Incorrect (blocks the event loop)" or "Correct"
        code: Snippet body, may be empty
        description: Optional prose between the label and the code block
        language: Optional fence language tag ("python", "bash", ...)
        additional_text: Optional prose after the code block
    """

    label: str
    code: str
    description: str | None = None
    language: str | None = None
    additional_text: str | None = None


@dataclass(frozen=True)
class Rule:
    """One unit of documented guidance (a single rule markdown file).

    `impact` is kept as the raw text found in the file so validators can
    report values outside VALID_IMPACTS. `title` and `explanation` may be
    None or blank when the source file omits them.
    """

    id: str
    title: str | None
    section: int
    impact: str
    explanation: str | None
    examples: tuple[CodeExample, ...] | None = ()
    subsection: int | None = None
    impact_description: str | None = None
    references: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()


# =============================================================================
# Error Model
# =============================================================================


@dataclass(frozen=True)
class ValidationError:
    """One rule validation failure.

    Attributes:
        file: Rule file name the failure belongs to
        rule_id: Rule identifier, None when the failure happened before
            the rule could be parsed
        message: Final human-readable message
    """

    file: str
    rule_id: str | None
    message: str


# =============================================================================
# Validator Contract
# =============================================================================


@runtime_checkable
class RuleValidator(Protocol):
    """Contract every skill validator must satisfy.

    Validators may additionally provide a cross-rule check:

        validate_skill(rules: Sequence[Rule], files: Sequence[str]) -> list[ValidationError]

    It is optional, so callers look it up with getattr() and only invoke it
    when it is callable.
    """

    name: str

    def validate_rule(self, rule: Rule, file: str, content: str) -> list[ValidationError]: ...


# Signature of the optional validate_skill hook
SkillCheck = Callable[[Sequence[Rule], Sequence[str]], list[ValidationError]]


def get_skill_check(validator: RuleValidator) -> SkillCheck | None:
    """Return the validator's validate_skill hook if it has a callable one."""
    hook = getattr(validator, "validate_skill", None)
    return hook if callable(hook) else None
