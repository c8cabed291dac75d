#!/usr/bin/env python3
"""
Skill Rules Validation - Rule Validators

Validators check one parsed rule (plus the raw text of its file) against the
requirements of a skill and return every failure found:

- base:              title, explanation and impact level (all skills)
- redis-development: base checks + at least one recognizable code example
- redis-cloud-api:   base checks + endpoint, curl/Python/TypeScript examples,
                     common errors table and reference link

Specialized validators delegate to run_base_validations() instead of
subclassing the base validator. Validators are stateless; every call is a pure
function of (rule, file, content).

Use get_validator(name) to look one up; unknown names resolve to the base
validator.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping

from rule_types import VALID_IMPACTS, CodeExample, Rule, RuleValidator, ValidationError

# =============================================================================
# Base Validator
# =============================================================================


def _is_blank(value: str | None) -> bool:
    return not value or not value.strip()


class BaseValidator:
    """Checks the fields every rule needs regardless of its skill."""

    name = "base"

    def validate_rule(self, rule: Rule, file: str, content: str) -> list[ValidationError]:
        # content is unused here; it is part of the shared validator signature
        errors: list[ValidationError] = []

        if _is_blank(rule.title):
            errors.append(ValidationError(file, rule.id, "Missing or empty title"))

        if _is_blank(rule.explanation):
            errors.append(ValidationError(file, rule.id, "Missing or empty explanation"))

        if rule.impact not in VALID_IMPACTS:
            errors.append(
                ValidationError(
                    file,
                    rule.id,
                    f"Invalid impact level: {rule.impact}. Must be one of: {', '.join(VALID_IMPACTS)}",
                )
            )

        return errors


base_validator = BaseValidator()


def run_base_validations(rule: Rule, file: str, content: str) -> list[ValidationError]:
    """Run the base checks; used by skill validators to include them."""
    return base_validator.validate_rule(rule, file, content)


# =============================================================================
# redis-development: code examples
# =============================================================================

# Labels that mark an anti-pattern example
BAD_LABELS = ("incorrect", "wrong", "bad", "avoid")

# Labels that mark a recommended example
GOOD_LABELS = ("correct", "good", "usage", "implementation", "example", "recommended")


def is_bad_example(label: str) -> bool:
    """True if the label contains any bad-example keyword (case-insensitive)."""
    lower = label.lower()
    return any(bad in lower for bad in BAD_LABELS)


def is_good_example(label: str) -> bool:
    """True if the label contains any good-example keyword (case-insensitive)."""
    lower = label.lower()
    return any(good in lower for good in GOOD_LABELS)


def get_code_examples(examples: tuple[CodeExample, ...] | None) -> list[CodeExample]:
    """Examples whose code has non-whitespace content."""
    return [e for e in examples or () if e.code and e.code.strip()]


class RedisDevelopmentValidator:
    """Validator for the redis-development skill.

    Rules should show at least one bad/incorrect or one good/correct code
    example. Either category on its own is accepted.
    """

    name = "redis-development"

    def validate_rule(self, rule: Rule, file: str, content: str) -> list[ValidationError]:
        errors = run_base_validations(rule, file, content)

        if not rule.examples:
            errors.append(
                ValidationError(file, rule.id, "Missing examples (need at least one bad and one good example)")
            )
            return errors

        code_examples = get_code_examples(rule.examples)
        if not code_examples:
            errors.append(ValidationError(file, rule.id, "Missing code examples"))
            return errors

        has_bad = any(is_bad_example(e.label) for e in code_examples)
        has_good = any(is_good_example(e.label) for e in code_examples)

        if not has_bad and not has_good:
            errors.append(
                ValidationError(
                    file,
                    rule.id,
                    "Examples must include at least one bad/incorrect or good/correct example",
                )
            )

        return errors


# =============================================================================
# redis-cloud-api: API reference heuristics
# =============================================================================

HTTP_VERBS = r"(GET|POST|PUT|DELETE|PATCH)"

API_BASE_URL = r"https://api\.redislabs\.com"

# Any one of these counts as a documented endpoint:
# - **Endpoint:** `GET /path` (colon and closing ** optional)
# - `POST /subscriptions/{subscriptionId}` anywhere in the text
# - ### DELETE /path section heading
# - https://api.redislabs.com/v1/... in an example
# - curl -X POST "https://api.redislabs.com/...
ENDPOINT_PATTERNS = [
    re.compile(rf"\*\*Endpoint:?\*?\*?\s*`?{HTTP_VERBS}\s+/[^`\n]+`?", re.IGNORECASE),
    re.compile(rf"`{HTTP_VERBS}\s+/[^`]+`", re.IGNORECASE),
    re.compile(rf"###\s+{HTTP_VERBS}\s+", re.IGNORECASE),
    re.compile(rf"{API_BASE_URL}/v1/[a-zA-Z]", re.IGNORECASE),
    re.compile(rf'-X\s+{HTTP_VERBS}\s+"{API_BASE_URL}', re.IGNORECASE),
]

# ```bash block containing a curl call, or a ### / #### curl heading
CURL_PATTERNS = [
    re.compile(r"```bash[\s\S]*?curl\s", re.IGNORECASE),
    re.compile(r"#{3,4}\s*curl", re.IGNORECASE),
]

# ```python block with an import, requests call or function, or a Python heading
PYTHON_PATTERNS = [
    re.compile(r"```python[\s\S]*?(import|requests|def\s)", re.IGNORECASE),
    re.compile(r"#{3,4}\s*Python", re.IGNORECASE),
]

# ```typescript block with a declaration, async code, fetch or an interface,
# or a TypeScript heading
TYPESCRIPT_PATTERNS = [
    re.compile(r"```typescript[\s\S]*?(const|let|var|async|await|fetch|interface)", re.IGNORECASE),
    re.compile(r"#{3,4}\s*TypeScript", re.IGNORECASE),
]

# The last pattern accepts any table cell holding exactly three digits, so a
# port number or a year in a table also counts.
COMMON_ERRORS_PATTERNS = [
    re.compile(r"\*\*Common Errors:?\*\*", re.IGNORECASE),
    re.compile(r"###?\s*Common Errors", re.IGNORECASE),
    re.compile(r"\|\s*Code\s*\|\s*Meaning\s*\|", re.IGNORECASE),
    re.compile(r"\|\s*\d{3}\s*\|"),
]

# Reference:/References: followed by a markdown link, or any link into the docs
REFERENCE_PATTERNS = [
    re.compile(r"References?:\s*\[.*?\]\(.*?\)", re.IGNORECASE),
    re.compile(r"\[.*?\]\(https://redis\.io/docs/.*?\)", re.IGNORECASE),
]


def _matches_any(patterns: list[re.Pattern[str]], content: str) -> bool:
    return any(pattern.search(content) for pattern in patterns)


def has_endpoint(content: str) -> bool:
    """Check the content documents at least one endpoint or API URL."""
    return _matches_any(ENDPOINT_PATTERNS, content)


def has_curl_example(content: str) -> bool:
    return _matches_any(CURL_PATTERNS, content)


def has_python_example(content: str) -> bool:
    return _matches_any(PYTHON_PATTERNS, content)


def has_typescript_example(content: str) -> bool:
    return _matches_any(TYPESCRIPT_PATTERNS, content)


def has_common_errors_table(content: str) -> bool:
    """Check for a Common Errors label/heading or an error-code table."""
    return _matches_any(COMMON_ERRORS_PATTERNS, content)


def has_reference_link(content: str) -> bool:
    return _matches_any(REFERENCE_PATTERNS, content)


# (predicate, message) pairs, checked in this order
API_CONTENT_CHECKS = [
    (
        has_endpoint,
        "Missing endpoint documentation. Rules should document at least one API endpoint "
        "(e.g., **Endpoint:** `GET /path`)",
    ),
    (has_curl_example, "Missing curl example. Each rule should include a curl example"),
    (has_python_example, "Missing Python example. Each rule should include a Python example"),
    (has_typescript_example, "Missing TypeScript example. Each rule should include a TypeScript example"),
    (
        has_common_errors_table,
        "Missing Common Errors table. Each rule should include a table of common error codes",
    ),
    (
        has_reference_link,
        "Missing reference link. Each rule should include a reference link to Redis documentation",
    ),
]


class RedisCloudApiValidator:
    """Validator for the redis-cloud-api skill.

    Every check runs against the raw file text, not the parsed rule, and
    each failing check adds its own error.
    """

    name = "redis-cloud-api"

    def validate_rule(self, rule: Rule, file: str, content: str) -> list[ValidationError]:
        errors = run_base_validations(rule, file, content)

        for check, message in API_CONTENT_CHECKS:
            if not check(content):
                errors.append(ValidationError(file, rule.id, message))

        return errors


redis_development_validator = RedisDevelopmentValidator()
redis_cloud_api_validator = RedisCloudApiValidator()

# =============================================================================
# Registry
# =============================================================================

VALIDATORS: Mapping[str, RuleValidator] = MappingProxyType(
    {
        base_validator.name: base_validator,
        redis_development_validator.name: redis_development_validator,
        redis_cloud_api_validator.name: redis_cloud_api_validator,
    }
)


def get_validator(name: str) -> RuleValidator:
    """Get a validator by name.

    Args:
        name: Validator name (usually the skill name, or 'base')

    Returns:
        The registered validator, or the base validator when the name is
        empty or unknown
    """
    return VALIDATORS.get(name, base_validator)


def get_validator_names() -> list[str]:
    """Get all registered validator names."""
    return list(VALIDATORS)
