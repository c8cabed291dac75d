#!/usr/bin/env python3
"""Tests for rule_validators.py - base, skill validators and the registry."""

from dataclasses import replace

import pytest
from rule_types import VALID_IMPACTS, CodeExample, Rule, RuleValidator, ValidationError
from rule_validators import (
    base_validator,
    get_validator,
    get_validator_names,
    has_common_errors_table,
    has_curl_example,
    has_endpoint,
    has_python_example,
    has_reference_link,
    has_typescript_example,
    redis_cloud_api_validator,
    redis_development_validator,
    run_base_validations,
)

IMPACT_ERROR_SUFFIX = "Must be one of: CRITICAL, HIGH, MEDIUM-HIGH, MEDIUM, LOW-MEDIUM, LOW"


def make_rule(**overrides: object) -> Rule:
    """Build a rule that passes the base checks, with field overrides."""
    rule = Rule(
        id="1.1",
        title="Test Rule",
        section=1,
        subsection=1,
        impact="HIGH",
        explanation="This is a test explanation.",
        examples=(
            CodeExample(label="Incorrect", code="# bad code", language="python"),
            CodeExample(label="Correct", code="# good code", language="python"),
        ),
    )
    return replace(rule, **overrides)  # type: ignore[arg-type]


def messages(errors: list[ValidationError]) -> list[str]:
    return [e.message for e in errors]


class TestBaseValidator:
    """Title, explanation and impact checks shared by every skill."""

    def test_name_is_base(self) -> None:
        assert base_validator.name == "base"

    def test_valid_rule_has_no_errors(self) -> None:
        assert base_validator.validate_rule(make_rule(), "test.md", "") == []

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_missing_title(self, title: str | None) -> None:
        """Empty, whitespace-only and undefined titles give exactly one error."""
        errors = base_validator.validate_rule(make_rule(title=title), "test.md", "")
        assert errors == [ValidationError("test.md", "1.1", "Missing or empty title")]

    @pytest.mark.parametrize("explanation", ["", "\n\t  ", None])
    def test_missing_explanation(self, explanation: str | None) -> None:
        errors = base_validator.validate_rule(make_rule(explanation=explanation), "test.md", "")
        assert messages(errors) == ["Missing or empty explanation"]

    @pytest.mark.parametrize("impact", VALID_IMPACTS)
    def test_all_valid_impacts_accepted(self, impact: str) -> None:
        assert base_validator.validate_rule(make_rule(impact=impact), "test.md", "") == []

    @pytest.mark.parametrize("impact", ["INVALID", "high", "Medium", "", "MEDIUM_HIGH"])
    def test_invalid_impact(self, impact: str) -> None:
        """Anything outside the enumeration, including other casings, is rejected."""
        errors = base_validator.validate_rule(make_rule(impact=impact), "test.md", "")
        assert len(errors) == 1
        assert errors[0].message == f"Invalid impact level: {impact}. {IMPACT_ERROR_SUFFIX}"

    def test_all_checks_run(self) -> None:
        """No short-circuit: three bad fields give three errors, in check order."""
        rule = make_rule(title="", explanation="", impact="INVALID")
        errors = base_validator.validate_rule(rule, "test.md", "")
        assert len(errors) == 3
        assert errors[0].message == "Missing or empty title"
        assert errors[1].message == "Missing or empty explanation"
        assert errors[2].message.startswith("Invalid impact level: INVALID")

    def test_content_is_ignored(self) -> None:
        rule = make_rule()
        assert base_validator.validate_rule(rule, "test.md", "anything") == []

    def test_run_base_validations_matches_validator(self) -> None:
        rule = make_rule(title="")
        assert run_base_validations(rule, "test.md", "x") == base_validator.validate_rule(rule, "test.md", "x")


class TestRedisDevelopmentValidator:
    """Code example checks for the redis-development skill."""

    def test_name(self) -> None:
        assert redis_development_validator.name == "redis-development"

    def test_valid_rule(self) -> None:
        assert redis_development_validator.validate_rule(make_rule(), "test.md", "") == []

    def test_includes_base_errors(self) -> None:
        errors = redis_development_validator.validate_rule(make_rule(title="", explanation=""), "test.md", "")
        assert "Missing or empty title" in messages(errors)
        assert "Missing or empty explanation" in messages(errors)

    @pytest.mark.parametrize("examples", [(), None])
    def test_missing_examples_returns_early(self, examples: tuple[CodeExample, ...] | None) -> None:
        errors = redis_development_validator.validate_rule(make_rule(examples=examples), "test.md", "")
        assert messages(errors) == ["Missing examples (need at least one bad and one good example)"]

    def test_examples_without_code(self) -> None:
        rule = make_rule(examples=(CodeExample("Incorrect", ""), CodeExample("Correct", "   ")))
        errors = redis_development_validator.validate_rule(rule, "test.md", "")
        assert messages(errors) == ["Missing code examples"]

    @pytest.mark.parametrize(
        "label",
        ["incorrect", "Incorrect", "INCORRECT", "wrong", "Wrong", "bad", "Bad", "avoid", "Avoid"],
    )
    def test_bad_label_alone_is_enough(self, label: str) -> None:
        """Only a bad example is accepted: either category satisfies the check."""
        rule = make_rule(examples=(CodeExample(label, "# code"),))
        assert redis_development_validator.validate_rule(rule, "test.md", "") == []

    @pytest.mark.parametrize(
        "label",
        ["Correct", "good", "Usage", "Implementation", "Example", "Recommended"],
    )
    def test_good_label_alone_is_enough(self, label: str) -> None:
        rule = make_rule(examples=(CodeExample(label, "# code"),))
        assert redis_development_validator.validate_rule(rule, "test.md", "") == []

    def test_substring_match_in_longer_label(self) -> None:
        rule = make_rule(examples=(CodeExample("Incorrect (uses wrong pattern)", "KEYS *"),))
        assert redis_development_validator.validate_rule(rule, "test.md", "") == []

    def test_unrecognized_labels(self) -> None:
        rule = make_rule(examples=(CodeExample("Snippet", "x = 1"), CodeExample("Code", "y = 2")))
        errors = redis_development_validator.validate_rule(rule, "test.md", "")
        assert len(errors) == 1
        assert "bad/incorrect or good/correct" in errors[0].message

    def test_recognized_label_without_code_does_not_count(self) -> None:
        rule = make_rule(examples=(CodeExample("Correct", "  "), CodeExample("Snippet", "x = 1")))
        errors = redis_development_validator.validate_rule(rule, "test.md", "")
        assert len(errors) == 1
        assert "bad/incorrect or good/correct" in errors[0].message

    def test_is_idempotent(self) -> None:
        rule = make_rule(title="", examples=(CodeExample("Snippet", "x = 1"),))
        first = redis_development_validator.validate_rule(rule, "test.md", "")
        second = redis_development_validator.validate_rule(rule, "test.md", "")
        assert first == second
        assert len(first) == 2


# Six independent elements; each satisfies exactly one API content check
API_PARTS = {
    "endpoint": "**Endpoint:** `GET /subscriptions`",
    "curl": '```bash\ncurl -s -H "x-api-key: $API_KEY" "$API_URL"\n```',
    "python": "```python\nimport requests\n```",
    "typescript": "```typescript\nconst response = await fetch(url);\n```",
    "errors": "| Status | Meaning |\n|--------|---------|\n| 404 | Not found |",
    "reference": "Reference: [Subscriptions](https://redis.io/docs/latest/operate/rc/api/)",
}

API_MESSAGES = {
    "endpoint": "Missing endpoint documentation",
    "curl": "Missing curl example",
    "python": "Missing Python example",
    "typescript": "Missing TypeScript example",
    "errors": "Missing Common Errors table",
    "reference": "Missing reference link",
}

FULL_API_CONTENT = """
## Create Subscription

**Endpoint:** `POST /subscriptions`

### curl

```bash
curl -X POST "https://api.redislabs.com/v1/subscriptions" \\
  -H "x-api-key: $API_KEY" \\
  -H "x-api-secret-key: $API_SECRET"
```

### Python

```python
import requests

response = requests.post("https://api.redislabs.com/v1/subscriptions")
```

### TypeScript

```typescript
const response = await fetch("https://api.redislabs.com/v1/subscriptions", { method: "POST" });
```

**Common Errors:**

| Code | Meaning |
|------|---------|
| 400  | Invalid request body |
| 401  | Authentication failed |

Reference: [Redis Cloud API](https://redis.io/docs/latest/operate/rc/api/)
"""


def api_content(*, without: str | None = None) -> str:
    return "\n\n".join(text for key, text in API_PARTS.items() if key != without)


class TestRedisCloudApiValidator:
    """Raw-text checks for the redis-cloud-api skill."""

    def test_name(self) -> None:
        assert redis_cloud_api_validator.name == "redis-cloud-api"

    def test_full_document_passes(self) -> None:
        rule = make_rule(examples=())
        assert redis_cloud_api_validator.validate_rule(rule, "test.md", FULL_API_CONTENT) == []

    def test_independent_parts_pass(self) -> None:
        assert redis_cloud_api_validator.validate_rule(make_rule(), "test.md", api_content()) == []

    @pytest.mark.parametrize("missing", list(API_PARTS))
    def test_removing_one_part_adds_one_error(self, missing: str) -> None:
        errors = redis_cloud_api_validator.validate_rule(make_rule(), "test.md", api_content(without=missing))
        assert len(errors) == 1
        assert errors[0].message.startswith(API_MESSAGES[missing])

    def test_empty_content_reports_every_check(self) -> None:
        errors = redis_cloud_api_validator.validate_rule(make_rule(), "test.md", "")
        assert len(errors) == 6
        for expected, error in zip(API_MESSAGES.values(), errors):
            assert error.message.startswith(expected)

    def test_includes_base_errors(self) -> None:
        errors = redis_cloud_api_validator.validate_rule(make_rule(title=""), "test.md", FULL_API_CONTENT)
        assert messages(errors) == ["Missing or empty title"]

    def test_does_not_use_parsed_examples(self) -> None:
        """Rule examples are irrelevant; only the raw text is checked."""
        rule = make_rule(examples=None)
        assert redis_cloud_api_validator.validate_rule(rule, "test.md", FULL_API_CONTENT) == []


class TestApiContentPredicates:
    """Each named predicate on its own."""

    @pytest.mark.parametrize(
        "content",
        [
            "**Endpoint:** `GET /subscriptions/{subscriptionId}`",
            "**Endpoint: `DELETE /databases/1`**",
            "Use `POST /subscriptions` to create.",
            "### PUT /subscriptions/1",
            "See https://api.redislabs.com/v1/subscriptions",
            'curl -X PATCH "https://api.redislabs.com',
        ],
    )
    def test_endpoint_detected(self, content: str) -> None:
        assert has_endpoint(content)

    @pytest.mark.parametrize(
        "content",
        ["", "Just text", "```bash\ncurl https://example.com\n```", "GET /subscriptions without backticks"],
    )
    def test_endpoint_not_detected(self, content: str) -> None:
        assert not has_endpoint(content)

    def test_curl_example(self) -> None:
        assert has_curl_example("```bash\ncurl -s https://example.com\n```")
        assert has_curl_example("### curl\n\nSome curl instructions.")
        assert has_curl_example("#### cURL")
        assert not has_curl_example("```sh\ncurl -s https://example.com\n```")
        assert not has_curl_example("```bash\nwget https://example.com\n```")

    def test_python_example(self) -> None:
        assert has_python_example("```python\nimport requests\n```")
        assert has_python_example("```python\ndef create():\n    pass\n```")
        assert has_python_example("### Python\n")
        assert not has_python_example("```python\nprint(1)\n```")

    def test_typescript_example(self) -> None:
        assert has_typescript_example("```typescript\ninterface Sub { id: number }\n```")
        assert has_typescript_example("#### TypeScript")
        assert not has_typescript_example("```javascript\nconst x = 1\n```")

    @pytest.mark.parametrize(
        "content",
        [
            "**Common Errors:**",
            "**Common Errors**",
            "## Common Errors",
            "### Common Errors",
            "| Code | Meaning |",
            "| 429 | Too many requests |",
            "| Port | 443 |",
        ],
    )
    def test_common_errors_table_detected(self, content: str) -> None:
        assert has_common_errors_table(content)

    def test_common_errors_table_not_detected(self) -> None:
        assert not has_common_errors_table("| Name | Value |\n|------|-------|\n| a | 1234 |")

    def test_reference_link(self) -> None:
        assert has_reference_link("Reference: [Docs](https://example.com/docs)")
        assert has_reference_link("References: [A](https://example.com/a)")
        assert has_reference_link("See [the docs](https://redis.io/docs/latest/)")
        assert not has_reference_link("Reference: https://redis.io/docs/")
        assert not has_reference_link("See [the blog](https://redis.io/blog/)")


class TestRegistry:
    """Lookup with fallback to the base validator."""

    @pytest.mark.parametrize("name", ["base", "nonexistent-name", ""])
    def test_fallback_to_base(self, name: str) -> None:
        assert get_validator(name) is base_validator
        assert get_validator(name).name == "base"

    def test_resolves_skill_validators(self) -> None:
        assert get_validator("redis-development") is redis_development_validator
        assert get_validator("redis-development").name == "redis-development"
        assert get_validator("redis-cloud-api") is redis_cloud_api_validator

    def test_names(self) -> None:
        names = get_validator_names()
        assert {"base", "redis-development", "redis-cloud-api"} <= set(names)

    @pytest.mark.parametrize("name", get_validator_names())
    def test_registered_validators_satisfy_contract(self, name: str) -> None:
        validator = get_validator(name)
        assert isinstance(validator, RuleValidator)
        assert validator.name == name
        assert callable(validator.validate_rule)
        skill_check = getattr(validator, "validate_skill", None)
        if skill_check is not None:
            assert callable(skill_check)
