#!/usr/bin/env python3
"""
Skill Rules Validation - Rule Parser

Turns a rule markdown file into a Rule. Expected layout:

    ---
    title: Use connection pooling
    impact: HIGH
    impactDescription: avoids a TCP handshake per command
    tags: connections, performance
    ---

    ## Use connection pooling

    Explanation paragraphs...

    **Incorrect (new connection per request):**

    ```python
    r = redis.Redis()
    ```

    **Correct:**

    ```python
    pool = redis.ConnectionPool()
    ```

    Reference: [Connection pools](https://redis.io/docs/...)

Example labels are full-line bold text or ### / #### headings; a label with
no code block after it stays in the surrounding prose. The parser
does not judge content; missing titles, bad impact values and so on are left
for the rule validators to report.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from rule_types import CodeExample, Rule


class RuleParseError(ValueError):
    """Raised when a rule file cannot be turned into a Rule."""


# Level 1/2 heading on the first body line is the rule title
TITLE_HEADING_RE = re.compile(r"^#{1,2}\s+(?P<title>.+?)\s*$")

# ### / #### headings label the example that follows
LABEL_HEADING_RE = re.compile(r"^#{3,4}\s+(?P<label>.+?)\s*$")

# A line made only of bold text, e.g. **Incorrect (blocks the loop):**
BOLD_LABEL_RE = re.compile(r"^\*\*(?P<label>[^*]+?)\*\*\s*:?\s*$")

FENCE_RE = re.compile(r"^(?P<fence>`{3,}|~{3,})\s*(?P<lang>[\w+#.-]*)")

REFERENCE_RE = re.compile(r"^References?:", re.IGNORECASE)

LINK_RE = re.compile(r"\[[^\]]*\]\((?P<url>[^)\s]+)[^)]*\)")


# =============================================================================
# Frontmatter
# =============================================================================


def parse_frontmatter(content: str) -> tuple[dict[str, Any] | None, str]:
    """Split YAML frontmatter from the markdown body.

    Returns:
        Tuple of (frontmatter_dict, body). (None, content) when the content
        has no frontmatter block.

    Raises:
        RuleParseError: If the frontmatter is not valid YAML or not a mapping
    """
    if not content.startswith("---"):
        return None, content

    parts = content.split("---", 2)
    if len(parts) < 3:
        return None, content

    try:
        frontmatter = yaml.safe_load(parts[1])
    except yaml.YAMLError as e:
        raise RuleParseError(f"Invalid YAML frontmatter: {e}") from e

    if frontmatter is None:
        frontmatter = {}
    if not isinstance(frontmatter, dict):
        raise RuleParseError("Frontmatter is not a YAML mapping")

    return frontmatter, parts[2]


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_tags(value: Any) -> tuple[str, ...]:
    """Tags may be a YAML list or a comma-separated string."""
    if value is None:
        return ()
    items = value if isinstance(value, list) else str(value).split(",")
    return tuple(tag for tag in (str(item).strip() for item in items) if tag)


# =============================================================================
# Sections
# =============================================================================


def resolve_section(filename: str, section_map: dict[str, int]) -> int:
    """Map a rule file name to its section number via its prefix.

    The stem must equal a prefix or start with '<prefix>-'. The longest
    matching prefix wins, so 'semantic-cache-ttl.md' resolves through
    'semantic-cache' even though other prefixes may also match.

    Raises:
        RuleParseError: If no prefix matches
    """
    stem = Path(filename).stem
    for prefix in sorted(section_map, key=len, reverse=True):
        if stem == prefix or stem.startswith(f"{prefix}-"):
            return section_map[prefix]
    raise RuleParseError(
        f"Unknown section prefix in '{filename}' (expected one of: {', '.join(sorted(section_map))})"
    )


# =============================================================================
# Body
# =============================================================================


def _join(lines: list[str]) -> str | None:
    text = "\n".join(lines).strip()
    return text or None


@dataclass
class _ExampleDraft:
    """Example being collected; code stays None until a fence opens."""

    label: str
    label_line: str = ""
    description: list[str] = field(default_factory=list)
    language: str | None = None
    code: list[str] | None = None
    additional: list[str] = field(default_factory=list)

    def build(self) -> CodeExample:
        return CodeExample(
            label=self.label,
            code="\n".join(self.code or []),
            description=_join(self.description),
            language=self.language,
            additional_text=_join(self.additional),
        )


def _label_of(line: str) -> str | None:
    """Return the example label on this line, or None."""
    match = BOLD_LABEL_RE.match(line) or LABEL_HEADING_RE.match(line)
    if not match:
        return None
    return match.group("label").strip().rstrip(":").strip()


def parse_body(body: str) -> tuple[str | None, str, tuple[CodeExample, ...], tuple[str, ...]]:
    """Parse the markdown body of a rule.

    Returns:
        Tuple of (heading_title, explanation, examples, references)
    """
    lines = body.split("\n")

    # Drop leading blank lines and take a leading # / ## heading as the title
    while lines and not lines[0].strip():
        lines.pop(0)
    heading_title = None
    if lines:
        match = TITLE_HEADING_RE.match(lines[0].strip())
        if match:
            heading_title = match.group("title")
            lines.pop(0)

    explanation: list[str] = []
    drafts: list[_ExampleDraft] = []
    references: list[str] = []
    draft: _ExampleDraft | None = None
    fence: str | None = None
    code_lines: list[str] = []

    def finish_draft() -> None:
        if draft is None:
            return
        if draft.code is not None:
            drafts.append(draft)
            return
        # A label never followed by a code block was a subheading; keep its
        # text with the prose it interrupted
        text = [draft.label_line, *draft.description]
        if drafts:
            drafts[-1].additional.extend(text)
        else:
            explanation.extend(text)

    for line in lines:
        stripped = line.strip()

        if fence is not None:
            # Closing fence: same character, at least as long, nothing else
            if stripped.startswith(fence) and not stripped.strip(fence[0]):
                fence = None
            else:
                code_lines.append(line)
            continue

        fence_match = FENCE_RE.match(stripped)
        if fence_match:
            if draft is None or draft.code is not None:
                finish_draft()
                draft = _ExampleDraft(label="")
            code_lines = []
            draft.language = fence_match.group("lang") or None
            draft.code = code_lines
            fence = fence_match.group("fence")
            continue

        label = _label_of(stripped)
        if label is not None:
            finish_draft()
            draft = _ExampleDraft(label=label, label_line=line)
            continue

        if REFERENCE_RE.match(stripped):
            references.extend(m.group("url") for m in LINK_RE.finditer(stripped))
            continue

        if draft is None:
            explanation.append(line)
        elif draft.code is None:
            draft.description.append(line)
        else:
            draft.additional.append(line)

    # An unterminated fence keeps whatever code it collected
    finish_draft()

    examples = tuple(d.build() for d in drafts)
    return heading_title, "\n".join(explanation).strip(), examples, tuple(references)


# =============================================================================
# Rule
# =============================================================================


def parse_rule_text(
    content: str,
    filename: str,
    section_map: dict[str, int],
    subsection: int | None = None,
) -> Rule:
    """Parse the raw text of a rule file.

    Args:
        content: Raw file content
        filename: File name, used for the section prefix
        section_map: Prefix -> section number for the rule's skill
        subsection: Optional position of the rule within its section

    Raises:
        RuleParseError: On missing/invalid frontmatter or unknown prefix
    """
    content = content.replace("\r\n", "\n").removeprefix("\ufeff")
    frontmatter, body = parse_frontmatter(content)
    if frontmatter is None:
        raise RuleParseError("Missing YAML frontmatter")

    section = resolve_section(filename, section_map)
    heading_title, explanation, examples, references = parse_body(body)

    title = _optional_text(frontmatter.get("title")) or heading_title
    impact = frontmatter.get("impact")
    rule_id = f"{section}.{subsection}" if subsection is not None else str(section)

    return Rule(
        id=rule_id,
        title=title,
        section=section,
        subsection=subsection,
        impact="" if impact is None else str(impact).strip(),
        impact_description=_optional_text(frontmatter.get("impactDescription")),
        explanation=explanation,
        examples=examples,
        references=references,
        tags=_parse_tags(frontmatter.get("tags")),
    )


def parse_rule_file(path: Path, section_map: dict[str, int], subsection: int | None = None) -> tuple[Rule, str]:
    """Read and parse a rule file.

    Returns:
        Tuple of (rule, raw_content); validators need the raw text too.

    Raises:
        OSError, UnicodeDecodeError: If the file cannot be read as UTF-8
        RuleParseError: If the content cannot be parsed
    """
    content = path.read_text(encoding="utf-8")
    return parse_rule_text(content, path.name, section_map, subsection), content
