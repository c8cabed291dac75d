#!/usr/bin/env python3
"""
Skill Rules Validation - Skill Configuration

Known skills, their rule-file section prefixes and the validator each uses.

Rule files live in <skills dir>/<skill name>/rules/. The skills directory
defaults to <repo root>/skills.

Environment:
    SKILL_RULES_DIR  Override the skills directory
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from rules_validation_common import get_repo_root

SKILLS_DIR_ENV_VAR = "SKILL_RULES_DIR"


@dataclass(frozen=True)
class SkillConfig:
    """Configuration of one skill.

    Attributes:
        name: Skill name, also the name of its directory
        title: Human-readable title
        section_map: Rule file name prefix -> section number
        validator: Validator name; defaults to the skill name (and the
            registry falls back to 'base' for unknown names)
    """

    name: str
    title: str
    section_map: dict[str, int]
    validator: str | None = None

    @property
    def validator_name(self) -> str:
        return self.validator or self.name

    def rules_dir(self, skills_dir: Path) -> Path:
        return skills_dir / self.name / "rules"


SKILLS: dict[str, SkillConfig] = {
    "redis-development": SkillConfig(
        name="redis-development",
        title="Redis Development",
        section_map={
            "data": 1,
            "ram": 2,
            "conn": 3,
            "json": 4,
            "rqe": 5,
            "vector": 6,
            "semantic-cache": 7,
            "stream": 8,
            "cluster": 9,
            "security": 10,
            "observe": 11,
        },
        validator="redis-development",
    ),
    "redis-cloud-api": SkillConfig(
        name="redis-cloud-api",
        title="Redis Cloud API",
        section_map={
            "auth": 1,
            "tasks": 2,
            "sub-pro": 3,
            "sub-ess": 4,
            "db-pro": 5,
            "db-ess": 6,
            "conn": 7,
            "rbac": 8,
            "cloud": 9,
            "account": 10,
            "errors": 11,
        },
        validator="redis-cloud-api",
    ),
}

# Skill validated when no --skill/--all flag is given
DEFAULT_SKILL = "redis-development"


def get_skills_dir() -> Path:
    """Return the skills directory, respecting the SKILL_RULES_DIR override."""
    override = os.environ.get(SKILLS_DIR_ENV_VAR, "").strip()
    if override:
        return Path(override)
    return get_repo_root() / "skills"
