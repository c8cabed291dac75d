#!/usr/bin/env python3
"""
Skill Rules Validation - Rules Validator

Validates the rule files (.md) of one or more skills. Each rule file is
parsed into a Rule and checked by the validator configured for its skill
(see rule_validators.py). Files whose name starts with '_' are skipped.

Usage:
    uv run python scripts/validate_rules.py                        # default skill
    uv run python scripts/validate_rules.py --all                  # every skill
    uv run python scripts/validate_rules.py --skill redis-cloud-api
    uv run python scripts/validate_rules.py --all --json
    uv run python scripts/validate_rules.py --skills-dir path/to/skills --verbose

Environment:
    SKILL_RULES_DIR  Skills directory used when --skills-dir is not given

Exit codes:
    0 - All rule files are valid
    1 - Validation errors found (or unknown skill)
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from rule_parser import RuleParseError, parse_rule_file
from rule_types import Rule, ValidationError, get_skill_check
from rule_validators import get_validator
from rules_validation_common import COLORS, EXIT_CRITICAL, ValidationReport, format_result
from skill_config import DEFAULT_SKILL, SKILLS, SkillConfig, get_skills_dir


def list_rule_files(rules_dir: Path) -> list[Path]:
    """Rule files in a rules directory, sorted, skipping '_' prefixed files."""
    return sorted(p for p in rules_dir.glob("*.md") if p.is_file() and not p.name.startswith("_"))


def validate_skill(skill: SkillConfig, skills_dir: Path) -> tuple[list[ValidationError], ValidationReport]:
    """Validate every rule file of a skill.

    Parse and read failures are reported as errors without a rule id.
    Subsections are numbered 1..n per section in file name order.

    Returns:
        Tuple of (errors, report). The report holds progress/info results
        only; callers add the errors to it for output.
    """
    report = ValidationReport()
    rules_dir = skill.rules_dir(skills_dir)
    validator = get_validator(skill.validator_name)

    report.info(f"Validating {skill.name} (rules directory: {rules_dir})")
    report.info(f"Using validator: {validator.name}")

    if not rules_dir.is_dir():
        report.info("No rules directory found. Nothing to validate.")
        return [], report

    rule_files = list_rule_files(rules_dir)
    if not rule_files:
        report.info("No rule files found. Nothing to validate.")
        return [], report

    errors: list[ValidationError] = []
    rules: list[Rule] = []
    parsed_files: list[str] = []
    subsections: dict[int, int] = {}

    for rule_path in rule_files:
        file = rule_path.name
        try:
            rule, content = parse_rule_file(rule_path, skill.section_map)
        except (OSError, UnicodeDecodeError, RuleParseError) as e:
            errors.append(ValidationError(file, None, f"Failed to parse: {e}"))
            continue

        subsections[rule.section] = subsections.get(rule.section, 0) + 1
        subsection = subsections[rule.section]
        rule = _with_subsection(rule, subsection)

        errors.extend(validator.validate_rule(rule, file, content))
        rules.append(rule)
        parsed_files.append(file)

    skill_check = get_skill_check(validator)
    if skill_check is not None:
        errors.extend(skill_check(rules, parsed_files))

    if not errors:
        report.passed(f"All {len(rule_files)} rule files are valid")

    return errors, report


def _with_subsection(rule: Rule, subsection: int) -> Rule:
    return replace(rule, subsection=subsection, id=f"{rule.section}.{subsection}")


def add_errors(report: ValidationReport, errors: list[ValidationError]) -> None:
    """Record rule errors in a report; every rule error blocks validation."""
    for error in errors:
        report.critical(error.message, error.file, error.rule_id)


def select_skills(skill_name: str | None, validate_all: bool) -> list[SkillConfig]:
    """Skills to validate for the given flags.

    Raises:
        KeyError: If skill_name is not a known skill
    """
    if validate_all:
        return list(SKILLS.values())
    if skill_name:
        return [SKILLS[skill_name]]
    return [SKILLS[DEFAULT_SKILL]]


# =============================================================================
# Output Functions
# =============================================================================


def print_errors_by_file(errors: list[ValidationError]) -> None:
    """Print errors grouped by rule file."""
    by_file: dict[str, list[ValidationError]] = {}
    for error in errors:
        by_file.setdefault(error.file, []).append(error)

    print(f"\n{COLORS['CRITICAL']}✗ Validation failed:{COLORS['RESET']}\n")
    for file, file_errors in by_file.items():
        print(f"  {file}:")
        for error in file_errors:
            rule_info = f"[{error.rule_id}] " if error.rule_id else ""
            print(f"    - {rule_info}{error.message}")

    print(f"\n  Total: {len(errors)} error(s)")


# =============================================================================
# Main
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Validate skill rule files")
    parser.add_argument("--skill", help="Validate a single skill by name")
    parser.add_argument("--all", action="store_true", help="Validate all skills")
    parser.add_argument(
        "--skills-dir",
        type=Path,
        default=None,
        help="Directory holding <skill>/rules/ (default: $SKILL_RULES_DIR or ./skills)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show info and passed results")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    args = parser.parse_args(argv)

    try:
        skills = select_skills(args.skill, args.all)
    except KeyError:
        print(f"Unknown skill: {args.skill}", file=sys.stderr)
        print(f"Available skills: {', '.join(SKILLS)}", file=sys.stderr)
        return EXIT_CRITICAL

    skills_dir = args.skills_dir if args.skills_dir is not None else get_skills_dir()

    if not args.json:
        print("Validating rule files...")

    report = ValidationReport()
    all_errors: list[ValidationError] = []
    for skill in skills:
        errors, skill_report = validate_skill(skill, skills_dir)
        report.merge(skill_report)
        add_errors(report, errors)
        all_errors.extend(errors)

    if args.json:
        print(report.to_json())
        return report.exit_code

    if args.verbose:
        for result in report.results:
            if result.level in ("INFO", "PASSED"):
                print(f"  {format_result(result, show_file=False)}")

    if all_errors:
        print_errors_by_file(all_errors)
    else:
        print(f"\n{COLORS['PASSED']}✓ All validations passed{COLORS['RESET']}")

    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
