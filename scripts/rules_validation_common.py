#!/usr/bin/env python3
"""
Skill Rules Validation - Common Module

Shared reporting infrastructure for the rule and marketplace validators.
This module contains:
- Type definitions (Level, ValidationResult, ValidationReport)
- Exit codes
- Terminal formatting (colors, grouped result printing)

Validators that produce plain ValidationError lists (see rule_validators.py)
are converted into a ValidationReport by the CLIs for output.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# Type Definitions
# =============================================================================

# Result severity levels
# Hierarchy: CRITICAL > WARNING > INFO > PASSED
# - CRITICAL: blocks validation (non-zero exit code); every rule and
#   manifest error is CRITICAL
# - WARNING: never blocks, always reported
# - INFO/PASSED: shown in verbose mode only
Level = Literal["CRITICAL", "WARNING", "INFO", "PASSED"]

LEVELS: tuple[Level, ...] = ("CRITICAL", "WARNING", "INFO", "PASSED")

BLOCKING_LEVELS: tuple[Level, ...] = ("CRITICAL",)

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_OK = 0  # No blocking issues
EXIT_CRITICAL = 1  # CRITICAL issues found


@dataclass
class ValidationResult:
    """Single reported result.

    Attributes:
        level: Severity level
        message: Human-readable description of the result
        file: Optional file the result refers to
        rule_id: Optional rule identifier (rule validation only)
    """

    level: Level
    message: str
    file: str | None = None
    rule_id: str | None = None

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, str] = {"level": self.level, "message": self.message}
        if self.file is not None:
            result["file"] = self.file
        if self.rule_id is not None:
            result["rule_id"] = self.rule_id
        return result


@dataclass
class ValidationReport:
    """Accumulates results from one validation run.

    Errors are collected, never raised, so a run reports every problem
    it finds before deciding on an exit code.
    """

    results: list[ValidationResult] = field(default_factory=list)

    def add(self, level: Level, message: str, file: str | None = None, rule_id: str | None = None) -> None:
        """Add a validation result."""
        self.results.append(ValidationResult(level, message, file, rule_id))

    def passed(self, message: str, file: str | None = None) -> None:
        self.add("PASSED", message, file)

    def info(self, message: str, file: str | None = None) -> None:
        self.add("INFO", message, file)

    def warning(self, message: str, file: str | None = None) -> None:
        """Add a warning: always reported, never blocks validation."""
        self.add("WARNING", message, file)

    def critical(self, message: str, file: str | None = None, rule_id: str | None = None) -> None:
        self.add("CRITICAL", message, file, rule_id)

    @property
    def has_critical(self) -> bool:
        return any(r.level == "CRITICAL" for r in self.results)

    @property
    def exit_code(self) -> int:
        """EXIT_CRITICAL if any blocking issue was recorded, EXIT_OK if none."""
        return EXIT_CRITICAL if self.has_critical else EXIT_OK

    def count_by_level(self) -> dict[str, int]:
        """Get count of results by level."""
        counts: dict[str, int] = {level: 0 for level in LEVELS}
        for r in self.results:
            counts[r.level] += 1
        return counts

    def get_errors(self) -> list[ValidationResult]:
        """Get all blocking results."""
        return [r for r in self.results if r.level in BLOCKING_LEVELS]

    def get_results_by_level(self, level: Level) -> list[ValidationResult]:
        return [r for r in self.results if r.level == level]

    def merge(self, other: ValidationReport) -> None:
        """Merge results from another report into this one."""
        self.results.extend(other.results)

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "exit_code": self.exit_code,
            "counts": self.count_by_level(),
            "results": [r.to_dict() for r in self.results],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


# =============================================================================
# Utility Functions
# =============================================================================


def get_repo_root() -> Path:
    """Get the repository root directory (parent of scripts/)."""
    return Path(__file__).resolve().parent.parent


# =============================================================================
# Color Formatting (for terminal output)
# =============================================================================

# ANSI color codes
COLORS = {
    "CRITICAL": "\033[91m",  # Red
    "WARNING": "\033[95m",  # Magenta
    "INFO": "\033[90m",  # Gray
    "PASSED": "\033[92m",  # Green
    "RESET": "\033[0m",
    "BOLD": "\033[1m",
}


def colorize(text: str, level: str) -> str:
    """Apply color to text based on level."""
    color = COLORS.get(level, "")
    return f"{color}{text}{COLORS['RESET']}"


def format_result(result: ValidationResult, show_file: bool = True) -> str:
    """Format a single validation result for terminal output."""
    parts = [colorize(f"[{result.level}]", result.level)]
    if result.rule_id:
        parts.append(f" {result.rule_id}:")
    parts.append(f" {result.message}")
    if show_file and result.file:
        parts.append(f" ({result.file})")
    return "".join(parts)


def print_results_by_level(report: ValidationReport, verbose: bool = False) -> None:
    """Print validation results grouped by severity level."""
    for level in BLOCKING_LEVELS:
        results = report.get_results_by_level(level)
        if results:
            print(f"\n{COLORS[level]}--- {level} ISSUES ({len(results)}) ---{COLORS['RESET']}")
            for result in results:
                print(f"  {format_result(result)}")

    warnings = report.get_results_by_level("WARNING")
    if warnings:
        print(f"\n{COLORS['WARNING']}--- WARNINGS ({len(warnings)}) [non-blocking] ---{COLORS['RESET']}")
        for result in warnings:
            print(f"  {format_result(result)}")

    if verbose:
        for level in ("INFO", "PASSED"):
            results = report.get_results_by_level(level)
            if results:
                print(f"\n{COLORS[level]}--- {level} ({len(results)}) ---{COLORS['RESET']}")
                for result in results:
                    print(f"  {format_result(result)}")


def print_report_summary(report: ValidationReport, title: str = "Validation Report") -> None:
    """Print the header, per-level counts and the final verdict."""
    counts = report.count_by_level()

    print(f"\n{'=' * 60}")
    print(f"{COLORS['BOLD']}{title}{COLORS['RESET']}")
    print(f"{'=' * 60}")
    for level in ("CRITICAL", "WARNING"):
        print(colorize(f"{level + ':':<10}{counts[level]}", level))

    if report.exit_code == EXIT_OK:
        print(f"\n{COLORS['PASSED']}✓ All checks passed{COLORS['RESET']}")
    else:
        total = len(report.get_errors())
        print(f"\n{COLORS['CRITICAL']}✗ {total} error(s) found{COLORS['RESET']}")
