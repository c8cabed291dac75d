#!/usr/bin/env python3
"""
Skill Rules Validation - Plugin Marketplace Validator

Validates the plugin marketplace manifests shipped with the skills:

- claude: .claude-plugin/marketplace.json, plugins carry .claude-plugin/plugin.json
- cursor: .cursor-plugin/marketplace.json, plugins carry .cursor-plugin/plugin.json;
          plugin sources are resolved under metadata.pluginRoot, plugin logos
          are checked and every skills/<name>/SKILL.md needs name/description
          frontmatter

Checks:
- marketplace.json exists, parses, and has name / owner.name / plugins
- marketplace and plugin names follow kebab-case naming
- plugin names are unique
- plugin sources are safe relative paths to existing directories
- plugin manifests exist, parse, and have a name
- paths referenced by plugin manifests (skills, mcpServers, ...) are safe and exist

Usage:
    uv run python scripts/validate_plugins.py
    uv run python scripts/validate_plugins.py --flavor cursor
    uv run python scripts/validate_plugins.py --root path/to/repo --json

Exit codes:
    0 - All checks passed (warnings do not block)
    1 - Errors found
"""

from __future__ import annotations

import argparse
import json
import posixpath
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from rules_validation_common import (
    EXIT_OK,
    ValidationReport,
    get_repo_root,
    print_report_summary,
    print_results_by_level,
)

# Plugin names: lowercase, digits, hyphens and periods
NAME_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9.-]*[a-z0-9])?$")

# Marketplace names: lowercase kebab-case
MARKETPLACE_NAME_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$")

# plugin.json fields holding a path or a list of paths
PATH_FIELDS = ("skills", "commands", "agents", "hooks", "mcpServers", "lspServers")

FRONTMATTER_RE = re.compile(r"^---\n(.*?)\n---", re.DOTALL)


@dataclass(frozen=True)
class MarketplaceFlavor:
    """Layout differences between plugin hosts."""

    name: str
    title: str
    config_dir: str
    use_plugin_root: bool = False
    check_logo: bool = False
    check_skill_files: bool = False


FLAVORS: dict[str, MarketplaceFlavor] = {
    "claude": MarketplaceFlavor(name="claude", title="Claude", config_dir=".claude-plugin"),
    "cursor": MarketplaceFlavor(
        name="cursor",
        title="Cursor",
        config_dir=".cursor-plugin",
        use_plugin_root=True,
        check_logo=True,
        check_skill_files=True,
    ),
}


# =============================================================================
# Helpers
# =============================================================================


def is_safe_relative_path(path: Any) -> bool:
    """True for a non-empty relative path string without '..', '/' or '~' prefix."""
    if not path or not isinstance(path, str):
        return False
    if path.startswith("/") or path.startswith("~"):
        return False
    return ".." not in path


def extract_paths(value: Any) -> list[str]:
    """Paths held by a plugin.json field; inline objects hold none."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [v for v in value if isinstance(v, str)]
    return []


def read_json(path: Path, report: ValidationReport, label: str) -> Any | None:
    """Load a JSON file, recording a parse failure as an error."""
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        report.critical(f"Failed to parse {label}: {e}", str(path))
        return None


def parse_skill_frontmatter(content: str) -> dict[str, Any] | None:
    """Parse SKILL.md frontmatter.

    Returns:
        The frontmatter mapping, or None when there is no frontmatter block

    Raises:
        yaml.YAMLError: If the block is not valid YAML
    """
    match = FRONTMATTER_RE.match(content.replace("\r\n", "\n"))
    if not match:
        return None
    frontmatter = yaml.safe_load(match.group(1))
    return frontmatter if isinstance(frontmatter, dict) else {}


# =============================================================================
# Validation Functions
# =============================================================================


def validate_skill_files(plugin_dir: Path, plugin_label: str, report: ValidationReport) -> None:
    """Check every skills/<name>/SKILL.md has name and description frontmatter."""
    skills_dir = plugin_dir / "skills"
    if not skills_dir.is_dir():
        return

    try:
        entries = sorted(skills_dir.iterdir())
    except OSError:
        return

    for entry in entries:
        if not entry.is_dir():
            continue
        skill_md = entry / "SKILL.md"
        if not skill_md.exists():
            report.warning(f"{plugin_label}: skill '{entry.name}' missing SKILL.md")
            continue

        try:
            frontmatter = parse_skill_frontmatter(skill_md.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            report.critical(f"{plugin_label}: skill '{entry.name}/SKILL.md' has unreadable frontmatter: {e}")
            continue

        if frontmatter is None:
            report.critical(f"{plugin_label}: skill '{entry.name}/SKILL.md' missing YAML frontmatter")
            continue
        if not frontmatter.get("name"):
            report.critical(f"{plugin_label}: skill '{entry.name}/SKILL.md' frontmatter missing 'name'")
        if not frontmatter.get("description"):
            report.critical(f"{plugin_label}: skill '{entry.name}/SKILL.md' frontmatter missing 'description'")


def validate_plugin_manifest(
    plugin_dir: Path,
    plugin_label: str,
    flavor: MarketplaceFlavor,
    report: ValidationReport,
) -> None:
    """Validate <config_dir>/plugin.json and the paths it references."""
    manifest_path = plugin_dir / flavor.config_dir / "plugin.json"
    if not manifest_path.exists():
        report.critical(f"{plugin_label}: missing {flavor.config_dir}/plugin.json")
        return

    manifest = read_json(manifest_path, report, "plugin.json")
    if manifest is None:
        return
    if not isinstance(manifest, dict):
        report.critical(f"{plugin_label}: plugin.json must be a JSON object")
        return

    if not manifest.get("name"):
        report.critical(f"{plugin_label}: plugin.json missing 'name' field")

    logo = manifest.get("logo")
    if flavor.check_logo and logo:
        if not is_safe_relative_path(logo):
            report.critical(f"{plugin_label}: logo path '{logo}' is not safe")
        elif not (plugin_dir / logo).exists():
            report.critical(f"{plugin_label}: logo file not found: {logo}")

    for field_name in PATH_FIELDS:
        if field_name not in manifest:
            continue
        for path in extract_paths(manifest[field_name]):
            if not is_safe_relative_path(path):
                report.critical(f"{plugin_label}: plugin.json '{field_name}' contains unsafe path '{path}'")
                continue
            if not (plugin_dir / path).exists():
                report.critical(f"{plugin_label}: plugin.json '{field_name}' references non-existent path '{path}'")

    if flavor.check_skill_files:
        validate_skill_files(plugin_dir, plugin_label, report)


def validate_plugin_entry(
    entry: dict[str, Any],
    root: Path,
    plugin_root: str,
    flavor: MarketplaceFlavor,
    report: ValidationReport,
) -> None:
    """Validate one marketplace plugin entry and the plugin it points at."""
    name = entry.get("name")
    plugin_label = f"plugin '{name or '(unnamed)'}'"

    if not name:
        report.critical(f"{plugin_label}: missing 'name' field")
        return
    if not isinstance(name, str) or not NAME_PATTERN.match(name):
        report.critical(f"{plugin_label}: name must match pattern {NAME_PATTERN.pattern} (lowercase, hyphens, periods)")

    source = entry.get("source")
    if not source or not isinstance(source, str):
        report.critical(f"{plugin_label}: missing or invalid 'source' field")
        return

    if plugin_root:
        source_path = posixpath.join(plugin_root, source.removeprefix("./"))
        if not is_safe_relative_path(source_path):
            report.critical(f"{plugin_label}: resolved source '{source_path}' must be a safe relative path")
            return
    else:
        source_path = source
        if not is_safe_relative_path(source_path):
            report.critical(f"{plugin_label}: source '{source}' must be a safe relative path (no ../, no absolute)")
            return

    plugin_dir = root / source_path
    if not plugin_dir.is_dir():
        report.critical(f"{plugin_label}: source directory not found: {source_path}")
        return

    validate_plugin_manifest(plugin_dir, plugin_label, flavor, report)
    report.passed(f"{plugin_label}: validated")


def validate_marketplace(root: Path, flavor: MarketplaceFlavor) -> ValidationReport:
    """Validate the marketplace manifest of one flavor under a repository root.

    Args:
        root: Repository root holding <config_dir>/marketplace.json
        flavor: Which plugin host layout to validate

    Returns:
        ValidationReport with all findings; errors are CRITICAL
    """
    report = ValidationReport()
    marketplace_path = root / flavor.config_dir / "marketplace.json"

    if not marketplace_path.exists():
        report.critical(f"Marketplace manifest not found: {marketplace_path}")
        return report

    marketplace = read_json(marketplace_path, report, "marketplace.json")
    if marketplace is None:
        return report
    if not isinstance(marketplace, dict):
        report.critical("marketplace.json must be a JSON object")
        return report

    name = marketplace.get("name")
    if not name:
        report.critical("marketplace.json: missing 'name' field")
    elif not isinstance(name, str) or not MARKETPLACE_NAME_PATTERN.match(name):
        report.critical(f"marketplace.json: name '{name}' must be lowercase kebab-case")

    owner = marketplace.get("owner")
    if not isinstance(owner, dict) or not owner.get("name"):
        report.critical("marketplace.json: missing 'owner.name' field")

    plugins = marketplace.get("plugins")
    if not isinstance(plugins, list) or not plugins:
        report.critical("marketplace.json: 'plugins' must be a non-empty array")
        return report

    metadata = marketplace.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
    plugin_root = str(metadata.get("pluginRoot") or "") if flavor.use_plugin_root else ""

    seen: set[str] = set()
    for plugin in plugins:
        plugin_name = plugin.get("name") if isinstance(plugin, dict) else None
        if not isinstance(plugin_name, str):
            continue
        if plugin_name in seen:
            report.critical(f"marketplace.json: duplicate plugin name '{plugin_name}'")
        seen.add(plugin_name)

    for index, plugin in enumerate(plugins):
        if not isinstance(plugin, dict):
            report.critical(f"marketplace.json: plugins[{index}] must be an object")
            continue
        validate_plugin_entry(plugin, root, plugin_root, flavor, report)

    if not metadata.get("description"):
        report.warning("marketplace.json: no description in metadata")

    return report


# =============================================================================
# Main
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Validate plugin marketplace configuration")
    parser.add_argument(
        "--flavor",
        choices=[*FLAVORS, "all"],
        default="all",
        help="Marketplace layout to validate (default: all)",
    )
    parser.add_argument("--root", type=Path, default=None, help="Repository root (default: parent of scripts/)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show info and passed results")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    args = parser.parse_args(argv)

    root = args.root.resolve() if args.root is not None else get_repo_root()
    flavors = list(FLAVORS.values()) if args.flavor == "all" else [FLAVORS[args.flavor]]

    exit_code = EXIT_OK
    json_output: dict[str, object] = {}
    for flavor in flavors:
        report = validate_marketplace(root, flavor)
        if exit_code == EXIT_OK:
            exit_code = report.exit_code
        if args.json:
            json_output[flavor.name] = report.to_dict()
        else:
            print_report_summary(report, f"{flavor.title} Plugin Validation")
            print_results_by_level(report, args.verbose)

    if args.json:
        print(json.dumps(json_output, indent=2))

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
