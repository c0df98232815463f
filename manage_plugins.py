#!/usr/bin/env python3
"""mzforge command line tool: generate, validate and import plugins, scan projects."""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Ensure project root is in path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

load_dotenv()
logging.basicConfig(level=logging.WARNING, format="%(levelname)s - %(name)s - %(message)s")

import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mzforge.constants import DEFAULT_PROJECT_PATH, PLUGINS_MANIFEST
from mzforge.core.parser import HeaderParseError, parse_plugin, scan_header
from mzforge.core.validator import validate
from mzforge.dependencies import get_editing_session, get_scan_service
from mzforge.models.plugin import PluginDefinition
from mzforge.project.scanner import ProjectScanError, ProjectScanner

console = Console(legacy_windows=False, tab_size=4)

SEVERITY_STYLES = {"error": "red", "warning": "yellow", "info": "cyan"}


def load_definition(path: Path) -> PluginDefinition:
    """Load a plugin from a .js source file or a JSON/YAML definition file."""
    if not path.exists():
        console.print(f"[red]File does not exist: {path}[/red]")
        sys.exit(1)

    with open(path, "r", encoding="utf-8") as f:
        content = f.read()

    if path.suffix == ".js":
        return parse_plugin(content, path.name)

    try:
        data = yaml.safe_load(content) if path.suffix in (".yaml", ".yml") else json.loads(content)
        return PluginDefinition.model_validate(data)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        console.print(f"[red]Cannot parse {path}: {e}[/red]")
    except ValidationError as e:
        console.print(f"[red]Invalid plugin definition in {path}:[/red]\n{e}")
    sys.exit(1)


def resolve_project(path_arg) -> Path:
    project = Path(path_arg) if path_arg else DEFAULT_PROJECT_PATH
    if not project:
        console.print("[red]No project path given and MZFORGE_PROJECT_PATH is not set.[/red]")
        sys.exit(1)
    return Path(project)


def write_output(text: str, output) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        console.print(f"Written to {output}")
    else:
        sys.stdout.write(text)


def print_validation(result) -> None:
    for error in result.errors:
        console.print(f"[red]error[/red]   {error}")
    for warning in result.warnings:
        console.print(f"[yellow]warning[/yellow] {warning}")
    status = "[green]valid[/green]" if result.valid else "[red]invalid[/red]"
    console.print(f"{status}: {len(result.errors)} error(s), {len(result.warnings)} warning(s)")


def cmd_generate(args):
    """Generate plugin source from a definition."""
    session = get_editing_session()
    session.open_plugin(load_definition(Path(args.definition)))
    write_output(session.preview(raw_mode=args.raw), args.output)


def cmd_validate(args):
    """Validate a definition or plugin file."""
    plugin = load_definition(Path(args.definition))
    known = [name.strip() for name in args.known.split(",") if name.strip()] if args.known else None
    result = validate(plugin, known)
    print_validation(result)
    if not result.valid:
        sys.exit(1)


def cmd_import(args):
    """Import a plugin file into a JSON or YAML definition."""
    source = Path(args.plugin_file)
    if not source.exists():
        console.print(f"[red]File does not exist: {source}[/red]")
        sys.exit(1)

    plugin = get_editing_session().import_source(source.read_text(encoding="utf-8"), source.name)
    data = plugin.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"raw_source"})
    if args.output and Path(args.output).suffix in (".yaml", ".yml"):
        text = yaml.safe_dump(data, allow_unicode=True, sort_keys=False)
    else:
        text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    write_output(text, args.output)


def cmd_scan(args):
    """Scan a project for method conflicts and dependency problems."""
    project = resolve_project(args.project)
    service = get_scan_service()
    service.load_order = args.load_order
    try:
        result = service.rescan(project)
    except ProjectScanError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    if args.json:
        sys.stdout.write(result.model_dump_json(indent=2) + "\n")
        return

    deps = result.dependencies
    console.print(Panel.fit(
        f"Project: {result.project_path}\n"
        f"Plugins: {len(deps.plugin_names)}   Overrides: {result.conflicts.total_overrides}\n"
        f"Conflicts: {result.conflicts.health}   Dependencies: {deps.health}",
        title="mzforge scan",
        border_style="blue",
    ))

    if result.conflicts.conflicts:
        table = Table(title="Shared methods")
        table.add_column("Severity")
        table.add_column("Method", style="cyan")
        table.add_column("Plugins (load order)")
        for conflict in result.conflicts.conflicts:
            style = SEVERITY_STYLES[conflict.severity]
            method = conflict.method + (" (static)" if conflict.static else "")
            if conflict.destructive:
                method += " [red]overwritten[/red]"
            table.add_row(f"[{style}]{conflict.severity}[/{style}]", method, " -> ".join(conflict.plugins))
        console.print(table)
        console.print(f"[dim]{result.conflicts.advisory}[/dim]")

    if deps.issues:
        table = Table(title="Dependency issues")
        table.add_column("Severity")
        table.add_column("Plugin", style="cyan")
        table.add_column("Issue")
        for issue in deps.issues:
            style = SEVERITY_STYLES[issue.severity]
            message = issue.message + (f"\n[dim]{issue.details}[/dim]" if issue.details else "")
            table.add_row(f"[{style}]{issue.severity}[/{style}]", issue.plugin, message)
        console.print(table)

    if deps.suggested_order and deps.suggested_order != deps.load_order:
        console.print("Suggested load order: " + ", ".join(deps.suggested_order))

    if deps.health == "errors":
        sys.exit(1)


def cmd_doctor(args):
    """Run health checks on a project's plugin files."""
    project = resolve_project(args.project)
    issues = []

    if not project.is_dir():
        console.print(f"[red]Project directory missing: {project}[/red]")
        sys.exit(1)
    if not (project / PLUGINS_MANIFEST).exists():
        issues.append(f"Plugin manifest missing: {project / PLUGINS_MANIFEST}")

    scanner = ProjectScanner(project)
    try:
        sources = scanner.collect_sources()
    except ProjectScanError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    names = [source.name for source in sources if source.readable]
    for source in sources:
        if not source.readable:
            issues.append(f"{source.label}: cannot be read ({source.error})")
            continue
        try:
            scan_header(source.text)
        except HeaderParseError as e:
            issues.append(f"{source.label}: {e}")
            continue
        result = validate(parse_plugin(source.text, source.filename), names)
        for error in result.errors:
            issues.append(f"{source.label}: {error}")

    if issues:
        console.print(f"Found {len(issues)} issue(s):")
        for i, issue in enumerate(issues, 1):
            console.print(f"  {i}. {issue}")
        sys.exit(1)
    else:
        console.print(f"All checks passed. {len(sources)} plugin(s) found.")


def main():
    parser = argparse.ArgumentParser(description="mzforge - RPG Maker MZ plugin toolkit")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # generate
    generate_parser = subparsers.add_parser("generate", help="Generate plugin source from a definition")
    generate_parser.add_argument("definition", help="Definition file (.json, .yaml) or plugin file (.js)")
    generate_parser.add_argument("--raw", action="store_true", help="Keep the body of an imported plugin")
    generate_parser.add_argument("-o", "--output", help="Output file (default: stdout)")

    # validate
    validate_parser = subparsers.add_parser("validate", help="Validate a definition")
    validate_parser.add_argument("definition", help="Definition file (.json, .yaml) or plugin file (.js)")
    validate_parser.add_argument("--known", help="Comma-separated plugin names of the project")

    # import
    import_parser = subparsers.add_parser("import", help="Import a plugin file into a definition")
    import_parser.add_argument("plugin_file", help="Plugin source file (.js)")
    import_parser.add_argument("-o", "--output", help="Output file, .json or .yaml (default: JSON to stdout)")

    # scan
    scan_parser = subparsers.add_parser("scan", help="Scan a project for conflicts and dependency issues")
    scan_parser.add_argument("project", nargs="?", help="Project root (default: MZFORGE_PROJECT_PATH)")
    scan_parser.add_argument("--load-order", choices=["listing", "manifest"], help="Load order source")
    scan_parser.add_argument("--json", action="store_true", help="Print the raw report as JSON")

    # doctor
    doctor_parser = subparsers.add_parser("doctor", help="Run health checks on a project")
    doctor_parser.add_argument("project", nargs="?", help="Project root (default: MZFORGE_PROJECT_PATH)")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "generate": cmd_generate,
        "validate": cmd_validate,
        "import": cmd_import,
        "scan": cmd_scan,
        "doctor": cmd_doctor,
    }

    commands[args.command](args)


if __name__ == "__main__":
    main()
