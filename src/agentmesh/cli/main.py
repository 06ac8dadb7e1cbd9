"""agentmesh command line.

Runs the bundled agents over a project and prints the rendered report to
stdout. Progress and status go to stderr; nothing is written to disk.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .. import __version__
from ..agents import TestGenerationAgent, TestGenerationRequest, build_default_registry
from ..core.config import coordination_settings_from, get_effective_config
from ..core.coordinator import AgentCoordinator
from ..core.errors import AgentNotFoundError, ContextError
from ..formatters.junit import render_junit
from ..formatters.report import ReportGenerator
from ..formatters.synthesis import Verdict, calculate_verdict, get_exit_code
from ..models.agent import AnalysisReport, ErrorKind
from ..models.context import AnalysisContext, AnalysisDepth
from ..models.coordination import CoordinationRequest
from ..models.finding import SEVERITY_ORDER

EXIT_UNKNOWN_AGENT = 11
EXIT_BAD_CONFIG = 12

console = Console(stderr=True)
stdout = Console()

_VERDICT_STYLE = {Verdict.SHIP: "green", Verdict.CONDITIONAL: "yellow", Verdict.HOLD: "red"}


def setup_logging(verbose: bool, quiet: bool) -> None:
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _split(value: str | None) -> list[str] | None:
    if not value:
        return None
    items = [v.strip() for v in value.split(",") if v.strip()]
    return items or None


def _print_status(report: AnalysisReport) -> None:
    if report.error is None:
        console.print(
            f"  [green]OK[/green] {report.agent_name}: {len(report.findings)} finding(s) "
            f"in {report.execution_time_ms:.0f} ms"
        )
    elif report.error.kind == ErrorKind.TIMEOUT:
        console.print(f"  [yellow]WARN[/yellow] {report.agent_name}: {report.error.message}")
    else:
        console.print(f"  [red]FAILED[/red] {report.agent_name}: {report.error.message}")


@click.group()
@click.version_option(__version__, prog_name="agentmesh")
def cli() -> None:
    """agentmesh - coordinate code analysis agents."""


@cli.command()
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), required=True, help="Project path")
@click.option("--agents", "agent_names", type=str, help="Comma-separated agents to run")
@click.option("--files", type=str, help="Comma-separated files to analyze (default: discover)")
@click.option("--sequential", is_flag=True, help="Run agents one after another")
@click.option("--deadline-ms", type=click.FloatRange(min=0, min_open=True), help="Overall deadline")
@click.option(
    "--depth",
    type=click.Choice([d.value for d in AnalysisDepth]),
    default=AnalysisDepth.DEEP.value,
    show_default=True,
)
@click.option("--output-format", "-f", type=click.Choice(["console", "markdown", "json", "junit"]))
@click.option("--min-severity", type=click.Choice([s.value for s in SEVERITY_ORDER]))
@click.option("--ci", is_flag=True, help="CI mode: exit with the verdict code")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Only print the report")
def analyze(
    project: str,
    agent_names: str | None,
    files: str | None,
    sequential: bool,
    deadline_ms: float | None,
    depth: str,
    output_format: str | None,
    min_severity: str | None,
    ci: bool,
    verbose: bool,
    quiet: bool,
) -> None:
    """Analyze a project with the registered agents."""
    setup_logging(verbose, quiet)
    project_path = Path(project).resolve()

    cli_overrides: dict = {}
    if sequential:
        cli_overrides.setdefault("coordination", {})["parallel"] = False
    if deadline_ms is not None:
        cli_overrides.setdefault("coordination", {})["deadline_ms"] = deadline_ms
    if output_format:
        cli_overrides.setdefault("output", {})["format"] = output_format
    if min_severity:
        cli_overrides.setdefault("output", {})["min_severity"] = min_severity

    config = get_effective_config(project_path, cli_overrides)
    try:
        registry = build_default_registry(config)
        coordination = coordination_settings_from(config)
    except ValueError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        sys.exit(EXIT_BAD_CONFIG)

    request = CoordinationRequest(
        context=AnalysisContext(
            project_path=str(project_path),
            files=tuple(_split(files) or ()),
            depth=AnalysisDepth(depth),
        ),
        agent_names=_split(agent_names),
        parallel=coordination.parallel,
        deadline_ms=coordination.deadline_ms,
    )

    if not quiet:
        mode = "parallel" if request.parallel else "sequential"
        console.print(f"[bold]agentmesh[/bold] v{__version__}: analyzing {project_path.name} ({mode})")

    coordinator = AgentCoordinator(registry)
    try:
        result = asyncio.run(coordinator.coordinate(request))
    except AgentNotFoundError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        console.print(f"  Available agents: {', '.join(registry.names()) or '(none)'}")
        sys.exit(EXIT_UNKNOWN_AGENT)

    if not quiet:
        for report in result.reports:
            _print_status(report)

    output = config.get("output", {})
    fmt = output.get("format", "console")
    if fmt == "junit":
        rendered = render_junit(result)
    else:
        generator = ReportGenerator(
            min_severity=output.get("min_severity", "info"),
            group_by=output.get("group_by", "severity"),
            max_findings=output.get("max_findings"),
        )
        rendered = generator.render(result, fmt)
    click.echo(rendered)

    verdict = calculate_verdict(result)
    if not quiet:
        style = _VERDICT_STYLE[verdict]
        console.print(
            f"  Verdict: [{style}]{verdict.value}[/{style}] "
            f"({result.summary.total_findings} finding(s), {result.summary.total_execution_time:.0f} ms)"
        )
    if ci:
        sys.exit(get_exit_code(verdict, config.get("ci", {}).get("exit_codes")))


@cli.command("agents")
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), default=".", help="Project path")
def list_agents(project: str) -> None:
    """List the registered agents."""
    config = get_effective_config(Path(project).resolve())
    try:
        registry = build_default_registry(config)
    except ValueError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        sys.exit(EXIT_BAD_CONFIG)

    table = Table("Agent", "Version", "Kind", "Tags", "Description")
    for agent in registry.list():
        tags = sorted(registry.tags_for(agent.name) - {agent.capabilities.kind.value})
        table.add_row(
            agent.name,
            agent.version,
            agent.capabilities.kind.value,
            ", ".join(tags),
            agent.description,
        )
    stdout.print(table)


@cli.command("generate-tests")
@click.argument("target", type=click.Path(exists=True, dir_okay=False))
@click.option("--framework", type=click.Choice(["vitest", "jest", "pytest"]), help="Default: by file type")
@click.option("--test-type", type=click.Choice(["unit", "integration", "e2e"]), default="unit")
def generate_tests(target: str, framework: str | None, test_type: str) -> None:
    """Print a generated test skeleton for TARGET."""
    agent = TestGenerationAgent()
    try:
        generated = agent.generate_tests(
            TestGenerationRequest(target=target, framework=framework, test_type=test_type)
        )
    except ContextError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        sys.exit(EXIT_BAD_CONFIG)

    console.print(
        f"  [green]OK[/green] {generated.test_cases} test case(s) for {generated.file_path} "
        f"({generated.framework.value})"
    )
    click.echo(generated.content)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
