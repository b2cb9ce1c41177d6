"""Forumops CLI."""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Annotated, Any

import httpx
import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from forumops import __version__
from forumops.backup import (
    BackupError,
    create_backup,
    list_backups,
    prune_backups,
    restore_backup,
)
from forumops.config import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigValidationError,
    ForumopsConfig,
    generate_default_config,
    generate_example_config_yaml,
    load_config,
)
from forumops.loadtest import LoadTestError, LoadTestResult, run_load_test
from forumops.monitoring import (
    AlertManagerClient,
    GrafanaClient,
    MonitoringAPIError,
    MonitoringError,
    PrometheusClient,
    fetch_metrics,
    summarize_metrics,
)
from forumops.probes import HealthProber, ProbeResult, fallback_message, wait_until_ready
from forumops.schemas import (
    PayloadError,
    PayloadValidationError,
    load_topic_payload,
    validate_topic_payload,
)
from forumops.stack import CommandResult, ComposeError, ComposeStack

# Default config file name for auto-discovery
DEFAULT_CONFIG = "forumops.yaml"

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="forumops",
    help="Operate the forum service monitoring stack",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    epilog="[dim]Workflow: init -> validate -> up -> health -> alerts -> backup -> down[/dim]",
)

console = Console()
err_console = Console(stderr=True)

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--file",
        "-f",
        help="Path to configuration YAML file (default: ./forumops.yaml)",
    ),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Print machine-readable JSON"),
]


# =============================================================================
# Helper Functions
# =============================================================================


def resolve_config_path(
    config_file: Path | None,
    file_option: Path | None = None,
) -> Path:
    """Resolve config file path, using ./forumops.yaml as default.

    If both a positional path and --file are provided, --file takes precedence.
    """
    path = file_option or config_file
    if path is not None:
        return path

    default = Path(DEFAULT_CONFIG)
    if default.exists():
        return default

    console.print(f"[red]ERROR[/red] No config file specified and ./{DEFAULT_CONFIG} not found")
    console.print("[blue]INFO[/blue] Create one with: forumops init")
    raise typer.Exit(1)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]OK[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]ERROR[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]WARN[/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]...[/blue] {message}")


def load_config_or_exit(
    config_file: Path | None,
    file_option: Path | None = None,
) -> ForumopsConfig:
    """Resolve and load the config, printing errors and exiting 1 on failure."""
    path = resolve_config_path(config_file, file_option)
    try:
        return load_config(path)
    except ConfigValidationError as e:
        print_error("Config validation failed:")
        for err in e.errors:
            loc = ".".join(str(x) for x in err["loc"]) or "(root)"
            console.print(f"  [red]•[/red] {loc}: {err['msg']}")
        raise typer.Exit(1)  # noqa: B904
    except ConfigError as e:
        print_error(f"Config error: {e}")
        raise typer.Exit(1)  # noqa: B904


def _yaml_line(key: str, value: str) -> str:
    """A single ``key: value`` line with the value quoted as YAML requires."""
    return yaml.safe_dump({key: value}, default_flow_style=False, width=4096).rstrip("\n")


def _http_kwargs(cfg: ForumopsConfig) -> dict[str, Any]:
    return {"timeout": cfg.http.timeout, "verify": cfg.http.verify_tls}


def _prometheus(cfg: ForumopsConfig) -> PrometheusClient:
    return PrometheusClient(cfg.prometheus.url, **_http_kwargs(cfg))


def _alertmanager(cfg: ForumopsConfig) -> AlertManagerClient:
    return AlertManagerClient(cfg.alertmanager.url, **_http_kwargs(cfg))


def _grafana(cfg: ForumopsConfig) -> GrafanaClient:
    return GrafanaClient(
        cfg.grafana.url,
        auth=(cfg.grafana.user, cfg.grafana.password),
        **_http_kwargs(cfg),
    )


def _report_compose(result: CommandResult, done: str, verb: str) -> None:
    """Print the outcome of a compose call and exit 1 if it failed."""
    if result.ok:
        print_success(f"{done} ({result.elapsed_seconds:.1f}s)")
        return
    print_error(f"docker compose {verb} failed (exit {result.returncode})")
    console.print(result.error_text(), markup=False, highlight=False)
    raise typer.Exit(1)


def _probe_table(title: str, results: list[ProbeResult]) -> Table:
    table = Table(title=title)
    table.add_column("Probe", style="cyan")
    table.add_column("URL", style="dim")
    table.add_column("Status", justify="center")
    table.add_column("Detail")
    for r in results:
        status = "[green]OK[/green]" if r.ok else "[red]FAIL[/red]"
        table.add_row(r.name, r.url, status, r.summary)
    return table


def _wait_for_ready(cfg: ForumopsConfig, timeout: int, interval: float) -> bool:
    with HealthProber(cfg) as prober:

        def check() -> tuple[bool, str]:
            result = prober.probe_ready()
            return result.ok, result.summary

        with console.status(f"Waiting for {cfg.app.url(cfg.app.ready_path)}"):
            outcome = wait_until_ready(
                check,
                timeout_seconds=timeout,
                poll_interval=interval,
                description="readiness",
            )

    if outcome.ready:
        print_success(
            f"Service ready after {outcome.elapsed_seconds:.1f}s ({outcome.attempts} attempts)"
        )
        return True
    print_error(outcome.message)
    return False


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Operate the forum service monitoring stack."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


# =============================================================================
# CLI Commands: setup
# =============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"Forumops version {__version__}")


@app.command()
def init(
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Output file path for configuration"),
    ] = Path(DEFAULT_CONFIG),
    name: Annotated[
        str,
        typer.Option("--name", "-n", help="Deployment name"),
    ] = "forum-monitoring",
    app_url: Annotated[
        str,
        typer.Option("--app-url", help="Base URL of the forum service"),
    ] = "",
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite existing file"),
    ] = False,
) -> None:
    """Generate a starter configuration file."""
    if output.exists() and not force:
        print_error(f"File already exists: {output}")
        print_info("Use --force to overwrite")
        raise typer.Exit(1)

    try:
        cfg = generate_default_config(name, app_url=app_url)
    except ConfigValidationError as e:
        print_error("Invalid init options:")
        for err in e.errors:
            loc = ".".join(str(x) for x in err["loc"]) or "(root)"
            console.print(f"  [red]•[/red] {loc}: {err['msg']}")
        raise typer.Exit(1)  # noqa: B904

    content = generate_example_config_yaml()
    content = content.replace("name: forum-monitoring", _yaml_line("name", cfg.name), 1)
    if app_url:
        content = content.replace(
            "  base_url: http://localhost:3000",
            "  " + _yaml_line("base_url", cfg.app.base_url),
            1,
        )

    output.write_text(content)
    print_success(f"Created configuration file: {output}")
    print_info("Then run: forumops validate")


@app.command()
def validate(
    config_file: Annotated[
        Path | None,
        typer.Argument(help="Path to configuration YAML file (default: ./forumops.yaml)"),
    ] = None,
    file_option: ConfigOption = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show detailed validation output"),
    ] = False,
) -> None:
    """Validate configuration and check required tools.

    Checks that the YAML is valid, the compose file exists and parses, and
    that docker compose and ab are on PATH.
    """
    config_file = resolve_config_path(config_file, file_option)
    console.print(Panel(f"Validating: [bold]{config_file}[/bold]", expand=False))

    checks_failed = 0

    console.print("\n[bold]Configuration[/bold]")
    try:
        cfg = load_config(config_file)
        print_success("Config syntax valid")
        if verbose:
            for label, url in cfg.service_urls().items():
                console.print(f"  {label}: {url}")
    except ConfigFileNotFoundError as e:
        print_error(f"File not found: {e}")
        raise typer.Exit(1)  # noqa: B904
    except ConfigValidationError as e:
        print_error("Config validation failed:")
        for err in e.errors:
            loc = ".".join(str(x) for x in err["loc"]) or "(root)"
            console.print(f"  [red]•[/red] {loc}: {err['msg']}")
        raise typer.Exit(1)  # noqa: B904
    except ConfigError as e:
        print_error(f"Config error: {e}")
        raise typer.Exit(1)  # noqa: B904

    console.print("\n[bold]CLI Tools[/bold]")
    for tool in [cfg.stack.compose_command[0], cfg.loadtest.binary]:
        if shutil.which(tool):
            print_success(f"{tool} found on PATH")
        elif tool == cfg.loadtest.binary:
            print_warning(f"{tool} not found on PATH (needed only for loadtest)")
        else:
            print_error(f"{tool} not found on PATH")
            checks_failed += 1

    console.print("\n[bold]Compose file[/bold]")
    if not Path(cfg.stack.compose_file).exists():
        print_error(f"Compose file not found: {cfg.stack.compose_file}")
        checks_failed += 1
    elif shutil.which(cfg.stack.compose_command[0]):
        try:
            result = ComposeStack(cfg.stack).config_check()
            if result.ok:
                print_success(f"{cfg.stack.compose_file} is valid")
            else:
                print_error(f"{cfg.stack.compose_file}: {result.error_text()}")
                checks_failed += 1
        except ComposeError as e:
            print_error(str(e))
            checks_failed += 1
    else:
        print_success(f"{cfg.stack.compose_file} exists")

    console.print()
    if checks_failed:
        print_error(f"{checks_failed} check(s) failed")
        raise typer.Exit(1)
    print_success("All checks passed")


# =============================================================================
# CLI Commands: compose stack
# =============================================================================


@app.command()
def up(
    services: Annotated[
        list[str] | None,
        typer.Argument(help="Services to start (default: all)"),
    ] = None,
    file_option: ConfigOption = None,
    pull: Annotated[bool, typer.Option("--pull", help="Pull images before starting")] = False,
    wait: Annotated[
        bool,
        typer.Option("--wait", "-w", help="Wait for the service readiness probe"),
    ] = False,
    timeout: Annotated[
        int,
        typer.Option("--timeout", help="Readiness wait timeout in seconds"),
    ] = 120,
) -> None:
    """Start the monitoring stack."""
    cfg = load_config_or_exit(None, file_option)
    stack = ComposeStack(cfg.stack)
    try:
        with console.status("Starting monitoring stack"):
            result = stack.up(services=services, pull=pull)
    except ComposeError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904
    _report_compose(result, "Monitoring stack started", "up")

    for label, url in cfg.service_urls().items():
        console.print(f"  [cyan]{label:13s}[/cyan] {url}")

    if wait and not _wait_for_ready(cfg, timeout, interval=2):
        raise typer.Exit(1)


@app.command()
def down(
    file_option: ConfigOption = None,
    volumes: Annotated[
        bool,
        typer.Option("--volumes", help="Also remove named volumes (Prometheus/Grafana data)"),
    ] = False,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Stop the monitoring stack."""
    cfg = load_config_or_exit(None, file_option)
    if volumes and not yes:
        typer.confirm("Remove volumes? Stored metrics and dashboards will be lost", abort=True)

    try:
        result = ComposeStack(cfg.stack).down(volumes=volumes)
    except ComposeError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904
    _report_compose(result, "Monitoring stack stopped", "down")


@app.command()
def restart(
    services: Annotated[
        list[str] | None,
        typer.Argument(help="Services to restart (default: all)"),
    ] = None,
    file_option: ConfigOption = None,
) -> None:
    """Restart the monitoring stack or selected services."""
    cfg = load_config_or_exit(None, file_option)
    try:
        result = ComposeStack(cfg.stack).restart(services)
    except ComposeError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904
    done = "Restarted " + (", ".join(services) if services else "stack")
    _report_compose(result, done, "restart")


@app.command()
def ps(file_option: ConfigOption = None, as_json: JsonOption = False) -> None:
    """Show container status of the monitoring stack."""
    cfg = load_config_or_exit(None, file_option)
    try:
        states = ComposeStack(cfg.stack).ps()
    except ComposeError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    if as_json:
        console.print_json(data=[s.__dict__ for s in states])
        return

    if not states:
        print_warning("No containers found")
        print_info("Start the stack with: forumops up")
        return

    table = Table(title="Monitoring stack")
    table.add_column("Service", style="cyan")
    table.add_column("Container", style="dim")
    table.add_column("State")
    table.add_column("Health", justify="center")
    table.add_column("Status", style="dim")
    for s in states:
        state = f"[green]{s.state}[/green]" if s.running else f"[red]{s.state}[/red]"
        health = s.health or "-"
        if s.health == "healthy":
            health = "[green]healthy[/green]"
        elif s.health == "unhealthy":
            health = "[red]unhealthy[/red]"
        table.add_row(s.service, s.name, state, health, s.status)
    console.print(table)

    expected = set(cfg.stack.services)
    missing = sorted(expected - {s.service for s in states})
    if missing:
        print_warning(f"Not created: {', '.join(missing)}")


@app.command()
def logs(
    service: Annotated[
        str | None,
        typer.Argument(help="Service to show logs for (default: all)"),
    ] = None,
    file_option: Annotated[
        Path | None,
        typer.Option("--file", help="Path to configuration YAML file"),
    ] = None,
    follow: Annotated[bool, typer.Option("--follow", "-f", help="Follow log output")] = False,
    lines: Annotated[int, typer.Option("--lines", "-n", help="Number of lines to show")] = 100,
) -> None:
    """Show logs from the monitoring stack."""
    cfg = load_config_or_exit(None, file_option)
    if service and service not in cfg.stack.services:
        print_warning(f"'{service}' is not in stack.services ({', '.join(cfg.stack.services)})")

    stack = ComposeStack(cfg.stack)
    try:
        result = stack.logs(
            service,
            lines=lines,
            follow=follow,
            on_line=lambda line: console.print(line, end="", markup=False, highlight=False),
        )
    except ComposeError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    if follow:
        print_info("Log streaming stopped")
        return
    if not result.ok:
        print_error(result.error_text())
        raise typer.Exit(1)
    if result.stdout:
        console.print(result.stdout, markup=False, highlight=False)
    else:
        print_warning("No logs available")


# =============================================================================
# CLI Commands: probes
# =============================================================================


@app.command()
def health(
    file_option: ConfigOption = None,
    app_only: Annotated[
        bool,
        typer.Option("--app-only", help="Only probe the forum service"),
    ] = False,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Exit 1 if any probe fails"),
    ] = False,
    as_json: JsonOption = False,
) -> None:
    """Probe health, liveness and readiness endpoints."""
    cfg = load_config_or_exit(None, file_option)
    with HealthProber(cfg) as prober:
        app_results = prober.probe_app()
        stack_results = [] if app_only else prober.probe_stack()

    results = app_results + stack_results
    if as_json:
        console.print_json(data=[r.__dict__ for r in results])
    else:
        console.print(_probe_table("Forum service", app_results))
        if stack_results:
            console.print(_probe_table("Monitoring stack", stack_results))
        for r in results:
            if not r.ok:
                print_warning(fallback_message(r))

    if strict and not all(r.ok for r in results):
        raise typer.Exit(1)


@app.command()
def wait(
    file_option: ConfigOption = None,
    timeout: Annotated[int, typer.Option("--timeout", help="Seconds to wait")] = 120,
    interval: Annotated[float, typer.Option("--interval", help="Seconds between probes")] = 2,
) -> None:
    """Wait until the readiness probe succeeds."""
    cfg = load_config_or_exit(None, file_option)
    if not _wait_for_ready(cfg, timeout, interval):
        raise typer.Exit(1)


@app.command()
def metrics(
    file_option: ConfigOption = None,
    prefix: Annotated[
        str | None,
        typer.Option("--prefix", "-p", help="Only show metric families with this prefix"),
    ] = None,
    raw: Annotated[bool, typer.Option("--raw", help="Print the raw exposition text")] = False,
    as_json: JsonOption = False,
) -> None:
    """Fetch and summarize the service's /metrics endpoint."""
    cfg = load_config_or_exit(None, file_option)
    url = cfg.app.url(cfg.app.metrics_path)
    try:
        with httpx.Client(**_http_kwargs(cfg)) as client:
            text = fetch_metrics(client, url)
        if raw:
            console.print(text, markup=False, highlight=False)
            return
        families = summarize_metrics(text, prefix=prefix)
    except MonitoringError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    if as_json:
        console.print_json(data=[f.__dict__ for f in families])
        return

    table = Table(title=f"Metrics at {url}")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="dim")
    table.add_column("Samples", justify="right")
    table.add_column("Help")
    for f in families:
        table.add_row(f.name, f.type, str(f.sample_count), f.documentation)
    console.print(table)
    print_info(f"{len(families)} metric families")


@app.command("test-alert")
def test_alert(
    file_option: ConfigOption = None,
    method: Annotated[
        str | None,
        typer.Option("--method", "-X", help="HTTP method (default from config)"),
    ] = None,
) -> None:
    """Trigger the service's test alert endpoint."""
    cfg = load_config_or_exit(None, file_option)
    with HealthProber(cfg) as prober:
        result = prober.trigger_test_alert(method.upper() if method else None)

    if not result.ok:
        print_error(fallback_message(result) + f": {result.summary}")
        raise typer.Exit(1)
    print_success(f"Test alert triggered ({result.summary})")
    if result.body:
        console.print(result.body, markup=False, highlight=False)
    print_info("Check firing alerts with: forumops alerts")


# =============================================================================
# CLI Commands: Prometheus / AlertManager / Grafana
# =============================================================================


@app.command()
def reload(
    file_option: ConfigOption = None,
    target: Annotated[
        str,
        typer.Option("--target", "-t", help="prometheus | alertmanager | all"),
    ] = "all",
) -> None:
    """Reload Prometheus and/or AlertManager configuration."""
    if target not in ("prometheus", "alertmanager", "all"):
        print_error(f"Unknown target: {target}")
        raise typer.Exit(1)

    cfg = load_config_or_exit(None, file_option)
    factories = {"prometheus": _prometheus, "alertmanager": _alertmanager}
    failed = 0
    for name, factory in factories.items():
        if target not in (name, "all"):
            continue
        try:
            with factory(cfg) as client:
                client.reload()
            print_success(f"{client.service} configuration reloaded")
        except MonitoringError as e:
            print_error(str(e))
            failed += 1

    if failed:
        raise typer.Exit(1)


@app.command()
def alerts(
    file_option: ConfigOption = None,
    source: Annotated[
        str,
        typer.Option("--source", "-s", help="prometheus | alertmanager"),
    ] = "prometheus",
    as_json: JsonOption = False,
) -> None:
    """List active alerts."""
    cfg = load_config_or_exit(None, file_option)
    if source not in ("prometheus", "alertmanager"):
        print_error(f"Unknown source: {source}")
        raise typer.Exit(1)

    factory = _prometheus if source == "prometheus" else _alertmanager
    try:
        with factory(cfg) as client:
            items = client.alerts()
    except MonitoringError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    if as_json:
        console.print_json(data=[a.__dict__ for a in items])
        return
    if not items:
        print_success("No active alerts")
        return

    table = Table(title=f"Alerts ({source})")
    table.add_column("Alert", style="cyan")
    table.add_column("State")
    table.add_column("Severity")
    table.add_column("Since", style="dim")
    table.add_column("Summary")
    for a in items:
        style = "red" if a.state in ("firing", "active") else "yellow"
        table.add_row(a.name, f"[{style}]{a.state}[/{style}]", a.severity, a.active_at, a.summary)
    console.print(table)


@app.command()
def silences(
    file_option: ConfigOption = None,
    include_expired: Annotated[
        bool,
        typer.Option("--all", help="Include expired silences"),
    ] = False,
) -> None:
    """List AlertManager silences."""
    cfg = load_config_or_exit(None, file_option)
    try:
        with _alertmanager(cfg) as client:
            items = client.silences(include_expired=include_expired)
    except MonitoringError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    if not items:
        print_info("No silences")
        return
    table = Table(title="Silences")
    table.add_column("ID", style="dim")
    table.add_column("State")
    table.add_column("Matchers", style="cyan")
    table.add_column("Ends")
    table.add_column("Comment")
    for s in items:
        table.add_row(s.id[:8], s.state, ", ".join(s.matchers), s.ends_at, s.comment)
    console.print(table)


@app.command()
def rules(
    file_option: ConfigOption = None,
    rule_type: Annotated[
        str | None,
        typer.Option("--type", help="alert | record"),
    ] = None,
) -> None:
    """List loaded Prometheus rules."""
    cfg = load_config_or_exit(None, file_option)
    try:
        with _prometheus(cfg) as client:
            groups = client.rules(rule_type)
    except MonitoringError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    if not groups:
        print_warning("No rules loaded")
        return

    table = Table(title="Prometheus rules")
    table.add_column("Group", style="cyan")
    table.add_column("Rule")
    table.add_column("Type", style="dim")
    table.add_column("State")
    table.add_column("Health", justify="center")
    unhealthy = 0
    for g in groups:
        for r in g.rules:
            health_str = "[green]ok[/green]" if r.health == "ok" else f"[red]{r.health}[/red]"
            if r.health not in ("ok", "unknown", ""):
                unhealthy += 1
            table.add_row(g.name, r.name, r.type, r.state or "-", health_str)
    console.print(table)
    if unhealthy:
        print_warning(f"{unhealthy} rule(s) reporting errors")


@app.command()
def targets(file_option: ConfigOption = None) -> None:
    """List Prometheus scrape targets."""
    cfg = load_config_or_exit(None, file_option)
    try:
        with _prometheus(cfg) as client:
            items = client.targets()
    except MonitoringError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    table = Table(title="Scrape targets")
    table.add_column("Job", style="cyan")
    table.add_column("Endpoint", style="dim")
    table.add_column("Health", justify="center")
    table.add_column("Last error")
    for t in items:
        health_str = "[green]up[/green]" if t.up else f"[red]{t.health}[/red]"
        table.add_row(t.job, t.scrape_url, health_str, t.last_error)
    console.print(table)

    down_count = sum(1 for t in items if not t.up)
    if down_count:
        print_warning(f"{down_count} of {len(items)} target(s) down")
    else:
        print_success(f"All {len(items)} target(s) up")


@app.command()
def query(
    promql: Annotated[str, typer.Argument(help="PromQL expression")],
    file_option: ConfigOption = None,
    as_json: JsonOption = False,
) -> None:
    """Run an instant PromQL query."""
    cfg = load_config_or_exit(None, file_option)
    try:
        with _prometheus(cfg) as client:
            samples = client.query(promql)
    except MonitoringAPIError as e:
        print_error(f"Query failed: {e.message}")
        raise typer.Exit(1)  # noqa: B904
    except MonitoringError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    if as_json:
        console.print_json(data=[s.__dict__ for s in samples])
        return
    if not samples:
        print_info("Empty result")
        return
    for s in samples:
        console.print(f"{s.label_string()} [bold]{s.value}[/bold]", highlight=False)


@app.command()
def dashboards(
    file_option: ConfigOption = None,
    search: Annotated[str, typer.Option("--search", "-q", help="Filter by title")] = "",
    show_datasources: Annotated[
        bool,
        typer.Option("--datasources", help="List datasources instead of dashboards"),
    ] = False,
) -> None:
    """List Grafana dashboards (or datasources)."""
    cfg = load_config_or_exit(None, file_option)
    try:
        with _grafana(cfg) as client:
            grafana_health = client.health()
            if show_datasources:
                sources = client.datasources()
            else:
                boards = client.dashboards(search)
    except MonitoringError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    if not grafana_health.ok:
        print_warning(f"Grafana database status: {grafana_health.database}")

    if show_datasources:
        table = Table(title=f"Grafana {grafana_health.version} datasources")
        table.add_column("Name", style="cyan")
        table.add_column("Type")
        table.add_column("URL", style="dim")
        table.add_column("Default", justify="center")
        for d in sources:
            table.add_row(d.name, d.type, d.url, "yes" if d.is_default else "")
        console.print(table)
        return

    table = Table(title=f"Grafana {grafana_health.version} dashboards")
    table.add_column("Folder", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("URL")
    table.add_column("Tags", style="dim")
    for b in boards:
        table.add_row(b.folder, b.title, f"{cfg.grafana.url}{b.url}", ", ".join(b.tags))
    console.print(table)


@app.command()
def info(file_option: ConfigOption = None) -> None:
    """Show URLs of the service and monitoring components."""
    cfg = load_config_or_exit(None, file_option)
    table = Table(title=cfg.name)
    table.add_column("Component", style="cyan")
    table.add_column("URL")
    for label, url in cfg.service_urls().items():
        table.add_row(label, url)
    console.print(table)
    console.print(f"[dim]Compose file: {cfg.stack.compose_file}[/dim]")
    console.print(f"[dim]Grafana login: {cfg.grafana.user}[/dim]")


# =============================================================================
# CLI Commands: backups
# =============================================================================


@app.command()
def backup(
    file_option: ConfigOption = None,
    no_prune: Annotated[
        bool,
        typer.Option("--no-prune", help="Keep all existing archives"),
    ] = False,
) -> None:
    """Archive the monitoring configuration directories."""
    cfg = load_config_or_exit(None, file_option)
    try:
        archive = create_backup(cfg.backup.paths, cfg.backup.directory)
    except BackupError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904
    print_success(f"Backup created: {archive}")

    if not no_prune:
        removed = prune_backups(cfg.backup.directory, cfg.backup.keep)
        if removed:
            print_info(f"Pruned {len(removed)} old backup(s) (keep={cfg.backup.keep})")


@app.command()
def restore(
    archive: Annotated[Path, typer.Argument(help="Backup archive to restore")],
    file_option: ConfigOption = None,
    destination: Annotated[
        Path,
        typer.Option("--destination", "-d", help="Directory to extract into"),
    ] = Path("."),
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Restore monitoring configuration from a backup archive."""
    load_config_or_exit(None, file_option)
    if not archive.is_file():
        print_error(f"Backup archive not found: {archive}")
        print_info("List archives with: forumops backups")
        raise typer.Exit(1)

    if not yes:
        typer.confirm(
            f"Overwrite files in {destination.resolve()} from {archive.name}?", abort=True
        )

    try:
        restored = restore_backup(archive, destination)
    except BackupError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904
    print_success(f"Restored {', '.join(restored)} from {archive.name}")
    print_info("Apply the restored config with: forumops reload")


@app.command()
def backups(file_option: ConfigOption = None) -> None:
    """List backup archives, newest first."""
    cfg = load_config_or_exit(None, file_option)
    items = list_backups(cfg.backup.directory)
    if not items:
        print_info(f"No backups in {cfg.backup.directory}")
        return

    table = Table(title=f"Backups in {cfg.backup.directory}")
    table.add_column("Archive", style="cyan")
    table.add_column("Created")
    table.add_column("Size", justify="right")
    for b in items:
        created = b.created.strftime("%Y-%m-%d %H:%M:%S")
        table.add_row(b.name, created, f"{b.size_bytes / 1024:.1f} KB")
    console.print(table)


# =============================================================================
# CLI Commands: load testing
# =============================================================================


def _display_load_result(result: LoadTestResult) -> None:
    table = Table(title=f"Load test: {result.url}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Concurrency", str(result.concurrency))
    table.add_row("Complete requests", str(result.complete_requests))
    table.add_row("Failed requests", str(result.failed_requests))
    table.add_row("Non-2xx responses", str(result.non_2xx_responses))
    table.add_row("Requests/sec", f"{result.requests_per_second:.2f}")
    table.add_row("Mean latency", f"{result.time_per_request_ms:.2f} ms")
    for pct in (50, 90, 99):
        if pct in result.percentiles:
            table.add_row(f"p{pct}", f"{result.percentiles[pct]} ms")
    table.add_row("Total time", f"{result.total_seconds:.2f} s")
    console.print(table)


@app.command()
def loadtest(
    file_option: ConfigOption = None,
    profile: Annotated[
        str | None,
        typer.Option("--profile", "-p", help="Load profile from config (light, medium, heavy)"),
    ] = None,
    requests: Annotated[
        int | None,
        typer.Option("--requests", "-n", help="Total requests (overrides profile)"),
    ] = None,
    concurrency: Annotated[
        int | None,
        typer.Option("--concurrency", "-c", help="Concurrent clients (overrides profile)"),
    ] = None,
    path: Annotated[
        str | None,
        typer.Option("--path", help="Path on the service to hit (default from config)"),
    ] = None,
    url: Annotated[
        str | None,
        typer.Option("--url", help="Full URL to hit (overrides --path)"),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Exit 1 if any request failed"),
    ] = False,
    as_json: JsonOption = False,
) -> None:
    """Run an Apache Bench load test against the service."""
    cfg = load_config_or_exit(None, file_option)
    lt = cfg.loadtest
    try:
        selected = lt.get_profile(profile)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    target = url or cfg.app.url(path or lt.path)
    n = requests if requests is not None else selected.requests
    c = concurrency if concurrency is not None else selected.concurrency

    try:
        with console.status(f"ab -n {n} -c {c} {target}"):
            result = run_load_test(
                target,
                requests=n,
                concurrency=c,
                binary=lt.binary,
                keepalive=lt.keepalive,
                timeout=lt.timeout,
            )
    except LoadTestError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    if as_json:
        console.print_json(json.dumps(result.to_dict()))
    else:
        _display_load_result(result)

    if not result.success:
        print_warning(f"Error rate {result.error_rate:.1%}")
        if strict:
            raise typer.Exit(1)


# =============================================================================
# CLI Commands: payloads
# =============================================================================


@app.command("validate-topic")
def validate_topic(
    source: Annotated[
        str,
        typer.Argument(help="JSON file with a forum topic payload, or - for stdin"),
    ],
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Only set the exit code")] = False,
) -> None:
    """Validate a forum topic creation payload."""
    try:
        payload = load_topic_payload(source)
        topic = validate_topic_payload(payload)
    except PayloadValidationError as e:
        if not quiet:
            print_error("Forum topic payload rejected:")
            for err in e.errors:
                console.print(f"  [red]•[/red] {err['loc']}: {err['msg']}")
        raise typer.Exit(1)  # noqa: B904
    except PayloadError as e:
        if not quiet:
            print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    if not quiet:
        print_success("Forum topic payload is valid")
        console.print_json(data=topic.to_payload())


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
