"""CLI interface for querying PagerDuty on-call data."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from pydantic import BaseModel
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from pdoncall.api import PagerDutyClient
from pdoncall.config import TOKEN_ENV_VAR, ConfigError, Settings, load_settings
from pdoncall.filters import PolicyFilter
from pdoncall.logs import LogConfig, setup_logging
from pdoncall.models import Policy, sort_policies
from pdoncall.output import (
    build_csv_output,
    build_json_output,
    build_tfstate_output,
    build_tree_output,
    write_output,
)

logger = logging.getLogger(__name__)

err_console = Console(stderr=True)

app = typer.Typer(
    name="pagerduty-cli",
    help="PagerDuty CLI: see who is on call and export escalation policies.",
    no_args_is_help=True,
)


class OutputFormat(str, Enum):
    tree = "tree"
    json = "json"
    csv = "csv"


class ExportFormat(str, Enum):
    tfstate = "tfstate"


class AppState(BaseModel):
    settings: Settings
    log: LogConfig


OutputOption = Annotated[
    str,
    typer.Option("--output", "-o", help="Where to save the output. Use `-` for stdout."),
]


def _fail(message: str) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    api_token: Annotated[
        Optional[str],
        typer.Option(
            "--api-token",
            "-a",
            envvar=TOKEN_ENV_VAR,
            help="A PagerDuty API token with read access.",
        ),
    ] = None,
    config: Annotated[
        Optional[Path], typer.Option("--config", "-c", help="Path to a YAML config file.")
    ] = None,
    verbose: Annotated[
        int, typer.Option("--verbose", "-v", count=True, help="Increase verbosity.")
    ] = 0,
    warn: Annotated[
        bool, typer.Option("--warn", "-w", help="Only display warning messages.")
    ] = False,
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Only display errors.")
    ] = False,
) -> None:
    """Load settings and configure logging for every command."""
    log_config = LogConfig(verbose=verbose, warn=warn, quiet=quiet)
    setup_logging(log_config, console=err_console)

    try:
        settings = load_settings(config_path=config, api_token=api_token)
    except ConfigError as exc:
        _fail(str(exc))

    ctx.obj = AppState(settings=settings, log=log_config)


def _fetch_policies(state: AppState) -> list[Policy]:
    token = state.settings.require_token()

    with Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        TextColumn("{task.completed} pages"),
        console=err_console,
        transient=True,
        disable=state.log.quiet,
    ) as progress:
        task = progress.add_task("Fetching data from PagerDuty", total=None)
        client = PagerDutyClient(
            token,
            base_url=state.settings.base_url,
            timeout=state.settings.timeout,
            on_page=lambda resource, page: progress.advance(task),
        )
        return client.fetch_policies_for_account()


def who_is_oncall(
    ctx: typer.Context,
    include: Annotated[
        Optional[list[str]],
        typer.Option("--include", "-i", help="Only show policies matching this regex."),
    ] = None,
    exclude: Annotated[
        Optional[list[str]],
        typer.Option("--exclude", "-e", help="Hide policies matching this regex."),
    ] = None,
    fmt: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Output format.")
    ] = OutputFormat.tree,
    depth: Annotated[
        Optional[int],
        typer.Option("--depth", "-d", min=0, max=255, help="Deepest escalation level to show."),
    ] = None,
    output: OutputOption = "-",
) -> None:
    """List who is on call for each escalation policy."""
    state: AppState = ctx.obj
    try:
        policy_filter = PolicyFilter(include or (), exclude or (), max_depth=depth)
        policies = _fetch_policies(state)
    except ConfigError as exc:
        _fail(str(exc))

    policies = sort_policies(policy_filter.apply(policies))
    logger.debug("%d policies left after filtering", len(policies))

    if fmt is OutputFormat.json:
        text = build_json_output(policies, policy_filter.keep_level)
    elif fmt is OutputFormat.csv:
        text = build_csv_output(policies, policy_filter.keep_level)
    else:
        text = build_tree_output(policies, policy_filter.keep_level)

    try:
        write_output(output, text)
    except OSError as exc:
        _fail(f"Unable to write {output}: {exc}")


app.command("who-is-oncall")(who_is_oncall)
app.command("who", hidden=True)(who_is_oncall)
app.command("oncall", hidden=True)(who_is_oncall)


@app.command("export")
def export_cmd(
    ctx: typer.Context,
    output: OutputOption = "-",
    fmt: Annotated[
        ExportFormat, typer.Option("--format", "-f", help="Export format.")
    ] = ExportFormat.tfstate,
) -> None:
    """Export escalation policies to disk."""
    state: AppState = ctx.obj
    try:
        policies = _fetch_policies(state)
    except ConfigError as exc:
        _fail(str(exc))

    text = build_tfstate_output(sort_policies(policies))

    try:
        write_output(output, text)
    except OSError as exc:
        _fail(f"Unable to write {output}: {exc}")
