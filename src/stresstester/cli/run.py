"""``stresstester run``: fire N requests at a URL and report the results."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from stresstester._internal.config import (
    RunConfig,
    load_settings,
    parse_duration,
    parse_headers,
)
from stresstester._internal.errors import ConfigError, ReportError, StressTesterError
from stresstester.engine.runner import StressTestRunner
from stresstester.report.render import format_duration, render_report
from stresstester.report.writer import write_report

console = Console(stderr=True)


def _build_config(
    url: str,
    requests: int,
    concurrency: int,
    method: str,
    body: str,
    header: list[str],
    timeout: str | None,
    default_timeout: float,
) -> RunConfig:
    """Construct a validated RunConfig from CLI flags.

    Raises:
        typer.BadParameter: If a flag value is invalid.
    """
    try:
        headers = parse_headers(header)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="--header") from exc

    timeout_seconds = default_timeout
    if timeout is not None:
        try:
            timeout_seconds = parse_duration(timeout)
        except ConfigError as exc:
            raise typer.BadParameter(str(exc), param_hint="--timeout") from exc

    try:
        return RunConfig.create(
            url,
            requests,
            concurrency=concurrency,
            method=method,
            body=body,
            headers=headers,
            timeout=timeout_seconds,
        )
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _parameters_panel(config: RunConfig) -> Panel:
    lines = [
        f"[bold]URL:[/bold]         {escape(config.url)}",
        f"[bold]Method:[/bold]      {config.method}",
        f"[bold]Requests:[/bold]    {config.requests}",
        f"[bold]Concurrency:[/bold] {config.concurrency}",
        f"[bold]Timeout:[/bold]     {format_duration(config.timeout)}",
    ]
    if config.body:
        lines.append(f"[bold]Body:[/bold]        {escape(config.body)}")
    if config.headers:
        lines.append("[bold]Headers:[/bold]")
        lines.extend(f"  {escape(key)}: {escape(value)}" for key, value in config.headers.items())
    return Panel("\n".join(lines), title="Stress Test", border_style="blue")


def run_cmd(
    url: str = typer.Option(
        ...,
        "--url",
        "-u",
        help="URL of the service to be tested.",
    ),
    requests: int = typer.Option(
        ...,
        "--requests",
        "-n",
        help="Total number of requests.",
        min=1,
    ),
    concurrency: int = typer.Option(
        1,
        "--concurrency",
        "-c",
        help="Number of concurrent requests.",
        min=1,
    ),
    method: str = typer.Option(
        "GET",
        "--method",
        "-m",
        help="HTTP method to use for requests.",
    ),
    body: str = typer.Option(
        "",
        "--body",
        "-b",
        help="Body of the request.",
    ),
    header: list[str] | None = typer.Option(
        None,
        "--header",
        "-H",
        help="HTTP header as 'Key: Value' (can be used multiple times).",
    ),
    timeout: str | None = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Timeout for each request, e.g. 30s, 500ms, 1m (default: 30s).",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Report file path (default: stress_test_report.txt).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored log output.",
    ),
) -> None:
    """Fire N requests with C concurrent workers and report the results."""
    try:
        settings = load_settings()
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=2) from exc

    config = _build_config(
        url=url,
        requests=requests,
        concurrency=concurrency,
        method=method,
        body=body,
        header=header or [],
        timeout=timeout,
        default_timeout=settings.request_timeout,
    )
    report_path = output if output is not None else Path(settings.report_path)

    console.print(_parameters_panel(config))

    runner = StressTestRunner(
        config,
        log_level=logging.DEBUG if verbose else logging.INFO,
        color=not no_color,
    )
    try:
        report = runner.run()
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted.[/yellow]")
        raise typer.Exit(code=130) from None
    except StressTesterError as exc:
        console.print(f"[red]Stress test failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    text = render_report(report)
    typer.echo(text)

    try:
        written = write_report(text, report_path)
    except ReportError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(f"[green]Report saved to {written}[/green]")
