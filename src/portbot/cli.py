"""Command-line entry points."""

import click
from rich.console import Console
from rich.table import Table

from portbot.config import BotConfig
from portbot.context import BotContext
from portbot.logs import configure_logging
from portbot.main import run
from portbot.models.port import PortResult
from portbot.services.orchestrator import PortOrchestrator


def _parse_repository(value: str) -> tuple[str, str]:
    owner, sep, repo = value.partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise click.BadParameter(f"expected OWNER/REPO, got {value!r}")
    return owner, repo


def _format_outcome(result: PortResult) -> str:
    if result.error is not None:
        return f"[red]{result.error.failure.value}[/red]"
    if result.had_conflict:
        return "[yellow]conflict[/yellow]"
    return "[green]ok[/green]"


def _render_results(results: list[PortResult]) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("kind", no_wrap=True)
    table.add_column("branch", style="cyan", no_wrap=True)
    table.add_column("pr", no_wrap=True)
    table.add_column("outcome", no_wrap=True)
    table.add_column("reached", no_wrap=True)
    table.add_column("follow-up errors")

    for result in results:
        pr_cell = f"#{result.new_pr_number}" if result.new_pr_number is not None else "-"
        follow_ups = ", ".join(err.failure.value for err in result.follow_up_errors) or "-"
        table.add_row(
            result.request.kind.value,
            result.request.target_branch,
            pr_cell,
            _format_outcome(result),
            result.reached.value,
            follow_ups,
        )

    console = Console(stderr=True, width=200)
    console.print(table)


@click.group()
@click.option("--debug", is_flag=True, help="Log at DEBUG level.")
@click.pass_context
def cli(click_ctx: click.Context, debug: bool) -> None:
    """Backport and forward-port merged pull requests."""
    if click_ctx.obj is None:
        config = BotConfig.from_env()
        configure_logging(debug or config.debug)
        click_ctx.obj = BotContext.create(config)


@cli.command()
@click.pass_obj
def serve(ctx: BotContext) -> None:
    """Run the webhook server."""
    run(ctx)


@cli.command()
@click.argument("repository")
@click.argument("number", type=int)
@click.pass_obj
def port(ctx: BotContext, repository: str, number: int) -> None:
    """Port merged pull request NUMBER of REPOSITORY (OWNER/REPO).

    Reads the PR's current labels and opens one PR per "Backport to:" or
    "Forwardport to:" label. Exits with status 1 if any port failed.
    """
    owner, repo = _parse_repository(repository)

    try:
        pr = ctx.forge.get_pull_request(owner, repo, number)
    except RuntimeError as err:
        click.echo(f"Error: could not load {owner}/{repo}#{number}: {err}", err=True)
        raise SystemExit(1) from err

    results = PortOrchestrator(ctx).run_all(pr)
    if not results:
        click.echo(f"{pr.full_name}#{pr.number} has no port labels", err=True)
        return

    _render_results(results)
    if any(not result.succeeded for result in results):
        raise SystemExit(1)


def main() -> None:
    """Console script entry point."""
    cli()
