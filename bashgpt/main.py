"""Main CLI application for bashgpt."""

import functools
from importlib import resources

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel

from .completion import CompletionClient
from .config import BashGPTSettings, get_settings
from .errors import BashGPTError, UpgradeError
from .keystore import (
    bashrc_snippet,
    ensure_autocomplete_script,
    load_key,
    refresh_autocomplete_script,
    save_key,
)
from .logger import get_logger, setup_logging
from .shell import run_command, split_prompt_and_command
from .upgrade import Upgrader

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)

UNKNOWN_COMMAND = "bashgpt.unknown_command"


def help_text() -> str:
    return resources.files("bashgpt").joinpath("data/help.txt").read_text(encoding="utf-8")


def report_error(exc: BashGPTError) -> None:
    """Print an error on stderr; a degraded install gets its own warning."""
    if isinstance(exc, UpgradeError) and exc.is_degraded:
        backup = exc.backup_path or "the .bak file next to it"
        err_console.print(
            Panel(
                f"{escape(str(exc))}\n\n"
                f"[bold]{escape(str(exc.path))}[/bold] is missing or unusable and the "
                f"automatic restore failed ({escape(str(exc.rollback_error))}).\n"
                f"Restore it by hand, e.g.:\n\n"
                f"  mv {escape(str(backup))} {escape(str(exc.path))}",
                title="[bold red]UPGRADE FAILED - MANUAL RECOVERY REQUIRED[/bold red]",
                border_style="red",
            )
        )
        return
    err_console.print(f"[red]Error:[/red] {escape(str(exc))}", soft_wrap=True)


def reports_errors(func):
    """Turn BashGPTError into a message on stderr and exit status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except BashGPTError as exc:
            logger.debug("command_failed", error=str(exc), error_type=type(exc).__name__)
            report_error(exc)
            click.get_current_context().exit(1)

    return wrapper


class BashGPTGroup(click.Group):
    """Group that shows help (exit status 1) for unknown subcommands."""

    def resolve_command(self, ctx, args):
        if args and self.get_command(ctx, args[0]) is None:
            ctx.meta[UNKNOWN_COMMAND] = args[0]
            return "help", self.get_command(ctx, "help"), []
        return super().resolve_command(ctx, args)


class VerbatimCommand(click.Command):
    """Command whose arguments reach the callback untouched, "--" included."""

    def parse_args(self, ctx, args):
        ctx.params["words"] = tuple(args)
        ctx.args = []
        return []


@click.group(cls=BashGPTGroup, invoke_without_command=True)
@click.pass_context
def cli(ctx):
    """bashgpt - Natural language to shell command autocompletion."""
    ctx.ensure_object(dict)
    try:
        settings = ctx.obj.get("settings") or get_settings()
    except ValidationError as exc:
        err_console.print(f"[red]Error:[/red] invalid configuration: {escape(str(exc))}")
        ctx.exit(1)
    setup_logging(settings.command_name, settings.log_level)

    upgrader = ctx.obj.get("upgrader") or Upgrader(
        settings, console=console, err_console=err_console
    )
    ctx.obj["settings"] = settings
    ctx.obj["upgrader"] = upgrader

    if ctx.invoked_subcommand != "upgrade":
        upgrader.check_for_upgrade()
        refresh_autocomplete_script(settings)

    if ctx.invoked_subcommand is None:
        console.print(Markdown(help_text()))
        ctx.exit(1)


@cli.command()
@click.pass_obj
@reports_errors
def config(obj):
    """Store the OpenAI API key and install the autocomplete script."""
    settings: BashGPTSettings = obj["settings"]
    key = click.prompt("Enter your OpenAI API key", hide_input=True)
    save_key(settings, key)
    ensure_autocomplete_script(settings)
    click.echo(bashrc_snippet(settings), nl=False)


@cli.command("help")
@click.pass_context
def help_(ctx):
    """Show help."""
    console.print(Markdown(help_text()))
    if ctx.meta.get(UNKNOWN_COMMAND):
        ctx.exit(1)


@cli.command(cls=VerbatimCommand)
@click.pass_obj
@reports_errors
def sh(obj, words):
    """Suggest a command for a query, or run a suggested one after "--"."""
    settings: BashGPTSettings = obj["settings"]
    prompt, command = split_prompt_and_command(words)

    if command:
        run_command(command)
        return

    client = obj.get("completion_client") or CompletionClient(settings, load_key(settings))
    click.echo(client.suggest(prompt), nl=False)


@cli.command()
@click.pass_obj
@reports_errors
def upgrade(obj):
    """Upgrade bashgpt to the latest release."""
    upgrader: Upgrader = obj["upgrader"]
    upgrader.run_upgrade()


@cli.command()
@click.pass_obj
def version(obj):
    """Print the installed version."""
    settings: BashGPTSettings = obj["settings"]
    click.echo(f"{settings.command_name}-{settings.version}")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
