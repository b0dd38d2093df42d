# src/gitsops/cli.py: Command-Line Interface (CLI) entry point.
# Implemented using Typer, this module provides the 'git-sops' command. git
# itself calls 'smudge' and 'clean' with the file name as the only argument,
# and users run 'init' once per clone.

import shlex
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm as ConfirmPrompt

from . import __version__
from .config import Settings, check_environment, load_settings
from .engine import SecretsEngine, SopsEngine
from .errors import ExitCode, GitSopsError, InvocationError
from .filters import SecretFilter
from .gitwrap import GitRepository
from .log import get_logger, setup_logging
from .repoinit import Confirm, RepoInitializer

app = typer.Typer(
    name="git-sops",
    help="Transparent sops encryption for files tracked in git.",
    add_completion=False,
)

# stdout carries file content for git; everything human-readable goes to stderr.
console = Console(stderr=True)
logger = get_logger(__name__)


@dataclass
class AppState:
    settings: Settings
    repo: GitRepository


def build_repository() -> GitRepository:
    return GitRepository(Path.cwd())


def build_engine(settings: Settings) -> SecretsEngine:
    return SopsEngine(settings)


def program_command() -> str:
    """The shell command git should run to call back into this program."""
    argv0 = sys.argv[0]
    if Path(argv0).name == "__main__.py":
        return f"{shlex.quote(sys.executable)} -m gitsops"
    resolved = shutil.which(argv0) or argv0
    return shlex.quote(str(Path(resolved).resolve()))


def version_callback(value: bool):
    """Print the version and exit."""
    if value:
        print(f"git-sops version: {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True
    ),
):
    """
    git-sops CLI.
    """
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    try:
        settings = load_settings()
        setup_logging(settings.log_level)
        repo = build_repository()
        check_environment(settings, repo)
        ctx.obj = AppState(settings=settings, repo=repo)
    except GitSopsError as e:
        _print_error(e)
        raise typer.Exit(code=e.exit_code)


def _print_error(error: GitSopsError) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}", highlight=False)


def _require_file(file: Optional[str], command: str) -> str:
    if not file:
        raise InvocationError(f"Missing FILE argument. Usage: git-sops {command} FILE")
    return file


def _build_filter(state: AppState) -> SecretFilter:
    return SecretFilter(state.repo, build_engine(state.settings), console)


def _read_stdin() -> bytes:
    return typer.get_binary_stream("stdin").read()


def _write_stdout(data: bytes) -> None:
    stream = typer.get_binary_stream("stdout")
    stream.write(data)
    stream.flush()


@app.command()
def smudge(
    ctx: typer.Context,
    file: Optional[str] = typer.Argument(None, help="Path of the file git is checking out."),
):
    """Decrypt stdin for the working tree (git smudge filter)."""
    state: AppState = ctx.obj
    try:
        path = _require_file(file, "smudge")
        output = _build_filter(state).smudge(path, _read_stdin())
    except GitSopsError as e:
        logger.debug("smudge failed", exc_info=True)
        _print_error(e)
        raise typer.Exit(code=e.exit_code)
    _write_stdout(output)


@app.command()
def clean(
    ctx: typer.Context,
    file: Optional[str] = typer.Argument(None, help="Path of the file git is staging."),
):
    """Encrypt stdin for the object store, reusing HEAD's ciphertext when unchanged (git clean filter)."""
    state: AppState = ctx.obj
    try:
        path = _require_file(file, "clean")
        output = _build_filter(state).clean(path, _read_stdin())
    except GitSopsError as e:
        logger.debug("clean failed", exc_info=True)
        _print_error(e)
        raise typer.Exit(code=e.exit_code)
    _write_stdout(output)


def _make_confirm(yes: bool, no_decrypt: bool) -> Confirm:
    """Answers the bulk decrypt prompt from flags, or asks on the terminal."""
    def confirm(prompt: str) -> bool:
        if yes:
            return True
        if no_decrypt:
            return False
        return ConfirmPrompt.ask(prompt, console=console, default=False)
    return confirm


@app.command()
def init(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Decrypt encrypted files without asking."),
    no_decrypt: bool = typer.Option(False, "--no-decrypt", help="Skip the bulk decrypt step."),
):
    """Register the smudge/clean filters in the local git config."""
    state: AppState = ctx.obj

    if yes and no_decrypt:
        console.print("[bold red]Error:[/bold red] --yes and --no-decrypt cannot be combined.")
        raise typer.Exit(code=ExitCode.FAILURE)

    initializer = RepoInitializer(
        state.repo,
        program=program_command(),
        confirm=_make_confirm(yes, no_decrypt),
        console=console,
        filter_name=state.settings.filter_name,
    )
    try:
        result = initializer.init()
    except GitSopsError as e:
        _print_error(e)
        raise typer.Exit(code=e.exit_code)

    if result.decrypted:
        console.print(f"[bold green]Decrypted {len(result.decrypted)} file(s).[/bold green]")
    elif not result.already_initialized:
        console.print("[bold green]Repository initialized.[/bold green]")


def _unknown_command(args: List[str]) -> Optional[str]:
    """Returns the first positional argument if it names no registered command."""
    for arg in args:
        if arg.startswith("-"):
            continue
        if arg in typer.main.get_command(app).commands:
            return None
        return arg
    return None


def run_cli(args: Optional[List[str]] = None):
    """Main entry point for the CLI application."""
    args = sys.argv[1:] if args is None else args

    unknown = _unknown_command(args)
    if unknown is not None:
        console.print(f"No such command '{escape(unknown)}'.", highlight=False)
        args = ["--help"]

    try:
        app(args=args, prog_name="git-sops")
    except GitSopsError as e:
        _print_error(e)
        sys.exit(e.exit_code)
    except Exception as e:
        console.print(f"[bold red]An unexpected error occurred:[/bold red] {escape(str(e))}")
        sys.exit(ExitCode.FAILURE)


if __name__ == "__main__":
    run_cli()
