"""CLI for merklehash."""

import logging
from pathlib import Path
from typing import Optional

import click
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from typer.core import TyperGroup

from .algorithms import get_factory, list_algorithms
from .cancel import CancelToken
from .config import load_settings
from .constants import EXIT_CANCELLED, EXIT_FAILURE, EXIT_USAGE
from .errors import CancelledError, ConfigError, MerkleHashError, UnknownAlgorithmError
from .merkle import MerkleHasher

DEFAULT_COMMAND = "hash"


class DefaultCommandGroup(TyperGroup):
    """Run ``hash`` when the first argument is not a command name.

    Keeps ``merklehash <dir>`` working alongside ``merklehash algorithms``.
    A directory named like a command must be spelled ``merklehash hash <dir>``.
    """

    def parse_args(self, ctx: click.Context, args: list) -> list:
        group_options = {opt for param in self.get_params(ctx) for opt in param.opts}
        if args and args[0] not in self.commands and args[0] not in group_options:
            args = [DEFAULT_COMMAND] + list(args)
        return super().parse_args(ctx, args)


app = typer.Typer(cls=DefaultCommandGroup, help="""\
MerkleHash is a hashing tool for generating digests of arbitrary depth
directory hierarchies. File contents, names (through ordering) and nesting
all contribute to the digest.""")

console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    """Send engine debug logs to stderr through rich."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _fail(message: str, code: int = EXIT_FAILURE) -> None:
    console.print(f"[red]✗[/red] {escape(message)}", soft_wrap=True)
    raise typer.Exit(code)


@app.command("hash")
def hash_command(
    path: Path = typer.Argument(..., help="Directory to hash"),
    algorithm: Optional[str] = typer.Option(
        None, "--algorithm", "-a", help="Hashing algorithm to use (default: sha256)"
    ),
    raw: bool = typer.Option(False, "--raw", help="Print only the hex digest"),
    serial: bool = typer.Option(False, "--serial", help="Hash on a single thread"),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", min=1, help="Number of worker threads"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.0, help="Give up after this many seconds (0 disables)"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", help="Config file (default: ~/.config/merklehash/config.yaml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Print the merkle digest of a directory followed by its path."""
    _configure_logging(verbose)

    if algorithm is not None:
        try:
            get_factory(algorithm)
        except UnknownAlgorithmError as e:
            console.print(f"[red]✗[/red] '{escape(algorithm)}' is not a valid algorithm. Valid algorithms are:", soft_wrap=True)
            for ident in e.available:
                console.print(f"  {ident}")
            raise typer.Exit(EXIT_USAGE)

    try:
        settings = load_settings(
            config, overrides={"algorithm": algorithm, "max_workers": workers}
        )
    except ConfigError as e:
        _fail(str(e), EXIT_USAGE)

    if timeout is None:
        timeout = settings.timeout
    token = CancelToken.with_timeout(timeout) if timeout else CancelToken()

    hasher = MerkleHasher(
        settings.factory,
        max_workers=settings.max_workers,
        chunk_size=settings.chunk_size,
    )
    try:
        if serial:
            digest = hasher.compute_serial(path, token)
        else:
            digest = hasher.compute(path, token)
    except KeyboardInterrupt:
        token.cancel()
        _fail("Interrupted", EXIT_CANCELLED)
    except CancelledError as e:
        _fail(str(e), EXIT_CANCELLED)
    except MerkleHashError as e:
        _fail(str(e))
    finally:
        # Stops the deadline timer, if any
        token.cancel()

    if raw:
        typer.echo(digest.hex())
    else:
        typer.echo(f"{digest.hex()} {path}")


@app.command("algorithms")
def algorithms_command():
    """List supported algorithms."""
    for ident in list_algorithms():
        typer.echo(ident)


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
