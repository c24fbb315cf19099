"""CLI error handling: report errors instead of tracebacks."""

from functools import wraps

import typer
from click.exceptions import Exit

from chatline.lib.errors import LogReadFailure


def error_feedback(f):
    """Wrap command to echo errors to stderr before exiting with status 1."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except (SystemExit, Exit):
            raise
        except LogReadFailure as e:
            typer.echo(f"Read failed: {e}", err=True)
            raise typer.Exit(1) from e
        except (ValueError, KeyError, TypeError) as e:
            typer.echo(f"Invalid input: {e}", err=True)
            raise typer.Exit(1) from e
        except OSError as e:
            typer.echo(f"File error: {e}", err=True)
            raise typer.Exit(1) from e

    return wrapper
