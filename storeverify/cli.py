"""Command line verification of signed payloads.

Commands:
    storeverify transaction <source>
    storeverify renewal-info <source>
    storeverify notification <source>
    storeverify app-transaction <source>

<source> is a file holding the signed payload, or '-' for stdin. The
verifier is configured from STOREVERIFY_* environment variables.

Exit codes: 0 verified, 1 rejected, 2 bad configuration, 3 unreadable input.
"""

import json
import logging
import sys
from typing import Optional

import typer

from storeverify.common.errors import VerificationException
from storeverify.common.logging_config import configure_logging
from storeverify.config import load_verifier_from_env

logger = logging.getLogger(__name__)

EXIT_VERIFICATION_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_INPUT_ERROR = 3

app = typer.Typer(
    name="storeverify",
    help="Verify signed App Store payloads.",
    no_args_is_help=True,
)

SOURCE = typer.Argument("-", help="File holding the signed payload, or '-' for stdin")
ENV_FILE = typer.Option(None, "--env-file", help=".env file with STOREVERIFY_* settings")


def read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read().strip()
    with open(source, "r", encoding="utf-8") as f:
        return f.read().strip()


def _run(method_name: str, source: str, env_file: Optional[str]) -> None:
    configure_logging()
    try:
        verifier = load_verifier_from_env(env_file)
    except (ValueError, OSError) as e:
        typer.echo(f"configuration error: {e}", err=True)
        raise typer.Exit(EXIT_CONFIG_ERROR)

    try:
        signed = read_input(source)
    except (OSError, UnicodeDecodeError) as e:
        typer.echo(f"input error: {e}", err=True)
        raise typer.Exit(EXIT_INPUT_ERROR)

    try:
        claims = getattr(verifier, method_name)(signed)
    except VerificationException as e:
        logger.info("%s rejected", method_name, extra={"entry_point": method_name, "status": e.status.value})
        typer.echo(e.status.value, err=True)
        raise typer.Exit(EXIT_VERIFICATION_FAILURE)
    typer.echo(json.dumps(claims, indent=2, sort_keys=True))


@app.command("transaction")
def transaction_cmd(source: str = SOURCE, env_file: Optional[str] = ENV_FILE) -> None:
    """Verify a signed transaction."""
    _run("verify_and_decode_transaction", source, env_file)


@app.command("renewal-info")
def renewal_info_cmd(source: str = SOURCE, env_file: Optional[str] = ENV_FILE) -> None:
    """Verify signed renewal info."""
    _run("verify_and_decode_renewal_info", source, env_file)


@app.command("notification")
def notification_cmd(source: str = SOURCE, env_file: Optional[str] = ENV_FILE) -> None:
    """Verify a signed server notification."""
    _run("verify_and_decode_notification", source, env_file)


@app.command("app-transaction")
def app_transaction_cmd(source: str = SOURCE, env_file: Optional[str] = ENV_FILE) -> None:
    """Verify a signed app transaction."""
    _run("verify_and_decode_app_transaction", source, env_file)


def main():
    app()


if __name__ == "__main__":
    main()
