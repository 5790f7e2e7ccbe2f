"""Entry point for running the Shuttle directly."""

import logging
from typing import Optional

import logfire
import typer
import uvicorn

from .app import create_app
from .config import Settings
from .errors import ConfigError

cli = typer.Typer(add_completion=False)


def configure_telemetry(log_level: str):
    """Send logs to Logfire when a token is present, and to the console always."""
    logfire.configure(
        service_name="shuttle",
        send_to_logfire="if-token-present",
        console=logfire.ConsoleOptions(min_log_level=log_level.lower()),
    )
    logfire.instrument_httpx()
    # uvicorn logs through stdlib logging; route it to the same place
    logging.basicConfig(level=log_level.upper(), handlers=[logfire.LogfireLoggingHandler()])


@cli.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Interface to listen on [env: SHUTTLE_HOST]"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on [env: SHUTTLE_PORT]"),
    timeout_ms: Optional[int] = typer.Option(None, "--timeout-ms", help="Upstream timeout [env: SHUTTLE_TIMEOUT_MS]"),
    verify_tls: Optional[bool] = typer.Option(
        None,
        "--verify-tls/--no-verify-tls",
        help="Verify upstream TLS certificates [env: SHUTTLE_VERIFY_TLS]",
    ),
    log_level: str = typer.Option("info", "--log-level", help="Console log level"),
):
    """Run the Shuttle server."""
    try:
        env = Settings.from_env()
        settings = Settings(
            host=host if host is not None else env.host,
            port=port if port is not None else env.port,
            timeout_ms=timeout_ms if timeout_ms is not None else env.timeout_ms,
            verify_tls=verify_tls if verify_tls is not None else env.verify_tls,
        )
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    configure_telemetry(log_level)

    app = create_app(settings)
    logfire.instrument_fastapi(app)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=log_level.lower(),
        log_config=None,
    )


def main():
    cli()


if __name__ == "__main__":
    main()
