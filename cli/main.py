"""Command Line Interface using Typer."""

import asyncio
import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Tuple, TypeVar

import typer
from dotenv import load_dotenv
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from core.config import AppSettings, CardanoConfig
from core.exceptions import ConfigurationError, DependencyUnavailable
from core.initialization import Services, initialize_system
from core.utils import format_cardano_address
from observability.logging import setup_logging
from schemas.transactions import (
    CreatePredictionTxRequest,
    FinaliseTxRequest,
    TransactionResult,
    TransactionStatus,
    VoteTxRequest,
)

load_dotenv()

console = Console()

T = TypeVar("T")


class LogLevel(str, Enum):
    debug = "DEBUG"
    info = "INFO"
    warning = "WARNING"
    error = "ERROR"
    critical = "CRITICAL"


# Reconfigured by the callback when --log-level is passed
setup_logging()

logger = logging.getLogger(__name__)


def log_level_callback(level: LogLevel | None):
    if level:
        logger.info(f"Setting log level to: {level.value}")
        setup_logging(log_level_arg=level.value)


app = typer.Typer(
    help="Inverstra CLI - Cardano prediction DAO backend tools.",
    add_completion=False,
)


def run_async(coroutine):
    """Run a coroutine and return its result."""
    return asyncio.run(coroutine)


async def _with_services(operation: Callable[[Services], Awaitable[T]]) -> T:
    """Build the services, run ``operation`` and release them again."""
    services = await initialize_system()
    try:
        return await operation(services)
    finally:
        await services.aclose()


def _load_config() -> CardanoConfig:
    try:
        return CardanoConfig.from_env()
    except ConfigurationError as e:
        rprint(f":x: [bold red]Invalid configuration:[/bold red] {e}")
        raise typer.Exit(code=1) from e


STATUS_STYLES = {
    TransactionStatus.SUCCESS: "green",
    TransactionStatus.PENDING: "yellow",
    TransactionStatus.PENDING_IMPLEMENTATION: "yellow",
    TransactionStatus.ERROR: "red",
}


def _print_result(result: TransactionResult) -> None:
    style = STATUS_STYLES.get(result.status, "white")
    rprint(f"\nStatus: [{style}]{result.status.value}[/{style}]")
    rprint(result.model_dump_json(indent=2, exclude_none=True))
    if result.status is TransactionStatus.ERROR:
        raise typer.Exit(code=1)


def _run_operation(operation: Callable[[Services], Awaitable[TransactionResult]]):
    try:
        result = run_async(_with_services(operation))
    except ConfigurationError as e:
        rprint(f":x: [bold red]Invalid configuration:[/bold red] {e}")
        raise typer.Exit(code=1) from e
    _print_result(result)


@app.command()
def info():
    """Display the active Cardano configuration."""
    config = _load_config()
    rprint(":information_source: [bold]Inverstra CLI Information[/bold]")
    rprint(f"Network:           [bold blue]{config.network_name}[/bold blue]")
    rprint(f"Network magic:     {config.network_magic}")
    rprint(f"Blockfrost URL:    {config.blockfrost_url}")
    rprint(f"Ogmios URL:        {config.ogmios_url}")
    credential = "set" if config.blockfrost_project_id else "[red]missing[/red]"
    rprint(f"Blockfrost key:    {credential}")
    rprint("\nUse [bold]--help[/bold] for available commands and options.")
    return 0


@app.command()
def diagnostics(
    limit: int = typer.Option(25, min=0, max=100, help="Number of recent events."),
):
    """Print provider health and recent events as JSON."""
    with console.status("Probing the chain data provider..."):
        snapshot = run_async(
            _with_services(
                lambda services: services.transactions.get_network_diagnostics(limit)
            )
        )
    console.print_json(snapshot.model_dump_json(by_alias=True))


async def _check_connections(services: Services) -> List[Tuple[str, Optional[bool], str]]:
    checks: List[Tuple[str, Optional[bool], str]] = []
    transactions = services.transactions

    if transactions.provider is None:
        checks.append(("Blockfrost", False, transactions.provider_error or "not configured"))
    else:
        health = await transactions.provider.probe_health()
        for label, value in (
            ("Blockfrost health", health.health),
            ("Latest block", health.latest_block),
            ("Latest epoch", health.latest_epoch),
        ):
            detail = "unreachable" if value is None else _summarise(value)
            checks.append((label, value is not None, detail))

        try:
            client = await transactions.ensure_client()
        except DependencyUnavailable as e:
            checks.append(("Transaction builder", False, e.message))
        else:
            checks.append(("Transaction builder", True, client.network_name))

    if services.settings.mongodb_uri:
        reachable = (
            services.predictions.backend == "mongodb"
            and await services.predictions.ping()
        )
        checks.append(
            ("MongoDB", reachable, "connected" if reachable else "unreachable")
        )
    else:
        # Optional: predictions fall back to memory
        checks.append(("MongoDB", None, "MONGODB_URI not set, using in-memory store"))
    return checks


def _summarise(value: Any) -> str:
    if isinstance(value, dict):
        for key in ("is_healthy", "height", "epoch"):
            if key in value:
                return f"{key}={value[key]}"
    return json.dumps(value, default=str)[:60]


@app.command()
def check_connections():
    """Check Blockfrost, the transaction builder and MongoDB."""
    with console.status("Checking connections..."):
        checks = run_async(_with_services(_check_connections))

    table = Table(title="Connection checks")
    table.add_column("Check")
    table.add_column("Result")
    table.add_column("Detail")
    for name, ok, detail in checks:
        if ok is None:
            result = "[yellow]skipped[/yellow]"
        else:
            result = "[green]ok[/green]" if ok else "[red]failed[/red]"
        table.add_row(name, result, detail)
    console.print(table)

    if any(ok is False for _, ok, _ in checks):
        rprint("\n:x: [bold red]Some connection checks failed.[/bold red]")
        raise typer.Exit(code=1)
    rprint("\n:white_check_mark: [bold green]All required connections OK.[/bold green]")


@app.command()
def create_prediction(
    wallet: str = typer.Argument(..., help="Creator wallet address (addr...)."),
    datum: Optional[str] = typer.Option(
        None, "--datum", help="Datum as a JSON object."
    ),
    script_ref: Optional[str] = typer.Option(None, help="Reference script UTxO."),
):
    """Prepare a prediction-creation transaction."""
    try:
        datum_value = json.loads(datum) if datum else {}
        request = CreatePredictionTxRequest(
            wallet_address=wallet, datum=datum_value, script_ref=script_ref
        )
    except ValueError as e:
        rprint(f":x: [bold red]Invalid request:[/bold red] {e}")
        raise typer.Exit(code=2) from e

    rprint(
        f":scroll: Creating prediction for [bold blue]"
        f"{format_cardano_address(request.wallet_address)}[/bold blue]"
    )
    _run_operation(
        lambda services: services.transactions.create_prediction_transaction(request)
    )


@app.command()
def vote(
    wallet: str = typer.Argument(..., help="Voter wallet address (addr...)."),
    prediction_id: str = typer.Argument(..., help="Prediction to vote on."),
    support: bool = typer.Option(
        True, "--support/--against", help="Vote for or against the prediction."
    ),
):
    """Prepare a vote transaction."""
    try:
        request = VoteTxRequest(
            wallet_address=wallet, prediction_id=prediction_id, support=support
        )
    except ValueError as e:
        rprint(f":x: [bold red]Invalid request:[/bold red] {e}")
        raise typer.Exit(code=2) from e

    side = "for" if support else "against"
    rprint(f":ballot_box: Voting {side} prediction [bold]{prediction_id}[/bold]")
    _run_operation(lambda services: services.transactions.vote_transaction(request))


@app.command()
def finalise(
    wallet: str = typer.Argument(..., help="Wallet address finalising (addr...)."),
    prediction_id: str = typer.Argument(..., help="Prediction to finalise."),
):
    """Prepare a finalise transaction."""
    try:
        request = FinaliseTxRequest(wallet_address=wallet, prediction_id=prediction_id)
    except ValueError as e:
        rprint(f":x: [bold red]Invalid request:[/bold red] {e}")
        raise typer.Exit(code=2) from e

    rprint(f":checkered_flag: Finalising prediction [bold]{prediction_id}[/bold]")
    _run_operation(lambda services: services.transactions.finalise_transaction(request))


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Interface to bind."),
    port: Optional[int] = typer.Option(None, help="Port to listen on (default PORT)."),
    reload: bool = typer.Option(False, help="Reload on code changes."),
):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    port = port or AppSettings.from_env().port
    rprint(f":rocket: Serving Inverstra API on [bold]{host}:{port}[/bold]")
    uvicorn.run("api.main:app", host=host, port=port, reload=reload)


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: Optional[LogLevel] = typer.Option(  # noqa: B008
        None,
        "--log-level",
        "-L",
        help="Set logging level.",
    ),
):
    """
    Inverstra CLI
    """
    log_level_callback(log_level)


if __name__ == "__main__":
    app()
