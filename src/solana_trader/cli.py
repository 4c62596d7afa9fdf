from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer

from solana_trader.config.trading import load_trading_settings
from solana_trader.engine.trader import MultiWalletTrader
from solana_trader.errors import PreconditionError
from solana_trader.funding import format_eur, min_required_budget, per_wallet_allocation
from solana_trader.logbook import write_logs_csv
from solana_trader.logging_utils import configure_logging
from solana_trader.notifications.telegram import TelegramNotifier
from solana_trader.settings import Settings
from solana_trader.setup_state import SetupState
from solana_trader.types import Notice
from solana_trader.wallets import EXPORT_FILENAME, WalletRegistry, parse_wallet_document

app = typer.Typer(no_args_is_help=True, add_completion=False)
logger = logging.getLogger("solana_trader")


def _require(notice: Notice) -> None:
    if not notice.ok:
        raise typer.BadParameter(f"{notice.title}: {notice.description}")


@app.command()
def config_init(
    path: Path = typer.Option(Path(".env"), help="Path to write a starter .env file."),
    overwrite: bool = typer.Option(False, "--overwrite", help="Overwrite if exists."),
) -> None:
    """
    Create a starter `.env` file (copy from `.env.example`).
    """
    example_path = Path(".env.example")
    if not example_path.exists():
        raise typer.Exit(code=2)

    if path.exists() and not overwrite:
        raise typer.Exit(code=1)

    path.write_text(example_path.read_text(encoding="utf-8"), encoding="utf-8")
    typer.echo(f"Wrote {path}")


@app.command()
def show_config() -> None:
    settings = Settings()
    configure_logging(settings.log_level, settings.log_format)
    redacted = settings.model_dump()
    redacted["telegram_bot_token"] = "***" if redacted["telegram_bot_token"] else ""
    logger.info("loaded_config", extra={"path": settings.rpc_url})
    typer.echo(redacted)


@app.command()
def serve(
    host: str | None = typer.Option(None, help="Override: bind host."),
    port: int | None = typer.Option(None, help="Override: bind port."),
) -> None:
    """
    Serve the dashboard API with uvicorn.
    """
    import uvicorn

    from solana_trader.app.main import create_app

    settings = Settings()
    configure_logging(settings.log_level, settings.log_format)
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )


@app.command()
def budget(
    wallets: int = typer.Option(..., min=0, help="Number of wallets to fund."),
    total: float = typer.Option(100.0, min=0, help="Total budget in EUR."),
) -> None:
    """
    Show the minimum budget and per-wallet allocation.
    """
    minimum = min_required_budget(wallets)
    typer.echo(
        {
            "wallets": wallets,
            "total_budget": format_eur(total),
            "min_required": format_eur(minimum),
            "per_wallet": format_eur(per_wallet_allocation(total, wallets)),
            "sufficient": total >= minimum,
        }
    )


@app.command()
def wallets_create(
    count: int = typer.Option(10, help="Number of placeholder wallets (1-1000)."),
    out: Path = typer.Option(Path(EXPORT_FILENAME), help="Where to write the wallet JSON."),
) -> None:
    """
    Generate placeholder wallets and write them as a wallet JSON document.
    """
    settings = Settings()
    configure_logging(settings.log_level, settings.log_format)
    registry = WalletRegistry(setup=SetupState())
    try:
        registry.create(count)
    except PreconditionError as e:
        raise typer.BadParameter(e.description, param_hint="--count") from e
    registry.export_file(out)
    typer.echo({"ok": True, "wallets": registry.count, "path": str(out)})


@app.command()
def wallets_count(
    path: Path = typer.Option(Path(EXPORT_FILENAME), help="Wallet JSON document to read."),
) -> None:
    """
    Count the wallets in a wallet JSON document.
    """
    if not path.exists():
        raise typer.BadParameter(f"wallet file not found: {path}")
    try:
        wallets = parse_wallet_document(path.read_text(encoding="utf-8"))
    except PreconditionError as e:
        raise typer.BadParameter(f"{e.title}: {e.description}", param_hint="--path") from e
    typer.echo({"ok": True, "wallets": len(wallets)})


@app.command()
def simulate(
    config: Path = typer.Option(
        Path("configs/trading.toml"),
        help="Trading settings file (TOML).",
    ),
    wallets: int = typer.Option(10, help="Number of placeholder wallets to create."),
    seconds: float = typer.Option(30.0, min=0, help="How long to keep the session running."),
    funding_secret: str = typer.Option(
        "",
        envvar="FUNDING_SECRET",
        help="Funding wallet secret (base58 text, 44-88 chars).",
    ),
    out: Path | None = typer.Option(None, help="Optional CSV output path for the logs."),
) -> None:
    """
    Run a simulated trading session headless and print the log stats.
    """
    settings = Settings()
    configure_logging(settings.log_level, settings.log_format)

    if not config.exists():
        raise typer.BadParameter(f"config file not found: {config}")
    try:
        trading = load_trading_settings(config)
    except Exception as e:
        raise typer.BadParameter(f"invalid config: {e}") from e

    async def _run() -> None:
        notifier = TelegramNotifier(
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
        )
        trader = MultiWalletTrader(settings=settings, notifier=notifier)
        try:
            _require(await trader.connect_rpc())
            _require(await trader.load_funding(funding_secret))
            _require(await trader.create_wallets(wallets))
            trader.set_token_mint(trading.token_mint)
            _require(await trader.validate_mint())
            _require(await trader.save_settings(trading))
            _require(await trader.start_trading())
            await asyncio.sleep(seconds)
            await trader.stop_trading()

            if out is not None and len(trader.logs):
                write_logs_csv(path=out, entries=trader.logs.entries())
            typer.echo({**trader.logs.stats(), "csv": str(out) if out is not None else ""})
        finally:
            await trader.aclose()

    asyncio.run(_run())
