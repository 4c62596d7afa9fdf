import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from solana_trader.app.api.routes import router
from solana_trader.engine.trader import MultiWalletTrader
from solana_trader.logging_utils import EndpointFilter
from solana_trader.notifications import TelegramNotifier
from solana_trader.settings import Settings

logger = logging.getLogger("solana_trader.app")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Suppress uvicorn access logs for polling endpoints
        logging.getLogger("uvicorn.access").addFilter(EndpointFilter("/api/status"))

        logger.info("dashboard_starting")
        notifier = TelegramNotifier(
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
        )
        trader = MultiWalletTrader(settings=settings, notifier=notifier)
        app.state.trader = trader
        try:
            yield
        finally:
            logger.info("dashboard_stopping")
            await trader.aclose()
            logger.info("dashboard_stopped")

    app = FastAPI(title="Solana Multi-Wallet Trader", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/")
    async def root():
        trader: MultiWalletTrader = app.state.trader
        ready = trader.setup.is_setup_complete
        return {
            "name": "Solana Multi-Wallet Trader",
            "state": "Ready to Trade" if ready else "Setup Required",
            "trading_active": trader.session.running,
        }

    return app
