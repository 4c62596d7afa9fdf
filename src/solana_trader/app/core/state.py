from fastapi import Request

from solana_trader.engine.trader import MultiWalletTrader


def get_trader(request: Request) -> MultiWalletTrader:
    """The single trader instance built by the app lifespan."""
    return request.app.state.trader
