from __future__ import annotations

import logging

from solana_trader.errors import PreconditionError
from solana_trader.setup_state import SetupState

logger = logging.getLogger("solana_trader.rpc")

_SECRET_MIN_LEN = 44
_SECRET_MAX_LEN = 88


class RpcConnection:
    """RPC endpoint and funding wallet panel. Nothing here touches the network."""

    def __init__(self, *, setup: SetupState, rpc_url: str) -> None:
        self._setup = setup
        self.rpc_url = rpc_url
        self.connected = False
        self.funding_loaded = False

    def connect(self, url: str | None = None) -> None:
        candidate = self.rpc_url if url is None else url
        if not candidate.strip():
            raise PreconditionError("Invalid RPC URL", "Please enter a valid RPC URL")
        self.rpc_url = candidate.strip()
        self.connected = True
        self._setup.set_rpc_connected(True)
        logger.info("rpc_connected", extra={"path": self.rpc_url})

    def load_funding(self, secret: str) -> None:
        secret = secret.strip()
        if not secret:
            raise PreconditionError(
                "Missing Funding Secret", "Please paste your base58 secret key"
            )
        if len(secret) < _SECRET_MIN_LEN or len(secret) > _SECRET_MAX_LEN:
            raise PreconditionError(
                "Invalid Secret Key", "Please enter a valid base58 secret key"
            )
        # Only the fact that a secret was supplied is kept.
        self.funding_loaded = True
        self._setup.set_funding_loaded(True)
        logger.info("funding_loaded")
