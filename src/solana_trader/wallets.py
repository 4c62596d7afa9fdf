from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Any

import base58

from solana_trader.errors import PreconditionError
from solana_trader.setup_state import SetupState
from solana_trader.types import WalletRecord

logger = logging.getLogger("solana_trader.wallets")

MIN_WALLETS = 1
MAX_WALLETS = 1000

EXPORT_FILENAME = "solana-wallets.json"
EXPORT_MEDIA_TYPE = "application/json"


def _placeholder_key(rng: random.Random, size: int) -> str:
    # Random bytes rendered as base58; looks like key material but is not a keypair.
    return base58.b58encode(rng.randbytes(size)).decode("ascii")


def _record_from_entry(index: int, entry: Any) -> WalletRecord:
    if not isinstance(entry, dict):
        return WalletRecord(id=index, public_key="", secret_key="")
    return WalletRecord(
        id=index,
        public_key=str(entry.get("pubkey", "")),
        secret_key=str(entry.get("secret_b58", "")),
    )


def parse_wallet_document(text: str) -> list[Any]:
    """Returns the `wallets` list of a wallet JSON document."""
    if not text.strip():
        raise PreconditionError("No JSON Data", "Please paste wallet JSON data first")
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise PreconditionError(
            "Import Failed", "Invalid JSON format. Please check your data."
        ) from e
    if not isinstance(parsed, dict) or not isinstance(parsed.get("wallets"), list):
        raise PreconditionError("Import Failed", "Invalid wallet format")
    return parsed["wallets"]


class WalletRegistry:
    def __init__(self, *, setup: SetupState, rng: random.Random | None = None) -> None:
        self._setup = setup
        self._rng = rng or random.Random()
        self._wallets: list[Any] = []
        self.created = False

    @property
    def count(self) -> int:
        return len(self._wallets)

    @property
    def records(self) -> list[WalletRecord]:
        return [_record_from_entry(i, w) for i, w in enumerate(self._wallets, start=1)]

    def document(self) -> dict[str, list[Any]]:
        return {"wallets": list(self._wallets)}

    def create(self, count: int) -> list[WalletRecord]:
        if count < MIN_WALLETS or count > MAX_WALLETS:
            raise PreconditionError(
                "Invalid Wallet Count",
                f"Please enter a number between {MIN_WALLETS} and {MAX_WALLETS}",
            )
        records = [
            WalletRecord(
                id=i,
                public_key=_placeholder_key(self._rng, 32),
                secret_key=_placeholder_key(self._rng, 64),
            )
            for i in range(1, count + 1)
        ]
        self._wallets = [{"secret_b58": r.secret_key, "pubkey": r.public_key} for r in records]
        self.created = True
        self._setup.set_wallet_count(count)
        logger.info("wallets_created", extra={"count": count})
        return records

    def export_json(self) -> str:
        if not self.created:
            raise PreconditionError(
                "No Wallets to Export", "Create wallets first before exporting"
            )
        return json.dumps(self.document(), indent=2)

    def import_json(self, text: str) -> int:
        wallets = parse_wallet_document(text)
        # Entries are taken as-is; only the list shape is checked.
        self._wallets = list(wallets)
        self.created = True
        self._setup.set_wallet_count(len(wallets))
        logger.info("wallets_imported", extra={"count": len(wallets)})
        return len(wallets)

    def import_file(self, path: Path) -> int:
        return self.import_json(path.read_text(encoding="utf-8"))

    def export_file(self, path: Path) -> Path:
        text = self.export_json()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
