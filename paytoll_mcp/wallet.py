"""Optional wallet identity used for x402 payments and transaction signing."""

from __future__ import annotations

import logging
from typing import Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class WalletIdentity:
    """Public address plus local signing capability.

    Built at most once per process from resolved secret material. When no
    secret is configured there is no `WalletIdentity` at all (free-tier mode);
    it is never partially initialized.
    """

    def __init__(self, account: LocalAccount) -> None:
        self._account = account

    @classmethod
    def from_private_key(cls, private_key: str) -> "WalletIdentity":
        key = private_key.strip()
        if not key.startswith("0x"):
            raise ConfigurationError("PRIVATE_KEY must start with 0x")
        try:
            account = Account.from_key(key)
        except Exception as e:
            # Never echo the key material itself.
            raise ConfigurationError(f"PRIVATE_KEY is not a valid secp256k1 private key: {type(e).__name__}") from e
        return cls(account)

    @classmethod
    def from_secret(cls, secret: Optional[str]) -> Optional["WalletIdentity"]:
        """Return a wallet for a non-empty secret, or None for free-tier mode."""
        if not secret or not secret.strip():
            return None
        wallet = cls.from_private_key(secret)
        logger.info("Wallet: %s", wallet.address)
        return wallet

    @property
    def account(self) -> LocalAccount:
        return self._account

    @property
    def address(self) -> str:
        return self._account.address

    def __repr__(self) -> str:
        return f"WalletIdentity(address={self.address!r})"
