"""
Wallet "validation" and "connection".

This is a placeholder for a real identity service. `validate` accepts any
non-blank string as an account ID. It does no format or checksum check,
no signature challenge, and makes no network or chain lookup. `connect`
only flips the connected flag and `disconnect` clears the wallet fields;
neither changes anything outside what the page shows. Anything that needs a
trustworthy identity must implement `IdentityProvider` against a real
signing service instead of using `UnverifiedIdentityProvider`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional, Protocol

from ..schemas import Account

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    def resolve(self, wallet_id: str) -> Optional[Account]:
        """Return the account behind `wallet_id`, or None if there is none."""
        ...


class UnverifiedIdentityProvider:
    """Takes the typed identifier at face value."""

    def resolve(self, wallet_id: str) -> Optional[Account]:
        if not wallet_id.strip():
            return None
        return Account(account_id=wallet_id)


@dataclass(frozen=True)
class WalletState:
    wallet_id: str = ""
    account: Optional[Account] = None
    connected: bool = False


class WalletStub:
    """Computes wallet presentation state transitions."""

    def __init__(self, provider: Optional[IdentityProvider] = None) -> None:
        self._provider = provider or UnverifiedIdentityProvider()

    def validate(self, wallet_id: str) -> Optional[Account]:
        account = self._provider.resolve(wallet_id)
        if account is None:
            logger.debug("Ignoring blank wallet id")
        return account

    def connect(self, current: WalletState) -> WalletState:
        """Mark the wallet connected. The account is left as it is."""
        logger.info("Connecting to wallet %r (unverified)", current.wallet_id)
        return replace(current, connected=bool(current.wallet_id.strip()))

    def disconnect(self) -> WalletState:
        logger.info("Wallet disconnected")
        return WalletState()
