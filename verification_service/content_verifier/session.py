"""
In-memory verification session.

The whole page state lives in one immutable `SessionState`. Handlers never
mutate it: they call `SessionStore.update(...)`, which swaps in a new
snapshot. Nothing is persisted; restarting the process starts a fresh
session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

from .config import NEWS_WORD_LIMIT
from .news.summary import can_verify_news, count_words
from .schemas import (
    Account,
    ModelStatus,
    SessionView,
    VerificationMode,
    VerificationResult,
)
from .wallet.stub import WalletState

logger = logging.getLogger(__name__)

AUTHENTIC_HEADLINE = "✓ Authentic Content"
SUSPICIOUS_HEADLINE = "⚠ Suspicious Content"


@dataclass(frozen=True)
class SessionState:
    wallet_id: str = ""
    account: Optional[Account] = None
    wallet_connected: bool = False
    mode: VerificationMode = VerificationMode.IMAGE
    # Last uploaded image as a data URL.
    image: Optional[str] = None
    news_text: str = ""
    result: Optional[VerificationResult] = None
    image_pending: bool = False
    news_pending: bool = False


class SessionStore:
    """Holds the current snapshot; `update` is the only way to change it."""

    def __init__(self, initial: Optional[SessionState] = None) -> None:
        self._state = initial or SessionState()

    @property
    def state(self) -> SessionState:
        return self._state

    def update(self, **changes) -> SessionState:
        self._state = replace(self._state, **changes)
        logger.debug("Session updated: %s", ", ".join(sorted(changes)))
        return self._state

    @property
    def wallet(self) -> WalletState:
        return WalletState(
            wallet_id=self._state.wallet_id,
            account=self._state.account,
            connected=self._state.wallet_connected,
        )

    def apply_wallet(self, wallet: WalletState) -> SessionState:
        return self.update(
            wallet_id=wallet.wallet_id,
            account=wallet.account,
            wallet_connected=wallet.connected,
        )


def render(
    state: SessionState,
    *,
    model_status: ModelStatus,
    model_error: Optional[str] = None,
    word_limit: int = NEWS_WORD_LIMIT,
) -> SessionView:
    """Derive what the page shows from a snapshot and the model status."""
    result = state.result
    headline = None
    if result is not None:
        headline = AUTHENTIC_HEADLINE if result.is_authentic else SUSPICIOUS_HEADLINE
        # The summary excerpt only belongs to the news panel.
        if state.mode is not VerificationMode.NEWS and result.real_news is not None:
            result = result.model_copy(update={"real_news": None})

    return SessionView(
        wallet_id=state.wallet_id,
        account=state.account,
        wallet_connected=state.wallet_connected,
        connected_label=(
            f"Connected: {state.account.account_id}" if state.account else None
        ),
        mode=state.mode,
        image=state.image,
        news_text=state.news_text,
        word_count=count_words(state.news_text),
        word_limit=word_limit,
        result=result,
        headline=headline,
        image_pending=state.image_pending,
        news_pending=state.news_pending,
        can_verify_image=(
            state.image is not None
            and model_status is ModelStatus.READY
            and not state.image_pending
        ),
        can_verify_news=can_verify_news(
            state.news_text, state.news_pending, word_limit
        ),
        model_status=model_status,
        model_error=model_error,
    )
