"""
Pydantic schemas used by the FastAPI app.

The request models mirror the controls of the verification page (wallet
field, mode toggle, news text area); the response models are what the page
renders.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class VerificationMode(str, Enum):
    IMAGE = "image"
    NEWS = "news"


class ModelStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class Account(BaseModel):
    """
    Wallet identity as entered by the user.

    Nothing about `account_id` is checked: it is not a signed or resolved
    on-chain identity, just the text that was typed.
    """

    account_id: str


class VerificationResult(BaseModel):
    """
    Outcome of the latest image or news verification.

    - is_authentic: verdict
    - confidence: 0..100
    - error: message for failed image verifications
    - real_news: summary excerpt (or failure text) for news verifications
    """

    is_authentic: bool
    confidence: int = Field(ge=0, le=100)
    error: Optional[str] = None
    real_news: Optional[str] = None


class WalletIdRequest(BaseModel):
    wallet_id: str


class ModeRequest(BaseModel):
    mode: VerificationMode


class NewsTextRequest(BaseModel):
    text: str


class NewsTextResponse(BaseModel):
    """Live word counter shown under the news text area."""

    word_count: int
    word_limit: int
    can_verify_news: bool


class SessionView(BaseModel):
    """Everything the page needs to render the current session."""

    wallet_id: str
    account: Optional[Account] = None
    wallet_connected: bool = False
    connected_label: Optional[str] = None
    mode: VerificationMode
    image: Optional[str] = None
    news_text: str
    word_count: int
    word_limit: int
    result: Optional[VerificationResult] = None
    headline: Optional[str] = None
    image_pending: bool
    news_pending: bool
    can_verify_image: bool
    can_verify_news: bool
    model_status: ModelStatus
    model_error: Optional[str] = None


class HealthResponse(BaseModel):
    """Simple health check response."""

    status: str
    model_status: ModelStatus
    backend: Optional[str] = None
