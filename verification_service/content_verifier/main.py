"""
FastAPI app for the content verification service.

The endpoints mirror the controls of the verification page and return the
rendered session after every action:

- GET  /health
- GET  /state
- PUT  /wallet/id, POST /wallet/validate, /wallet/connect, /wallet/disconnect
- POST /mode
- POST /image, POST /image/verify
- PUT  /news, POST /news/verify
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from .config import HOST, PORT
from .detection.preprocess import encode_data_url, is_image_type
from .detection.verify import ImageVerifier
from .errors import InputRejectedError
from .inference.loader import ModelLoader
from .log import setup_logging
from .news.summary import NewsVerifier, can_verify_news, count_words
from .schemas import (
    HealthResponse,
    ModeRequest,
    NewsTextRequest,
    NewsTextResponse,
    SessionView,
    WalletIdRequest,
)
from .session import SessionStore, render
from .wallet.stub import WalletStub

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    loader: ModelLoader = app.state.loader
    # Failures are recorded on the loader; the app still starts.
    await loader.load()
    try:
        yield
    finally:
        loader.release()


app = FastAPI(
    title="Content Verification Service",
    version="0.1.0",
    description="Image and news authenticity checks with a placeholder wallet identity.",
    lifespan=lifespan,
)

# The page may be served from any origin during local use.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Process-wide collaborators; tests replace these before starting a client.
app.state.loader = ModelLoader()
app.state.session = SessionStore()
app.state.news_verifier = NewsVerifier()
app.state.wallet = WalletStub()


def _view() -> SessionView:
    loader: ModelLoader = app.state.loader
    news_verifier: NewsVerifier = app.state.news_verifier
    return render(
        app.state.session.state,
        model_status=loader.status,
        model_error=loader.error,
        word_limit=news_verifier.word_limit,
    )


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness plus the state of the classifier."""
    loader: ModelLoader = app.state.loader
    return HealthResponse(status="ok", model_status=loader.status, backend=loader.backend)


@app.get("/state", response_model=SessionView)
async def state() -> SessionView:
    return _view()


@app.put("/wallet/id", response_model=SessionView)
async def set_wallet_id(req: WalletIdRequest) -> SessionView:
    app.state.session.update(wallet_id=req.wallet_id)
    return _view()


@app.post("/wallet/validate", response_model=SessionView)
async def validate_wallet() -> SessionView:
    session: SessionStore = app.state.session
    account = app.state.wallet.validate(session.state.wallet_id)
    if account is None:
        raise HTTPException(status_code=409, detail="Enter a wallet ID first.")
    session.update(account=account)
    return _view()


@app.post("/wallet/connect", response_model=SessionView)
async def connect_wallet() -> SessionView:
    session: SessionStore = app.state.session
    if not session.state.wallet_id.strip():
        raise HTTPException(status_code=409, detail="Enter a wallet ID first.")
    session.apply_wallet(app.state.wallet.connect(session.wallet))
    return _view()


@app.post("/wallet/disconnect", response_model=SessionView)
async def disconnect_wallet() -> SessionView:
    app.state.session.apply_wallet(app.state.wallet.disconnect())
    return _view()


@app.post("/mode", response_model=SessionView)
async def set_mode(req: ModeRequest) -> SessionView:
    app.state.session.update(mode=req.mode)
    return _view()


@app.post("/image", response_model=SessionView)
async def upload_image(file: UploadFile = File(...)) -> SessionView:
    """Store the picked file as the preview image, if it is an image."""
    if not is_image_type(file.content_type):
        logger.info("Rejected upload with content type %r", file.content_type)
        raise HTTPException(status_code=415, detail="Please upload a valid image file.")

    data = await file.read()
    app.state.session.update(image=encode_data_url(data, file.content_type))
    return _view()


@app.post("/image/verify", response_model=SessionView)
async def verify_image() -> SessionView:
    session: SessionStore = app.state.session
    if session.state.image_pending:
        raise HTTPException(status_code=409, detail="Image verification already in progress.")

    verifier = ImageVerifier(app.state.loader)
    session.update(image_pending=True)
    try:
        result = await verifier.verify(session.state.image)
    finally:
        session.update(image_pending=False)

    session.update(result=result)
    return _view()


@app.put("/news", response_model=NewsTextResponse)
async def set_news_text(req: NewsTextRequest) -> NewsTextResponse:
    session: SessionStore = app.state.session
    news_verifier: NewsVerifier = app.state.news_verifier
    session.update(news_text=req.text)
    return NewsTextResponse(
        word_count=count_words(req.text),
        word_limit=news_verifier.word_limit,
        can_verify_news=can_verify_news(
            req.text, session.state.news_pending, news_verifier.word_limit
        ),
    )


@app.post("/news/verify", response_model=SessionView)
async def verify_news() -> SessionView:
    """
    Check the current news text against Wikipedia.

    Lookup failures still answer 200; the failure is in the stored result.
    """
    session: SessionStore = app.state.session
    if session.state.news_pending:
        raise HTTPException(status_code=409, detail="News verification already in progress.")

    news_verifier: NewsVerifier = app.state.news_verifier
    session.update(news_pending=True)
    try:
        result = await news_verifier.verify(session.state.news_text)
    except InputRejectedError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    finally:
        session.update(news_pending=False)

    session.update(result=result)
    return _view()


def run() -> None:
    """Serve the app with uvicorn (the `content-verifier` console script)."""
    import uvicorn

    setup_logging()
    uvicorn.run(
        "content_verifier.main:app",
        host=HOST,
        port=PORT,
        reload=False,
    )


if __name__ == "__main__":
    run()
