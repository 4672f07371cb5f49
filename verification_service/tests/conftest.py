import io
from pathlib import Path
from typing import Callable, Tuple

import httpx
import pytest
import torch
from PIL import Image

from content_verifier.inference.loader import ModelLoader
from content_verifier.main import app
from content_verifier.news.summary import NewsVerifier
from content_verifier.session import SessionStore
from content_verifier.wallet.stub import WalletStub


class MeanPixelScore(torch.nn.Module):
    """Scores an image by its mean normalised pixel value."""

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return x.mean().reshape(1, 1)


@pytest.fixture
def model_path(tmp_path: Path) -> Path:
    path = tmp_path / "authenticity_classifier.pt"
    torch.jit.script(MeanPixelScore()).save(str(path))
    return path


@pytest.fixture
def make_png() -> Callable[..., bytes]:
    def _make(color: Tuple[int, int, int] = (51, 51, 51), size=(32, 16)) -> bytes:
        buf = io.BytesIO()
        Image.new("RGB", size, color).save(buf, format="PNG")
        return buf.getvalue()

    return _make


def _offline(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request to {request.url}")


@pytest.fixture(autouse=True)
def fresh_app_state(tmp_path: Path):
    # Every test starts with a new session, no model and no network.
    app.state.loader = ModelLoader(tmp_path / "missing.pt", backends=("cpu",))
    app.state.session = SessionStore()
    app.state.news_verifier = NewsVerifier(transport=httpx.MockTransport(_offline))
    app.state.wallet = WalletStub()
    yield


class NaNScore(torch.nn.Module):
    """Always scores NaN, like an artefact with broken weights."""

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return (x.mean() / 0.0 * 0.0).reshape(1, 1)


@pytest.fixture
def nan_model_path(tmp_path: Path) -> Path:
    path = tmp_path / "nan_classifier.pt"
    torch.jit.script(NaNScore()).save(str(path))
    return path
