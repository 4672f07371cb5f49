"""
Configuration for the content verification service.

Everything is read once from environment variables at import time, with
defaults matching the behaviour of the verification page. Tests
that need different values build the relevant objects directly instead of
patching these constants.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Tuple


def _env(name: str, default: str) -> str:
    return os.environ.get(f"CONTENT_VERIFIER_{name}", default)


# The classifier artefact lives at `<MODEL_ROOT>/<MODEL_NAME>.pt` and is a
# TorchScript module taking a `[1, INPUT_SIZE, INPUT_SIZE, 3]` float tensor.
MODEL_ROOT: Path = Path(_env("MODEL_ROOT", "models")).resolve()
MODEL_NAME: str = _env("MODEL_NAME", "authenticity_classifier")
MODEL_LOAD_TIMEOUT_S: float = float(_env("MODEL_LOAD_TIMEOUT_S", "30"))

# Torch devices to try, accelerated first.
BACKENDS: Tuple[str, ...] = tuple(
    b.strip() for b in _env("BACKENDS", "cuda,cpu").split(",") if b.strip()
)

INPUT_SIZE: int = int(_env("INPUT_SIZE", "224"))

# Scores below this are reported as authentic. Uncalibrated; see DESIGN.md.
DECISION_THRESHOLD: float = float(_env("DECISION_THRESHOLD", "0.5"))

NEWS_WORD_LIMIT: int = int(_env("NEWS_WORD_LIMIT", "150"))
SUMMARY_API_URL: str = _env(
    "SUMMARY_API_URL", "https://en.wikipedia.org/api/rest_v1/page/summary"
).rstrip("/")
NEWS_TIMEOUT_S: float = float(_env("NEWS_TIMEOUT_S", "10"))
USER_AGENT: str = _env("USER_AGENT", "content-verifier/0.1.0")

LOG_LEVEL: str = _env("LOG_LEVEL", "INFO")
HOST: str = _env("HOST", "0.0.0.0")
PORT: int = int(_env("PORT", "8080"))
