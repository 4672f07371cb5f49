"""
Image verification.

The classifier outputs a manipulation score in [0, 1]. A score below the
decision threshold counts as authentic, and the confidence is
`round(|1 - score| * 100)`, rounding halves up. Neither the threshold nor
the formula is calibrated; the threshold is configurable.

Failures (nothing uploaded, model unavailable, undecodable image) come back
as zero-confidence negative results rather than exceptions.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Optional

from ..config import DECISION_THRESHOLD, INPUT_SIZE
from ..errors import ImageDecodeError
from ..inference.loader import ModelLoader
from ..schemas import VerificationResult
from .preprocess import decode_data_url, preprocess_image

logger = logging.getLogger(__name__)

NOT_READY_MESSAGE = "Please upload an image and ensure the model is loaded."
NON_FINITE_MESSAGE = "Model returned a non-finite score"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_to_result(
    score: float, threshold: float = DECISION_THRESHOLD
) -> VerificationResult:
    confidence = round_half_up(abs(1 - score) * 100)
    # Out-of-range scores from a misbehaving artefact must not break the schema.
    confidence = min(100, max(0, confidence))
    return VerificationResult(is_authentic=score < threshold, confidence=confidence)


def failed_result(message: str) -> VerificationResult:
    return VerificationResult(is_authentic=False, confidence=0, error=message)


class ImageVerifier:
    """Runs the loaded classifier against an uploaded image."""

    def __init__(
        self,
        loader: ModelLoader,
        *,
        threshold: float = DECISION_THRESHOLD,
        input_size: int = INPUT_SIZE,
    ) -> None:
        self._loader = loader
        self._threshold = threshold
        self._input_size = input_size

    def _score(self, image: str) -> float:
        data, _ = decode_data_url(image)
        batch = preprocess_image(data, self._input_size)
        return self._loader.model.predict(batch)

    async def verify(self, image: Optional[str]) -> VerificationResult:
        if not image or not self._loader.is_ready:
            logger.info("Image verification skipped: image or model missing")
            return failed_result(NOT_READY_MESSAGE)

        start = time.perf_counter()
        try:
            score = await asyncio.to_thread(self._score, image)
        except ImageDecodeError as exc:
            logger.warning("Image verification failed: %s", exc)
            return failed_result(str(exc))
        except Exception as exc:
            logger.exception("Image verification failed")
            return failed_result(str(exc) or exc.__class__.__name__)

        if not math.isfinite(score):
            logger.warning("Image verification failed: model returned %r", score)
            return failed_result(NON_FINITE_MESSAGE)

        result = score_to_result(score, self._threshold)
        latency_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "Image scored %.4f: authentic=%s confidence=%d (%d ms)",
            score,
            result.is_authentic,
            result.confidence,
            latency_ms,
        )
        return result
