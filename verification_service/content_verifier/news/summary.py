"""
News verification via the Wikipedia REST summary endpoint.

The pasted text is used verbatim as a page title:

    GET <SUMMARY_API_URL>/<percent-encoded text>

A summary with an `extract` counts as verified content. This is a crude
proxy rather than a fact-check: one best-effort request per user action,
with no retries, caching or rate-limit handling.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from ..config import NEWS_TIMEOUT_S, NEWS_WORD_LIMIT, SUMMARY_API_URL, USER_AGENT
from ..errors import InputRejectedError
from ..schemas import VerificationResult

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Not found in Wikipedia."
VERIFIED_CONFIDENCE = 80
UNVERIFIED_CONFIDENCE = 50

# Characters left alone by JavaScript's encodeURIComponent besides
# the ones `quote` never escapes.
_TITLE_SAFE = "!~*'()"


def count_words(text: str) -> int:
    """Number of whitespace-delimited tokens in `text`."""
    return len(text.split())


def can_verify_news(
    text: str, pending: bool = False, limit: int = NEWS_WORD_LIMIT
) -> bool:
    return not pending and count_words(text) <= limit


def summary_url(text: str, base_url: str = SUMMARY_API_URL) -> str:
    return f"{base_url}/{quote(text, safe=_TITLE_SAFE)}"


def _failed(message: str) -> VerificationResult:
    return VerificationResult(
        is_authentic=False,
        confidence=0,
        real_news=f"Verification failed: {message}",
    )


class NewsVerifier:
    """Looks pasted news text up as a Wikipedia page title."""

    def __init__(
        self,
        *,
        base_url: str = SUMMARY_API_URL,
        timeout_s: float = NEWS_TIMEOUT_S,
        word_limit: int = NEWS_WORD_LIMIT,
        user_agent: str = USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._word_limit = word_limit
        self._user_agent = user_agent
        # Tests swap in an `httpx.MockTransport`.
        self._transport = transport

    @property
    def word_limit(self) -> int:
        return self._word_limit

    async def verify(self, text: str) -> VerificationResult:
        """
        Look `text` up and map the response to a verdict.

        Raises `InputRejectedError` if the word limit is exceeded; every
        other failure is returned as a zero-confidence result.
        """
        if count_words(text) > self._word_limit:
            raise InputRejectedError(
                f"News content exceeds the {self._word_limit}-word limit."
            )

        url = summary_url(text, self._base_url)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s,
                follow_redirects=True,
                headers={"User-Agent": self._user_agent, "Accept": "application/json"},
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            message = f"Wikipedia API error: {exc.response.reason_phrase}"
            logger.warning("News verification failed: %s", message)
            return _failed(message)
        except httpx.RequestError as exc:
            message = str(exc) or exc.__class__.__name__
            logger.warning("News verification failed: %s", message)
            return _failed(message)
        except ValueError as exc:
            logger.warning("News verification failed: invalid JSON: %s", exc)
            return _failed(f"Invalid response from Wikipedia: {exc}")

        extract = data.get("extract") if isinstance(data, dict) else None
        if extract is not None and not isinstance(extract, str):
            logger.warning("News verification failed: extract is %s", type(extract).__name__)
            return _failed("Invalid response from Wikipedia: extract is not text")
        if extract:
            logger.info("News text matched a Wikipedia summary")
            return VerificationResult(
                is_authentic=True,
                confidence=VERIFIED_CONFIDENCE,
                real_news=extract,
            )

        logger.info("News text not found in Wikipedia")
        return VerificationResult(
            is_authentic=False,
            confidence=UNVERIFIED_CONFIDENCE,
            real_news=NOT_FOUND_MESSAGE,
        )
