"""
External Collaborators.

Network-bound lookups (competitor names, sentiment) are non-deterministic
side effects.  They sit behind two narrow interfaces, always run under a
bounded timeout, and fall back to static values on timeout or error, so
they can never block or abort the numeric core.

The static implementations are deterministic and are what tests use.
Plug a real service in by subclassing ``CompetitorSource`` /
``SentimentSource``.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Callable, List, Optional, TypeVar

from financial_ingest.config import ExternalConfig
from financial_ingest.logging_setup import get_logger
from financial_ingest.schema import Sentiment

logger = get_logger("external")

T = TypeVar("T")

FALLBACK_COMPETITORS: tuple[str, ...] = ("Competitor A", "Competitor B", "Competitor C")
NEUTRAL_SENTIMENT = Sentiment(score=0.0, label="NEUTRAL")


class CompetitorSource:
    """Looks up competitor names for a company."""

    def competitors(self, company_name: str) -> List[str]:
        raise NotImplementedError


class SentimentSource:
    """Classifies the sentiment of a piece of text."""

    def classify(self, text: str) -> Sentiment:
        raise NotImplementedError


class StaticCompetitorSource(CompetitorSource):
    def __init__(self, names: tuple[str, ...] = FALLBACK_COMPETITORS) -> None:
        self._names = names

    def competitors(self, company_name: str) -> List[str]:
        return list(self._names)


class StaticSentimentSource(SentimentSource):
    def __init__(self, sentiment: Sentiment = NEUTRAL_SENTIMENT) -> None:
        self._sentiment = sentiment

    def classify(self, text: str) -> Sentiment:
        return self._sentiment


def call_with_timeout(
    fn: Callable[..., T],
    *args: Any,
    timeout: float,
    fallback: T,
) -> T:
    """Run ``fn(*args)`` with an upper time bound.

    Returns *fallback* if the call raises or does not finish within
    *timeout* seconds.  A timed-out call is abandoned, not cancelled; its
    worker thread finishes in the background.
    """
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(fn, *args)
    try:
        return future.result(timeout=timeout)
    except FutureTimeout:
        logger.warning("External call %s timed out after %.1fs; using fallback",
                       getattr(fn, "__qualname__", fn), timeout)
        return fallback
    except Exception as exc:  # noqa: BLE001
        logger.warning("External call %s failed (%s); using fallback",
                       getattr(fn, "__qualname__", fn), exc)
        return fallback
    finally:
        executor.shutdown(wait=False)


class ExternalServices:
    """Bundle of collaborators with the timeout/fallback policy applied.

    Parameters
    ----------
    config:
        Timeout and competitor count.
    competitor_source, sentiment_source:
        Implementations to call; static ones when omitted.
    """

    def __init__(
        self,
        config: Optional[ExternalConfig] = None,
        competitor_source: Optional[CompetitorSource] = None,
        sentiment_source: Optional[SentimentSource] = None,
    ) -> None:
        self._config = config or ExternalConfig()
        self._competitors = competitor_source or StaticCompetitorSource()
        self._sentiment = sentiment_source or StaticSentimentSource()

    def resolve_competitors(self, company_name: str) -> List[str]:
        """Exactly ``competitor_count`` names, padded with placeholders."""
        count = self._config.competitor_count
        names = call_with_timeout(
            self._competitors.competitors,
            company_name,
            timeout=self._config.timeout_seconds,
            fallback=list(FALLBACK_COMPETITORS),
        )
        cleaned = [n.strip() for n in names if isinstance(n, str) and n.strip()][:count]
        while len(cleaned) < count:
            cleaned.append(f"Competitor {len(cleaned) + 1}")
        return cleaned

    def resolve_sentiment(self, text: str) -> Sentiment:
        return call_with_timeout(
            self._sentiment.classify,
            text,
            timeout=self._config.timeout_seconds,
            fallback=NEUTRAL_SENTIMENT,
        )
