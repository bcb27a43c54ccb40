"""
Source Fetcher

Fetches one source and normalizes its payload.

PRINCIPLES:
===========
1. Failed fetches are first-class outcomes
2. One request per source per race, never retried
3. Cancellation is not an outcome here; it belongs to the coordinator
"""

from __future__ import annotations
from typing import Any
import json
import logging
import time

import httpx

from .contracts import FetchStatus, SourceDescriptor, SourceFailure, SourceOutcome, SourceSuccess
from .errors import HttpStatusError, NetworkError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "QuoteRacer/1.0"


class SourceFetcher:
    """
    Performs fetch -> status check -> decode -> normalize for a source.

    GUARANTEES:
    ===========
    1. fetch() always returns a SourceOutcome, except on cancellation
    2. A misbehaving normalizer never aborts the race
    """

    def __init__(self, client: httpx.AsyncClient, user_agent: str = DEFAULT_USER_AGENT):
        self._client = client
        self._user_agent = user_agent

    async def fetch(self, source: SourceDescriptor) -> SourceOutcome:
        started = time.perf_counter()

        try:
            response = await self._client.get(
                source.url,
                headers={'User-Agent': self._user_agent, 'Accept': 'application/json'},
            )
        except httpx.TimeoutException as e:
            return self._failure(source, started, FetchStatus.TIMEOUT, NetworkError(f"Request timed out: {e}"))
        except httpx.TransportError as e:
            return self._failure(source, started, FetchStatus.NETWORK_ERROR, NetworkError(str(e) or type(e).__name__))
        except httpx.HTTPError as e:
            # Redirect loops, body decoding and other request-level failures
            return self._failure(source, started, FetchStatus.NETWORK_ERROR, NetworkError(str(e) or type(e).__name__))
        except Exception as e:
            logger.warning("%s raised unexpected %s", source.source_id, type(e).__name__)
            return self._failure(source, started, FetchStatus.NETWORK_ERROR, NetworkError(f"{type(e).__name__}: {e}"))

        if not response.is_success:
            return self._failure(source, started, FetchStatus.HTTP_ERROR, HttpStatusError(response.status_code))

        try:
            payload = self._decode(response)
            record = source.normalize(payload)
        except ValidationError as e:
            return self._failure(source, started, FetchStatus.VALIDATION_ERROR, e)
        except Exception as e:
            return self._failure(source, started, FetchStatus.PARSE_ERROR, e)

        outcome = SourceSuccess(
            source_id=source.source_id,
            url=source.url,
            record=record,
            elapsed_ms=self._elapsed_ms(started),
        )
        logger.debug("%s succeeded in %.1fms", source.source_id, outcome.elapsed_ms)
        return outcome

    def _decode(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValidationError(f"Invalid JSON payload: {e}") from e

    def _failure(
        self,
        source: SourceDescriptor,
        started: float,
        status: FetchStatus,
        cause: Exception,
    ) -> SourceFailure:
        failure = SourceFailure(
            source_id=source.source_id,
            url=source.url,
            status=status,
            cause=cause,
            elapsed_ms=self._elapsed_ms(started),
        )
        logger.debug("%s failed (%s): %s", source.source_id, status.value, cause)
        return failure

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000
