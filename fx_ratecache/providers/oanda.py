"""Fetch spot quotes from the OANDA exchange rates API.

OANDA API docs: https://developer.oanda.com/exchange-rates-api/#cmp--responses
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum

import requests

from fx_ratecache.errors import OandaCurrencyFetchError, UnknownCurrency
from fx_ratecache.providers.base import (
    DEFAULT_TIMEOUT,
    ProviderRequest,
    ProviderResponse,
    RateFetcher,
)
from fx_ratecache.utils.logger import get_logger

LOGGER = get_logger(__name__)

SERVICE_HOST = "web-services.oanda.com"
SERVICE_PATH = "/rates/api/v2/rates/spot.json"
SERVICE_URL = f"https://{SERVICE_HOST}{SERVICE_PATH}"
DEFAULT_DATA_SET = "OANDA"
# "pair not published under the requested data set"
UNSUPPORTED_DATA_SET_CODE = 1
MAX_ATTEMPTS = 2


class FetchOutcome(str, Enum):
    """How a single OANDA response should be handled."""

    SUCCESS = "success"
    FALLBACK = "fallback"
    FAILURE = "failure"


@dataclass(frozen=True, slots=True)
class Classification:
    outcome: FetchOutcome
    response: ProviderResponse
    code: object | None = None
    message: str | None = None


class OandaRateFetcher(RateFetcher):
    """Fetch one directional pair, retrying once on the default data set.

    The fetch runs as two explicit steps. The primary attempt uses the
    configured data set. Only a ``400`` carrying code ``1`` moves on to the
    fallback attempt, which uses :data:`DEFAULT_DATA_SET` and is never
    repeated.
    """

    def __init__(
        self,
        access_key: str,
        data_set: str = DEFAULT_DATA_SET,
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(access_key, session=session, timeout=timeout)
        self.data_set = data_set or DEFAULT_DATA_SET

    def build_request(self, base: str, quote: str, data_set: str | None = None) -> ProviderRequest:
        resolved = data_set or self.data_set
        return ProviderRequest(
            url=SERVICE_URL,
            params={
                "base": base,
                "quote": quote,
                "data_set": resolved,
                "api_key": self.access_key,
            },
            data_set=resolved,
        )

    def fetch(self, base: str, quote: str) -> str:
        attempts: list[ProviderResponse] = []

        primary = self._primary_attempt(base, quote, attempts)
        if primary.outcome is FetchOutcome.SUCCESS:
            return primary.response.body
        if primary.outcome is FetchOutcome.FAILURE:
            raise OandaCurrencyFetchError(
                primary.message or "",
                status_code=primary.response.status_code,
                code=primary.code,
            )

        LOGGER.warning(
            "%s/%s not published under data set %s (%s); retrying with %s",
            base,
            quote,
            self.data_set,
            primary.message,
            DEFAULT_DATA_SET,
        )
        return self._fallback_attempt(base, quote, primary, attempts)

    def _primary_attempt(
        self, base: str, quote: str, attempts: list[ProviderResponse]
    ) -> Classification:
        request = self.build_request(base, quote)
        try:
            response = self._attempt(request, attempts)
        except requests.RequestException as exc:
            raise OandaCurrencyFetchError(f"Unable to reach OANDA: {exc}") from exc
        return self.classify(response)

    def _fallback_attempt(
        self,
        base: str,
        quote: str,
        primary: Classification,
        attempts: list[ProviderResponse],
    ) -> str:
        message = primary.message or ""
        request = self.build_request(base, quote, DEFAULT_DATA_SET)
        try:
            response = self._attempt(request, attempts)
        except requests.RequestException as exc:
            raise UnknownCurrency(message) from exc
        if not response.ok:
            LOGGER.info(
                "Fallback to %s failed for %s/%s with HTTP %s",
                DEFAULT_DATA_SET,
                base,
                quote,
                response.status_code,
            )
            raise UnknownCurrency(message)
        return response.body

    def _attempt(self, request: ProviderRequest, attempts: list[ProviderResponse]) -> ProviderResponse:
        if len(attempts) >= MAX_ATTEMPTS:
            raise RuntimeError("OANDA fetch exceeded its attempt budget")
        response = self.perform(request)
        attempts.append(response)
        return response

    @staticmethod
    def classify(response: ProviderResponse) -> Classification:
        """Map a response onto success, dataset fallback or hard failure."""

        if response.ok:
            return Classification(FetchOutcome.SUCCESS, response)

        try:
            body = json.loads(response.body)
            code = body["code"]
            message = body["message"]
        except (TypeError, ValueError, KeyError) as exc:
            raise OandaCurrencyFetchError(
                f"HTTP {response.status_code} from OANDA with an unreadable error body",
                status_code=response.status_code,
            ) from exc

        if response.status_code == 400 and code == UNSUPPORTED_DATA_SET_CODE:
            return Classification(FetchOutcome.FALLBACK, response, code, str(message))
        return Classification(FetchOutcome.FAILURE, response, code, str(message))


__all__ = [
    "DEFAULT_DATA_SET",
    "FetchOutcome",
    "OandaRateFetcher",
    "SERVICE_URL",
    "UNSUPPORTED_DATA_SET_CODE",
]
