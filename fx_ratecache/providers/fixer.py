"""Fetch the latest EUR-relative rate table from fixer.io."""

from __future__ import annotations

import json

import requests

from fx_ratecache.errors import FixerCurrencyFetchError
from fx_ratecache.providers.base import DEFAULT_TIMEOUT, ProviderRequest, RateFetcher
from fx_ratecache.utils.logger import get_logger

LOGGER = get_logger(__name__)

SERVICE_HOST = "data.fixer.io"
SERVICE_PATH = "/api/latest"
SERVICE_URL = f"http://{SERVICE_HOST}{SERVICE_PATH}"
TABLE_QUOTE_CURRENCY = "EUR"


class FixerRateFetcher(RateFetcher):
    """Download the whole rate table in one call; there is no retry path."""

    def __init__(
        self,
        access_key: str,
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(access_key, session=session, timeout=timeout)

    def build_request(self, base: str | None = None, quote: str | None = None) -> ProviderRequest:
        # The table always covers every currency, so the pair is not sent.
        return ProviderRequest(url=SERVICE_URL, params={"access_key": self.access_key})

    def fetch(self, base: str | None = None, quote: str | None = None) -> str:
        request = self.build_request(base, quote)
        try:
            response = self.perform(request)
        except requests.RequestException as exc:
            raise FixerCurrencyFetchError(f"Unable to reach fixer.io: {exc}") from exc

        if not response.ok:
            raise FixerCurrencyFetchError(
                f"fixer.io responded with HTTP {response.status_code}",
                status_code=response.status_code,
            )
        self._raise_for_api_error(response.body)
        return response.body

    @staticmethod
    def _raise_for_api_error(body: str) -> None:
        """fixer.io reports API errors as ``200`` with ``success: false``."""

        try:
            data = json.loads(body)
        except ValueError:
            # Malformed tables are reported by the extractor.
            return
        if not isinstance(data, dict) or data.get("success", True) is not False:
            return
        error = data.get("error") or {}
        if not isinstance(error, dict):
            error = {"info": str(error)}
        message = error.get("info") or error.get("type") or "fixer.io request failed"
        LOGGER.warning("fixer.io rejected the request (code=%s)", error.get("code"))
        raise FixerCurrencyFetchError(str(message), status_code=200, code=error.get("code"))


__all__ = ["FixerRateFetcher", "SERVICE_URL", "TABLE_QUOTE_CURRENCY"]
