"""Contract and value types shared by upstream rate fetchers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar
from urllib.parse import urlencode

import requests

from fx_ratecache.utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True, slots=True)
class ProviderRequest:
    """One upstream GET call: endpoint plus query parameters."""

    url: str
    params: dict[str, str] = field(default_factory=dict)
    data_set: str | None = None

    @property
    def full_url(self) -> str:
        if not self.params:
            return self.url
        return f"{self.url}?{urlencode(self.params)}"


@dataclass(frozen=True, slots=True)
class ProviderResponse:
    """Status and raw body returned for a :class:`ProviderRequest`."""

    status_code: int
    body: str
    data_set: str | None = None

    @property
    def ok(self) -> bool:
        return self.status_code == 200


class RateFetcher(ABC):
    """Obtain a raw payload for a currency pair from an upstream provider.

    Subclasses build requests and classify responses; transport is done
    through a :class:`requests.Session` so callers can inject their own.
    """

    user_agent: ClassVar[str] = "fx-ratecache/1.0"

    def __init__(
        self,
        access_key: str,
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.access_key = access_key
        self.timeout = timeout
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers["User-Agent"] = self.user_agent
        return self._session

    @abstractmethod
    def build_request(self, base: str, quote: str) -> ProviderRequest:
        """Return the request used to fetch ``base``/``quote``."""

    @abstractmethod
    def fetch(self, base: str, quote: str) -> str:
        """Return the payload text for the pair or raise a provider error."""

    def perform(self, request: ProviderRequest) -> ProviderResponse:
        """Execute ``request`` and wrap the result; transport errors propagate."""

        response = self.session.get(request.url, params=request.params, timeout=self.timeout)
        LOGGER.info(
            "Fetched %s (data_set=%s) -> HTTP %s",
            request.url,
            request.data_set,
            response.status_code,
        )
        return ProviderResponse(
            status_code=response.status_code,
            body=response.text,
            data_set=request.data_set,
        )


__all__ = ["DEFAULT_TIMEOUT", "ProviderRequest", "ProviderResponse", "RateFetcher"]
