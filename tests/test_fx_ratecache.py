"""Tests for the public package facade."""

from __future__ import annotations

import pytest

from fx_ratecache import (
    ExpirationPolicy,
    FixerExchangeCache,
    OandaExchangeCache,
    ProviderConfig,
    ProviderKind,
    __version__,
    build_exchange_cache,
)
from fx_ratecache.store import MemoryRateStore


def test_version_is_exposed() -> None:
    assert isinstance(__version__, str)
    assert __version__


@pytest.mark.parametrize(
    "name, kind",
    [
        ("oanda", ProviderKind.OANDA),
        ("OANDA", ProviderKind.OANDA),
        ("fixer", ProviderKind.FIXER),
        ("fixer.io", ProviderKind.FIXER),
        ("FixerIO", ProviderKind.FIXER),
    ],
)
def test_provider_kind_from_name_handles_aliases(name: str, kind: ProviderKind) -> None:
    assert ProviderKind.from_name(name) is kind


@pytest.mark.parametrize("name", ["", "openexchangerates"])
def test_provider_kind_rejects_unknown_names(name: str) -> None:
    with pytest.raises(ValueError):
        ProviderKind.from_name(name)


def test_config_from_url_for_oanda() -> None:
    config = ProviderConfig.from_url("oanda://secret@mufg?currencies=usd,eur,JPY&ttl=3600&timeout=10")

    assert config.provider is ProviderKind.OANDA
    assert config.access_key == "secret"
    assert config.data_set == "MUFG"
    assert config.currencies == frozenset({"USD", "EUR", "JPY"})
    assert config.ttl_in_seconds == 3600
    assert config.timeout == 10


def test_config_from_url_for_fixer_defaults() -> None:
    config = ProviderConfig.from_url("fixer://secret@")

    assert config.provider is ProviderKind.FIXER
    assert config.currencies is None
    assert config.ttl_in_seconds is None
    assert config.data_set == "OANDA"


def test_config_from_url_requires_a_scheme() -> None:
    with pytest.raises(ValueError, match="must include a scheme"):
        ProviderConfig.from_url("secret@MUFG")


def test_config_from_url_requires_an_access_key() -> None:
    with pytest.raises(ValueError, match="access key"):
        ProviderConfig.from_url("oanda://MUFG?currencies=USD")


def test_config_rejects_non_numeric_ttl() -> None:
    with pytest.raises(ValueError, match="ttl must be numeric"):
        ProviderConfig.from_url("fixer://secret@?ttl=soon")


def test_oanda_config_requires_currencies() -> None:
    with pytest.raises(ValueError, match="allow-list"):
        ProviderConfig(provider=ProviderKind.OANDA, access_key="secret")


def test_config_accepts_provider_names() -> None:
    config = ProviderConfig(provider="fixer", access_key="secret", ttl_in_seconds=60)  # type: ignore[arg-type]

    assert config.provider is ProviderKind.FIXER


def test_build_exchange_cache_for_oanda_applies_ttl() -> None:
    store = MemoryRateStore()
    cache = build_exchange_cache("oanda://secret@MUFG?currencies=USD,EUR&ttl=3600", store=store)

    assert isinstance(cache, OandaExchangeCache)
    assert cache.store is store
    assert cache.data_set == "MUFG"
    assert cache.currencies == frozenset({"USD", "EUR"})
    assert cache.expiration_policy.ttl_in_seconds == 3600
    assert cache.expiration_policy is not OandaExchangeCache.shared_expiration_policy()


def test_build_exchange_cache_for_fixer_forwards_options() -> None:
    policy = ExpirationPolicy()
    config = ProviderConfig(provider=ProviderKind.FIXER, access_key="secret", currencies=["usd"])

    cache = build_exchange_cache(config, expiration_policy=policy, single_flight=True)

    assert isinstance(cache, FixerExchangeCache)
    assert cache.expiration_policy is policy
    assert cache.extractor.allow_list == frozenset({"USD"})


@pytest.mark.parametrize("timeout", ["0", "-5"])
def test_config_from_url_rejects_non_positive_timeouts(timeout: str) -> None:
    with pytest.raises(ValueError, match="timeout must be positive"):
        ProviderConfig.from_url(f"fixer://secret@?timeout={timeout}")


def test_config_from_url_defaults_the_timeout() -> None:
    config = ProviderConfig.from_url("fixer://secret@?timeout=")

    assert config.timeout == 30.0


def test_build_exchange_cache_rejects_a_config_ttl_for_shared_policies() -> None:
    shared = OandaExchangeCache.reset_shared_expiration_policy()

    with pytest.raises(ValueError, match="share_expiration"):
        build_exchange_cache(
            "oanda://secret@MUFG?currencies=USD,EUR&ttl=60", share_expiration=True
        )

    assert shared.ttl_in_seconds is None


def test_build_exchange_cache_can_join_the_shared_policy_without_a_ttl() -> None:
    shared = OandaExchangeCache.reset_shared_expiration_policy()

    cache = build_exchange_cache("oanda://secret@MUFG?currencies=USD,EUR", share_expiration=True)

    assert cache.expiration_policy is shared
