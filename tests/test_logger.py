from __future__ import annotations

import logging

import pytest

from fx_ratecache.utils import logger as logger_module
from fx_ratecache.utils.logger import get_logger


def _record_basic_config(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, object]]:
    calls: list[dict[str, object]] = []
    monkeypatch.setattr(logger_module.logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    return calls


def test_get_logger_returns_the_named_logger() -> None:
    assert get_logger("fx_ratecache.exchange") is logging.getLogger("fx_ratecache.exchange")
    assert get_logger().name == "fx_ratecache"


def test_get_logger_installs_a_handler_when_none_is_configured(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(logging.getLogger(), "handlers", [])
    calls = _record_basic_config(monkeypatch)

    get_logger("fx_ratecache.test")

    assert calls == [{"level": logging.INFO, "format": logger_module.LOG_FORMAT}]


def test_get_logger_leaves_application_logging_alone(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(logging.getLogger(), "handlers", [logging.NullHandler()])
    calls = _record_basic_config(monkeypatch)

    get_logger("fx_ratecache.test")

    assert calls == []
