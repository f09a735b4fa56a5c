from __future__ import annotations

import os
from collections.abc import Callable, Generator

import pytest

from adapters.layout.config import LayoutConfig
from adapters.layout.timeline import TimelineLayoutEngine
from app.config import AppSettings, LayoutSettings


def _clear_tle_env() -> None:
    for key in list(os.environ):
        if key.startswith("TLE_"):
            os.environ.pop(key, None)


_clear_tle_env()


@pytest.fixture(autouse=True)
def clear_tle_env() -> Generator[None, None, None]:
    _clear_tle_env()
    yield
    _clear_tle_env()


@pytest.fixture
def layout_settings() -> LayoutSettings:
    return LayoutSettings()


@pytest.fixture
def layout_settings_factory(layout_settings: LayoutSettings) -> Callable[..., LayoutSettings]:
    def _factory(**overrides: object) -> LayoutSettings:
        return layout_settings.model_copy(update=overrides)

    return _factory


@pytest.fixture
def app_settings(layout_settings: LayoutSettings) -> AppSettings:
    return AppSettings(layout=layout_settings, current_year=2024)


@pytest.fixture
def layout_config(layout_settings: LayoutSettings) -> LayoutConfig:
    return layout_settings.to_layout_config()


@pytest.fixture
def engine(layout_config: LayoutConfig) -> TimelineLayoutEngine:
    return TimelineLayoutEngine(layout_config)
