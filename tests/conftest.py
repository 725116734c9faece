import pytest

from llmcache.config import hierarchy
from llmcache.config.schema import CacheSettings, CostSettings, MetricsSettings, Settings


class FakeClock:
    """Manually advanced stand-in for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory, monkeypatch):
    """Keep the user's global config and LLM_* env vars out of every test."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setattr(hierarchy, "_GLOBAL_CONFIG_PATH", home / ".llmcache" / "config.yaml")
    for env_key in [*hierarchy._ENV_MAP, *hierarchy._PRICE_ENV_MAP]:
        monkeypatch.delenv(env_key, raising=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache_settings(tmp_path):
    return CacheSettings(directory=tmp_path / "cache")


@pytest.fixture
def metrics_settings():
    return MetricsSettings(cost=CostSettings(enabled=True))


@pytest.fixture
def settings(cache_settings, metrics_settings):
    return Settings(cache=cache_settings, metrics=metrics_settings)
