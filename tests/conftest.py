from collections.abc import Iterator
from pathlib import Path

import pytest

from bashrun.core.config import ConfigManager
from bashrun.util.log import Log

ENV_KEYS = (
    "BASHRUN_CONFIG_CONTENT",
    "BASHRUN_TIMEOUT_MS",
    "BASHRUN_SHELL",
    "BASHRUN_LOG_LEVEL",
)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def config_context(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    monkeypatch.setenv("BASHRUN_TEST_HOME", str(tmp_path / "home"))
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    token = ConfigManager.provide(ConfigManager())
    try:
        yield
    finally:
        ConfigManager.restore(token)
        Log.reset()
