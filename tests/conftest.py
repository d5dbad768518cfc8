import os
from pathlib import Path
from typing import List

import httpx
import pytest
from typer.testing import CliRunner

from linkpulse.core.services.eligibility import EligibilityEngine
from linkpulse.infrastructure.config.settings import (
    SdkConfig, clear_test_config, load_configuration, reset_configuration,
)
from linkpulse.infrastructure.http.request_executor import RequestExecutor
from linkpulse.infrastructure.resilience.retry import RetryCoordinator
from linkpulse.infrastructure.storage.state_store import InMemoryStateStore
from tests.support import API_KEY, BASE_URL, TODAY, sequence_handler


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()

@pytest.fixture
def sdk_config(tmp_path: Path) -> SdkConfig:
    return SdkConfig(
        api_key=API_KEY,
        base_url=BASE_URL,
        max_retries=3,
        base_delay_ms=500,
        max_jitter_ms=250,
        state_dir=tmp_path / "state",
    )

@pytest.fixture
def sleep_calls() -> List[float]:
    """Seconds passed to the retry coordinator's sleep, in order."""
    return []

@pytest.fixture
def retry(sleep_calls: List[float]) -> RetryCoordinator:
    """RetryCoordinator that records its waits instead of sleeping."""
    async def fake_sleep(seconds: float) -> None:
        sleep_calls.append(seconds)

    return RetryCoordinator(max_retries=3, base_delay_ms=500, max_jitter_ms=250, sleep=fake_sleep)

@pytest.fixture
def requests_seen() -> List[httpx.Request]:
    return []

@pytest.fixture
def make_executor(sdk_config: SdkConfig, retry: RetryCoordinator, requests_seen: List[httpx.Request]):
    """Factory building a RequestExecutor over a MockTransport replaying the given responses."""
    def factory(*responses) -> RequestExecutor:
        transport = httpx.MockTransport(sequence_handler(list(responses), requests_seen))
        return RequestExecutor(sdk_config, retry=retry, transport=transport)

    return factory

@pytest.fixture
def memory_store() -> InMemoryStateStore:
    return InMemoryStateStore()

@pytest.fixture
def eligibility(memory_store: InMemoryStateStore) -> EligibilityEngine:
    """Engine pinned to a fixed 'today'."""
    return EligibilityEngine(memory_store, today=lambda: TODAY)

@pytest.fixture(autouse=True)
def isolated_configuration(monkeypatch, tmp_path: Path):
    """Keeps LINKPULSE_* variables and the developer's own config files out of tests.

    Configuration is marked loaded from files that do not exist, so code
    under test sees only test config and monkeypatched environment.
    """
    for key in list(os.environ):
        if key.startswith("LINKPULSE_"):
            monkeypatch.delenv(key, raising=False)
    reset_configuration()
    clear_test_config()
    load_configuration(config_file=tmp_path / "absent.yaml", env_file=tmp_path / "absent.env")
    yield
    reset_configuration()
    clear_test_config()
