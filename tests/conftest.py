from datetime import datetime, timezone

import pytest

from cadence.application.registry import SchedulerRegistry
from cadence.application.review_service import ReviewService
from cadence.application.scheduling import ModifiedSm2Scheduler, Sm2Scheduler

BASE_TIME = datetime(2023, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def sm2():
    return Sm2Scheduler()


@pytest.fixture
def modified_sm2():
    return ModifiedSm2Scheduler(recovery_threshold=4)


@pytest.fixture
def registry(sm2, modified_sm2):
    return SchedulerRegistry([sm2, modified_sm2])


@pytest.fixture
def service(registry):
    return ReviewService(registry=registry, default_algorithm="sm2")


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir and clears CADENCE_* variables."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config files
    monkeypatch.setenv("HOME", str(home))
    for var in ("CADENCE_DEFAULT_ALGORITHM", "CADENCE_RECOVERY_THRESHOLD", "CADENCE_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    return home
