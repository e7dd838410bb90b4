import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
BACKEND_ROOT = REPO_ROOT / "backend"

if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from app.services.case_generator import CaseGenerator  # noqa: E402
from app.services.case_store import CaseStore  # noqa: E402


@pytest.fixture()
def store() -> CaseStore:
    case_store = CaseStore(CaseGenerator(seed=7), list_size=750)
    case_store.initialize()
    return case_store


class RecordingSleep:
    """Stands in for asyncio.sleep and records every requested pause."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def timestamp() -> datetime:
    return datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture()
def sleep() -> RecordingSleep:
    return RecordingSleep()
