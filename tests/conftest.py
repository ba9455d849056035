"""Pytest configuration, in-memory collaborators and fixtures."""

import os
import datetime as dt
from typing import Any, Dict, List, Optional

import pytest

os.environ.setdefault("REQUIRE_API_KEY", "0")

from medstock.application.import_use_case import ShareImportUseCase
from medstock.application.inventory_store import InventoryStore
from medstock.application.inventory_use_case import InventoryUseCase
from medstock.config import DEFAULT_ACTORS, registry_from_dict
from medstock.domain.models import ActorRegistry, Medication
from medstock.domain.ports import CachePort, SnapshotRepoPort, SuggestionPort
from medstock.services.session_state import SessionStateService
from medstock.services.suggestion_service import SuggestionService

MAIN = "user_main"
AUTHORIZED = "user_authorized_1"
AUTHORIZED_2 = "user_authorized_2"
OUTSIDER = "user_unauthorized_1"

TODAY = dt.date(2026, 10, 19)


class MemorySnapshotRepo(SnapshotRepoPort):
    def __init__(self, items: Optional[List[Medication]] = None, fail_save: bool = False):
        self.items = list(items or [])
        self.fail_save = fail_save
        self.saves = 0

    async def load_snapshot(self) -> List[Medication]:
        return list(self.items)

    async def save_snapshot(self, snapshot: List[Medication]) -> None:
        if self.fail_save:
            raise ConnectionError("mongo down")
        self.saves += 1
        self.items = list(snapshot)


class MemoryCache(CachePort):
    def __init__(self):
        self.data: Dict[str, Any] = {}

    async def get_json(self, key: str) -> Optional[Any]:
        return self.data.get(key)

    async def set_json(self, key: str, value: Any, ttl: int = 3600) -> None:
        self.data[key] = value

    async def delete(self, *keys: str) -> int:
        return sum(1 for k in keys if self.data.pop(k, None) is not None)


class StubSuggestions(SuggestionPort):
    def __init__(self, extracted=None, pmc=None, med_class="", details=None, mechanism="", report="", fail=False):
        self.extracted = extracted or []
        self.pmc = pmc
        self.med_class = med_class
        self.details = details or {}
        self.mechanism = mechanism
        self.report = report
        self.fail = fail
        self.calls: List[str] = []

    def _maybe_fail(self, name: str):
        self.calls.append(name)
        if self.fail:
            raise RuntimeError("llm down")

    async def extract_from_text(self, text: str) -> List[Dict[str, Any]]:
        self._maybe_fail("extract_from_text")
        return self.extracted

    async def extract_from_file(self, data: bytes, mime_type: str) -> List[Dict[str, Any]]:
        self._maybe_fail("extract_from_file")
        return self.extracted

    async def suggest_pmc(self, name: str, presentation: Optional[str]) -> Any:
        self._maybe_fail("suggest_pmc")
        return self.pmc

    async def suggest_class(self, name: str, active_ingredient: Optional[str]) -> str:
        self._maybe_fail("suggest_class")
        return self.med_class

    async def suggest_details(self, name: str) -> Dict[str, Any]:
        self._maybe_fail("suggest_details")
        return self.details

    async def explain_mechanism(self, active_ingredient: str) -> str:
        self._maybe_fail("explain_mechanism")
        return self.mechanism

    async def write_report(self, records, columns, today):
        self._maybe_fail("write_report")
        self.report_args = (records, columns, today)
        return self.report


def make_med(id: str, owner: str = MAIN, **fields) -> Medication:
    return Medication.model_validate({"id": id, "ownerId": owner, "name": fields.pop("name", id), **fields})


@pytest.fixture
def registry() -> ActorRegistry:
    raw = dict(DEFAULT_ACTORS)
    raw["authorized"] = [AUTHORIZED, AUTHORIZED_2]
    raw["actors"] = DEFAULT_ACTORS["actors"] + [{"id": AUTHORIZED_2, "name": "Segundo Autorizado"}]
    return registry_from_dict(raw)


@pytest.fixture
def store(registry) -> InventoryStore:
    return InventoryStore(registry)


@pytest.fixture
def repo() -> MemorySnapshotRepo:
    return MemorySnapshotRepo()


@pytest.fixture
def inventory(store, repo) -> InventoryUseCase:
    return InventoryUseCase(store=store, repo=repo)


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def share_uc(inventory, cache) -> ShareImportUseCase:
    return ShareImportUseCase(
        inventory=inventory,
        sessions=SessionStateService(cache),
        base_url="https://stock.example/import",
    )


@pytest.fixture
def suggestions() -> StubSuggestions:
    return StubSuggestions()


@pytest.fixture
def suggestion_service(suggestions) -> SuggestionService:
    return SuggestionService(suggestions)
