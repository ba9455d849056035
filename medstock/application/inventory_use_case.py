# medstock/application/inventory_use_case.py
from __future__ import annotations

import logging
import datetime as dt
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from medstock.application.inventory_store import InventoryStore
from medstock.application.query import InventorySummary, search, summarize
from medstock.domain.errors import ValidationError
from medstock.domain.expiry import today
from medstock.domain.models import Medication
from medstock.domain.ports import SnapshotRepoPort

logger = logging.getLogger("medstock.inventory")


@dataclass
class MutationResult:
    applied: bool
    persisted: bool
    medication: Optional[Medication] = None


class InventoryUseCase:
    """
    Orkestrasi store in-memory + persistence collaborator.

    Setiap mutasi yang benar-benar diterapkan diikuti save seluruh snapshot.
    Gagal save hanya di-log; state in-memory tetap otoritatif selama sesi.
    """

    def __init__(self, store: InventoryStore, repo: SnapshotRepoPort):
        self.store = store
        self.repo = repo

    @property
    def registry(self):
        return self.store.registry

    async def load(self) -> int:
        try:
            snapshot = await self.repo.load_snapshot()
        except Exception:
            logger.exception("[inventory] failed to load snapshot; starting empty")
            snapshot = []
        self.store.replace(snapshot)
        logger.info("[inventory] loaded %d record(s)", len(snapshot))
        return len(snapshot)

    async def _persist(self) -> bool:
        try:
            await self.repo.save_snapshot(self.store.snapshot)
            return True
        except Exception:
            logger.exception("[inventory] failed to save snapshot (in-memory state kept)")
            return False

    # ------- reads -------
    def list(self, term: Optional[str] = None) -> List[Medication]:
        return search(self.store.snapshot, term)

    def get(self, record_id: str) -> Optional[Medication]:
        return self.store.get(record_id)

    def summary(self, ref: Optional[dt.date] = None) -> InventorySummary:
        return summarize(self.store.snapshot, ref or today())

    # ------- writes -------
    async def create(self, actor: Any, fields: Dict[str, Any]) -> MutationResult:
        rec = self.store.create(actor, fields)
        return MutationResult(applied=True, persisted=await self._persist(), medication=rec)

    async def create_many(self, actor: Any, items: List[Dict[str, Any]]) -> List[Medication]:
        """Buat banyak record (hasil ekstraksi); item invalid dilewati, satu save per batch."""
        created: List[Medication] = []
        for fields in items:
            try:
                created.append(self.store.create(actor, fields))
            except ValidationError as e:
                logger.warning("[inventory] skipping invalid extracted item: %s", e)
        if created:
            await self._persist()
        return created

    async def update(self, actor: Any, record_id: str, patch: Dict[str, Any]) -> MutationResult:
        applied = self.store.update(actor, record_id, patch)
        persisted = await self._persist() if applied else True
        return MutationResult(applied=applied, persisted=persisted, medication=self.store.get(record_id))

    async def delete(self, actor: Any, record_id: str) -> MutationResult:
        applied = self.store.delete(actor, record_id)
        persisted = await self._persist() if applied else True
        return MutationResult(applied=applied, persisted=persisted)

    async def replace(self, snapshot: List[Medication]) -> MutationResult:
        self.store.replace(snapshot)
        return MutationResult(applied=True, persisted=await self._persist())
