# medstock/infra/repo/mongo_repo.py
from __future__ import annotations

import os
import logging
import datetime as dt
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pydantic import ValidationError as PydanticValidationError

from medstock.domain.models import Medication
from medstock.domain.ports import SnapshotRepoPort

MONGO_URI    = os.getenv("MONGO_URI", "mongodb://localhost:27017")
DB_NAME      = os.getenv("MONGO_DB", "medstock")
COLL_NAME    = os.getenv("MONGO_COLL", "snapshots")
SNAPSHOT_KEY = os.getenv("SNAPSHOT_KEY", "inventory")

logger = logging.getLogger("medstock.repo")


class MongoSnapshotRepo(SnapshotRepoPort):
    """
    Persistence "replace-the-whole-blob": seluruh snapshot disimpan sebagai
    satu dokumen `{_id: SNAPSHOT_KEY, items: [...], updated_at}`.
    """

    def __init__(self, client: Optional[AsyncIOMotorClient] = None, key: str = SNAPSHOT_KEY) -> None:
        self.client = client or AsyncIOMotorClient(MONGO_URI)
        self.db = self.client[DB_NAME]
        self.coll: AsyncIOMotorCollection = self.db[COLL_NAME]
        self.key = key

    async def ping(self) -> bool:
        res = await self.client.admin.command("ping")
        return bool(res.get("ok"))

    async def load_snapshot(self) -> List[Medication]:
        doc = await self.coll.find_one({"_id": self.key})
        if not doc:
            return []
        items: List[Medication] = []
        seen = set()
        for i, raw in enumerate(doc.get("items") or []):
            try:
                m = Medication.model_validate(raw)
            except PydanticValidationError as e:
                logger.warning("[repo] skipping stored item #%d: %s", i, e.errors()[0].get("msg"))
                continue
            if m.id in seen:
                logger.warning("[repo] skipping duplicate stored id=%s", m.id)
                continue
            seen.add(m.id)
            items.append(m)
        return items

    async def save_snapshot(self, snapshot: List[Medication]) -> None:
        body: Dict[str, Any] = {
            "items": [m.to_wire() for m in snapshot],
            "updated_at": dt.datetime.now(dt.timezone.utc),
        }
        await self.coll.replace_one({"_id": self.key}, {"_id": self.key, **body}, upsert=True)
